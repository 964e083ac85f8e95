# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/_kernel_loader.py

"""
Kernel loader for py-gpu-matvec

This module instantiates the CUDA kernels for each supported element type and
keeps them so that each (kernel, dtype, tile width) is only built once.
Only compiled code is kept here; launch configuration and device memory are
always per call.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

import numba
import numpy as np

from ._kernels import make_naive_kernel, make_tiled_kernel

logger = logging.getLogger(__name__)

# Element types the kernels are instantiated for
KERNEL_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))

_KERNEL_FACTORIES = {
    'naive': make_naive_kernel,
    'tiled': make_tiled_kernel,
}

# Cache for loaded kernels
_loaded_kernels: Dict[Tuple[str, np.dtype, Optional[int]], Any] = {}
_loaded_kernels_lock = threading.Lock()


def load_kernel(kind: str, dtype: np.dtype, tile_width: Optional[int] = None) -> Any:
    """
    Build a kernel for one element type.

    Args:
        kind: 'naive' or 'tiled'
        dtype: float32 or float64
        tile_width: Shared memory tile width, required for 'tiled'

    Returns:
        The numba CUDA kernel
    """
    if kind not in _KERNEL_FACTORIES:
        raise ValueError(f"Unknown kernel kind: {kind}")
    dtype = np.dtype(dtype)
    if dtype not in KERNEL_DTYPES:
        raise ValueError(f"No {kind} kernel for dtype {dtype}")

    factory = _KERNEL_FACTORIES[kind]
    element_type = numba.from_dtype(dtype)
    if kind == 'tiled':
        if tile_width is None:
            raise ValueError("The tiled kernel needs a tile width")
        return factory(element_type, tile_width)
    return factory(element_type)


def get_kernel(kind: str, dtype: np.dtype, tile_width: Optional[int] = None) -> Any:
    """
    Get a kernel, building it if necessary.

    Args:
        kind: 'naive' or 'tiled'
        dtype: float32 or float64
        tile_width: Shared memory tile width, ignored for 'naive'

    Returns:
        The numba CUDA kernel
    """
    key = (kind, np.dtype(dtype), tile_width if kind == 'tiled' else None)
    with _loaded_kernels_lock:
        if key not in _loaded_kernels:
            logger.debug("building %s kernel for %s (tile width %s)", *key)
            _loaded_kernels[key] = load_kernel(*key)
        return _loaded_kernels[key]
