# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/vector_norm_ops.py

"""
Vector norm operations module for py-gpu-matvec

Euclidean norm and squared norm of a vector computed with cuBLAS nrm2 / dot.
"""

from typing import Optional

import numpy as np

from . import _cublas_backend
from .device_buffers import DeviceBufferManager, default_buffer_manager
from .errors import EmptyOperandError

_NORM_SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))


def _validate_vector_input(x: np.ndarray, operation_name: str) -> None:
    """Validate inputs for vector norm operations."""
    if not isinstance(x, np.ndarray):
        raise TypeError(f"{operation_name}: Input must be a numpy array")

    if x.ndim != 1:
        raise ValueError(f"{operation_name}: Input must be a 1D vector, got {x.ndim} dimensions")

    if x.dtype not in _NORM_SUPPORTED_DTYPES:
        raise ValueError(f"{operation_name}: Unsupported dtype {x.dtype}. Norm operations support: float32, float64")

    if x.shape[0] == 0:
        raise EmptyOperandError(operation_name, "vector")


def vector_norm_cublas(x: np.ndarray, buffers: Optional[DeviceBufferManager] = None):
    """Euclidean norm of x, as a scalar of x's dtype."""
    _validate_vector_input(x, "vector_norm_cublas")
    _cublas_backend.load_cublas()
    buffers = buffers if buffers is not None else default_buffer_manager()

    with buffers.scope() as scope:
        d_x = scope.to_device(np.ascontiguousarray(x))
        return _cublas_backend.nrm2(d_x, x.shape[0])


def vector_squared_norm_cublas(x: np.ndarray, buffers: Optional[DeviceBufferManager] = None):
    """Squared Euclidean norm of x (x . x), as a scalar of x's dtype."""
    _validate_vector_input(x, "vector_squared_norm_cublas")
    _cublas_backend.load_cublas()
    buffers = buffers if buffers is not None else default_buffer_manager()

    with buffers.scope() as scope:
        d_x = scope.to_device(np.ascontiguousarray(x))
        return _cublas_backend.dot(d_x, d_x, x.shape[0])


__all__ = [
    'vector_norm_cublas',
    'vector_squared_norm_cublas',
]
