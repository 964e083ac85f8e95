# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/_cublas_backend.py

"""
cuBLAS calls for py-gpu-matvec

The routines operate on DeviceBuffer objects owned by the caller, through the
raw cuBLAS bindings shipped with CuPy. CuPy is imported lazily so the rest of
the package works without it.
"""

import logging

import numpy as np
from numba import config as numba_config
from numba import cuda

from .device_buffers import DeviceBuffer
from .errors import BackendUnavailableError, KernelLaunchFailureError

logger = logging.getLogger(__name__)

_GEMV_ROUTINES = {
    np.dtype(np.float32): 'sgemv',
    np.dtype(np.float64): 'dgemv',
}

_NRM2_ROUTINES = {
    np.dtype(np.float32): 'snrm2',
    np.dtype(np.float64): 'dnrm2',
}

_DOT_ROUTINES = {
    np.dtype(np.float32): 'sdot',
    np.dtype(np.float64): 'ddot',
}


def load_cublas():
    """Return (cupy, cublas bindings) or raise BackendUnavailableError."""
    if numba_config.ENABLE_CUDASIM:
        raise BackendUnavailableError("cuBLAS is not available under the CUDA simulator")
    try:
        import cupy
        from cupy_backends.cuda.libs import cublas
    except ImportError as e:
        raise BackendUnavailableError(
            "The cuBLAS backend requires CuPy (pip install py-gpu-matvec[cublas])", str(e)) from e
    return cupy, cublas


def _call(operation_name: str, func, *args) -> None:
    cupy, cublas = load_cublas()
    handle = cupy.cuda.device.get_cublas_handle()
    mode = cublas.getPointerMode(handle)
    cublas.setPointerMode(handle, cublas.CUBLAS_POINTER_MODE_HOST)
    try:
        func(handle, *args)
        cuda.synchronize()
    except (cublas.CUBLASError, cupy.cuda.runtime.CUDARuntimeError) as e:
        raise KernelLaunchFailureError(f"{operation_name}: cuBLAS call failed", str(e)) from e
    finally:
        cublas.setPointerMode(handle, mode)


def gemv(d_a: DeviceBuffer, d_x: DeviceBuffer, d_y: DeviceBuffer,
         m: int, k: int, column_major: bool) -> None:
    """d_y = A @ d_x for the m x k matrix stored in d_a.

    cuBLAS is column-major. A row-major m x k matrix has the same bytes as a
    column-major k x m matrix, so it is passed as that matrix with lda=k and
    the transpose flag set.
    """
    _, cublas = load_cublas()
    routine = getattr(cublas, _GEMV_ROUTINES[d_a.dtype])

    if column_major:
        trans, rows, cols, lda = cublas.CUBLAS_OP_N, m, k, m
    else:
        trans, rows, cols, lda = cublas.CUBLAS_OP_T, k, m, k

    alpha = np.ones((), dtype=d_a.dtype)
    beta = np.zeros((), dtype=d_a.dtype)
    logger.debug("%s trans=%d rows=%d cols=%d lda=%d", _GEMV_ROUTINES[d_a.dtype], trans, rows, cols, lda)
    _call("gemv", routine,
          trans, rows, cols,
          alpha.ctypes.data, d_a.device_pointer, lda,
          d_x.device_pointer, 1,
          beta.ctypes.data, d_y.device_pointer, 1)


def nrm2(d_x: DeviceBuffer, n: int):
    _, cublas = load_cublas()
    routine = getattr(cublas, _NRM2_ROUTINES[d_x.dtype])
    result = np.zeros((), dtype=d_x.dtype)
    _call("nrm2", routine, n, d_x.device_pointer, 1, result.ctypes.data)
    return result[()]


def dot(d_x: DeviceBuffer, d_y: DeviceBuffer, n: int):
    _, cublas = load_cublas()
    routine = getattr(cublas, _DOT_ROUTINES[d_x.dtype])
    result = np.zeros((), dtype=d_x.dtype)
    _call("dot", routine, n, d_x.device_pointer, 1, d_y.device_pointer, 1, result.ctypes.data)
    return result[()]
