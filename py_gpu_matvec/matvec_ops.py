# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/matvec_ops.py

"""
Matrix-vector product operations module for py-gpu-matvec

This module provides high-level Python interfaces for y = A @ x on the GPU,
validating the operands and dispatching to one of three backends:

- naive: one thread per output row, reading A and x from global memory
- tiled: x is staged through shared memory in tiles of a caller-chosen width
- cublas: cuBLAS gemv

Every backend copies the operands into device buffers, runs, copies the result
back and frees its buffers before returning, including when it fails.
"""

import logging
from typing import Optional, Tuple, TypeVar, Union, overload

import numpy as np
from numba import cuda
from numba.cuda.cudadrv.driver import CudaAPIError
from numpy.typing import NDArray

from . import _cublas_backend
from ._kernel_loader import get_kernel
from .device_buffers import DeviceBuffer, DeviceBufferManager, default_buffer_manager
from .errors import EmptyOperandError, KernelLaunchFailureError, ShapeMismatchError
from .launch_config import DEFAULT_BLOCK_WIDTH, launch_config_for, validate_tile_width

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=np.generic)

# Matrix-vector operations support float/double only
_MATVEC_SUPPORTED_DTYPES = (np.dtype(np.float32), np.dtype(np.float64))

BACKENDS = ('naive', 'tiled', 'cublas')


def _validate_matvec_inputs(a: np.ndarray, x: np.ndarray, operation_name: str,
                            expected_dtype: Optional[np.dtype] = None) -> None:
    """Validate inputs for matrix-vector operations.

    Shape agreement is checked before emptiness, so a (0, 0) matrix with a
    length 0 vector reports both operands empty.
    """
    if not isinstance(a, np.ndarray) or not isinstance(x, np.ndarray):
        raise TypeError(f"{operation_name}: Inputs must be numpy arrays")

    if a.ndim != 2:
        raise ValueError(f"{operation_name}: Matrix must be 2-dimensional, got {a.ndim} dimensions")

    if x.ndim != 1:
        raise ValueError(f"{operation_name}: Vector must be 1-dimensional, got {x.ndim} dimensions")

    if a.dtype != x.dtype:
        raise ValueError(f"{operation_name}: Input arrays must have the same dtype")

    if a.dtype not in _MATVEC_SUPPORTED_DTYPES:
        raise ValueError(f"{operation_name}: Unsupported dtype {a.dtype}. "
                         f"Matrix-vector operations support: float32, float64")

    if expected_dtype is not None and a.dtype != np.dtype(expected_dtype):
        raise ValueError(f"{operation_name}: Expected dtype {np.dtype(expected_dtype)}, got {a.dtype}")

    if a.shape[1] != x.shape[0]:
        raise ShapeMismatchError(operation_name, a.shape, x.shape[0])

    matrix_empty = a.shape[0] == 0 or a.shape[1] == 0
    vector_empty = x.shape[0] == 0
    if matrix_empty and vector_empty:
        raise EmptyOperandError(operation_name, "both")
    if matrix_empty:
        raise EmptyOperandError(operation_name, "matrix")
    if vector_empty:
        raise EmptyOperandError(operation_name, "vector")


def _matrix_storage(a: np.ndarray) -> Tuple[np.ndarray, int, int, bool]:
    """Return (flat storage, row stride, col stride, column major) for a.

    Column-major and row-major matrices are used in place; anything else is
    copied to column-major first.
    """
    m, k = a.shape
    if not (a.flags.f_contiguous or a.flags.c_contiguous):
        a = np.asfortranarray(a)
    if a.flags.f_contiguous:
        return a.ravel(order='F'), 1, m, True
    return a.ravel(order='C'), k, 1, False


def _ensure_contiguous(arr: np.ndarray) -> np.ndarray:
    """Ensure array is C-contiguous."""
    if not arr.flags.c_contiguous:
        return np.ascontiguousarray(arr)
    return arr


def _launch(kernel, operation_name: str, output_length: int, block_width: int,
            d_a: DeviceBuffer, d_x: DeviceBuffer, d_y: DeviceBuffer,
            m: int, k: int, row_stride: int, col_stride: int) -> None:
    config = launch_config_for(output_length, block_width)
    logger.debug("%s: launching grid=%s block=%s", operation_name, config.grid_dim, config.block_dim)
    try:
        kernel[config.grid_dim, config.block_dim](
            d_a.array, d_x.array, d_y.array, m, k, row_stride, col_stride)
        cuda.synchronize()
    except CudaAPIError as e:
        raise KernelLaunchFailureError(f"{operation_name}: kernel execution failed", str(e)) from e


class _MatVecBackend:
    """Shared copy-in / compute / copy-out sequence."""

    name = None

    def __init__(self, buffers: Optional[DeviceBufferManager] = None):
        self.buffers = buffers if buffers is not None else default_buffer_manager()

    def _check_available(self) -> None:
        pass

    def _compute(self, operation_name: str, d_a: DeviceBuffer, d_x: DeviceBuffer, d_y: DeviceBuffer,
                 m: int, k: int, row_stride: int, col_stride: int, column_major: bool) -> None:
        raise NotImplementedError

    def multiply(self, a: np.ndarray, x: np.ndarray,
                 operation_name: Optional[str] = None,
                 expected_dtype: Optional[np.dtype] = None) -> np.ndarray:
        operation_name = operation_name or f"matvec_{self.name}"
        _validate_matvec_inputs(a, x, operation_name, expected_dtype)
        self._check_available()

        m, k = a.shape
        storage, row_stride, col_stride, column_major = _matrix_storage(a)
        x_contig = _ensure_contiguous(x)
        y = np.empty(m, dtype=a.dtype)

        with self.buffers.scope() as scope:
            d_a = scope.to_device(storage)
            d_x = scope.to_device(x_contig)
            d_y = scope.allocate(y.nbytes, y.dtype)
            self._compute(operation_name, d_a, d_x, d_y, m, k, row_stride, col_stride, column_major)
            self.buffers.copy_out(y, d_y)

        return y

    __call__ = multiply


class NaiveMatVec(_MatVecBackend):
    """Matrix-vector product with one thread per output element."""

    name = 'naive'

    def _compute(self, operation_name, d_a, d_x, d_y, m, k, row_stride, col_stride, column_major):
        kernel = get_kernel('naive', d_a.dtype)
        _launch(kernel, operation_name, m, DEFAULT_BLOCK_WIDTH,
                d_a, d_x, d_y, m, k, row_stride, col_stride)


class TiledMatVec(_MatVecBackend):
    """Matrix-vector product staging the vector through shared memory.

    Args:
        tile_width: Threads per block and vector elements per shared tile
        buffers: Device buffer manager, defaults to the process-wide one
    """

    name = 'tiled'

    def __init__(self, tile_width: int, buffers: Optional[DeviceBufferManager] = None):
        super().__init__(buffers)
        self.tile_width = validate_tile_width(tile_width)

    def _compute(self, operation_name, d_a, d_x, d_y, m, k, row_stride, col_stride, column_major):
        kernel = get_kernel('tiled', d_a.dtype, self.tile_width)
        _launch(kernel, operation_name, m, self.tile_width,
                d_a, d_x, d_y, m, k, row_stride, col_stride)


class CublasMatVec(_MatVecBackend):
    """Matrix-vector product through cuBLAS gemv."""

    name = 'cublas'

    def _check_available(self) -> None:
        _cublas_backend.load_cublas()

    def _compute(self, operation_name, d_a, d_x, d_y, m, k, row_stride, col_stride, column_major):
        _cublas_backend.gemv(d_a, d_x, d_y, m, k, column_major)


def make_backend(backend: str = 'naive', tile_width: Optional[int] = None,
                 buffers: Optional[DeviceBufferManager] = None) -> _MatVecBackend:
    """Construct a backend object by name.

    tile_width is required for 'tiled' and rejected for the other backends.
    """
    if backend in BACKENDS and backend != 'tiled' and tile_width is not None:
        raise ValueError(f"make_backend: the {backend} backend does not take a tile_width")
    if backend == 'naive':
        return NaiveMatVec(buffers)
    elif backend == 'tiled':
        if tile_width is None:
            raise ValueError("make_backend: the tiled backend requires a tile_width")
        return TiledMatVec(tile_width, buffers)
    elif backend == 'cublas':
        return CublasMatVec(buffers)
    raise ValueError(f"Unknown backend {backend!r}, expected one of {', '.join(BACKENDS)}")

# Low-level type-specific functions for matvec_naive

def matvec_naive_float32(a: NDArray[np.float32], x: NDArray[np.float32]) -> NDArray[np.float32]:
    """Matrix-vector product using the naive kernel for float32 arrays."""
    return NaiveMatVec().multiply(a, x, "matvec_naive_float32", np.float32)

def matvec_naive_float64(a: NDArray[np.float64], x: NDArray[np.float64]) -> NDArray[np.float64]:
    """Matrix-vector product using the naive kernel for float64 arrays."""
    return NaiveMatVec().multiply(a, x, "matvec_naive_float64", np.float64)

# Low-level type-specific functions for matvec_tiled

def matvec_tiled_float32(a: NDArray[np.float32], x: NDArray[np.float32], tile_width: int) -> NDArray[np.float32]:
    """Matrix-vector product using the shared memory tiled kernel for float32 arrays."""
    return TiledMatVec(tile_width).multiply(a, x, "matvec_tiled_float32", np.float32)

def matvec_tiled_float64(a: NDArray[np.float64], x: NDArray[np.float64], tile_width: int) -> NDArray[np.float64]:
    """Matrix-vector product using the shared memory tiled kernel for float64 arrays."""
    return TiledMatVec(tile_width).multiply(a, x, "matvec_tiled_float64", np.float64)

# Low-level type-specific functions for matvec_cublas

def matvec_cublas_float32(a: NDArray[np.float32], x: NDArray[np.float32]) -> NDArray[np.float32]:
    """Matrix-vector product using cuBLAS sgemv for float32 arrays."""
    return CublasMatVec().multiply(a, x, "matvec_cublas_float32", np.float32)

def matvec_cublas_float64(a: NDArray[np.float64], x: NDArray[np.float64]) -> NDArray[np.float64]:
    """Matrix-vector product using cuBLAS dgemv for float64 arrays."""
    return CublasMatVec().multiply(a, x, "matvec_cublas_float64", np.float64)

# High-level dispatch functions

@overload
def matvec_naive(a: NDArray[T], x: NDArray[T]) -> NDArray[T]: ...

def matvec_naive(a: Union[NDArray[T], np.ndarray], x: Union[NDArray[T], np.ndarray]) -> Union[NDArray[T], np.ndarray]:
    """Matrix-vector product using the naive kernel with automatic type dispatch.

    Args:
        a: Input matrix A of shape (m, k)
        x: Input vector x of shape (k,)

    Returns:
        Result vector y of shape (m,) where y = A @ x

    Note:
        This function supports only float32 and float64 types.
    """
    return NaiveMatVec().multiply(a, x, "matvec_naive")

@overload
def matvec_tiled(a: NDArray[T], x: NDArray[T], tile_width: int) -> NDArray[T]: ...

def matvec_tiled(a: Union[NDArray[T], np.ndarray], x: Union[NDArray[T], np.ndarray], tile_width: int) -> Union[NDArray[T], np.ndarray]:
    """Matrix-vector product using the shared memory tiled kernel with automatic type dispatch.

    Args:
        a: Input matrix A of shape (m, k)
        x: Input vector x of shape (k,)
        tile_width: Threads per block and vector elements staged per tile

    Returns:
        Result vector y of shape (m,) where y = A @ x

    Note:
        This function supports only float32 and float64 types.
    """
    return TiledMatVec(tile_width).multiply(a, x, "matvec_tiled")

@overload
def matvec_cublas(a: NDArray[T], x: NDArray[T]) -> NDArray[T]: ...

def matvec_cublas(a: Union[NDArray[T], np.ndarray], x: Union[NDArray[T], np.ndarray]) -> Union[NDArray[T], np.ndarray]:
    """Matrix-vector product using cuBLAS with automatic type dispatch.

    Args:
        a: Input matrix A of shape (m, k)
        x: Input vector x of shape (k,)

    Returns:
        Result vector y of shape (m,) where y = A @ x

    Note:
        This function supports only float32 and float64 types and needs CuPy.
    """
    return CublasMatVec().multiply(a, x, "matvec_cublas")

def matvec(a: np.ndarray, x: np.ndarray, backend: str = 'naive',
           tile_width: Optional[int] = None,
           buffers: Optional[DeviceBufferManager] = None) -> np.ndarray:
    """Matrix-vector product on the named backend ('naive', 'tiled' or 'cublas')."""
    return make_backend(backend, tile_width, buffers).multiply(a, x, f"matvec[{backend}]")

# Export all functions
__all__ = [
    # Backends
    'BACKENDS',
    'NaiveMatVec',
    'TiledMatVec',
    'CublasMatVec',
    'make_backend',

    # High-level dispatch functions
    'matvec',
    'matvec_naive',
    'matvec_tiled',
    'matvec_cublas',

    # Low-level type-specific functions
    'matvec_naive_float32',
    'matvec_naive_float64',
    'matvec_tiled_float32',
    'matvec_tiled_float64',
    'matvec_cublas_float32',
    'matvec_cublas_float64',
]
