# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/_kernels.py

"""
CUDA kernels for matrix-vector multiplication

Both kernels compute y = A @ x for an m x k matrix A stored in one flat device
buffer. Element (row, col) of A lives at a[row * row_stride + col * col_stride],
so column-major storage is (1, m) and row-major storage is (k, 1).

Kernels are generated per element type (and per tile width for the tiled
kernel) because numba needs the accumulator type and the shared array shape
as compile-time constants.
"""

from numba import cuda


def make_naive_kernel(element_type):
    """One thread per output row, each reading a full row of A from global memory."""

    @cuda.jit
    def matvec_naive_kernel(a, x, y, m, k, row_stride, col_stride):
        row, col = cuda.grid(2)
        if row >= m or col >= 1:
            return

        acc = element_type(0)
        for j in range(k):
            acc += a[row * row_stride + j * col_stride] * x[j]
        y[row] = acc

    return matvec_naive_kernel


def make_tiled_kernel(element_type, tile_width):
    """One block of tile_width threads per tile_width output rows.

    The vector is walked in tiles of tile_width elements. Each thread loads
    one element of the current tile into shared memory, and after the barrier
    every thread with a valid row consumes the whole tile. Matrix reads stay
    in global memory: with column-major storage consecutive threads read
    consecutive addresses.
    """

    @cuda.jit
    def matvec_tiled_kernel(a, x, y, m, k, row_stride, col_stride):
        tile = cuda.shared.array(shape=tile_width, dtype=element_type)

        tx = cuda.threadIdx.x
        row = cuda.blockIdx.x * tile_width + tx
        num_tiles = (k + tile_width - 1) // tile_width

        acc = element_type(0)
        for t in range(num_tiles):
            base = t * tile_width

            # Slots past the end of x are zeroed
            col = base + tx
            if col < k:
                tile[tx] = x[col]
            else:
                tile[tx] = element_type(0)
            cuda.syncthreads()

            if row < m:
                limit = min(tile_width, k - base)
                for j in range(limit):
                    acc += a[row * row_stride + (base + j) * col_stride] * tile[j]

            # Nobody overwrites the tile until every thread is done with it
            cuda.syncthreads()

        if row < m:
            y[row] = acc

    return matvec_tiled_kernel


__all__ = [
    'make_naive_kernel',
    'make_tiled_kernel',
]
