#!/usr/bin/env python3
"""
Example: Matrix-Vector Product Tiled Kernel

This example demonstrates how to use the matvec_tiled kernel, which stages
the vector through shared memory one tile at a time, and compares it with
the naive kernel across tile widths.
"""

import numpy as np
import time
import py_gpu_matvec

def basic_usage():
    """Basic usage example with the tiled kernel."""
    print("=== Basic Usage: matvec_tiled ===")

    # k is not a multiple of the tile width, so the last tile is partial
    m, k, tile_width = 10000, 1000, 32
    a = np.asfortranarray(np.random.randn(m, k).astype(np.float32))
    x = np.random.randn(k).astype(np.float32)

    print(f"Matrix A: {a.shape} ({a.dtype})")
    print(f"Tiles per row: {py_gpu_matvec.ceil_div(k, tile_width)}")

    start_time = time.time()
    result_gpu = py_gpu_matvec.matvec_tiled(a, x, tile_width)
    gpu_time = time.time() - start_time

    result_numpy = np.dot(a, x)
    max_error = np.max(np.abs(result_gpu - result_numpy))

    print(f"Max error vs NumPy: {max_error:.2e}")
    print(f"GPU time (first call includes compilation): {gpu_time*1000:.2f} ms")
    print()

def compare_tile_widths():
    """Compare naive vs tiled at several tile widths."""
    print("=== Algorithm Comparison: Naive vs Tiled ===")

    m, k = 8192, 2048
    a = np.asfortranarray(np.random.randn(m, k).astype(np.float32))
    x = np.random.randn(k).astype(np.float32)

    # Warm up both kernels
    result_naive = py_gpu_matvec.matvec_naive(a, x)
    start_time = time.time()
    result_naive = py_gpu_matvec.matvec_naive(a, x)
    naive_time = time.time() - start_time
    print(f"  Naive:          {naive_time*1000:6.2f}ms")

    for tile_width in [16, 32, 64, 128, 256]:
        op = py_gpu_matvec.TiledMatVec(tile_width)
        op(a, x)

        start_time = time.time()
        result_tiled = op(a, x)
        tiled_time = time.time() - start_time

        match = np.allclose(result_naive, result_tiled, rtol=1e-5)
        print(f"  Tiled (w={tile_width:>3}): {tiled_time*1000:6.2f}ms "
              f"(vs naive: {naive_time / tiled_time:5.2f}x, match: {match})")
    print()

def invalid_tile_widths():
    """Tile widths outside [1, MAX_THREADS_PER_BLOCK] are rejected up front."""
    print("=== Invalid Tile Widths ===")

    for tile_width in [0, -8, py_gpu_matvec.MAX_THREADS_PER_BLOCK + 1]:
        try:
            py_gpu_matvec.TiledMatVec(tile_width)
        except py_gpu_matvec.InvalidTileWidthError as e:
            print(f"  {tile_width}: {e}")
    print()

def main():
    """Run all examples."""
    print("Matrix-Vector Product Tiled Kernel Examples")
    print("=" * 50)

    try:
        basic_usage()
        compare_tile_widths()
        invalid_tile_widths()

        print("✅ All examples completed successfully!")

    except py_gpu_matvec.MatVecError as e:
        print(f"❌ Error: {e}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
