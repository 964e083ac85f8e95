#!/usr/bin/env python3
"""
Example: Matrix-Vector Product Naive Kernel

This example demonstrates how to use the matvec_naive kernel,
which computes each output element with one thread reading A and x
from global memory.
"""

import numpy as np
import time
import py_gpu_matvec

def basic_usage():
    """Basic usage example with the naive kernel."""
    print("=== Basic Usage: matvec_naive ===")

    m, k = 4096, 1024
    a = np.asfortranarray(np.random.randn(m, k).astype(np.float32))
    x = np.random.randn(k).astype(np.float32)

    print(f"Matrix A: {a.shape} ({a.dtype}, {'column' if a.flags.f_contiguous else 'row'}-major)")
    print(f"Vector x: {x.shape} ({x.dtype})")

    # GPU computation
    start_time = time.time()
    result_gpu = py_gpu_matvec.matvec_naive(a, x)
    gpu_time = time.time() - start_time

    # NumPy reference
    start_time = time.time()
    result_numpy = np.dot(a, x)
    numpy_time = time.time() - start_time

    max_error = np.max(np.abs(result_gpu - result_numpy))
    print(f"Result shape: {result_gpu.shape}")
    print(f"Max error vs NumPy: {max_error:.2e}")
    print(f"GPU time (first call includes compilation): {gpu_time*1000:.2f} ms")
    print(f"NumPy time: {numpy_time*1000:.2f} ms")
    print()

def known_values():
    """A 16x16 matrix of ones times a vector of ones."""
    print("=== Known Values ===")

    a = np.ones((16, 16), dtype=np.float64)
    x = np.ones(16, dtype=np.float64)
    result = py_gpu_matvec.matvec_naive(a, x)

    print(f"ones(16, 16) @ ones(16) = {result}")
    print(f"All equal to 16: {np.allclose(result, 16.0)}")
    print()

def contract_errors():
    """Shape and emptiness are checked before the device is touched."""
    print("=== Contract Errors ===")

    cases = [
        ("shape mismatch", np.ones((10, 8), dtype=np.float32), np.ones(5, dtype=np.float32)),
        ("empty matrix", np.ones((0, 5), dtype=np.float32), np.ones(5, dtype=np.float32)),
        ("both empty", np.ones((0, 0), dtype=np.float32), np.ones(0, dtype=np.float32)),
        ("int32", np.ones((4, 4), dtype=np.int32), np.ones(4, dtype=np.int32)),
    ]

    manager = py_gpu_matvec.DeviceBufferManager()
    for description, a, x in cases:
        try:
            py_gpu_matvec.NaiveMatVec(manager).multiply(a, x)
            print(f"  {description}: unexpectedly succeeded")
        except ValueError as e:
            print(f"  {description}: {type(e).__name__}: {e}")

    print(f"Device allocations made: {manager.allocations}")
    print()

def low_level_functions():
    """Example using low-level type-specific functions."""
    print("=== Low-Level Type-Specific Functions ===")

    a = np.random.randn(64, 48).astype(np.float64)
    x = np.random.randn(48).astype(np.float64)

    result_high = py_gpu_matvec.matvec_naive(a, x)
    result_low = py_gpu_matvec.matvec_naive_float64(a, x)

    print(f"  High-level vs low-level match: {np.array_equal(result_high, result_low)}")
    print()

def main():
    """Run all examples."""
    print("Matrix-Vector Product Naive Kernel Examples")
    print("=" * 50)

    try:
        basic_usage()
        known_values()
        contract_errors()
        low_level_functions()

        print("✅ All examples completed successfully!")

    except py_gpu_matvec.MatVecError as e:
        print(f"❌ Error: {e}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
