#!/usr/bin/env python3
"""
Example: Matrix-Vector Product with cuBLAS

This example demonstrates the cuBLAS backend (requires CuPy), the row-major
path that avoids a transpose, and the vector norm helpers.
"""

import numpy as np
import py_gpu_matvec

def row_and_column_major():
    """Both memory orders give the same product."""
    print("=== Row-major vs Column-major ===")

    a = np.random.randn(60000, 1000).astype(np.float32)
    x = np.random.randn(1000).astype(np.float32)

    row_major = py_gpu_matvec.matvec_cublas(np.ascontiguousarray(a), x)
    col_major = py_gpu_matvec.matvec_cublas(np.asfortranarray(a), x)
    reference = np.dot(a.astype(np.float64), x.astype(np.float64))

    print(f"  Row-major max error:    {np.max(np.abs(row_major - reference)):.2e}")
    print(f"  Column-major max error: {np.max(np.abs(col_major - reference)):.2e}")
    print()

def backend_selection():
    """Choose the backend by name."""
    print("=== Backend Selection ===")

    a = np.random.randn(2000, 500)
    x = np.random.randn(500)

    for backend in py_gpu_matvec.BACKENDS:
        tile_width = 32 if backend == 'tiled' else None
        result = py_gpu_matvec.matvec(a, x, backend=backend, tile_width=tile_width)
        print(f"  {backend:>6}: max error {np.max(np.abs(result - a @ x)):.2e}")
    print()

def vector_norms():
    """Euclidean norm and squared norm through cuBLAS."""
    print("=== Vector Norms ===")

    x = np.random.randn(100000)
    print(f"  norm:         {py_gpu_matvec.vector_norm_cublas(x):.6f} (NumPy {np.linalg.norm(x):.6f})")
    print(f"  squared norm: {py_gpu_matvec.vector_squared_norm_cublas(x):.6f} (NumPy {x @ x:.6f})")
    print()

def main():
    """Run all examples."""
    print("Matrix-Vector Product cuBLAS Examples")
    print("=" * 50)

    try:
        row_and_column_major()
        backend_selection()
        vector_norms()

        print("✅ All examples completed successfully!")

    except py_gpu_matvec.BackendUnavailableError as e:
        print(f"❌ cuBLAS backend unavailable: {e}")
        return 1

    return 0

if __name__ == "__main__":
    exit(main())
