#!/usr/bin/env python3
"""
Performance benchmark suite for py-gpu-matvec package
Compares the naive, tiled and cuBLAS backends against NumPy across problem sizes
"""

import argparse
import logging
import numpy as np
import time
import sys
from typing import Callable, Dict, List

import py_gpu_matvec

logger = logging.getLogger("benchmark_performance")

# (m, k) problem sizes
DEFAULT_SIZES = [
    (1000, 1000),
    (4096, 1024),
    (10000, 1000),
    (60000, 1000),
    (1000, 60000),
]

def time_function(func: Callable, *args, warmup_runs: int = 2, timing_runs: int = 5):
    """Time a function with warmup and multiple runs"""
    # Warmup runs (also compiles the kernels)
    for _ in range(warmup_runs):
        func(*args)

    # Timing runs
    times = []
    result = None
    for _ in range(timing_runs):
        start = time.perf_counter()
        result = func(*args)
        times.append(time.perf_counter() - start)

    return np.median(times), result

def available_backends(tile_width: int) -> Dict[str, Callable]:
    backends = {
        'naive': py_gpu_matvec.matvec_naive,
        'tiled': lambda a, x: py_gpu_matvec.matvec_tiled(a, x, tile_width),
    }
    try:
        py_gpu_matvec._cublas_backend.load_cublas()
        backends['cublas'] = py_gpu_matvec.matvec_cublas
    except py_gpu_matvec.BackendUnavailableError as e:
        logger.warning("Skipping cuBLAS backend: %s", e)
    return backends

def benchmark_matvec(dtype, tile_width: int, sizes, timing_runs: int) -> List[Dict]:
    """Benchmark y = A @ x across problem sizes"""
    print(f"\n📊 MATRIX-VECTOR PRODUCT BENCHMARK ({np.dtype(dtype)}, tile width {tile_width})")
    print("=" * 60)

    backends = available_backends(tile_width)
    rng = np.random.default_rng(42)
    results = []

    for m, k in sizes:
        print(f"\n  Testing ({m}x{k}) @ ({k},):")

        a = np.asfortranarray(rng.uniform(size=(m, k)).astype(dtype))
        x = rng.uniform(size=k).astype(dtype)

        # CPU benchmark (NumPy)
        cpu_time, cpu_result = time_function(np.dot, a, x, timing_runs=timing_runs)
        print(f"    CPU (NumPy):     {cpu_time*1000:8.2f}ms")

        row = {'size': f"{m}x{k}", 'cpu_time': cpu_time}
        for name, func in backends.items():
            gpu_time, gpu_result = time_function(func, a, x, timing_runs=timing_runs)
            speedup = cpu_time / gpu_time if gpu_time > 0 else 0
            error = np.max(np.abs(cpu_result - gpu_result))
            print(f"    GPU ({name}):{' ' * (8 - len(name))}{gpu_time*1000:8.2f}ms "
                  f"(speedup: {speedup:5.2f}x, error: {error:.2e})")
            row[f'{name}_time'] = gpu_time
            row[f'{name}_speedup'] = speedup
            row[f'{name}_error'] = error

        results.append(row)

    return results

def summarize_results(results: List[Dict]):
    """Summarize benchmark results"""
    print("\n🎯 PERFORMANCE BENCHMARK SUMMARY")
    print("=" * 60)

    for name in py_gpu_matvec.BACKENDS:
        speedups = [r[f'{name}_speedup'] for r in results if f'{name}_speedup' in r]
        if speedups:
            print(f"  Average {name} speedup: {np.mean(speedups):.2f}x")

    tiled_vs_naive = [r['naive_time'] / r['tiled_time'] for r in results if r.get('tiled_time')]
    if tiled_vs_naive:
        print(f"  Average tiled vs naive: {np.mean(tiled_vs_naive):.2f}x")

def main():
    """Run performance benchmark suite"""
    parser = argparse.ArgumentParser(description="Benchmark py-gpu-matvec backends against NumPy")
    parser.add_argument('--dtype', choices=['float32', 'float64'], default='float32',
                        help='Element type')
    parser.add_argument('--tile-width', type=int, default=py_gpu_matvec.WARP_SIZE,
                        help='Tile width for the tiled backend')
    parser.add_argument('--runs', type=int, default=5,
                        help='Timing runs per measurement')
    parser.add_argument('--size', action='append', metavar='MxK',
                        help='Problem size, may be repeated (default: a built-in set)')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log allocations, frees and kernel launches')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    try:
        py_gpu_matvec.validate_tile_width(args.tile_width)
    except py_gpu_matvec.InvalidTileWidthError as e:
        parser.error(str(e))

    sizes = DEFAULT_SIZES
    if args.size:
        try:
            sizes = [tuple(int(d) for d in s.lower().split('x')) for s in args.size]
        except ValueError:
            parser.error(f"Sizes must look like 60000x1000, got {args.size}")

    print("⚡ PY-GPU-MATVEC PERFORMANCE BENCHMARK SUITE")
    print("=" * 60)
    print("(Timing includes data transfer overhead)")

    results = benchmark_matvec(np.dtype(args.dtype), args.tile_width, sizes, args.runs)
    summarize_results(results)

    print(f"\n🏁 BENCHMARK COMPLETE")
    print("=" * 60)
    print("📝 Note: GPU times include device allocation and host/device copies")

    return 0

if __name__ == "__main__":
    sys.exit(main())
