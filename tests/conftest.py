"""
Pytest configuration and fixtures for py-gpu-matvec test suite.

This module provides common fixtures, test data, and configuration
for testing the matrix-vector backends. Kernels run on the numba CUDA
simulator unless NUMBA_ENABLE_CUDASIM is already set in the environment.
"""

import os

os.environ.setdefault("NUMBA_ENABLE_CUDASIM", "1")

import pytest
import numpy as np
from numba import config as numba_config

import py_gpu_matvec
from py_gpu_matvec import _cublas_backend

ON_SIMULATOR = bool(numba_config.ENABLE_CUDASIM)

try:
    _cublas_backend.load_cublas()
    CUBLAS_AVAILABLE = True
except py_gpu_matvec.BackendUnavailableError:
    CUBLAS_AVAILABLE = False

requires_hardware = pytest.mark.skipif(ON_SIMULATOR, reason="needs a CUDA device (simulator active)")
requires_cublas = pytest.mark.skipif(not CUBLAS_AVAILABLE, reason="cuBLAS backend not available")

# Supported dtypes
FLOAT_DTYPES = [np.float32, np.float64]

# Unsupported dtypes
REJECTED_DTYPES = [np.int8, np.int32, np.int64, np.uint32, np.float16, np.complex64]

# Tile widths exercised by the tiled kernel
TILE_WIDTHS = [1, 7, 32]

# (m, k) problem sizes: tile aligned, partial tiles, single row/column
TEST_M_K = [
    (1, 1),
    (5, 3),
    (16, 16),
    (33, 17),
    (64, 100),
    (100, 33),
]

@pytest.fixture(scope="session")
def on_simulator():
    return ON_SIMULATOR

@pytest.fixture(params=FLOAT_DTYPES, ids=lambda x: x.__name__)
def dtype_float(request):
    """Fixture providing floating point dtypes."""
    return request.param

@pytest.fixture(params=TILE_WIDTHS, ids=lambda w: f"tile{w}")
def tile_width(request):
    return request.param

@pytest.fixture(params=TEST_M_K, ids=lambda mk: f"{mk[0]}x{mk[1]}")
def test_shape_pair(request):
    """Fixture that provides each (m, k) pair from TEST_M_K."""
    return request.param

@pytest.fixture(params=["F", "C"], ids=["col_major", "row_major"])
def matrix_order(request):
    return request.param

@pytest.fixture
def test_input_vector_random():
    """Generate random vector"""
    def _generate(dtype, n, seed=42):
        generator = np.random.default_rng(seed)
        return generator.uniform(low=0, high=1, size=n).astype(dtype)
    return _generate

@pytest.fixture
def test_input_matrix_random():
    """Generate random matrix in the requested memory order"""
    def _generate(dtype, nrows, ncols, order="F", seed=43):
        generator = np.random.default_rng(seed)
        mat = generator.uniform(low=0, high=1, size=(nrows, ncols)).astype(dtype)
        return np.asarray(mat, order=order)
    return _generate

@pytest.fixture
def buffer_manager():
    """A fresh manager so each test sees its own allocation counters."""
    return py_gpu_matvec.DeviceBufferManager()

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "performance: marks tests as performance benchmarks"
    )
    config.addinivalue_line(
        "markers", "error_handling: marks error handling tests"
    )

def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        # Mark integration tests
        if "integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)

        # Mark error handling tests
        if "error_handling" in item.nodeid:
            item.add_marker(pytest.mark.error_handling)

        # Mark performance tests
        if "performance" in item.nodeid or "benchmark" in item.nodeid:
            item.add_marker(pytest.mark.performance)
            item.add_marker(pytest.mark.slow)
