"""
Test utilities for py-gpu-matvec test suite.

Common functions for testing, validation, and fault injection.
"""

import numpy as np
from typing import Callable

import py_gpu_matvec


def assert_array_close(actual, expected, dtype, reduction_length=1):
    """
    Assert that two vectors are close with tolerances for the dtype.

    The relative tolerance grows with the reduction length, since a
    sequential sum of k terms can drift by about k ulps.
    """
    assert actual.shape == expected.shape, f"Shapes do not match: {actual.shape} != {expected.shape}"
    assert actual.dtype == expected.dtype, f"Dtypes do not match: {actual.dtype} != {expected.dtype}"
    eps = np.finfo(dtype).eps
    rtol = max(16, reduction_length) * eps
    np.testing.assert_allclose(actual, expected, rtol=rtol, atol=rtol,
                               err_msg=f"Float arrays not close for dtype {np.dtype(dtype)}")

def validate_basic_properties(result, expected_shape, expected_dtype):
    """
    Validate basic properties of a result array.
    """
    assert isinstance(result, np.ndarray), f"Result should be numpy array, got {type(result)}"
    assert result.shape == expected_shape, f"Wrong shape: expected {expected_shape}, got {result.shape}"
    assert result.dtype == expected_dtype, f"Wrong dtype: expected {expected_dtype}, got {result.dtype}"

def validate_function_error_cases(func: Callable, test_cases: list):
    """
    Test that a function properly raises errors for invalid inputs.

    Args:
        func: The function to test
        test_cases: List of (args, kwargs, expected_exception_type, description)
    """
    for args, kwargs, expected_exception, description in test_cases:
        try:
            func(*args, **kwargs)
            raise AssertionError(f"Expected {expected_exception.__name__} for {description}, but function succeeded")
        except expected_exception:
            pass  # Expected behavior
        except Exception as e:
            raise AssertionError(f"Expected {expected_exception.__name__} for {description}, got {type(e).__name__}: {e}")

def get_numpy_reference_matvec(a, x):
    """NumPy reference for matrix-vector multiplication, accumulated in float64."""
    return np.dot(a.astype(np.float64), x.astype(np.float64)).astype(a.dtype)


class FailingBufferManager(py_gpu_matvec.DeviceBufferManager):
    """Buffer manager that raises on the n-th call of one operation.

    Args:
        operation: 'allocate', 'copy_in' or 'copy_out'
        fail_on: 1-based call number that fails
    """

    _ERRORS = {
        'allocate': py_gpu_matvec.OutOfDeviceMemoryError,
        'copy_in': py_gpu_matvec.TransferFailureError,
        'copy_out': py_gpu_matvec.TransferFailureError,
    }

    def __init__(self, operation: str, fail_on: int = 1):
        super().__init__()
        self.operation = operation
        self.fail_on = fail_on
        self.calls = 0

    def _maybe_fail(self, operation):
        if operation != self.operation:
            return
        self.calls += 1
        if self.calls == self.fail_on:
            raise self._ERRORS[operation](f"injected {operation} failure", "CUDA_ERROR_INJECTED")

    def allocate(self, nbytes, dtype):
        self._maybe_fail('allocate')
        return super().allocate(nbytes, dtype)

    def copy_in(self, buffer, host):
        self._maybe_fail('copy_in')
        super().copy_in(buffer, host)

    def copy_out(self, host, buffer):
        self._maybe_fail('copy_out')
        super().copy_out(host, buffer)


class ErrorCaseBuilder:
    """Helper class to build error test cases systematically."""

    def __init__(self):
        self.cases = []

    def add_shape_mismatch(self, func_name: str, *arrays):
        """Add test case for matrix columns != vector length."""
        self.cases.append((arrays, {}, py_gpu_matvec.ShapeMismatchError, f"{func_name} shape mismatch"))
        return self

    def add_empty_operand(self, func_name: str, *arrays):
        """Add test case for a zero-extent operand."""
        self.cases.append((arrays, {}, py_gpu_matvec.EmptyOperandError, f"{func_name} empty operand"))
        return self

    def add_dtype_mismatch(self, func_name: str, *arrays_with_different_dtypes):
        """Add test case for dtype mismatch."""
        self.cases.append((arrays_with_different_dtypes, {}, ValueError, f"{func_name} dtype mismatch"))
        return self

    def add_dimension_error(self, func_name: str, *arrays_with_wrong_dims):
        """Add test case for wrong array ranks."""
        self.cases.append((arrays_with_wrong_dims, {}, ValueError, f"{func_name} dimension error"))
        return self

    def build(self):
        """Return the list of test cases."""
        return self.cases
