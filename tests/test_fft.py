"""
Tests for the Fourier transform module.
"""

import os
import sys

import numpy as np
import pandas as pd
import pytest
from scipy import fft as sp_fft

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from columnml.components.thread_pool import ThreadPool
from columnml.math.fft import FFTVisitor, bit_reverse_permutation, fft, ifft
from columnml.math.visitor import visit


class TestKernels:
    """Tests for the transform kernels against scipy."""

    def test_bit_reverse_permutation(self):
        """Test bit-reversed addressing for n = 8."""
        assert bit_reverse_permutation(8).tolist() == [0, 4, 2, 6, 1, 5, 3, 7]

    @pytest.mark.parametrize('n', [1, 2, 8, 64])
    def test_radix2_vs_scipy(self, n):
        """Test power-of-two lengths."""
        rng = np.random.RandomState(n)
        x = rng.randn(n) + 1j * rng.randn(n)

        assert np.allclose(fft(x), sp_fft.fft(x))

    @pytest.mark.parametrize('n', [3, 5, 10, 17, 100])
    def test_bluestein_vs_scipy(self, n):
        """Test other lengths."""
        rng = np.random.RandomState(n)
        x = rng.randn(n)

        assert np.allclose(fft(x), sp_fft.fft(x))

    @pytest.mark.parametrize('n', [8, 10])
    def test_ifft_vs_scipy(self, n):
        """Test the inverse transform."""
        rng = np.random.RandomState(n)
        x = rng.randn(n) + 1j * rng.randn(n)

        assert np.allclose(ifft(x), sp_fft.ifft(x))

    def test_known_transform(self):
        """Test a constant signal concentrates in the first bin."""
        assert np.allclose(fft([1.0, 1.0, 1.0, 1.0]), [4.0, 0.0, 0.0, 0.0])

    def test_impulse(self):
        """Test an impulse has a flat spectrum."""
        x = np.zeros(10)
        x[0] = 1.0

        assert np.allclose(fft(x), np.ones(10))


class TestProperties:
    """Tests for algebraic properties of the transform."""

    @pytest.mark.parametrize('n', [8, 10])
    def test_round_trip(self, n):
        """Test inverse(forward(x)) reconstructs x."""
        rng = np.random.RandomState(42)
        x = rng.randn(n)

        assert np.allclose(ifft(fft(x)), x, rtol=1e-9, atol=1e-12)

    @pytest.mark.parametrize('n', [8, 10])
    def test_linearity(self, n):
        """Test forward(a*x + b*y) = a*forward(x) + b*forward(y)."""
        rng = np.random.RandomState(7)
        x = rng.randn(n)
        y = rng.randn(n)
        a, b = 2.5, -0.75

        assert np.allclose(fft(a * x + b * y), a * fft(x) + b * fft(y))

    @pytest.mark.parametrize('n', [0, 1, 7, 8, 12])
    def test_output_length(self, n):
        """Test the output length always equals the input length."""
        assert len(fft(np.ones(n))) == n
        assert len(ifft(np.ones(n))) == n

    def test_empty(self):
        """Test an empty column gives an empty spectrum."""
        result = fft([])

        assert len(result) == 0
        assert result.dtype == complex


class TestFFTVisitor:
    """Tests for the FFTVisitor class."""

    def test_forward(self):
        """Test the forward visitor."""
        x = np.arange(10, dtype=float)

        visitor = visit(FFTVisitor(), range(10), x)

        assert np.allclose(visitor.get_result(), sp_fft.fft(x))

    def test_inverse(self):
        """Test the inverse visitor undoes the forward one."""
        x = np.arange(8, dtype=float)
        spectrum = visit(FFTVisitor(), range(8), x).get_result()

        visitor = visit(FFTVisitor(inverse=True), range(8), spectrum)

        assert np.allclose(visitor.get_result(), x)

    def test_series_input(self):
        """Test pandas Series columns."""
        x = pd.Series([1.0, 2.0, 3.0, 4.0, 5.0])

        visitor = visit(FFTVisitor(), x.index, x)

        assert np.allclose(visitor.get_result(), sp_fft.fft(x.to_numpy()))

    def test_magnitude_and_angle(self):
        """Test magnitude and phase of the spectrum."""
        x = np.array([0.0, 1.0, 0.0, -1.0])
        visitor = visit(FFTVisitor(), range(4), x)
        expected = sp_fft.fft(x)

        assert np.allclose(visitor.get_magnitude(), np.abs(expected))
        assert np.allclose(visitor.get_angle(), np.angle(expected))

    def test_magnitude_cached(self):
        """Test magnitude is computed once until reset."""
        visitor = visit(FFTVisitor(), range(4), [1.0, 2.0, 3.0, 4.0])

        assert visitor.get_magnitude() is visitor.get_magnitude()
        assert visitor.get_angle() is visitor.get_angle()

        visitor.reset()

        assert len(visitor.get_result()) == 0
        assert len(visitor.get_magnitude()) == 0

    def test_trimmed_to_index(self):
        """Test the column is cut to the index length."""
        x = np.arange(12, dtype=float)

        visitor = visit(FFTVisitor(), range(10), x)

        assert np.allclose(visitor.get_result(), sp_fft.fft(x[:10]))

    def test_parallel_matches_sequential(self, parallel):
        """Test the pooled code path gives the same result."""
        rng = np.random.RandomState(3)
        x = rng.randn(300)

        visitor = visit(FFTVisitor(), range(300), x)

        assert np.allclose(visitor.get_result(), sp_fft.fft(x))
        assert np.allclose(visitor.get_magnitude(), np.abs(sp_fft.fft(x)))

    def test_injected_pool(self):
        """Test a pool passed to the visitor."""
        rng = np.random.RandomState(5)
        x = rng.randn(64)

        with ThreadPool(4) as pool:
            visitor = visit(FFTVisitor(thread_pool=pool), range(64), x)

        assert np.allclose(visitor.get_result(), sp_fft.fft(x))
