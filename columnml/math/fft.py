"""
Discrete Fourier transform visitor for columnml.

This module provides forward and inverse transforms of real or complex
columns of any length. Power-of-two lengths use an iterative radix-2
Cooley-Tukey transform; every other length goes through Bluestein's
chirp-z reduction to a power-of-two convolution.

Trigonometric tables, elementwise products and scaling are split into
index ranges for the shared thread pool when the column is large enough.
The butterfly levels always run sequentially.
"""

import logging
import math
import numpy as np
from typing import Optional

from columnml.components.thread_pool import ThreadPool, parallel_for
from columnml.math.visitor import Visitor
from columnml.utils.general import ColumnLike, as_column, is_power_of_two

# Set up logging
logger = logging.getLogger(__name__)


def bit_reverse_permutation(n: int) -> np.ndarray:
    """
    Bit-reversed addressing for a power-of-two length.

    Args:
        n: Transform length (power of two)

    Returns:
        Array p where p[i] is i with its log2(n) low bits reversed
    """
    levels = n.bit_length() - 1
    idx = np.arange(n, dtype=np.int64)
    rev = np.zeros(n, dtype=np.int64)

    for _ in range(levels):
        rev = (rev << 1) | (idx & 1)
        idx >>= 1

    return rev


def radix2(column: np.ndarray, reverse: bool = False, pool: Optional[ThreadPool] = None) -> None:
    """
    In-place radix-2 decimation-in-time transform.

    Args:
        column: Contiguous complex array whose length is a power of two
        reverse: Use the positive exponent (unscaled inverse kernel)
        pool: Thread pool for the trigonometric table
    """
    n = len(column)
    half = n // 2
    two_pi = (2.0 if reverse else -2.0) * math.pi

    # Trigonometric table
    exp_table = np.empty(half, dtype=complex)

    def fill_table(begin: int, end: int) -> None:
        i = np.arange(begin, end)
        exp_table[begin:end] = np.exp(1j * (two_pi * i / n))

    parallel_for(0, half, fill_table, pool=pool)

    # Bit-reversed addressing permutation
    column[:] = column[bit_reverse_permutation(n)]

    # Butterfly levels
    size = 2
    while size <= n:
        half_size = size // 2
        blocks = column.reshape(n // size, size)
        twiddles = exp_table[::n // size]

        temp = blocks[:, half_size:] * twiddles
        blocks[:, half_size:] = blocks[:, :half_size] - temp
        blocks[:, :half_size] += temp

        size *= 2


def convolve(xvec: np.ndarray, yvec: np.ndarray, pool: Optional[ThreadPool] = None) -> np.ndarray:
    """
    Circular convolution of two power-of-two length sequences.

    Both inputs are overwritten.

    Args:
        xvec: First complex sequence
        yvec: Second complex sequence, same length

    Returns:
        The convolution, stored in xvec
    """
    m = len(xvec)

    transform(xvec, False, pool)
    transform(yvec, False, pool)

    def multiply(begin: int, end: int) -> None:
        xvec[begin:end] *= yvec[begin:end]

    parallel_for(0, m, multiply, pool=pool)

    transform(xvec, True, pool)

    def scale(begin: int, end: int) -> None:
        xvec[begin:end] /= m

    parallel_for(0, m, scale, pool=pool)

    return xvec


def bluestein(column: np.ndarray, reverse: bool = False, pool: Optional[ThreadPool] = None) -> None:
    """
    In-place transform of arbitrary length via Bluestein's algorithm.

    Args:
        column: Complex array of any positive length
        reverse: Use the positive exponent (unscaled inverse kernel)
        pool: Thread pool for the elementwise stages
    """
    n = len(column)
    n_2 = 2 * n
    pi = math.pi if reverse else -math.pi

    # Chirp table, exponent reduced mod 2n to keep i*i small
    exp_table = np.empty(n, dtype=complex)

    def fill_table(begin: int, end: int) -> None:
        i = np.arange(begin, end, dtype=np.int64)
        exp_table[begin:end] = np.exp(1j * (pi * ((i * i) % n_2) / n))

    parallel_for(0, n, fill_table, pool=pool)

    # Power-of-two convolution length with m / 2 > n
    m = 1
    while m // 2 <= n:
        m *= 2

    xvec = np.zeros(m, dtype=complex)

    def fill_x(begin: int, end: int) -> None:
        xvec[begin:end] = column[begin:end] * exp_table[begin:end]

    parallel_for(0, n, fill_x, pool=pool)

    yvec = np.zeros(m, dtype=complex)
    yvec[0] = exp_table[0]

    def fill_y(begin: int, end: int) -> None:
        conj = np.conj(exp_table[begin:end])
        yvec[begin:end] = conj
        yvec[m - end + 1:m - begin + 1] = conj[::-1]

    parallel_for(1, n, fill_y, pool=pool)

    logger.debug(f"Bluestein transform of length {n} padded to {m}")

    conv = convolve(xvec, yvec, pool)

    def post(begin: int, end: int) -> None:
        column[begin:end] = exp_table[begin:end] * conv[begin:end]

    parallel_for(0, n, post, pool=pool)


def transform(column: np.ndarray, reverse: bool = False, pool: Optional[ThreadPool] = None) -> None:
    """
    In-place unscaled transform, picking the kernel by length.

    Args:
        column: Contiguous complex array
        reverse: Use the positive exponent
        pool: Thread pool for the elementwise stages
    """
    n = len(column)

    if n == 0:
        return
    if is_power_of_two(n):
        radix2(column, reverse, pool)
    else:
        bluestein(column, reverse, pool)


def inverse_transform(column: np.ndarray, pool: Optional[ThreadPool] = None) -> None:
    """
    In-place inverse transform: conjugate, forward, conjugate, scale by 1/n.

    Args:
        column: Contiguous complex array
        pool: Thread pool for the elementwise stages
    """
    n = len(column)

    if n == 0:
        return

    def conjugate(begin: int, end: int) -> None:
        np.conjugate(column[begin:end], out=column[begin:end])

    parallel_for(0, n, conjugate, pool=pool)

    transform(column, False, pool)

    parallel_for(0, n, conjugate, pool=pool)

    def scale(begin: int, end: int) -> None:
        column[begin:end] /= n

    parallel_for(0, n, scale, pool=pool)


def _embed(values: np.ndarray, pool: Optional[ThreadPool] = None) -> np.ndarray:
    """Copy a real or complex column into a new complex array."""
    result = np.empty(len(values), dtype=complex)

    def copy(begin: int, end: int) -> None:
        result[begin:end] = values[begin:end]

    parallel_for(0, len(values), copy, pool=pool)
    return result


def fft(values: ColumnLike, pool: Optional[ThreadPool] = None) -> np.ndarray:
    """
    Forward discrete Fourier transform.

    Args:
        values: Real or complex sequence
        pool: Thread pool for the elementwise stages

    Returns:
        Complex spectrum of the same length
    """
    result = _embed(as_column(values), pool)
    transform(result, False, pool)
    return result


def ifft(values: ColumnLike, pool: Optional[ThreadPool] = None) -> np.ndarray:
    """
    Inverse discrete Fourier transform.

    Args:
        values: Real or complex spectrum
        pool: Thread pool for the elementwise stages

    Returns:
        Complex sequence of the same length
    """
    result = _embed(as_column(values), pool)
    inverse_transform(result, pool)
    return result


class FFTVisitor(Visitor):
    """
    Forward or inverse Fourier transform of a column.

    Magnitude and phase of the result are computed on first access and
    cached until the next reset.
    """

    def __init__(self, inverse: bool = False, thread_pool: Optional[ThreadPool] = None):
        """
        Initialize the visitor.

        Args:
            inverse: Compute the inverse transform instead of the forward one
            thread_pool: Pool for the elementwise stages; defaults to the
                shared pool
        """
        self.inverse = inverse
        self._pool = thread_pool
        self._result = np.empty(0, dtype=complex)
        self._magnitude = None
        self._angle = None

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column)
        result = _embed(values, self._pool)

        logger.debug(f"{'Inverse' if self.inverse else 'Forward'} FFT of length {len(result)}")

        if self.inverse:
            inverse_transform(result, self._pool)
        else:
            transform(result, False, self._pool)

        self._result = result
        self._magnitude = None
        self._angle = None

    def reset(self) -> None:
        self._result = np.empty(0, dtype=complex)
        self._magnitude = None
        self._angle = None

    def get_result(self) -> np.ndarray:
        """Complex spectrum (or signal, for the inverse transform)."""
        return self._result

    def get_magnitude(self) -> np.ndarray:
        """
        Magnitude of each result value, sqrt of its norm.

        Returns:
            Float array, same length as the result
        """
        if self._magnitude is None:
            result = self._result
            magnitude = np.empty(len(result), dtype=float)

            def fill(begin: int, end: int) -> None:
                chunk = result[begin:end]
                magnitude[begin:end] = np.sqrt(chunk.real * chunk.real + chunk.imag * chunk.imag)

            parallel_for(0, len(result), fill, pool=self._pool)
            self._magnitude = magnitude

        return self._magnitude

    def get_angle(self) -> np.ndarray:
        """
        Phase of each result value, in radians.

        Returns:
            Float array, same length as the result
        """
        if self._angle is None:
            result = self._result
            angle = np.empty(len(result), dtype=float)

            def fill(begin: int, end: int) -> None:
                chunk = result[begin:end]
                angle[begin:end] = np.arctan2(chunk.imag, chunk.real)

            parallel_for(0, len(result), fill, pool=self._pool)
            self._angle = angle

        return self._angle
