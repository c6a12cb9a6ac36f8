"""
General utility functions for the columnml package.

This module provides the column helpers shared by every visitor: coercion
of sequences into columns, the missing-value predicate, size checks and
the error types raised by visitors.
"""

import numpy as np
import pandas as pd
from typing import Any, List, Sequence, Tuple, Union


class VisitorError(Exception):
    """Base class for errors raised by visitors."""


class ColumnSizeError(VisitorError, ValueError):
    """Raised when columns that must be of equal length are not."""


ColumnLike = Union[Sequence[Any], np.ndarray, pd.Series]


def as_column(column: ColumnLike) -> np.ndarray:
    """
    Coerce a sequence into a one-dimensional numpy array.

    Numeric columns keep their dtype. Lists holding None become float
    arrays with NaN in place of None, so they stay usable by the numeric
    kernels.

    Args:
        column: List, tuple, numpy array or pandas Series

    Returns:
        One-dimensional numpy array
    """
    if isinstance(column, pd.Series):
        values = column.to_numpy()
    else:
        values = np.asarray(column)

    if values.ndim != 1:
        values = values.reshape(-1)

    if values.dtype == object:
        mask = missing_mask(values)
        if mask.any():
            # Non-numeric object columns are left as they are
            try:
                values = np.where(mask, np.nan, values).astype(float)
            except (TypeError, ValueError):
                pass

    return values


def missing_mask(values: np.ndarray) -> np.ndarray:
    """
    Vectorized missing-value predicate.

    Args:
        values: Column values

    Returns:
        Boolean array, True where the value is missing (None or NaN)
    """
    return np.asarray(pd.isna(values), dtype=bool)


def column_size(index: ColumnLike, column: ColumnLike) -> int:
    """Length of a visit: the shorter of the index and the column."""
    return min(len(index), len(column))


def check_equal_sizes(name: str, *columns: ColumnLike, enabled: bool = True) -> None:
    """
    Raise if the given columns are not all of the same length.

    Args:
        name: Name of the calling visitor, used in the message
        *columns: Columns to compare
        enabled: Whether sanity checks are turned on

    Raises:
        ColumnSizeError: If enabled and the sizes differ
    """
    if not enabled or not columns:
        return

    sizes = [len(c) for c in columns]
    if any(s != sizes[0] for s in sizes):
        raise ColumnSizeError(f"{name}: All columns must be of equal sizes {sizes}")


def non_missing_positions(values: np.ndarray) -> np.ndarray:
    """
    Positions of the values that are not missing.

    Args:
        values: Column values

    Returns:
        Integer array of positions, in column order
    """
    return np.flatnonzero(~missing_mask(values))


def split_range(begin: int, end: int, parts: int) -> List[Tuple[int, int]]:
    """
    Split [begin, end) into at most `parts` contiguous, non-empty ranges.

    Args:
        begin: First position
        end: One past the last position
        parts: Maximum number of ranges

    Returns:
        List of (range_begin, range_end) tuples covering [begin, end)
    """
    total = end - begin
    if total <= 0:
        return []

    parts = max(1, min(parts, total))
    step, extra = divmod(total, parts)

    ranges = []
    current = begin
    for i in range(parts):
        size = step + (1 if i < extra else 0)
        ranges.append((current, current + size))
        current += size

    return ranges


def is_power_of_two(n: int) -> bool:
    """
    Check if n is a power of two (0 is treated as one, as the FFT
    kernels never see it).
    """
    return (n & (n - 1)) == 0
