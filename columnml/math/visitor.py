"""
Visitor contract shared by all columnml algorithms.

A visitor is constructed once with its algorithm parameters, then used as
reset -> apply -> finalize over an index sequence and one or more columns.
Results stay readable through the visitor's accessors until the next reset,
so one instance can be reused across columns.
"""

import logging
import numpy as np
from typing import Any, Callable, Iterator, List, Optional, Sequence

from columnml.components.config import ConfigManager
from columnml.utils.general import ColumnLike, as_column, column_size

# Set up logging
logger = logging.getLogger(__name__)

DistanceFunc = Callable[[Any, Any], float]


def squared_difference(x: Any, y: Any) -> float:
    """
    Default dissimilarity between two values.

    Args:
        x: First value
        y: Second value

    Returns:
        (x - y) squared
    """
    return (x - y) * (x - y)


def distances_to(value: Any, values: np.ndarray, distance: DistanceFunc) -> np.ndarray:
    """
    Dissimilarity from one value to every value of a column.

    The default distance on a numeric column is computed in one vectorized
    step; any other callable is applied pairwise in column order.

    Args:
        value: Reference value
        values: Column values
        distance: Distance function

    Returns:
        Float array with one distance per column value
    """
    if distance is squared_difference and values.dtype.kind in 'biuf':
        diff = values - value
        return diff * diff

    return np.fromiter((distance(value, v) for v in values), dtype=float, count=len(values))


def sanity_checks_enabled() -> bool:
    """Whether size checks between columns raise."""
    return bool(ConfigManager.get_config().get('sanity-checks', True))


class ColumnView:
    """
    Non-owning view of selected positions of a column.

    The view keeps a reference to the column and the positions; values are
    read through it, never copied.
    """

    def __init__(self, column: np.ndarray, positions: Optional[Sequence[int]] = None):
        """
        Initialize a view.

        Args:
            column: Column the positions refer to
            positions: Positions into the column, in view order
        """
        self._column = column
        self._positions = [] if positions is None else [int(p) for p in positions]

    def append(self, position: int) -> None:
        """
        Add a position to the end of the view.

        Args:
            position: Position into the column
        """
        self._positions.append(int(position))

    @property
    def positions(self) -> List[int]:
        """Positions into the column, in view order."""
        return list(self._positions)

    def to_numpy(self) -> np.ndarray:
        """Copy the viewed values into a new array."""
        return self._column[np.asarray(self._positions, dtype=int)]

    def __len__(self) -> int:
        return len(self._positions)

    def __iter__(self) -> Iterator[Any]:
        for pos in self._positions:
            yield self._column[pos]

    def __getitem__(self, i: int) -> Any:
        return self._column[self._positions[i]]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnView):
            return NotImplemented
        return (self._positions == other._positions
                and np.array_equal(self.to_numpy(), other.to_numpy()))

    def __repr__(self) -> str:
        return f"ColumnView(size={len(self._positions)})"


class Visitor:
    """
    Base class for stateful column visitors.

    Subclasses implement apply() and reset(); finalize() is a no-op unless
    a visitor needs a post pass.
    """

    def reset(self) -> None:
        """Clear accumulated result state. Parameters are kept."""
        raise NotImplementedError

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        """
        Run one full pass over the given columns.

        Args:
            index: Index sequence aligned with the column
            column: Column values
            *columns: Extra columns for visitors of higher arity
        """
        raise NotImplementedError

    def finalize(self) -> None:
        """Post pass after apply()."""

    def _prepare(self, index: ColumnLike, column: ColumnLike) -> np.ndarray:
        """
        Coerce the column and trim it to the index length.

        Args:
            index: Index sequence
            column: Column values

        Returns:
            Column values of length min(len(index), len(column))
        """
        values = as_column(column)
        return values[:column_size(index, values)]


def visit(visitor: Visitor, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> Visitor:
    """
    Run a visitor through its full reset -> apply -> finalize cycle.

    Args:
        visitor: Visitor to run
        index: Index sequence
        column: Column values
        *columns: Extra columns for visitors of higher arity

    Returns:
        The visitor, with its results ready to read
    """
    visitor.reset()
    visitor.apply(index, column, *columns)
    visitor.finalize()
    return visitor
