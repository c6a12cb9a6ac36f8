"""
Elementwise statistical visitors for columnml.

These visitors share the visitor contract and the thread-pool gating with
the Fourier engine: the per-element work over a large column is split into
ranges for the shared pool, and the caller waits for all of them.

Numeric domains are not checked; log of a non-positive value gives NaN or
-inf as numpy does.
"""

import logging
from enum import Enum
import numpy as np
from scipy.special import erf
from typing import Callable, Dict, Optional, Tuple

from columnml.components.thread_pool import ThreadPool, parallel_for
from columnml.math.visitor import Visitor, sanity_checks_enabled
from columnml.utils.general import ColumnLike, as_column, check_equal_sizes

# Set up logging
logger = logging.getLogger(__name__)


class SigmoidType(Enum):
    """Sigmoid functions applied by SigmoidVisitor."""
    LOGISTIC = "logistic"
    ALGEBRAIC = "algebraic"
    HYPERBOLIC_TAN = "hyperbolic_tan"
    ARC_TAN = "arc_tan"
    ERROR_FUNCTION = "error_function"
    GUDERMANNIAN = "gudermannian"
    SMOOTHSTEP = "smoothstep"


class LossFunctionType(Enum):
    """Loss functions computed by LossFunctionVisitor."""
    KULLBACK_LEIBLER = "kullback_leibler"
    MEAN_ABS_ERROR = "mean_abs_error"
    MEAN_SQR_ERROR = "mean_sqr_error"
    MEAN_SQR_LOG_ERROR = "mean_sqr_log_error"
    CROSS_ENTROPY = "cross_entropy"
    BINARY_CROSS_ENTROPY = "binary_cross_entropy"
    CATEGORICAL_HINGE = "categorical_hinge"
    COSINE_SIMILARITY = "cosine_similarity"
    LOG_COSH = "log_cosh"


class VectorSimType(Enum):
    """Similarity and distance measures computed by VectorSimilarityVisitor."""
    EUCLIDEAN_DIST = "euclidean_dist"
    MANHATTAN_DIST = "manhattan_dist"
    DOT_PRODUCT = "dot_product"
    COSINE_SIMILARITY = "cosine_similarity"
    SIMPLE_SIMILARITY = "simple_similarity"
    JACCARD_SIMILARITY = "jaccard_similarity"
    HAMMING_DIST = "hamming_dist"


def _smoothstep(x: np.ndarray) -> np.ndarray:
    return np.where(x <= 0, 0.0, np.where(x >= 1, 1.0, x * x * (3.0 - 2.0 * x)))


SIGMOIDS: Dict[SigmoidType, Callable[[np.ndarray], np.ndarray]] = {
    SigmoidType.LOGISTIC: lambda x: 1.0 / (1.0 + np.exp(-x)),
    SigmoidType.ALGEBRAIC: lambda x: 1.0 / np.sqrt(1.0 + x * x),
    SigmoidType.HYPERBOLIC_TAN: np.tanh,
    SigmoidType.ARC_TAN: np.arctan,
    SigmoidType.ERROR_FUNCTION: erf,
    SigmoidType.GUDERMANNIAN: lambda x: np.arctan(np.sinh(x)),
    SigmoidType.SMOOTHSTEP: _smoothstep,
}


def _elementwise_sum(a: np.ndarray,
                     b: np.ndarray,
                     term: Callable[[np.ndarray, np.ndarray], np.ndarray],
                     pool: Optional[ThreadPool] = None) -> float:
    """
    Sum of term(a, b) over the whole column, computed range by range.

    Args:
        a: First column
        b: Second column, same length
        term: Vectorized per-element term
        pool: Thread pool; defaults to the shared pool

    Returns:
        The sum
    """
    terms = np.empty(len(a), dtype=float)

    def fill(begin: int, end: int) -> None:
        terms[begin:end] = term(a[begin:end], b[begin:end])

    parallel_for(0, len(a), fill, pool=pool)
    return float(terms.sum())


def _paired_columns(name: str,
                    index: ColumnLike,
                    first: ColumnLike,
                    second: ColumnLike,
                    check: bool = True) -> Tuple[np.ndarray, np.ndarray]:
    """
    Coerce two columns for an arity-2 visitor.

    Args:
        name: Visitor name used in error messages
        index: Index sequence
        first: First column
        second: Second column
        check: Whether unequal sizes raise (subject to sanity checks)

    Returns:
        Both columns trimmed to the shortest of index, first and second
    """
    a = as_column(first)
    b = as_column(second)

    if check:
        check_equal_sizes(name, a, b, enabled=sanity_checks_enabled())

    n = min(len(index), len(a), len(b))
    return a[:n], b[:n]


class SigmoidVisitor(Visitor):
    """
    Apply a sigmoid function to every value of a column.
    """

    def __init__(self, sigmoid_type: SigmoidType = SigmoidType.LOGISTIC, thread_pool: Optional[ThreadPool] = None):
        self.sigmoid_type = SigmoidType(sigmoid_type)
        self._pool = thread_pool
        self._result = np.empty(0)

    def reset(self) -> None:
        self._result = np.empty(0)

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column).astype(float)
        func = SIGMOIDS[self.sigmoid_type]
        result = np.empty(len(values), dtype=float)

        def fill(begin: int, end: int) -> None:
            result[begin:end] = func(values[begin:end])

        parallel_for(0, len(values), fill, pool=self._pool)
        self._result = result

    def get_result(self) -> np.ndarray:
        return self._result


class LossFunctionVisitor(Visitor):
    """
    Loss between an actual column and a model column.

    apply() takes (index, actual, model). The two columns must be of equal
    length when sanity checks are enabled.
    """

    def __init__(self, loss_type: LossFunctionType, thread_pool: Optional[ThreadPool] = None):
        """
        Initialize the visitor.

        Args:
            loss_type: Loss function to compute
            thread_pool: Pool for the per-element terms; defaults to the
                shared pool
        """
        self.loss_type = LossFunctionType(loss_type)
        self._pool = thread_pool
        self._result = 0.0

    def reset(self) -> None:
        self._result = 0.0

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        if len(columns) != 1:
            raise TypeError("LossFunctionVisitor.apply() takes an actual and a model column")

        actual, model = _paired_columns("LossFunctionVisitor", index, column, columns[0])
        actual = actual.astype(float)
        model = model.astype(float)
        n = len(actual)
        lft = self.loss_type

        def total(term):
            return _elementwise_sum(actual, model, term, self._pool)

        if lft == LossFunctionType.COSINE_SIMILARITY:
            result = np.dot(actual, model) / (np.linalg.norm(actual) * np.linalg.norm(model))
        elif lft == LossFunctionType.KULLBACK_LEIBLER:
            result = total(lambda a, m: a * np.log(a / m))
        elif lft == LossFunctionType.MEAN_ABS_ERROR:
            result = total(lambda a, m: np.abs(a - m)) / n
        elif lft == LossFunctionType.MEAN_SQR_ERROR:
            result = total(lambda a, m: (a - m) * (a - m)) / n
        elif lft == LossFunctionType.MEAN_SQR_LOG_ERROR:
            result = total(lambda a, m: (np.log1p(a) - np.log1p(m)) ** 2) / n
        elif lft == LossFunctionType.CROSS_ENTROPY:
            result = -(total(lambda a, m: a * np.log(m)) / n)
        elif lft == LossFunctionType.BINARY_CROSS_ENTROPY:
            result = total(lambda a, m: -(a * np.log(m)) + (1.0 - a) * np.log(1.0 - m)) / n
        elif lft == LossFunctionType.CATEGORICAL_HINGE:
            neg = total(lambda a, m: (1.0 - a) * m)
            pos = total(lambda a, m: a * m)
            result = max(neg - pos + 1.0, 0.0)
        else:
            result = total(lambda a, m: np.log(np.cosh(m - a))) / n

        self._result = float(result)

    def get_result(self) -> float:
        return self._result


class VectorSimilarityVisitor(Visitor):
    """
    Similarity or distance between two columns treated as vectors.

    Hamming distance and simple similarity require equal lengths under
    sanity checks; the other measures use the overlapping prefix.
    """

    def __init__(self, sim_type: VectorSimType):
        self.sim_type = VectorSimType(sim_type)
        self._result = 0.0

    def reset(self) -> None:
        self._result = 0.0

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        if len(columns) != 1:
            raise TypeError("VectorSimilarityVisitor.apply() takes two columns")

        st = self.sim_type

        if st == VectorSimType.JACCARD_SIMILARITY:
            # Set semantics over the full columns, counted against the column sizes
            first = as_column(column)
            second = as_column(columns[0])
            intersection = len(set(first.tolist()) & set(second.tolist()))
            self._result = intersection / (len(first) + len(second) - intersection)
            return

        check = st in (VectorSimType.HAMMING_DIST, VectorSimType.SIMPLE_SIMILARITY)
        a, b = _paired_columns("VectorSimilarityVisitor", index, column, columns[0], check=check)

        if st == VectorSimType.HAMMING_DIST:
            self._result = float(np.count_nonzero(a != b))
            return

        a = a.astype(float)
        b = b.astype(float)

        if st == VectorSimType.EUCLIDEAN_DIST:
            result = np.sqrt(np.sum((a - b) ** 2))
        elif st == VectorSimType.MANHATTAN_DIST:
            result = np.sum(np.abs(a - b))
        elif st == VectorSimType.DOT_PRODUCT:
            result = np.dot(a, b)
        elif st == VectorSimType.COSINE_SIMILARITY:
            result = np.dot(a, b) / (np.linalg.norm(a) * np.linalg.norm(b))
        else:
            dot = np.dot(a, b)
            result = (1.0 - dot * dot) / len(a)

        self._result = float(result)

    def get_result(self) -> float:
        return self._result
