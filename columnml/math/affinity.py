"""
Affinity propagation clustering visitor for columnml.

Exemplars emerge from damped responsibility/availability message passing
over a dense similarity matrix, so the number of clusters is not fixed in
advance. Each round costs O(n^2) time and memory; callers bound the input
size.
"""

import logging
import numpy as np
from typing import List, Optional, Tuple

from columnml.math.visitor import ColumnView, DistanceFunc, Visitor, distances_to, squared_difference
from columnml.utils.general import ColumnLike, non_missing_positions

# Set up logging
logger = logging.getLogger(__name__)


def similarity_matrix(values: np.ndarray, distance: DistanceFunc = squared_difference) -> np.ndarray:
    """
    Dense symmetric similarity matrix.

    Off-diagonal entries are negative distances. The diagonal (the
    preference) is the smallest off-diagonal similarity, which favors
    fewer clusters.

    Args:
        values: Column values without missing entries
        distance: Distance function

    Returns:
        n x n float matrix
    """
    n = len(values)
    simil = np.zeros((n, n), dtype=float)

    for i in range(n - 1):
        row = -distances_to(values[i], values[i + 1:], distance)
        simil[i, i + 1:] = row
        simil[i + 1:, i] = row

    if n > 1:
        off_diagonal = ~np.eye(n, dtype=bool)
        np.fill_diagonal(simil, simil[off_diagonal].min())

    return simil


def propagate(similarity: np.ndarray,
              iterations: int,
              damping_factor: float = 0.9) -> Tuple[np.ndarray, np.ndarray]:
    """
    Run damped message passing for a fixed number of rounds.

    Args:
        similarity: n x n similarity matrix
        iterations: Number of rounds
        damping_factor: Weight of the previous value in each update

    Returns:
        Tuple of (responsibility, availability) matrices
    """
    n = similarity.shape[0]
    respon = np.zeros((n, n), dtype=float)
    avail = np.zeros((n, n), dtype=float)

    if n < 2:
        return respon, avail

    one_df = 1.0 - damping_factor
    rows = np.arange(n)

    for _ in range(iterations):
        # Responsibility: similarity minus the best competing candidate
        combined = avail + similarity
        best_idx = np.argmax(combined, axis=1)
        best = combined[rows, best_idx]
        combined[rows, best_idx] = -np.inf
        second = combined.max(axis=1)

        max_excl = np.repeat(best[:, np.newaxis], n, axis=1)
        max_excl[rows, best_idx] = second

        respon = one_df * (similarity - max_excl) + damping_factor * respon

        # Availability: positive support from the other points
        support = np.maximum(respon, 0)
        np.fill_diagonal(support, np.diag(respon))
        column_sums = support.sum(axis=0)

        new_avail = column_sums[np.newaxis, :] - support
        self_avail = np.diag(new_avail).copy()
        new_avail = np.minimum(new_avail, 0)
        np.fill_diagonal(new_avail, self_avail)

        avail = one_df * new_avail + damping_factor * avail

    return respon, avail


class AffinityPropVisitor(Visitor):
    """
    Affinity propagation clustering of a single column.

    get_result() is a view of the exemplars. When calc_clusters is set,
    every non-missing position joins the group of its nearest exemplar.

    A point is an exemplar only when its own responsibility plus
    availability ends positive. Degenerate columns (two distinct values,
    or all values identical) end with none, and then no position is
    grouped: the result and the clusters are both empty.
    """

    def __init__(self,
                 iterations: int,
                 calc_clusters: bool = True,
                 distance: Optional[DistanceFunc] = None,
                 damping_factor: float = 0.9):
        """
        Initialize the visitor.

        Args:
            iterations: Number of message-passing rounds
            calc_clusters: Whether to materialize the cluster groups
            distance: Distance function, squared difference by default
            damping_factor: Weight of the previous value in each update,
                in [0, 1)
        """
        if iterations < 0:
            raise ValueError(f"iterations must be non-negative, got {iterations}")
        if not 0.0 <= damping_factor < 1.0:
            raise ValueError(f"damping_factor must be in [0, 1), got {damping_factor}")

        self.iterations = iterations
        self.calc_clusters = calc_clusters
        self.distance = squared_difference if distance is None else distance
        self.damping_factor = damping_factor

        self._exemplars = ColumnView(np.empty(0))
        self._clusters: List[ColumnView] = []
        self._clusters_idxs: List[List[int]] = []

    def reset(self) -> None:
        self._exemplars = ColumnView(np.empty(0))
        self._clusters = []
        self._clusters_idxs = []

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column)
        positions = non_missing_positions(values)
        present = values[positions]
        n = len(present)

        if n == 1:
            exemplars = np.array([0])
        else:
            simil = similarity_matrix(present, self.distance)
            respon, avail = propagate(simil, self.iterations, self.damping_factor)
            exemplars = np.flatnonzero(np.diag(respon) + np.diag(avail) > 0)

        logger.debug(f"Affinity propagation found {len(exemplars)} exemplars among {n} points")

        self._exemplars = ColumnView(values, positions[exemplars])

        if self.calc_clusters and len(exemplars):
            self._calc_clusters(values, positions, present, exemplars)

    def _calc_clusters(self,
                       values: np.ndarray,
                       positions: np.ndarray,
                       present: np.ndarray,
                       exemplars: np.ndarray) -> None:
        """Assign every point to its nearest exemplar."""
        dists = np.empty((len(present), len(exemplars)), dtype=float)
        for c, exemplar in enumerate(exemplars):
            dists[:, c] = distances_to(present[exemplar], present, self.distance)

        nearest = np.argmin(dists, axis=1)

        self._clusters_idxs = [positions[nearest == c].tolist() for c in range(len(exemplars))]
        self._clusters = [ColumnView(values, idxs) for idxs in self._clusters_idxs]

    def get_result(self) -> ColumnView:
        """View of the exemplar values, in column order."""
        return self._exemplars

    def get_exemplar_idxs(self) -> List[int]:
        """Column positions of the exemplars."""
        return self._exemplars.positions

    def get_clusters(self) -> List[ColumnView]:
        """One view per exemplar."""
        return self._clusters

    def get_clusters_idxs(self) -> List[List[int]]:
        """Column positions of each cluster, in column order."""
        return self._clusters_idxs
