"""
K-means clustering visitor for columnml.

Fixed-K Lloyd iterations over the non-missing values of one column, with
a pluggable distance function and optionally seeded initialization.
"""

import logging
import numpy as np
import pandas as pd
from typing import List, Optional

from columnml.math.visitor import ColumnView, DistanceFunc, Visitor, distances_to, squared_difference
from columnml.utils.general import ColumnLike, non_missing_positions

# Set up logging
logger = logging.getLogger(__name__)

# Centroids moving less than this are considered converged
CONVERGENCE_THRESHOLD = 1e-7


def init_centroids(values: np.ndarray, k: int, rng: np.random.RandomState) -> np.ndarray:
    """
    Pick k initial centroids from the column values.

    Args:
        values: Non-missing column values
        k: Number of centroids
        rng: Random state used for sampling

    Returns:
        Array of k centroids, distinct when the column allows it
    """
    distinct = pd.unique(values)

    if len(distinct) >= k:
        chosen = distinct[rng.choice(len(distinct), size=k, replace=False)]
    else:
        # Not enough distinct values, repeat them
        chosen = np.resize(distinct, k)

    dtype = np.result_type(values.dtype, float)
    return np.array(chosen, dtype=dtype)


def assign_points(values: np.ndarray, centroids: np.ndarray, distance: DistanceFunc) -> np.ndarray:
    """
    Index of the nearest centroid for every value.

    Ties go to the lowest centroid index.

    Args:
        values: Non-missing column values
        centroids: Current centroids
        distance: Distance function

    Returns:
        Integer array of centroid indices, one per value
    """
    dists = np.empty((len(values), len(centroids)), dtype=float)
    for c, centroid in enumerate(centroids):
        dists[:, c] = distances_to(centroid, values, distance)

    return np.argmin(dists, axis=1)


class KMeansVisitor(Visitor):
    """
    K-means clustering of a single column.

    get_result() returns the K centroids. When calc_clusters is set, the
    non-missing positions are also split into K ordered groups, available
    through get_clusters() and get_clusters_idxs().
    """

    def __init__(self,
                 k: int,
                 iterations: int,
                 calc_clusters: bool = True,
                 distance: Optional[DistanceFunc] = None,
                 seed: Optional[int] = None):
        """
        Initialize the visitor.

        Args:
            k: Number of clusters
            iterations: Maximum number of Lloyd iterations
            calc_clusters: Whether to materialize the cluster groups
            distance: Distance function, squared difference by default
            seed: Seed for the initial centroid sampling
        """
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        if iterations < 0:
            raise ValueError(f"iterations must be non-negative, got {iterations}")

        self.k = k
        self.iterations = iterations
        self.calc_clusters = calc_clusters
        self.distance = squared_difference if distance is None else distance
        self.seed = seed

        self._centroids = np.empty(0)
        self._clusters: List[ColumnView] = []
        self._clusters_idxs: List[List[int]] = []

    def reset(self) -> None:
        self._centroids = np.empty(0)
        self._clusters = []
        self._clusters_idxs = []

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column)
        positions = non_missing_positions(values)
        present = values[positions]

        if len(present) == 0:
            logger.debug("K-means on a column with no values")
            self._centroids = np.empty(0)
            self._clusters = [ColumnView(values) for _ in range(self.k)]
            self._clusters_idxs = [[] for _ in range(self.k)]
            return

        rng = np.random.RandomState(self.seed)
        centroids = init_centroids(present, self.k, rng)

        iteration = 0
        for iteration in range(1, self.iterations + 1):
            assignments = assign_points(present, centroids, self.distance)

            done = True
            for c in range(self.k):
                members = present[assignments == c]
                if len(members) == 0:
                    # Empty cluster keeps its centroid
                    continue

                new_mean = members.sum() / len(members)
                if self.distance(new_mean, centroids[c]) > CONVERGENCE_THRESHOLD:
                    centroids[c] = new_mean
                    done = False

            if done:
                break

        logger.debug(f"K-means with k={self.k} stopped after {iteration} iterations")

        self._centroids = centroids

        if self.calc_clusters:
            self._calc_clusters(values, positions, present)

    def _calc_clusters(self, values: np.ndarray, positions: np.ndarray, present: np.ndarray) -> None:
        """Split the non-missing positions by nearest centroid."""
        assignments = assign_points(present, self._centroids, self.distance)

        self._clusters_idxs = [positions[assignments == c].tolist() for c in range(self.k)]
        self._clusters = [ColumnView(values, idxs) for idxs in self._clusters_idxs]

    def get_result(self) -> np.ndarray:
        """The K centroids."""
        return self._centroids

    def get_clusters(self) -> List[ColumnView]:
        """K views of the column, one per centroid."""
        return self._clusters

    def get_clusters_idxs(self) -> List[List[int]]:
        """Column positions of each cluster, in column order."""
        return self._clusters_idxs
