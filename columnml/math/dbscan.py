"""
DBSCAN density clustering visitor for columnml.

Points are visited in column order. A point with at least min_members
neighbors within max_distance (itself included) starts a cluster that is
grown through a work queue of seeds; points that never reach such a
neighborhood end up as noise. A point first marked noise can still be
claimed by a cluster discovered later, so results depend on column order.
"""

import logging
from collections import deque
import numpy as np
from typing import List, Optional

from columnml.math.visitor import ColumnView, DistanceFunc, Visitor, distances_to, squared_difference
from columnml.utils.general import ColumnLike, non_missing_positions

# Set up logging
logger = logging.getLogger(__name__)

UNCLASSIFIED = -1
NOISE = -2


def region_query(values: np.ndarray, point: int, max_distance: float, distance: DistanceFunc) -> np.ndarray:
    """
    Neighborhood of a point.

    Args:
        values: Column values
        point: Position of the point
        max_distance: Neighborhood radius
        distance: Distance function

    Returns:
        Positions within max_distance of the point, itself included
    """
    return np.flatnonzero(distances_to(values[point], values, distance) <= max_distance)


def dbscan_labels(values: np.ndarray,
                  min_members: int,
                  max_distance: float,
                  distance: DistanceFunc = squared_difference) -> np.ndarray:
    """
    Label every value with a cluster id or NOISE.

    Args:
        values: Column values without missing entries
        min_members: Minimum neighborhood size of a core point
        max_distance: Neighborhood radius
        distance: Distance function

    Returns:
        Integer array of labels; cluster ids start at 0 in discovery order
    """
    n = len(values)
    labels = np.full(n, UNCLASSIFIED, dtype=int)
    cluster_id = 0

    for point in range(n):
        if labels[point] != UNCLASSIFIED:
            continue

        neighbors = region_query(values, point, max_distance, distance)
        if len(neighbors) < min_members:
            labels[point] = NOISE
            continue

        labels[neighbors] = cluster_id
        seeds = deque(p for p in neighbors if p != point)

        while seeds:
            seed = seeds.popleft()
            seed_neighbors = region_query(values, seed, max_distance, distance)

            if len(seed_neighbors) < min_members:
                continue

            for neighbor in seed_neighbors:
                label = labels[neighbor]
                if label == UNCLASSIFIED:
                    seeds.append(neighbor)
                    labels[neighbor] = cluster_id
                elif label == NOISE:
                    labels[neighbor] = cluster_id

        cluster_id += 1

    return labels


class DBSCANVisitor(Visitor):
    """
    DBSCAN clustering of a single column.

    Missing values are left out of both the clusters and the noise list.
    """

    def __init__(self, min_members: int, max_distance: float, distance: Optional[DistanceFunc] = None):
        """
        Initialize the visitor.

        Args:
            min_members: Minimum neighborhood size of a core point
            max_distance: Neighborhood radius under the distance function
            distance: Distance function, squared difference by default
        """
        if min_members < 1:
            raise ValueError(f"min_members must be at least 1, got {min_members}")
        if max_distance < 0:
            raise ValueError(f"max_distance must be non-negative, got {max_distance}")

        self.min_members = min_members
        self.max_distance = max_distance
        self.distance = squared_difference if distance is None else distance

        self._clusters: List[ColumnView] = []
        self._clusters_idxs: List[List[int]] = []
        self._noisy_idxs: List[int] = []

    def reset(self) -> None:
        self._clusters = []
        self._clusters_idxs = []
        self._noisy_idxs = []

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column)
        positions = non_missing_positions(values)

        labels = dbscan_labels(values[positions], self.min_members, self.max_distance, self.distance)
        n_clusters = int(labels.max()) + 1 if len(labels) and labels.max() >= 0 else 0

        self._clusters_idxs = [positions[labels == c].tolist() for c in range(n_clusters)]
        self._clusters = [ColumnView(values, idxs) for idxs in self._clusters_idxs]
        self._noisy_idxs = positions[labels == NOISE].tolist()

        logger.debug(f"DBSCAN found {n_clusters} clusters and {len(self._noisy_idxs)} noise points")

    def get_result(self) -> List[ColumnView]:
        """Cluster views, in discovery order."""
        return self._clusters

    def get_clusters_idxs(self) -> List[List[int]]:
        """Column positions of each cluster, in column order."""
        return self._clusters_idxs

    def get_noisy_idxs(self) -> List[int]:
        """Column positions of the noise points, in column order."""
        return self._noisy_idxs
