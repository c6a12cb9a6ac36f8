"""
Mean-shift clustering visitor for columnml.

Every value climbs toward the kernel-weighted mean of the column values
around it until its step falls within max_distance. Converged positions
are then grouped greedily: a value joins the first cluster whose
representative lies within max_distance of its shifted position, or
starts a new one.

Kernels are evaluated directly on the distance function's output; the
bandwidth sets the neighbor radius (3 * bandwidth) and scales the weights.
"""

import logging
from enum import Enum
import numpy as np
from typing import Callable, Dict, List, Optional, Union

from columnml.math.visitor import ColumnView, DistanceFunc, Visitor, distances_to, squared_difference
from columnml.utils.general import ColumnLike, non_missing_positions

# Set up logging
logger = logging.getLogger(__name__)


class MeanShiftKernel(Enum):
    """Kernels available to mean-shift."""
    UNIFORM = "uniform"
    TRIANGULAR = "triangular"
    PARABOLIC = "parabolic"
    BIWEIGHT = "biweight"
    TRIWEIGHT = "triweight"
    TRICUBE = "tricube"
    GAUSSIAN = "gaussian"
    COSINE = "cosine"
    LOGISTIC = "logistic"
    SIGMOID = "sigmoid"
    SILVERMAN = "silverman"


def uniform_kernel(d: np.ndarray) -> np.ndarray:
    return np.where(d <= 1.0, 1.0, 0.0)


def triangular_kernel(d: np.ndarray) -> np.ndarray:
    return np.where(d <= 1.0, 1.0 - np.abs(d), 0.0)


def parabolic_kernel(d: np.ndarray) -> np.ndarray:
    return np.where(d <= 1.0, 1.0 - d * d, 0.0)


def biweight_kernel(d: np.ndarray) -> np.ndarray:
    x = 1.0 - d * d
    return np.where(d <= 1.0, x * x, 0.0)


def triweight_kernel(d: np.ndarray) -> np.ndarray:
    x = 1.0 - d * d
    return np.where(d <= 1.0, x * x * x, 0.0)


def tricube_kernel(d: np.ndarray) -> np.ndarray:
    x = 1.0 - d * d * d
    return np.where(d <= 1.0, x * x * x, 0.0)


def gaussian_kernel(d: np.ndarray) -> np.ndarray:
    return np.exp(-0.5 * d * d)


def cosine_kernel(d: np.ndarray) -> np.ndarray:
    return np.where(d <= 1.0, np.cos(np.pi / 2.0 * d), 0.0)


def logistic_kernel(d: np.ndarray) -> np.ndarray:
    return 1.0 / (2.0 + np.exp(d) + np.exp(-d))


def sigmoid_kernel(d: np.ndarray) -> np.ndarray:
    return 1.0 / (np.exp(d) + np.exp(-d))


def silverman_kernel(d: np.ndarray) -> np.ndarray:
    x = np.abs(d) / np.sqrt(2.0)
    return np.exp(-x) * np.sin(x + np.pi / 4.0)


KERNELS: Dict[MeanShiftKernel, Callable[[np.ndarray], np.ndarray]] = {
    MeanShiftKernel.UNIFORM: uniform_kernel,
    MeanShiftKernel.TRIANGULAR: triangular_kernel,
    MeanShiftKernel.PARABOLIC: parabolic_kernel,
    MeanShiftKernel.BIWEIGHT: biweight_kernel,
    MeanShiftKernel.TRIWEIGHT: triweight_kernel,
    MeanShiftKernel.TRICUBE: tricube_kernel,
    MeanShiftKernel.GAUSSIAN: gaussian_kernel,
    MeanShiftKernel.COSINE: cosine_kernel,
    MeanShiftKernel.LOGISTIC: logistic_kernel,
    MeanShiftKernel.SIGMOID: sigmoid_kernel,
    MeanShiftKernel.SILVERMAN: silverman_kernel,
}


def kernel_weight(kernel: MeanShiftKernel, d: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Evaluate a kernel.

    Args:
        kernel: Kernel to use
        d: Distance, scalar or array

    Returns:
        Kernel value with the same shape as d
    """
    result = KERNELS[MeanShiftKernel(kernel)](np.asarray(d, dtype=float))
    return float(result) if result.ndim == 0 else result


class MeanShiftVisitor(Visitor):
    """
    Mean-shift clustering of a single column.

    Every non-missing position ends up in exactly one cluster; there is no
    noise set.
    """

    def __init__(self,
                 bandwidth: float,
                 max_distance: float,
                 kernel: MeanShiftKernel = MeanShiftKernel.GAUSSIAN,
                 distance: Optional[DistanceFunc] = None,
                 max_iterations: int = 50):
        """
        Initialize the visitor.

        Args:
            bandwidth: Kernel bandwidth, positive
            max_distance: Step size under which a value stops shifting, and
                merge radius for the final grouping
            kernel: Kernel weighting the neighbors
            distance: Distance function, squared difference by default
            max_iterations: Maximum number of shift rounds
        """
        if bandwidth <= 0:
            raise ValueError(f"bandwidth must be positive, got {bandwidth}")
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {max_iterations}")

        self.bandwidth = bandwidth
        self.max_distance = max_distance
        self.kernel = MeanShiftKernel(kernel)
        self.distance = squared_difference if distance is None else distance
        self.max_iterations = max_iterations

        self._clusters: List[ColumnView] = []
        self._clusters_idxs: List[List[int]] = []

    def reset(self) -> None:
        self._clusters = []
        self._clusters_idxs = []

    def apply(self, index: ColumnLike, column: ColumnLike, *columns: ColumnLike) -> None:
        values = self._prepare(index, column)
        positions = non_missing_positions(values)
        present = values[positions]

        shifted = self._shift(present)
        self._build_clusters(values, positions, shifted)

        logger.debug(f"Mean-shift ({self.kernel.value} kernel) found {len(self._clusters)} clusters")

    def _shift(self, present: np.ndarray) -> np.ndarray:
        """
        Move every value to its local density mode.

        Args:
            present: Non-missing column values

        Returns:
            Array of shifted positions, one per value
        """
        n = len(present)
        shifted = np.array(present, dtype=np.result_type(present.dtype, float))
        shifting = np.ones(n, dtype=bool)

        radius = 3.0 * self.bandwidth
        dbl_sq_bw = 2.0 * self.bandwidth * self.bandwidth

        iterations = 0
        while iterations < self.max_iterations and shifting.any():
            iterations += 1

            for i in np.flatnonzero(shifting):
                dists = distances_to(shifted[i], present, self.distance)
                in_range = dists <= radius

                weights = kernel_weight(self.kernel, dists[in_range]) / dbl_sq_bw
                total_w = weights.sum()

                if total_w == 0:
                    # Nothing pulls this value anywhere
                    shifting[i] = False
                    continue

                new_val = (present[in_range] * weights).sum() / total_w

                if self.distance(new_val, shifted[i]) <= self.max_distance:
                    shifting[i] = False
                shifted[i] = new_val

        logger.debug(f"Mean-shift ran {iterations} rounds, {int(shifting.sum())} values still shifting")

        return shifted

    def _build_clusters(self, values: np.ndarray, positions: np.ndarray, shifted: np.ndarray) -> None:
        """Greedy first-fit grouping of the shifted positions."""
        representatives = []
        clusters_idxs: List[List[int]] = []

        for pos, shifted_val in zip(positions, shifted):
            for c, rep in enumerate(representatives):
                if self.distance(rep, shifted_val) <= self.max_distance:
                    clusters_idxs[c].append(int(pos))
                    break
            else:
                representatives.append(shifted_val)
                clusters_idxs.append([int(pos)])

        self._clusters_idxs = clusters_idxs
        self._clusters = [ColumnView(values, idxs) for idxs in clusters_idxs]

    def get_result(self) -> List[ColumnView]:
        """Cluster views, in discovery order."""
        return self._clusters

    def get_clusters_idxs(self) -> List[List[int]]:
        """Column positions of each cluster, in column order."""
        return self._clusters_idxs
