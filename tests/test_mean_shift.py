"""
Tests for the mean-shift clustering module.
"""

import math
import os
import sys

import numpy as np
import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from columnml.math.mean_shift import KERNELS, MeanShiftKernel, MeanShiftVisitor, kernel_weight
from columnml.math.visitor import visit


class TestKernels:
    """Tests for the kernel catalogue."""

    def test_mapping_total(self):
        """Test every kernel has a function."""
        assert set(KERNELS) == set(MeanShiftKernel)

    @pytest.mark.parametrize('kernel, d, expected', [
        (MeanShiftKernel.UNIFORM, 0.5, 1.0),
        (MeanShiftKernel.TRIANGULAR, 0.25, 0.75),
        (MeanShiftKernel.PARABOLIC, 0.5, 0.75),
        (MeanShiftKernel.BIWEIGHT, 0.5, 0.5625),
        (MeanShiftKernel.TRIWEIGHT, 0.5, 0.421875),
        (MeanShiftKernel.TRICUBE, 0.5, 0.669921875),
        (MeanShiftKernel.GAUSSIAN, 1.0, math.exp(-0.5)),
        (MeanShiftKernel.COSINE, 0.5, math.cos(math.pi / 4)),
        (MeanShiftKernel.LOGISTIC, 0.0, 0.25),
        (MeanShiftKernel.SIGMOID, 0.0, 0.5),
        (MeanShiftKernel.SILVERMAN, 0.0, math.sin(math.pi / 4)),
    ])
    def test_values(self, kernel, d, expected):
        """Test kernel values at known points."""
        assert kernel_weight(kernel, d) == pytest.approx(expected)

    @pytest.mark.parametrize('kernel', [
        MeanShiftKernel.UNIFORM, MeanShiftKernel.TRIANGULAR, MeanShiftKernel.PARABOLIC,
        MeanShiftKernel.BIWEIGHT, MeanShiftKernel.TRIWEIGHT, MeanShiftKernel.TRICUBE,
        MeanShiftKernel.COSINE,
    ])
    def test_cutoff(self, kernel):
        """Test bounded kernels vanish past distance 1."""
        assert kernel_weight(kernel, 1.5) == 0.0

    def test_gaussian_no_cutoff(self):
        """Test the gaussian kernel is positive past distance 1."""
        assert kernel_weight(MeanShiftKernel.GAUSSIAN, 2.0) > 0.0

    def test_array_input(self):
        """Test kernels evaluate arrays elementwise."""
        result = kernel_weight(MeanShiftKernel.UNIFORM, np.array([0.0, 1.0, 2.0]))

        assert result.tolist() == [1.0, 1.0, 0.0]

    def test_string_kernel(self):
        """Test kernels can be named by value."""
        assert kernel_weight('parabolic', 0.5) == pytest.approx(0.75)


class TestMeanShiftVisitor:
    """Tests for the MeanShiftVisitor class."""

    def test_invalid_params(self):
        """Test invalid constructor parameters."""
        with pytest.raises(ValueError):
            MeanShiftVisitor(0.0, 0.1)
        with pytest.raises(ValueError):
            MeanShiftVisitor(1.0, 0.1, max_iterations=-1)
        with pytest.raises(ValueError):
            MeanShiftVisitor(1.0, 0.1, kernel='boxcar')

    def test_single_cluster(self):
        """Test values within one kernel radius collapse into one cluster."""
        values = [0.1, 0.2, 0.4, 0.5, 0.9]

        visitor = visit(MeanShiftVisitor(1.0, 1e-6, kernel=MeanShiftKernel.UNIFORM), range(5), values)

        assert visitor.get_clusters_idxs() == [[0, 1, 2, 3, 4]]
        assert list(visitor.get_result()[0]) == values

    def test_two_clusters(self):
        """Test two separated groups give two clusters."""
        values = [1.0, 1.1, 1.2, 1.3, 100.0, 100.1, 100.2]

        visitor = visit(MeanShiftVisitor(1.0, 1.0), range(7), values)

        assert visitor.get_clusters_idxs() == [[0, 1, 2, 3], [4, 5, 6]]

    @pytest.mark.parametrize('kernel', list(MeanShiftKernel))
    def test_partition_every_kernel(self, kernel):
        """Test every kernel yields a partition of the column."""
        rng = np.random.RandomState(4)
        values = np.concatenate([rng.normal(0.0, 0.2, 10), rng.normal(20.0, 0.2, 10)])

        visitor = visit(MeanShiftVisitor(0.5, 0.01, kernel=kernel), range(20), values)

        seen = [i for idxs in visitor.get_clusters_idxs() for i in idxs]
        assert sorted(seen) == list(range(20))
        # The two groups never share a cluster
        for idxs in visitor.get_clusters_idxs():
            assert all(i < 10 for i in idxs) or all(i >= 10 for i in idxs)

    def test_missing_values(self):
        """Test missing values are left out."""
        visitor = visit(MeanShiftVisitor(1.0, 1.0), range(4), [1.0, None, 1.1, float('nan')])

        assert visitor.get_clusters_idxs() == [[0, 2]]

    def test_zero_iterations(self):
        """Test no shifting groups the original values."""
        values = [0.0, 0.5, 3.0]

        visitor = visit(MeanShiftVisitor(1.0, 0.3, max_iterations=0), range(3), values)

        assert visitor.get_clusters_idxs() == [[0, 1], [2]]

    def test_empty(self):
        """Test an empty column."""
        visitor = visit(MeanShiftVisitor(1.0, 0.1), [], [])

        assert visitor.get_result() == []
        assert visitor.get_clusters_idxs() == []
