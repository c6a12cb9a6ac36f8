"""
Partition checks shared by all clustering visitors.
"""

import os
import sys

import numpy as np
import pytest

# Add the parent directory to the path to import the module
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from columnml.math.affinity import AffinityPropVisitor
from columnml.math.dbscan import DBSCANVisitor
from columnml.math.kmeans import KMeansVisitor
from columnml.math.mean_shift import MeanShiftVisitor
from columnml.math.visitor import visit


def column_with_gaps():
    """Three groups of values with missing entries mixed in."""
    rng = np.random.RandomState(8)
    values = np.concatenate([
        rng.normal(0.0, 0.3, 12),
        rng.normal(8.0, 0.3, 12),
        rng.normal(20.0, 0.3, 12),
    ])
    values[[3, 17, 30]] = np.nan
    return values


def collect(visitor):
    """All positions in clusters and noise, in the order they appear."""
    positions = [i for idxs in visitor.get_clusters_idxs() for i in idxs]
    if hasattr(visitor, 'get_noisy_idxs'):
        positions += visitor.get_noisy_idxs()
    return positions


VISITORS = [
    pytest.param(lambda: KMeansVisitor(3, 100, seed=0), id='kmeans'),
    pytest.param(lambda: DBSCANVisitor(3, 0.5), id='dbscan'),
    pytest.param(lambda: MeanShiftVisitor(0.5, 0.01), id='mean_shift'),
    pytest.param(lambda: AffinityPropVisitor(200), id='affinity'),
]


class TestPartition:
    """Clusters and noise cover the present positions exactly once."""

    @pytest.mark.parametrize('make_visitor', VISITORS)
    def test_partition(self, make_visitor):
        """Test no position is lost or repeated."""
        values = column_with_gaps()
        expected = np.flatnonzero(~np.isnan(values)).tolist()

        visitor = visit(make_visitor(), range(len(values)), values)
        positions = collect(visitor)

        assert sorted(positions) == expected
        assert len(positions) == len(set(positions))

    @pytest.mark.parametrize('make_visitor', VISITORS)
    def test_idxs_in_column_order(self, make_visitor):
        """Test positions inside each group are increasing."""
        visitor = visit(make_visitor(), range(36), column_with_gaps())

        for idxs in visitor.get_clusters_idxs():
            assert idxs == sorted(idxs)

    def test_affinity_one_exemplar_per_group(self):
        """Test affinity propagation finds one exemplar in each group of values."""
        visitor = visit(AffinityPropVisitor(200), range(36), column_with_gaps())

        exemplars = visitor.get_exemplar_idxs()

        assert len(exemplars) == 3
        for exemplar, idxs in zip(exemplars, visitor.get_clusters_idxs()):
            assert exemplar in idxs

    @pytest.mark.parametrize('make_visitor', VISITORS)
    def test_reusable(self, make_visitor):
        """Test a visitor gives the same result on a second column visit."""
        values = column_with_gaps()
        visitor = make_visitor()

        first = collect(visit(visitor, range(36), values))
        visit(visitor, range(5), [1.0, 2.0, 3.0, 4.0, 5.0])
        second = collect(visit(visitor, range(36), values))

        assert first == second
