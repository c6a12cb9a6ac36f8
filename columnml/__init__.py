"""
Columnml package for numerical analytics over table columns.

This package provides stateful visitors that consume aligned index and
column sequences and produce Fourier transforms, cluster assignments and
simple derived statistics.
"""

__version__ = '0.1.0'

from columnml.components.config import Config, ConfigManager
from columnml.components.thread_pool import ThreadPool, ThreadGranularity, parallel_for
from columnml.math.visitor import Visitor, ColumnView, squared_difference, visit
from columnml.math.fft import FFTVisitor, fft, ifft
from columnml.math.kmeans import KMeansVisitor
from columnml.math.dbscan import DBSCANVisitor
from columnml.math.affinity import AffinityPropVisitor
from columnml.math.mean_shift import MeanShiftVisitor, MeanShiftKernel
from columnml.math.stats import (
    SigmoidVisitor, SigmoidType, LossFunctionVisitor, LossFunctionType,
    VectorSimilarityVisitor, VectorSimType
)
from columnml.utils.general import VisitorError, ColumnSizeError
