"""
Visitors for columnml.

This module contains implementations of:
- The visitor contract and column views
- Forward and inverse Fourier transforms
- K-means, DBSCAN, affinity propagation and mean-shift clustering
- Sigmoid, loss function and vector similarity visitors
"""

from columnml.math.visitor import Visitor, ColumnView, squared_difference, visit
from columnml.math.fft import FFTVisitor, fft, ifft
from columnml.math.kmeans import KMeansVisitor
from columnml.math.dbscan import DBSCANVisitor
from columnml.math.affinity import AffinityPropVisitor
from columnml.math.mean_shift import MeanShiftVisitor, MeanShiftKernel, kernel_weight
from columnml.math.stats import (
    SigmoidVisitor, SigmoidType, LossFunctionVisitor, LossFunctionType,
    VectorSimilarityVisitor, VectorSimType
)

__all__ = [
    'Visitor',
    'ColumnView',
    'squared_difference',
    'visit',
    'FFTVisitor',
    'fft',
    'ifft',
    'KMeansVisitor',
    'DBSCANVisitor',
    'AffinityPropVisitor',
    'MeanShiftVisitor',
    'MeanShiftKernel',
    'kernel_weight',
    'SigmoidVisitor',
    'SigmoidType',
    'LossFunctionVisitor',
    'LossFunctionType',
    'VectorSimilarityVisitor',
    'VectorSimType',
]
