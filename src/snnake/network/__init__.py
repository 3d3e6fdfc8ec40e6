"""
Network Package

Exported:
    NeuralNet:          Multi-layer feed-forward network
    WeightDistribution: Distributions for sampling weights
    as_matrix:          Coerce array-likes into matrices
"""

from snnake.network.weights    import WeightDistribution
from snnake.network.neural_net import NeuralNet, as_matrix

__all__ = [
    'NeuralNet',
    'WeightDistribution',
    'as_matrix',
]
