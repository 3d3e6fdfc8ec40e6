"""
sNNake - neural networks evolved by a genetic algorithm.

This package provides a small dense matrix engine, a fully connected
feed-forward network built on it, and a generational genetic optimizer that
evolves the network's weights from externally reported fitness scores,
persisting its population so that training resumes across restarts.

Main components:
- linalg: Dense matrices, their operations and shape checks
- activations: Activation functions and their derivatives
- network: Feed-forward network, propagation, cost and gradient
- genetics: Genetic optimizer and its file storage
- run: Configuration, trial driver and convergence benchmark

Example:
    >>> from snnake import Config, NeuralNet, NNGenetics
    >>> optimizer = NNGenetics("sNNake", NeuralNet(6, 6, 3), Config())
    >>> output = optimizer.get_output([[0.1, 0.5, 0.0, 1.0, 0.2, 0.3]])
    >>> optimizer.record_fitness(12.0)
"""

__version__ = "0.1.0"

# Import main classes for convenient access; 'run' precedes 'genetics'
from snnake.exceptions import (SnnakeError, DimensionError, WeightSizeMismatch, BreedingError,
                               ConfigurationError, StorageError, DuplicateIndividualWarning)
from snnake.rng        import RandomSource
from snnake.linalg     import Matrix, MatrixView, Op, Normalizer
from snnake.network    import NeuralNet, WeightDistribution
from snnake.run        import Config, Trial, ConvergenceBenchmark, BenchmarkExperiment
from snnake.genetics   import NNGenetics, Phase, GeneticsStorage, GenerationRecord

__all__ = [
    'SnnakeError',
    'DimensionError',
    'WeightSizeMismatch',
    'BreedingError',
    'ConfigurationError',
    'StorageError',
    'DuplicateIndividualWarning',
    'RandomSource',
    'Matrix',
    'MatrixView',
    'Op',
    'Normalizer',
    'NeuralNet',
    'WeightDistribution',
    'Config',
    'Trial',
    'ConvergenceBenchmark',
    'BenchmarkExperiment',
    'NNGenetics',
    'Phase',
    'GeneticsStorage',
    'GenerationRecord',
]
