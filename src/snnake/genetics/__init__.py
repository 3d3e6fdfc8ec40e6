"""
Genetics Package

This package implements the genetic optimizer that evolves the weights of a
neural network, and the file storage that lets it resume across restarts.

Modules:
    nn_genetics: The generational genetic optimizer
    storage:     Population and best-of-generation persistence

Exported Classes:
    NNGenetics:       Genetic optimizer owning one NeuralNet
    Phase:            Phases of the optimizer's life cycle
    GeneticsStorage:  File storage of one optimizer
    GenerationRecord: Best individual of one generation
"""

from snnake.genetics.storage     import GenerationRecord, GeneticsStorage, weights_to_string, string_to_weights
from snnake.genetics.nn_genetics import NNGenetics, Phase

__all__ = [
    'NNGenetics',
    'Phase',
    'GeneticsStorage',
    'GenerationRecord',
    'weights_to_string',
    'string_to_weights',
]
