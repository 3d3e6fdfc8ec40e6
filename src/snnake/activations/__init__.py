"""
Activations Package

This package provides the activation functions used by the neural network,
each paired with its derivative (needed for backpropagation).

Exported:
    activations:    Dictionary mapping activation names to Activation pairs
    Activation:     (name, activate, prime) named tuple
    get_activation: Look up an Activation by name
    Individual functions: sigmoid_activation, sigmoid_prime, tanh_activation, tanh_prime,
                          relu_activation, relu_prime, identity_activation, identity_prime
"""

from snnake.activations.basic_activations import (
    Activation,
    activations,
    get_activation,
    sigmoid_activation,
    sigmoid_prime,
    tanh_activation,
    tanh_prime,
    relu_activation,
    relu_prime,
    identity_activation,
    identity_prime
)

__all__ = [
    'Activation',
    'activations',
    'get_activation',
    'sigmoid_activation',
    'sigmoid_prime',
    'tanh_activation',
    'tanh_prime',
    'relu_activation',
    'relu_prime',
    'identity_activation',
    'identity_prime'
]
