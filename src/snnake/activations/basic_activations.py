import autograd.numpy as np  # type: ignore
from typing import Callable, NamedTuple

def sigmoid_activation(z):
    # clip to prevent overflow when calculating exp
    z = np.clip(z, -500.0, 500.0)
    return 1.0 / (1.0 + np.exp(-z))

def sigmoid_prime(z):
    s = sigmoid_activation(z)
    return s * (1.0 - s)

def tanh_activation(z):
    return np.tanh(z)

def tanh_prime(z):
    return 1.0 - np.tanh(z) ** 2

def relu_activation(z):
    return np.maximum(0.0, z)

def relu_prime(z):
    # the derivative at 0 is taken to be 0
    return np.where(z > 0.0, 1.0, 0.0)

def identity_activation(z):
    return z

def identity_prime(z):
    return np.ones_like(z)


class Activation(NamedTuple):
    """An activation function paired with its derivative."""
    name    : str
    activate: Callable
    prime   : Callable


activations = {
    "sigmoid" : Activation("sigmoid",  sigmoid_activation,  sigmoid_prime),
    "tanh"    : Activation("tanh",     tanh_activation,     tanh_prime),
    "relu"    : Activation("relu",     relu_activation,     relu_prime),
    "identity": Activation("identity", identity_activation, identity_prime),
    }

def get_activation(name: 'str | Activation') -> Activation:
    """
    Look up an activation by name. Activation instances are returned as-is.

    Raises:
        ValueError: if the name is unknown
    """
    if isinstance(name, Activation):
        return name
    try:
        return activations[name]
    except KeyError:
        raise ValueError(f"Invalid activation function '{name}'; options are {sorted(activations)}") from None
