"""
Random Source Module

Every random decision in snnake (weight sampling, parent selection, mutation
positions and values) is drawn from an explicit RandomSource instead of global
state, so that runs can be reproduced by seeding a single object.

Classes:
    RandomSource: Seedable wrapper around numpy's Generator
"""

import numpy as np


class RandomSource:
    """
    Seedable source of randomness.

    Public Methods:
        random():                  Uniform float in [0, 1)
        coin():                    Fair coin flip
        gaussian(size=None):       Standard normal sample(s)
        uniform(low, high, size):  Uniform sample(s) in [low, high)
        randint(high):             Uniform integer in [0, high)
        distinct_indices(n, k):    k distinct integers from [0, n)
    """

    def __init__(self, seed: int | None = None):
        """
        Parameters:
            seed: Seed for the underlying generator; None draws fresh OS entropy
        """
        self.seed       = seed
        self._generator = np.random.default_rng(seed)

    def random(self) -> float:
        return float(self._generator.random())

    def coin(self) -> bool:
        return self._generator.random() < 0.5

    def gaussian(self, size: int | tuple[int, ...] | None = None):
        """Standard normal sample(s): mean 0.0, standard deviation 1.0."""
        if size is None:
            return float(self._generator.standard_normal())
        return self._generator.standard_normal(size)

    def uniform(self, low: float = -1.0, high: float = 1.0, size: int | tuple[int, ...] | None = None):
        if size is None:
            return float(self._generator.uniform(low, high))
        return self._generator.uniform(low, high, size)

    def randint(self, high: int) -> int:
        return int(self._generator.integers(0, high))

    def distinct_indices(self, n: int, k: int) -> list[int]:
        """
        Draw k distinct indices uniformly from range(n).

        Raises:
            ValueError: if k > n or k < 0
        """
        if k < 0 or k > n:
            raise ValueError(f"Cannot draw {k} distinct indices from a range of {n}")
        return [int(i) for i in self._generator.choice(n, size=k, replace=False)]
