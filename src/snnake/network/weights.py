"""
Weight Distribution Module

Classes:
    WeightDistribution: Distributions from which fresh network weights are sampled
"""

from enum import Enum

from snnake.rng import RandomSource


class WeightDistribution(Enum):
    """
    GAUSSIAN: mean 0.0, standard deviation 1.0 (same as numpy.random.randn)
    UNIFORM:  uniform over [-1, 1)
    """
    GAUSSIAN = "gaussian"
    UNIFORM  = "uniform"

    @classmethod
    def parse(cls, value: 'str | WeightDistribution') -> 'WeightDistribution':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            options = [d.value for d in cls]
            raise ValueError(f"Invalid weight distribution '{value}'; options are {options}") from None

    def sample(self, rng: RandomSource, size: int | tuple[int, ...] | None = None):
        """A single float when 'size' is None, otherwise a numpy array of the given shape."""
        if self is WeightDistribution.GAUSSIAN:
            return rng.gaussian(size)
        return rng.uniform(-1.0, 1.0, size)
