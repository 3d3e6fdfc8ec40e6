"""
Run Package

Configuration, the abstract trial driver, and the convergence benchmark.
"""

from snnake.run.config    import Config, MUTATION_POLICIES
from snnake.run.trial     import Trial
from snnake.run.benchmark import ConvergenceBenchmark, BenchmarkExperiment

__all__ = [
    'Config',
    'MUTATION_POLICIES',
    'Trial',
    'ConvergenceBenchmark',
    'BenchmarkExperiment',
]
