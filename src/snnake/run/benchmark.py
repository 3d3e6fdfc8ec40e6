"""
Convergence Benchmark Module

Measures how many fitness reports the genetic optimizer needs to evolve the
weights of a (size x 1) network into a random target pattern.

Each weight is mapped onto one of 'value_range' buckets; the target is a random
bucket per weight, and fitness is the fraction of the maximum possible distance
that the current bucket pattern is away from the target (1.0 meaning a match).

Classes:
    ConvergenceBenchmark: One benchmark run, driven as a Trial
    BenchmarkExperiment:  Many independent runs, optionally in parallel (joblib)
"""

import copy
import math
from joblib import Parallel, delayed
from sys    import stdout

from snnake.genetics.nn_genetics import NNGenetics
from snnake.network.neural_net   import NeuralNet
from snnake.rng                  import RandomSource
from snnake.run.config           import Config
from snnake.run.trial            import Trial

class ConvergenceBenchmark(Trial):
    """
    Drive an in-memory optimizer until the bucketed weights match the target
    (or 'max_attempts' fitness reports have been made).

    Public Attributes:
        size:        Number of weights, i.e. the input size of the (size x 1) network
        value_range: Number of buckets each weight is mapped to
        target:      Bucket pattern to match
        matched:     Whether the target was matched
        attempts:    Number of fitness reports made so far
    """

    def __init__(self,
                 size           : int            = 200,
                 value_range    : int            = 26,
                 max_attempts   : int            = 100_000_000,
                 config         : Config | None  = None,
                 seed           : int | None     = None,
                 report_every   : int            = 1000,
                 suppress_output: bool           = False):
        """
        Parameters:
            size:            Number of weights to evolve
            value_range:     Number of buckets per weight
            max_attempts:    Give up after this many fitness reports
            config:          Genetic parameters; 'iterations_per_individual' is forced
                             to 1 and nothing is written to disk
            seed:            Seed for the target, the network and the optimizer
            report_every:    Print progress every this many generations
            suppress_output: Suppress progress and final reports
        """
        if size < 1 or value_range < 1:
            raise ValueError(f"size and value_range must be positive; got {size}, {value_range}")

        config = copy.deepcopy(config) if config is not None else Config()
        config.iterations_per_individual = 1
        config.write_to_file             = False

        rng       = RandomSource(seed)
        optimizer = NNGenetics("NNGO", NeuralNet(size, 1, rng=rng), config, rng=rng)
        super().__init__(optimizer, suppress_output)

        self.size         = size
        self.value_range  = value_range
        self.max_attempts = max_attempts
        self.report_every = report_every
        self.target       = [rng.randint(value_range) for _ in range(size)]
        self.matched      = False
        self.attempts     = 0
        self.closest      = []

    def bucket(self, weight: float) -> int:
        """Map a weight onto [0, value_range); the fractional part is truncated."""
        i = int(math.fmod(weight * self.value_range, self.value_range))
        if i < 0:
            i += self.value_range
        return i

    def buckets(self, weights) -> list[int]:
        return [self.bucket(w) for w in weights]

    def fitness(self, pattern: list[int]) -> float:
        total = self.value_range * self.size
        delta = sum(abs(p - t) for p, t in zip(pattern, self.target))
        return (total - delta) / total

    def _reset(self):
        super()._reset()
        self.matched  = False
        self.attempts = 0
        self.closest  = []
        if not self._suppress_output:
            print(f"Data to match:\n{self.target}")

    def _terminate(self) -> bool:
        if self.matched or self._trial_counter >= self.max_attempts:
            return True
        pattern = self.buckets(self._optimizer.net.get_weights())
        self.closest = pattern
        if pattern == self.target:
            self.matched = True
            return True
        return super()._terminate()

    def _evaluate_fitness(self, optimizer: NNGenetics) -> float:
        self.attempts += 1
        return self.fitness(self.closest)

    def _report_progress(self, generation: int, best_weights: list[float], best_fitness: float):
        if generation % self.report_every == 0:
            print(f"Generation {generation}; fitness {best_fitness * 100}%")
            if self.size < 30:
                print(self.buckets(best_weights))

    def _final_report(self):
        if self.matched:
            print(f"Data matched after {self.attempts} attempts")
        else:
            print(f"Data never matched after {self.attempts} attempts")
            print(f"Closest weights: {self.best_weights}")
        print(self.closest)

    def results(self) -> dict:
        return {"matched"    : self.matched,
                "attempts"   : self.attempts,
                "generations": self._optimizer.generation,
                "fitness"    : self.fitness(self.closest) if self.closest else 0.0}


class BenchmarkExperiment:
    """
    Run several independent convergence benchmarks and aggregate their results.

    Public Methods:
        run(num_jobs=1): Run all benchmarks, return the list of per-run results
        summary():       Aggregated statistics of the last run
        final_report():  Print the summary
    """

    def __init__(self,
                 num_runs    : int,
                 size        : int           = 200,
                 value_range : int           = 26,
                 max_attempts: int           = 100_000_000,
                 config      : Config | None = None,
                 base_seed   : int | None    = None):
        """
        Parameters:
            num_runs:  Number of independent benchmarks
            base_seed: Run n (1-indexed) is seeded with base_seed + n; unseeded if None
        """
        self._num_runs     = num_runs
        self._size         = size
        self._value_range  = value_range
        self._max_attempts = max_attempts
        self._config       = config
        self._base_seed    = base_seed
        self._results      : list[dict] = []

    def run(self, num_jobs: int = 1) -> list[dict]:
        """
        Parameters:
            num_jobs:  1 = serial (default)
                      -1 = use all available CPU cores
                      >1 = use specified number of processes
        """
        if num_jobs == 1:
            self._results = [self._run_one(n) for n in range(1, self._num_runs + 1)]
        else:
            self._results = Parallel(num_jobs)(
                delayed(self._run_one)(n) for n in range(1, self._num_runs + 1)
            )
        return self._results

    def _run_one(self, run_number: int) -> dict:
        stdout.write(f"Starting run {run_number:03d} of {self._num_runs}...\r")
        stdout.flush()

        seed = None if self._base_seed is None else self._base_seed + run_number
        benchmark = ConvergenceBenchmark(self._size, self._value_range, self._max_attempts,
                                         config=self._config, seed=seed, suppress_output=True)
        benchmark.run()
        results = benchmark.results()
        results["run_number"] = run_number
        return results

    def summary(self) -> dict:
        matched  = [r for r in self._results if r["matched"]]
        attempts = [r["attempts"] for r in matched]
        return {"runs"         : len(self._results),
                "matched"      : len(matched),
                "mean_attempts": sum(attempts) / len(attempts) if attempts else None,
                "min_attempts" : min(attempts) if attempts else None,
                "max_attempts" : max(attempts) if attempts else None}

    def final_report(self):
        summary = self.summary()
        print(f"\nMatched in {summary['matched']} of {summary['runs']} runs")
        if summary["matched"]:
            print(f"Attempts: mean {summary['mean_attempts']:.1f}, "
                  f"min {summary['min_attempts']}, max {summary['max_attempts']}")
