"""
Trial Module

This module defines the abstract base class for drivers of the genetic optimizer.

A trial run repeatedly lets the currently loaded individual play (one agent
lifetime, one regression pass, ...), reports the resulting fitness to the
optimizer, and lets the optimizer decide when to move on to the next individual
and when to close a generation. The run lasts until the subclass decides to stop.
"""

from abc    import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snnake.genetics import NNGenetics

class Trial(ABC):
    """
    Abstract base class for a driver of the genetic optimizer.

    Subclasses must implement:
    - _reset(): Reset trial-specific state and call super()._reset()
    - _evaluate_fitness(optimizer): Play one trial with the loaded weights, return its fitness
    - _report_progress(generation, best_weights, best_fitness): Display progress after each generation
    - _final_report(): Display final results

    Subclasses can override:
    - _terminate(): Custom termination logic (default: stop after 'max_trials' trials)

    Public Methods:
        run(max_trials=None): Drive the optimizer until '_terminate()' says to stop

    Note that running a trial installs its own generation callback on the optimizer.
    """

    def __init__(self, optimizer: 'NNGenetics', suppress_output: bool = False):
        """
        Parameters:
            optimizer:       The genetic optimizer to drive
            suppress_output: If True, suppress progress and final reports
                             (useful when running many trials, as part of an experiment)
        """
        self._optimizer      : 'NNGenetics' = optimizer
        self._suppress_output: bool         = suppress_output
        self._trial_counter  : int          = 0
        self._max_trials     : int | None   = None

        # best individual of the last completed generation
        self.best_generation: int         = optimizer.generation
        self.best_weights   : list[float] = []
        self.best_fitness   : float       = 0.0

    @property
    def optimizer(self) -> 'NNGenetics':
        return self._optimizer

    def run(self, max_trials: int | None = None):
        """
        Run the trial.

        Parameters:
            max_trials: Maximum number of fitness reports; None for no limit
                        (the subclass '_terminate()' must then stop the run)
        """
        self._reset()
        self._max_trials = max_trials

        # Display progress for the generation we start from
        self._optimizer.generation_callback = self._on_generation_complete

        while not self._terminate():
            fitness = self._evaluate_fitness(self._optimizer)
            self._trial_counter += 1
            self._optimizer.record_fitness(fitness)

        if not self._suppress_output:
            self._final_report()

    def _on_generation_complete(self, generation: int, best_weights: list[float], best_fitness: float):
        self.best_generation = generation
        self.best_weights    = best_weights
        self.best_fitness    = best_fitness
        if not self._suppress_output:
            self._report_progress(generation, best_weights, best_fitness)

    @abstractmethod
    def _reset(self):
        """
        Reset the trial state before starting a new run.

        Subclasses should call super()._reset() and then
        initialize their problem-specific data.
        """
        self._trial_counter = 0

    @abstractmethod
    def _evaluate_fitness(self, optimizer: 'NNGenetics') -> float:
        """
        Play one trial using the optimizer's currently loaded weights
        (see 'optimizer.get_output()') and return its fitness.
        Higher fitness values indicate better performance.
        """
        pass

    @abstractmethod
    def _report_progress(self, generation: int, best_weights: list[float], best_fitness: float):
        """
        Report progress after each generation.

        This method is suppressed by setting 'self._suppress_output' to 'True'.
        """
        pass

    @abstractmethod
    def _final_report(self):
        """
        Produce final report at the end of the trial.

        This method is suppressed by setting 'self._suppress_output' to 'True'.
        """
        pass

    def _terminate(self) -> bool:
        """
        Determine whether the run should stop.
        This default implementation stops after 'max_trials' fitness reports.
        """
        return self._max_trials is not None and self._trial_counter >= self._max_trials
