"""
Neural Network Genetics Module

This module implements NNGenetics, a generational genetic optimizer for the
weights of a single NeuralNet. The optimizer never evaluates anything itself:
a driver (a game loop, for instance) runs trials with the currently loaded
weights and reports one fitness score per trial.

Life cycle:
    AWAITING_TRIALS     fitness scores are accumulated for the loaded weights
    POPULATION_FILLING  the averaged fitness was recorded, the population is not full yet
    GENERATION_CLOSE    the population is full: select, breed, persist, start over

Classes:
    Phase:      The phases above
    NNGenetics: The genetic optimizer
"""

import warnings
from collections import deque
from enum        import Enum
from pathlib     import Path
from typing      import Callable, Iterable, Sequence

from snnake.exceptions         import BreedingError, ConfigurationError, DuplicateIndividualWarning
from snnake.genetics.storage   import GenerationRecord, GeneticsStorage
from snnake.network.neural_net import NeuralNet
from snnake.rng                import RandomSource
from snnake.run.config         import Config, MUTATION_POLICIES

GenerationCallback = Callable[[int, list[float], float], None]

class Phase(Enum):
    AWAITING_TRIALS    = "awaiting_trials"
    POPULATION_FILLING = "population_filling"
    GENERATION_CLOSE   = "generation_close"

class NNGenetics:
    """
    Genetic optimizer owning one NeuralNet.

    Each individual is a flat weight vector. Once 'iterations_per_individual'
    fitness scores have been recorded for the loaded individual, their average is
    stored in the population and the next individual is loaded. When the population
    holds 'population_size' individuals the generation closes: the fittest are kept,
    bred in pairs (crossover + mutation) into a new population, and the new
    population together with the best individual are persisted, so that a later
    optimizer built with the same key picks up where this one left off.

    Public Attributes:
        key:                       Identifier of the optimizer (and of its files)
        net:                       The neural network whose weights are evolved
        storage:                   File storage, or None if 'write_to_file' is off
        population_size:           Individuals per generation
        population_retention:      Fraction of the population kept for breeding
        mutation_rate:             Probability that a child is mutated
        mutations_per_list:        Number of weights changed by one mutation
        mutation_increment:        Maximum magnitude of an incremental mutation
        mutation_policy:           'replace', 'increment' or 'mixed'
        iterations_per_individual: Trials averaged into one individual's fitness
        cross_points:              Crossover boundaries, always starting with 0

    Public Properties:
        generation:          Index of the generation currently being evaluated
        phase:               Current Phase
        population:          Snapshot of the population: weight tuple => fitness
        best_record:         Best individual of the last closed generation, or None
        generation_callback: Called as (generation, best_weights, best_fitness)

    Public Methods:
        get_output(input):              Output of the net with the loaded weights
        record_fitness(score):          Report the fitness of one trial
        add_individual(weights, score): Insert an individual into the population
        close_generation():             Select, breed, persist and start the next generation
        crossover(first, second):       Combine two parents into one child
        breed(first, second):           The two symmetric children of two parents
        mutate(child):                  Mutate a child in place
        retained_count(n):              Number of individuals kept for breeding out of n
    """

    def __init__(self,
                 key                : str,
                 net                : NeuralNet,
                 config             : Config | None             = None,
                 generation_callback: GenerationCallback | None = None,
                 rng                : RandomSource | None       = None,
                 storage_dir        : 'str | Path | None'       = None):
        """
        Build the optimizer and load the persisted state of 'key', if any.

        Parameters:
            key:                 Identifier of the optimizer; selects its files
            net:                 The network whose weights are evolved
            config:              Genetic parameters ([GENETICS], [STORAGE]); defaults if None
            generation_callback: Notified of every completed generation
            rng:                 Source of randomness; a new one seeded from config.seed if None
            storage_dir:         Overrides the storage directory of the configuration

        Raises:
            ConfigurationError: if the genetic parameters are invalid
        """
        config = config if config is not None else Config()

        self.key                      : str       = key
        self.net                      : NeuralNet = net
        self.population_size          : int       = config.population_size
        self.population_retention     : float     = config.population_retention
        self.mutation_rate            : float     = config.mutation_rate
        self.mutations_per_list       : int       = config.mutations_per_list
        self.mutation_increment       : float     = config.mutation_increment
        self.mutation_policy          : str       = config.mutation_policy
        self.iterations_per_individual: int       = config.iterations_per_individual
        self.cross_points             : list[int] = sorted(config.cross_points)
        self._validate()
        if not self.cross_points or self.cross_points[0] != 0:
            self.cross_points.insert(0, 0)

        self._rng = rng if rng is not None else RandomSource(config.seed)

        self.storage = None
        if config.write_to_file:
            root = Path(storage_dir) if storage_dir is not None else config.resolve_storage_dir()
            self.storage = GeneticsStorage(key, root)

        self._population  : dict[tuple[float, ...], float] = {}
        self._trial_scores: list[float]                    = []
        self._pending     : deque[list[float]]             = deque()
        self._best_record : GenerationRecord | None        = None
        self._generation  : int                            = 0
        self._phase       : Phase                          = Phase.AWAITING_TRIALS
        self._generation_callback: GenerationCallback | None = None

        self._resume()
        if generation_callback is not None:
            self.generation_callback = generation_callback

    @classmethod
    def from_config(cls,
                    config             : Config,
                    generation_callback: GenerationCallback | None = None,
                    rng                : RandomSource | None       = None) -> 'NNGenetics':
        """
        Build the network described by [NETWORK] and an optimizer for it, keyed by
        the configured 'key'. Both share the same source of randomness.
        """
        rng = rng if rng is not None else RandomSource(config.seed)
        net = NeuralNet.from_config(config, rng)
        return cls(config.key, net, config, generation_callback=generation_callback, rng=rng)

    def _validate(self):
        weight_count = self.net.weight_count
        if self.mutations_per_list > weight_count:
            raise ConfigurationError(f"Mutations per list ({self.mutations_per_list}) exceeds weight count ({weight_count})")
        if self.mutations_per_list < 0:
            raise ConfigurationError(f"mutations_per_list cannot be negative; currently {self.mutations_per_list}")
        if self.population_size < 2:
            raise ConfigurationError(f"population_size should be at least 2; currently {self.population_size}")
        if not 0.0 <= self.population_retention < 1.0:
            raise ConfigurationError(f"population_retention should be in [0, 1); currently {self.population_retention}")
        if not 0.0 <= self.mutation_rate <= 1.0:
            raise ConfigurationError(f"mutation_rate should be in [0, 1]; currently {self.mutation_rate}")
        if self.mutation_increment <= 0.0:
            raise ConfigurationError(f"mutation_increment should be positive; currently {self.mutation_increment}")
        if self.mutation_policy not in MUTATION_POLICIES:
            raise ConfigurationError(f"mutation_policy should be one of {MUTATION_POLICIES}; currently {self.mutation_policy}")
        if self.iterations_per_individual < 1:
            raise ConfigurationError(f"iterations_per_individual should be at least 1; currently {self.iterations_per_individual}")
        if self.cross_points and self.cross_points[0] < 0:
            raise ConfigurationError(f"Crosspoints are indices and cannot be less than 0; cross {self.cross_points[0]} found")
        if self.cross_points and self.cross_points[-1] > weight_count:
            raise ConfigurationError(f"Crosspoints are indices and cannot exceed the weight count; "
                                     f"cross {self.cross_points[-1]} found when weight count is {weight_count}")

    def _resume(self):
        """
        Pick up the generation index of the last persisted best record and the
        persisted population. Without a persisted population, the net's current
        weights are the first individual.
        """
        if self.storage is not None:
            self._best_record = self.storage.last_best()
            if self._best_record is not None and self._best_record.generation is not None:
                self._generation = self._best_record.generation
            self._pending = deque(self.storage.read_population())
        self._generation += 1
        if self._pending:
            self.net.set_weights(self._pending.popleft())
        self._phase = Phase.AWAITING_TRIALS

    # ---------------------------------------------------------------------
    # Properties
    # ---------------------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def population(self) -> dict[tuple[float, ...], float]:
        return dict(self._population)

    @property
    def best_record(self) -> GenerationRecord | None:
        return self._best_record

    @property
    def generation_callback(self) -> GenerationCallback | None:
        return self._generation_callback

    @generation_callback.setter
    def generation_callback(self, callback: GenerationCallback | None):
        """
        Setting a callback notifies it right away of the current generation, along
        with the last persisted best individual (or [] and 0.0 if there is none).
        """
        self._generation_callback = callback
        if callback is not None:
            if self._best_record is None:
                callback(self._generation, [], 0.0)
            else:
                callback(self._generation, list(self._best_record.weights), self._best_record.fitness)

    # ---------------------------------------------------------------------
    # Driver interface
    # ---------------------------------------------------------------------

    def get_output(self, input):
        """Output of the network, using the currently loaded weights."""
        return self.net.output(input)

    def record_fitness(self, score: float) -> None:
        """
        Record the fitness of one trial of the loaded individual.

        After 'iterations_per_individual' trials the average fitness is stored
        in the population and either the next individual is loaded, or, when the
        population is full, the generation is closed.
        """
        self._trial_scores.append(float(score))
        if len(self._trial_scores) < self.iterations_per_individual:
            self._phase = Phase.AWAITING_TRIALS
            return

        average = sum(self._trial_scores) / len(self._trial_scores)
        self._trial_scores.clear()
        self.add_individual(self.net.get_weights(), average)

        if len(self._population) >= self.population_size:
            self.close_generation()
        else:
            self._phase = Phase.POPULATION_FILLING
            self._load_next()

    def add_individual(self, weights: Iterable[float], fitness: float) -> None:
        """
        Store an individual in the population.

        The population is keyed by weight values: an individual whose weights are
        already present replaces the fitness of the existing entry, and a
        DuplicateIndividualWarning is issued.
        """
        key = tuple(float(w) for w in weights)
        if key in self._population:
            warnings.warn(f"Generation {self._generation}: an individual with identical weights is already "
                          f"in the population; its fitness {self._population[key]} is replaced by {fitness}",
                          DuplicateIndividualWarning, stacklevel=2)
        self._population[key] = float(fitness)

    def _load_next(self):
        # fresh random weights once the bred population has been used up
        if self._pending:
            self.net.set_weights(self._pending.popleft())
        else:
            self.net.randomize_weights()
        self._phase = Phase.AWAITING_TRIALS

    # ---------------------------------------------------------------------
    # Generation close
    # ---------------------------------------------------------------------

    def retained_count(self, n: int) -> int:
        """
        Number of individuals, out of n ranked by fitness, that are kept for breeding:
        the top 'population_retention' fraction, but never fewer than 2.
        """
        start = min(int(n * (1.0 - self.population_retention)), n - 2)
        return n - max(start, 0)

    def close_generation(self) -> None:
        """
        Close the current generation.

        The population is ranked by fitness and its top slice retained. Pairs of
        distinct parents, picked uniformly from the retained slice, produce two
        children each until 'population_size' children exist; every child is
        mutated with probability 'mutation_rate'. The children and the best
        individual are then persisted, the generation index advances, the first
        child is loaded and the generation callback is notified.

        The population, best record and generation index are left untouched
        if persisting fails; the error propagates.

        Raises:
            BreedingError: if the population holds fewer than 2 individuals
        """
        if len(self._population) < 2:
            raise BreedingError(f"At least 2 individuals are needed to breed; population holds {len(self._population)}")
        self._phase = Phase.GENERATION_CLOSE

        best_weights, best_fitness = max(self._population.items(), key=lambda item: item[1])
        ranked  = sorted(self._population, key=lambda weights: self._population[weights])
        parents = [list(weights) for weights in ranked[len(ranked) - self.retained_count(len(ranked)):]]

        children = []
        while len(children) < self.population_size:
            i, j = self._rng.distinct_indices(len(parents), 2)
            for child in self.breed(parents[i], parents[j]):
                if self._rng.random() < self.mutation_rate:
                    self.mutate(child)
                children.append(child)
        children = children[:self.population_size]

        record = GenerationRecord(self._generation, best_weights, best_fitness)
        if self.storage is not None:
            self.storage.commit(children, record)

        self._population.clear()
        self._best_record = record
        self._generation += 1
        self._pending = deque(children)
        self._load_next()

        if self._generation_callback is not None:
            self._generation_callback(self._generation, list(best_weights), best_fitness)

    # ---------------------------------------------------------------------
    # Genetic operators
    # ---------------------------------------------------------------------

    def crossover(self, first: Sequence[float], second: Sequence[float], verify: bool = False) -> list[float]:
        """
        Given parents 'first' & 'second' of the same length, and the cross points
        ranging from 0 to len(first) inclusive, generate a child of the same length
        by alternating slices of both parents, starting with the first parent.

        Raises:
            BreedingError: (only if 'verify') if the parents' lengths differ from each
                           other or from the weight count, or a cross point lies
                           beyond the end of the parents
        """
        if verify:
            if len(first) != len(second):
                raise BreedingError(f"Crossover parents do not have the same size: {len(first)}, {len(second)}")
            if len(first) != self.net.weight_count:
                raise BreedingError(f"Crossover parent size does not match weight count: "
                                    f"{len(first)}, {self.net.weight_count}")
            if self.cross_points[-1] > len(first):
                raise BreedingError(f"Crosspoints are indices and cannot exceed the max index of the parents; "
                                    f"cross {self.cross_points[-1]} found when parent size is {len(first)}")

        bounds = list(self.cross_points)
        if bounds[-1] < len(first):
            bounds.append(len(first))

        child      = []
        pick_first = True
        for start, end in zip(bounds[:-1], bounds[1:]):
            child.extend((first if pick_first else second)[start:end])
            pick_first = not pick_first
        return child

    def breed(self, first: Sequence[float], second: Sequence[float]) -> tuple[list[float], list[float]]:
        """
        Returns a pair of children from two parents.
        The first child starts with the first parent, the second child with the second parent.
        """
        return self.crossover(first, second, verify=True), self.crossover(second, first)

    def mutate(self, child: list[float]) -> None:
        """
        Change exactly 'mutations_per_list' distinct, randomly chosen weights of
        'child', in place, according to the mutation policy.
        """
        for i in self._rng.distinct_indices(len(child), self.mutations_per_list):
            policy = self.mutation_policy
            if policy == 'mixed':
                policy = 'replace' if self._rng.coin() else 'increment'
            if policy == 'replace':
                child[i] = self.net.random_weight()
            else:
                child[i] = child[i] + self._increment()

    def _increment(self) -> float:
        # magnitude in (0, mutation_increment], random sign
        magnitude = (1.0 - self._rng.random()) * self.mutation_increment
        return magnitude if self._rng.coin() else -magnitude
