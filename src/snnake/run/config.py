import configparser
import os
from pathlib import Path

from snnake.activations     import activations
from snnake.network.weights import WeightDistribution

MUTATION_POLICIES = ('replace', 'increment', 'mixed')

class Config:

    @staticmethod
    def _parse_int_list(raw_value):
        """
        Parse a comma-separated list of integers; lists are returned as-is.
        """
        if isinstance(raw_value, (list, tuple)):
            return [int(v) for v in raw_value]
        return [int(v.strip()) for v in raw_value.split(',') if v.strip()]

    @staticmethod
    def _parse_choice(name, raw_value, options):
        value = str(raw_value).strip().lower()
        if value not in options:
            raise ValueError(f"Invalid {name} '{raw_value}'; options are {list(options)}")
        return value

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or create a Config holding defaults.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, creates a default Config, suitable for manual attribute setting.
        """

        # [NETWORK] defaults
        self.layer_sizes         = [6, 6, 3]
        self.activation          = 'sigmoid'
        self.weight_distribution = WeightDistribution.GAUSSIAN

        # [GENETICS] defaults
        self.population_size           = 100
        self.population_retention      = 0.2
        self.mutation_rate             = 0.2
        self.mutations_per_list        = 2
        self.mutation_increment        = 1e-4
        self.mutation_policy           = 'mixed'
        self.iterations_per_individual = 3
        self.cross_points              = [2]

        # [STORAGE] defaults
        self.key           = 'snnake'
        self.storage_dir   = None
        self.write_to_file = True

        # [RANDOM] defaults
        self.seed = None

        if config_file is None:
            return

        if not os.path.exists(config_file):
            raise FileNotFoundError(f"Configuration file '{config_file}' not found")

        parser = configparser.ConfigParser()
        parser.read(config_file)

        # Helper function to safely parse values; missing sections
        # or options fall back to the defaults set above
        def get_value(section, key, value_type, default):
            try:
                raw_value = parser.get(section, key)
            except (configparser.NoSectionError, configparser.NoOptionError):
                return default
            if raw_value.strip().lower() == 'none':
                return None
            if value_type == int:
                return parser.getint(section, key)
            elif value_type == float:
                return parser.getfloat(section, key)
            elif value_type == bool:
                return parser.getboolean(section, key)
            return raw_value.strip()

        # [NETWORK]

        # Number of neurons in each layer, from the input layer to the output layer.
        # The input layer size must match the length of the feature vector fed to the network.
        layer_sizes = get_value('NETWORK', 'layer_sizes', str, None)
        if layer_sizes is not None:
            self.layer_sizes = self._parse_int_list(layer_sizes)

        # Activation function applied at every layer (see 'basic_activations.py').
        self.activation = self._parse_choice(
            'activation', get_value('NETWORK', 'activation', str, self.activation), activations)

        # Distribution from which fresh weights are sampled.
        # Allowed values:
        #   "gaussian" - mean 0.0, standard deviation 1.0
        #   "uniform"  - uniform over [-1, 1)
        self.weight_distribution = WeightDistribution.parse(
            get_value('NETWORK', 'weight_distribution', str, self.weight_distribution))

        # [GENETICS]

        # Number of individuals evaluated in each generation.
        self.population_size = get_value('GENETICS', 'population_size', int, self.population_size)

        # Fraction of the population (the fittest) allowed to breed the next generation.
        # At least 2 individuals are always retained.
        self.population_retention = get_value('GENETICS', 'population_retention', float, self.population_retention)

        # Probability that a child is mutated.
        self.mutation_rate = get_value('GENETICS', 'mutation_rate', float, self.mutation_rate)

        # Number of distinct weights changed when a child is mutated.
        self.mutations_per_list = get_value('GENETICS', 'mutations_per_list', int, self.mutations_per_list)

        # Maximum magnitude of an incremental weight mutation.
        self.mutation_increment = get_value('GENETICS', 'mutation_increment', float, self.mutation_increment)

        # How a mutated weight changes.
        # Allowed values:
        #   "replace"   - replaced by a freshly sampled weight
        #   "increment" - nudged by a signed amount of magnitude <= mutation_increment
        #   "mixed"     - either of the above, with equal probability
        self.mutation_policy = self._parse_choice(
            'mutation_policy', get_value('GENETICS', 'mutation_policy', str, self.mutation_policy), MUTATION_POLICIES)

        # Number of trials whose fitness is averaged into the fitness of one individual.
        self.iterations_per_individual = \
            get_value('GENETICS', 'iterations_per_individual', int, self.iterations_per_individual)

        # Indices at which crossover switches from one parent to the other.
        # Index 0 and the end of the weight vector are implied.
        cross_points = get_value('GENETICS', 'cross_points', str, None)
        if cross_points is not None:
            self.cross_points = self._parse_int_list(cross_points)

        # [STORAGE]

        # Identifier of the optimizer; its files live in '<storage_dir>/<key>/'.
        self.key = get_value('STORAGE', 'key', str, self.key)

        # Root directory of the persisted population and best-of-generation files.
        # Use "None" for $SNNAKE_HOME, or '~/.snnake' if that is not set either.
        self.storage_dir = get_value('STORAGE', 'storage_dir', str, self.storage_dir)

        # Whether the optimizer persists its state at all.
        self.write_to_file = get_value('STORAGE', 'write_to_file', bool, self.write_to_file)

        # [RANDOM]

        # Seed for every random decision; "None" for a fresh, unseeded run.
        self.seed = get_value('RANDOM', 'seed', int, self.seed)

    def resolve_storage_dir(self) -> Path:
        """
        The directory under which optimizer files are stored: 'storage_dir' if set,
        otherwise the SNNAKE_HOME environment variable, otherwise '~/.snnake'.
        """
        if self.storage_dir is not None:
            return Path(self.storage_dir).expanduser()
        env_dir = os.environ.get('SNNAKE_HOME')
        if env_dir:
            return Path(env_dir).expanduser()
        return Path.home() / '.snnake'

    def __setattr__(self, name, value):
        """
        Parse list-valued and enumerated options whenever they are set, so that
        config.cross_points = "2, 5" or config.weight_distribution = "uniform" work.
        """
        if name in ('layer_sizes', 'cross_points'):
            value = self._parse_int_list(value)
        elif name == 'weight_distribution':
            value = WeightDistribution.parse(value)
        super().__setattr__(name, value)
