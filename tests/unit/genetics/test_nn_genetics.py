"""
Unit tests for the NNGenetics genetic optimizer.
"""

import os
import pytest
from pathlib import Path

from snnake.exceptions import BreedingError, ConfigurationError, DuplicateIndividualWarning
from snnake.genetics import NNGenetics, Phase
from snnake.network import NeuralNet
from snnake.rng import RandomSource
from snnake.run.config import Config

FIRST  = [1.0, 3.0, 5.0, 7.0, 9.0, 11.0]
SECOND = [2.0, 4.0, 6.0, 8.0, 10.0, 12.0]


@pytest.fixture
def net():
    return NeuralNet(1, 2, 2, rng=RandomSource(0)).set_weights([1, 2, 3, 4, 5, 6])


@pytest.fixture
def nng(net, genetics_config, storage_root):
    return NNGenetics("NNGT", net, genetics_config, storage_dir=storage_root)


def fill_population(nng):
    """Three distinct individuals; FIRST is inserted twice, the second time with the best fitness."""
    nng.add_individual([2.0] * 6, 2.0)
    nng.add_individual(SECOND, 3.0)
    nng.add_individual(FIRST, 3.0)
    with pytest.warns(DuplicateIndividualWarning):
        nng.add_individual(FIRST, 4.0)


# ============================================================================
# Construction
# ============================================================================

class TestNNGeneticsInit:
    """Test construction, validation and initial state."""

    def test_files_created(self, nng, storage_root):
        assert nng.storage.population_file.exists()
        assert nng.storage.best_file.exists()
        assert nng.storage.population_file == storage_root / "NNGT" / "NNGT.population.txt"
        assert nng.storage.best_file == storage_root / "NNGT" / "NNGT.best.txt"

    def test_initial_state(self, nng):
        assert nng.generation == 1
        assert nng.phase is Phase.AWAITING_TRIALS
        assert nng.population == {}
        assert nng.best_record is None

    def test_fresh_optimizer_keeps_net_weights(self, nng):
        assert nng.net.get_weights() == [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]

    def test_cross_points_start_with_zero(self, nng):
        assert nng.cross_points == [0, 2]

    def test_cross_points_sorted(self, net, genetics_config, storage_root):
        genetics_config.cross_points = "4, 2"
        nng = NNGenetics("NNGT", net, genetics_config, storage_dir=storage_root)
        assert nng.cross_points == [0, 2, 4]

    def test_default_config(self, net, storage_root):
        nng = NNGenetics("NNGT", net, storage_dir=storage_root)
        assert nng.population_size == 100
        assert nng.population_retention == 0.2
        assert nng.mutation_rate == 0.2
        assert nng.mutations_per_list == 2
        assert nng.mutation_increment == 1e-4
        assert nng.iterations_per_individual == 3

    def test_storage_dir_from_environment(self, net, storage_root):
        nng = NNGenetics("NNGT", net)
        assert nng.storage.directory == storage_root / "NNGT"

    def test_write_to_file_off(self, net, genetics_config, storage_root):
        genetics_config.write_to_file = False
        nng = NNGenetics("NNGT", net, genetics_config)
        assert nng.storage is None
        assert not storage_root.exists()

    def test_from_config(self, genetics_config, storage_root):
        genetics_config.layer_sizes = "3, 2"
        genetics_config.key         = "configured"
        nng = NNGenetics.from_config(genetics_config)
        assert nng.key == "configured"
        assert nng.net.layer_sizes == [3, 2]
        assert nng.storage.directory == storage_root / "configured"


class TestNNGeneticsValidation:
    """Test rejection of invalid genetic parameters."""

    @pytest.mark.parametrize("name, value, message", [
        ("mutations_per_list",        7,       "exceeds weight count"),
        ("mutations_per_list",        -1,      "cannot be negative"),
        ("population_size",           1,       "population_size"),
        ("population_retention",      1.0,     "population_retention"),
        ("population_retention",      -0.1,    "population_retention"),
        ("mutation_rate",             1.5,     "mutation_rate"),
        ("mutation_increment",        0.0,     "mutation_increment"),
        ("mutation_policy",           "swap",  "mutation_policy"),
        ("iterations_per_individual", 0,       "iterations_per_individual"),
        ("cross_points",              [-1, 2], "cannot be less than 0"),
        ("cross_points",              [2, 7],  "cannot exceed the weight count"),
    ])
    def test_invalid_parameter(self, net, genetics_config, storage_root, name, value, message):
        setattr(genetics_config, name, value)
        with pytest.raises(ConfigurationError, match=message):
            NNGenetics("NNGT", net, genetics_config, storage_dir=storage_root)

    def test_configuration_error_is_a_value_error(self, net, genetics_config, storage_root):
        genetics_config.population_size = 0
        with pytest.raises(ValueError):
            NNGenetics("NNGT", net, genetics_config, storage_dir=storage_root)


# ============================================================================
# Genetic operators
# ============================================================================

class TestNNGeneticsOperators:
    """Test crossover, breeding and mutation."""

    def test_crossover(self, nng):
        assert nng.crossover(FIRST, SECOND) == [1.0, 3.0, 6.0, 8.0, 10.0, 12.0]

    def test_crossover_several_points(self, nng):
        nng.cross_points = [0, 2, 4]
        assert nng.crossover(FIRST, SECOND) == [1.0, 3.0, 6.0, 8.0, 9.0, 11.0]

    def test_crossover_conserves_genes(self, nng):
        nng.cross_points = [0, 1, 3, 4]
        child1, child2 = nng.breed(FIRST, SECOND)
        for i in range(len(FIRST)):
            assert sorted([child1[i], child2[i]]) == sorted([FIRST[i], SECOND[i]])

    def test_breed(self, nng):
        child1, child2 = nng.breed(FIRST, SECOND)
        assert child1 == [1.0, 3.0, 6.0, 8.0, 10.0, 12.0]
        assert child2 == [2.0, 4.0, 5.0, 7.0, 9.0, 11.0]

    def test_crossover_does_not_modify_parents(self, nng):
        first, second = list(FIRST), list(SECOND)
        nng.breed(first, second)
        assert first == FIRST
        assert second == SECOND

    def test_crossover_verify_size_mismatch(self, nng):
        with pytest.raises(BreedingError, match="do not have the same size"):
            nng.crossover(FIRST, SECOND[:5], verify=True)

    def test_crossover_verify_weight_count(self, nng):
        with pytest.raises(BreedingError, match="does not match weight count"):
            nng.crossover(FIRST[:5], SECOND[:5], verify=True)

    def test_crossover_verify_cross_point(self, nng):
        nng.cross_points = [0, 8]
        with pytest.raises(BreedingError, match="cannot exceed the max index"):
            nng.crossover(FIRST, SECOND, verify=True)

    def test_crossover_without_verify_skips_checks(self, nng):
        assert nng.crossover(FIRST[:3], SECOND[:3]) == [1.0, 3.0, 6.0]

    @pytest.mark.parametrize("policy", ["replace", "increment", "mixed"])
    def test_mutate_changes_exactly_k_weights(self, nng, policy):
        nng.mutation_policy = policy
        child = list(FIRST)
        nng.mutate(child)
        changed = sum(1 for a, b in zip(FIRST, child) if a != b)
        assert changed == nng.mutations_per_list

    def test_mutate_increment_is_bounded(self, nng):
        nng.mutation_policy    = "increment"
        nng.mutation_increment = 0.5
        nng.mutations_per_list = 6
        child = list(FIRST)
        nng.mutate(child)
        for before, after in zip(FIRST, child):
            assert 0.0 < abs(after - before) <= 0.5

    def test_mutate_zero_weights(self, nng):
        nng.mutations_per_list = 0
        child = list(FIRST)
        nng.mutate(child)
        assert child == FIRST

    @pytest.mark.parametrize("retention, n, expected", [
        (0.2, 2,   2),
        (0.2, 3,   2),
        (0.2, 10,  2),
        (0.2, 100, 20),
        (0.0, 100, 2),
        (0.5, 5,   3),
        (0.5, 100, 50),
    ])
    def test_retained_count(self, nng, retention, n, expected):
        nng.population_retention = retention
        assert nng.retained_count(n) == expected


# ============================================================================
# Fitness reporting
# ============================================================================

class TestNNGeneticsRecordFitness:
    """Test the trial / individual / generation life cycle."""

    def test_scores_are_averaged(self, nng):
        weights = nng.net.get_weights()
        nng.record_fitness(1.0)
        nng.record_fitness(2.0)
        assert nng.population == {}
        assert nng.net.get_weights() == weights
        nng.record_fitness(6.0)
        assert nng.population == {tuple(weights): 3.0}
        assert nng.phase is Phase.AWAITING_TRIALS

    def test_next_individual_is_loaded(self, nng):
        weights = nng.net.get_weights()
        for _ in range(nng.iterations_per_individual):
            nng.record_fitness(1.0)
        # no pending individuals: fresh random weights
        assert nng.net.get_weights() != weights
        assert len(nng.net.get_weights()) == len(weights)

    def test_full_population_closes_generation(self, nng):
        nng.population_size           = 4
        nng.iterations_per_individual = 1
        for score in [1.0, 2.0, 3.0]:
            nng.record_fitness(score)
            assert nng.generation == 1
        nng.record_fitness(4.0)
        assert nng.generation == 2
        assert nng.population == {}
        assert nng.best_record.fitness == 4.0
        assert len(nng.storage.read_population()) == 4

    def test_duplicate_individual_warns(self, nng):
        nng.add_individual(FIRST, 1.0)
        with pytest.warns(DuplicateIndividualWarning):
            nng.add_individual(FIRST, 2.0)
        assert nng.population == {tuple(FIRST): 2.0}

    def test_get_output(self, nng):
        assert nng.get_output([[0.5]]) == nng.net.output([[0.5]])


# ============================================================================
# Generation close
# ============================================================================

class TestNNGeneticsCloseGeneration:
    """Test selection, breeding and persistence at generation close."""

    def test_update_generation(self, nng):
        nng.storage.clear()
        fill_population(nng)
        nng.close_generation()

        best = nng.storage.last_best()
        assert list(best.weights) == FIRST
        assert best.fitness == 4.0
        assert best.generation == 1
        assert nng.population == {}
        assert len(nng.storage.read_population()) == nng.population_size

    def test_small_population_scenario(self, net, genetics_config, storage_root):
        genetics_config.population_size      = 20
        genetics_config.population_retention = 0.3
        nng = NNGenetics("NNGT", net, genetics_config, storage_dir=storage_root)
        fill_population(nng)
        nng.close_generation()

        lines = nng.storage.population_file.read_text().splitlines()
        assert len(lines) >= 20
        assert list(nng.storage.read_records()[-1].weights) == FIRST

    def test_children_come_from_retained_parents(self, nng):
        nng.mutation_rate = 0.0
        fill_population(nng)
        nng.close_generation()
        # the two fittest individuals are the only parents
        for child in nng.storage.read_population():
            for i, gene in enumerate(child):
                assert gene in (FIRST[i], SECOND[i])

    def test_first_child_is_loaded(self, nng):
        fill_population(nng)
        nng.close_generation()
        assert nng.net.get_weights() == nng.storage.read_population()[0]
        assert nng.phase is Phase.AWAITING_TRIALS

    def test_best_records_accumulate(self, nng):
        for fitness in (4.0, 5.0):
            fill_population(nng)
            nng.add_individual([float(fitness)] * 6, fitness)
            nng.close_generation()
        records = nng.storage.read_records()
        assert [r.generation for r in records] == [1, 2]
        assert [r.fitness for r in records] == [4.0, 5.0]

    def test_too_small_population(self, nng):
        nng.add_individual(FIRST, 1.0)
        with pytest.raises(BreedingError):
            nng.close_generation()
        assert nng.generation == 1

    def test_failed_write_leaves_state_untouched(self, nng, monkeypatch):
        fill_population(nng)

        def fail(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(nng.storage, "commit", fail)
        with pytest.raises(OSError):
            nng.close_generation()
        assert nng.generation == 1
        assert len(nng.population) == 3
        assert nng.best_record is None

    def test_failed_population_replace_keeps_files_in_step(self, nng, genetics_config, storage_root, monkeypatch):
        fill_population(nng)
        population_file = nng.storage.population_file
        replace = os.replace

        def fail_on_population(src, dst):
            if Path(dst) == population_file:
                raise OSError("disk full")
            replace(src, dst)

        monkeypatch.setattr("snnake.genetics.storage.os.replace", fail_on_population)
        with pytest.raises(OSError):
            nng.close_generation()
        monkeypatch.undo()

        assert nng.storage.read_population() == []
        assert nng.storage.last_best() is None
        assert nng.generation == 1
        assert nng.best_record is None

        resumed = NNGenetics("NNGT", NeuralNet(1, 2, 2).set_weights(SECOND), genetics_config, storage_dir=storage_root)
        assert resumed.generation == 1
        assert resumed.net.get_weights() == SECOND

    def test_without_storage(self, net, genetics_config, storage_root):
        genetics_config.write_to_file = False
        nng = NNGenetics("NNGT", net, genetics_config)
        fill_population(nng)
        nng.close_generation()
        assert nng.generation == 2
        assert list(nng.best_record.weights) == FIRST
        assert not storage_root.exists()


# ============================================================================
# Callback
# ============================================================================

class TestNNGeneticsCallback:
    """Test generation completion notifications."""

    def test_setting_callback_notifies(self, nng):
        calls = []
        nng.generation_callback = lambda *args: calls.append(args)
        assert calls == [(1, [], 0.0)]

    def test_callback_after_close(self, nng):
        calls = []
        nng.generation_callback = lambda *args: calls.append(args)
        fill_population(nng)
        nng.close_generation()
        assert calls[-1] == (2, FIRST, 4.0)

    def test_callback_sees_next_individual_loaded(self, nng):
        seen = []
        fill_population(nng)
        nng.generation_callback = lambda *args: seen.append((nng.phase, nng.net.get_weights()))
        nng.close_generation()
        phase, weights = seen[-1]
        assert phase is Phase.AWAITING_TRIALS
        assert weights == nng.storage.read_population()[0]

    def test_constructor_callback(self, net, genetics_config, storage_root):
        calls = []
        NNGenetics("NNGT", net, genetics_config, generation_callback=lambda *args: calls.append(args),
                   storage_dir=storage_root)
        assert calls == [(1, [], 0.0)]

    def test_callback_can_be_removed(self, nng):
        calls = []
        nng.generation_callback = lambda *args: calls.append(args)
        nng.generation_callback = None
        fill_population(nng)
        nng.close_generation()
        assert len(calls) == 1


# ============================================================================
# Reproducibility
# ============================================================================

class TestNNGeneticsSeeding:
    """Test that seeded optimizers make the same decisions."""

    def test_same_seed_same_children(self, genetics_config, tmp_path):
        populations = []
        for run in ("a", "b"):
            net = NeuralNet(1, 2, 2, rng=RandomSource(9)).set_weights([1, 2, 3, 4, 5, 6])
            nng = NNGenetics("NNGT", net, genetics_config, rng=RandomSource(5), storage_dir=tmp_path / run)
            fill_population(nng)
            nng.close_generation()
            populations.append(nng.storage.read_population())
        assert populations[0] == populations[1]

    def test_config_seed_is_used(self, genetics_config):
        genetics_config.write_to_file = False
        a = NNGenetics("NNGT", NeuralNet(1, 2, 2, rng=RandomSource(9)), genetics_config)
        b = NNGenetics("NNGT", NeuralNet(1, 2, 2, rng=RandomSource(9)), genetics_config)
        child_a, child_b = list(FIRST), list(FIRST)
        a.mutate(child_a)
        b.mutate(child_b)
        assert child_a == child_b


class TestConfigDefaultsShared:
    """A Config built in code drives the optimizer like an INI file does."""

    def test_manual_config(self, net, storage_root):
        config = Config()
        config.population_size = 2
        config.iterations_per_individual = 1
        nng = NNGenetics("manual", net, config, storage_dir=storage_root)
        nng.record_fitness(1.0)
        nng.record_fitness(2.0)
        assert nng.generation == 2
