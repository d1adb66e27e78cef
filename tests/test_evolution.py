"""
Tests for the genetic algorithm.

Run with: python -m pytest tests/test_evolution.py -v
"""

import logging
import math
import pickle
import pytest
import numpy as np
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from genetic_brainfuck.evolution.genes import (
    Gene,
    INSTRUCTION_GENES,
    random_gene,
    genome_to_text,
    text_to_genome,
    coding_length,
)
from genetic_brainfuck.evolution.statistics import (
    EvolutionHistory,
    GenerationStatistics,
    compute_individual_statistics,
    summarize_generation,
    total_fitness_is_zero,
)
from genetic_brainfuck.evolution.operators import (
    weighted_selection,
    elitism_selection,
    elite_count,
    single_point_crossover,
    ratio_crossover,
    mutate_variable_length,
    mutate_synchronized,
)
from genetic_brainfuck.evolution.fitness import (
    TestCase,
    FitnessConfig,
    TestCaseFitness,
    TestCaseValidator,
    output_score,
    compute_fitness,
    validate_program,
    is_correct_program,
)
from genetic_brainfuck.evolution.engine import (
    GeneticAlgorithm,
    EvolutionConfig,
    PopulationInitializationError,
)


def count_increments(genome):
    """Toy fitness: number of '+' genes."""
    return sum(1 for g in genome if g == Gene.INCREMENT)


class AcceptWhileOpen:
    """Validator that accepts everything until closed."""

    def __init__(self):
        self.open = True

    def __call__(self, genome):
        return self.open


class FixedRandom:
    """Stand-in generator returning fixed draws."""

    def __init__(self, value=0.5, integer=0):
        self.value = value
        self.integer = integer

    def random(self):
        return self.value

    def integers(self, high):
        return min(self.integer, high - 1)


def genomes_from(*texts):
    return [text_to_genome(t) for t in texts]


class TestGenes:
    """Tests for the gene alphabet."""

    def test_random_gene_never_null(self):
        rng = np.random.default_rng(0)
        drawn = {random_gene(rng) for _ in range(500)}
        assert drawn == set(INSTRUCTION_GENES)
        assert Gene.NULL not in drawn

    def test_random_gene_exclude(self):
        rng = np.random.default_rng(1)
        assert all(random_gene(rng, exclude=Gene.OUTPUT) != Gene.OUTPUT for _ in range(200))

    def test_text_conversion(self):
        genome = text_to_genome('+[->_<]')
        assert genome[0] == Gene.INCREMENT
        assert genome[4] == Gene.NULL
        assert genome_to_text(genome) == '+[->_<]'
        assert coding_length(genome) == 6

    def test_unknown_symbol(self):
        with pytest.raises(ValueError):
            text_to_genome('+x')


class TestStatistics:
    """Tests for fitness normalization and generation summaries."""

    def test_normalization_and_cumulative(self):
        population = genomes_from('+', '++', '', '+++')
        stats = compute_individual_statistics(population, [1, 3, 0, 6])

        assert [s.fitness for s in stats] == [6, 3, 1, 0]
        assert [s.normalized_fitness for s in stats] == pytest.approx([0.6, 0.3, 0.1, 0.0])
        cumulative = [s.cumulative_normalized_fitness for s in stats]
        assert cumulative == pytest.approx([0.6, 0.9, 1.0, 1.0])
        assert all(a <= b for a, b in zip(cumulative, cumulative[1:]))
        assert stats[0].genome is population[3]

    def test_cumulative_ends_at_one(self):
        rng = np.random.default_rng(7)
        fitnesses = [int(f) for f in rng.integers(0, 1000, size=57)]
        population = [[Gene.OUTPUT] for _ in fitnesses]
        stats = compute_individual_statistics(population, fitnesses)
        cumulative = [s.cumulative_normalized_fitness for s in stats]
        assert all(a <= b for a, b in zip(cumulative, cumulative[1:]))
        assert cumulative[-1] == pytest.approx(1.0)

    def test_ties_keep_population_order(self):
        population = genomes_from('<', '>', '.')
        stats = compute_individual_statistics(population, [2, 5, 2])
        assert [genome_to_text(s.genome) for s in stats] == ['>', '<', '.']

    def test_zero_total_fitness(self):
        stats = compute_individual_statistics(genomes_from('+', '-'), [0, 0])
        assert all(math.isnan(s.normalized_fitness) for s in stats)
        assert total_fitness_is_zero(stats)

    def test_length_mismatch(self):
        with pytest.raises(ValueError):
            compute_individual_statistics(genomes_from('+'), [1, 2])

    def test_summarize_generation(self):
        population = genomes_from('+', '++', '++++')
        stats = compute_individual_statistics(population, [1, 2, 4])
        summary = summarize_generation(stats, generation=3)

        assert summary.generation == 3
        assert summary.average_fitness == 2  # round(7 / 3)
        assert summary.best_fitness == 4
        assert summary.best_program == '++++'
        # Snapshot is independent of the population
        population[2].append(Gene.OUTPUT)
        assert summary.best_program == '++++'

    def test_generation_statistics_dict(self):
        summary = GenerationStatistics(1, 5, 9, tuple(text_to_genome('+.')))
        assert GenerationStatistics.from_dict(summary.to_dict()) == summary


class TestHistory:
    """Tests for run history."""

    def _record(self, history, generation, best):
        history.record_generation(
            GenerationStatistics(generation, best // 2, best, (Gene.INCREMENT,))
        )

    def test_trajectories(self):
        history = EvolutionHistory()
        for gen, best in enumerate([3, 5, 4]):
            self._record(history, gen, best)
        assert history.best_fitness_trajectory == [3, 5, 4]
        assert history.average_fitness_trajectory == [1, 2, 2]
        assert history.best.generation == 1
        assert len(history) == 3

    def test_serialization(self):
        history = EvolutionHistory()
        self._record(history, 0, 10)
        restored = EvolutionHistory.from_dict(history.to_dict())
        assert restored.generations == history.generations

    def test_early_stopping_detection(self):
        history = EvolutionHistory()
        for gen in range(5):
            self._record(history, gen, 10 + gen)
        assert not history.should_early_stop(patience=3, min_improvement=1)

        for gen in range(5, 15):
            self._record(history, gen, 14)
        assert history.should_early_stop(patience=5, min_improvement=1)


class TestSelection:
    """Tests for weighted and elitist selection."""

    @pytest.fixture
    def ranked(self):
        population = genomes_from('+', '++', '', '+++')
        return compute_individual_statistics(population, [1, 3, 0, 6])

    def test_threshold_zero_picks_best(self, ranked):
        rng = np.random.default_rng(0)
        assert genome_to_text(weighted_selection(ranked, rng, threshold=0.0)) == '+++'

    def test_threshold_near_one_picks_last_nonzero(self, ranked):
        rng = np.random.default_rng(0)
        assert genome_to_text(weighted_selection(ranked, rng, threshold=0.9999)) == '+'
        # Rounding can leave the threshold above every cumulative value
        assert genome_to_text(weighted_selection(ranked, rng, threshold=1.5)) == '+'

    def test_boundary_threshold(self, ranked):
        rng = np.random.default_rng(0)
        assert genome_to_text(weighted_selection(ranked, rng, threshold=0.6)) == '+++'
        assert genome_to_text(weighted_selection(ranked, rng, threshold=0.61)) == '++'

    def test_proportional_sampling(self):
        stats = compute_individual_statistics(genomes_from('+', '-'), [9, 1])
        rng = np.random.default_rng(42)
        picks = [genome_to_text(weighted_selection(stats, rng)) for _ in range(2000)]
        share = picks.count('+') / len(picks)
        assert 0.85 < share < 0.95

    def test_zero_fitness_is_uniform(self):
        stats = compute_individual_statistics(genomes_from('+', '-', '.'), [0, 0, 0])
        rng = np.random.default_rng(3)
        picks = {genome_to_text(weighted_selection(stats, rng)) for _ in range(200)}
        assert picks == {'+', '-', '.'}

    def test_empty(self):
        with pytest.raises(ValueError):
            weighted_selection([], np.random.default_rng(0))

    def test_elite_count(self):
        assert elite_count(0.1, 100) == 10
        assert elite_count(0.25, 10) == 3
        assert elite_count(0.0, 10) == 0
        assert elite_count(1.0, 7) == 7

    def test_elitism_selection(self, ranked):
        elites = elitism_selection(ranked, 0.5)
        assert [genome_to_text(g) for g in elites] == ['+++', '++']
        # Copies, not the population's own lists
        assert elites[0] is not ranked[0].genome
        elites[0].append(Gene.OUTPUT)
        assert genome_to_text(ranked[0].genome) == '+++'


class TestCrossover:
    """Tests for crossover operators."""

    def test_single_point_crossover(self):
        left = text_to_genome('>>>>>>')
        right = text_to_genome('<<<<<<')
        rng = np.random.default_rng(5)
        for _ in range(20):
            child = single_point_crossover(left, right, rng)
            assert len(child) == 6
            text = genome_to_text(child)
            cut = text.count('>')
            assert text == '>' * cut + '<' * (6 - cut)
            assert child is not left and child is not right

    def test_single_point_crossover_fixed_cut(self):
        child = single_point_crossover(
            text_to_genome('++++'), text_to_genome('----'), FixedRandom(integer=1)
        )
        assert genome_to_text(child) == '+---'

    def test_single_point_crossover_unequal(self):
        with pytest.raises(AssertionError):
            single_point_crossover(text_to_genome('++'), text_to_genome('+'), np.random.default_rng(0))

    def test_ratio_crossover_left_length_cut(self):
        """Right parent is cut at the index computed from the left length."""
        left = text_to_genome('++++')
        right = text_to_genome('..........')
        child = ratio_crossover(left, right, FixedRandom(value=0.5))
        # ceil(4 × 0.5) = 2 from each side
        assert genome_to_text(child) == '++' + '.' * 8

    def test_ratio_crossover_own_length_cut(self):
        left = text_to_genome('++++')
        right = text_to_genome('..........')
        child = ratio_crossover(left, right, FixedRandom(value=0.5), right_cut_from_left_length=False)
        # left cut ceil(2.0) = 2, right cut ceil(5.0) = 5
        assert genome_to_text(child) == '++' + '.' * 5

    def test_ratio_crossover_zero_ratio(self):
        child = ratio_crossover(text_to_genome('++'), text_to_genome('--'), FixedRandom(value=0.0))
        assert genome_to_text(child) == '--'


class TestMutation:
    """Tests for mutation operators."""

    def test_zero_rates_leave_genome_unchanged(self):
        genome = text_to_genome('+[->+<].')
        original = list(genome)
        mutate_variable_length(genome, np.random.default_rng(0), random_gene, 0.0, 0.0, 0.0)
        assert genome == original

    def test_point_mutation_excluding_current(self):
        genome = text_to_genome('++++++++')
        mutate_variable_length(
            genome, np.random.default_rng(0), random_gene, 1.0, 0.0, 0.0, exclude_current=True
        )
        assert len(genome) == 8
        assert Gene.INCREMENT not in genome

    def test_factory_receives_current_gene(self):
        """Point mutations hand the gene being replaced to the factory."""
        seen = []

        def factory(rng, exclude=None):
            seen.append(exclude)
            return Gene.INPUT if exclude == Gene.OUTPUT else Gene.OUTPUT

        genome = text_to_genome('+.')
        mutate_variable_length(
            genome, np.random.default_rng(0), factory, 1.0, 0.0, 0.0, exclude_current=True
        )
        assert seen == [Gene.INCREMENT, Gene.OUTPUT]
        assert genome_to_text(genome) == '.,'

    def test_factory_returning_excluded_gene(self):
        def stubborn(rng, exclude=None):
            return Gene.INCREMENT

        with pytest.raises(ValueError):
            mutate_variable_length(
                text_to_genome('+'), np.random.default_rng(0), stubborn,
                1.0, 0.0, 0.0, exclude_current=True,
            )

    def test_insertion_stops_at_max_length(self):
        genome = text_to_genome('...')
        mutate_variable_length(
            genome, np.random.default_rng(0), random_gene, 0.0, 1.0, 0.0, max_length=4
        )
        assert len(genome) == 4

    def test_full_deletion(self):
        genome = text_to_genome('+-+-')
        mutate_variable_length(genome, np.random.default_rng(0), random_gene, 0.0, 0.0, 1.0)
        assert genome == []

    def test_full_insertion(self):
        """Leading insertion plus one skipped insertion after each visited gene."""
        genome = text_to_genome('...')
        mutate_variable_length(genome, np.random.default_rng(0), random_gene, 0.0, 1.0, 0.0)
        assert len(genome) == 2 * (3 + 1)
        # Original genes survive at every other position after the leading one
        assert [genome[i] for i in (2, 4, 6)] == [Gene.OUTPUT] * 3

    def test_synchronized_deletion_keeps_length(self):
        offspring = genomes_from('+-+-', '><><')
        mutate_synchronized(
            offspring, np.random.default_rng(0), random_gene, Gene.NULL, 0.0, 0.0, 1.0
        )
        assert all(genome_to_text(g) == '____' for g in offspring)

    def test_synchronized_insertion_pads_everyone(self):
        offspring = genomes_from('++', '--')
        elites = genomes_from('..')
        mutate_synchronized(
            offspring, np.random.default_rng(0), random_gene, Gene.NULL,
            0.0, 1.0, 0.0, elites=elites,
        )
        lengths = {len(g) for g in offspring + elites}
        assert len(lengths) == 1
        # Elites only gain placeholders
        assert genome_to_text(elites[0]).replace('_', '') == '..'
        assert coding_length(elites[0]) == 2

    def test_synchronized_insertion_capped(self):
        offspring = genomes_from('++', '--')
        elites = genomes_from('..')
        mutate_synchronized(
            offspring, np.random.default_rng(0), random_gene, Gene.NULL,
            0.0, 1.0, 0.0, elites=elites, max_length=5,
        )
        assert [len(g) for g in offspring + elites] == [5, 5, 5]

    def test_synchronized_zero_rates(self):
        offspring = genomes_from('+[-]', '>>..')
        before = [list(g) for g in offspring]
        mutate_synchronized(
            offspring, np.random.default_rng(0), random_gene, Gene.NULL, 0.0, 0.0, 0.0
        )
        assert offspring == before


class TestFitness:
    """Tests for test-case fitness evaluation."""

    @pytest.fixture
    def two_case(self):
        return [TestCase(b'', b'\x02')]

    def test_output_score(self):
        assert output_score(b'ab', b'a') == 255
        assert output_score(b'a', b'b') == 254
        assert output_score(b'a', b'aa') == 0
        assert output_score(b'', b'') == 0

    def test_compute_fitness(self, two_case):
        # 255 × 10 − 3 // 100 − 3
        assert compute_fitness('++.', two_case) == 2547
        assert compute_fitness('+.', two_case) == 2538

    def test_genome_with_placeholders(self, two_case):
        """Null genes are skipped by the parser and not counted as length."""
        assert compute_fitness(text_to_genome('++_.'), two_case) == 2547

    def test_invalid_programs_score_zero(self, two_case):
        assert compute_fitness('[', two_case) == 0
        assert compute_fitness('+[]', two_case) == 0
        assert compute_fitness(',.', two_case) == 0

    def test_fitness_clamped(self):
        assert compute_fitness('..', [TestCase(b'', b'\x00')]) == 0

    def test_instruction_penalty(self):
        config = FitnessConfig(instruction_penalty_divisor=1)
        # 255 × 10 − 3 instructions − 3 genes
        assert compute_fitness('++.', [TestCase(b'', b'\x02')], config) == 2544

    def test_validate_program(self):
        echo = [TestCase(b'x', b'x')]
        assert validate_program(',.', echo)
        assert not validate_program('+[]', echo)
        assert not validate_program(']', echo)
        assert not validate_program(',.', [TestCase(b'', b'')])
        assert not validate_program('.', echo)
        assert validate_program('.', echo, FitnessConfig(allow_unused_input=True))

    def test_is_correct_program(self, two_case):
        assert is_correct_program('++.', two_case)
        assert not is_correct_program('+.', two_case)
        assert not is_correct_program('++', two_case)

    def test_callables_are_picklable(self, two_case):
        fitness = pickle.loads(pickle.dumps(TestCaseFitness(two_case)))
        validator = pickle.loads(pickle.dumps(TestCaseValidator(two_case)))
        assert fitness(text_to_genome('++.')) == 2547
        assert validator(text_to_genome('++.'))

    def test_config_validation(self):
        with pytest.raises(ValueError):
            FitnessConfig(memory_size=0)
        with pytest.raises(ValueError):
            FitnessConfig(max_instructions=None, timeout=None)
        assert FitnessConfig().to_dict()['memory_size'] == 100


class TestEngine:
    """Tests for the generation engine."""

    def make_engine(self, **overrides):
        params = dict(population_size=20, genome_length=8, seed=123)
        params.update(overrides)
        return GeneticAlgorithm(count_increments, config=EvolutionConfig(**params))

    def test_uninitialized(self):
        engine = self.make_engine()
        assert not engine.initialized
        with pytest.raises(RuntimeError):
            engine.get_generation_statistics()
        with pytest.raises(RuntimeError):
            engine.compute_next_generation()

    def test_initialize_population(self):
        engine = self.make_engine()
        engine.initialize_population(15, 6)

        population = engine.population
        assert len(population) == 15
        assert all(len(g) == 6 for g in population)
        assert all(Gene.NULL not in g for g in population)

        stats = engine.get_generation_statistics()
        assert stats.generation == 0
        assert stats.best_fitness == max(count_increments(g) for g in population)
        fitnesses = [s.fitness for s in engine.individual_statistics]
        assert fitnesses == sorted(fitnesses, reverse=True)

    def test_validator_filters_initial_population(self):
        engine = GeneticAlgorithm(
            count_increments,
            validator=lambda g: g[0] == Gene.INCREMENT,
            config=EvolutionConfig(population_size=10, genome_length=3, seed=0),
        )
        engine.initialize_population()
        assert all(g[0] == Gene.INCREMENT for g in engine.population)

    def test_validator_never_accepts(self):
        engine = GeneticAlgorithm(
            count_increments,
            validator=lambda g: False,
            config=EvolutionConfig(population_size=3, max_retries=5, seed=0),
        )
        with pytest.raises(PopulationInitializationError):
            engine.initialize_population()

    def test_population_size_is_constant(self):
        engine = self.make_engine(insertion_rate=0.2, deletion_rate=0.2)
        engine.initialize_population()
        for _ in range(5):
            engine.compute_next_generation()
            assert len(engine.population) == 20
        assert engine.generation == 5

    def test_seeded_runs_are_reproducible(self):
        runs = []
        for _ in range(2):
            engine = self.make_engine(mutation_rate=0.1, insertion_rate=0.05, deletion_rate=0.05)
            engine.initialize_population()
            for _ in range(4):
                engine.compute_next_generation()
            runs.append(engine.population)
        assert runs[0] == runs[1]

    def test_zero_rates_clone_parents(self):
        """Without crossover or mutation every offspring is a parent copy."""
        engine = self.make_engine(elitism_fraction=0.0, crossover_rate=0.0)
        engine.initialize_population()
        parents = engine.population
        engine.compute_next_generation(
            mutation_rate=0.0, insertion_rate=0.0, deletion_rate=0.0
        )
        assert all(child in parents for child in engine.population)

    def test_full_elitism_is_stable(self):
        engine = self.make_engine(elitism_fraction=1.0, mutation_rate=0.5)
        engine.initialize_population()
        before = sorted(genome_to_text(g) for g in engine.population)
        best = engine.get_generation_statistics().best_fitness
        for _ in range(3):
            stats = engine.compute_next_generation()
            assert stats.best_fitness == best
        assert sorted(genome_to_text(g) for g in engine.population) == before

    def test_elitism_best_never_decreases(self):
        engine = self.make_engine(
            elitism_fraction=0.1, mutation_rate=0.1, insertion_rate=0.05, deletion_rate=0.05
        )
        result = engine.evolve(n_generations=15)
        trajectory = result.history.best_fitness_trajectory
        assert len(trajectory) == 16
        assert all(a <= b for a, b in zip(trajectory, trajectory[1:]))

    def test_always_crossover_synchronized(self):
        """Null-gene scheme keeps every genome the same length."""
        engine = self.make_engine(
            crossover_rate=None,
            null_gene=Gene.NULL,
            distinct_parents=True,
            insertion_rate=0.05,
            deletion_rate=0.05,
            mutation_rate=0.05,
        )
        engine.initialize_population()
        for _ in range(5):
            engine.compute_next_generation()
            assert len({len(g) for g in engine.population}) == 1

    def test_crossover_respects_validator(self):
        engine = GeneticAlgorithm(
            count_increments,
            validator=lambda g: len(g) > 0 and g[0] == Gene.INCREMENT,
            config=EvolutionConfig(
                population_size=10, genome_length=4, crossover_rate=1.0,
                mutation_rate=0.0, insertion_rate=0.0, deletion_rate=0.0, seed=9,
            ),
        )
        engine.initialize_population()
        engine.compute_next_generation()
        assert all(g[0] == Gene.INCREMENT for g in engine.population)

    def test_distinct_parents_with_dominant_individual(self):
        """The second parent differs from the first even when one genome holds nearly all fitness."""
        genes = iter(text_to_genome('++++' + '-' * 16))
        engine = GeneticAlgorithm(
            lambda g: 1000 if g[0] == Gene.INCREMENT else 1,
            create_gene=lambda rng: next(genes),
            config=EvolutionConfig(
                population_size=5, genome_length=4, elitism_fraction=0.0,
                crossover_rate=None, distinct_parents=True,
                mutation_rate=0.0, insertion_rate=0.0, deletion_rate=0.0, seed=5,
            ),
        )
        engine.initialize_population()

        pairs = []

        def record(left, right):
            pairs.append((left, right))
            return list(left)

        engine.crossover = record
        engine.compute_next_generation()

        assert len(pairs) == 5
        assert all(left is not right for left, right in pairs)

    def test_crossover_fallback_clones_parent(self, caplog):
        """Once every crossover is rejected the offspring is a logged parent clone."""
        validator = AcceptWhileOpen()
        engine = GeneticAlgorithm(
            count_increments,
            validator=validator,
            config=EvolutionConfig(
                population_size=8, genome_length=5, elitism_fraction=0.0,
                crossover_rate=1.0, mutation_rate=0.0, insertion_rate=0.0,
                deletion_rate=0.0, max_retries=3, seed=11,
            ),
        )
        engine.initialize_population()
        parents = engine.population
        validator.open = False

        with caplog.at_level(logging.WARNING, logger='genetic_brainfuck.evolution.engine'):
            engine.compute_next_generation()

        assert all(child in parents for child in engine.population)
        warnings = [r for r in caplog.records if 'No valid crossover' in r.getMessage()]
        assert len(warnings) == 8

    def test_max_genome_length_bounds_synchronized_growth(self):
        engine = self.make_engine(
            population_size=12,
            genome_length=6,
            crossover_rate=None,
            null_gene=Gene.NULL,
            insertion_rate=0.3,
            max_genome_length=10,
        )
        engine.initialize_population()
        for _ in range(8):
            engine.compute_next_generation()
            lengths = {len(g) for g in engine.population}
            assert len(lengths) == 1
            assert lengths.pop() <= 10

    def test_negative_fitness_rejected(self):
        engine = GeneticAlgorithm(lambda g: -1, config=EvolutionConfig(population_size=2, seed=0))
        with pytest.raises(ValueError):
            engine.initialize_population()

    def test_invalid_rates(self):
        with pytest.raises(ValueError):
            EvolutionConfig(mutation_rate=1.5)
        with pytest.raises(ValueError):
            EvolutionConfig(max_genome_length=0)
        engine = self.make_engine()
        engine.initialize_population()
        with pytest.raises(ValueError):
            engine.compute_next_generation(elitism_fraction=-0.1)

    def test_config_to_dict(self):
        d = EvolutionConfig(null_gene=Gene.NULL).to_dict()
        assert d['null_gene'] == int(Gene.NULL)
        assert d['population_size'] == 100

    def test_evolve_target_reached(self):
        engine = self.make_engine(target_fitness=0)
        result = engine.evolve(n_generations=10)
        assert result.early_stopped
        assert result.generations_completed == 0
        assert 'target' in result.early_stop_reason

    def test_evolve_early_stop(self):
        engine = self.make_engine(elitism_fraction=1.0, early_stop_patience=3)
        result = engine.evolve(n_generations=50)
        assert result.early_stopped
        assert result.generations_completed == 3
        assert 'Generations: 3' in result.summary()

    def test_progress_callback(self):
        seen = []
        engine = self.make_engine()
        engine.evolve(n_generations=3, progress_callback=seen.append)
        assert [s.generation for s in seen] == [0, 1, 2, 3]

    def test_parallel_evaluation(self):
        fitness = TestCaseFitness([TestCase(b'', b'\x02')])
        engine = GeneticAlgorithm(
            fitness, config=EvolutionConfig(population_size=6, n_workers=2, seed=4)
        )
        engine.initialize_population()
        serial = [fitness(g) for g in engine.population]
        assert engine.evaluate(engine.population) == serial


class TestIntegration:
    """End-to-end runs with interpreter-backed fitness."""

    def test_evolve_single_byte(self):
        cases = [TestCase(b'', b'\x03')]
        config = EvolutionConfig(
            population_size=30,
            genome_length=6,
            elitism_fraction=0.1,
            seed=2024,
        )
        engine = GeneticAlgorithm(
            TestCaseFitness(cases, FitnessConfig(max_instructions=500)),
            validator=TestCaseValidator(cases, FitnessConfig(max_instructions=500)),
            config=config,
        )
        result = engine.evolve(n_generations=20)

        trajectory = result.history.best_fitness_trajectory
        assert all(a <= b for a, b in zip(trajectory, trajectory[1:]))
        assert result.best.best_fitness == max(trajectory)
        rescored = compute_fitness(
            result.best.best_genome, cases, FitnessConfig(max_instructions=500)
        )
        assert rescored == result.best.best_fitness


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
