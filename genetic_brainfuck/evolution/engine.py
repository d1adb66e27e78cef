"""
Main genetic algorithm engine.

Orchestrates one generation transition:
1. Fitness pass (normalized and cumulative fitness of the current population)
2. Elitism
3. Reproduction (weighted selection, crossover or cloning)
4. Mutation of the offspring
5. Replace the population and recompute statistics

Two genome schemes are supported. The variable-length scheme lets genomes
grow and shrink freely. The synchronized scheme (enabled by setting
null_gene) keeps every genome the same length: deletions leave null genes
behind, and each insertion pads every other genome with a null gene at the
same index.
"""

from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Sequence
from multiprocessing import Pool
import logging
import time

import numpy as np

from .genes import Gene, Genome, random_gene
from .operators import (
    GeneFactory,
    cumulative_weights,
    elitism_selection,
    mutate_synchronized,
    mutate_variable_length,
    ratio_crossover,
    single_point_crossover,
    weighted_selection,
)
from .statistics import (
    EvolutionHistory,
    GenerationStatistics,
    IndividualStatistics,
    compute_individual_statistics,
    summarize_generation,
)

logger = logging.getLogger(__name__)

FitnessFunction = Callable[[Genome], int]
Validator = Callable[[Genome], bool]

# Default marker for compute_next_generation arguments
_UNSET = object()


class PopulationInitializationError(RuntimeError):
    """The validator rejected every candidate for an initial individual."""


@dataclass
class EvolutionConfig:
    """Configuration for an evolution run."""
    # Population parameters
    population_size: int = 100
    genome_length: int = 8
    elitism_fraction: float = 0.1

    # Evolution rates (crossover_rate None means every offspring is a crossover)
    crossover_rate: Optional[float] = 0.5
    mutation_rate: float = 0.01
    insertion_rate: float = 0.01
    deletion_rate: float = 0.01

    # Genome scheme (None: variable length; a gene: synchronized null-gene scheme)
    null_gene: Optional[Gene] = None
    exclude_current_gene: bool = False
    distinct_parents: bool = False
    right_cut_from_left_length: bool = True

    # Insertions stop once a genome holds this many genes (None: unbounded).
    # Under the synchronized scheme every insertion pads all genomes, so
    # high insertion rates grow lengths geometrically without a cap.
    max_genome_length: Optional[int] = None

    # Validation retries per offspring / initial individual
    max_retries: int = 1000

    # Parallelization (fitness evaluation only)
    n_workers: int = 1

    # Reproducibility
    seed: Optional[int] = None

    # Stopping
    target_fitness: Optional[int] = None
    early_stop_patience: Optional[int] = None
    early_stop_min_improvement: float = 1.0

    def __post_init__(self):
        """Validate configuration ranges."""
        if self.population_size < 1:
            raise ValueError(f"population_size must be at least 1, got {self.population_size}")
        if self.genome_length < 0:
            raise ValueError(f"genome_length must be non-negative, got {self.genome_length}")
        rates = {
            'elitism_fraction': self.elitism_fraction,
            'mutation_rate': self.mutation_rate,
            'insertion_rate': self.insertion_rate,
            'deletion_rate': self.deletion_rate,
        }
        if self.crossover_rate is not None:
            rates['crossover_rate'] = self.crossover_rate
        for name, rate in rates.items():
            _check_rate(name, rate)
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be at least 1, got {self.max_retries}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be at least 1, got {self.n_workers}")
        if self.max_genome_length is not None and self.max_genome_length < 1:
            raise ValueError(
                f"max_genome_length must be at least 1, got {self.max_genome_length}"
            )

    @property
    def synchronized(self) -> bool:
        return self.null_gene is not None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        if self.null_gene is not None:
            d['null_gene'] = int(self.null_gene)
        return d


@dataclass
class EvolutionResult:
    """Results from an evolution run."""
    generations_completed: int
    best: GenerationStatistics
    history: EvolutionHistory
    final_population: List[Genome]
    runtime_seconds: float
    early_stopped: bool
    early_stop_reason: Optional[str] = None

    def summary(self) -> str:
        """Generate summary string."""
        lines = [
            f"Generations: {self.generations_completed}",
            f"Best fitness: {self.best.best_fitness}",
            f"Best program: {self.best.best_program}",
            f"Runtime: {self.runtime_seconds:.1f}s",
            f"Early stopped: {self.early_stopped}",
        ]
        if self.early_stop_reason:
            lines.append(f"Reason: {self.early_stop_reason}")
        return '\n'.join(lines)


def _check_rate(name: str, rate: float) -> None:
    if not 0.0 <= rate <= 1.0:
        raise ValueError(f"{name} must be in [0, 1], got {rate}")


class GeneticAlgorithm:
    """
    Genetic algorithm over variable-length gene sequences.

    The engine owns its population, the per-individual statistics and a
    seedable numpy Generator used for every random decision. It is not
    thread-safe; only fitness evaluation may run in parallel (n_workers > 1,
    which requires a picklable fitness function).

    Args:
        fitness_fn: Genome -> integer fitness >= 0; pure
        create_gene: Random gene factory called as create_gene(rng), and as
            create_gene(rng, exclude=current) when exclude_current_gene is set
        validator: Optional Genome -> bool predicate rejecting invalid genomes
        config: Evolution configuration
        rng: Generator to use instead of one seeded from config.seed
    """

    def __init__(
        self,
        fitness_fn: FitnessFunction,
        create_gene: GeneFactory = random_gene,
        validator: Optional[Validator] = None,
        config: Optional[EvolutionConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.fitness_fn = fitness_fn
        self.create_gene = create_gene
        self.validator = validator
        self.config = config or EvolutionConfig()
        self.rng = rng if rng is not None else np.random.default_rng(self.config.seed)

        self._population: Optional[List[Genome]] = None
        self._statistics: List[IndividualStatistics] = []
        self._cumulative: Optional[np.ndarray] = None
        self.generation = 0
        self.total_evaluations = 0
        self.history = EvolutionHistory()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def initialized(self) -> bool:
        return self._population is not None

    @property
    def population(self) -> List[Genome]:
        """Copies of the current genomes in population order."""
        self._require_initialized()
        return [list(g) for g in self._population]

    @property
    def individual_statistics(self) -> List[IndividualStatistics]:
        """Statistics of the current population, sorted by descending fitness."""
        self._require_initialized()
        return list(self._statistics)

    def _require_initialized(self) -> None:
        if self._population is None:
            raise RuntimeError("Population not initialized; call initialize_population() first")

    def _is_valid(self, genome: Genome) -> bool:
        return self.validator is None or self.validator(genome)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    def initialize_population(
        self,
        population_size: Optional[int] = None,
        genome_length: Optional[int] = None,
    ) -> None:
        """
        Create the initial population and evaluate it.

        Each genome draws genome_length genes from the gene factory and is
        redrawn until the validator accepts it.

        Args:
            population_size: Number of genomes (default: config)
            genome_length: Genes per genome (default: config)

        Raises:
            PopulationInitializationError: validator rejected max_retries candidates
        """
        size = population_size if population_size is not None else self.config.population_size
        length = genome_length if genome_length is not None else self.config.genome_length
        if size < 1:
            raise ValueError(f"Population size must be at least 1, got {size}")
        if length < 0:
            raise ValueError(f"Genome length must be non-negative, got {length}")

        population = []
        for index in range(size):
            for _ in range(self.config.max_retries):
                genome = [self.create_gene(self.rng) for _ in range(length)]
                if self._is_valid(genome):
                    break
            else:
                raise PopulationInitializationError(
                    f"No valid genome for individual {index} after "
                    f"{self.config.max_retries} attempts"
                )
            population.append(genome)

        self._population = population
        self.generation = 0
        self.total_evaluations = 0
        self.history = EvolutionHistory()
        self._compute_statistics()
        logger.info(
            "Initialized population of %d genomes (length %d), best fitness %d",
            size, length, self._statistics[0].fitness,
        )

    # ------------------------------------------------------------------
    # Fitness
    # ------------------------------------------------------------------

    def evaluate(self, genomes: Sequence[Genome]) -> List[int]:
        """
        Evaluate fitness for each genome.

        Uses a process pool when n_workers > 1.

        Raises:
            ValueError: the fitness function returned a negative score
        """
        if self.config.n_workers > 1 and len(genomes) > 1:
            with Pool(self.config.n_workers) as pool:
                fitnesses = pool.map(self.fitness_fn, genomes)
        else:
            fitnesses = [self.fitness_fn(g) for g in genomes]

        self.total_evaluations += len(genomes)
        for genome, fitness in zip(genomes, fitnesses):
            if fitness < 0:
                raise ValueError(f"Fitness must be non-negative, got {fitness} for {genome!r}")
        return [int(f) for f in fitnesses]

    def _compute_statistics(self) -> None:
        fitnesses = self.evaluate(self._population)
        self._statistics = compute_individual_statistics(self._population, fitnesses)
        self._cumulative = cumulative_weights(self._statistics)

    def get_generation_statistics(self) -> GenerationStatistics:
        """Average fitness, best fitness and best genome of the current generation."""
        self._require_initialized()
        return summarize_generation(self._statistics, self.generation)

    # ------------------------------------------------------------------
    # Generation transition
    # ------------------------------------------------------------------

    def select_parent(self) -> Genome:
        """Fitness-proportionate pick from the current population (not a copy)."""
        self._require_initialized()
        return weighted_selection(self._statistics, self.rng, cumulative=self._cumulative)

    def crossover(self, left: Genome, right: Genome) -> Genome:
        """Combine two parents with the crossover matching the genome scheme."""
        if self.config.synchronized:
            return single_point_crossover(left, right, self.rng)
        return ratio_crossover(
            left, right, self.rng,
            right_cut_from_left_length=self.config.right_cut_from_left_length,
        )

    def _select_second_parent(self, first: Genome) -> Genome:
        """
        Draw the second parent.

        With distinct_parents, a draw that repeats the first parent is
        replaced by a weighted pick among the remaining individuals.
        """
        second = self.select_parent()
        if not self.config.distinct_parents or second is not first:
            return second
        others = [s for s in self._statistics if s.genome is not first]
        if not others:
            return second
        remaining = compute_individual_statistics(
            [s.genome for s in others],
            [s.fitness for s in others],
        )
        return weighted_selection(remaining, self.rng)

    def _create_offspring(self, crossover_rate: Optional[float]) -> Genome:
        """Produce one offspring under the configured reproduction policy."""
        if crossover_rate is None:
            first = self.select_parent()
            return self.crossover(first, self._select_second_parent(first))

        if self.rng.random() < crossover_rate:
            for _ in range(self.config.max_retries):
                first = self.select_parent()
                child = self.crossover(first, self._select_second_parent(first))
                if self._is_valid(child):
                    return child
            logger.warning(
                "No valid crossover after %d attempts; cloning a parent instead",
                self.config.max_retries,
            )

        return list(self.select_parent())

    def _mutate(
        self,
        offspring: List[Genome],
        elites: List[Genome],
        mutation_rate: float,
        insertion_rate: float,
        deletion_rate: float,
    ) -> None:
        if self.config.synchronized:
            mutate_synchronized(
                offspring,
                self.rng,
                self.create_gene,
                self.config.null_gene,
                mutation_rate,
                insertion_rate,
                deletion_rate,
                elites=elites,
                exclude_current=self.config.exclude_current_gene,
                max_length=self.config.max_genome_length,
            )
        else:
            for genome in offspring:
                mutate_variable_length(
                    genome,
                    self.rng,
                    self.create_gene,
                    mutation_rate,
                    insertion_rate,
                    deletion_rate,
                    exclude_current=self.config.exclude_current_gene,
                    max_length=self.config.max_genome_length,
                )

    def compute_next_generation(
        self,
        elitism_fraction: Optional[float] = None,
        crossover_rate: Any = _UNSET,
        mutation_rate: Optional[float] = None,
        insertion_rate: Optional[float] = None,
        deletion_rate: Optional[float] = None,
    ) -> GenerationStatistics:
        """
        Replace the population with the next generation.

        Every argument defaults to its config value. Passing crossover_rate=None
        selects the always-crossover policy.

        Returns:
            Statistics of the new generation
        """
        self._require_initialized()
        cfg = self.config
        elitism_fraction = cfg.elitism_fraction if elitism_fraction is None else elitism_fraction
        crossover_rate = cfg.crossover_rate if crossover_rate is _UNSET else crossover_rate
        mutation_rate = cfg.mutation_rate if mutation_rate is None else mutation_rate
        insertion_rate = cfg.insertion_rate if insertion_rate is None else insertion_rate
        deletion_rate = cfg.deletion_rate if deletion_rate is None else deletion_rate

        _check_rate('elitism_fraction', elitism_fraction)
        if crossover_rate is not None:
            _check_rate('crossover_rate', crossover_rate)
        _check_rate('mutation_rate', mutation_rate)
        _check_rate('insertion_rate', insertion_rate)
        _check_rate('deletion_rate', deletion_rate)

        size = len(self._population)
        elites = elitism_selection(self._statistics, elitism_fraction)
        offspring = [
            self._create_offspring(crossover_rate)
            for _ in range(size - len(elites))
        ]
        self._mutate(offspring, elites, mutation_rate, insertion_rate, deletion_rate)

        new_population = elites + offspring
        assert len(new_population) == size, (
            f"Population size changed from {size} to {len(new_population)}"
        )
        if cfg.synchronized:
            assert len({len(g) for g in new_population}) == 1, (
                "Synchronized genomes must all have the same length"
            )

        self._population = new_population
        self.generation += 1
        self._compute_statistics()
        stats = self.get_generation_statistics()
        logger.debug(
            "Generation %d: average fitness %d, best fitness %d",
            stats.generation, stats.average_fitness, stats.best_fitness,
        )
        return stats

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    def evolve(
        self,
        n_generations: int,
        progress_callback: Optional[Callable[[GenerationStatistics], None]] = None,
    ) -> EvolutionResult:
        """
        Run generation transitions until a stop condition.

        Stops after n_generations, when config.target_fitness is reached, or
        when the best fitness stalls for config.early_stop_patience
        generations. Initializes the population first if needed.

        Args:
            n_generations: Maximum number of transitions
            progress_callback: Called with each generation's statistics

        Returns:
            EvolutionResult with history and final population
        """
        if not self.initialized:
            self.initialize_population()

        start_time = time.time()
        early_stopped = False
        early_stop_reason = None
        cfg = self.config

        stats = self.get_generation_statistics()
        if not self.history.generations or self.history.generations[-1].generation != stats.generation:
            self.history.record_generation(stats)
        if progress_callback:
            progress_callback(stats)

        for _ in range(n_generations):
            if cfg.target_fitness is not None and stats.best_fitness >= cfg.target_fitness:
                early_stopped = True
                early_stop_reason = f"Reached target fitness {cfg.target_fitness}"
                break

            stats = self.compute_next_generation()
            self.history.record_generation(stats)
            if progress_callback:
                progress_callback(stats)

            if cfg.early_stop_patience is not None and self.history.should_early_stop(
                patience=cfg.early_stop_patience,
                min_improvement=cfg.early_stop_min_improvement,
            ):
                early_stopped = True
                early_stop_reason = (
                    f"No improvement >= {cfg.early_stop_min_improvement} "
                    f"in {cfg.early_stop_patience} generations"
                )
                break

        if early_stopped:
            logger.info("Stopped at generation %d: %s", self.generation, early_stop_reason)

        return EvolutionResult(
            generations_completed=self.generation,
            best=self.history.best,
            history=self.history,
            final_population=self.population,
            runtime_seconds=time.time() - start_time,
            early_stopped=early_stopped,
            early_stop_reason=early_stop_reason,
        )
