"""
Per-individual and per-generation statistics.

Handles:
- Fitness normalization and cumulative shares used by weighted selection
- Generation summaries handed to callers
- Run history across generations (trajectories, early stopping)
"""

from dataclasses import dataclass
from typing import List, Dict, Any, Optional, Sequence, Tuple
import math

import numpy as np

from .genes import Gene, Genome, genome_to_text, text_to_genome


@dataclass
class IndividualStatistics:
    """
    Fitness bookkeeping for one genome.

    Attributes:
        genome: The evaluated genome
        fitness: Raw integer fitness (>= 0)
        normalized_fitness: fitness / total population fitness (NaN if total is 0)
        cumulative_normalized_fitness: Running sum of normalized_fitness in
            descending-fitness order
    """
    genome: Genome
    fitness: int
    normalized_fitness: float = 0.0
    cumulative_normalized_fitness: float = 0.0


def compute_individual_statistics(
    population: Sequence[Genome],
    fitnesses: Sequence[int],
) -> List[IndividualStatistics]:
    """
    Normalize fitness and order individuals for weighted selection.

    Individuals are sorted by descending fitness; ties keep population
    order. The cumulative column is non-decreasing and ends at 1.0 (up to
    rounding) whenever total fitness is positive. With zero total fitness
    every normalized value is NaN.

    Args:
        population: Genomes in population order
        fitnesses: Fitness of each genome, same order

    Returns:
        Statistics sorted by descending normalized fitness
    """
    if len(population) != len(fitnesses):
        raise ValueError(
            f"Got {len(fitnesses)} fitness values for {len(population)} genomes"
        )
    if not population:
        return []

    fitness_array = np.asarray(fitnesses, dtype=np.int64)
    total = int(fitness_array.sum())
    if total > 0:
        normalized = fitness_array / total
    else:
        normalized = np.full(len(fitness_array), np.nan)

    order = np.argsort(-fitness_array, kind='stable')
    cumulative = np.cumsum(normalized[order])

    return [
        IndividualStatistics(
            genome=population[i],
            fitness=int(fitness_array[i]),
            normalized_fitness=float(normalized[i]),
            cumulative_normalized_fitness=float(c),
        )
        for i, c in zip(order, cumulative)
    ]


def total_fitness_is_zero(statistics: Sequence[IndividualStatistics]) -> bool:
    """True when normalization was undefined for this population."""
    return not statistics or math.isnan(statistics[0].normalized_fitness)


@dataclass(frozen=True)
class GenerationStatistics:
    """Read-only summary of one generation."""
    generation: int
    average_fitness: int
    best_fitness: int
    best_genome: Tuple[Gene, ...]

    @property
    def best_program(self) -> str:
        """Best genome rendered as program text."""
        return genome_to_text(self.best_genome)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generation': self.generation,
            'average_fitness': self.average_fitness,
            'best_fitness': self.best_fitness,
            'best_program': self.best_program,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GenerationStatistics':
        return cls(
            generation=data['generation'],
            average_fitness=data['average_fitness'],
            best_fitness=data['best_fitness'],
            best_genome=tuple(text_to_genome(data['best_program'])),
        )


def summarize_generation(
    statistics: Sequence[IndividualStatistics],
    generation: int,
) -> GenerationStatistics:
    """
    Build the generation summary from sorted individual statistics.

    The average is the mean fitness rounded half to even.
    """
    if not statistics:
        raise ValueError("Cannot summarize an empty population")
    average = int(round(float(np.mean([s.fitness for s in statistics]))))
    best = statistics[0]
    return GenerationStatistics(
        generation=generation,
        average_fitness=average,
        best_fitness=best.fitness,
        best_genome=tuple(best.genome),
    )


class EvolutionHistory:
    """
    Tracks evolution progress over generations.

    Records per-generation statistics for reporting and early stopping.
    """

    def __init__(self):
        self.generations: List[GenerationStatistics] = []

    def record_generation(self, stats: GenerationStatistics) -> None:
        self.generations.append(stats)

    @property
    def best_fitness_trajectory(self) -> List[int]:
        return [g.best_fitness for g in self.generations]

    @property
    def average_fitness_trajectory(self) -> List[int]:
        return [g.average_fitness for g in self.generations]

    @property
    def best(self) -> Optional[GenerationStatistics]:
        """Generation with the highest best fitness (earliest on ties)."""
        if not self.generations:
            return None
        return max(self.generations, key=lambda g: g.best_fitness)

    def to_dict(self) -> Dict[str, Any]:
        """Convert history to dictionary for reporting."""
        return {
            'generations': [g.to_dict() for g in self.generations],
            'best_fitness_trajectory': self.best_fitness_trajectory,
            'average_fitness_trajectory': self.average_fitness_trajectory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvolutionHistory':
        """Restore history from dictionary."""
        history = cls()
        history.generations = [
            GenerationStatistics.from_dict(g) for g in data.get('generations', [])
        ]
        return history

    def should_early_stop(
        self,
        patience: int = 10,
        min_improvement: float = 1.0,
    ) -> bool:
        """
        Check if evolution has stalled.

        Args:
            patience: Generations without improvement before stopping
            min_improvement: Minimum gain in best fitness to count as progress

        Returns:
            True if should stop, False otherwise
        """
        trajectory = self.best_fitness_trajectory
        # Need at least patience + 1 generations to compare
        if len(trajectory) <= patience:
            return False

        recent_best = max(trajectory[-patience:])
        older_best = max(trajectory[:-patience])

        return recent_best - older_best < min_improvement

    def __len__(self) -> int:
        return len(self.generations)
