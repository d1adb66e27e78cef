"""
Evolutionary operators: selection, crossover, and mutation.

These operators drive the evolutionary search by:
- Selecting fit individuals for reproduction (fitness-proportionate)
- Combining parent genomes through single-point crossover
- Introducing variation through point mutation, insertion and deletion

All randomness comes from an explicitly passed numpy Generator.
"""

from itertools import chain
from typing import Callable, List, Optional, Sequence
import math

import numpy as np

from .genes import Gene, Genome
from .statistics import IndividualStatistics, total_fitness_is_zero

# Called as create_gene(rng) for fresh genes and as
# create_gene(rng, exclude=current) for point mutations that must change the gene
GeneFactory = Callable[..., Gene]


# =============================================================================
# Selection Operators
# =============================================================================

def cumulative_weights(statistics: Sequence[IndividualStatistics]) -> np.ndarray:
    """Cumulative normalized fitness column as an array."""
    return np.fromiter(
        (s.cumulative_normalized_fitness for s in statistics),
        dtype=float,
        count=len(statistics),
    )


def weighted_selection(
    statistics: Sequence[IndividualStatistics],
    rng: np.random.Generator,
    threshold: Optional[float] = None,
    cumulative: Optional[np.ndarray] = None,
) -> Genome:
    """
    Fitness-proportionate selection by binary search.

    Draws a threshold in [0, 1) and returns the first individual (in
    descending-fitness order) whose cumulative share reaches it. When total
    fitness is zero every individual is equally likely.

    Args:
        statistics: Sorted individual statistics
        rng: Random generator
        threshold: Fixed threshold instead of a random draw
        cumulative: Precomputed cumulative_weights(statistics)

    Returns:
        The selected genome (not a copy)
    """
    if not statistics:
        raise ValueError("Cannot select from an empty population")

    if total_fitness_is_zero(statistics):
        return statistics[int(rng.integers(len(statistics)))].genome

    if threshold is None:
        threshold = float(rng.random())
    if cumulative is None:
        cumulative = cumulative_weights(statistics)

    index = int(np.searchsorted(cumulative, threshold, side='left'))
    if index >= len(statistics):
        # Rounding left the last cumulative value just below the threshold
        shares = np.array([s.normalized_fitness for s in statistics])
        nonzero = np.flatnonzero(shares > 0)
        assert len(nonzero) > 0, "No individual has a positive fitness share"
        index = int(nonzero[-1])

    return statistics[index].genome


def elite_count(elitism_fraction: float, population_size: int) -> int:
    """Number of elites: ceil(fraction × size), capped at the population size."""
    return min(population_size, int(math.ceil(elitism_fraction * population_size)))


def elitism_selection(
    statistics: Sequence[IndividualStatistics],
    elitism_fraction: float,
) -> List[Genome]:
    """
    Preserve the top individuals unchanged.

    Args:
        statistics: Sorted individual statistics (ties already in population order)
        elitism_fraction: Fraction of the population to carry over

    Returns:
        Independent copies of the top genomes
    """
    n_elite = elite_count(elitism_fraction, len(statistics))
    return [list(s.genome) for s in statistics[:n_elite]]


# =============================================================================
# Crossover Operators
# =============================================================================

def single_point_crossover(
    left: Genome,
    right: Genome,
    rng: np.random.Generator,
) -> Genome:
    """
    Single-point crossover for equal-length parents.

    Example:
        left  = [a, b, c, d], right = [w, x, y, z], cut at 1
        child = [a, x, y, z]

    Args:
        left: Parent supplying genes before the cut
        right: Parent supplying genes from the cut onward
        rng: Random generator

    Returns:
        New genome of the same length as the parents
    """
    assert len(left) == len(right), (
        f"Fixed-length crossover needs equal lengths, got {len(left)} and {len(right)}"
    )
    if not left:
        return []
    cut = int(rng.integers(len(left)))
    return left[:cut] + right[cut:]


def ratio_crossover(
    left: Genome,
    right: Genome,
    rng: np.random.Generator,
    right_cut_from_left_length: bool = True,
) -> Genome:
    """
    Single-point crossover for parents of any length.

    A ratio r in [0, 1) gives the left cut ceil(len(left) × r). By default
    the right parent is cut at that same index. With
    right_cut_from_left_length=False it is cut at ceil(len(right) × r)
    instead. The child length may differ from both parents.

    Returns:
        New genome
    """
    ratio = float(rng.random())
    left_cut = int(math.ceil(len(left) * ratio))
    if right_cut_from_left_length:
        right_cut = left_cut
    else:
        right_cut = int(math.ceil(len(right) * ratio))
    return left[:left_cut] + right[right_cut:]


# =============================================================================
# Mutation Operators
# =============================================================================

def replacement_gene(
    current: Gene,
    rng: np.random.Generator,
    create_gene: GeneFactory,
    exclude_current: bool = False,
) -> Gene:
    """
    Draw the new value for a point mutation.

    With exclude_current the current gene is passed to the factory as
    exclude, and the factory must return a different gene.

    Raises:
        ValueError: the factory returned the excluded gene
    """
    if not exclude_current:
        return create_gene(rng)
    gene = create_gene(rng, exclude=current)
    if gene == current:
        raise ValueError(f"Gene factory returned the excluded gene {current!r}")
    return gene


def _has_room(genome: Genome, max_length: Optional[int]) -> bool:
    return max_length is None or len(genome) < max_length


def mutate_variable_length(
    genome: Genome,
    rng: np.random.Generator,
    create_gene: GeneFactory,
    mutation_rate: float,
    insertion_rate: float,
    deletion_rate: float,
    exclude_current: bool = False,
    max_length: Optional[int] = None,
) -> Genome:
    """
    Mutate a genome in place, letting its length change.

    A gene may first be prepended with probability insertion_rate. Then each
    position is visited in order:
    1. point mutation with probability mutation_rate
    2. deletion (gene removed) with probability deletion_rate
    3. insertion of a new gene after the position with probability
       insertion_rate; the inserted gene is not visited

    Insertions are skipped once the genome holds max_length genes.

    Returns:
        The same genome object
    """
    if rng.random() < insertion_rate and _has_room(genome, max_length):
        genome.insert(0, create_gene(rng))

    i = 0
    while i < len(genome):
        if rng.random() < mutation_rate:
            genome[i] = replacement_gene(genome[i], rng, create_gene, exclude_current)

        deleted = False
        if rng.random() < deletion_rate:
            del genome[i]
            deleted = True

        if (
            i < len(genome)
            and rng.random() < insertion_rate
            and _has_room(genome, max_length)
        ):
            genome.insert(i + 1, create_gene(rng))
            i += 1

        if not deleted:
            i += 1

    return genome


def mutate_synchronized(
    offspring: List[Genome],
    rng: np.random.Generator,
    create_gene: GeneFactory,
    null_gene: Gene,
    mutation_rate: float,
    insertion_rate: float,
    deletion_rate: float,
    elites: Sequence[Genome] = (),
    exclude_current: bool = False,
    max_length: Optional[int] = None,
) -> List[Genome]:
    """
    Mutate every offspring in place while keeping all genomes equally long.

    Each position of each offspring is visited in order:
    1. point mutation with probability mutation_rate
    2. insertion with probability insertion_rate: a new gene goes after the
       position in this genome and a null gene goes to the same index in
       every other offspring and every elite
    3. deletion with probability deletion_rate: the gene is overwritten
       with the null gene

    Every insertion lengthens all genomes, so without max_length the
    length can grow geometrically within one generation at high insertion
    rates. Insertions are skipped once genomes hold max_length genes.

    Returns:
        The offspring list
    """
    for genome in offspring:
        i = 0
        while i < len(genome):
            if rng.random() < mutation_rate:
                genome[i] = replacement_gene(genome[i], rng, create_gene, exclude_current)

            inserted = False
            if rng.random() < insertion_rate and _has_room(genome, max_length):
                for other in chain(offspring, elites):
                    if other is genome:
                        other.insert(i + 1, create_gene(rng))
                    else:
                        other.insert(i + 1, null_gene)
                inserted = True

            if rng.random() < deletion_rate:
                genome[i] = null_gene

            i += 2 if inserted else 1

    return offspring
