"""
Genetic algorithm for evolving Brainfuck programs.

This module evolves gene sequences that are read as Brainfuck source and
scored by running them against input/output examples.

Key components:
- Gene: Instruction alphabet plus the NULL placeholder
- GeneticAlgorithm: Generation transitions (elitism, selection, crossover, mutation)
- EvolutionConfig: Rates, genome scheme and stopping criteria
- TestCaseFitness / TestCaseValidator: Interpreter-backed scoring
- Operators: Selection, crossover, and mutation functions

Example usage:
    from genetic_brainfuck.evolution import (
        GeneticAlgorithm, EvolutionConfig, TestCase, TestCaseFitness, TestCaseValidator,
    )

    cases = [TestCase(b'', b'hi')]
    config = EvolutionConfig(population_size=100, genome_length=8, seed=1)
    ga = GeneticAlgorithm(
        TestCaseFitness(cases),
        validator=TestCaseValidator(cases),
        config=config,
    )
    ga.initialize_population()
    result = ga.evolve(n_generations=200)

    print(result.summary())
"""

from .genes import (
    Gene,
    INSTRUCTION_GENES,
    random_gene,
    genome_to_text,
    text_to_genome,
    coding_length,
)
from .statistics import (
    IndividualStatistics,
    GenerationStatistics,
    EvolutionHistory,
    compute_individual_statistics,
    summarize_generation,
)
from .operators import (
    weighted_selection,
    elitism_selection,
    single_point_crossover,
    ratio_crossover,
    mutate_variable_length,
    mutate_synchronized,
)
from .fitness import (
    TestCase,
    FitnessConfig,
    TestCaseFitness,
    TestCaseValidator,
    output_score,
    compute_fitness,
    validate_program,
    is_correct_program,
)
from .engine import (
    GeneticAlgorithm,
    EvolutionConfig,
    EvolutionResult,
    PopulationInitializationError,
)

__all__ = [
    # Core classes
    'GeneticAlgorithm',
    'EvolutionConfig',
    'EvolutionResult',
    'PopulationInitializationError',
    # Genes
    'Gene',
    'INSTRUCTION_GENES',
    'random_gene',
    'genome_to_text',
    'text_to_genome',
    'coding_length',
    # Statistics
    'IndividualStatistics',
    'GenerationStatistics',
    'EvolutionHistory',
    'compute_individual_statistics',
    'summarize_generation',
    # Operators
    'weighted_selection',
    'elitism_selection',
    'single_point_crossover',
    'ratio_crossover',
    'mutate_variable_length',
    'mutate_synchronized',
    # Fitness
    'TestCase',
    'FitnessConfig',
    'TestCaseFitness',
    'TestCaseValidator',
    'output_score',
    'compute_fitness',
    'validate_program',
    'is_correct_program',
]
