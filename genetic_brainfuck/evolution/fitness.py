"""
Fitness evaluation of evolved programs against input/output test cases.

Fitness components:
- output_score: closeness of each produced byte to the expected byte
- instruction penalty: budget units spent across all test cases
- length penalty: number of instruction genes in the program

Any interpreter error (malformed program, exhausted budget, missing or
unused input) scores 0. Errors never propagate to the genetic algorithm.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional, Sequence, Union
import logging

from ..interpreter import SYMBOLS, BrainfuckError, CancellationToken, ExecutionResult, Program
from ..interpreter.memory import DEFAULT_MEMORY_SIZE
from .genes import Gene, coding_length, genome_to_text

logger = logging.getLogger(__name__)

GenomeOrText = Union[str, Sequence[Gene]]

MAX_BYTE_SCORE = 255


@dataclass(frozen=True)
class TestCase:
    """One input/output example."""
    __test__ = False

    input: bytes
    expected_output: bytes

    def __post_init__(self):
        object.__setattr__(self, 'input', bytes(self.input))
        object.__setattr__(self, 'expected_output', bytes(self.expected_output))


@dataclass
class FitnessConfig:
    """Interpreter limits and scoring weights for fitness evaluation."""
    memory_size: int = DEFAULT_MEMORY_SIZE
    max_instructions: Optional[int] = 10_000
    timeout: Optional[float] = None         # seconds per program, all test cases
    output_weight: int = 10
    instruction_penalty_divisor: int = 100
    allow_unused_input: bool = False

    def __post_init__(self):
        if self.memory_size < 1:
            raise ValueError(f"memory_size must be at least 1, got {self.memory_size}")
        if self.max_instructions is None and self.timeout is None:
            raise ValueError("Set max_instructions or timeout so runs always terminate")
        if self.instruction_penalty_divisor < 1:
            raise ValueError("instruction_penalty_divisor must be at least 1")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _program_text(program: GenomeOrText) -> str:
    if isinstance(program, str):
        return program
    return genome_to_text(program)


def _program_length(program: GenomeOrText) -> int:
    if isinstance(program, str):
        return sum(1 for c in program if c in SYMBOLS)
    return coding_length(program)


def _run_test_cases(
    text: str,
    test_cases: Sequence[TestCase],
    config: FitnessConfig,
) -> List[ExecutionResult]:
    """Run every test case through one compiled program (raises BrainfuckError)."""
    token = CancellationToken(config.timeout) if config.timeout is not None else None
    compiled = Program(text, memory_size=config.memory_size)
    return [
        compiled.run(
            case.input,
            max_instructions=config.max_instructions,
            token=token,
            allow_unused_input=config.allow_unused_input,
        )
        for case in test_cases
    ]


def output_score(expected: bytes, actual: bytes) -> int:
    """
    Score how close actual output is to expected output.

    Each expected byte that was produced earns 255 − |actual − expected|.
    Each byte produced beyond the expected length costs 255.
    """
    score = 0
    for i, expected_byte in enumerate(expected):
        if i < len(actual):
            score += MAX_BYTE_SCORE - abs(actual[i] - expected_byte)
    for _ in range(len(expected), len(actual)):
        score -= MAX_BYTE_SCORE
    return score


def compute_fitness(
    program: GenomeOrText,
    test_cases: Sequence[TestCase],
    config: Optional[FitnessConfig] = None,
) -> int:
    """
    Evaluate a genome (or program text) against test cases.

    fitness = output_weight × Σ output_score
              − Σ instructions // instruction_penalty_divisor
              − program length

    clamped at 0.

    Args:
        program: Genome or program text
        test_cases: Examples to run
        config: Limits and weights

    Returns:
        Integer fitness >= 0
    """
    config = config or FitnessConfig()
    text = _program_text(program)
    try:
        results = _run_test_cases(text, test_cases, config)
    except BrainfuckError as e:
        logger.debug("Program %r scored 0: %s: %s", text, type(e).__name__, e)
        return 0

    score = sum(
        output_score(case.expected_output, result.output)
        for case, result in zip(test_cases, results)
    )
    instructions = sum(result.instructions for result in results)

    fitness = score * config.output_weight
    fitness -= instructions // config.instruction_penalty_divisor
    fitness -= _program_length(program)
    return max(fitness, 0)


def validate_program(
    program: GenomeOrText,
    test_cases: Sequence[TestCase],
    config: Optional[FitnessConfig] = None,
) -> bool:
    """
    Check that a program parses and runs the first test case's input.

    The output is not compared; this only rejects structurally broken or
    non-terminating individuals.
    """
    config = config or FitnessConfig()
    text = _program_text(program)
    try:
        _run_test_cases(text, test_cases[:1], config)
    except BrainfuckError as e:
        logger.debug("Program %r rejected: %s", text, type(e).__name__)
        return False
    return True


def is_correct_program(
    program: GenomeOrText,
    test_cases: Sequence[TestCase],
    config: Optional[FitnessConfig] = None,
) -> bool:
    """True when the program reproduces every expected output exactly."""
    config = config or FitnessConfig()
    try:
        results = _run_test_cases(_program_text(program), test_cases, config)
    except BrainfuckError:
        return False
    return all(
        result.output == case.expected_output
        for case, result in zip(test_cases, results)
    )


class TestCaseFitness:
    """
    Picklable fitness function bound to a set of test cases.

    Suitable as the engine's fitness_fn, including with n_workers > 1.
    """
    __test__ = False

    def __init__(self, test_cases: Sequence[TestCase], config: Optional[FitnessConfig] = None):
        self.test_cases: List[TestCase] = list(test_cases)
        self.config = config or FitnessConfig()

    def __call__(self, genome: Sequence[Gene]) -> int:
        return compute_fitness(genome, self.test_cases, self.config)


class TestCaseValidator:
    """Picklable validity predicate bound to a set of test cases."""
    __test__ = False

    def __init__(self, test_cases: Sequence[TestCase], config: Optional[FitnessConfig] = None):
        self.test_cases: List[TestCase] = list(test_cases)
        self.config = config or FitnessConfig()

    def __call__(self, genome: Sequence[Gene]) -> bool:
        return validate_program(genome, self.test_cases, self.config)
