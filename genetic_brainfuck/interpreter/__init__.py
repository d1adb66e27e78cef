"""
Bounded interpreter for the eight-instruction Brainfuck language.

Key components:
- MemoryTape: wrap-around byte cells with a cursor
- parse: program text to an immutable tree of LoopNode / Op
- execute: deterministic tree walk with instruction budget and cancellation
- Program: parsed program bound to its own tape

Example usage:
    from genetic_brainfuck.interpreter import Program

    program = Program(',+.', memory_size=10)
    result = program.run(b'A', max_instructions=1000)
    print(result.output)  # b'B'
"""

from .errors import (
    BrainfuckError,
    MalformedProgram,
    UnterminatedLoop,
    UnmatchedLoopEnd,
    ExecutionFailure,
    BudgetExceeded,
    InputExhausted,
    UnusedInput,
    Cancelled,
)
from .memory import MemoryTape, DEFAULT_MEMORY_SIZE
from .nodes import Op, LoopNode, SYMBOLS, to_source, count_instructions, max_depth
from .parser import parse
from .executor import CancellationToken, ExecutionResult, execute
from .program import Program

__all__ = [
    # Errors
    'BrainfuckError',
    'MalformedProgram',
    'UnterminatedLoop',
    'UnmatchedLoopEnd',
    'ExecutionFailure',
    'BudgetExceeded',
    'InputExhausted',
    'UnusedInput',
    'Cancelled',
    # Memory
    'MemoryTape',
    'DEFAULT_MEMORY_SIZE',
    # Program tree
    'Op',
    'LoopNode',
    'SYMBOLS',
    'to_source',
    'count_instructions',
    'max_depth',
    'parse',
    # Execution
    'CancellationToken',
    'ExecutionResult',
    'execute',
    'Program',
]
