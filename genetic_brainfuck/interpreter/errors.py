"""
Exceptions raised by the Brainfuck interpreter.

Two families:
- MalformedProgram: the program text cannot be turned into a tree
- ExecutionFailure: the tree was built but a run did not complete

Every exception carries a ``retriable`` flag. A retriable failure means the
individual that produced the program is merely invalid and a caller may try
another one; nothing here is fatal to the genetic algorithm.
"""


class BrainfuckError(Exception):
    """Base class for all interpreter errors."""
    retriable = False


class MalformedProgram(BrainfuckError):
    """Program text could not be parsed into a program tree."""


class UnterminatedLoop(MalformedProgram):
    """Input ended while a loop was still open."""
    retriable = True


class UnmatchedLoopEnd(MalformedProgram):
    """A loop end symbol appeared with no loop open."""


class ExecutionFailure(BrainfuckError):
    """A program run stopped before producing its output."""


class BudgetExceeded(ExecutionFailure):
    """The instruction budget or the time limit ran out."""


class InputExhausted(ExecutionFailure):
    """The program read more input bytes than were supplied."""


class UnusedInput(ExecutionFailure):
    """The program finished without reading all of its input."""
    retriable = True


class Cancelled(ExecutionFailure):
    """The run was cancelled from outside."""
