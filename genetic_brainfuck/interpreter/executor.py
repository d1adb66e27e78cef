"""
Bounded tree-walking executor.

Runs a program tree against a memory tape and an input byte sequence.
Runs are bounded in two ways:
- an instruction budget (leaf instructions plus loop condition checks)
- a CancellationToken carrying an optional wall-clock timeout and a flag
  that other threads may set

Both are polled before every instruction and every loop re-entry, so a
program stuck in an infinite loop always stops at the next step.
"""

import threading
import time
from dataclasses import dataclass
from typing import Iterable, Optional

from .errors import BudgetExceeded, Cancelled, InputExhausted, UnusedInput
from .memory import MemoryTape
from .nodes import LoopNode, Op


class CancellationToken:
    """
    Cooperative cancellation signal for a run.

    Args:
        timeout: Seconds from construction after which the token expires
    """

    def __init__(self, timeout: Optional[float] = None):
        self._event = threading.Event()
        self.deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self) -> None:
        """Raise if the run should stop."""
        if self._event.is_set():
            raise Cancelled("Cancellation requested")
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise BudgetExceeded("Time limit exceeded")


@dataclass
class ExecutionResult:
    """Output of a completed run."""
    output: bytes
    instructions: int


def execute(
    tree: LoopNode,
    memory: MemoryTape,
    input_bytes: Iterable[int] = b'',
    max_instructions: Optional[int] = None,
    token: Optional[CancellationToken] = None,
    allow_unused_input: bool = False,
) -> ExecutionResult:
    """
    Execute a program tree.

    The root's children run once. Every nested LoopNode repeats its children
    while the current cell is non-zero, checking the cell before each
    iteration. Each leaf and each loop condition check costs one unit of the
    instruction budget.

    Args:
        tree: Root node returned by the parser
        memory: Tape to run on (not reset here)
        input_bytes: Bytes consumed by input instructions
        max_instructions: Instruction budget (None for unlimited)
        token: Optional cancellation token
        allow_unused_input: Accept runs that leave input unread

    Returns:
        ExecutionResult with the output bytes and units consumed

    Raises:
        BudgetExceeded: budget or timeout ran out
        Cancelled: token was cancelled
        InputExhausted: an input instruction found no byte left
        UnusedInput: input remained after the program ended
    """
    if max_instructions is not None and max_instructions < 0:
        raise ValueError(f"max_instructions must be non-negative, got {max_instructions}")

    inputs = iter(bytes(input_bytes))
    output = bytearray()
    instructions = 0

    # Frames are [loop, next child index]; the first frame is the root
    frames = [[tree, 0]]

    while frames:
        frame = frames[-1]
        loop, index = frame
        exhausted = index == len(loop.children)

        if exhausted and len(frames) == 1:
            frames.pop()
            continue

        if token is not None:
            token.check()
        if max_instructions is not None and instructions >= max_instructions:
            raise BudgetExceeded(f"Instruction budget of {max_instructions} exhausted")

        if exhausted:
            # End of a loop body: re-check the condition
            instructions += 1
            if memory.value:
                frame[1] = 0
            else:
                frames.pop()
            continue

        node = loop.children[index]
        frame[1] = index + 1
        instructions += 1

        if node is Op.MOVE_RIGHT:
            memory.move_right()
        elif node is Op.MOVE_LEFT:
            memory.move_left()
        elif node is Op.INCREMENT:
            memory.increment()
        elif node is Op.DECREMENT:
            memory.decrement()
        elif node is Op.INPUT:
            value = next(inputs, None)
            if value is None:
                raise InputExhausted("No input available anymore")
            memory.value = value
        elif node is Op.OUTPUT:
            output.append(memory.value)
        elif isinstance(node, LoopNode):
            # Condition check before the first iteration
            if memory.value:
                frames.append([node, 0])
        else:
            raise TypeError(f"Unexpected node in program tree: {node!r}")

    if not allow_unused_input and next(inputs, None) is not None:
        raise UnusedInput("Not all input was used")

    return ExecutionResult(output=bytes(output), instructions=instructions)
