"""
A parsed program bound to its own memory tape.
"""

from typing import Iterable, Optional

from .executor import CancellationToken, ExecutionResult, execute
from .memory import DEFAULT_MEMORY_SIZE, MemoryTape
from .nodes import LoopNode, to_source
from .parser import parse


class Program:
    """
    Program text parsed once and run any number of times.

    Each run after the first starts from a freshly reset tape, so runs over
    different test cases never see each other's memory.

    Args:
        program_text: Source text (non-instruction characters are ignored)
        memory: Tape to run on; a new one of memory_size cells by default
        memory_size: Tape size used when no tape is given

    Raises:
        MalformedProgram: the text does not parse
    """

    def __init__(
        self,
        program_text: str,
        memory: Optional[MemoryTape] = None,
        memory_size: int = DEFAULT_MEMORY_SIZE,
    ):
        self.tree: LoopNode = parse(program_text)
        self.memory = memory if memory is not None else MemoryTape(memory_size)
        self.executions = 0

    @property
    def source(self) -> str:
        """Canonical program text (instruction symbols only)."""
        return to_source(self.tree)

    def run(
        self,
        input_bytes: Iterable[int] = b'',
        max_instructions: Optional[int] = None,
        token: Optional[CancellationToken] = None,
        allow_unused_input: bool = False,
    ) -> ExecutionResult:
        """Execute against the given input. See executor.execute."""
        if self.executions > 0:
            self.memory.reset()
        self.executions += 1
        return execute(
            self.tree,
            self.memory,
            input_bytes,
            max_instructions=max_instructions,
            token=token,
            allow_unused_input=allow_unused_input,
        )

    def __repr__(self) -> str:
        return f"Program({self.source!r})"
