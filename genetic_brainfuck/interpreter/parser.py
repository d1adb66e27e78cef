"""
Parser turning program text into a program tree.
"""

from typing import List

from .errors import UnmatchedLoopEnd, UnterminatedLoop
from .nodes import LOOP_BEGIN, LOOP_END, LoopNode, Node, Op

_LEAF_SYMBOLS = {op.symbol: op for op in Op}


def parse(program_text: str) -> LoopNode:
    """
    Parse program text into a tree rooted at a LoopNode.

    Characters outside the eight instruction symbols are skipped, so gene
    placeholders and whitespace may be embedded freely.

    Args:
        program_text: Source text

    Returns:
        Root LoopNode whose children run once

    Raises:
        UnmatchedLoopEnd: a loop end appears with no loop open
        UnterminatedLoop: the text ends while a loop is still open
    """
    # Children collected so far for each open loop; index 0 is the root
    open_loops: List[List[Node]] = [[]]

    for position, symbol in enumerate(program_text):
        leaf = _LEAF_SYMBOLS.get(symbol)
        if leaf is not None:
            open_loops[-1].append(leaf)
        elif symbol == LOOP_BEGIN:
            open_loops.append([])
        elif symbol == LOOP_END:
            if len(open_loops) == 1:
                raise UnmatchedLoopEnd(
                    f"Loop end at position {position} has no matching loop begin"
                )
            children = open_loops.pop()
            open_loops[-1].append(LoopNode(tuple(children)))

    if len(open_loops) > 1:
        raise UnterminatedLoop(
            f"Program ended with {len(open_loops) - 1} unclosed loop(s)"
        )

    return LoopNode(tuple(open_loops[0]))
