"""
Program tree representation.

A program is a tree of loop nodes whose children are either leaf
instructions or nested loops. The root is also a LoopNode, but the executor
runs its children exactly once instead of treating it as a conditional loop.
Trees are immutable once built.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union


class Op(Enum):
    """Leaf instructions, valued by their source symbol."""
    MOVE_RIGHT = '>'
    MOVE_LEFT = '<'
    INCREMENT = '+'
    DECREMENT = '-'
    INPUT = ','
    OUTPUT = '.'

    @property
    def symbol(self) -> str:
        return self.value


LOOP_BEGIN = '['
LOOP_END = ']'

# All eight symbols the parser understands
SYMBOLS = ''.join(op.symbol for op in Op) + LOOP_BEGIN + LOOP_END


@dataclass(frozen=True)
class LoopNode:
    """Ordered children executed while the current cell is non-zero."""
    children: Tuple['Node', ...] = ()

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self):
        return iter(self.children)


Node = Union[Op, LoopNode]


def to_source(node: Node, root: bool = True) -> str:
    """
    Unparse a tree back into program text.

    The root's children are emitted without surrounding brackets. Parsing
    the result gives back an equal tree.
    """
    if isinstance(node, Op):
        return node.symbol

    parts = []
    # Explicit stack of (loop, next child index) so deep nesting is safe
    stack = [(node, 0)]
    while stack:
        loop, index = stack.pop()
        if index == len(loop.children):
            if stack or not root:
                parts.append(LOOP_END)
            continue
        stack.append((loop, index + 1))
        child = loop.children[index]
        if isinstance(child, LoopNode):
            parts.append(LOOP_BEGIN)
            stack.append((child, 0))
        else:
            parts.append(child.symbol)

    if not root:
        return LOOP_BEGIN + ''.join(parts)
    return ''.join(parts)


def count_instructions(node: Node) -> int:
    """Number of leaf instructions in the tree."""
    if isinstance(node, Op):
        return 1
    total = 0
    pending = [node]
    while pending:
        loop = pending.pop()
        for child in loop.children:
            if isinstance(child, LoopNode):
                pending.append(child)
            else:
                total += 1
    return total


def max_depth(node: Node) -> int:
    """Deepest loop nesting below the given node (root alone is 0)."""
    if isinstance(node, Op):
        return 0
    deepest = 0
    pending = [(node, 0)]
    while pending:
        loop, depth = pending.pop()
        deepest = max(deepest, depth)
        for child in loop.children:
            if isinstance(child, LoopNode):
                pending.append((child, depth + 1))
    return deepest
