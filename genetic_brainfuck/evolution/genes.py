"""
Gene alphabet for evolved Brainfuck programs.

A genome is a plain list of Gene values in program source order. Each of the
eight instruction genes maps to one source symbol. Gene.NULL is a
placeholder used by the length-preserving mutation scheme: it renders as a
character the parser skips, so a genome full of placeholders is still a
valid program.
"""

from enum import IntEnum
from typing import Iterable, List, Optional

import numpy as np


class Gene(IntEnum):
    MOVE_RIGHT = 0
    MOVE_LEFT = 1
    INCREMENT = 2
    DECREMENT = 3
    INPUT = 4
    OUTPUT = 5
    LOOP_BEGIN = 6
    LOOP_END = 7
    NULL = 8


# The eight genes a random gene factory draws from
INSTRUCTION_GENES = [g for g in Gene if g is not Gene.NULL]

NULL_SYMBOL = '_'

GENE_SYMBOLS = {
    Gene.MOVE_RIGHT: '>',
    Gene.MOVE_LEFT: '<',
    Gene.INCREMENT: '+',
    Gene.DECREMENT: '-',
    Gene.INPUT: ',',
    Gene.OUTPUT: '.',
    Gene.LOOP_BEGIN: '[',
    Gene.LOOP_END: ']',
    Gene.NULL: NULL_SYMBOL,
}

_SYMBOL_GENES = {symbol: gene for gene, symbol in GENE_SYMBOLS.items()}

Genome = List[Gene]


def random_gene(rng: np.random.Generator, exclude: Optional[Gene] = None) -> Gene:
    """
    Draw one instruction gene uniformly at random.

    Args:
        rng: Random generator
        exclude: Gene that must not be returned (for non-trivial point mutations)

    Returns:
        A gene other than NULL (and other than exclude)
    """
    choices = INSTRUCTION_GENES
    if exclude is not None:
        choices = [g for g in INSTRUCTION_GENES if g != exclude]
    return choices[int(rng.integers(len(choices)))]


def gene_to_char(gene: Gene) -> str:
    """Source symbol for a gene."""
    try:
        return GENE_SYMBOLS[Gene(gene)]
    except ValueError:
        raise ValueError(f"Unknown gene: {gene!r}")


def genome_to_text(genome: Iterable[Gene]) -> str:
    """Render a genome as program text (NULL genes become '_')."""
    return ''.join(gene_to_char(g) for g in genome)


def text_to_genome(text: str) -> Genome:
    """
    Convert program text to a genome.

    Raises:
        ValueError: text contains a character with no gene
    """
    genome = []
    for symbol in text:
        if symbol not in _SYMBOL_GENES:
            raise ValueError(f"No gene for symbol {symbol!r}")
        genome.append(_SYMBOL_GENES[symbol])
    return genome


def coding_length(genome: Iterable[Gene]) -> int:
    """Number of genes that are real instructions (NULL excluded)."""
    return sum(1 for g in genome if g != Gene.NULL)
