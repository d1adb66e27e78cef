"""
Genetic Brainfuck - evolving Brainfuck programs from input/output examples.

Subpackages:
- interpreter: bounded, cancellable Brainfuck interpreter
- evolution: genetic algorithm over gene sequences
"""

__version__ = '0.1.0'
