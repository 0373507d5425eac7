# Lox language package
# This package provides a scanner, parser, resolver and tree-walking interpreter for Lox.
from .interpreter import run_program, run_file, Lox, Interpreter
from .parser import parse_program
from .errors import ErrorReporter, LoxRuntimeError

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'Lox',
    'Interpreter',
    'ErrorReporter',
    'LoxRuntimeError',
]
