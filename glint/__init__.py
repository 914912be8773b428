# Glint language package
# This package provides a lexer, parser and tree-walking interpreter for Glint.
from .errors import GlintError, LexError, ParseError, GlintRuntimeError
from .interpreter import run_program, run_file, Interpreter
from .parser import parse_program

__all__ = [
    'run_program',
    'run_file',
    'parse_program',
    'Interpreter',
    'GlintError',
    'LexError',
    'ParseError',
    'GlintRuntimeError',
]
