# gcalc language package
# This package provides a parser and interpreter for a graphing-calculator
# style expression language.
from .interpreter import run_statement, run_program, compile_module, Interpreter, Registration
from .errors import (
    CalcError, LexError, ParseError, UndefinedFunctionError, UndefinedVariableError,
    ArityError, TypeMismatchError, ShapeError, DomainError, MathError, RecursionLimitError,
)
from .types import ListVal, TypeSpec

__all__ = [
    'run_statement',
    'run_program',
    'compile_module',
    'Interpreter',
    'Registration',
    'CalcError',
    'LexError',
    'ParseError',
    'UndefinedFunctionError',
    'UndefinedVariableError',
    'ArityError',
    'TypeMismatchError',
    'ShapeError',
    'DomainError',
    'MathError',
    'RecursionLimitError',
    'ListVal',
    'TypeSpec',
]
