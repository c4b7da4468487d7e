from dataclasses import dataclass
from typing import Optional


@dataclass
class ErrorInfo:
    """Structured description of a failed statement.

    `kind` is one of the error taxonomy names (for example 'SyntaxError' or
    'ShapeError'), `offset` is the character offset into the statement source
    where the problem was detected, when known.
    """
    kind: str
    message: str
    offset: Optional[int] = None

    def __repr__(self) -> str:
        return f"Error(kind={self.kind!r}, message={self.message!r}, offset={self.offset!r})"


class CalcError(Exception):
    """Exception type used to propagate gcalc lexing, parsing and evaluation errors."""
    kind = 'CalcError'

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(f"{self.kind}: {message}")
        self.err = ErrorInfo(self.kind, message, offset)

    @property
    def message(self) -> str:
        return self.err.message

    @property
    def offset(self) -> Optional[int]:
        return self.err.offset

    def format(self, source: Optional[str] = None) -> str:
        """Render the error with the offending source line and a caret."""
        if self.offset is None:
            return f"{self.kind}: {self.message}"
        header = f"{self.offset}: {self.kind}: {self.message}"
        if source is None:
            return header
        # Statements are single line, but a host may hand over text with a
        # stray newline; point into the line holding the offset.
        line_start = source.rfind('\n', 0, self.offset) + 1
        line_end = source.find('\n', self.offset)
        if line_end == -1:
            line_end = len(source)
        line = source[line_start:line_end]
        caret = ' ' * (self.offset - line_start) + '^'
        return '\n'.join([header, f"  | {line}", f"  | {caret}"])


class LexError(CalcError):
    kind = 'LexError'


class ParseError(CalcError):
    kind = 'SyntaxError'

    def __init__(self, message: str, offset: Optional[int] = None, expected: Optional[str] = None):
        super().__init__(message, offset)
        self.expected = expected


class UndefinedFunctionError(CalcError):
    kind = 'UndefinedFunctionError'

    def __init__(self, name: str, arity: int, offset: Optional[int] = None):
        super().__init__(f"Unknown function '{name}' taking {arity} argument(s)", offset)
        self.name = name
        self.arity = arity


class UndefinedVariableError(CalcError):
    kind = 'UndefinedVariableError'

    def __init__(self, name: str, offset: Optional[int] = None):
        super().__init__(f"Undefined variable '{name}'", offset)
        self.name = name


class ArityError(CalcError):
    kind = 'ArityError'


class TypeMismatchError(CalcError):
    kind = 'TypeMismatchError'

    def __init__(self, expected: str, got: str, param_name: Optional[str] = None,
                 offset: Optional[int] = None, context: Optional[str] = None):
        if context is None:
            context = f"parameter '{param_name}'" if param_name else 'expression'
        super().__init__(f"Expected type {expected} but got {got} for {context}", offset)
        self.expected = expected
        self.got = got
        self.param_name = param_name


class ShapeError(CalcError):
    kind = 'ShapeError'


class DomainError(CalcError):
    kind = 'DomainError'


class MathError(CalcError):
    """Division or modulo by zero."""
    kind = 'ArithmeticError'


class RecursionLimitError(CalcError):
    kind = 'RecursionLimitError'
