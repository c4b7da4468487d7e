"""Value and type definitions for gcalc.

A gcalc value is either a Number, represented directly as a
`decimal.Decimal`, or a List, represented by `ListVal` wrapping a flat
sequence of Decimals. `TypeSpec` names the kind of a value as it appears in
parameter and return annotations (`Number`, `List`). The checker also uses
the `Any` kind for parameters whose kind is only known per call.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, List, Union


@dataclass(frozen=True)
class TypeSpec:
    """A gcalc type annotation.

    `kind` is 'Number', 'List' or 'Any'. Only the first two may be written
    in source; 'Any' is internal to the checker.
    """
    kind: str

    def __repr__(self) -> str:
        return self.kind

    # Convenience constructors
    @staticmethod
    def number() -> 'TypeSpec':
        return TypeSpec('Number')

    @staticmethod
    def list() -> 'TypeSpec':
        return TypeSpec('List')

    @staticmethod
    def any() -> 'TypeSpec':
        return TypeSpec('Any')

    @property
    def is_known(self) -> bool:
        return self.kind != 'Any'


DECLARABLE_KINDS = ('Number', 'List')


@dataclass
class ListVal:
    """Represents a gcalc list value.

    Lists are flat: every item is a Decimal. The evaluator refuses to build a
    list holding another list.
    """
    items: List[Decimal] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    def __repr__(self) -> str:
        return f"List({self.items!r})"


Value = Union[Decimal, ListVal]


def type_name(value: Any) -> str:
    """Return the gcalc kind name of a runtime value."""
    if isinstance(value, Decimal):
        return 'Number'
    if isinstance(value, ListVal):
        return 'List'
    return type(value).__name__


def type_of(value: Value) -> TypeSpec:
    return TypeSpec(type_name(value))


def check_value(value: Any, spec: TypeSpec) -> bool:
    """Check whether a runtime value matches a type specification.

    Returns True if it does. If it does not, raises a Python TypeError with a
    descriptive message; callers translate that into a TypeMismatchError
    carrying the parameter name and source offset.
    """
    kind = spec.kind
    if kind == 'Any':
        return True
    if kind == 'Number':
        if isinstance(value, Decimal):
            return True
        raise TypeError(f"expected Number, got {type_name(value)}")
    if kind == 'List':
        if isinstance(value, ListVal):
            return True
        raise TypeError(f"expected List, got {type_name(value)}")
    raise TypeError(f"unknown type spec: {spec}")


def to_number(value: Any) -> Decimal:
    """Convert a host-supplied scalar into a Decimal.

    Floats go through their shortest repr so that 0.1 becomes Decimal('0.1')
    rather than its full binary expansion.
    """
    if isinstance(value, bool):
        raise TypeError('booleans are not gcalc numbers')
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"cannot convert {value!r} to Number")
        return Decimal(repr(value))
    if isinstance(value, str):
        try:
            number = Decimal(value)
        except InvalidOperation:
            raise TypeError(f"cannot convert {value!r} to Number") from None
        if not number.is_finite():
            raise TypeError(f"cannot convert {value!r} to Number")
        return number
    raise TypeError(f"cannot convert {type(value).__name__} to Number")


def to_value(value: Any) -> Value:
    """Normalise a host binding (number or flat sequence of numbers) to a Value."""
    if isinstance(value, ListVal):
        return value
    if isinstance(value, (list, tuple)):
        return ListVal([to_number(item) for item in value])
    return to_number(value)


def format_number(value: Decimal) -> str:
    """Plain rendering of a Number for the CLI host.

    Integral values print without a fraction, everything else without
    trailing zeros and never in exponent notation.
    """
    if value == value.to_integral_value():
        return format(value.to_integral_value(), 'f')
    return format(value.normalize(), 'f')


def to_string(value: Any) -> str:
    """Convert a gcalc value to its string representation for printing."""
    if isinstance(value, Decimal):
        return format_number(value)
    if isinstance(value, ListVal):
        return '[' + ', '.join(format_number(item) for item in value.items) + ']'
    return str(value)
