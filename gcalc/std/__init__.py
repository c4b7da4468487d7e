from typing import List

from gcalc.builtin_function import BuiltinFunction
from gcalc.types import TypeSpec

from . import lists, numeric


def standard_builtins() -> List[BuiltinFunction]:
    """Built-in functions available in every session."""
    number = TypeSpec.number()
    list_ = TypeSpec.list()
    builtins: List[BuiltinFunction] = []
    for name, fn in numeric.UNARY.items():
        builtins.append(BuiltinFunction(name, (number,), number, fn))
    for name, fn in numeric.BINARY.items():
        builtins.append(BuiltinFunction(name, (number, number), number, fn))
    for name, fn in lists.AGGREGATES.items():
        builtins.append(BuiltinFunction(name, (list_,), number, fn))
    builtins.append(BuiltinFunction('sort', (list_,), list_, lists.std_sort))
    return builtins
