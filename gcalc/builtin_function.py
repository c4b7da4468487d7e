from dataclasses import dataclass, field
from typing import Any, Optional, Tuple

from gcalc.ast import FuncDef, Node
from gcalc.types import TypeSpec


@dataclass
class BuiltinFunction:
    name: str
    param_types: Tuple[TypeSpec, ...]
    return_type: TypeSpec
    fn: Any

    @property
    def arity(self) -> int:
        return len(self.param_types)

    def __repr__(self) -> str:
        return f"<builtin {self.name}/{self.arity}>"


@dataclass
class UserFunction:
    """A function registered by a definition statement.

    `source` is the statement text the definition was parsed from, kept so
    that a host can persist and replay a session.
    """
    definition: FuncDef
    body: Node
    source: Optional[str] = field(default=None, compare=False)

    @property
    def name(self) -> str:
        return self.definition.name

    @property
    def arity(self) -> int:
        return self.definition.arity

    @property
    def param_types(self) -> Tuple[TypeSpec, ...]:
        return tuple(p.type_spec or TypeSpec.any() for p in self.definition.params)

    @property
    def return_type(self) -> TypeSpec:
        return self.definition.return_type or TypeSpec.any()

    def __repr__(self) -> str:
        return f"<function {self.name}/{self.arity}>"
