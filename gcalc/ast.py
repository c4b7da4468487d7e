"""Abstract Syntax Tree (AST) definitions for gcalc statements.

The AST classes defined in this module represent the syntactic structure of
a single parsed statement. They are used by the checker and the interpreter.
Nodes are frozen: once the parser builds a tree it is never mutated, and a
function body registered in the environment is shared only by reference to
that immutable tree.

Every node records the `offset` of its first token in the statement source.
Offsets are excluded from equality so that two parses of equivalent text
compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple, Union

from .types import TypeSpec


@dataclass(frozen=True)
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass(frozen=True)
class NumberLiteral(Node):
    value: Decimal
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Variable(Node):
    name: str
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class ListLiteral(Node):
    elements: Tuple[Node, ...]
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Call(Node):
    name: str
    args: Tuple[Node, ...]
    mapped: bool = False  # true for the elementwise `f@(...)` form
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UnaryExpr(Node):
    operand: Node
    op: str = '!'
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class BinaryChain(Node):
    """A flat `first (op term)*` chain as written in the source.

    Precedence is not encoded in the shape of the tree; consumers fold the
    chain with `gcalc.precedence.fold_chain`.
    """
    first: Node
    rest: Tuple[Tuple[str, Node], ...]
    offset: int = field(default=0, compare=False)

    @property
    def operands(self) -> Tuple[Node, ...]:
        return (self.first,) + tuple(term for _, term in self.rest)

    @property
    def operators(self) -> Tuple[str, ...]:
        return tuple(op for op, _ in self.rest)


@dataclass(frozen=True)
class Condition(Node):
    left: Node
    cmp: str  # one of '=', '<', '>', '<=', '>='
    right: Node
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Piecewise(Node):
    branches: Tuple[Tuple[Condition, Node], ...]
    otherwise: Node
    offset: int = field(default=0, compare=False)


Expression = Union[NumberLiteral, Variable, ListLiteral, Call, UnaryExpr,
                   BinaryChain, Piecewise]


@dataclass(frozen=True)
class FuncParam:
    name: str
    type_spec: Optional[TypeSpec] = None
    offset: int = field(default=0, compare=False)


@dataclass(frozen=True)
class FuncDef:
    name: str
    params: Tuple[FuncParam, ...]
    return_type: Optional[TypeSpec] = None
    offset: int = field(default=0, compare=False)

    @property
    def arity(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class FuncDefStmt(Node):
    definition: FuncDef
    body: Node
    offset: int = field(default=0, compare=False)


Stmt = Union[FuncDefStmt, Expression]
