"""JSON serialization/deserialization for gcalc ASTs.

This module converts between gcalc AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Numbers are stored as
strings so that Decimal literals survive the round-trip exactly. Source
offsets are kept so that a reloaded tree still reports error positions.
`ast_to_source` renders a tree back into statement text, which a session
stores for definitions that were loaded from JSON rather than parsed.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from .ast import (
    NumberLiteral,
    Variable,
    ListLiteral,
    Call,
    UnaryExpr,
    BinaryChain,
    Condition,
    Piecewise,
    FuncParam,
    FuncDef,
    FuncDefStmt,
)
from .types import TypeSpec


def typespec_to_obj(t: Optional[TypeSpec]) -> Optional[str]:
    return None if t is None else t.kind


def typespec_from_obj(o: Optional[str]) -> Optional[TypeSpec]:
    return None if o is None else TypeSpec(o)


def ast_to_obj(node: Any) -> Any:
    if isinstance(node, NumberLiteral):
        return {"type": "NumberLiteral", "value": str(node.value), "offset": node.offset}
    if isinstance(node, Variable):
        return {"type": "Variable", "name": node.name, "offset": node.offset}
    if isinstance(node, ListLiteral):
        return {
            "type": "ListLiteral",
            "elements": [ast_to_obj(e) for e in node.elements],
            "offset": node.offset,
        }
    if isinstance(node, Call):
        return {
            "type": "Call",
            "name": node.name,
            "args": [ast_to_obj(a) for a in node.args],
            "mapped": node.mapped,
            "offset": node.offset,
        }
    if isinstance(node, UnaryExpr):
        return {"type": "UnaryExpr", "op": node.op, "operand": ast_to_obj(node.operand), "offset": node.offset}
    if isinstance(node, BinaryChain):
        return {
            "type": "BinaryChain",
            "first": ast_to_obj(node.first),
            "rest": [[op, ast_to_obj(term)] for op, term in node.rest],
            "offset": node.offset,
        }
    if isinstance(node, Condition):
        return {
            "type": "Condition",
            "left": ast_to_obj(node.left),
            "cmp": node.cmp,
            "right": ast_to_obj(node.right),
            "offset": node.offset,
        }
    if isinstance(node, Piecewise):
        return {
            "type": "Piecewise",
            "branches": [[ast_to_obj(c), ast_to_obj(v)] for c, v in node.branches],
            "otherwise": ast_to_obj(node.otherwise),
            "offset": node.offset,
        }
    if isinstance(node, FuncParam):
        return {"type": "FuncParam", "name": node.name, "type_spec": typespec_to_obj(node.type_spec),
                "offset": node.offset}
    if isinstance(node, FuncDef):
        return {
            "type": "FuncDef",
            "name": node.name,
            "params": [ast_to_obj(p) for p in node.params],
            "return_type": typespec_to_obj(node.return_type),
            "offset": node.offset,
        }
    if isinstance(node, FuncDefStmt):
        return {
            "type": "FuncDefStmt",
            "definition": ast_to_obj(node.definition),
            "body": ast_to_obj(node.body),
            "offset": node.offset,
        }

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Dict[str, Any]) -> Any:
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    offset = int(obj.get("offset", 0))
    if t == "NumberLiteral":
        return NumberLiteral(Decimal(obj["value"]), offset)
    if t == "Variable":
        return Variable(obj["name"], offset)
    if t == "ListLiteral":
        return ListLiteral(tuple(ast_from_obj(e) for e in obj["elements"]), offset)
    if t == "Call":
        return Call(
            obj["name"],
            tuple(ast_from_obj(a) for a in obj["args"]),
            bool(obj.get("mapped", False)),
            offset,
        )
    if t == "UnaryExpr":
        return UnaryExpr(ast_from_obj(obj["operand"]), obj.get("op", "!"), offset)
    if t == "BinaryChain":
        return BinaryChain(
            ast_from_obj(obj["first"]),
            tuple((op, ast_from_obj(term)) for op, term in obj["rest"]),
            offset,
        )
    if t == "Condition":
        return Condition(ast_from_obj(obj["left"]), obj["cmp"], ast_from_obj(obj["right"]), offset)
    if t == "Piecewise":
        return Piecewise(
            tuple((ast_from_obj(c), ast_from_obj(v)) for c, v in obj["branches"]),
            ast_from_obj(obj["otherwise"]),
            offset,
        )
    if t == "FuncParam":
        return FuncParam(obj["name"], typespec_from_obj(obj.get("type_spec")), offset)
    if t == "FuncDef":
        return FuncDef(
            obj["name"],
            tuple(ast_from_obj(p) for p in obj["params"]),
            typespec_from_obj(obj.get("return_type")),
            offset,
        )
    if t == "FuncDefStmt":
        return FuncDefStmt(ast_from_obj(obj["definition"]), ast_from_obj(obj["body"]), offset)

    raise ValueError(f"Unknown AST node type: {t}")


def ast_to_source(node: Any) -> str:
    """Render a statement back into gcalc source text.

    The text parses to a tree equal to `node`. Nested chains are
    parenthesised because the parser only builds one from parentheses.
    """
    if isinstance(node, NumberLiteral):
        return format(node.value, 'f')
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, ListLiteral):
        return '[' + ', '.join(ast_to_source(e) for e in node.elements) + ']'
    if isinstance(node, Call):
        opener = '@(' if node.mapped else '('
        return node.name + opener + ', '.join(ast_to_source(a) for a in node.args) + ')'
    if isinstance(node, UnaryExpr):
        return _term_source(node.operand) + node.op
    if isinstance(node, BinaryChain):
        parts = [_term_source(node.first)]
        for op, term in node.rest:
            parts.append(f"{op} {_term_source(term)}")
        return ' '.join(parts)
    if isinstance(node, Condition):
        return f"{ast_to_source(node.left)} {node.cmp} {ast_to_source(node.right)}"
    if isinstance(node, Piecewise):
        branches = [f"{ast_to_source(c)}: {ast_to_source(v)}" for c, v in node.branches]
        branches.append(f"otherwise: {ast_to_source(node.otherwise)}")
        return '{' + ', '.join(branches) + '}'
    if isinstance(node, FuncParam):
        if node.type_spec is None:
            return node.name
        return f"{node.name}: {node.type_spec.kind}"
    if isinstance(node, FuncDefStmt):
        definition = node.definition
        head = definition.name + '(' + ', '.join(ast_to_source(p) for p in definition.params) + ')'
        if definition.return_type is not None:
            head += f": {definition.return_type.kind}"
        return f"{head} = {ast_to_source(node.body)}"

    raise TypeError(f"Unsupported node for rendering: {type(node).__name__}")


def _term_source(node: Any) -> str:
    if isinstance(node, BinaryChain):
        return '(' + ast_to_source(node) + ')'
    return ast_to_source(node)
