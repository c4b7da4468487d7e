"""Static kind checking for gcalc statements.

The checker walks an AST and infers, for every expression, whether it
produces a Number, a List, or a kind that is only known at call time
(`Any`, the kind of an unannotated parameter). It rejects statements whose
outcome is already certain to fail: unknown names, wrong argument counts,
arguments whose known kind contradicts a declared parameter type, nested
lists, factorials of lists and comparisons involving lists.

A function definition is checked before it is registered, so a definition
that fails here never reaches the environment. The function being defined
is visible to its own body so that recursive definitions resolve.

Anything that depends on an `Any` kind is left to the runtime checks in the
interpreter.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Tuple, Union

from .ast import (
    NumberLiteral, Variable, ListLiteral, Call, UnaryExpr, BinaryChain,
    Condition, Piecewise, FuncDefStmt, Node,
)
from .builtin_function import BuiltinFunction, UserFunction
from .environment import Environment
from .errors import ArityError, TypeMismatchError, UndefinedFunctionError, UndefinedVariableError
from .precedence import fold_chain
from .types import DECLARABLE_KINDS, TypeSpec, Value, type_of

NUMBER = TypeSpec.number()
LIST = TypeSpec.list()
ANY = TypeSpec.any()

Signature = Union[BuiltinFunction, UserFunction]


def param_label(func: Signature, index: int) -> Tuple[Optional[str], Optional[str]]:
    """Name the parameter at `index` for error messages.

    Returns (param_name, context); built-ins have no parameter names.
    """
    if isinstance(func, UserFunction):
        return func.definition.params[index].name, None
    return None, f"argument {index + 1} of '{func.name}'"


def validate_type_spec(spec: Optional[TypeSpec], what: str, offset: int) -> None:
    if spec is not None and spec.kind not in DECLARABLE_KINDS:
        raise TypeMismatchError(' or '.join(DECLARABLE_KINDS), spec.kind,
                                offset=offset, context=what)


class Checker:
    def __init__(self, env: Environment, pending: Optional[UserFunction] = None):
        self.env = env
        self.pending = pending

    def resolve(self, name: str, arity: int, offset: int) -> Signature:
        pending = self.pending
        if pending is not None and pending.name == name:
            if pending.arity == arity:
                return pending
            if self.env.get(name, arity) is None:
                known = sorted(set(self.env.arities(name)) | {pending.arity})
                expected = ' or '.join(str(a) for a in known)
                raise ArityError(f"Expected {expected} arguments but got {arity} for '{name}'", offset)
        return self.env.lookup(name, arity, offset)

    def infer(self, node: Node, scope: Mapping[str, TypeSpec]) -> TypeSpec:
        if isinstance(node, NumberLiteral):
            return NUMBER
        if isinstance(node, Variable):
            if node.name in scope:
                return scope[node.name]
            try:
                func = self.resolve(node.name, 0, node.offset)
            except (UndefinedFunctionError, ArityError):
                raise UndefinedVariableError(node.name, node.offset) from None
            return func.return_type
        if isinstance(node, ListLiteral):
            for element in node.elements:
                if self.infer(element, scope) == LIST:
                    raise TypeMismatchError('Number', 'List', offset=element.offset,
                                            context='list element (lists cannot be nested)')
            return LIST
        if isinstance(node, UnaryExpr):
            if self.infer(node.operand, scope) == LIST:
                raise TypeMismatchError('Number', 'List', offset=node.operand.offset,
                                        context=f"operand of '{node.op}'")
            return NUMBER
        if isinstance(node, BinaryChain):
            return fold_chain(node, lambda term: self.infer(term, scope), self.combine)
        if isinstance(node, Call):
            return self.infer_call(node, scope)
        if isinstance(node, Piecewise):
            kinds = []
            for condition, value in node.branches:
                self.check_condition(condition, scope)
                kinds.append(self.infer(value, scope))
            kinds.append(self.infer(node.otherwise, scope))
            first = kinds[0]
            if first.is_known and all(k == first for k in kinds):
                return first
            return ANY
        raise TypeError(f"cannot check node {node!r}")

    @staticmethod
    def combine(op: str, left: TypeSpec, right: TypeSpec, node: Node) -> TypeSpec:
        if left == LIST or right == LIST:
            return LIST
        if left == NUMBER and right == NUMBER:
            return NUMBER
        return ANY

    def check_condition(self, condition: Condition, scope: Mapping[str, TypeSpec]) -> None:
        for side in (condition.left, condition.right):
            if self.infer(side, scope) == LIST:
                raise TypeMismatchError('Number', 'List', offset=side.offset,
                                        context=f"comparison '{condition.cmp}'")

    def infer_call(self, node: Call, scope: Mapping[str, TypeSpec]) -> TypeSpec:
        func = self.resolve(node.name, len(node.args), node.offset)
        arg_kinds = [self.infer(arg, scope) for arg in node.args]
        broadcast = node.mapped and LIST in arg_kinds
        for index, (expected, got) in enumerate(zip(func.param_types, arg_kinds)):
            if not expected.is_known or not got.is_known or expected == got:
                continue
            if node.mapped and got == LIST and expected == NUMBER:
                continue
            param_name, context = param_label(func, index)
            raise TypeMismatchError(expected.kind, got.kind, param_name,
                                    offset=node.args[index].offset, context=context)
        if not node.mapped:
            return func.return_type
        if broadcast:
            if func.return_type == LIST:
                raise TypeMismatchError('Number', 'List', offset=node.offset,
                                        context=f"result of '{node.name}@' (lists cannot be nested)")
            return LIST
        if ANY in arg_kinds:
            return ANY
        return func.return_type


def check_definition(stmt: FuncDefStmt, env: Environment) -> TypeSpec:
    """Check a definition before registration; returns the inferred body kind."""
    definition = stmt.definition
    for param in definition.params:
        validate_type_spec(param.type_spec, f"parameter '{param.name}'", param.offset)
    validate_type_spec(definition.return_type, f"return type of '{definition.name}'", definition.offset)
    checker = Checker(env, pending=UserFunction(definition, stmt.body))
    scope: Dict[str, TypeSpec] = {p.name: p.type_spec or ANY for p in definition.params}
    kind = checker.infer(stmt.body, scope)
    declared = definition.return_type
    if declared is not None and kind.is_known and kind != declared:
        raise TypeMismatchError(declared.kind, kind.kind, offset=stmt.body.offset,
                                context=f"return value of '{definition.name}'")
    return kind


def check_expression(expr: Node, env: Environment,
                     bindings: Optional[Mapping[str, Value]] = None) -> TypeSpec:
    """Infer the kind of a top-level expression, raising on certain failures."""
    scope = {name: type_of(value) for name, value in (bindings or {}).items()}
    return Checker(env).infer(expr, scope)
