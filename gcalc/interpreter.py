"""Interpreter for gcalc statements.

An `Interpreter` is one session: it owns the `Environment` of registered
functions and evaluates statements against it one at a time. A statement
either registers a function or evaluates an expression to a Value (a
Decimal or a ListVal). A statement that fails leaves the session exactly as
it was.

Evaluation is a tree walk. User function calls push a fresh frame of
parameter bindings and are counted against `max_call_depth`, so runaway
recursion surfaces as a RecursionLimitError rather than a crash.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, DecimalException
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .ast import (
    NumberLiteral, Variable, ListLiteral, Call, UnaryExpr, BinaryChain,
    Condition, Piecewise, FuncDefStmt, Node,
)
from .ast_json import ast_to_source
from .builtin_function import BuiltinFunction, UserFunction
from .checker import check_definition, check_expression, param_label
from .environment import Environment
from .errors import (
    CalcError, DomainError, RecursionLimitError, ShapeError, TypeMismatchError,
    UndefinedVariableError,
)
from .parser import parse_statement
from .precedence import fold_chain
from .std import standard_builtins
from .std.numeric import decimal_div, decimal_mod, factorial
from .types import ListVal, TypeSpec, Value, check_value, to_string, to_value, type_name

DEFAULT_MAX_CALL_DEPTH = 64

Frame = Dict[str, Value]


@dataclass(frozen=True)
class Registration:
    """Outcome of a definition statement."""
    name: str
    arity: int
    replaced: bool = False

    def __str__(self) -> str:
        return f"defined {self.name}/{self.arity}"


Result = Union[Decimal, ListVal, Registration]


class Interpreter:
    """Core interpreter that executes gcalc statements against one session."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 max_call_depth: int = DEFAULT_MAX_CALL_DEPTH,
                 env: Optional[Environment] = None):
        self.env = env if env is not None else Environment(standard_builtins())
        self.max_call_depth = max_call_depth
        self.depth = 0
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    # Public API
    def execute(self, source: str, bindings: Optional[Mapping[str, Any]] = None) -> Result:
        """Parse and run one statement.

        `bindings` supplies values for free variables of an expression
        statement; they are ignored by definitions, whose bodies only see
        their own parameters.
        """
        try:
            stmt = parse_statement(source)
            result = self.run(stmt, source, bindings)
        except CalcError as e:
            if self.debug_level >= 1:
                self.debug(f"{source!r} -> {e.kind}: {e.message}")
            raise
        if self.debug_level >= 1:
            self.debug(f"{source!r} -> {self.describe(result)}")
        return result

    def run(self, stmt: Node, source: Optional[str] = None,
            bindings: Optional[Mapping[str, Any]] = None) -> Result:
        if isinstance(stmt, FuncDefStmt):
            return self.define(stmt, source)
        frame: Frame = {name: to_value(value) for name, value in (bindings or {}).items()}
        check_expression(stmt, self.env, frame)
        self.depth = 0
        try:
            return self.evaluate(stmt, frame)
        except RecursionError:
            raise RecursionLimitError('maximum recursion depth exceeded', stmt.offset) from None

    def define(self, stmt: FuncDefStmt, source: Optional[str] = None) -> Registration:
        check_definition(stmt, self.env)
        if source is None:
            source = ast_to_source(stmt)
        function = UserFunction(stmt.definition, stmt.body, source)
        replaced = self.env.register(function)
        if self.debug_level >= 1:
            verb = 'redefine' if replaced else 'define'
            self.debug(f"{verb} function {function.name}/{function.arity}")
        return Registration(function.name, function.arity, replaced)

    def snapshot(self) -> Tuple[str, ...]:
        """Source text of every registered definition, in replay order."""
        return tuple(f.source if f.source is not None else ast_to_source(FuncDefStmt(f.definition, f.body))
                     for f in self.env.snapshot())

    def restore(self, sources: Iterable[str]) -> List[Registration]:
        """Replay saved definition sources into this session."""
        registrations = []
        for source in sources:
            stmt = parse_statement(source)
            if not isinstance(stmt, FuncDefStmt):
                raise TypeError(f"not a function definition: {source!r}")
            registrations.append(self.define(stmt, source))
        return registrations

    @staticmethod
    def describe(result: Result) -> str:
        if isinstance(result, Registration):
            return str(result)
        return to_string(result)

    # Evaluation
    def evaluate(self, node: Node, frame: Frame) -> Value:
        if isinstance(node, NumberLiteral):
            return node.value
        if isinstance(node, Variable):
            if node.name in frame:
                return frame[node.name]
            func = self.env.get(node.name, 0)
            if func is None:
                raise UndefinedVariableError(node.name, node.offset)
            return self.call_function(func, [], node)
        if isinstance(node, ListLiteral):
            items = []
            for element in node.elements:
                value = self.evaluate(element, frame)
                if isinstance(value, ListVal):
                    raise TypeMismatchError('Number', 'List', offset=element.offset,
                                            context='list element (lists cannot be nested)')
                items.append(value)
            return ListVal(items)
        if isinstance(node, UnaryExpr):
            operand = self.evaluate(node.operand, frame)
            if isinstance(operand, ListVal):
                raise TypeMismatchError('Number', 'List', offset=node.operand.offset,
                                        context=f"operand of '{node.op}'")
            try:
                return factorial(operand)
            except DomainError as e:
                e.err.offset = node.operand.offset
                raise
        if isinstance(node, BinaryChain):
            return fold_chain(node, lambda term: self.evaluate(term, frame), self.apply_binary_op)
        if isinstance(node, Call):
            args = [self.evaluate(arg, frame) for arg in node.args]
            func = self.env.lookup(node.name, len(args), node.offset)
            if node.mapped:
                return self.map_call(func, args, node)
            return self.call_function(func, args, node)
        if isinstance(node, Piecewise):
            for index, (condition, value) in enumerate(node.branches):
                if self.test(condition, frame):
                    if self.debug_level >= 3:
                        self.debug(f"piecewise at {node.offset}: branch {index} taken")
                    return self.evaluate(value, frame)
            if self.debug_level >= 3:
                self.debug(f"piecewise at {node.offset}: otherwise taken")
            return self.evaluate(node.otherwise, frame)
        raise TypeError(f"cannot evaluate node {node!r}")

    def test(self, condition: Condition, frame: Frame) -> bool:
        left = self.evaluate(condition.left, frame)
        right = self.evaluate(condition.right, frame)
        for side, value in ((condition.left, left), (condition.right, right)):
            if isinstance(value, ListVal):
                raise TypeMismatchError('Number', 'List', offset=side.offset,
                                        context=f"comparison '{condition.cmp}'")
        cmp = condition.cmp
        if cmp == '=':
            return left == right
        if cmp == '<':
            return left < right
        if cmp == '>':
            return left > right
        if cmp == '<=':
            return left <= right
        if cmp == '>=':
            return left >= right
        raise TypeError(f"unknown comparison {cmp}")

    def call_function(self, func: Any, args: List[Value], node: Node) -> Value:
        arg_nodes = getattr(node, 'args', ())
        for index, (spec, arg) in enumerate(zip(func.param_types, args)):
            try:
                check_value(arg, spec)
            except TypeError:
                param_name, context = param_label(func, index)
                offset = arg_nodes[index].offset if index < len(arg_nodes) else node.offset
                raise TypeMismatchError(spec.kind, type_name(arg), param_name,
                                        offset=offset, context=context) from None
        if isinstance(func, BuiltinFunction):
            try:
                return func.fn(args)
            except CalcError as e:
                if e.err.offset is None:
                    e.err.offset = node.offset
                raise
            except DecimalException as e:
                raise DomainError(f"{func.name}: {type(e).__name__}", node.offset) from None
        if isinstance(func, UserFunction):
            return self.call_user_function(func, args, node)
        raise TypeError(f'{func} is not callable')

    def call_user_function(self, func: UserFunction, args: List[Value], node: Node) -> Value:
        if self.depth >= self.max_call_depth:
            raise RecursionLimitError(
                f"call depth exceeded {self.max_call_depth} in '{func.name}'", node.offset)
        frame: Frame = {param.name: arg for param, arg in zip(func.definition.params, args)}
        if self.debug_level >= 2:
            shown = ', '.join(to_string(a) for a in args)
            self.debug(f"{'  ' * self.depth}call {func.name}({shown})")
        self.depth += 1
        try:
            result = self.evaluate(func.body, frame)
        finally:
            self.depth -= 1
        declared = func.definition.return_type
        if declared is not None:
            try:
                check_value(result, declared)
            except TypeError:
                raise TypeMismatchError(declared.kind, type_name(result), offset=func.body.offset,
                                        context=f"return value of '{func.name}'") from None
        if self.debug_level >= 2:
            self.debug(f"{'  ' * self.depth}{func.name} -> {to_string(result)}")
        return result

    def map_call(self, func: Any, args: List[Value], node: Call) -> Value:
        lengths = {len(arg) for arg in args if isinstance(arg, ListVal)}
        if not lengths:
            return self.call_function(func, args, node)
        if len(lengths) > 1:
            shown = ', '.join(str(n) for n in sorted(lengths))
            raise ShapeError(f"list arguments of '{node.name}@' have different lengths: {shown}", node.offset)
        length = lengths.pop()
        if self.debug_level >= 3:
            self.debug(f"map {node.name} over {length} element(s)")
        items = []
        for index in range(length):
            row = [arg.items[index] if isinstance(arg, ListVal) else arg for arg in args]
            value = self.call_function(func, row, node)
            if isinstance(value, ListVal):
                raise TypeMismatchError('Number', 'List', offset=node.offset,
                                        context=f"result of '{node.name}@' (lists cannot be nested)")
            items.append(value)
        return ListVal(items)

    def apply_binary_op(self, op: str, a: Value, b: Value, node: Node) -> Value:
        if isinstance(a, ListVal) or isinstance(b, ListVal):
            if isinstance(a, ListVal) and isinstance(b, ListVal) and len(a) != len(b):
                raise ShapeError(f"cannot apply '{op}' to lists of length {len(a)} and {len(b)}", node.offset)
            size = len(a) if isinstance(a, ListVal) else len(b)
            left = a.items if isinstance(a, ListVal) else [a] * size
            right = b.items if isinstance(b, ListVal) else [b] * size
            return ListVal([self.apply_scalar_op(op, x, y, node) for x, y in zip(left, right)])
        return self.apply_scalar_op(op, a, b, node)

    def apply_scalar_op(self, op: str, a: Decimal, b: Decimal, node: Node) -> Decimal:
        try:
            if op == '+':
                return a + b
            if op == '-':
                return a - b
            if op == '*':
                return a * b
            if op == '/':
                return decimal_div(a, b)
            if op == '%':
                return decimal_mod(a, b)
        except CalcError as e:
            e.err.offset = node.offset
            raise
        except DecimalException as e:
            raise DomainError(f"'{op}': {type(e).__name__}", node.offset) from None
        raise TypeError(f'unknown operator {op}')


def run_statement(source: str, bindings: Optional[Mapping[str, Any]] = None,
                  debug_level: int = 0) -> Result:
    """Convenience function to run one statement in a fresh session."""
    interpreter = Interpreter(debug_level=debug_level)
    try:
        return interpreter.execute(source, bindings)
    finally:
        interpreter.close()


def run_program(source: str, debug_level: int = 0,
                interpreter: Optional[Interpreter] = None) -> List[Result]:
    """Run every non-blank line of `source` as a statement of one session."""
    if interpreter is None:
        interpreter = Interpreter(debug_level=debug_level)
    results = []
    for line in source.splitlines():
        if not line.strip():
            continue
        results.append(interpreter.execute(line))
    return results


def compile_module(file_path: str, debug_level: int = 0) -> Interpreter:
    """Run a gcalc file and return the interpreter holding its definitions."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    interpreter = Interpreter(debug_level=debug_level)
    run_program(source, interpreter=interpreter)
    return interpreter
