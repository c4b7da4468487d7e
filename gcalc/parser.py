"""Parser for gcalc statements.

A statement is either a function definition

    f(x, y: List): Number = <expression>

or a bare expression. Both forms may start with `IDENT "("`, so the
statement parser first attempts a definition from a saved cursor and, if
that fails, restores the cursor and parses an expression instead. When both
attempts fail, the error that got further into the input is reported, since
it is the one that describes what the user most likely meant.

Expressions are parsed by recursive descent. Binary operators are collected
into a flat `BinaryChain`; precedence is resolved later by
`gcalc.precedence.fold_chain`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Set, Tuple, Union

from lark import Token

from .ast import (
    NumberLiteral, Variable, ListLiteral, Call, UnaryExpr, BinaryChain,
    Condition, Piecewise, FuncParam, FuncDef, FuncDefStmt, Node,
)
from .errors import ParseError
from .lexer import tokenize
from .types import TypeSpec


BINARY_OPS = {
    'PLUS': '+',
    'MINUS': '-',
    'STAR': '*',
    'SLASH': '/',
    'PERCENT': '%',
}

COMPARE_OPS = {
    'EQUAL': '=',
    'LESSTHAN': '<',
    'MORETHAN': '>',
    'LESSEQUAL': '<=',
    'MOREEQUAL': '>=',
}

OTHERWISE = 'otherwise'

# Printable names for error messages
TOKEN_NAMES = {
    'NUMBER': 'number',
    'IDENT': 'identifier',
    'MAP_CALL': "'@('",
    'LPAR': "'('",
    'RPAR': "')'",
    'LSQB': "'['",
    'RSQB': "']'",
    'LBRACE': "'{'",
    'RBRACE': "'}'",
    'COMMA': "','",
    'COLON': "':'",
    'SEMICOLON': "';'",
    'BANG': "'!'",
    'EQUAL': "'='",
}


def describe(expected: Union[str, List[str]]) -> str:
    if isinstance(expected, list):
        return ' or '.join(TOKEN_NAMES.get(e, e) for e in expected)
    return TOKEN_NAMES.get(expected, expected)


class Parser:
    def __init__(self, tokens: List[Token], end_offset: Optional[int] = None):
        self.tokens = tokens
        self.pos = 0
        if end_offset is None:
            end_offset = tokens[-1].end_pos if tokens else 0
        self.end_offset = end_offset

    def peek(self, ahead: int = 0) -> Optional[Token]:
        if self.pos + ahead < len(self.tokens):
            return self.tokens[self.pos + ahead]
        return None

    def offset(self) -> int:
        token = self.peek()
        return token.start_pos if token is not None else self.end_offset

    def error(self, expected: Union[str, List[str]]) -> ParseError:
        token = self.peek()
        wanted = describe(expected)
        if token is None:
            return ParseError(f"unexpected end of input, expected {wanted}", self.end_offset, wanted)
        return ParseError(f"expected {wanted}, got {token.value!r}", token.start_pos, wanted)

    def consume(self, expected: Union[str, List[str]]) -> Token:
        if not self.match(expected):
            raise self.error(expected)
        token = self.tokens[self.pos]
        self.pos += 1
        return token

    def match(self, expected: Union[str, List[str]]) -> bool:
        token = self.peek()
        if token is None:
            return False
        if isinstance(expected, list):
            return token.type in expected
        return token.type == expected

    def match_keyword(self, word: str) -> bool:
        token = self.peek()
        return token is not None and token.type == 'IDENT' and token.value == word

    # Statements

    def parse_statement(self) -> Node:
        if not self.tokens:
            raise ParseError('empty statement', 0, 'expression')
        start = self.pos
        try:
            definition = self.parse_func_def()
        except ParseError as def_error:
            self.pos = start
            try:
                stmt: Node = self.parse_expression()
                self.parse_end()
                return stmt
            except ParseError as expr_error:
                # Report whichever reading understood more of the input
                if def_error.offset is not None and expr_error.offset is not None \
                        and def_error.offset > expr_error.offset:
                    raise def_error from None
                raise
        # No expression contains a top-level '=', so a header is a definition
        self.check_params(definition.params)
        body = self.parse_expression()
        self.parse_end()
        return FuncDefStmt(definition, body, definition.offset)

    def parse_end(self) -> None:
        if self.match('SEMICOLON'):
            self.consume('SEMICOLON')
        if self.peek() is not None:
            raise self.error('end of statement')

    def parse_func_def(self) -> FuncDef:
        """Parse a definition header up to and including its '='."""
        name_token = self.consume('IDENT')
        if name_token.value == OTHERWISE:
            raise ParseError("'otherwise' cannot name a function", name_token.start_pos, 'identifier')
        self.consume('LPAR')
        params: List[FuncParam] = []
        if not self.match('RPAR'):
            params = self.parse_param_list()
        self.consume('RPAR')
        return_type = None
        if self.match('COLON'):
            self.consume('COLON')
            return_type = self.parse_type_spec()
        self.consume('EQUAL')
        return FuncDef(name_token.value, tuple(params), return_type, name_token.start_pos)

    def parse_param_list(self) -> List[FuncParam]:
        params = [self.parse_param()]
        while self.match('COMMA'):
            self.consume('COMMA')
            params.append(self.parse_param())
        return params

    @staticmethod
    def check_params(params: Tuple[FuncParam, ...]) -> None:
        seen: Set[str] = set()
        for param in params:
            if param.name in seen:
                raise ParseError(f"duplicate parameter '{param.name}'", param.offset, 'identifier')
            seen.add(param.name)

    def parse_param(self) -> FuncParam:
        name_token = self.consume('IDENT')
        type_spec = None
        if self.match('COLON'):
            self.consume('COLON')
            type_spec = self.parse_type_spec()
        return FuncParam(name_token.value, type_spec, name_token.start_pos)

    def parse_type_spec(self) -> TypeSpec:
        # Unknown type names are rejected by the checker, not here
        token = self.consume('IDENT')
        return TypeSpec(token.value)

    # Expressions

    def parse_expression(self, allow_list: bool = True) -> Node:
        start = self.offset()
        first = self.parse_unary(allow_list)
        rest: List[Tuple[str, Node]] = []
        while self.match(list(BINARY_OPS)):
            op_token = self.consume(list(BINARY_OPS))
            rest.append((BINARY_OPS[op_token.type], self.parse_unary(allow_list)))
        if not rest:
            return first
        return BinaryChain(first, tuple(rest), start)

    def parse_unary(self, allow_list: bool) -> Node:
        start = self.offset()
        node = self.parse_term(allow_list)
        while self.match('BANG'):
            self.consume('BANG')
            node = UnaryExpr(node, '!', start)
        return node

    def parse_term(self, allow_list: bool) -> Node:
        token = self.peek()
        if token is None:
            raise self.error('expression')
        if token.type in ('MINUS', 'PLUS'):
            return self.parse_signed_number()
        if token.type == 'NUMBER':
            self.consume('NUMBER')
            return NumberLiteral(Decimal(token.value), token.start_pos)
        if token.type == 'IDENT':
            if token.value == OTHERWISE:
                raise ParseError("'otherwise' is only allowed as the last piecewise branch",
                                 token.start_pos, 'expression')
            return self.parse_name()
        if token.type == 'LPAR':
            self.consume('LPAR')
            expr = self.parse_expression(allow_list)
            self.consume('RPAR')
            return expr
        if token.type == 'LBRACE':
            return self.parse_piecewise()
        if token.type == 'LSQB':
            if not allow_list:
                raise ParseError('Storing lists inside of lists is not allowed.', token.start_pos, 'number')
            return self.parse_list()
        raise self.error('expression')

    def parse_signed_number(self) -> NumberLiteral:
        sign = self.peek()
        number = self.peek(1)
        # The sign belongs to the literal only when nothing separates them
        if number is None or number.type != 'NUMBER' or number.start_pos != sign.end_pos:
            raise self.error('expression')
        self.pos += 2
        value = Decimal(number.value)
        if sign.type == 'MINUS':
            value = -value
        return NumberLiteral(value, sign.start_pos)

    def parse_name(self) -> Node:
        name_token = self.consume('IDENT')
        if self.match(['LPAR', 'MAP_CALL']):
            mapped = self.consume(['LPAR', 'MAP_CALL']).type == 'MAP_CALL'
            args: List[Node] = []
            if not self.match('RPAR'):
                args.append(self.parse_expression())
                while self.match('COMMA'):
                    self.consume('COMMA')
                    args.append(self.parse_expression())
            self.consume('RPAR')
            return Call(name_token.value, tuple(args), mapped, name_token.start_pos)
        return Variable(name_token.value, name_token.start_pos)

    def parse_list(self) -> ListLiteral:
        start = self.consume('LSQB').start_pos
        elements = [self.parse_expression(allow_list=False)]
        while self.match('COMMA'):
            self.consume('COMMA')
            elements.append(self.parse_expression(allow_list=False))
        self.consume('RSQB')
        return ListLiteral(tuple(elements), start)

    def parse_piecewise(self) -> Piecewise:
        start = self.consume('LBRACE').start_pos
        branches: List[Tuple[Condition, Node]] = [self.parse_branch()]
        self.consume('COMMA')
        while not self.match_keyword(OTHERWISE):
            branches.append(self.parse_branch())
            self.consume('COMMA')
        self.pos += 1
        self.consume('COLON')
        otherwise = self.parse_expression()
        self.consume('RBRACE')
        return Piecewise(tuple(branches), otherwise, start)

    def parse_branch(self) -> Tuple[Condition, Node]:
        condition = self.parse_condition()
        self.consume('COLON')
        return condition, self.parse_expression()

    def parse_condition(self) -> Condition:
        start = self.offset()
        left = self.parse_expression()
        op_token = self.consume(list(COMPARE_OPS))
        right = self.parse_expression()
        if self.match(list(COMPARE_OPS)):
            token = self.peek()
            raise ParseError('comparisons cannot be chained', token.start_pos, "':'")
        return Condition(left, COMPARE_OPS[op_token.type], right, start)


def parse_expression(tokens: List[Token], allow_list: bool = True) -> Tuple[Node, List[Token]]:
    """Parse one expression from the front of `tokens`.

    Returns the expression and the tokens that follow it.
    """
    parser = Parser(tokens)
    expr = parser.parse_expression(allow_list)
    return expr, tokens[parser.pos:]


def parse_statement(source: str) -> Node:
    """Parse a single gcalc statement into a FuncDefStmt or an expression node."""
    tokens = tokenize(source)
    parser = Parser(tokens, end_offset=len(source))
    try:
        return parser.parse_statement()
    except RecursionError:
        raise ParseError('expression is nested too deeply', parser.offset(), 'expression') from None
