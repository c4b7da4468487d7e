"""Tokenizer for gcalc statements.

The token classes are described as a small lark grammar and scanned with
lark's basic lexer; the parser in `gcalc.parser` is a hand-written recursive
descent over the resulting tokens, because statement kinds share a prefix
and have to be told apart by backtracking.

Only spaces and tabs separate tokens. A newline is not whitespace here: a
statement is a single line terminated by end of input or `;`, so a newline
inside a statement is reported like any other stray character.

Numbers are lexed unsigned. A `-` or `+` is always its own token; the
parser glues a sign onto an adjacent number literal where an operand is
expected, which keeps `2-3` a subtraction while `-1` is still a literal.
"""

from __future__ import annotations

from typing import List

from lark import Lark, Token
from lark.exceptions import UnexpectedCharacters

from .errors import LexError


GCALC_TOKENS = r"""
    start: _token*

    _token: NUMBER | IDENT | MAP_CALL
          | LPAR | RPAR | LSQB | RSQB | LBRACE | RBRACE
          | COMMA | COLON | SEMICOLON
          | PLUS | MINUS | STAR | SLASH | PERCENT | BANG
          | LESSEQUAL | MOREEQUAL | LESSTHAN | MORETHAN | EQUAL

    NUMBER: /[0-9]+(\.[0-9]+)?/
    IDENT: /[A-Za-z][A-Za-z0-9]*/

    MAP_CALL: "@("
    LPAR: "("
    RPAR: ")"
    LSQB: "["
    RSQB: "]"
    LBRACE: "{"
    RBRACE: "}"
    COMMA: ","
    COLON: ":"
    SEMICOLON: ";"
    PLUS: "+"
    MINUS: "-"
    STAR: "*"
    SLASH: "/"
    PERCENT: "%"
    BANG: "!"
    LESSEQUAL: "<="
    MOREEQUAL: ">="
    LESSTHAN: "<"
    MORETHAN: ">"
    EQUAL: "="

    HSPACE: /[ \t]+/
    %ignore HSPACE
"""


GCALC_LEXER = Lark(
    GCALC_TOKENS,
    parser='lalr',
    lexer='basic',
)


def tokenize(source: str) -> List[Token]:
    """Convert statement source into a list of lark tokens.

    Each token keeps its `start_pos` and `end_pos` offsets for error
    reporting. Raises LexError at the first character that starts no token.
    """
    try:
        return list(GCALC_LEXER.lex(source))
    except UnexpectedCharacters as e:
        char = source[e.pos_in_stream] if e.pos_in_stream < len(source) else ''
        raise LexError(f"unexpected character {char!r}", e.pos_in_stream) from None
