"""Precedence climbing over a flat binary chain.

The parser keeps `a + b * c - d` as a flat chain of operands and operators.
`fold_chain` resolves that chain with ordinary arithmetic precedence
(`*`, `/`, `%` bind tighter than `+`, `-`; left associative within a level)
without caring what an operand is: the caller supplies how to turn an
operand into a result and how to combine two results. The interpreter folds
to values, the checker folds to kinds.
"""

from typing import Callable, Dict, Sequence, TypeVar

from .ast import BinaryChain, Node

T = TypeVar('T')

PRECEDENCE: Dict[str, int] = {
    '+': 1,
    '-': 1,
    '*': 2,
    '/': 2,
    '%': 2,
}


def fold_chain(chain: BinaryChain,
               operand: Callable[[Node], T],
               combine: Callable[[str, T, T, Node], T]) -> T:
    """Fold `chain` into a single result honouring operator precedence.

    `operand(node)` produces the result of a single term. `combine(op, left,
    right, node)` applies an operator; `node` is the right-hand term, handy
    for error offsets. Operands are produced strictly left to right.
    """
    terms: Sequence[Node] = chain.operands
    ops: Sequence[str] = chain.operators
    pos = 0

    def climb(min_prec: int) -> T:
        nonlocal pos
        lhs = operand(terms[pos])
        while pos < len(ops) and PRECEDENCE[ops[pos]] >= min_prec:
            op = ops[pos]
            pos += 1
            right_node = terms[pos]
            rhs = climb(PRECEDENCE[op] + 1)
            lhs = combine(op, lhs, rhs, right_node)
        return lhs

    return climb(1)
