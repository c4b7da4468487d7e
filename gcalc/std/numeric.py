"""Scalar built-ins: transcendental functions, rounding and modulo.

Numbers are Decimals. Functions the decimal module implements natively
(`sqrt`, `ln`, `log10`, `exp`) stay in decimal arithmetic; trigonometry goes
through float and comes back via the float's shortest repr.
"""

import math
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, localcontext
from typing import Any, Callable, List

from gcalc.errors import DomainError, MathError

ZERO = Decimal(0)
ONE = Decimal(1)


def decimal_mod(a: Decimal, b: Decimal) -> Decimal:
    """Calculator modulo: the result takes the sign of the divisor."""
    if b == ZERO:
        raise MathError('modulo by zero')
    smallest_exp = min(a.as_tuple().exponent, b.as_tuple().exponent)
    with localcontext() as ctx:
        # Wide enough for the integer quotient and for an exact remainder
        ctx.prec = max(ctx.prec,
                       a.adjusted() - b.adjusted() + 2,
                       b.adjusted() - smallest_exp + 2)
        r = a % b
        if r and (r < ZERO) != (b < ZERO):
            r += b
    return r


def decimal_div(a: Decimal, b: Decimal) -> Decimal:
    if b == ZERO:
        raise MathError('division by zero')
    return a / b


def factorial(n: Decimal) -> Decimal:
    if n < ZERO or n != n.to_integral_value():
        raise DomainError(f"factorial is only defined for non-negative integers, got {n}")
    return Decimal(math.factorial(int(n)))


def via_float(name: str, fn: Callable[[float], float]) -> Callable[[List[Any]], Decimal]:
    def apply(args: List[Any]) -> Decimal:
        x = args[0]
        try:
            result = fn(float(x))
        except (ValueError, OverflowError):
            raise DomainError(f"{name} is not defined for {x}")
        if math.isnan(result) or math.isinf(result):
            raise DomainError(f"{name} is not defined for {x}")
        return Decimal(repr(result))
    return apply


def std_sqrt(args: List[Any]) -> Decimal:
    x = args[0]
    if x < ZERO:
        raise DomainError(f"sqrt is not defined for {x}")
    return x.sqrt()


def std_ln(args: List[Any]) -> Decimal:
    x = args[0]
    if x <= ZERO:
        raise DomainError(f"ln is not defined for {x}")
    return x.ln()


def std_log(args: List[Any]) -> Decimal:
    x = args[0]
    if x <= ZERO:
        raise DomainError(f"log is not defined for {x}")
    return x.log10()


def std_exp(args: List[Any]) -> Decimal:
    return args[0].exp()


def std_abs(args: List[Any]) -> Decimal:
    return abs(args[0])


def std_floor(args: List[Any]) -> Decimal:
    return args[0].to_integral_value(rounding=ROUND_FLOOR)


def std_ceil(args: List[Any]) -> Decimal:
    return args[0].to_integral_value(rounding=ROUND_CEILING)


def std_round(args: List[Any]) -> Decimal:
    # Halves round away from zero, as on a calculator
    return args[0].to_integral_value(rounding=ROUND_HALF_UP)


def std_sign(args: List[Any]) -> Decimal:
    x = args[0]
    if x > ZERO:
        return ONE
    if x < ZERO:
        return -ONE
    return ZERO


def std_mod(args: List[Any]) -> Decimal:
    return decimal_mod(args[0], args[1])


def std_min(args: List[Any]) -> Decimal:
    return min(args[0], args[1])


def std_max(args: List[Any]) -> Decimal:
    return max(args[0], args[1])


UNARY = {
    'sin': via_float('sin', math.sin),
    'cos': via_float('cos', math.cos),
    'tan': via_float('tan', math.tan),
    'arcsin': via_float('arcsin', math.asin),
    'arccos': via_float('arccos', math.acos),
    'arctan': via_float('arctan', math.atan),
    'sqrt': std_sqrt,
    'ln': std_ln,
    'log': std_log,
    'exp': std_exp,
    'abs': std_abs,
    'floor': std_floor,
    'ceil': std_ceil,
    'round': std_round,
    'sign': std_sign,
}

BINARY = {
    'mod': std_mod,
    'min': std_min,
    'max': std_max,
}
