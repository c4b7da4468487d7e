from decimal import Decimal
from typing import Any, List

from gcalc.errors import DomainError
from gcalc.types import ListVal


def _non_empty(name: str, values: ListVal) -> List[Decimal]:
    if not values.items:
        raise DomainError(f"{name} of an empty list is undefined")
    return values.items


def std_length(args: List[Any]) -> Decimal:
    return Decimal(len(args[0].items))


def std_total(args: List[Any]) -> Decimal:
    return sum(args[0].items, Decimal(0))


def std_mean(args: List[Any]) -> Decimal:
    items = _non_empty('mean', args[0])
    return sum(items, Decimal(0)) / len(items)


def std_min(args: List[Any]) -> Decimal:
    return min(_non_empty('min', args[0]))


def std_max(args: List[Any]) -> Decimal:
    return max(_non_empty('max', args[0]))


def std_sort(args: List[Any]) -> ListVal:
    return ListVal(sorted(args[0].items))


AGGREGATES = {
    'length': std_length,
    'total': std_total,
    'mean': std_mean,
    'min': std_min,
    'max': std_max,
}
