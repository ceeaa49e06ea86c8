"""Comparison capability: default three-way ordering and equality."""

import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class Ordering(int, Enum):
    """Result of a three-way comparison"""
    LESS = -1
    EQUAL = 0
    GREATER = 1


Comparator = Callable[[Any, Any], int]
Equality = Callable[[Any, Any], bool]

# Per-type defaults, keyed by the exact type of the left operand
_COMPARATORS: Dict[type, Comparator] = {}
_EQUALITIES: Dict[type, Equality] = {}


def compare(a: Any, b: Any) -> Ordering:
    """Structural three-way ordering, or the comparator registered for type(a)."""
    comparator = _COMPARATORS.get(type(a))
    if comparator is not None and type(b) is type(a):
        return as_ordering(comparator(a, b))
    if a < b:
        return Ordering.LESS
    if b < a:
        return Ordering.GREATER
    return Ordering.EQUAL


def equal(a: Any, b: Any) -> bool:
    """Structural equality, or the equality registered for type(a)."""
    predicate = _EQUALITIES.get(type(a))
    if predicate is not None:
        return bool(predicate(a, b))
    return a == b


def as_ordering(value: int) -> Ordering:
    """Normalize a cmp-style integer into an Ordering."""
    if value < 0:
        return Ordering.LESS
    if value > 0:
        return Ordering.GREATER
    return Ordering.EQUAL


def register_comparator(type_: type, comparator: Comparator) -> None:
    """Install the default comparator used by compare() for values of type_."""
    if not callable(comparator):
        raise TypeError(f"Comparator for {type_.__name__} must be callable")
    _COMPARATORS[type_] = comparator
    logger.debug(f"Registered default comparator for {type_.__name__}")


def register_equality(type_: type, predicate: Equality) -> None:
    """Install the default equality used by equal() for values of type_."""
    if not callable(predicate):
        raise TypeError(f"Equality for {type_.__name__} must be callable")
    _EQUALITIES[type_] = predicate
    logger.debug(f"Registered default equality for {type_.__name__}")


def reset_defaults() -> None:
    """Drop every per-type registration."""
    _COMPARATORS.clear()
    _EQUALITIES.clear()


def resolve_comparator(by: Optional[Comparator] = None) -> Comparator:
    return by if by is not None else compare


def resolve_equality(equal_: Optional[Equality] = None) -> Equality:
    return equal_ if equal_ is not None else equal
