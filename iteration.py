"""
Lazy, pull-based iteration primitive and the generic algorithm library.

An ``Iter`` pairs a hidden state with a step function::

    step(state, on_item, on_end)

The step function must return the result of calling exactly one of the two
continuations: ``on_item(item, next_state)`` when an element is available, or
``on_end()`` on exhaustion. Every algorithm below drives an ``Iter`` by
repeated stepping in a plain loop, so traversal depth never grows the call
stack. Nothing here mutates shared state or keeps the ``Iter`` after it
returns; the same ``Iter`` can be traversed any number of times.

All functions take the source as their last positional argument. Lookups
return ``default`` (``None`` unless given) when there is no result.
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar

from comparison import resolve_comparator, resolve_equality

T = TypeVar("T")
S = TypeVar("S")

__all__ = [
    "Iter", "Continue", "Stop", "StepError",
    "each", "fold", "fold_while", "reduce",
    "find", "find_index", "find_indices", "index", "indices",
    "find_min", "find_max", "contains", "count", "sum", "product",
    "all", "any", "to_list", "to_list_reversed",
    "is_empty", "length", "get", "first", "second", "last",
]


class StepError(RuntimeError):
    """Raised when a step function returns without calling a continuation."""
    pass


@dataclass(frozen=True)
class Continue:
    """fold_while signal: keep going with this accumulator"""
    value: Any


@dataclass(frozen=True)
class Stop:
    """fold_while signal: halt now and return this accumulator"""
    value: Any


class _Item:
    __slots__ = ("item", "state")

    def __init__(self, item, state):
        self.item = item
        self.state = state


_END = object()


def _end():
    return _END


class Iter(Generic[T]):
    """Immutable (state, step) pair describing a traversal."""

    __slots__ = ("_init", "_step")

    def __init__(self, init: Any, step: Callable[..., Any]):
        self._init = init
        self._step = step

    @property
    def init(self) -> Any:
        return self._init

    def step(self, state, on_item, on_end):
        return self._step(state, on_item, on_end)

    def pull(self, state) -> Optional[Tuple[T, Any]]:
        """Advance one step from state: (item, next_state), or None when exhausted."""
        pulled = _pull(self, state)
        if pulled is _END:
            return None
        return pulled.item, pulled.state

    def __iter__(self) -> Iterator[T]:
        state = self._init
        while True:
            pulled = _pull(self, state)
            if pulled is _END:
                return
            yield pulled.item
            state = pulled.state

    def __repr__(self):
        return f"Iter(init={self._init!r})"

    @classmethod
    def of_sequence(cls, seq: Sequence[T]) -> "Iter[T]":
        """Iter over anything supporting len() and integer indexing."""
        def step(i, on_item, on_end):
            if i < len(seq):
                return on_item(seq[i], i + 1)
            return on_end()
        return cls(0, step)

    @classmethod
    def unfold(cls, seed: S, fn: Callable[[S], Optional[Tuple[T, S]]]) -> "Iter[T]":
        """Iter from fn(state) -> (item, next_state), or None to stop."""
        def step(state, on_item, on_end):
            produced = fn(state)
            if produced is None:
                return on_end()
            item, following = produced
            return on_item(item, following)
        return cls(seed, step)


def _pull(src: Iter, state):
    pulled = src.step(state, _Item, _end)
    if pulled is _END or type(pulled) is _Item:
        return pulled
    raise StepError(
        f"Step function returned {type(pulled).__name__} "
        f"instead of calling on_item or on_end"
    )


# --------- traversal ----------

def each(f: Callable[[T], Any], src: Iter[T]) -> None:
    """Call f on every element in source order."""
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return None
        f(pulled.item)
        state = pulled.state


def _fold_from(f, acc, src, state):
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return acc
        acc = f(pulled.item, acc)
        state = pulled.state


def fold(f: Callable[[T, Any], Any], seed: Any, src: Iter[T]) -> Any:
    """Left fold; f receives (item, accumulator)."""
    return _fold_from(f, seed, src, src.init)


def fold_while(f: Callable[[T, Any], Any], seed: Any, src: Iter[T]) -> Any:
    """
    Like fold, but f returns Continue(acc) or Stop(acc).

    Traversal halts as soon as f returns Stop.

        >>> fold_while(lambda a, b: Continue(a + b) if a <= 3 else Stop(b),
        ...            0, Iter.of_sequence([1, 2, 3, 4]))
        6
    """
    acc = seed
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return acc
        signal = f(pulled.item, acc)
        if isinstance(signal, Stop):
            return signal.value
        if not isinstance(signal, Continue):
            raise TypeError(
                f"fold_while function must return Continue or Stop, got {type(signal).__name__}"
            )
        acc = signal.value
        state = pulled.state


def reduce(f: Callable[[T, T], T], src: Iter[T], *, default=None):
    """Fold seeded with the first element; default when src is empty."""
    pulled = _pull(src, src.init)
    if pulled is _END:
        return default
    return _fold_from(f, pulled.item, src, pulled.state)


# --------- searching ----------

def find(predicate: Callable[[T], bool], src: Iter[T], *, default=None):
    """First (leftmost) element matching predicate."""
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return default
        if predicate(pulled.item):
            return pulled.item
        state = pulled.state


def find_index(predicate: Callable[[T], bool], src: Iter[T]) -> Optional[int]:
    """Zero-based position of the first element matching predicate."""
    n = 0
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return None
        if predicate(pulled.item):
            return n
        n += 1
        state = pulled.state


def find_indices(predicate: Callable[[T], bool], src: Iter[T]) -> List[int]:
    """Ascending positions of every element matching predicate."""
    positions = []
    n = 0
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return positions
        if predicate(pulled.item):
            positions.append(n)
        n += 1
        state = pulled.state


def index(x: T, src: Iter[T], *, equal=None) -> Optional[int]:
    """Position of x, compared with equal (structural equality by default)."""
    eq = resolve_equality(equal)
    return find_index(lambda a: eq(x, a), src)


def indices(x: T, src: Iter[T], *, equal=None) -> List[int]:
    """All positions of x, compared with equal (structural equality by default)."""
    eq = resolve_equality(equal)
    return find_indices(lambda a: eq(x, a), src)


def contains(x: T, src: Iter[T], *, equal=None) -> bool:
    """
    True if some element equals x.

    Uses the same default equality as index() and indices().
    """
    eq = resolve_equality(equal)
    missing = object()
    return find(lambda a: eq(x, a), src, default=missing) is not missing


def find_min(src: Iter[T], *, by=None, default=None):
    """Smallest element under by; the earliest one wins ties."""
    compare = resolve_comparator(by)
    return reduce(lambda a, b: a if compare(a, b) < 0 else b, src, default=default)


def find_max(src: Iter[T], *, by=None, default=None):
    """Largest element under by; the earliest one wins ties."""
    compare = resolve_comparator(by)
    return reduce(lambda a, b: a if compare(a, b) > 0 else b, src, default=default)


# --------- aggregation ----------

def count(predicate: Callable[[T], bool], src: Iter[T]) -> int:
    return fold(lambda a, n: n + 1 if predicate(a) else n, 0, src)


def sum(src: Iter) -> Any:
    return fold(lambda a, r: r + a, 0, src)


def product(src: Iter) -> Any:
    """
    Multiply every element, seed 1.

    Returns 0 as soon as a zero element is seen; later elements are never
    visited.
    """
    acc = 1
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return acc
        if pulled.item == 0:
            return 0
        acc = pulled.item * acc
        state = pulled.state


def all(predicate: Callable[[T], bool], src: Iter[T]) -> bool:
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return True
        if not predicate(pulled.item):
            return False
        state = pulled.state


def any(predicate: Callable[[T], bool], src: Iter[T]) -> bool:
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return False
        if predicate(pulled.item):
            return True
        state = pulled.state


# --------- materialization ----------

def to_list(src: Iter[T]) -> List[T]:
    items = []
    each(items.append, src)
    return items


def to_list_reversed(src: Iter[T]) -> List[T]:
    items = to_list(src)
    items.reverse()
    return items


# --------- positional ----------

def is_empty(src: Iter) -> bool:
    return _pull(src, src.init) is _END


def length(src: Iter) -> int:
    return fold(lambda _, n: n + 1, 0, src)


def get(n: int, src: Iter[T], *, default=None):
    """Element at position n by linear scan; default when out of range."""
    if n < 0:
        return default
    position = 0
    state = src.init
    while True:
        pulled = _pull(src, state)
        if pulled is _END:
            return default
        if position == n:
            return pulled.item
        position += 1
        state = pulled.state


def first(src: Iter[T], *, default=None):
    return get(0, src, default=default)


def second(src: Iter[T], *, default=None):
    return get(1, src, default=default)


def last(src: Iter[T], *, default=None):
    missing = object()
    found = fold(lambda a, _: a, missing, src)
    return default if found is missing else found
