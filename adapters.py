"""
Concrete collections built on the derivations.

Each class supplies only its adapter (``init``/``step`` and, when it has
random access, ``length``/``unsafe_get``) and receives every query
operation from ``derive``.
"""

from typing import Any, Generic, Iterable, Optional, TypeVar

from derive import iterable, with_indexable, with_iterable

T = TypeVar("T")


@with_indexable
@iterable
class Array(Generic[T]):
    """Immutable random-access sequence backed by a tuple."""

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[T] = ()):
        self._items = tuple(items)

    def init(self):
        return 0

    def step(self, state, on_item, on_end):
        if state < len(self._items):
            return on_item(self._items[state], state + 1)
        return on_end()

    def length(self) -> int:
        return len(self._items)

    def unsafe_get(self, index: int) -> T:
        return self._items[index]

    def __eq__(self, other):
        if not isinstance(other, Array):
            return NotImplemented
        return self._items == other._items

    def __hash__(self):
        return hash(self._items)

    def __repr__(self):
        return f"Array({list(self._items)!r})"


class _Node:
    __slots__ = ("head", "tail")

    def __init__(self, head, tail):
        self.head = head
        self.tail = tail


@with_iterable
@iterable
class LinkedList(Generic[T]):
    """Immutable singly linked list; positional access scans from the head."""

    __slots__ = ("_node",)

    def __init__(self, node: Optional[_Node] = None):
        self._node = node

    @classmethod
    def of(cls, items: Iterable[T]) -> "LinkedList[T]":
        node = None
        for item in reversed(list(items)):
            node = _Node(item, node)
        return cls(node)

    def cons(self, item: T) -> "LinkedList[T]":
        return LinkedList(_Node(item, self._node))

    def init(self):
        return self._node

    def step(self, state, on_item, on_end):
        if state is None:
            return on_end()
        return on_item(state.head, state.tail)

    def __eq__(self, other):
        if not isinstance(other, LinkedList):
            return NotImplemented
        return self.to_list() == other.to_list()

    def __repr__(self):
        return f"LinkedList.of({self.to_list()!r})"


@with_indexable
@iterable(item=str)
class Text:
    """Character sequence; elements are one-character strings."""

    __slots__ = ("_value",)

    def __init__(self, value: str = ""):
        self._value = str(value)

    def init(self):
        return 0

    def step(self, state, on_item, on_end):
        if state < len(self._value):
            return on_item(self._value[state], state + 1)
        return on_end()

    def length(self) -> int:
        return len(self._value)

    def unsafe_get(self, index: int) -> str:
        return self._value[index]

    def __str__(self):
        return self._value

    def __eq__(self, other):
        if not isinstance(other, Text):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash(self._value)

    def __repr__(self):
        return f"Text({self._value!r})"


@with_indexable
@iterable(item=int)
class Bytes:
    """Byte string; elements are ints in range(256)."""

    __slots__ = ("_data",)

    def __init__(self, data: Any = b""):
        self._data = bytes(data)

    def init(self):
        return 0

    def step(self, state, on_item, on_end):
        if state < len(self._data):
            return on_item(self._data[state], state + 1)
        return on_end()

    def length(self) -> int:
        return len(self._data)

    def unsafe_get(self, index: int) -> int:
        return self._data[index]

    def __bytes__(self):
        return self._data

    def __eq__(self, other):
        if not isinstance(other, Bytes):
            return NotImplemented
        return self._data == other._data

    def __hash__(self):
        return hash(self._data)

    def __repr__(self):
        return f"Bytes({self._data!r})"
