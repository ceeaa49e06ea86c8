"""Adapter contracts + class decorators deriving the operation suite."""

import inspect
import logging
import numbers
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

import iteration
from iteration import Iter

logger = logging.getLogger(__name__)


class ContractViolationError(Exception):
    """Raised when a class violates its adapter contract."""
    pass


class MethodSignatureError(Exception):
    """Raised when an adapter method cannot accept the contract's arguments."""
    pass


class Capability(str, Enum):
    """Positional-access capability declared by a container"""
    ITERABLE = "iterable"
    INDEXABLE = "indexable"


@dataclass
class MethodContract:
    """Adapter method requirement descriptor."""
    name: str
    required_params: List[str]
    description: str


@dataclass
class CapabilityContract:
    """Methods a class must define to take part in a derivation."""
    capability: Capability
    required_methods: List[MethodContract]


ITERABLE_CONTRACT = CapabilityContract(
    capability=Capability.ITERABLE,
    required_methods=[
        MethodContract(
            name="init",
            required_params=["self"],
            description="Return the initial traversal state"
        ),
        MethodContract(
            name="step",
            required_params=["self", "state", "on_item", "on_end"],
            description="Call on_item(item, next_state) or on_end() and return its result"
        )
    ]
)

INDEXABLE_CONTRACT = CapabilityContract(
    capability=Capability.INDEXABLE,
    required_methods=[
        MethodContract(
            name="length",
            required_params=["self"],
            description="Return the number of elements"
        ),
        MethodContract(
            name="unsafe_get",
            required_params=["self", "index"],
            description="Return the element at an index already checked to be in range"
        )
    ]
)

# Derived classes, by derivation kind
DERIVATION_REGISTRY: Dict[str, Dict[str, Any]] = {
    'iterables': {},
    'containers': {}
}

# Operations every iterable gets, in library order
ITERABLE_OPERATIONS = [
    "each", "fold", "fold_while", "reduce",
    "find", "find_index", "find_indices", "index", "indices",
    "find_min", "find_max", "contains", "count",
    "all", "any", "to_list", "to_list_reversed",
    "is_empty", "length", "get", "first", "second", "last",
]
NUMERIC_OPERATIONS = ["sum", "product"]
POSITIONAL_OPERATIONS = ["is_empty", "length", "get", "first", "second", "last"]

# Who attached a derived method; higher rank wins, own methods always win
_ITERABLE_RANK = 1
_CONTAINER_RANK = 2


def validate_contract_compliance(cls: Type, contract: CapabilityContract) -> List[str]:
    """Return list of contract violation messages (empty if compliant)."""
    violations = []
    for method_contract in contract.required_methods:
        method = getattr(cls, method_contract.name, None)
        if method is None:
            violations.append(f"Missing required method: {method_contract.name}")
        elif not callable(method):
            violations.append(f"Attribute {method_contract.name} is not callable")
    return violations


def _validate_method_signature(cls: Type, contract: MethodContract):
    method = inspect.getattr_static(cls, contract.name)
    if isinstance(method, (staticmethod, classmethod)):
        raise MethodSignatureError(
            f"Method {cls.__name__}.{contract.name} must be a plain instance method"
        )
    try:
        sig = inspect.signature(method)
    except (TypeError, ValueError):
        logger.warning(f"Could not inspect signature of {cls.__name__}.{contract.name}")
        return
    try:
        sig.bind(*contract.required_params)
    except TypeError as e:
        raise MethodSignatureError(
            f"Method {cls.__name__}.{contract.name} must accept "
            f"({', '.join(contract.required_params)}): {e}"
        ) from e


def _enforce_contract(cls: Type, contract: CapabilityContract):
    violations = validate_contract_compliance(cls, contract)
    if violations:
        raise ContractViolationError(
            f"Class {cls.__name__} violates the {contract.capability.value} contract: "
            + "; ".join(violations)
        )
    for method_contract in contract.required_methods:
        _validate_method_signature(cls, method_contract)


def _iter_of(self) -> Iter:
    return Iter(self.init(), lambda state, on_item, on_end: self.step(state, on_item, on_end))


def _attach(cls: Type, name: str, method: Callable, rank: int) -> bool:
    derived = cls.__dict__.get("__derived_operations__")
    if derived is None:
        derived = {}
        cls.__derived_operations__ = derived
    if name in cls.__dict__ and name not in derived:
        logger.debug(f"{cls.__name__}.{name} defined by the class; not deriving it")
        return False
    if derived.get(name, 0) > rank:
        return False
    method.__name__ = name
    method.__qualname__ = f"{cls.__qualname__}.{name}"
    method.__module__ = cls.__module__
    setattr(cls, name, method)
    derived[name] = rank
    return True


def _delegate(name: str) -> Callable:
    operation = getattr(iteration, name)

    def method(self, *args, **kwargs):
        return operation(*args, self.to_iter(), **kwargs)

    method.__doc__ = operation.__doc__
    return method


def _register(category: str, cls: Type, **info):
    key = f"{cls.__module__}.{cls.__qualname__}"
    DERIVATION_REGISTRY[category][key] = {
        'class': cls,
        'registered_at': time.time(),
        **info
    }
    logger.info(f"Registered {category[:-1]} {cls.__name__}: {len(info.get('operations', []))} operations")


def _is_numeric(item_type: Optional[type]) -> bool:
    return item_type is None or (isinstance(item_type, type) and issubclass(item_type, numbers.Number))


def _derive_iterable(cls: Type, item: Optional[type]) -> Type:
    _enforce_contract(cls, ITERABLE_CONTRACT)

    names = list(ITERABLE_OPERATIONS)
    if _is_numeric(item):
        names += NUMERIC_OPERATIONS

    _attach(cls, "to_iter", lambda self: _iter_of(self), _ITERABLE_RANK)
    attached = [name for name in names if _attach(cls, name, _delegate(name), _ITERABLE_RANK)]

    if getattr(cls, "__iter__", None) is None:
        cls.__iter__ = lambda self: iter(self.to_iter())

    cls.__item_type__ = item
    _register(
        'iterables', cls,
        item_type=item.__name__ if item is not None else None,
        operations=attached
    )
    return cls


def iterable(cls: Optional[Type] = None, *, item: Optional[type] = None):
    """
    Derive the full operation suite for a class defining ``init`` and ``step``.

    Use bare (``@iterable``) when the element type is a free parameter of the
    container, or with ``item=`` (``@iterable(item=int)``) when every
    container of the class holds one fixed element type. The fixed-element
    form only gets ``sum``/``product`` when ``item`` is numeric.
    """
    if cls is not None:
        return _derive_iterable(cls, item)
    return lambda target: _derive_iterable(target, item)


# --------- container derivation ----------

def _indexable_operations() -> Dict[str, Callable]:
    def get(self, n, *, default=None):
        if 0 <= n < self.length():
            return self.unsafe_get(n)
        return default

    def is_empty(self):
        return self.length() == 0

    def first(self, *, default=None):
        return self.get(0, default=default)

    def second(self, *, default=None):
        return self.get(1, default=default)

    def last(self, *, default=None):
        return self.get(self.length() - 1, default=default)

    return {
        "is_empty": is_empty,
        "get": get,
        "first": first,
        "second": second,
        "last": last,
    }


def _iterable_operations() -> Dict[str, Callable]:
    def is_empty(self):
        return iteration.is_empty(_iter_of(self))

    def length(self):
        return iteration.length(_iter_of(self))

    def get(self, n, *, default=None):
        return iteration.get(n, _iter_of(self), default=default)

    def first(self, *, default=None):
        return iteration.first(_iter_of(self), default=default)

    def second(self, *, default=None):
        return iteration.second(_iter_of(self), default=default)

    def last(self, *, default=None):
        return iteration.last(_iter_of(self), default=default)

    return {
        "is_empty": is_empty,
        "length": length,
        "get": get,
        "first": first,
        "second": second,
        "last": last,
    }


_CONTAINER_STRATEGIES = {
    Capability.INDEXABLE: (INDEXABLE_CONTRACT, _indexable_operations),
    Capability.ITERABLE: (ITERABLE_CONTRACT, _iterable_operations),
}


def _derive_container(cls: Type, capability: Capability) -> Type:
    declared = cls.__dict__.get("__capability__")
    if declared is not None and declared != capability:
        raise ContractViolationError(
            f"Class {cls.__name__} already declares the {declared.value} capability; "
            f"cannot also derive {capability.value} positional access"
        )

    contract, build = _CONTAINER_STRATEGIES[capability]
    _enforce_contract(cls, contract)

    operations = build()
    attached = [name for name, method in operations.items() if _attach(cls, name, method, _CONTAINER_RANK)]

    if capability is Capability.INDEXABLE:
        # length comes straight from the adapter
        attached.append("length")
        if getattr(cls, "__len__", None) is None:
            cls.__len__ = lambda self: self.length()

    cls.__capability__ = capability
    _register('containers', cls, capability=capability.value, operations=attached)
    return cls


def container(capability: Capability):
    """Derive positional access using the strategy for capability."""
    capability = Capability(capability)
    return lambda cls: _derive_container(cls, capability)


def with_indexable(cls: Type) -> Type:
    """O(1) positional access from ``length`` and ``unsafe_get``."""
    return _derive_container(cls, Capability.INDEXABLE)


def with_iterable(cls: Type) -> Type:
    """Positional access by scanning ``init``/``step`` traversals."""
    return _derive_container(cls, Capability.ITERABLE)


def get_registered_containers(category: str = None) -> Dict[str, Any]:
    """Return derivation registry (optionally a single category)."""
    if category:
        return DERIVATION_REGISTRY.get(category, {})
    return DERIVATION_REGISTRY


def audit_registered_contracts() -> Dict[str, List[str]]:
    """
    Re-check every registered class against the contract it was derived under.

    Returns:
        Mapping of registry key to violation messages; empty when all comply
    """
    contracts = {c.capability.value: c for c in (ITERABLE_CONTRACT, INDEXABLE_CONTRACT)}
    report: Dict[str, List[str]] = {}
    for entries in DERIVATION_REGISTRY.values():
        for name, entry in entries.items():
            contract = contracts[entry.get('capability', Capability.ITERABLE.value)]
            violations = validate_contract_compliance(entry['class'], contract)
            if violations:
                report.setdefault(name, []).extend(violations)
    return report
