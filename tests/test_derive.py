"""
Tests for adapter contracts and the derivation decorators.
"""

import pytest

from derive import (
    Capability,
    ContractViolationError,
    MethodSignatureError,
    MethodContract,
    CapabilityContract,
    ITERABLE_CONTRACT,
    INDEXABLE_CONTRACT,
    ITERABLE_OPERATIONS,
    DERIVATION_REGISTRY,
    audit_registered_contracts,
    container,
    get_registered_containers,
    iterable,
    validate_contract_compliance,
    with_indexable,
    with_iterable,
)
from iteration import Iter


class Countdown:
    """Iterable-only adapter: n, n-1, ..., 1"""

    def __init__(self, n):
        self.n = n
        self.steps = 0

    def init(self):
        return self.n

    def step(self, state, on_item, on_end):
        self.steps += 1
        if state <= 0:
            return on_end()
        return on_item(state, state - 1)


class Slots:
    """Indexable + iterable adapter over a list"""

    def __init__(self, items):
        self.items = list(items)
        self.reads = 0

    def init(self):
        return 0

    def step(self, state, on_item, on_end):
        if state < len(self.items):
            return on_item(self.items[state], state + 1)
        return on_end()

    def length(self):
        return len(self.items)

    def unsafe_get(self, index):
        self.reads += 1
        return self.items[index]


def fresh(cls):
    """Copy an adapter class so each test decorates its own class"""
    return type(cls.__name__, (), {k: v for k, v in vars(cls).items() if k not in ("__dict__", "__weakref__")})


class TestContracts:
    """Test contract definitions and enforcement"""

    def test_contract_definitions(self):
        """Test the two capability contracts"""
        assert ITERABLE_CONTRACT.capability == Capability.ITERABLE
        assert [m.name for m in ITERABLE_CONTRACT.required_methods] == ["init", "step"]
        assert [m.name for m in INDEXABLE_CONTRACT.required_methods] == ["length", "unsafe_get"]

    def test_compliance_report(self):
        """Test non-raising compliance check"""
        assert validate_contract_compliance(Slots, ITERABLE_CONTRACT) == []
        assert validate_contract_compliance(Countdown, INDEXABLE_CONTRACT) == [
            "Missing required method: length",
            "Missing required method: unsafe_get",
        ]

    def test_custom_contract(self):
        """Test building a contract by hand"""
        contract = CapabilityContract(
            capability=Capability.ITERABLE,
            required_methods=[MethodContract("walk", ["self"], "Walk it")]
        )
        violations = validate_contract_compliance(Slots, contract)
        assert violations == ["Missing required method: walk"]

    def test_missing_method_rejected(self):
        """Test deriving without step"""
        class NoStep:
            def init(self):
                return 0

        with pytest.raises(ContractViolationError, match="step"):
            iterable(NoStep)

    def test_non_callable_rejected(self):
        """Test deriving with a non-callable attribute"""
        class Broken:
            init = 0

            def step(self, state, on_item, on_end):
                return on_end()

        with pytest.raises(ContractViolationError, match="not callable"):
            iterable(Broken)

    def test_bad_signature_rejected(self):
        """Test step that cannot take the continuations"""
        class ShortStep:
            def init(self):
                return 0

            def step(self, state):
                return None

        with pytest.raises(MethodSignatureError):
            iterable(ShortStep)

    def test_static_adapter_method_rejected(self):
        """Test adapter methods must be instance methods"""
        class Static:
            @staticmethod
            def init():
                return 0

            def step(self, state, on_item, on_end):
                return on_end()

        with pytest.raises(MethodSignatureError):
            iterable(Static)


class TestIterableDerivation:
    """Test the derived operation suite"""

    def test_operations_attached(self):
        """Test every library operation becomes a method"""
        cls = iterable(fresh(Countdown))
        for name in ITERABLE_OPERATIONS + ["sum", "product", "to_iter"]:
            assert callable(getattr(cls, name, None)), f"Missing derived operation {name}"

    def test_operations_delegate(self):
        """Test derived methods match the library semantics"""
        cls = iterable(fresh(Countdown))
        c = cls(4)
        assert c.to_list() == [4, 3, 2, 1]
        assert c.to_list_reversed() == [1, 2, 3, 4]
        assert c.fold(lambda a, acc: acc + a, 0) == 10
        assert c.find(lambda a: a % 2 == 1) == 3
        assert c.index(2) == 2
        assert c.indices(9) == []
        assert c.contains(1) is True
        assert c.count(lambda a: a > 2) == 2
        assert c.find_max() == 4
        assert c.find_min(by=lambda a, b: b - a) == 4
        assert c.sum() == 10
        assert c.product() == 24
        assert c.all(lambda a: a > 0) is True
        assert c.any(lambda a: a > 4) is False
        assert c.get(1) == 3
        assert c.last() == 1
        assert isinstance(c.to_iter(), Iter)

    def test_python_iteration(self):
        """Test the derived __iter__"""
        cls = iterable(fresh(Countdown))
        assert list(cls(3)) == [3, 2, 1]
        assert [x * 2 for x in cls(2)] == [4, 2]

    def test_fixed_element_form(self):
        """Test item= records the element type and gates numeric operations"""
        words = iterable(item=str)(fresh(Slots))
        numbers = iterable(item=float)(fresh(Slots))
        assert words.__item_type__ is str
        assert not hasattr(words, "sum")
        assert not hasattr(words, "product")
        assert numbers([1.5, 2.5]).sum() == 4.0
        assert words(["x", "y"]).index("y") == 1

    def test_own_methods_not_overwritten(self):
        """Test a class can keep a specialized implementation"""
        class Fast(fresh(Countdown)):
            def contains(self, x):
                return 0 < x <= self.n

        derived = iterable(Fast)
        c = derived(1_000)
        assert c.contains(500) is True
        assert c.steps == 0, "Specialized contains should not traverse"

    def test_registered(self):
        """Test derivation shows up in the registry"""
        cls = iterable(fresh(Countdown))
        key = f"{cls.__module__}.{cls.__qualname__}"
        entry = get_registered_containers("iterables")[key]
        assert entry["class"] is cls
        assert "find" in entry["operations"]


class TestContainerDerivation:
    """Test capability-based positional access"""

    def test_indexable_uses_random_access(self):
        """Test get reads exactly one element via unsafe_get"""
        cls = with_indexable(fresh(Slots))
        s = cls("abcde")
        assert s.get(3) == "d"
        assert s.reads == 1
        assert s.last() == "e"
        assert s.first() == "a"
        assert s.second() == "b"
        assert s.length() == 5
        assert len(s) == 5
        assert s.is_empty() is False
        assert s.reads == 4

    def test_indexable_bounds(self):
        """Test out-of-range positions are absent without touching storage"""
        cls = with_indexable(fresh(Slots))
        s = cls([1, 2])
        assert s.get(2) is None
        assert s.get(-1) is None
        assert s.get(9, default=0) == 0
        assert s.reads == 0
        empty = cls([])
        assert empty.is_empty() is True
        assert empty.first() is None
        assert empty.last() is None

    def test_iterable_scan_stops_early(self):
        """Test get on an iterable-only container stops at the position"""
        cls = with_iterable(fresh(Countdown))
        c = cls(100)
        assert c.get(2) == 98
        assert c.steps == 3, f"Expected 3 steps, got {c.steps}"

    def test_iterable_positional(self):
        """Test the scanning strategy"""
        cls = with_iterable(fresh(Countdown))
        assert cls(3).length() == 3
        assert cls(0).is_empty() is True
        assert cls(3).last() == 1
        assert cls(3).second() == 2
        assert cls(3).get(3) is None

    def test_is_empty_is_single_probe(self):
        """Test is_empty steps once"""
        cls = with_iterable(fresh(Countdown))
        c = cls(1_000)
        assert c.is_empty() is False
        assert c.steps == 1

    @pytest.mark.parametrize("order", ["container_first", "iterable_first"])
    def test_container_wins_regardless_of_order(self, order):
        """Test indexable positional access beats the scanning versions"""
        base = fresh(Slots)
        if order == "container_first":
            cls = iterable(with_indexable(base))
        else:
            cls = with_indexable(iterable(base))
        s = cls(range(10))
        assert s.get(7) == 7
        assert s.reads == 1, "get should use unsafe_get, not a scan"
        assert s.find(lambda a: a > 5) == 6

    def test_only_one_capability(self):
        """Test a class cannot derive both positional strategies"""
        cls = with_indexable(fresh(Slots))
        with pytest.raises(ContractViolationError, match="already declares"):
            with_iterable(cls)

    def test_container_factory(self):
        """Test container(capability) and the capability tag"""
        cls = container("indexable")(fresh(Slots))
        assert cls.__capability__ is Capability.INDEXABLE
        cls2 = container(Capability.ITERABLE)(fresh(Countdown))
        assert cls2.__capability__ is Capability.ITERABLE

    def test_audit_reports_broken_registered_class(self):
        """Test the registry audit flags a class that lost its adapter methods"""
        cls = with_indexable(fresh(Slots))
        cls.__qualname__ = "BrokenSlots"
        key = f"{cls.__module__}.BrokenSlots"
        DERIVATION_REGISTRY['containers'][key] = DERIVATION_REGISTRY['containers'].pop(
            f"{cls.__module__}.Slots"
        )
        try:
            assert key not in audit_registered_contracts()
            del cls.unsafe_get
            report = audit_registered_contracts()
            assert report[key] == ["Missing required method: unsafe_get"]
        finally:
            DERIVATION_REGISTRY['containers'].pop(key)

    def test_indexable_requires_adapter(self):
        """Test indexable derivation needs length and unsafe_get"""
        with pytest.raises(ContractViolationError):
            with_indexable(fresh(Countdown))
