"""
Helpers for the query service: logging setup, performance measurement,
and dispatch of declarative queries onto the derived collections.
"""

import gc
import logging
import operator
import time
import tracemalloc
from collections import deque
from typing import Any, Callable, Dict, List, Optional

from adapters import Array, Bytes, LinkedList, Text
from comparison import compare
from derive import audit_registered_contracts, get_registered_containers
from models import PREDICATE_OPERATIONS, VALUE_OPERATIONS

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    """Configure root logging for the service."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )


# Only the most recent operations are kept; totals cover every call
MAX_RECORDED_OPERATIONS = 1000


def _new_metrics() -> Dict[str, Any]:
    return {
        "operations": deque(maxlen=MAX_RECORDED_OPERATIONS),
        "total_time_ms": 0.0,
        "total_memory_mb": 0.0,
        "operation_count": 0,
        "failed_count": 0
    }


# Global performance tracking
_performance_metrics = _new_metrics()


def _record(performance_info: Dict[str, Any]):
    _performance_metrics["operations"].append(performance_info)
    if not performance_info["success"]:
        _performance_metrics["failed_count"] += 1
    _performance_metrics["total_time_ms"] += performance_info["execution_time_ms"]
    _performance_metrics["total_memory_mb"] += performance_info["memory_usage_mb"]
    _performance_metrics["operation_count"] += 1


def measure_performance(operation_name: str, func: Callable, *args, **kwargs) -> Dict[str, Any]:
    """Run func and return its result with timing and peak memory."""
    tracemalloc.start()
    gc.collect()
    start_time = time.perf_counter()

    try:
        result = func(*args, **kwargs)

        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
        performance_info = {
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": True,
            "timestamp": time.time()
        }
        _record(performance_info)
        logger.debug(f"{operation_name} completed in {execution_time_ms:.2f}ms")
        return {"result": result, **performance_info}

    except Exception as e:
        execution_time_ms = (time.perf_counter() - start_time) * 1000
        _, peak = tracemalloc.get_traced_memory()
        _record({
            "operation": operation_name,
            "execution_time_ms": execution_time_ms,
            "memory_usage_mb": peak / 1024 / 1024,
            "success": False,
            "error": str(e),
            "timestamp": time.time()
        })
        logger.error(f"{operation_name} failed after {execution_time_ms:.2f}ms: {e}")
        raise

    finally:
        tracemalloc.stop()


def get_performance_summary() -> Dict[str, Any]:
    """Get summary of all performance metrics"""
    count = _performance_metrics["operation_count"]
    if count == 0:
        return {
            "total_operations": 0,
            "failed_operations": 0,
            "recorded_operations": 0,
            "total_time_ms": 0.0,
            "total_memory_mb": 0.0,
            "avg_time_ms": 0.0,
            "avg_memory_mb": 0.0
        }

    return {
        "total_operations": count,
        "failed_operations": _performance_metrics["failed_count"],
        "recorded_operations": len(_performance_metrics["operations"]),
        "total_time_ms": _performance_metrics["total_time_ms"],
        "total_memory_mb": _performance_metrics["total_memory_mb"],
        "avg_time_ms": _performance_metrics["total_time_ms"] / count,
        "avg_memory_mb": _performance_metrics["total_memory_mb"] / count
    }


def clear_performance_metrics():
    """Clear all performance metrics"""
    global _performance_metrics
    _performance_metrics = _new_metrics()


# --------- query dispatch ----------

COLLECTION_BUILDERS: Dict[str, Callable[[List[Any]], Any]] = {
    "array": Array,
    "linked_list": LinkedList.of,
    "text": lambda items: Text("".join(items)),
    "bytes": Bytes,
}

COMPARISONS: Dict[str, Callable[[Any, Any], bool]] = {
    "lt": operator.lt,
    "le": operator.le,
    "gt": operator.gt,
    "ge": operator.ge,
    "eq": operator.eq,
    "ne": operator.ne,
}

# reduce calls these with (item, accumulator)
REDUCERS: Dict[str, Callable[[Any, Any], Any]] = {
    "add": lambda item, acc: acc + item,
    "multiply": lambda item, acc: acc * item,
    "min": lambda item, acc: item if item < acc else acc,
    "max": lambda item, acc: item if item > acc else acc,
    "concat": lambda item, acc: f"{acc}{item}",
}

LOOKUP_OPERATIONS = {"find", "find_index", "index", "reduce", "get", "first", "second", "last", "find_min", "find_max"}

_ABSENT = object()


def build_collection(kind: str, items: List[Any]):
    """Load request items into the named adapter."""
    if kind not in COLLECTION_BUILDERS:
        raise ValueError(f"Unknown collection kind: {kind}")
    return COLLECTION_BUILDERS[kind](items)


def build_predicate(op: str, value: Any) -> Callable[[Any], bool]:
    """Predicate 'element <op> value' from its declarative form."""
    if op not in COMPARISONS:
        raise ValueError(f"Unknown comparison: {op}")
    check = COMPARISONS[op]
    return lambda item: check(item, value)


def build_comparator(descending: bool) -> Optional[Callable[[Any, Any], int]]:
    """None selects the default comparator; descending flips it."""
    if not descending:
        return None
    return lambda a, b: compare(b, a)


def _bind_operation(method: Callable, operation: str, predicate: Optional[Dict[str, Any]],
                    value: Any, position: Optional[int], reducer: Optional[str],
                    descending: bool) -> Callable[[], Any]:
    if operation in PREDICATE_OPERATIONS:
        if predicate is None:
            raise ValueError(f"Operation {operation} requires a predicate")
        pred = build_predicate(predicate["op"], predicate["value"])
        if operation == "find":
            return lambda: method(pred, default=_ABSENT)
        return lambda: method(pred)
    if operation in VALUE_OPERATIONS:
        return lambda: method(value)
    if operation == "get":
        if position is None:
            raise ValueError("Operation get requires a position")
        return lambda: method(position, default=_ABSENT)
    if operation == "reduce":
        if reducer not in REDUCERS:
            raise ValueError(f"Unknown reducer: {reducer}")
        return lambda: method(REDUCERS[reducer], default=_ABSENT)
    if operation in ("find_min", "find_max"):
        return lambda: method(by=build_comparator(descending), default=_ABSENT)
    if operation in ("first", "second", "last"):
        return lambda: method(default=_ABSENT)
    return method


def process_query(collection: str, items: List[Any], operation: str,
                  predicate: Optional[Dict[str, Any]] = None,
                  value: Any = None, position: Optional[int] = None,
                  reducer: Optional[str] = None,
                  descending: bool = False) -> Dict[str, Any]:
    """Run one derived operation over items loaded into a collection."""
    target = build_collection(collection, items)
    method = getattr(target, operation, None)
    if method is None:
        raise ValueError(f"Operation {operation} is not available on {type(target).__name__}")

    call = _bind_operation(method, operation, predicate, value, position, reducer, descending)
    measured = measure_performance(f"{type(target).__name__}.{operation}", call)
    result = measured["result"]

    found = None
    if operation in LOOKUP_OPERATIONS:
        # index-style lookups report absence as None, the rest as the sentinel
        if operation in ("index", "find_index"):
            found = result is not None
        else:
            found = result is not _ABSENT
        if not found:
            result = None

    return {
        "result": result,
        "found": found,
        "capability": type(target).__capability__.value,
        "collection_type": type(target).__name__,
        "processing_time_ms": measured["execution_time_ms"],
    }


def get_system_health() -> Dict[str, Any]:
    """Compute health snapshot (registry + perf).

    Health reflects whether registered classes still satisfy their contracts;
    failed queries only show up in the performance metrics.
    """
    registry = get_registered_containers()
    violations = audit_registered_contracts()
    if violations:
        logger.warning(f"Contract violations in {len(violations)} registered classes")
    return {
        "healthy": not violations,
        "contract_violations": violations,
        "registered_iterables": len(registry["iterables"]),
        "registered_containers": len(registry["containers"]),
        "performance_metrics": get_performance_summary()
    }
