"""
Pydantic Models

Request/response models for the collection query service.
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime
from enum import Enum


class CollectionKind(str, Enum):
    """Concrete collections a query can target"""
    ARRAY = "array"
    LINKED_LIST = "linked_list"
    TEXT = "text"
    BYTES = "bytes"


class OperationName(str, Enum):
    """Derived operations exposed over HTTP"""
    FIND = "find"
    FIND_INDEX = "find_index"
    FIND_INDICES = "find_indices"
    INDEX = "index"
    INDICES = "indices"
    CONTAINS = "contains"
    COUNT = "count"
    ALL = "all"
    ANY = "any"
    REDUCE = "reduce"
    FIND_MIN = "find_min"
    FIND_MAX = "find_max"
    SUM = "sum"
    PRODUCT = "product"
    TO_LIST = "to_list"
    TO_LIST_REVERSED = "to_list_reversed"
    IS_EMPTY = "is_empty"
    LENGTH = "length"
    GET = "get"
    FIRST = "first"
    SECOND = "second"
    LAST = "last"


class ComparisonOp(str, Enum):
    """Comparison used by declarative predicates"""
    LT = "lt"
    LE = "le"
    GT = "gt"
    GE = "ge"
    EQ = "eq"
    NE = "ne"


class ReducerName(str, Enum):
    """Binary functions available to reduce"""
    ADD = "add"
    MULTIPLY = "multiply"
    MIN = "min"
    MAX = "max"
    CONCAT = "concat"


# Keyed by operation value so the query dispatcher can share them
PREDICATE_OPERATIONS = frozenset(op.value for op in (
    OperationName.FIND, OperationName.FIND_INDEX, OperationName.FIND_INDICES,
    OperationName.COUNT, OperationName.ALL, OperationName.ANY,
))
VALUE_OPERATIONS = frozenset(op.value for op in (
    OperationName.INDEX, OperationName.INDICES, OperationName.CONTAINS,
))


class Predicate(BaseModel):
    """Declarative predicate: element <op> value"""
    op: ComparisonOp = Field(..., description="Comparison operator")
    value: Any = Field(..., description="Right-hand operand")


class QueryRequest(BaseModel):
    """Run one operation over a collection built from items"""
    collection: CollectionKind = Field(
        CollectionKind.ARRAY,
        description="Collection to load the items into"
    )
    items: List[Any] = Field(
        default_factory=list,
        description="Elements of the collection, in order"
    )
    operation: OperationName = Field(..., description="Operation to run")
    predicate: Optional[Predicate] = Field(
        None,
        description="Predicate for find/count/all/any style operations"
    )
    value: Any = Field(
        None,
        description="Element searched by index/indices/contains"
    )
    position: Optional[int] = Field(
        None,
        description="Zero-based position for get"
    )
    reducer: Optional[ReducerName] = Field(
        None,
        description="Binary function for reduce"
    )
    descending: bool = Field(
        False,
        description="Reverse the default ordering for find_min/find_max"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "collection": "array",
                "items": [1, -2, 3, -4, 5, 6],
                "operation": "count",
                "predicate": {"op": "lt", "value": 0}
            }
        }
    )

    @field_validator('items')
    @classmethod
    def validate_items(cls, v):
        """Cap request size"""
        if len(v) > 100_000:
            raise ValueError("At most 100000 items per query")
        return v

    @model_validator(mode='after')
    def validate_operation_arguments(self):
        """Check the arguments each operation needs are present"""
        if self.operation.value in PREDICATE_OPERATIONS and self.predicate is None:
            raise ValueError(f"Operation {self.operation.value} requires a predicate")
        if self.operation == OperationName.GET and self.position is None:
            raise ValueError("Operation get requires a position")
        if self.operation == OperationName.REDUCE and self.reducer is None:
            raise ValueError("Operation reduce requires a reducer")
        if self.collection == CollectionKind.TEXT and not all(
            isinstance(i, str) and len(i) == 1 for i in self.items
        ):
            raise ValueError("Text items must be single characters")
        if self.collection == CollectionKind.BYTES and not all(
            isinstance(i, int) and not isinstance(i, bool) and 0 <= i < 256 for i in self.items
        ):
            raise ValueError("Bytes items must be integers in range(256)")
        return self


class QueryResponse(BaseModel):
    """Result of one query"""
    ok: bool = Field(True, description="Request success status")
    operation: OperationName = Field(..., description="Operation that ran")
    collection: CollectionKind = Field(..., description="Collection kind queried")
    collection_type: str = Field(..., description="Adapter class name")
    capability: str = Field(..., description="Positional-access capability of the adapter")
    result: Any = Field(None, description="Operation result (null when absent)")
    found: Optional[bool] = Field(
        None,
        description="For lookups: whether a result was present"
    )
    processing_time_ms: float = Field(
        ...,
        description="Processing time in milliseconds",
        ge=0
    )
    timestamp: datetime = Field(..., description="Response timestamp")


class RegisteredCollection(BaseModel):
    """A class that received derived operations"""
    name: str = Field(..., description="Qualified class name")
    category: str = Field(..., description="Derivation kind (iterables/containers)")
    capability: Optional[str] = Field(None, description="Container capability")
    item_type: Optional[str] = Field(None, description="Fixed element type, if any")
    operations: List[str] = Field(default_factory=list, description="Derived operation names")
    registered_at: float = Field(..., description="Registration time (epoch seconds)")


class CollectionsResponse(BaseModel):
    """Response from the registry endpoint"""
    ok: bool = Field(True, description="Request success status")
    collections: List[RegisteredCollection] = Field(..., description="Registered classes")
    total: int = Field(..., description="Number of registry entries", ge=0)
    timestamp: datetime = Field(..., description="Registry snapshot timestamp")


class MetricsResponse(BaseModel):
    """Performance summary"""
    ok: bool = Field(True, description="Request success status")
    metrics: Dict[str, Any] = Field(..., description="Aggregated performance metrics")
    timestamp: datetime = Field(..., description="Metrics snapshot timestamp")


class HealthResponse(BaseModel):
    """Service health"""
    healthy: bool = Field(..., description="Every registered class still satisfies its contract")
    contract_violations: Dict[str, List[str]] = Field(
        default_factory=dict,
        description="Violations per registered class (empty when healthy)"
    )
    registered_iterables: int = Field(..., description="Classes with derived iterable operations", ge=0)
    registered_containers: int = Field(..., description="Classes with derived positional access", ge=0)
    performance_metrics: Dict[str, Any] = Field(..., description="Performance summary")
    timestamp: datetime = Field(..., description="Health check timestamp")


class StatusResponse(BaseModel):
    """Standard status response"""
    ok: bool = Field(True, description="Request success status")
    message: str = Field(..., description="Status message")
    timestamp: datetime = Field(..., description="Response timestamp")


class ErrorResponse(BaseModel):
    """Standard error response"""
    ok: bool = Field(False, description="Request success status")
    error: str = Field(..., description="Error message")
    error_type: Optional[str] = Field(None, description="Error type/category")
    timestamp: datetime = Field(..., description="Error timestamp")
