"""FastAPI app exposing the derived collection operations as a query service."""

from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from derive import ContractViolationError, MethodSignatureError, get_registered_containers
from iteration import StepError
from models import (
    QueryRequest, QueryResponse, CollectionsResponse, RegisteredCollection,
    MetricsResponse, HealthResponse, StatusResponse, ErrorResponse
)
from utils import (
    configure_logging,
    process_query,
    get_performance_summary,
    clear_performance_metrics,
    get_system_health,
)

configure_logging()

app = FastAPI(
    title="Derived Collection Operations",
    description="Uniform query operations derived from minimal collection adapters",
    version="1.0.0"
)


@app.get("/", response_model=StatusResponse)
async def root():
    """Basic service banner."""
    return StatusResponse(
        ok=True,
        message="Collection query service operational",
        timestamp=datetime.now()
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Return registry + metrics health summary."""
    health_data = get_system_health()
    return HealthResponse(**health_data, timestamp=datetime.now())


@app.get("/collections", response_model=CollectionsResponse)
async def list_collections(category: Optional[str] = None):
    """List classes that received derived operations (optionally one category)."""
    registry = get_registered_containers()
    if category is not None and category not in registry:
        raise HTTPException(status_code=404, detail=f"Unknown category: {category}")

    entries = []
    for cat, classes in registry.items():
        if category is not None and cat != category:
            continue
        for name, info in classes.items():
            entries.append(RegisteredCollection(
                name=name,
                category=cat,
                capability=info.get("capability"),
                item_type=info.get("item_type"),
                operations=info.get("operations", []),
                registered_at=info["registered_at"]
            ))

    return CollectionsResponse(
        collections=entries,
        total=len(entries),
        timestamp=datetime.now()
    )


@app.post("/query", response_model=QueryResponse)
async def query(request: QueryRequest) -> QueryResponse:
    """Run one derived operation over the request items."""
    try:
        outcome = process_query(
            collection=request.collection.value,
            items=request.items,
            operation=request.operation.value,
            predicate=request.predicate.model_dump(mode="json") if request.predicate else None,
            value=request.value,
            position=request.position,
            reducer=request.reducer.value if request.reducer else None,
            descending=request.descending
        )
    except (ValueError, TypeError) as e:
        raise HTTPException(
            status_code=400,
            detail=f"Query failed: {str(e)}"
        )

    return QueryResponse(
        operation=request.operation,
        collection=request.collection,
        collection_type=outcome["collection_type"],
        capability=outcome["capability"],
        result=outcome["result"],
        found=outcome["found"],
        processing_time_ms=outcome["processing_time_ms"],
        timestamp=datetime.now()
    )


@app.get("/metrics", response_model=MetricsResponse)
async def metrics():
    """Aggregated timings of executed queries."""
    return MetricsResponse(metrics=get_performance_summary(), timestamp=datetime.now())


@app.delete("/metrics", response_model=StatusResponse)
async def reset_metrics():
    """Reset performance metrics."""
    clear_performance_metrics()
    return StatusResponse(ok=True, message="Metrics cleared", timestamp=datetime.now())


# Exception handlers for adapter contract breaches
@app.exception_handler(ContractViolationError)
@app.exception_handler(MethodSignatureError)
@app.exception_handler(StepError)
async def contract_violation_handler(request: Request, exc: Exception):
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=f"Contract violation: {str(exc)}",
            error_type=type(exc).__name__,
            timestamp=datetime.now()
        ).model_dump(mode="json")
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
