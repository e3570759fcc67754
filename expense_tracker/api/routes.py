"""
Transaction routes.

Responses use the `{success, data, ...}` envelope. Records are serialized
with camelCase keys and amounts as plain numbers.
"""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status

from expense_tracker.models.transaction import TransactionIn, utcnow
from expense_tracker.orchestrator import TransactionService
from expense_tracker.queries.filters import build_filter
from expense_tracker.services.storage import NotFoundError


router = APIRouter(prefix="/api/transactions", tags=["transactions"])
health_router = APIRouter(prefix="/api", tags=["health"])


def get_service(request: Request) -> TransactionService:
    return request.app.state.service


def parse_transaction_id(transaction_id: str) -> UUID:
    """An id that is not a UUID cannot name a stored transaction."""
    try:
        return UUID(transaction_id)
    except ValueError:
        raise NotFoundError(f"Transaction not found: {transaction_id}") from None


def _dump(model: Any) -> Any:
    return model.model_dump(mode="json", by_alias=True)


# =============================================================================
# Listing and aggregates
# =============================================================================

@router.get("")
async def list_transactions(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    type_: Optional[str] = Query(None, alias="type", description="income or expense"),
    category: Optional[str] = Query(None),
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    search: Optional[str] = Query(None),
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    service: TransactionService = Depends(get_service),
):
    """Paginated, newest-first list of transactions with optional filters."""
    filters = build_filter(
        type=type_,
        category=category,
        start_date=start_date,
        end_date=end_date,
        search=search,
        owner_id=owner_id,
    )
    result = await service.list_transactions(filters, page=page, limit=limit)
    return {
        "success": True,
        "data": [_dump(txn) for txn in result.records],
        "pagination": result.pagination.model_dump(),
    }


@router.get("/summary/stats")
async def get_summary(
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    service: TransactionService = Depends(get_service),
):
    summary = await service.get_summary(owner_id)
    return {"success": True, "data": _dump(summary)}


@router.get("/summary/breakdown")
async def get_breakdown(
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    service: TransactionService = Depends(get_service),
):
    breakdown = await service.get_breakdown(owner_id)
    return {"success": True, "data": [_dump(entry) for entry in breakdown]}


# =============================================================================
# Single transactions
# =============================================================================

@router.get("/{transaction_id}")
async def get_transaction(
    transaction_id: str,
    service: TransactionService = Depends(get_service),
):
    txn = await service.get_transaction(parse_transaction_id(transaction_id))
    return {"success": True, "data": _dump(txn)}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    payload: TransactionIn,
    service: TransactionService = Depends(get_service),
):
    txn = await service.create_transaction(payload)
    return {
        "success": True,
        "data": _dump(txn),
        "message": "Transaction created successfully",
    }


@router.put("/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    payload: TransactionIn,
    service: TransactionService = Depends(get_service),
):
    txn = await service.update_transaction(parse_transaction_id(transaction_id), payload)
    return {
        "success": True,
        "data": _dump(txn),
        "message": "Transaction updated successfully",
    }


@router.delete("/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    service: TransactionService = Depends(get_service),
):
    await service.delete_transaction(parse_transaction_id(transaction_id))
    return {"success": True, "message": "Transaction deleted successfully"}


# =============================================================================
# Health
# =============================================================================

@health_router.get("/health")
async def health(service: TransactionService = Depends(get_service)):
    return {
        "status": "OK",
        "message": f"Expense Tracker API is running ({service.storage_name})",
        "timestamp": utcnow().isoformat(),
        "storage": service.storage_name,
    }
