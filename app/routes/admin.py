from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from app.dependencies.admin import require_admin
from app.models.user import User
from app.routes.transactions import get_coordinator
from app.schemas.transaction_schemas import TransactionList, TransactionRead
from app.services.transaction_service import TransactionCoordinator

router = APIRouter()


# -------- TRANSACTIONS --------

@router.get("/transactions", response_model=TransactionList)
def list_all_transactions(
    status: Optional[str] = Query(None, pattern="^(pending|completed|failed|refunded)$"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_admin: User = Depends(require_admin),
):
    result = coordinator.list_all_transactions(
        current_admin,
        status=status,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )

    return TransactionList(
        count=len(result["results"]),
        total=result["total"],
        pagination={
            "page": result["page"],
            "limit": result["limit"],
            "totalPages": result["total_pages"],
        },
        data=[TransactionRead.model_validate(t) for t in result["results"]],
    )
