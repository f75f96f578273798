from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.user import User
from app.schemas.transaction_schemas import (
    ConfirmPaymentRequest,
    CreatePaymentIntentRequest,
    PaymentFailedRequest,
    PaymentIntentResponse,
    TransactionEnvelope,
    TransactionList,
    TransactionRead,
)
from app.services.payment_gateway import PaymentGateway, get_payment_gateway
from app.services.transaction_service import TransactionCoordinator
from app.utils.token import get_current_user

router = APIRouter()


def get_coordinator(
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> TransactionCoordinator:
    return TransactionCoordinator(session, gateway)


@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
def create_payment_intent(
    payload: CreatePaymentIntentRequest,
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_user: User = Depends(get_current_user),
):
    intent = coordinator.initiate_purchase(payload.book_id, current_user)

    return PaymentIntentResponse(
        clientSecret=intent.client_secret,
        paymentIntentId=intent.id,
    )


@router.post("/confirm-payment", response_model=TransactionEnvelope)
def confirm_payment(
    payload: ConfirmPaymentRequest,
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_user: User = Depends(get_current_user),
):
    transaction = coordinator.confirm_purchase(payload.payment_intent_id, current_user)

    return TransactionEnvelope(
        message="Payment confirmed and transaction completed",
        data=TransactionRead.model_validate(transaction),
    )


@router.post("/payment-failed", response_model=TransactionEnvelope)
def payment_failed(
    payload: PaymentFailedRequest,
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_user: User = Depends(get_current_user),
):
    transaction = coordinator.report_failure(
        payload.payment_intent_id,
        current_user,
        payload.error_message,
    )

    return TransactionEnvelope(
        message="Payment failure recorded",
        data=TransactionRead.model_validate(transaction),
    )


@router.get("", response_model=TransactionList)
def list_my_transactions(
    role: Optional[str] = Query(None, pattern="^(buyer|seller)$"),
    status: Optional[str] = Query(None, pattern="^(pending|completed|failed|refunded)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_user: User = Depends(get_current_user),
):
    result = coordinator.list_user_transactions(
        current_user, role=role, status=status, page=page, limit=limit
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


@router.get("/{transaction_id}", response_model=TransactionEnvelope)
def get_transaction(
    transaction_id: int,
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_user: User = Depends(get_current_user),
):
    transaction = coordinator.get_transaction(transaction_id, current_user)
    return TransactionEnvelope(data=TransactionRead.model_validate(transaction))


@router.post("/{transaction_id}/refund", response_model=TransactionEnvelope)
def refund_transaction(
    transaction_id: int,
    coordinator: TransactionCoordinator = Depends(get_coordinator),
    current_admin: User = Depends(require_admin),
):
    transaction = coordinator.refund_purchase(transaction_id, current_admin)

    return TransactionEnvelope(
        message="Transaction refunded",
        data=TransactionRead.model_validate(transaction),
    )
