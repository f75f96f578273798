from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional
from datetime import datetime


class CreatePaymentIntentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: int = Field(..., alias="bookId")


class ConfirmPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_intent_id: str = Field(..., alias="paymentIntentId", min_length=1)


class PaymentFailedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    payment_intent_id: str = Field(..., alias="paymentIntentId", min_length=1)
    error_message: Optional[str] = Field(None, alias="errorMessage")


class PaymentIntentResponse(BaseModel):
    success: bool = True
    clientSecret: Optional[str]
    paymentIntentId: str


class TransactionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    book_id: int
    buyer_id: int
    seller_id: int
    amount: float
    currency: str
    status: str
    payment_method: str
    payment_id: str
    receipt_url: Optional[str] = None
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("details", "metadata"),
    )
    created_at: datetime
    updated_at: datetime


class TransactionEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: TransactionRead


class Pagination(BaseModel):
    page: int
    limit: int
    totalPages: int


class TransactionList(BaseModel):
    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[TransactionRead]
