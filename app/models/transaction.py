from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field
from typing import Optional, Dict, Any
from datetime import datetime


class Transaction(SQLModel, table=True):
    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)

    book_id: int = Field(foreign_key="book.id", index=True)
    buyer_id: int = Field(foreign_key="user.id", index=True)
    seller_id: int = Field(foreign_key="user.id", index=True)

    amount: float = Field(ge=0)
    currency: str = Field(default="usd")
    status: str = Field(default="pending", index=True)  # pending | completed | failed | refunded
    payment_method: str = Field(default="stripe")

    # gateway intent id; one transaction per real-world payment attempt
    payment_id: str = Field(unique=True, index=True)
    receipt_url: Optional[str] = None

    # "metadata" is reserved on SQLModel classes
    details: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
