from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str = ""
    email: str = Field(index=True, unique=True)
    password: str
    role: str = Field(default="user")  # user | admin
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Set-valued user fields. The composite primary keys make every insert an
# add-to-set.

class UserPurchasedBook(SQLModel, table=True):
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    book_id: int = Field(foreign_key="book.id", primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class UserTransaction(SQLModel, table=True):
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    transaction_id: int = Field(foreign_key="transactions.id", primary_key=True)
