from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class BlacklistedToken(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(unique=True, index=True)

    # matches the token's exp claim; the purge job drops rows after this
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
