from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Book(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(index=True)
    author: str = Field(index=True)
    description: str
    category: str = Field(index=True)

    #files (stored as urls)
    cover_image: str
    pdf_file: str

    #shop details
    price: float
    seller_id: int = Field(foreign_key="user.id", index=True)
    status: str = Field(default="available", index=True)  # available | sold | unavailable

    #tags
    tags: Optional[str] = None  # comma separated string

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def is_available(self) -> bool:
        return self.status == "available"
