from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    tags: Optional[str] = None

    cover_image: str
    pdf_file: str

    price: float = Field(..., gt=0)


class BookResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    author: str
    description: str
    category: str
    tags: Optional[str]

    cover_image: str
    pdf_file: str

    price: float
    seller_id: int
    status: str

    created_at: datetime
    updated_at: datetime


class BookList(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int
    books: List[BookResponse]


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[str] = Field(None, min_length=1)
    tags: Optional[str] = None

    cover_image: Optional[str] = None
    pdf_file: Optional[str] = None

    price: Optional[float] = Field(None, gt=0)
