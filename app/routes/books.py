from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy import update
from sqlmodel import Session, select
from app.database import get_session
from app.models.book import Book
from app.models.user import User
from app.models.transaction import Transaction
from app.schemas.book_schemas import BookCreate, BookList, BookResponse, BookUpdate
from app.utils.pagination import paginate
from app.utils.token import get_current_user

router = APIRouter()


class BookStatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(available|unavailable)$")


@router.post("", response_model=BookResponse, status_code=201)
def create_book(
    payload: BookCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = Book(**payload.model_dump(), seller_id=current_user.id)

    session.add(book)
    session.commit()
    session.refresh(book)
    return book


@router.get("", response_model=BookList, summary="Browse and search the catalog")
def list_books(
    q: Optional[str] = Query(None, description="Search term for title or author"),
    category: Optional[str] = None,
    status: Optional[str] = Query("available", pattern="^(available|sold|unavailable)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    session: Session = Depends(get_session),
):
    query = select(Book)

    if q:
        query = query.where(
            Book.title.ilike(f"%{q}%") |
            Book.author.ilike(f"%{q}%")
        )

    if category:
        query = query.where(Book.category == category)

    if status:
        query = query.where(Book.status == status)

    query = query.order_by(Book.created_at.desc(), Book.id.desc())
    result = paginate(session=session, query=query, page=page, limit=limit)

    return BookList(
        total=result["total"],
        page=result["page"],
        per_page=result["limit"],
        total_pages=result["total_pages"],
        books=[BookResponse.model_validate(b) for b in result["results"]],
    )


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")
    return book


@router.patch("/{book_id}/status", response_model=BookResponse)
def update_book_status(
    book_id: int,
    payload: BookStatusUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Seller withdraws or relists a book. Sold books only change through transactions."""
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    if book.seller_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "You can only change your own listings")

    result = session.execute(
        update(Book)
        .where(Book.id == book_id, Book.status != "sold")
        .values(status=payload.status, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        raise HTTPException(400, "Sold books cannot change status")

    session.commit()
    session.refresh(book)
    return book


@router.put("/{book_id}", response_model=BookResponse)
def update_book(
    book_id: int,
    payload: BookUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Edit a listing. Price changes only affect payment intents opened afterwards."""
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    if book.seller_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "Not authorized to update this book")

    changes = payload.model_dump(exclude_unset=True)

    result = session.execute(
        update(Book)
        .where(Book.id == book_id, Book.status != "sold")
        .values(**changes, updated_at=datetime.utcnow())
    )
    if result.rowcount != 1:
        session.rollback()
        raise HTTPException(400, "Sold books cannot be edited")

    session.commit()
    session.refresh(book)
    return book


@router.delete("/{book_id}")
def delete_book(
    book_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    book = session.get(Book, book_id)
    if not book:
        raise HTTPException(404, "Book not found")

    if book.seller_id != current_user.id and current_user.role != "admin":
        raise HTTPException(403, "Not authorized to delete this book")

    # transactions keep pointing at the book after a sale or a refund
    has_transactions = session.exec(
        select(Transaction.id).where(Transaction.book_id == book_id)
    ).first()
    if book.status == "sold" or has_transactions is not None:
        raise HTTPException(400, "Books with transactions cannot be deleted")

    session.delete(book)
    session.commit()
    return {"message": "Book deleted"}
