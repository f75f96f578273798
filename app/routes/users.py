from fastapi import APIRouter, Depends
from sqlmodel import Session
from app.database import get_session
from app.models.user import User
from app.schemas.user_schemas import UserProfile
from app.services.transaction_service import purchased_book_ids, transaction_ids
from app.utils.token import get_current_user

router = APIRouter()


# -------- USER PROFILE --------

@router.get("/me", response_model=UserProfile)
def get_my_profile(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    return UserProfile(
        id=current_user.id,
        email=current_user.email,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        role=current_user.role,
        created_at=current_user.created_at,
        purchased_books=purchased_book_ids(session, current_user.id),
        transactions=transaction_ids(session, current_user.id),
    )
