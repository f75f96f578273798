from fastapi import Depends
from app.models.user import User
from app.services.errors import Unauthorized
from app.utils.token import get_current_user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Admin-only routes answer non-admins with the same envelope the coordinator uses."""
    if current_user.role != "admin":
        raise Unauthorized("Admin privileges required")
    return current_user
