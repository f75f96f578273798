from jose import JWTError, jwt
from sqlalchemy.exc import IntegrityError
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlmodel import Session, select
from app.config import settings
from app.database import get_session
from app.models.blacklisted_token import BlacklistedToken
from app.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()

    expire = datetime.utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.access_token_expire_minutes)
    )

    to_encode.update({"exp": expire})

    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm
    )
    return encoded_jwt


def decode_access_token(token: str):
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
        return payload
    except JWTError:
        return None


def is_token_revoked(session: Session, token: str) -> bool:
    return session.exec(
        select(BlacklistedToken).where(BlacklistedToken.token == token)
    ).first() is not None


def revoke_token(session: Session, token: str, payload: dict) -> BlacklistedToken:
    """Blacklist a token until its own expiry."""
    existing = session.exec(
        select(BlacklistedToken).where(BlacklistedToken.token == token)
    ).first()
    if existing:
        return existing

    entry = BlacklistedToken(
        token=token,
        expires_at=datetime.utcfromtimestamp(payload["exp"]),
    )
    session.add(entry)
    try:
        session.commit()
    except IntegrityError:
        # a concurrent logout blacklisted the same token first
        session.rollback()
        return session.exec(
            select(BlacklistedToken).where(BlacklistedToken.token == token)
        ).one()

    session.refresh(entry)
    return entry


def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: Session = Depends(get_session)
) -> User:
    if is_token_revoked(session, token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been invalidated, please login again",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("user_id")

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload"
        )

    user = session.get(User, int(user_id))

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.can_login:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    return user
