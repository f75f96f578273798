import logging
from datetime import datetime
from sqlalchemy import delete
from sqlmodel import Session
from app.database import engine
from app.models.blacklisted_token import BlacklistedToken

logger = logging.getLogger(__name__)


def purge_expired_tokens(session: Session, now: datetime | None = None) -> int:
    """Drop revoked tokens that have expired on their own."""
    cutoff = now or datetime.utcnow()

    result = session.execute(
        delete(BlacklistedToken).where(BlacklistedToken.expires_at < cutoff)
    )
    session.commit()

    logger.info(f"Purged {result.rowcount} expired blacklisted tokens")
    return result.rowcount


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    with Session(engine) as session:
        purge_expired_tokens(session)
