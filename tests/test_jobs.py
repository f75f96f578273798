from datetime import datetime, timedelta

from sqlmodel import select

from app.jobs.purge_blacklisted_tokens import purge_expired_tokens
from app.models.blacklisted_token import BlacklistedToken


def test_purge_drops_only_expired_tokens(session):
    now = datetime.utcnow()
    session.add(BlacklistedToken(token="old", expires_at=now - timedelta(hours=1)))
    session.add(BlacklistedToken(token="live", expires_at=now + timedelta(hours=1)))
    session.commit()

    assert purge_expired_tokens(session, now=now) == 1

    remaining = session.exec(select(BlacklistedToken.token)).all()
    assert remaining == ["live"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["database"] == "ok"
