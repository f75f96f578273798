import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URI", "sqlite://")
os.environ.setdefault("ENV", "test")

from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import get_session
from app.main import app
from app.models.book import Book
from app.models.user import User
from app.services.errors import NotFound
from app.services.payment_gateway import (
    PaymentGateway,
    PaymentIntent,
    Refund,
    get_payment_gateway,
)
from app.utils.hash import hash_password
from app.utils.token import create_access_token


class FakeGateway(PaymentGateway):
    """In-memory stand-in for Stripe that records every call."""

    def __init__(self):
        self.intents = {}
        self.calls = []
        self.retrieve_error = None
        self.refund_error = None

    def create_intent(self, amount, currency, metadata):
        intent_id = f"pi_{uuid4().hex[:16]}"
        intent = PaymentIntent(
            id=intent_id,
            status="requires_payment_method",
            amount=amount,
            currency=currency,
            client_secret=f"{intent_id}_secret_test",
            metadata=metadata,
        )
        self.intents[intent_id] = intent
        self.calls.append(("create_intent", intent_id))
        return intent.model_copy()

    def retrieve_intent(self, intent_id):
        self.calls.append(("retrieve_intent", intent_id))
        if self.retrieve_error:
            raise self.retrieve_error
        if intent_id not in self.intents:
            raise NotFound("Payment intent not found")
        return self.intents[intent_id].model_copy()

    def create_refund(self, payment_intent_id):
        self.calls.append(("create_refund", payment_intent_id))
        if self.refund_error:
            raise self.refund_error
        return Refund(id=f"re_{uuid4().hex[:16]}", status="succeeded")

    # ---------- test helpers ----------

    def succeed(self, intent_id):
        intent = self.intents[intent_id]
        intent.status = "succeeded"
        intent.receipt_url = f"https://pay.stripe.com/receipts/{intent_id}"

    def decline(self, intent_id, message="Your card was declined."):
        intent = self.intents[intent_id]
        intent.status = "requires_payment_method"
        intent.last_error = message

    def count(self, name):
        return len([c for c in self.calls if c[0] == name])


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(session, gateway):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


def make_user(session, email, role="user", first_name="Test"):
    user = User(
        first_name=first_name,
        last_name="User",
        email=email,
        password=hash_password("secret123"),
        role=role,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def auth_headers(user):
    token = create_access_token({"user_id": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seller(session):
    return make_user(session, "seller@example.com", first_name="Sally")


@pytest.fixture
def buyer(session):
    return make_user(session, "buyer@example.com", first_name="Bob")


@pytest.fixture
def other_buyer(session):
    return make_user(session, "carol@example.com", first_name="Carol")


@pytest.fixture
def admin(session):
    return make_user(session, "admin@example.com", role="admin", first_name="Ada")


@pytest.fixture
def book(session, seller):
    book = Book(
        title="Dune",
        author="Frank Herbert",
        description="Desert planet politics",
        category="fiction",
        cover_image="https://cdn.example.com/covers/dune.jpg",
        pdf_file="https://cdn.example.com/pdfs/dune.pdf",
        price=9.99,
        seller_id=seller.id,
    )
    session.add(book)
    session.commit()
    session.refresh(book)
    return book
