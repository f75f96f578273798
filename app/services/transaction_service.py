import logging
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.models.book import Book
from app.models.transaction import Transaction
from app.models.user import User, UserPurchasedBook, UserTransaction
from app.services.errors import (
    AlreadyProcessed,
    GatewayError,
    InvalidState,
    NotFound,
    PersistenceError,
    SelfPurchase,
    Unauthorized,
)
from app.services.payment_gateway import (
    PaymentGateway,
    PaymentIntent,
    from_minor_units,
    to_minor_units,
)
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """
    Buys exactly one book for exactly one buyer through a payment intent.

    Nothing is written locally until the gateway reports an outcome. The book
    is claimed with a compare-and-set on ``status == "available"`` and every
    side effect of an outcome (transaction row, book status, the buyer's
    library, both parties' transaction sets) is committed as one unit.
    """

    def __init__(self, session: Session, gateway: PaymentGateway):
        self.session = session
        self.gateway = gateway

    # ---------- PURCHASE ----------

    def initiate_purchase(self, book_id: int, buyer: User) -> PaymentIntent:
        book = self.session.get(Book, book_id)
        if not book:
            raise NotFound("Book not found")

        if not book.is_available:
            raise InvalidState("Book is not available for purchase")

        if book.seller_id == buyer.id:
            raise SelfPurchase()

        return self.gateway.create_intent(
            amount=to_minor_units(book.price),
            currency=settings.currency,
            metadata={
                "bookId": str(book.id),
                "buyerId": str(buyer.id),
                "sellerId": str(book.seller_id),
            },
        )

    def confirm_purchase(self, intent_id: str, caller: User) -> Transaction:
        intent, book_id, buyer_id, seller_id = self._load_outcome(intent_id, caller)

        if not intent.succeeded:
            raise GatewayError(f"Payment not successful. Status: {intent.status}")

        context = f"intent={intent_id} book={book_id} buyer={buyer_id}"
        now = datetime.utcnow()

        try:
            claimed = self.session.execute(
                update(Book)
                .where(Book.id == book_id, Book.status == "available")
                .values(status="sold", updated_at=now)
            )
            if claimed.rowcount != 1:
                self.session.rollback()
                self._raise_if_processed(intent_id)
                # money moved on this intent but another buyer got the book
                logger.error(f"Book already sold, payment needs a refund: {context}")
                raise InvalidState("Book has already been sold")

            transaction = Transaction(
                book_id=book_id,
                buyer_id=buyer_id,
                seller_id=seller_id,
                amount=from_minor_units(intent.amount),
                currency=intent.currency,
                status="completed",
                payment_id=intent.id,
                receipt_url=intent.receipt_url,
                details={"stripePaymentIntentId": intent.id},
                created_at=now,
                updated_at=now,
            )
            self.session.add(transaction)
            self.session.flush()

            self._add_purchased_book(buyer_id, book_id)
            self._link_transaction(transaction, buyer_id, seller_id)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            self._raise_if_processed(intent_id)
            logger.exception(f"Could not record completed payment: {context}")
            raise PersistenceError() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Could not record completed payment: {context}")
            raise PersistenceError() from e

        self.session.refresh(transaction)
        logger.info(f"Payment succeeded for book {book_id} (transaction {transaction.id})")
        return transaction

    def report_failure(self, intent_id: str, caller: User, reason: Optional[str] = None) -> Transaction:
        intent, book_id, buyer_id, seller_id = self._load_outcome(intent_id, caller)

        if intent.succeeded:
            raise InvalidState("Payment succeeded; confirm it instead of reporting a failure")

        transaction = Transaction(
            book_id=book_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            amount=from_minor_units(intent.amount),
            currency=intent.currency,
            status="failed",
            payment_id=intent.id,
            details={
                "stripePaymentIntentId": intent.id,
                "errorMessage": reason or intent.last_error,
            },
        )

        context = f"intent={intent_id} book={book_id} buyer={buyer_id}"

        try:
            self.session.add(transaction)
            self.session.flush()
            self._link_transaction(transaction, buyer_id, seller_id)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            self._raise_if_processed(intent_id)
            logger.exception(f"Could not record failed payment: {context}")
            raise PersistenceError("Payment failure could not be recorded") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Could not record failed payment: {context}")
            raise PersistenceError("Payment failure could not be recorded") from e

        self.session.refresh(transaction)
        logger.info(f"Payment failed for book {book_id}: {transaction.details.get('errorMessage')}")
        return transaction

    # ---------- REFUND ----------

    def refund_purchase(self, transaction_id: int, caller: User) -> Transaction:
        if caller.role != "admin":
            raise Unauthorized("Admin privileges required")

        transaction = self.session.get(Transaction, transaction_id)
        if not transaction:
            raise NotFound("Transaction not found")

        if transaction.status != "completed":
            raise InvalidState("Transaction cannot be refunded")

        # gateway errors propagate untouched; nothing local has changed yet
        refund = self.gateway.create_refund(transaction.payment_id)

        context = (
            f"intent={transaction.payment_id} book={transaction.book_id} "
            f"buyer={transaction.buyer_id} refund={refund.id}"
        )
        now = datetime.utcnow()

        try:
            result = self.session.execute(
                update(Transaction)
                .where(Transaction.id == transaction_id, Transaction.status == "completed")
                .values(
                    status="refunded",
                    details={**(transaction.details or {}), "refundId": refund.id},
                    updated_at=now,
                )
            )
            if result.rowcount != 1:
                self.session.rollback()
                raise InvalidState("Transaction cannot be refunded")

            released = self.session.execute(
                update(Book)
                .where(Book.id == transaction.book_id, Book.status == "sold")
                .values(status="available", updated_at=now)
            )
            if released.rowcount != 1:
                self.session.rollback()
                logger.error(f"Refund issued but book was not sold: {context}")
                raise PersistenceError("Refund issued at the gateway but the book could not be released")

            self.session.execute(
                delete(UserPurchasedBook).where(
                    UserPurchasedBook.user_id == transaction.buyer_id,
                    UserPurchasedBook.book_id == transaction.book_id,
                )
            )
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception(f"Refund issued but not recorded: {context}")
            raise PersistenceError("Refund issued at the gateway but could not be saved") from e

        self.session.refresh(transaction)
        logger.info(f"Refunded transaction {transaction.id}: {context}")
        return transaction

    # ---------- READ ----------

    def get_transaction(self, transaction_id: int, caller: User) -> Transaction:
        transaction = self.session.get(Transaction, transaction_id)
        if not transaction:
            raise NotFound("Transaction not found")

        if caller.id not in (transaction.buyer_id, transaction.seller_id) and caller.role != "admin":
            raise Unauthorized("Not authorized to access this transaction")

        return transaction

    def list_user_transactions(
        self,
        user: User,
        role: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        query = select(Transaction)

        if role == "buyer":
            query = query.where(Transaction.buyer_id == user.id)
        elif role == "seller":
            query = query.where(Transaction.seller_id == user.id)
        else:
            query = query.where(
                or_(Transaction.buyer_id == user.id, Transaction.seller_id == user.id)
            )

        if status:
            query = query.where(Transaction.status == status)

        query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        return paginate(session=self.session, query=query, page=page, limit=limit)

    def list_all_transactions(
        self,
        caller: User,
        status: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        """Every transaction in the marketplace, for admins looking for something to refund."""
        if caller.role != "admin":
            raise Unauthorized("Admin privileges required")

        query = select(Transaction)

        if status:
            query = query.where(Transaction.status == status)
        if start_date:
            query = query.where(Transaction.created_at >= start_date)
        if end_date:
            query = query.where(Transaction.created_at <= end_date)

        query = query.order_by(Transaction.created_at.desc(), Transaction.id.desc())
        return paginate(session=self.session, query=query, page=page, limit=limit)

    # ---------- HELPERS ----------

    def _load_outcome(self, intent_id: str, caller: User) -> Tuple[PaymentIntent, int, int, int]:
        """Fetch the intent, check the caller is its buyer and that it is unprocessed."""
        intent = self.gateway.retrieve_intent(intent_id)

        try:
            book_id = int(intent.metadata["bookId"])
            buyer_id = int(intent.metadata["buyerId"])
            seller_id = int(intent.metadata["sellerId"])
        except (KeyError, ValueError):
            raise InvalidState("Payment intent is not tagged with a book purchase")

        if buyer_id != caller.id:
            raise Unauthorized("You are not authorized to report on this payment")

        self._raise_if_processed(intent_id)
        return intent, book_id, buyer_id, seller_id

    def _raise_if_processed(self, intent_id: str):
        existing = self.session.exec(
            select(Transaction).where(Transaction.payment_id == intent_id)
        ).first()
        if existing:
            logger.warning(f"Duplicate outcome for intent {intent_id} (transaction {existing.id})")
            raise AlreadyProcessed()

    def _add_purchased_book(self, user_id: int, book_id: int):
        if not self.session.get(UserPurchasedBook, (user_id, book_id)):
            self.session.add(UserPurchasedBook(user_id=user_id, book_id=book_id))

    def _link_transaction(self, transaction: Transaction, *user_ids: int):
        for user_id in set(user_ids):
            if not self.session.get(UserTransaction, (user_id, transaction.id)):
                self.session.add(UserTransaction(user_id=user_id, transaction_id=transaction.id))


def purchased_book_ids(session: Session, user_id: int) -> list[int]:
    return list(session.exec(
        select(UserPurchasedBook.book_id).where(UserPurchasedBook.user_id == user_id)
    ).all())


def transaction_ids(session: Session, user_id: int) -> list[int]:
    return list(session.exec(
        select(UserTransaction.transaction_id).where(UserTransaction.user_id == user_id)
    ).all())
