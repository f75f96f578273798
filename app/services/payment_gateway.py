import logging
from functools import lru_cache
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Optional

import stripe
from pydantic import BaseModel, Field

from app.config import settings
from app.services.errors import GatewayError, NotFound, OutcomeUnknown

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"


def to_minor_units(amount) -> int:
    """9.99 -> 999. Rounds half up on the second decimal."""
    cents = Decimal(str(amount)) * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> float:
    return float(Decimal(amount) / 100)


class PaymentIntent(BaseModel):
    id: str
    status: Optional[str] = None
    amount: int = 0
    currency: str = "usd"
    client_secret: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)
    last_error: Optional[str] = None
    receipt_url: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == SUCCEEDED


class Refund(BaseModel):
    id: str
    status: Optional[str] = None


class PaymentGateway:
    """Hosted payment processor as seen by the transaction coordinator."""

    def create_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        raise NotImplementedError

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        raise NotImplementedError

    def create_refund(self, payment_intent_id: str) -> Refund:
        raise NotImplementedError


class StripePaymentGateway(PaymentGateway):
    def __init__(self, api_key: str, timeout: float, max_retries: int):
        self.api_key = api_key
        stripe.max_network_retries = max_retries
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    def create_intent(self, amount: int, currency: str, metadata: Dict[str, str]) -> PaymentIntent:
        logger.info(f"Creating payment intent: {amount} {currency} {metadata}")
        intent = self._call(
            stripe.PaymentIntent.create,
            amount=amount,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={"enabled": True},
        )
        return self._to_intent(intent)

    def retrieve_intent(self, intent_id: str) -> PaymentIntent:
        intent = self._call(
            stripe.PaymentIntent.retrieve,
            intent_id,
            expand=["latest_charge"],
        )
        return self._to_intent(intent)

    def create_refund(self, payment_intent_id: str) -> Refund:
        logger.info(f"Processing refund for payment intent {payment_intent_id}")
        refund = self._call(
            stripe.Refund.create,
            payment_intent=payment_intent_id,
            # a retried refund after a timeout must not refund twice
            idempotency_key=f"refund-{payment_intent_id}",
        )
        return Refund(id=refund.id, status=getattr(refund, "status", None))

    def _call(self, method, *args, **kwargs) -> Any:
        try:
            return method(*args, api_key=self.api_key, **kwargs)
        except stripe.APIConnectionError as e:
            logger.warning(f"Stripe unreachable: {e}")
            raise OutcomeUnknown() from e
        except stripe.InvalidRequestError as e:
            if getattr(e, "code", None) == "resource_missing":
                raise NotFound("Payment intent not found") from e
            raise GatewayError(e.user_message or str(e)) from e
        except stripe.StripeError as e:
            logger.error(f"Stripe error: {e}")
            raise GatewayError(e.user_message or str(e)) from e

    @staticmethod
    def _to_intent(intent) -> PaymentIntent:
        last_error = getattr(intent, "last_payment_error", None)
        charge = getattr(intent, "latest_charge", None)
        receipt_url = getattr(charge, "receipt_url", None) if charge and not isinstance(charge, str) else None

        return PaymentIntent(
            id=intent.id,
            status=intent.status,
            amount=intent.amount,
            currency=intent.currency,
            client_secret=getattr(intent, "client_secret", None),
            metadata=dict(intent.metadata or {}),
            last_error=getattr(last_error, "message", None) if last_error else None,
            receipt_url=receipt_url,
        )


@lru_cache
def get_payment_gateway() -> PaymentGateway:
    return StripePaymentGateway(
        api_key=settings.stripe_secret_key,
        timeout=settings.payment_gateway_timeout_seconds,
        max_retries=settings.payment_gateway_max_retries,
    )
