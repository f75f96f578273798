class TransactionError(Exception):
    """Base class for purchase/refund failures returned to the HTTP layer."""

    status_code = 400
    default_message = "Transaction error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self) -> str:
        return type(self).__name__


class NotFound(TransactionError):
    status_code = 404
    default_message = "Resource not found"


class InvalidState(TransactionError):
    status_code = 400
    default_message = "Invalid state for this operation"


class SelfPurchase(InvalidState):
    default_message = "You cannot purchase your own book"


class Unauthorized(TransactionError):
    status_code = 403
    default_message = "Not authorized to perform this operation"


class AlreadyProcessed(TransactionError):
    status_code = 409
    default_message = "This transaction has already been processed"


class GatewayError(TransactionError):
    status_code = 502
    default_message = "Payment gateway error"


class OutcomeUnknown(GatewayError):
    """The gateway did not answer in time; the payment may or may not have moved."""

    status_code = 504
    default_message = "Payment gateway timed out; retry to learn the outcome"


class PersistenceError(TransactionError):
    status_code = 500
    default_message = "Payment recorded at the gateway but could not be saved"
