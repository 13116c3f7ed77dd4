from .events import PaymentCancelled, PaymentCompleted, PaymentCreated, PaymentFailed
from .model import Payment
from .values import PaymentId, PaymentStatus

__all__ = [
    "Payment",
    "PaymentCancelled",
    "PaymentCompleted",
    "PaymentCreated",
    "PaymentFailed",
    "PaymentId",
    "PaymentStatus",
]
