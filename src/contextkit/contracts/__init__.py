"""Shared integration event contracts.

The only types both bounded contexts import.  Importing this package
registers every contract with the wire schema registry.
"""

from .ordering import (
    OrderCancelledIntegrationEvent,
    OrderShippedIntegrationEvent,
    OrderSubmittedIntegrationEvent,
)
from .payments import (
    PaymentCompletedIntegrationEvent,
    PaymentFailedIntegrationEvent,
)

__all__ = [
    "OrderCancelledIntegrationEvent",
    "OrderShippedIntegrationEvent",
    "OrderSubmittedIntegrationEvent",
    "PaymentCompletedIntegrationEvent",
    "PaymentFailedIntegrationEvent",
]
