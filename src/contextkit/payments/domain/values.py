from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from contextkit.domain.entity import EntityId


@dataclass(frozen=True, eq=False)
class PaymentId(EntityId):
    pass


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
