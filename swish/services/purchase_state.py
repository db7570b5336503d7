"""Allowed Purchase.status transitions. Nothing else may move a purchase."""

from swish.core.exceptions import InvalidStatusTransition
from swish.db.models.purchase_model import PurchaseStatus, ACTIVE_PURCHASE_STATUSES

VALID_TRANSITIONS: dict[PurchaseStatus, frozenset[PurchaseStatus]] = {
    PurchaseStatus.PENDING: frozenset({PurchaseStatus.PAID, PurchaseStatus.CANCELLED}),
    PurchaseStatus.PAID: frozenset({PurchaseStatus.SHIPPED, PurchaseStatus.CANCELLED, PurchaseStatus.REFUNDED}),
    PurchaseStatus.SHIPPED: frozenset({PurchaseStatus.DELIVERED, PurchaseStatus.REFUNDED}),
    PurchaseStatus.DELIVERED: frozenset({PurchaseStatus.COMPLETED, PurchaseStatus.REFUNDED}),
    PurchaseStatus.COMPLETED: frozenset(),
    PurchaseStatus.CANCELLED: frozenset(),
    PurchaseStatus.REFUNDED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in VALID_TRANSITIONS.items() if not targets)

# statuses that stamp completed_at
COMPLETION_STATUSES = frozenset({PurchaseStatus.DELIVERED, PurchaseStatus.COMPLETED})

# the sale is undone; the card goes back to the seller
REVERSAL_STATUSES = frozenset({PurchaseStatus.CANCELLED, PurchaseStatus.REFUNDED})

__all__ = [
    "VALID_TRANSITIONS", "TERMINAL_STATUSES", "COMPLETION_STATUSES", "REVERSAL_STATUSES",
    "ACTIVE_PURCHASE_STATUSES", "can_transition", "ensure_transition",
]


def can_transition(current: PurchaseStatus, requested: PurchaseStatus) -> bool:
    return PurchaseStatus(requested) in VALID_TRANSITIONS.get(PurchaseStatus(current), frozenset())


def ensure_transition(current: PurchaseStatus, requested: PurchaseStatus) -> None:
    if not can_transition(current, requested):
        raise InvalidStatusTransition(PurchaseStatus(current).value, PurchaseStatus(requested).value)
