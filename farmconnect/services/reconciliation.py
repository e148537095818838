"""Reconciliation of the two independent post-acceptance confirmations.

The requester and the farmer each report whether the deal happened and, if so,
the quantity and price they agreed on. Neither sees the other's answer first.
``reconcile`` folds both reports into one outcome:

- both transacted with identical quantity and price -> completed
- both say nothing happened                          -> not_completed
- anything else                                      -> disputed

Comparison is exact equality; there is no rounding tolerance.
"""
from dataclasses import dataclass
from typing import Optional

from farmconnect.errors import ValidationError
from farmconnect.models.contact_request import RequestStatus


@dataclass(frozen=True)
class Confirmation:
    """One party's report of how the negotiation ended."""

    transacted: bool
    quantity: Optional[float] = None
    price: Optional[float] = None
    feedback: Optional[str] = None

    def __post_init__(self):
        if self.quantity is not None and self.quantity <= 0:
            raise ValidationError("Final quantity must be positive")
        if self.price is not None and self.price < 0:
            raise ValidationError("Final price cannot be negative")
        if self.transacted and (self.quantity is None or self.price is None):
            raise ValidationError("Final quantity and price are required when the deal took place")


def reconcile(user: Confirmation, farmer: Confirmation) -> RequestStatus:
    """Return the outcome for a pair of confirmations. Symmetric in its arguments."""
    if user.transacted and farmer.transacted:
        if user.quantity == farmer.quantity and user.price == farmer.price:
            return RequestStatus.completed
        return RequestStatus.disputed
    if not user.transacted and not farmer.transacted:
        return RequestStatus.not_completed
    return RequestStatus.disputed
