"""Contact request transition table.

``status`` only moves forward. Terminal states are left solely through the
admin dispute resolution path.
"""
import enum

from farmconnect.errors import ConflictError
from farmconnect.models.contact_request import RequestStatus


class Transition(str, enum.Enum):
    accept = "accept"
    reject = "reject"
    confirm = "confirm"
    reconcile = "reconcile"
    expire = "expire"
    resolve = "resolve"


TRANSITIONS: dict[tuple[RequestStatus, Transition], frozenset[RequestStatus]] = {
    (RequestStatus.pending, Transition.accept): frozenset({RequestStatus.accepted}),
    (RequestStatus.pending, Transition.reject): frozenset({RequestStatus.rejected}),
    # A single confirmation leaves the request accepted
    (RequestStatus.accepted, Transition.confirm): frozenset({RequestStatus.accepted}),
    (RequestStatus.accepted, Transition.reconcile): frozenset({
        RequestStatus.completed,
        RequestStatus.not_completed,
        RequestStatus.disputed,
    }),
    (RequestStatus.accepted, Transition.expire): frozenset({RequestStatus.expired}),
    (RequestStatus.disputed, Transition.resolve): frozenset({
        RequestStatus.completed,
        RequestStatus.not_completed,
    }),
}

_CONFLICT_MESSAGES = {
    Transition.accept: "Request already processed",
    Transition.reject: "Request already processed",
    Transition.confirm: "Request is not awaiting confirmation",
    Transition.reconcile: "Request is not awaiting confirmation",
    Transition.expire: "Only accepted requests can expire",
    Transition.resolve: "Not a disputed request",
}


def can_transition(current: RequestStatus, transition: Transition, target: RequestStatus) -> bool:
    return target in TRANSITIONS.get((current, transition), frozenset())


def ensure_transition(current: RequestStatus, transition: Transition, target: RequestStatus) -> None:
    """Raise ConflictError unless ``current --transition--> target`` is in the table."""
    if not can_transition(current, transition, target):
        raise ConflictError(
            f"{_CONFLICT_MESSAGES[transition]} (status is {RequestStatus(current).value})"
        )


def sources_for(transition: Transition, target: RequestStatus) -> frozenset[RequestStatus]:
    """Every status from which ``transition`` can lead to ``target``."""
    return frozenset(
        source
        for (source, kind), targets in TRANSITIONS.items()
        if kind == transition and target in targets
    )
