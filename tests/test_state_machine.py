"""Unit tests for the transition table and the reconciliation function."""
import pytest

from farmconnect.errors import ConflictError, ValidationError
from farmconnect.models.contact_request import RequestStatus
from farmconnect.services.reconciliation import Confirmation, reconcile
from farmconnect.services.state_machine import (
    TRANSITIONS,
    Transition,
    can_transition,
    ensure_transition,
    sources_for,
)

TERMINAL = frozenset(RequestStatus) - {RequestStatus.pending, RequestStatus.accepted}


class TestTransitionTable:

    def test_forward_edges(self):
        assert can_transition(RequestStatus.pending, Transition.accept, RequestStatus.accepted)
        assert can_transition(RequestStatus.pending, Transition.reject, RequestStatus.rejected)
        assert can_transition(RequestStatus.accepted, Transition.expire, RequestStatus.expired)
        for outcome in (RequestStatus.completed, RequestStatus.not_completed, RequestStatus.disputed):
            assert can_transition(RequestStatus.accepted, Transition.reconcile, outcome)

    def test_admin_resolution_only_from_disputed(self):
        assert can_transition(RequestStatus.disputed, Transition.resolve, RequestStatus.completed)
        assert can_transition(RequestStatus.disputed, Transition.resolve, RequestStatus.not_completed)
        assert not can_transition(RequestStatus.disputed, Transition.resolve, RequestStatus.expired)
        assert not can_transition(RequestStatus.completed, Transition.resolve, RequestStatus.not_completed)

    def test_no_edge_leaves_terminal_except_dispute(self):
        for (source, transition), _ in TRANSITIONS.items():
            if source in TERMINAL:
                assert source == RequestStatus.disputed and transition == Transition.resolve

    def test_no_edge_goes_back_to_pending(self):
        for targets in TRANSITIONS.values():
            assert RequestStatus.pending not in targets

    def test_ensure_transition_raises_conflict(self):
        with pytest.raises(ConflictError, match="already processed"):
            ensure_transition(RequestStatus.accepted, Transition.accept, RequestStatus.accepted)

    def test_sources_for(self):
        assert sources_for(Transition.expire, RequestStatus.expired) == {RequestStatus.accepted}
        assert sources_for(Transition.resolve, RequestStatus.completed) == {RequestStatus.disputed}
        assert sources_for(Transition.expire, RequestStatus.completed) == frozenset()


class TestReconcile:

    def test_matching_deal_completes(self):
        user = Confirmation(transacted=True, quantity=10, price=100)
        farmer = Confirmation(transacted=True, quantity=10, price=100)
        assert reconcile(user, farmer) == RequestStatus.completed

    def test_no_deal_on_both_sides(self):
        assert reconcile(Confirmation(False), Confirmation(False)) == RequestStatus.not_completed

    @pytest.mark.parametrize("user,farmer", [
        (Confirmation(True, 10, 100), Confirmation(True, 8, 100)),
        (Confirmation(True, 10, 100), Confirmation(True, 10, 99.99)),
        (Confirmation(True, 10, 100), Confirmation(False)),
        (Confirmation(False), Confirmation(True, 10, 100)),
    ])
    def test_disputes(self, user, farmer):
        assert reconcile(user, farmer) == RequestStatus.disputed
        assert reconcile(farmer, user) == RequestStatus.disputed

    def test_exact_equality_no_tolerance(self):
        user = Confirmation(True, 10, 100.0)
        farmer = Confirmation(True, 10, 100.0000001)
        assert reconcile(user, farmer) == RequestStatus.disputed

    def test_feedback_does_not_affect_outcome(self):
        user = Confirmation(True, 5, 20, feedback="fresh")
        farmer = Confirmation(True, 5, 20, feedback="paid in cash")
        assert reconcile(user, farmer) == RequestStatus.completed

    def test_confirmation_validation(self):
        with pytest.raises(ValidationError):
            Confirmation(transacted=True)
        with pytest.raises(ValidationError):
            Confirmation(transacted=True, quantity=0, price=10)
        with pytest.raises(ValidationError):
            Confirmation(transacted=False, price=-1)
