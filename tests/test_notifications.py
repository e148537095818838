"""Tests for lifecycle notifications and best-effort delivery."""
from farmconnect.main import app
from farmconnect.models.contact_request import ContactRequest
from farmconnect.models.notification import Notification
from farmconnect.services.notifications import NotificationDispatcher, get_notifier
from tests.conftest import auth, create_test_user, create_test_product, create_contact_request


class _BrokenDispatcher(NotificationDispatcher):
    def dispatch(self, db, event, request, recipients):
        raise ConnectionError("mail server down")


class _HalfWrittenDispatcher(NotificationDispatcher):
    def dispatch(self, db, event, request, recipients):
        for user_id in recipients:
            db.add(Notification(user_id=user_id, request_id=request.request_id, event=event, message="partial"))
        db.flush()
        raise ConnectionError("push gateway down")


def _events(client, user):
    return [n["event"] for n in client.get("/api/notifications/", headers=auth(user)).json()]


class TestNotifications:

    def test_lifecycle_events_reach_the_right_party(self, client):
        farmer = create_test_user(client, name="Farmer", role="farmer")
        buyer = create_test_user(client, name="Buyer")
        product = create_test_product(client, farmer)

        cr = create_contact_request(client, buyer, product).json()
        assert _events(client, farmer) == ["created"]
        assert _events(client, buyer) == []

        client.put(f"/api/contact-requests/{cr['request_id']}/accept", headers=auth(farmer))
        assert _events(client, buyer) == ["accepted"]

        client.post(
            f"/api/contact-requests/{cr['request_id']}/user-confirm",
            json={"did_buy": False},
            headers=auth(buyer),
        )
        assert "confirmed" in _events(client, farmer)

        client.post(
            f"/api/contact-requests/{cr['request_id']}/farmer-confirm",
            json={"did_sell": False},
            headers=auth(farmer),
        )
        assert "resolved" in _events(client, farmer)
        assert "resolved" in _events(client, buyer)

    def test_mark_read(self, client):
        farmer = create_test_user(client, name="Farmer", role="farmer")
        buyer = create_test_user(client, name="Buyer")
        product = create_test_product(client, farmer)
        create_contact_request(client, buyer, product)

        notification = client.get("/api/notifications/", headers=auth(farmer)).json()[0]
        resp = client.post(f"/api/notifications/{notification['notification_id']}/read", headers=auth(farmer))
        assert resp.status_code == 200
        assert resp.json()["read"] is True

        unread = client.get("/api/notifications/?unread_only=true", headers=auth(farmer)).json()
        assert unread == []

        other = client.post(f"/api/notifications/{notification['notification_id']}/read", headers=auth(buyer))
        assert other.status_code == 404

    def test_delivery_failure_does_not_undo_transition(self, client, db):
        farmer = create_test_user(client, name="Farmer", role="farmer")
        buyer = create_test_user(client, name="Buyer")
        product = create_test_product(client, farmer)

        app.dependency_overrides[get_notifier] = lambda: _BrokenDispatcher()
        resp = create_contact_request(client, buyer, product)
        assert resp.status_code == 201
        cr = resp.json()

        resp = client.put(f"/api/contact-requests/{cr['request_id']}/accept", headers=auth(farmer))
        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"

        stored = db.query(ContactRequest).filter(ContactRequest.request_id == cr["request_id"]).one()
        assert stored.status.value == "accepted"

    def test_failed_dispatch_leaves_no_partial_rows(self, client, db):
        farmer = create_test_user(client, name="Farmer", role="farmer")
        buyer = create_test_user(client, name="Buyer")
        product = create_test_product(client, farmer)

        app.dependency_overrides[get_notifier] = lambda: _HalfWrittenDispatcher()
        cr = create_contact_request(client, buyer, product).json()
        resp = client.put(f"/api/contact-requests/{cr['request_id']}/accept", headers=auth(farmer))
        assert resp.status_code == 200

        assert db.query(Notification).count() == 0
        stored = db.query(ContactRequest).filter(ContactRequest.request_id == cr["request_id"]).one()
        assert stored.status.value == "accepted"
        assert len(client.get(f"/api/contact-requests/{cr['request_id']}/activity", headers=auth(farmer)).json()) == 2
