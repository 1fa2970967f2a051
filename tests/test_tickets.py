import pytest

import notifications
import tickets
from errors import NotFoundError
from schemas import TicketCreate


def _open(user_id="user-1", **overrides):
    payload = TicketCreate(**{
        "user_name": "Ana",
        "user_email": "ana@example.com",
        "subject": "Cannot log in",
        "description": "The login button does nothing.",
        "category": "technical",
        **overrides,
    })
    return tickets.create_ticket(payload, user_id)


def test_create_ticket_defaults():
    ticket = _open()
    assert ticket["status"] == "open"
    assert ticket["priority"] == "medium"
    assert ticket["responses"] == []
    assert ticket["resolved_at"] is None
    assert ticket["user_id"] == "user-1"


def test_list_filters():
    mine = _open()
    _open(user_id="user-2", priority="urgent")

    assert [t["id"] for t in tickets.get_tickets_for_user("user-1")] == [mine["id"]]
    assert len(tickets.list_tickets()) == 2
    assert len(tickets.list_tickets(limit=1)) == 1
    assert len(tickets.get_tickets_by_status("open")) == 2
    assert tickets.get_tickets_by_status("closed") == []


def test_resolving_stamps_resolved_at():
    ticket = _open()
    progressed = tickets.update_ticket(ticket["id"], {"status": "in-progress", "assigned_to": "admin-1"})
    assert progressed["resolved_at"] is None
    assert progressed["assigned_to"] == "admin-1"

    resolved = tickets.update_ticket(ticket["id"], {"status": "resolved", "priority": None})
    assert resolved["resolved_at"] is not None
    assert resolved["priority"] == "medium"


def test_update_missing_ticket():
    with pytest.raises(NotFoundError):
        tickets.update_ticket("64b0000000000000000000ff", {"status": "closed"})


def test_admin_response_notifies_owner():
    ticket = _open()
    updated = tickets.add_response(ticket["id"], "admin-1", "Support", "Try clearing cookies", is_admin=True)

    assert len(updated["responses"]) == 1
    response = updated["responses"][0]
    assert response["author_type"] == "admin"
    assert response["message"] == "Try clearing cookies"
    assert response["id"]

    received = notifications.get_user_notifications("user-1")
    assert len(received) == 1
    assert received[0]["type"] == "system"
    assert "Cannot log in" in received[0]["title"]


def test_user_response_does_not_notify():
    ticket = _open()
    updated = tickets.add_response(ticket["id"], "user-1", "Ana", "Still broken")
    assert updated["responses"][0]["author_type"] == "user"
    assert notifications.get_user_notifications("user-1") == []


def test_response_to_missing_ticket():
    with pytest.raises(NotFoundError):
        tickets.add_response("64b0000000000000000000ff", "user-1", "Ana", "hello")


def test_delete_ticket():
    ticket = _open()
    assert tickets.delete_ticket(ticket["id"]) is True
    assert tickets.delete_ticket(ticket["id"]) is False
