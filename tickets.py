from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

import database
import notifications
from database import SUPPORT_TICKETS
from errors import NotFoundError
from logger import get_logger
from schemas import Notification, SupportTicket, TicketCreate, TicketResponse

logger = get_logger("tickets")


def create_ticket(payload: TicketCreate, user_id: str) -> Dict[str, Any]:
    ticket = SupportTicket(user_id=user_id, **payload.model_dump())
    saved = database.create_document(SUPPORT_TICKETS, ticket)
    logger.info("Ticket %s opened by %s (%s/%s)", saved["id"], user_id, ticket.category, ticket.priority)
    return saved


def get_ticket(ticket_id: str) -> Optional[Dict[str, Any]]:
    return database.get_document(SUPPORT_TICKETS, ticket_id)


def list_tickets(limit: int = 50) -> List[Dict[str, Any]]:
    return database.get_documents(SUPPORT_TICKETS, limit=limit, sort=[("created_at", DESCENDING)])


def get_tickets_for_user(user_id: str) -> List[Dict[str, Any]]:
    return database.get_documents(SUPPORT_TICKETS, {"user_id": user_id}, sort=[("created_at", DESCENDING)])


def get_tickets_by_status(status: str) -> List[Dict[str, Any]]:
    return database.get_documents(SUPPORT_TICKETS, {"status": status}, sort=[("created_at", DESCENDING)])


def update_ticket(ticket_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    updates = {k: v for k, v in updates.items() if v is not None}
    if updates.get("status") == "resolved":
        updates["resolved_at"] = database.utcnow()
    updated = database.update_document(SUPPORT_TICKETS, ticket_id, updates)
    if updated is None:
        raise NotFoundError("Ticket not found")
    if "status" in updates:
        logger.info("Ticket %s moved to %s", ticket_id, updates["status"])
    return updated


def add_response(
    ticket_id: str,
    author_id: str,
    author_name: str,
    message: str,
    is_admin: bool = False,
) -> Dict[str, Any]:
    now = database.utcnow()
    response = TicketResponse(
        id=str(ObjectId()),
        author_id=author_id,
        author_name=author_name,
        author_type="admin" if is_admin else "user",
        message=message,
        created_at=now,
    )
    result = database.db[SUPPORT_TICKETS].find_one_and_update(
        {"_id": database.to_object_id(ticket_id)},
        {"$push": {"responses": response.model_dump()}, "$set": {"updated_at": now}},
        return_document=ReturnDocument.AFTER,
    )
    if result is None:
        raise NotFoundError("Ticket not found")
    ticket = database.serialize_doc(result)

    if is_admin and ticket["user_id"] != author_id:
        notifications.create_notification(Notification(
            user_id=ticket["user_id"],
            type="system",
            title=f"New response on your ticket: {ticket['subject']}",
            message=message[:200],
            admin_id=author_id,
            admin_name=author_name,
        ))
    return ticket


def delete_ticket(ticket_id: str) -> bool:
    deleted = database.delete_document(SUPPORT_TICKETS, ticket_id)
    if deleted:
        logger.info("Ticket %s deleted", ticket_id)
    return deleted
