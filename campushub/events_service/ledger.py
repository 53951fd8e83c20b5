"""
Registration ledger: which users attend which events.

At most one registration exists per (user_id, event_id). `register` checks
for an existing row before inserting, but two concurrent requests can both
pass that check; the registrations_user_event_key constraint then rejects
the second insert and the UniqueViolation is reported as
AlreadyRegisteredError, exactly like the pre-check.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List

import psycopg2.errors

from campushub.core.exceptions import AlreadyRegisteredError, EventNotFoundError
from campushub.database.db_connection import get_db

EVENT_FK = "registrations_event_id_fkey"


def _iso(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def serialize_registration(row: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": row["id"],
        "userId": row["user_id"],
        "eventId": row["event_id"],
        "registeredAt": _iso(row["registered_at"]),
    }


def register(user_id: int, event_id: int) -> Dict[str, Any]:
    """
    Register a user for an event.

    Args:
        user_id: The attending student's id.
        event_id: The event to attend.

    Returns:
        dict: The new registration.

    Raises:
        EventNotFoundError: No event with this id (nothing is inserted).
        AlreadyRegisteredError: The pair already exists, whether found by
            the pre-check or by the unique constraint.
    """
    insert_sql = """
        INSERT INTO registrations (user_id, event_id)
        VALUES (%s, %s)
        RETURNING id, user_id, event_id, registered_at;
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT id FROM events WHERE id = %s;", (event_id,))
            if cur.fetchone() is None:
                raise EventNotFoundError(event_id)

            cur.execute(
                "SELECT id FROM registrations WHERE user_id = %s AND event_id = %s;",
                (user_id, event_id),
            )
            if cur.fetchone() is not None:
                raise AlreadyRegisteredError(user_id, event_id)

            try:
                cur.execute(insert_sql, (user_id, event_id))
            except psycopg2.errors.UniqueViolation:
                logging.info(f"[Ledger] Lost registration race for user {user_id}, event {event_id}")
                raise AlreadyRegisteredError(user_id, event_id)
            except psycopg2.errors.ForeignKeyViolation as e:
                # The event was deleted between the existence check and the insert
                if getattr(e.diag, "constraint_name", None) == EVENT_FK:
                    raise EventNotFoundError(event_id)
                raise
            row = cur.fetchone()

    logging.info(f"[Ledger] User {user_id} registered for event {event_id}")
    return serialize_registration(row)


def list_for_event(event_id: int) -> List[Dict[str, Any]]:
    """
    Registrations for one event with an embedded user summary.

    Returns:
        list: [{id, userId, eventId, registeredAt, user: {id, username, email}}]
    """
    sql = """
        SELECT r.id, r.user_id, r.event_id, r.registered_at,
               u.username, u.email
        FROM registrations r
        JOIN users u ON r.user_id = u.id
        WHERE r.event_id = %s
        ORDER BY r.registered_at, r.id;
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (event_id,))
            rows = cur.fetchall()

    registrations = []
    for row in rows:
        item = serialize_registration(row)
        item["user"] = {"id": row["user_id"], "username": row["username"], "email": row["email"]}
        registrations.append(item)
    return registrations

