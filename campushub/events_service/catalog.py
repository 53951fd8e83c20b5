"""
Event catalog: create, read, update and delete events.

Every event is owned by one organizer (`organizer_id` -> admins.id).
Deleting an event removes its registrations first, in the same transaction,
so no registration ever points at a missing event.
"""

import logging
from collections import defaultdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from campushub.database.db_connection import get_db

_EVENT_COLUMNS = """
    id, title, description, date, time, location,
    image_url, video_url, organizer_id, created_at, updated_at
"""

_JSON_KEYS = {
    "image_url": "imageUrl",
    "video_url": "videoUrl",
    "organizer_id": "organizerId",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def serialize_event(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert an events row into its JSON shape.

    Returns:
        dict: camelCase keys; `date` and the timestamps as ISO strings.
    """
    out = {}
    for key, value in dict(row).items():
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[_JSON_KEYS.get(key, key)] = value
    return out


def _field_values(fields: Dict[str, Any]) -> tuple:
    return (
        fields["title"],
        fields.get("description"),
        fields["date"],
        fields["time"],
        fields["location"],
        fields.get("imageUrl"),
        fields.get("videoUrl"),
    )


def create_event(organizer_id: int, fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Insert a new event owned by `organizer_id`.

    Args:
        organizer_id: The creating admin's id.
        fields: Validated EventPayload data (title, description, date, time,
            location, imageUrl, videoUrl).

    Returns:
        dict: The stored event, serialized.
    """
    sql = f"""
        INSERT INTO events (
            title, description, date, time, location,
            image_url, video_url, organizer_id
        ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        RETURNING {_EVENT_COLUMNS};
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, _field_values(fields) + (organizer_id,))
            row = cur.fetchone()

    event = serialize_event(row)
    logging.info(f"[Events] Organizer {organizer_id} created event {event['id']}")
    return event


def update_event(event_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Replace an event's editable fields.

    Returns:
        dict: The updated event, or None if no event has this id.
    """
    sql = f"""
        UPDATE events SET
            title = %s, description = %s, date = %s, time = %s, location = %s,
            image_url = %s, video_url = %s, updated_at = CURRENT_TIMESTAMP
        WHERE id = %s
        RETURNING {_EVENT_COLUMNS};
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, _field_values(fields) + (event_id,))
            row = cur.fetchone()

    return serialize_event(row) if row else None


def delete_event(event_id: int) -> bool:
    """
    Delete an event together with its registrations.

    Registrations go first so the foreign key from registrations to events
    is never violated. Both statements share one transaction.

    Returns:
        bool: False if the event did not exist.
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM registrations WHERE event_id = %s;", (event_id,))
            removed = cur.rowcount
            cur.execute("DELETE FROM events WHERE id = %s;", (event_id,))
            deleted = cur.rowcount > 0

    if deleted:
        logging.info(f"[Events] Deleted event {event_id} and {removed} registration(s)")
    return deleted


def get_event(event_id: int) -> Optional[Dict[str, Any]]:
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM events WHERE id = %s;", (event_id,))
            row = cur.fetchone()
    return serialize_event(row) if row else None


def list_events() -> List[Dict[str, Any]]:
    """All events, without attendee data."""
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM events ORDER BY id;")
            return [serialize_event(row) for row in cur.fetchall()]


def list_events_with_attendees() -> List[Dict[str, Any]]:
    """
    All events, each with an `attendees` list of {id, username, email}.

    This is the organizer's read model; the public `list_events` omits it.
    """
    attendees_sql = """
        SELECT r.event_id, u.id, u.username, u.email
        FROM registrations r
        JOIN users u ON r.user_id = u.id
        ORDER BY r.registered_at, r.id;
    """
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(f"SELECT {_EVENT_COLUMNS} FROM events ORDER BY id;")
            events = [serialize_event(row) for row in cur.fetchall()]
            cur.execute(attendees_sql)
            attendee_rows = cur.fetchall()

    by_event = defaultdict(list)
    for row in attendee_rows:
        by_event[row["event_id"]].append(
            {"id": row["id"], "username": row["username"], "email": row["email"]}
        )

    for event in events:
        event["attendees"] = by_event.get(event["id"], [])
    return events
