"""
Organizer route handlers.

Provides routes for:
- Admin signup, signin and profile
- Event creation, editing and deletion
- Event listing with attendees
- Per-event registration export

Everything except signup, signin and profile goes through
`verify_admin_from_request`, which requires both a valid token and an
existing organizer record.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, jsonify, request, Response

from campushub.auth_service import store
from campushub.auth_service.utils import create_token, verify_admin_from_request, verify_token_from_request
from campushub.core.exceptions import DuplicateEmailError
from campushub.core.schemas import AuthPayload, EventPayload, parse_payload
from campushub.events_service import catalog, ledger
from campushub.notify_service.mailer import get_notifier
from campushub.user_service.routes import invalid_input

admin_bp = Blueprint("admin", __name__)


def _admin_summary(admin: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": admin["id"], "adminName": admin["admin_name"], "email": admin["email"]}


def _announce(event: Dict[str, Any]) -> None:
    try:
        recipients = store.list_user_emails()
    except Exception:
        logging.exception(f"[Admin] Could not load recipients for event {event['id']}")
        return
    get_notifier().notify_new_event(event, recipients)


# --- REQUEST LOGGING ---
@admin_bp.before_request
def before_request() -> None:
    logging.info(f"[Admin] Incoming {request.method} {request.path}")


@admin_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Admin] Response {response.status}")
    return response


# --- SIGNUP / SIGNIN ---
@admin_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Create an organizer account. Admin emails are unique among admins only.

    Returns:
        201: token and admin {id, adminName, email}.
        400: Invalid input or email already registered.
    """
    payload, errors = parse_payload(AuthPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    try:
        admin = store.create_principal(store.ADMIN, payload.email, payload.password)
    except DuplicateEmailError:
        return jsonify({"success": False, "msg": "Admin already exists"}), 400

    token = create_token(admin["id"], admin["email"], admin["role"])

    return jsonify({
        "success": True,
        "msg": "Admin signed up successfully",
        "token": token,
        "admin": _admin_summary(admin),
    }), 201


@admin_bp.route("/signin", methods=["POST"])
def signin() -> Tuple[Response, int]:
    payload, errors = parse_payload(AuthPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    admin = store.find_by_email(store.ADMIN, payload.email)
    if not admin or not store.verify_password(payload.password, admin["password_hash"]):
        return jsonify({"success": False, "msg": "Invalid credentials"}), 400

    token = create_token(admin["id"], admin["email"], admin["role"])

    return jsonify({
        "success": True,
        "msg": "Admin logged in successfully",
        "token": token,
        "admin": _admin_summary(admin),
    }), 200


@admin_bp.route("/profile", methods=["GET"])
def profile() -> Tuple[Response, int]:
    claims, err, code = verify_token_from_request()
    if err:
        return err, code

    if claims.get("role") != store.ADMIN:
        return jsonify({"success": False, "msg": "Access denied"}), 403

    admin = store.find_by_id(store.ADMIN, claims["id"])
    if not admin:
        return jsonify({"success": False, "msg": "Admin not found"}), 404

    return jsonify({"success": True, "admin": store.serialize_principal(admin)}), 200


# --- EVENTS ---
@admin_bp.route("/events", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """All events, each with its attendees' id, username and email."""
    _, err, code = verify_admin_from_request()
    if err:
        return err, code

    return jsonify({"success": True, "events": catalog.list_events_with_attendees()}), 200


@admin_bp.route("/create-event", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event owned by the calling organizer and announce it to
    every student.

    Returns:
        201: The stored event.
        400: Invalid input.
        401/400/403: Authentication failure.
    """
    claims, err, code = verify_admin_from_request()
    if err:
        return err, code

    payload, errors = parse_payload(EventPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    event = catalog.create_event(claims["id"], payload.model_dump())
    _announce(event)

    return jsonify({"success": True, "msg": "Event created successfully", "event": event}), 201


@admin_bp.route("/edit-event/<int:event_id>", methods=["PUT"])
def edit_event(event_id: int) -> Tuple[Response, int]:
    """
    Replace an event's fields. The body is validated like create-event.

    Returns:
        200: The updated event.
        400: Invalid input.
        404: Event not found.
    """
    _, err, code = verify_admin_from_request()
    if err:
        return err, code

    payload, errors = parse_payload(EventPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    event = catalog.update_event(event_id, payload.model_dump())
    if not event:
        return jsonify({"success": False, "msg": "Event not found"}), 404

    _announce(event)

    return jsonify({"success": True, "msg": "Event updated successfully", "event": event}), 200


@admin_bp.route("/delete-event/<int:event_id>", methods=["DELETE"])
def delete_event(event_id: int) -> Tuple[Response, int]:
    """
    Delete an event and all of its registrations. Deleting an id that does
    not exist is not an error.
    """
    _, err, code = verify_admin_from_request()
    if err:
        return err, code

    if not catalog.delete_event(event_id):
        logging.info(f"[Admin] Delete requested for missing event {event_id}")

    return jsonify({"success": True, "msg": "Event deleted successfully"}), 200


@admin_bp.route("/event/<int:event_id>/registrations", methods=["GET"])
def event_registrations(event_id: int) -> Tuple[Response, int]:
    """
    Attendance export for one event.

    Returns:
        200: registrations [{id, userId, eventId, registeredAt, user}] and
             their count. An unknown event id yields an empty list.
    """
    _, err, code = verify_admin_from_request()
    if err:
        return err, code

    registrations = ledger.list_for_event(event_id)
    return jsonify({
        "success": True,
        "count": len(registrations),
        "registrations": registrations,
    }), 200
