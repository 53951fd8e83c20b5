"""
Student-facing route handlers.

Provides routes for:
- User signup and signin
- Profile retrieval
- Public event listing
- Event registration

Token logic lives in `auth_service.utils`; storage in `auth_service.store`,
`events_service.catalog` and `events_service.ledger`.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, jsonify, request, Response

from campushub.auth_service import store
from campushub.auth_service.utils import create_token, verify_user_from_request
from campushub.core.exceptions import AlreadyRegisteredError, DuplicateEmailError, EventNotFoundError
from campushub.core.schemas import AuthPayload, parse_payload
from campushub.events_service import catalog, ledger
from campushub.notify_service.mailer import get_notifier

user_bp = Blueprint("user", __name__)


def invalid_input(errors) -> Tuple[Response, int]:
    return jsonify({"success": False, "msg": "Invalid input", "errors": errors}), 400


def _user_summary(user: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": user["id"], "username": user["username"], "email": user["email"]}


def _confirm_registration(event_id: int, user: Dict[str, Any]) -> None:
    try:
        event = catalog.get_event(event_id)
    except Exception:
        logging.exception(f"[User] Could not load event {event_id} for the registration email")
        return
    if event:
        get_notifier().notify_registered(event, user)


# --- REQUEST LOGGING ---
@user_bp.before_request
def before_request() -> None:
    logging.info(f"[User] Incoming {request.method} {request.path}")


@user_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[User] Response {response.status}")
    return response


# --- SIGNUP ---
@user_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Create a student account.

    Expects a JSON body with:
    - email (str): 5-255 characters, unique among users.
    - password (str): At least 6 characters.

    Returns:
        201: token and user {id, username, email}.
        400: Invalid input or email already registered.
    """
    payload, errors = parse_payload(AuthPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    try:
        user = store.create_principal(store.USER, payload.email, payload.password)
    except DuplicateEmailError:
        return jsonify({"success": False, "msg": "User already exists"}), 400

    token = create_token(user["id"], user["email"], user["role"])
    get_notifier().notify_welcome(user)

    return jsonify({
        "success": True,
        "msg": "User signed up successfully",
        "token": token,
        "user": _user_summary(user),
    }), 201


# --- SIGNIN ---
@user_bp.route("/signin", methods=["POST"])
def signin() -> Tuple[Response, int]:
    """
    Authenticate a student and return a token.

    Returns:
        200: token and user {id, username, email}.
        400: Invalid input or invalid credentials.
    """
    payload, errors = parse_payload(AuthPayload, request.get_json(silent=True))
    if errors:
        return invalid_input(errors)

    user = store.find_by_email(store.USER, payload.email)
    if not user or not store.verify_password(payload.password, user["password_hash"]):
        return jsonify({"success": False, "msg": "Invalid credentials"}), 400

    token = create_token(user["id"], user["email"], user["role"])

    return jsonify({
        "success": True,
        "msg": "User logged in successfully",
        "token": token,
        "user": _user_summary(user),
    }), 200


# --- PROFILE ---
@user_bp.route("/profile", methods=["GET"])
def profile() -> Tuple[Response, int]:
    """
    Return the caller's user record without the password hash.

    Requires Authorization header: Bearer <token>
    """
    claims, err, code = verify_user_from_request()
    if err:
        return err, code

    user = store.find_by_id(store.USER, claims["id"])
    if not user:
        return jsonify({"success": False, "msg": "User not found"}), 404

    return jsonify({"success": True, "user": store.serialize_principal(user)}), 200


# --- EVENTS ---
@user_bp.route("/events", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """Public event listing; attendee data is not included."""
    return jsonify({"success": True, "events": catalog.list_events()}), 200


@user_bp.route("/register-event/<int:event_id>", methods=["POST"])
def register_event(event_id: int) -> Tuple[Response, int]:
    """
    Register the caller for an event.

    Requires Authorization header: Bearer <token>

    Returns:
        200: Registered.
        400: Already registered.
        404: Event or user not found.
    """
    claims, err, code = verify_user_from_request()
    if err:
        return err, code

    user = store.find_by_id(store.USER, claims["id"])
    if not user:
        return jsonify({"success": False, "msg": "User not found"}), 404

    try:
        ledger.register(user["id"], event_id)
    except EventNotFoundError:
        return jsonify({"success": False, "msg": "Event not found"}), 404
    except AlreadyRegisteredError:
        return jsonify({"success": False, "msg": "Already registered"}), 400

    _confirm_registration(event_id, user)

    return jsonify({"success": True, "msg": "Registered successfully!"}), 200
