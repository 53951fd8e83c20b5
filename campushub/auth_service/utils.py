"""
Shared authentication helpers.
Provides token creation, verification, and role enforcement.

The TokenService instance is built by the gateway from app config and stored
in `app.extensions`; the request helpers below look it up through
`current_app` so blueprints never touch the signing secret directly.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from flask import current_app, g, jsonify, request, Response

from campushub.auth_service import store
from campushub.core.exceptions import InvalidTokenError

EXTENSION_KEY = "campushub.tokens"

GateResult = Tuple[Optional[Dict[str, Any]], Optional[Response], Optional[int]]


class TokenService:
    """Issues and verifies HS256 session tokens."""

    def __init__(self, secret: str, expiration_minutes: Optional[int] = None, algorithm: str = "HS256"):
        """
        Args:
            secret: Signing key.
            expiration_minutes: When None, tokens carry no `exp` claim and
                stay valid until the secret is rotated.
            algorithm: JWT signing algorithm.
        """
        if not secret:
            raise RuntimeError("JWT_SECRET is missing. Set it in .env")
        self.secret = secret
        self.expiration_minutes = expiration_minutes
        self.algorithm = algorithm

    def create_token(self, subject_id: int, email: str, role: str) -> str:
        """
        Generates a new JWT for a principal.

        Args:
            subject_id (int): Row id in `users` or `admins`.
            email (str): The principal's email.
            role (str): "student", "organizer" or "admin".

        Returns:
            str: Encoded JWT string.
        """
        now = datetime.now(timezone.utc)
        payload = {
            "id": subject_id,
            "email": email,
            "role": role,
            "iat": now,
        }
        if self.expiration_minutes:
            payload["exp"] = now + timedelta(minutes=self.expiration_minutes)

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a token's signature and decode its claims.

        Raises:
            InvalidTokenError: Bad signature, malformed token, expired, or
                missing the subject id.
        """
        try:
            claims = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            raise InvalidTokenError(str(e)) from e

        if "id" not in claims:
            raise InvalidTokenError("token has no subject id")
        return claims


def get_token_service() -> TokenService:
    return current_app.extensions[EXTENSION_KEY]


def create_token(subject_id: int, email: str, role: str) -> str:
    """Issue a token with the current app's TokenService."""
    return get_token_service().create_token(subject_id, email, role)


def _denied(msg: str, code: int) -> GateResult:
    return None, jsonify({"success": False, "msg": msg}), code


# --- STAGE 1: TOKEN VALIDITY ---
def verify_token_from_request() -> GateResult:
    """
    Verify the bearer token in the Authorization header.

    Returns:
        tuple: (claims, error_response, status_code)
               On success the error fields are None and the claims are also
               stored on `flask.g.claims`. A missing token yields 401; a
               token that fails verification yields 400.
    """
    auth = request.headers.get("Authorization", "")
    parts = auth.split(" ", 1)

    if len(parts) != 2 or not parts[1].strip():
        return _denied("Access denied", 401)

    try:
        claims = get_token_service().decode_token(parts[1].strip())
    except InvalidTokenError as e:
        logging.info(f"[Auth] Rejected token on {request.path}: {e}")
        return _denied("Invalid token", 400)

    g.claims = claims
    return claims, None, None


def verify_user_from_request() -> GateResult:
    """
    Verify the bearer token and require that it was issued to a user
    account. Organizer tokens get 403: user and admin ids are separate
    sequences, so the same id can name two different people.
    """
    claims, err, code = verify_token_from_request()
    if err:
        return None, err, code

    if claims.get("role") == store.ADMIN:
        return _denied("Access denied", 403)

    return claims, None, None


# --- STAGE 2: ORGANIZER ROLE ---
def verify_admin_from_request() -> GateResult:
    """
    Verify the bearer token, then require that it belongs to an organizer.

    The token must carry the admin role and its subject id must resolve to
    an `admins` row whose role is still "admin".

    Returns:
        tuple: (claims, error_response, status_code); 403 when the token is
               valid but not an organizer's.
    """
    claims, err, code = verify_token_from_request()
    if err:
        return None, err, code

    if claims.get("role") != store.ADMIN:
        return _denied("Access denied", 403)

    admin = store.find_by_id(store.ADMIN, claims["id"])
    if not admin or admin.get("role") != store.ADMIN:
        logging.warning(f"[Auth] Token subject {claims['id']} is not an organizer")
        return _denied("Access denied", 403)

    return claims, None, None
