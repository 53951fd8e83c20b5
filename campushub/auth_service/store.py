"""
Credential store for the two principal kinds.

Students live in `users`, organizers in `admins`. The tables are independent
namespaces: the same email may exist once in each. Passwords are stored only
as Argon2 hashes and are never selected except by `find_by_email`, which the
sign-in routes need for verification.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import psycopg2.errors
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from campushub.core.exceptions import DuplicateEmailError
from campushub.database.db_connection import get_db

ph = PasswordHasher()

USER = "user"
ADMIN = "admin"

_TABLES = {USER: "users", ADMIN: "admins"}

_PUBLIC_COLUMNS = {
    USER: "id, username, email, role, created_at, updated_at",
    ADMIN: "id, username, admin_name, email, role, created_at, updated_at",
}

_JSON_KEYS = {
    "admin_name": "adminName",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def _table(kind: str) -> str:
    try:
        return _TABLES[kind]
    except KeyError:
        raise ValueError(f"Unknown principal kind: {kind!r}")


def serialize_principal(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a principal row into its JSON shape.

    Snake-case columns become camelCase keys and timestamps become ISO
    strings. A `password_hash` key, if present, is dropped.
    """
    out = {}
    for key, value in dict(row).items():
        if key == "password_hash":
            continue
        if isinstance(value, (datetime, date)):
            value = value.isoformat()
        out[_JSON_KEYS.get(key, key)] = value
    return out


def create_principal(kind: str, email: str, password: str) -> Dict[str, Any]:
    """
    Create a user or admin account.

    Args:
        kind: USER or ADMIN.
        email: Already validated and lower-cased.
        password: Plaintext; hashed here and then discarded.

    Returns:
        dict: The new principal's public columns.

    Raises:
        DuplicateEmailError: The email is taken within this kind.
    """
    table = _table(kind)
    username = email.split("@")[0]
    pw_hash = ph.hash(password)

    if kind == ADMIN:
        sql = f"""
            INSERT INTO {table} (username, admin_name, email, password_hash)
            VALUES (%s, %s, %s, %s)
            RETURNING {_PUBLIC_COLUMNS[kind]};
        """
        params = (username, username, email, pw_hash)
    else:
        sql = f"""
            INSERT INTO {table} (username, email, password_hash)
            VALUES (%s, %s, %s)
            RETURNING {_PUBLIC_COLUMNS[kind]};
        """
        params = (username, email, pw_hash)

    # The unique constraint is the authority; no pre-check is needed.
    try:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                row = cur.fetchone()
    except psycopg2.errors.UniqueViolation:
        logging.info(f"[Auth] Duplicate {kind} signup for {email}")
        raise DuplicateEmailError(kind, email)

    return dict(row)


def find_by_email(kind: str, email: str) -> Optional[Dict[str, Any]]:
    """Look up a principal, including its password hash, by email."""
    table = _table(kind)
    sql = f"SELECT {_PUBLIC_COLUMNS[kind]}, password_hash FROM {table} WHERE email = %s;"
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (email,))
            row = cur.fetchone()
    return dict(row) if row else None


def find_by_id(kind: str, principal_id: int) -> Optional[Dict[str, Any]]:
    """Look up a principal's public columns by id."""
    table = _table(kind)
    sql = f"SELECT {_PUBLIC_COLUMNS[kind]} FROM {table} WHERE id = %s;"
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, (principal_id,))
            row = cur.fetchone()
    return dict(row) if row else None


def verify_password(plain: str, pw_hash: str) -> bool:
    """
    Check a plaintext password against a stored Argon2 hash.

    Returns False for a wrong password or an unparseable hash. Failed
    attempts are not counted anywhere.
    """
    try:
        return ph.verify(pw_hash, plain)
    except (VerificationError, InvalidHashError):
        return False


def list_user_emails() -> List[str]:
    """Every student email, oldest account first."""
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT email FROM users ORDER BY id;")
            return [row["email"] for row in cur.fetchall()]


def count_users() -> int:
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT COUNT(*) AS total FROM users;")
            return cur.fetchone()["total"]
