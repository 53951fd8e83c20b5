"""
Configuration loading for the CampusHub backend.

Values come from the process environment (optionally seeded from a .env file)
and are returned as a plain dict of Flask config keys. Nothing here is cached
at import time: `create_app()` calls `load_config()` and hands the result to
the components it builds.
"""

import os
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

DEFAULT_MAIL_FROM = "CampusHub <onboarding@resend.dev>"
DEFAULT_APP_URL = "https://srees-campushub.vercel.app/"


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}")


def _list_env(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def load_config() -> Dict[str, Any]:
    """
    Read every setting the application understands.

    Returns:
        dict: Flask-style config keys. `JWT_SECRET` may be None here;
        `create_app()` is responsible for rejecting that.
    """
    load_dotenv()

    expiration = _int_env("TOKEN_EXPIRATION_MINUTES", None)
    if expiration is not None and expiration <= 0:
        # 0 or less: tokens never expire
        expiration = None

    return {
        "JWT_SECRET": os.getenv("JWT_SECRET"),
        "TOKEN_EXPIRATION_MINUTES": expiration,
        "DATABASE_URL": os.getenv("DATABASE_URL"),
        "DB_POOL_MIN": _int_env("DB_POOL_MIN", 1),
        "DB_POOL_MAX": _int_env("DB_POOL_MAX", 5),
        "DB_CONNECT_TIMEOUT": _int_env("DB_CONNECT_TIMEOUT", 10),
        "RESEND_API_KEY": os.getenv("RESEND_API_KEY"),
        "MAIL_FROM": os.getenv("MAIL_FROM", DEFAULT_MAIL_FROM),
        "APP_URL": os.getenv("APP_URL", DEFAULT_APP_URL),
        "NOTIFY_WORKERS": _int_env("NOTIFY_WORKERS", 2),
        "CORS_ORIGINS": _list_env("CORS_ORIGINS", "*"),
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO").upper(),
        "GATEWAY_PORT": _int_env("GATEWAY_PORT", 5000),
    }
