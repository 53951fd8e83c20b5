"""
PostgreSQL connection helper.
Provides get_db() for use by services.

Connections come from a bounded psycopg2 pool which is created lazily on
first use, so importing a service module never opens a socket.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from psycopg2.extensions import connection as PGConnection
from psycopg2.extras import DictCursor
from psycopg2.pool import ThreadedConnectionPool

_pool: Optional[ThreadedConnectionPool] = None
_pool_lock = threading.Lock()
_settings: Dict[str, Any] = {
    "dsn": None,
    "minconn": 1,
    "maxconn": 5,
    "connect_timeout": 10,
}


def configure_db(dsn: Optional[str], minconn: int = 1, maxconn: int = 5, connect_timeout: int = 10) -> None:
    """
    Record pool settings. Any existing pool is closed so the next
    get_db() call reconnects with the new parameters.
    """
    close_db()
    _settings.update(dsn=dsn, minconn=minconn, maxconn=maxconn, connect_timeout=connect_timeout)


def _get_pool() -> ThreadedConnectionPool:
    global _pool
    with _pool_lock:
        if _pool is None:
            if not _settings["dsn"]:
                raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")
            _pool = ThreadedConnectionPool(
                _settings["minconn"],
                _settings["maxconn"],
                _settings["dsn"],
                cursor_factory=DictCursor,
                connect_timeout=_settings["connect_timeout"],
            )
            logging.info(
                f"[DB] Pool created (min={_settings['minconn']}, max={_settings['maxconn']})"
            )
        return _pool


@contextmanager
def get_db() -> Iterator[PGConnection]:
    """
    Borrow a pooled connection for the duration of a `with` block.

    The transaction is committed when the block exits normally and rolled
    back when it raises; the connection always goes back to the pool.

    Usage:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Raises:
        RuntimeError: If no DATABASE_URL has been configured.
        psycopg2.Error: If connecting or committing fails.
    """
    pool = _get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


def close_db() -> None:
    """Close every pooled connection."""
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.closeall()
            _pool = None
