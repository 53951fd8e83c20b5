"""
Apply schema.sql to the configured database and check the result.

Usage:
    python -m campushub.database.init_db

The DDL uses IF NOT EXISTS throughout, so running this against an already
initialized database is a no-op apart from the table check.
"""

import logging
import sys
from pathlib import Path
from typing import List

from campushub.config import load_config
from campushub.database.db_connection import configure_db, get_db, close_db

SCHEMA_PATH = Path(__file__).with_name("schema.sql")
REQUIRED_TABLES = ["users", "admins", "events", "registrations"]


def apply_schema() -> None:
    """Execute the bundled DDL in a single transaction."""
    ddl = SCHEMA_PATH.read_text(encoding="utf-8")
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(ddl)
    logging.info(f"[DB] Applied {SCHEMA_PATH.name}")


def missing_tables() -> List[str]:
    """Return the names of required tables that do not exist."""
    missing = []
    with get_db() as conn:
        with conn.cursor() as cur:
            for table in REQUIRED_TABLES:
                cur.execute("SELECT to_regclass(%s);", (table,))
                if cur.fetchone()[0] is None:
                    missing.append(table)
    return missing


def main() -> int:
    config = load_config()
    logging.basicConfig(level=config["LOG_LEVEL"], format="[%(levelname)s] %(asctime)s - %(message)s")
    configure_db(
        config["DATABASE_URL"],
        minconn=1,
        maxconn=1,
        connect_timeout=config["DB_CONNECT_TIMEOUT"],
    )

    try:
        apply_schema()
        missing = missing_tables()
    except Exception:
        logging.exception("[DB] Schema initialization failed")
        return 1
    finally:
        close_db()

    if missing:
        logging.error(f"[DB] Tables still missing after init: {', '.join(missing)}")
        return 1

    for table in REQUIRED_TABLES:
        logging.info(f"[DB] {table}: found")
    return 0


if __name__ == "__main__":
    sys.exit(main())
