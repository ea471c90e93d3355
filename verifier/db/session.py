"""Database engine factory utilities.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy usage.
"""

from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for ledger database access.

    File-backed SQLite URLs have `~` expanded and their parent directory
    created on demand.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    parsed_url = make_url(database_url.strip())
    if parsed_url.get_backend_name() == "sqlite" and parsed_url.database not in (None, "", ":memory:"):
        database_path = Path(parsed_url.database).expanduser()
        database_path.parent.mkdir(parents=True, exist_ok=True)
        parsed_url = parsed_url.set(database=str(database_path))

    return create_engine(parsed_url, pool_pre_ping=True)
