"""Database connection helpers."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

import psycopg
from psycopg.rows import dict_row

from aceras.config import Settings
from aceras.utils.logging import get_logger


logger = get_logger(__name__)


def get_connection(settings: Optional[Settings] = None) -> psycopg.Connection:
    """Create a new database connection returning rows as dicts."""
    settings = settings or Settings()
    return psycopg.connect(settings.get_database_url(), row_factory=dict_row)


@contextmanager
def db_cursor(settings: Optional[Settings] = None) -> Iterator[psycopg.Cursor]:
    """Yield a cursor with automatic commit/rollback."""
    conn = get_connection(settings)
    try:
        with conn.cursor() as cursor:
            yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def schema_files(schema_dir: Path) -> list[Path]:
    """Return the numbered ``.sql`` files of a schema directory in order."""
    if not schema_dir.is_dir():
        raise FileNotFoundError(f"Schema directory not found: {schema_dir}")
    return sorted(schema_dir.glob("*.sql"))


def apply_schema(cursor: psycopg.Cursor, schema_dir: Path) -> list[str]:
    """Execute every schema file; the files are idempotent (``if not exists``)."""
    applied = []
    for path in schema_files(schema_dir):
        cursor.execute(path.read_text(encoding="utf-8"))
        logger.info("db.schema.applied", extra={"file": path.name})
        applied.append(path.name)
    return applied
