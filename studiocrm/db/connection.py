"""
Database Connection Management
PostgreSQL connections with context manager pattern.

Every `with get_db_cursor()` block is one transaction: the store relies on
this for single-mutation atomicity (reorder, cascade deletes, dedup insert).
"""

import psycopg2
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
import logging

from studiocrm.config import config

logger = logging.getLogger(__name__)

APPLICATION_NAME = 'studiocrm'


@contextmanager
def get_db_connection():
    """
    Context manager for database connections.
    Commits on success, rolls back on error, always closes.

    Usage:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM venues ORDER BY order_num")
            results = cur.fetchall()
    """
    conn = None
    try:
        conn = psycopg2.connect(config.DATABASE_URL, application_name=APPLICATION_NAME)
        logger.debug("Database connection established")
        yield conn
        conn.commit()
        logger.debug("Transaction committed")
    except Exception as e:
        if conn:
            conn.rollback()
            logger.error(f"Transaction rolled back due to error: {e}")
        raise
    finally:
        if conn:
            conn.close()
            logger.debug("Database connection closed")


@contextmanager
def get_db_cursor(dict_cursor=True):
    """
    Context manager for a cursor inside its own transaction.
    Returns RealDictCursor by default for row-as-dict results.

    Usage:
        with get_db_cursor() as cur:
            cur.execute("SELECT * FROM venues WHERE id = %s", (42,))
            venue = cur.fetchone()  # dict-like row
    """
    with get_db_connection() as conn:
        cursor_factory = RealDictCursor if dict_cursor else None
        cur = conn.cursor(cursor_factory=cursor_factory)
        try:
            yield cur
        finally:
            cur.close()
