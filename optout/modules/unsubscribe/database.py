"""
Unsubscribe Database
====================

Write and read paths over the unsubscribes table. Callers translate
SQLAlchemyError into a StorageFailure; nothing here swallows errors.
"""

from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from optout.core.database import Database, db
from optout.core.errors import Misconfigured
from .models import Unsubscribe

EXPORT_COLUMNS = ('email', 'site', 'unsubscribed_at')


def utcnow():
    """Current UTC time as a naive datetime, truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def _upsert_statement(dialect, email, site, now):
    """Build a single-statement insert-or-update for the given SQL dialect."""
    table = Unsubscribe.__table__
    values = {'email': email, 'site': site, 'unsubscribed_at': now}

    if dialect in ('mysql', 'mariadb'):
        stmt = mysql_insert(table).values(**values)
        return stmt.on_duplicate_key_update(
            site=stmt.inserted.site,
            unsubscribed_at=stmt.inserted.unsubscribed_at,
        )

    if dialect in ('sqlite', 'postgresql'):
        insert = sqlite_insert if dialect == 'sqlite' else postgresql_insert
        stmt = insert(table).values(**values)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.email],
            set_={
                'site': stmt.excluded.site,
                'unsubscribed_at': stmt.excluded.unsubscribed_at,
            },
        )

    raise Misconfigured(f"Upsert is not supported on the {dialect} dialect")


def record_unsubscribe(email, site=None, now=None):
    """
    Insert the email, or refresh site and timestamp if it is already present.

    Timestamps are stored to the second so the 23:59:59 range end covers the
    whole last second of a day. Returns the timestamp written.
    """
    now = (now or utcnow()).replace(microsecond=0)
    stmt = _upsert_statement(Database.dialect_name(), email, site, now)

    try:
        db.session.execute(stmt)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return now


def _date_filter(stmt, date_range):
    if date_range is None:
        return stmt
    return stmt.where(Unsubscribe.unsubscribed_at.between(date_range.start, date_range.end))


def _export_select(date_range):
    stmt = select(
        Unsubscribe.email,
        Unsubscribe.site,
        Unsubscribe.unsubscribed_at,
    ).order_by(Unsubscribe.unsubscribed_at.desc(), Unsubscribe.id.desc())
    return _date_filter(stmt, date_range)


def count_unsubscribes(date_range=None):
    """Number of rows matching the (optional) inclusive UTC range."""
    stmt = _date_filter(select(func.count()).select_from(Unsubscribe), date_range)
    return db.session.execute(stmt).scalar_one()


def list_unsubscribes(date_range=None, limit=500):
    """Newest-first rows for display, capped at limit."""
    stmt = _export_select(date_range).limit(limit)
    return db.session.execute(stmt).all()


class StreamedRows:
    """Rows of an open export result; close() hands the connection back to the pool."""

    def __init__(self, conn, result):
        self._conn = conn
        self._result = result

    def __iter__(self):
        return iter(self._result)

    def close(self):
        # Safe to call more than once
        self._result.close()
        self._conn.close()


def stream_unsubscribes(date_range=None):
    """
    Execute the export query now and return its rows as a StreamedRows.

    The query runs before this returns, so connection errors surface while a
    proper error response can still be sent. Rows are pulled through a
    server-side cursor where the driver supports one. The caller must close
    the result, even if it never iterates it.
    """
    conn = db.engine.connect()
    try:
        result = conn.execution_options(stream_results=True).execute(_export_select(date_range))
    except Exception:
        conn.close()
        raise

    return StreamedRows(conn, result)
