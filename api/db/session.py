import os
import time
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import sessionmaker, Session
from dotenv import load_dotenv

load_dotenv()

_engine = None
_SessionLocal = None
_query_logging_attached = False
_sql_logger = logging.getLogger("api.db.sql")
_SLOW_QUERY_MS = float(os.getenv("SQL_SLOW_QUERY_MS", "250"))


def _format_statement(statement: str, *, max_length: int = 120) -> str:
    condensed = " ".join(statement.strip().split())
    if len(condensed) <= max_length:
        return condensed
    return condensed[: max_length - 1] + "…"


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    context._query_start_time = time.perf_counter()


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    start = getattr(context, "_query_start_time", None)
    if start is None:
        return
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    level = logging.WARNING if elapsed_ms >= _SLOW_QUERY_MS else logging.DEBUG
    if not _sql_logger.isEnabledFor(level):
        return
    _sql_logger.log(
        level,
        "%.1f ms | rows=%s | %s",
        elapsed_ms,
        cursor.rowcount if cursor.rowcount is not None else "?",
        _format_statement(statement),
    )


def _handle_error(context):
    statement = getattr(context, "statement", "") or ""
    _sql_logger.warning(
        "SQL error during '%s': %s",
        _format_statement(statement),
        context.original_exception,
    )


def _attach_sql_logging(engine):
    global _query_logging_attached
    if _query_logging_attached:
        return
    try:
        event.listen(engine, "before_cursor_execute", _before_cursor_execute)
        event.listen(engine, "after_cursor_execute", _after_cursor_execute)
        event.listen(engine, "handle_error", _handle_error)
    except InvalidRequestError:
        # Tests may stub create_engine with a placeholder object.
        return
    _query_logging_attached = True


def init_engine():
    global _engine, _SessionLocal
    db_url = os.getenv(
        "DATABASE_URL", "postgresql+psycopg2://app:app@db:5432/tastebridge"
    )
    _engine = create_engine(db_url, pool_pre_ping=True, future=True)
    _attach_sql_logging(_engine)
    _SessionLocal = sessionmaker(
        bind=_engine, autoflush=False, autocommit=False, future=True
    )


def get_sessionmaker():
    if _SessionLocal is None:
        init_engine()
    return _SessionLocal


def get_db() -> Session:
    SessionLocal = get_sessionmaker()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
