# inspector_booking/db.py

from contextvars import ContextVar

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from inspector_booking.config import get_settings

# set only while begin_write() opens a transaction
_sqlite_begin_immediate: ContextVar[bool] = ContextVar("sqlite_begin_immediate", default=False)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    settings = get_settings()
    is_sqlite = database_url.startswith("sqlite")

    connect_args = {}
    if is_sqlite:
        connect_args = {
            "check_same_thread": False,  # required for SQLite + FastAPI
            "timeout": settings.sqlite_busy_timeout_seconds,
        }

    engine = create_engine(database_url, echo=echo, connect_args=connect_args)

    if is_sqlite:
        # pysqlite's own BEGIN handling is switched off so the "begin" hook
        # decides between a plain (deferred) BEGIN and BEGIN IMMEDIATE.
        @event.listens_for(engine, "connect")
        def _sqlite_on_connect(dbapi_connection, _):
            dbapi_connection.isolation_level = None
            # WAL: open readers never hold up a writer's commit
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_on_begin(conn):
            if _sqlite_begin_immediate.get():
                conn.exec_driver_sql("BEGIN IMMEDIATE")
            else:
                conn.exec_driver_sql("BEGIN")

    return engine


def begin_write(session: Session) -> None:
    """
    End whatever the session has open and start a write transaction.

    On SQLite the new transaction takes the database write lock up front, so
    everything read before the next commit is still current when it is written.
    Elsewhere this is an ordinary transaction; callers add row locks.
    """
    session.commit()
    token = _sqlite_begin_immediate.set(True)
    try:
        session.connection()
    finally:
        _sqlite_begin_immediate.reset(token)


# Engine = connection to the database
engine = create_db_engine(get_settings().database_url, echo=get_settings().sql_echo)


def init_db(bind: Engine = engine) -> None:
    # models must be imported so their tables are registered on the metadata
    from inspector_booking import models  # noqa: F401

    SQLModel.metadata.create_all(bind)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
