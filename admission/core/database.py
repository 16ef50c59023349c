"""Database configuration and session management for SQLite.

The roster lives in SQLite. Two connection-level settings matter for the
admission logic:

    - **WAL (Write-Ahead Logging)**: checkpoint scans and registrations
      write while other requests read the roster. WAL keeps readers
      unblocked during those writes.

    - **Foreign Keys**: link rows (attendees, pre-approvals, check-ins)
      reference their Event. SQLite ships with enforcement off, so it is
      switched on per connection.

Set-valued fields are link tables keyed on both ids, so a set-union is a
single ``INSERT ... ON CONFLICT DO NOTHING`` and concurrent registrations
converge without any read-modify-write.
"""

from sqlalchemy import event as sa_event
from sqlmodel import Session, SQLModel, create_engine

from admission.core.config import settings

# FastAPI may hand a session to a different worker thread than the one
# that opened the connection.
connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.database_url,
    connect_args=connect_args,
    echo=settings.debug,  # Log SQL statements when DEBUG=true
)


@sa_event.listens_for(engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Configure SQLite pragmas on each new connection.

    These settings are connection-level, not database-level, so they must
    be set each time a new connection is established from the pool.
    """
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_and_tables():
    """Create all database tables."""
    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database session."""
    with Session(engine) as session:
        yield session
