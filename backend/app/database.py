import os
from pathlib import Path
from typing import Generator

from dotenv import load_dotenv
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rooms.db")

_echo = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")


def use_immediate_transactions(sqlite_engine: Engine) -> Engine:
    """Make every SQLite transaction take the database write lock at BEGIN.

    pysqlite defers BEGIN until the first write, so a read-modify-write (read the
    roster, then insert at position N + 1) would read outside any lock. With
    BEGIN IMMEDIATE a second writer blocks until the first one commits.
    """

    @event.listens_for(sqlite_engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return sqlite_engine


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Engine for `database_url`; SQLite engines serialize writers per transaction"""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo)

    db_path = database_url[len("sqlite:///"):] if database_url.startswith("sqlite:///") else ""
    if db_path and db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    sqlite_engine = create_engine(
        database_url,
        echo=echo,
        connect_args={"check_same_thread": False},
    )
    return use_immediate_transactions(sqlite_engine)


engine: Engine = create_db_engine(DATABASE_URL, echo=_echo)


def get_session() -> Generator[Session, None, None]:
    """Get database session"""
    with Session(engine) as session:
        yield session


def register_models() -> None:
    """Import every table model so SQLModel metadata knows about it"""
    from app.models.match import Match  # noqa: F401
    from app.models.player import Player  # noqa: F401
    from app.models.room import Room  # noqa: F401
    from app.models.team import Team  # noqa: F401


def init_db(bind: Engine = None) -> None:
    """Initialize database - create all tables"""
    register_models()
    SQLModel.metadata.create_all(bind or engine)
