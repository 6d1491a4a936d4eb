"""SQLite engine and per-request sessions for users and conversation records."""

from pathlib import Path

from sqlalchemy import Engine, event
from sqlmodel import SQLModel, create_engine, Session

from medreport.core.config import settings


def enable_foreign_keys(engine: Engine) -> Engine:
    """SQLite leaves foreign key checks off unless asked per connection."""
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


def make_engine(db_path: Path, echo: bool = False) -> Engine:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return enable_foreign_keys(
        create_engine(
            f"sqlite:///{db_path}",
            echo=echo,
            connect_args={"check_same_thread": False},
        )
    )


engine = make_engine(settings.db_path, echo=settings.debug)


def init_db() -> None:
    import medreport.models  # noqa: F401 - ensure models are registered
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
