from contextlib import contextmanager
import os
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/storefront.db")


def build_engine(database_url: str):
    # Ensure sqlite file parent directory exists to avoid 'unable to open database file'
    if database_url.startswith("sqlite:///") and ":memory:" not in database_url:
        db_path = database_url.split("sqlite:///")[-1]
        Path(db_path).expanduser().resolve().parent.mkdir(parents=True, exist_ok=True)
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, future=True)


def make_session_factory(bind):
    """Return a context-manager factory: one session per unit of work, committed on exit."""
    session_local = sessionmaker(bind=bind, autoflush=False, expire_on_commit=False, future=True)

    @contextmanager
    def _session_scope():
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return _session_scope


def init_db(bind) -> None:
    # registers every model on Base.metadata
    from .. import models  # noqa: F401
    from ..models.base import Base

    Base.metadata.create_all(bind=bind)


engine = build_engine(DATABASE_URL)
get_session = make_session_factory(engine)
