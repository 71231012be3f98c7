from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy import create_engine
from .config import settings


_engine_kwargs = {"future": True, "pool_pre_ping": True}
if settings.database_url.startswith("sqlite"):
    _engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    _engine_kwargs.update(pool_size=5, max_overflow=10, pool_recycle=3600)

engine = create_engine(settings.database_url, **_engine_kwargs)

# Fresh Session per request; never share one across requests
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Run a block of writes as one unit: commit on success, roll back on any error.

    Reads issued on ``db`` before entering belong to the same database
    transaction; nothing written inside the block is visible to other
    sessions until the commit.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
