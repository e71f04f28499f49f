import logging
import os
import sys

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import settings

log = logging.getLogger("db")

DATABASE_URL = settings.DATABASE_URL
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


if engine.dialect.name == "sqlite":

    @event.listens_for(engine, "connect")
    def _enable_sqlite_fks(dbapi_conn, _record):
        # sqlite ignores REFERENCES clauses unless asked per connection
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


_reset_done = False


def _running_pytest() -> bool:
    if any("pytest" in os.path.basename(a).lower() for a in sys.argv):
        return True
    return any(k.upper().startswith("PYTEST") for k in os.environ.keys())


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is passed, or RESET_DB env var is set to 1/true/yes, drop & recreate tables.
      - If we detect pytest running, drop & recreate tables once per process so tests
        run against a clean DB.
      - Otherwise, leave existing tables in place.
    """
    global _reset_done

    # make sure the mappers are registered on Base.metadata
    from app.models import customer, invoice  # noqa: F401

    env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")
    pytest_reset = _running_pytest() and not _reset_done

    if reset or env_reset or pytest_reset:
        log.info("Resetting database (RESET_DB set or pytest detected)...")
        Base.metadata.drop_all(bind=engine)
        _reset_done = True

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized.")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
