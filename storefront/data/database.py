import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Default database file path
DB_PATH = os.path.join(os.path.dirname(__file__), "storefront.db")
DEFAULT_DATABASE_URL = f"sqlite:///{DB_PATH}"

# Create a base class for our models
Base = declarative_base()


def build_engine(url: str = None):
    """Create the SQLAlchemy engine for ``url`` (defaults to the local SQLite file)."""
    url = url or DEFAULT_DATABASE_URL
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def build_session_factory(engine):
    """Create a configured "Session" class bound to ``engine``."""
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def session_scope(session_factory):
    """Yield a session and always close it; used by the ``get_db`` dependency."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def create_tables(engine):
    """Create all tables in the database."""
    # Import all models here before calling create_all
    # This ensures they are registered with the Base metadata
    from . import models  # noqa: F401
    Base.metadata.create_all(bind=engine)


if __name__ == "__main__":
    create_tables(build_engine(os.getenv("DATABASE_URL")))
    print("Database tables created successfully.")
