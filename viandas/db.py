from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    kwargs = {}
    if database_url.startswith("sqlite"):
        # FastAPI runs sync handlers in a threadpool
        connect_args["check_same_thread"] = False
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # a single shared connection keeps the in-memory database alive
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, connect_args=connect_args, future=True, **kwargs)

    # Ensure SQLite enforces foreign keys
    if database_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def init_db(engine: Engine) -> None:
    # imported for its side effect of registering the tables on Base
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
