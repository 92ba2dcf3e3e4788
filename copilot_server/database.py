# copilot_server/database.py
from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session


def build_engine(database_url: str) -> Engine:
    """
    Create the SQLAlchemy engine for the configured store.

    SQLite:
      - check_same_thread=False : FastAPI runs sync routes in a threadpool
      - in-memory URLs share one connection (StaticPool), otherwise every
        new connection would see an empty database
      - foreign keys are switched on per connection (off by default)

    Other backends get pool_pre_ping so stale connections are recycled.
    """
    if database_url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, echo=False, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(database_url, echo=False, pool_pre_ping=True)


def create_db_and_tables(engine: Engine) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    # Import models so SQLModel metadata is populated before create_all()
    from copilot_server.models import usage as _usage_models  # noqa: F401
    from copilot_server.models import user as _user_models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session(request: Request):
    """
    FastAPI dependency that yields a SQLModel Session bound to the
    engine created at startup.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(request.app.state.engine) as session:
        yield session
