"""
Database configuration and session management
"""

from contextlib import contextmanager
from typing import Iterator
import uuid

from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy import event, text
from sqlalchemy.pool import StaticPool
import structlog

from shopfront.core.config import get_settings

logger = structlog.get_logger(__name__)
settings = get_settings()


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # One shared connection so every session sees the same in-memory schema
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    **_engine_kwargs(settings.DATABASE_URL),
)


def init_db():
    """Initialize database tables"""
    import shopfront.models  # noqa: F401  register tables on the metadata

    SQLModel.metadata.create_all(engine)
    logger.info("Database tables created")


def get_session() -> Iterator[Session]:
    """Dependency to get database session"""
    with Session(engine) as session:
        yield session


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for code running outside the dependency graph (middleware, scripts)"""
    with Session(engine) as session:
        yield session


def bind_tenant(session: Session, tenant_id: uuid.UUID) -> None:
    """Scope every transaction of this session to one tenant's RLS policies"""
    session.info["tenant_id"] = str(tenant_id)


@event.listens_for(Session, "after_begin")
def _set_tenant_setting(session, transaction, connection) -> None:
    tenant_id = session.info.get("tenant_id")
    if tenant_id is None or connection.dialect.name != "postgresql":
        # SQLite has no row level security
        return
    # Bound parameter, transaction scoped (SET LOCAL)
    connection.execute(text("SELECT set_config('app.tenant_id', :tid, true)"), {"tid": tenant_id})
