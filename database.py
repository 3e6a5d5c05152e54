import logging

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from config import DATABASE_URL, SQL_ECHO

logger = logging.getLogger(__name__)

Base = declarative_base()


def make_engine(url: str = DATABASE_URL, echo: bool = SQL_ECHO):
    """Create an async engine; SQLite connections open every transaction with BEGIN IMMEDIATE."""
    if not url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)

    engine = create_async_engine(url, echo=echo, connect_args={"check_same_thread": False, "timeout": 30})

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # let SQLAlchemy emit BEGIN itself
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        # take the write lock up front so two orders can't both read then deadlock upgrading
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def make_sessionmaker(bind) -> async_sessionmaker:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = make_engine()
AsyncSessionLocal = make_sessionmaker(engine)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def init_db(bind=None):
    # models must be imported so their tables are registered on Base.metadata
    import models  # noqa: F401

    bind = bind or engine
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready")
