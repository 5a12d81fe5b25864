"""Database Module with Result-based Error Handling

Async session management and the scoped query helpers every route uses
to load a user's records.
"""
from typing import AsyncIterator, TypeVar
from uuid import UUID as PyUUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator, CHAR
from sqlalchemy.dialects.postgresql import UUID as PG_UUID

from core.config import settings
from core.logging import db_logger
from core.errors import (
    AppError,
    Ok,
    Err,
    Result,
    not_found,
    DatabaseErrorMapper,
)

T = TypeVar("T")


class GUID(TypeDecorator):
    """Platform-agnostic GUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as CHAR(32).
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PG_UUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(32))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if dialect.name == "postgresql":
            return value
        if isinstance(value, PyUUID):
            return value.hex
        return PyUUID(value).hex

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if isinstance(value, PyUUID):
            return value
        return PyUUID(value)


engine_kwargs = {
    "echo": settings.LOG_SQL,
}

if "sqlite" not in settings.DATABASE_URL:
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
    })

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_kwargs
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

Base = declarative_base()

_db_mapper = DatabaseErrorMapper("database")
log = db_logger()


async def get_db() -> AsyncIterator[AsyncSession]:
    """Dependency that yields database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


async def fetch_owned(
    session: AsyncSession,
    model: type[T],
    id: PyUUID,
    user_id: PyUUID,
    entity_name: str | None = None,
    *,
    refresh: bool = False,
) -> Result[T, AppError]:
    """Fetch an entity by ID, scoped to its owner.

    Rows owned by someone else are reported exactly like missing rows.

    Returns:
        Ok(entity) if found and owned by ``user_id``
        Err(not_found) otherwise
        Err(db_error) on database failure
    """
    name = entity_name or model.__name__
    try:
        query = select(model).where(model.id == id, model.user_id == user_id)
        if refresh:
            query = query.execution_options(populate_existing=True)
        result = await session.execute(query)
        entity = result.scalar_one_or_none()
        if entity is None:
            return not_found(name, id, origin="database.fetch_owned")
        return Ok(entity)
    except SQLAlchemyError as e:
        return Err(_db_mapper.map_exception(e, entity=name, entity_id=id))


async def create_entity(
    session: AsyncSession,
    entity: T,
) -> Result[T, AppError]:
    """Add and commit an entity.

    Returns:
        Ok(entity) on success (with populated ID)
        Err(AppError) on failure
    """
    try:
        session.add(entity)
        await session.commit()
        await session.refresh(entity)
        return Ok(entity)
    except SQLAlchemyError as e:
        await session.rollback()
        log.warning("db_create_failed", entity=type(entity).__name__, error_type=type(e).__name__)
        return Err(_db_mapper.map_exception(e, entity=type(entity).__name__))


async def commit_entity(
    session: AsyncSession,
    entity: T,
) -> Result[T, AppError]:
    """Commit pending changes to an already-loaded entity.

    Returns:
        Ok(entity) on success
        Err(AppError) on failure, after rolling back
    """
    try:
        await session.commit()
        await session.refresh(entity)
        return Ok(entity)
    except SQLAlchemyError as e:
        await session.rollback()
        log.warning("db_commit_failed", entity=type(entity).__name__, error_type=type(e).__name__)
        return Err(_db_mapper.map_exception(e, entity=type(entity).__name__, entity_id=getattr(entity, "id", "unknown")))


async def delete_entity(
    session: AsyncSession,
    entity: T,
) -> Result[None, AppError]:
    """Delete an entity and commit."""
    try:
        await session.delete(entity)
        await session.commit()
        return Ok(None)
    except SQLAlchemyError as e:
        await session.rollback()
        return Err(_db_mapper.map_exception(e, entity=type(entity).__name__))
