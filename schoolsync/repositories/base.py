"""Tenant-scoped repository.

Every read and write of a tenant-owned table goes through
``TenantScopedRepository``. The tenant predicate comes from the resolved
request context and is always the first clause of a query; caller filters
are added on top of it and cannot remove it.
"""

import logging
import uuid
from typing import Any, Generic, Sequence, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolsync.exceptions import ConflictException, NotFoundException
from schoolsync.models.base import Base, utcnow
from schoolsync.utils.tenant_context import get_tenant_id

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

# Columns callers may never set through create/update
_PROTECTED_FIELDS = ("id", "tenant_id", "created_at", "updated_at", "deleted_at")


class TenantScopedRepository(Generic[ModelT]):
    """Generic list/get/create/update/soft-delete for one tenant-owned model."""

    def __init__(self, model: type[ModelT], resource_name: str | None = None):
        self.model = model
        self.resource_name = resource_name or model.__name__

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model, "deleted_at")

    # === Queries ===

    def query(self, *filters: Any, include_deleted: bool = False) -> Select:
        """Build a SELECT already restricted to the current tenant."""
        stmt = select(self.model).where(self.model.tenant_id == get_tenant_id())
        if self.soft_deletes and not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        if filters:
            stmt = stmt.where(*filters)
        return stmt

    async def paginate(
        self,
        db: AsyncSession,
        *filters: Any,
        search: str | None = None,
        search_fields: Sequence[str] = (),
        order_by: Sequence[Any] | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[ModelT], int]:
        """List rows of the current tenant with optional filters and search.

        Returns:
            Tuple of (rows for the page, total matching rows)
        """
        query = self.query(*filters)
        if search and search_fields:
            search_term = f"%{search}%"
            query = query.where(
                or_(*(getattr(self.model, field).ilike(search_term) for field in search_fields))
            )

        count_query = select(func.count()).select_from(query.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        if order_by is None:
            order_by = (self.model.created_at.desc(),)
        query = query.order_by(*order_by).offset((page - 1) * page_size).limit(page_size)

        result = await db.execute(query)
        return list(result.scalars().unique().all()), total

    async def all(self, db: AsyncSession, *filters: Any, order_by: Sequence[Any] = ()) -> list[ModelT]:
        query = self.query(*filters)
        if order_by:
            query = query.order_by(*order_by)
        result = await db.execute(query)
        return list(result.scalars().unique().all())

    async def count(self, db: AsyncSession, *filters: Any) -> int:
        count_query = select(func.count()).select_from(self.query(*filters).subquery())
        return (await db.execute(count_query)).scalar() or 0

    async def exists(self, db: AsyncSession, *filters: Any) -> bool:
        return await self.count(db, *filters) > 0

    async def get_or_none(
        self,
        db: AsyncSession,
        entity_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> ModelT | None:
        query = self.query(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def get(
        self,
        db: AsyncSession,
        entity_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> ModelT:
        """Get a row of the current tenant by id.

        Raises:
            NotFoundException: If the row is missing, deleted, or owned by another tenant
        """
        entity = await self.get_or_none(db, entity_id, for_update=for_update)
        if entity is None:
            raise NotFoundException(self.resource_name)
        return entity

    # === Writes ===

    async def create(
        self,
        db: AsyncSession,
        *,
        conflict_message: str | None = None,
        **values: Any,
    ) -> ModelT:
        """Insert a row owned by the current tenant.

        Any tenant_id passed by the caller is discarded.
        """
        for field in _PROTECTED_FIELDS:
            values.pop(field, None)
        entity = self.model(tenant_id=get_tenant_id(), **values)
        db.add(entity)
        await self.flush(db, conflict_message)
        return entity

    async def update(
        self,
        db: AsyncSession,
        entity: ModelT,
        *,
        conflict_message: str | None = None,
        **values: Any,
    ) -> ModelT:
        """Update a row of the current tenant. tenant_id cannot be changed."""
        self._ensure_owned(entity)
        for field in _PROTECTED_FIELDS:
            values.pop(field, None)
        for field, value in values.items():
            setattr(entity, field, value)
        await self.flush(db, conflict_message)
        return entity

    async def soft_delete(self, db: AsyncSession, entity: ModelT) -> None:
        """Soft-delete a row (hard delete for tables without deleted_at)."""
        self._ensure_owned(entity)
        if self.soft_deletes:
            entity.deleted_at = utcnow()
        else:
            await db.delete(entity)
        await db.flush()

    def _ensure_owned(self, entity: ModelT) -> None:
        if entity.tenant_id != get_tenant_id():
            raise NotFoundException(self.resource_name)

    async def flush(self, db: AsyncSession, conflict_message: str | None = None) -> None:
        """Flush pending writes, turning a unique-key race into a 409."""
        try:
            await db.flush()
        except IntegrityError as exc:
            logger.info(f"Integrity error on {self.model.__tablename__}: {exc.orig}")
            raise ConflictException(
                conflict_message or f"{self.resource_name} conflicts with an existing record"
            ) from exc

