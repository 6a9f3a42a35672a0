"""Generic async repository with soft-deactivation and pagination."""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scan2go.core.clock import now_utc
from scan2go.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD repository.

    Soft-deletes: models with an `is_active` flag are deactivated, never
    removed. Hard-delete is intentionally never exposed.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        self._session = session

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _base_query(self):
        return select(self.model)

    @staticmethod
    def _apply_filters(q, model, filters: dict[str, Any] | None):
        # Simple equality filters; None means "don't filter"
        if filters:
            for col_name, value in filters.items():
                if value is not None and hasattr(model, col_name):
                    q = q.where(getattr(model, col_name) == value)
        return q

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_by_id(self, entity_id: str) -> ModelT | None:
        result = await self._session.execute(
            self._base_query().where(self.model.id == entity_id)
        )
        return result.scalars().first()

    async def count(self, filters: dict[str, Any] | None = None) -> int:
        q = self._apply_filters(select(func.count()).select_from(self.model), self.model, filters)
        return (await self._session.execute(q)).scalar_one()

    async def list(
        self,
        *,
        offset: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order: str = "desc",
        filters: dict[str, Any] | None = None,
        where: tuple = (),
    ) -> tuple[list[ModelT], int]:
        """Return (items, total_count) with pagination and optional column filters."""
        q = self._apply_filters(self._base_query(), self.model, filters)
        for clause in where:
            q = q.where(clause)

        # Count
        count_q = select(func.count()).select_from(q.subquery())
        total = (await self._session.execute(count_q)).scalar_one()

        # Order + paginate
        col = getattr(self.model, order_by, None)
        if col is not None:
            q = q.order_by(col.desc() if order == "desc" else col.asc())
        q = q.offset(offset).limit(limit)

        items = (await self._session.execute(q)).scalars().all()
        return list(items), total

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def create(self, **kwargs: Any) -> ModelT:
        instance = self.model(**kwargs)
        self._session.add(instance)
        await self._session.flush()  # populate id, surface constraint violations
        await self._session.refresh(instance)
        return instance

    async def update(self, entity_id: str, **kwargs: Any) -> ModelT | None:
        kwargs.pop("id", None)
        if "updated_at" not in kwargs and hasattr(self.model, "updated_at"):
            kwargs["updated_at"] = now_utc()

        await self._session.execute(
            update(self.model)
            .where(self.model.id == entity_id)
            .values(**kwargs)
            .execution_options(synchronize_session="fetch")
        )
        await self._session.flush()
        instance = await self.get_by_id(entity_id)
        if instance is not None:
            await self._session.refresh(instance)
        return instance

    async def deactivate_many(self, entity_ids: list[str]) -> int:
        if not entity_ids:
            return 0
        return await self._deactivate_where(self.model.id.in_(entity_ids))

    async def _deactivate_where(self, *criteria) -> int:
        """Flip `is_active` off for matching active rows; returns how many changed."""
        ids_q = select(self.model.id).where(self.model.is_active.is_(True))
        for clause in criteria:
            ids_q = ids_q.where(clause)
        ids = list((await self._session.execute(ids_q)).scalars().all())
        if not ids:
            return 0
        await self._session.execute(
            update(self.model)
            .where(self.model.id.in_(ids))
            .values(is_active=False, updated_at=now_utc())
            .execution_options(synchronize_session=False)
        )
        await self._session.flush()
        return len(ids)
