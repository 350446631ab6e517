# app/services/store/record_store.py
"""
Generic async data access over the SQLAlchemy models.

Filters are keyword arguments. A bare field name means equality; a double
underscore suffix picks another predicate:

    store.find_many(Booking, staff_id=staff.id,
                    status__notin=["cancelled", "no_show"],
                    scheduled_at__gte=start, scheduled_at__lt=end)

Supported suffixes: ne, gt, gte, lt, lte, in, notin, isnull (True = unset,
False = set).
"""
import logging
import uuid
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

_OPERATORS = {
    "eq": lambda column, value: column == value,
    "ne": lambda column, value: column != value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
    "in": lambda column, value: column.in_(list(value)),
    "notin": lambda column, value: column.notin_(list(value)),
    "isnull": lambda column, value: column.is_(None) if value else column.isnot(None),
}


def build_conditions(model, filters: Dict[str, Any]) -> list:
    """Translate keyword filters into SQLAlchemy column expressions"""
    conditions = []
    for key, value in filters.items():
        field, _, op = key.partition("__")
        op = op or "eq"
        if op not in _OPERATORS:
            raise ValueError(f"Unsupported filter operator {op!r} in {key!r}")
        column = getattr(model, field, None)
        if column is None:
            raise ValueError(f"{model.__name__} has no field {field!r}")
        conditions.append(_OPERATORS[op](column, value))
    return conditions


class RecordStore:
    """findOne / findMany / create / update / bulkUpdate over one AsyncSession"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_one(self, model: Type[ModelT], record_id, **filters) -> Optional[ModelT]:
        """Record by primary key, None if absent or if the extra filters do not match"""
        if record_id is None:
            return None
        if isinstance(record_id, str):
            try:
                record_id = uuid.UUID(record_id)
            except ValueError:
                return None
        query = select(model).where(model.id == record_id, *build_conditions(model, filters))
        result = await self.db.execute(query)
        return result.scalars().first()

    async def find_first(
            self,
            model: Type[ModelT],
            order_by: Optional[Sequence] = None,
            **filters
    ) -> Optional[ModelT]:
        records = await self.find_many(model, order_by=order_by, limit=1, **filters)
        return records[0] if records else None

    async def find_many(
            self,
            model: Type[ModelT],
            order_by: Optional[Sequence] = None,
            limit: Optional[int] = None,
            **filters
    ) -> List[ModelT]:
        query = select(model).where(*build_conditions(model, filters))
        if order_by is not None:
            query = query.order_by(*order_by)
        if limit:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create(self, model: Type[ModelT], **values) -> ModelT:
        """Insert and commit; an IntegrityError is rolled back and re-raised"""
        record = model(**values)
        self.db.add(record)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        await self.db.refresh(record)
        return record

    async def update(self, record: ModelT, **values) -> ModelT:
        for field, value in values.items():
            setattr(record, field, value)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
        await self.db.refresh(record)
        return record

    async def bulk_update(self, model, values: Dict[str, Any], **filters) -> int:
        """UPDATE ... WHERE <filters>; returns the number of rows touched"""
        query = update(model).where(*build_conditions(model, filters)).values(**values)
        result = await self.db.execute(query.execution_options(synchronize_session="fetch"))
        await self.db.commit()
        return result.rowcount

    async def delete_many(self, model, **filters) -> int:
        result = await self.db.execute(delete(model).where(*build_conditions(model, filters)))
        await self.db.commit()
        return result.rowcount

    async def replace_all(self, model, records: List[Dict[str, Any]], commit: bool = True, **filters) -> List:
        """
        Delete the rows matching `filters` and insert `records`.

        With commit=False the changes are only flushed, so several replacements
        can share one transaction closed by commit().
        """
        await self.db.execute(delete(model).where(*build_conditions(model, filters)))
        created = [model(**values) for values in records]
        self.db.add_all(created)
        try:
            if commit:
                await self.db.commit()
            else:
                await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise
        logger.debug(f"Replaced {model.__name__} rows matching {filters} with {len(created)} new rows")
        return created

    async def commit(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise
