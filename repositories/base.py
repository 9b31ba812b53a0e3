"""
Shared async data access for table-per-repository classes.
Uses centralized async database connection.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Type
from sqlalchemy import select, delete, inspect
from sqlalchemy.sql import func
from connections.postgres_connection import DatabaseConnection
from core.settings import settings
from models.base import Base

logger = logging.getLogger(__name__)


def row_to_dict(instance: Base) -> Dict[str, Any]:
    """Mapped attributes of an ORM instance, keyed by attribute name."""
    return {
        attr.key: getattr(instance, attr.key)
        for attr in inspect(instance).mapper.column_attrs
    }


class BaseRepository:
    """Async CRUD for a single mapped table."""

    model: Type[Base] = None

    def __init__(self, model: Optional[Type[Base]] = None):
        if model is not None:
            self.model = model
        self.AsyncSessionLocal = DatabaseConnection.get_async_session_factory()

    @property
    def columns(self) -> List[str]:
        return [attr.key for attr in inspect(self.model).column_attrs]

    def _clean(self, data: Dict[str, Any]) -> Dict[str, Any]:
        allowed = set(self.columns) - {"id", "created_at", "updated_at"}
        return {key: value for key, value in data.items() if key in allowed}

    async def fetch_all(self, chunk_size: Optional[int] = None) -> List[Dict[str, Any]]:
        """Read every row in fixed-size pages until a short page comes back."""
        chunk_size = chunk_size or settings.FETCH_CHUNK_SIZE
        rows: List[Dict[str, Any]] = []
        offset = 0

        async with self.AsyncSessionLocal() as session:
            while True:
                result = await session.execute(
                    select(self.model).order_by(self.model.id).offset(offset).limit(chunk_size)
                )
                page = result.scalars().all()
                rows.extend(row_to_dict(item) for item in page)
                if len(page) < chunk_size:
                    break
                offset += chunk_size

        logger.info(f"Fetched {len(rows)} rows from {self.model.__tablename__}")
        return rows

    async def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        async with self.AsyncSessionLocal() as session:
            instance = await session.get(self.model, record_id)
            return row_to_dict(instance) if instance else None

    async def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.AsyncSessionLocal() as session:
            instance = self.model(**self._clean(data))
            session.add(instance)
            await session.commit()
            await session.refresh(instance)
            return row_to_dict(instance)

    async def insert_batch(self, items: Sequence[Dict[str, Any]]) -> int:
        """Insert rows in one transaction; returns the number inserted."""
        if not items:
            return 0

        async with self.AsyncSessionLocal() as session:
            session.add_all([self.model(**self._clean(item)) for item in items])
            await session.commit()

        logger.info(f"Inserted {len(items)} rows into {self.model.__tablename__}")
        return len(items)

    async def update(self, record_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        async with self.AsyncSessionLocal() as session:
            instance = await session.get(self.model, record_id)
            if instance is None:
                return None
            for key, value in self._clean(data).items():
                setattr(instance, key, value)
            instance.updated_at = func.now()
            await session.commit()
            await session.refresh(instance)
            return row_to_dict(instance)

    async def delete(self, record_id: str) -> bool:
        async with self.AsyncSessionLocal() as session:
            result = await session.execute(
                delete(self.model).where(self.model.id == record_id)
            )
            await session.commit()
            return result.rowcount > 0

    async def delete_many(self, record_ids: Iterable[str]) -> int:
        ids = list(record_ids)
        if not ids:
            return 0

        async with self.AsyncSessionLocal() as session:
            result = await session.execute(
                delete(self.model).where(self.model.id.in_(ids))
            )
            await session.commit()
            return result.rowcount
