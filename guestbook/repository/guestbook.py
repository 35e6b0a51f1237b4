from typing import Any, Dict, List, Optional, Sequence, Tuple
from sqlalchemy import select, func, asc, desc
from sqlalchemy.ext.asyncio import AsyncSession
from guestbook.models.guestbook import GuestbookEntry

# Default listing order: newest first, id breaks ties
DEFAULT_SORT: Sequence[Tuple[str, str]] = (("created_at", "DESC"), ("id", "DESC"))

# Fields a client may write on create or update. id and created_at are immutable.
UPDATABLE_FIELDS = frozenset({
    "name", "email", "phone", "message", "review",
    "avatar_media_id", "review_image_media_id",
})

def _column(field: str):
    column = GuestbookEntry.__table__.columns.get(field)
    if column is None:
        raise ValueError(f"Unknown guestbook field: {field}")
    return getattr(GuestbookEntry, field)

def _apply_conditions(stmt, conditions: Optional[Dict[str, Any]]):
    for field, value in (conditions or {}).items():
        col = _column(field)
        if isinstance(value, (list, tuple, set, frozenset)):
            stmt = stmt.where(col.in_(list(value)))
        else:
            stmt = stmt.where(col == value)
    return stmt

class GuestbookRepository:
    async def create(self, db: AsyncSession, fields: Dict[str, Any]) -> GuestbookEntry:
        db_obj = GuestbookEntry(**fields)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def load_by_id(self, db: AsyncSession, entry_id: int) -> Optional[GuestbookEntry]:
        result = await db.execute(
            select(GuestbookEntry).where(GuestbookEntry.id == entry_id)
        )
        return result.scalars().first()

    async def update(self, db: AsyncSession, entry_id: int, fields: Dict[str, Any]) -> Optional[GuestbookEntry]:
        obj = await self.load_by_id(db, entry_id)
        if obj is None:
            return None
        for field, value in fields.items():
            if field not in UPDATABLE_FIELDS:
                raise ValueError(f"Field cannot be updated: {field}")
            setattr(obj, field, value)
        await db.commit()
        await db.refresh(obj)
        return obj

    async def delete(self, db: AsyncSession, entry_id: int) -> bool:
        obj = await self.load_by_id(db, entry_id)
        if obj:
            await db.delete(obj)
            await db.commit()
            return True
        return False

    async def query(
        self,
        db: AsyncSession,
        conditions: Optional[Dict[str, Any]] = None,
        sort: Sequence[Tuple[str, str]] = DEFAULT_SORT,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[GuestbookEntry]:
        """
        Filtered, sorted listing.
        conditions: {field: value}; list values become an IN clause.
        sort: [(field, "ASC" | "DESC"), ...]
        """
        stmt = _apply_conditions(select(GuestbookEntry), conditions)
        for field, direction in sort:
            order = desc if direction.upper() == "DESC" else asc
            stmt = stmt.order_by(order(_column(field)))
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await db.execute(stmt)
        return list(result.scalars().all())

    async def count(self, db: AsyncSession, conditions: Optional[Dict[str, Any]] = None) -> int:
        stmt = _apply_conditions(select(func.count(GuestbookEntry.id)), conditions)
        result = await db.execute(stmt)
        return result.scalar_one()

guestbook_repo = GuestbookRepository()
