from typing import Dict, Iterable, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from guestbook.core.enums import MediaBundle
from guestbook.models.media import MediaFile

class MediaRepository:
    async def create(
        self,
        db: AsyncSession,
        bundle: MediaBundle,
        filename: str,
        content_type: Optional[str],
        size: int,
        path: str,
    ) -> MediaFile:
        db_obj = MediaFile(bundle=bundle, filename=filename, content_type=content_type, size=size, path=path)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get(self, db: AsyncSession, media_id: int) -> Optional[MediaFile]:
        result = await db.execute(select(MediaFile).where(MediaFile.id == media_id))
        return result.scalars().first()

    async def get_many(self, db: AsyncSession, media_ids: Iterable[int]) -> Dict[int, MediaFile]:
        ids = [i for i in media_ids if i is not None]
        if not ids:
            return {}
        result = await db.execute(select(MediaFile).where(MediaFile.id.in_(ids)))
        return {m.id: m for m in result.scalars().all()}

media_repo = MediaRepository()
