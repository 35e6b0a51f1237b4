import logging
import uuid
from pathlib import Path
from typing import Optional

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guestbook.core.config import settings
from guestbook.core.enums import MediaBundle
from guestbook.core.exceptions import InvalidMediaBundleError, MediaNotFoundError, StorageError, ValidationFailedError
from guestbook.models.media import MediaFile
from guestbook.repository.media import media_repo
from guestbook.services.validation import validate_upload

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

def max_size_for(bundle: MediaBundle) -> int:
    if bundle == MediaBundle.AVATAR:
        return settings.AVATAR_MAX_SIZE
    return settings.REVIEW_IMAGE_MAX_SIZE

def parse_bundle(bundle: str) -> MediaBundle:
    try:
        return MediaBundle(bundle)
    except ValueError:
        raise InvalidMediaBundleError(bundle)

def _write_file(target: Path, content: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)

async def _read_limited(upload: UploadFile, limit: int) -> bytes:
    """Reads at most limit + 1 bytes, enough to tell an oversized file apart."""
    chunks, total = [], 0
    while total <= limit:
        chunk = await upload.read(min(READ_CHUNK_SIZE, limit + 1 - total))
        if not chunk:
            break
        chunks.append(chunk)
        total += len(chunk)
    return b"".join(chunks)

async def store_upload(db: AsyncSession, bundle: MediaBundle, upload: UploadFile) -> MediaFile:
    """
    Validates an uploaded image against the bundle's limits, writes it under
    MEDIA_ROOT and records its metadata.

    A declared size over the limit is rejected before anything is read;
    otherwise the body is read in chunks and never past max size + 1 bytes.
    """
    filename = upload.filename or ""
    max_size = max_size_for(bundle)

    content = b""
    if upload.size is None or upload.size <= max_size:
        content = await _read_limited(upload, max_size)
    size = max(upload.size or 0, len(content))

    errors = validate_upload(filename, size, max_size)
    if errors:
        logger.info(f"Rejected {bundle.value} upload '{filename}': {len(errors)} problem(s)")
        raise ValidationFailedError({"file": " ".join(errors)})

    extension = filename.rsplit(".", 1)[-1].lower()
    relative_path = Path(bundle.value) / f"{uuid.uuid4().hex}.{extension}"
    target = Path(settings.MEDIA_ROOT) / relative_path
    await run_in_threadpool(_write_file, target, content)

    try:
        return await media_repo.create(
            db,
            bundle=bundle,
            filename=filename,
            content_type=upload.content_type,
            size=len(content),
            path=relative_path.as_posix(),
        )
    except SQLAlchemyError as e:
        await db.rollback()
        await run_in_threadpool(target.unlink, missing_ok=True)
        logger.error(f"Failed to record {bundle.value} upload '{filename}': {e}", exc_info=True)
        raise StorageError("An error occurred while saving your file. Please try again later.")

async def get_media(db: AsyncSession, media_id: int) -> MediaFile:
    media: Optional[MediaFile] = await media_repo.get(db, media_id)
    if media is None:
        raise MediaNotFoundError()
    return media
