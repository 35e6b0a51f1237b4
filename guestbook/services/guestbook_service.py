import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from prometheus_client import Counter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from guestbook.core.config import settings
from guestbook.core.enums import SubmissionStatus
from guestbook.core.exceptions import StorageError
from guestbook.models.guestbook import GuestbookEntry
from guestbook.models.media import MediaFile
from guestbook.repository.guestbook import guestbook_repo, UPDATABLE_FIELDS
from guestbook.repository.media import media_repo
from guestbook.schemas.guestbook import GuestbookEntryResponse, GuestbookPageResponse
from guestbook.services.common.pagination import clamp_page, get_last_page, page_offset
from guestbook.services.validation import IMAGE_RULES, validate

logger = logging.getLogger(__name__)

SUBMISSION_COUNTER = Counter(
    'guestbook_submissions_total',
    'Guestbook write attempts by operation and outcome',
    ['operation', 'outcome'],
)

MEDIA_LABELS = {"avatar_media_id": "avatar", "review_image_media_id": "review image"}

MSG_INVALID = "Please correct the errors below."
MSG_SAVE_FAILED = "An error occurred while saving your entry. Please try again later."
MSG_UPDATE_FAILED = "Failed to update the guestbook entry. Please try again later."
MSG_DELETE_FAILED = "Failed to delete the guestbook entry. Please try again later."


@dataclass
class SubmissionResult:
    status: SubmissionStatus
    entry: Optional[GuestbookEntry] = None
    errors: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.OK

    @property
    def entry_id(self) -> Optional[int]:
        return self.entry.id if self.entry is not None else None


def _record(operation: str, result: SubmissionResult) -> SubmissionResult:
    SUBMISSION_COUNTER.labels(operation=operation, outcome=result.status.value).inc()
    return result


def _clean(fields: Mapping[str, Any]) -> Dict[str, Any]:
    values = {}
    for name in UPDATABLE_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if name == "name" and value is not None:
            value = str(value).strip()
        values[name] = value
    return values


async def _resolve_media(db: AsyncSession, fields: Mapping[str, Any]) -> Tuple[Dict[str, MediaFile], Dict[str, str]]:
    """Look up referenced images. Returns (field -> media, field -> error for unknown refs)."""
    refs = {name: fields.get(name) for name in IMAGE_RULES if fields.get(name) is not None}
    found = await media_repo.get_many(db, refs.values())
    media, errors = {}, {}
    for name, media_id in refs.items():
        if media_id in found:
            media[name] = found[media_id]
        else:
            errors[name] = f"The selected {MEDIA_LABELS[name]} could not be found."
    return media, errors


async def submit_entry(db: AsyncSession, raw_fields: Mapping[str, Any]) -> SubmissionResult:
    """
    Validates every field and persists a new entry when all of them pass.
    Exactly one row is written on success, none otherwise.
    """
    try:
        media, errors = await _resolve_media(db, raw_fields)
        errors = {**validate(raw_fields, media), **errors}
        if errors:
            logger.info(f"Guestbook submission rejected, invalid fields: {sorted(errors)}")
            return _record("submit", SubmissionResult(SubmissionStatus.VALIDATION_FAILED, errors=errors, message=MSG_INVALID))

        values = {name: None for name in UPDATABLE_FIELDS}
        values.update(_clean(raw_fields))
        values["created_at"] = datetime.now(timezone.utc)
        entry = await guestbook_repo.create(db, values)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error saving guestbook entry (operation=submit): {e}", exc_info=True)
        return _record("submit", SubmissionResult(SubmissionStatus.STORAGE_ERROR, message=MSG_SAVE_FAILED))

    logger.info(f"Guestbook entry {entry.id} created")
    return _record("submit", SubmissionResult(SubmissionStatus.OK, entry=entry, message=f"{entry.name}, your entry has been saved."))


async def update_entry(db: AsyncSession, entry_id: int, raw_fields: Mapping[str, Any]) -> SubmissionResult:
    """
    Partial update. Only supplied, whitelisted fields are validated and written;
    None on an image reference clears it.
    """
    fields = {name: value for name, value in raw_fields.items() if name in UPDATABLE_FIELDS}
    try:
        media, errors = await _resolve_media(db, fields)
        errors = {**validate(fields, media, partial=True), **errors}
        if errors:
            logger.info(f"Update of guestbook entry {entry_id} rejected, invalid fields: {sorted(errors)}")
            return _record("update", SubmissionResult(SubmissionStatus.VALIDATION_FAILED, errors=errors, message=MSG_INVALID))

        entry = await guestbook_repo.update(db, entry_id, _clean(fields))
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to update guestbook entry with ID {entry_id}. Error: {e}", exc_info=True)
        return _record("update", SubmissionResult(SubmissionStatus.STORAGE_ERROR, message=MSG_UPDATE_FAILED))

    if entry is None:
        return _record("update", SubmissionResult(SubmissionStatus.NOT_FOUND, message=f"Guestbook entry {entry_id} not found"))

    logger.info(f"Guestbook entry {entry_id} updated ({', '.join(sorted(fields)) or 'no fields'})")
    return _record("update", SubmissionResult(SubmissionStatus.OK, entry=entry, message="The guestbook entry has been updated."))


async def delete_entry(db: AsyncSession, entry_id: int) -> bool:
    """True when the entry existed and was removed, False when there was nothing to delete."""
    try:
        deleted = await guestbook_repo.delete(db, entry_id)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Failed to delete guestbook entry with ID {entry_id}. Error: {e}", exc_info=True)
        SUBMISSION_COUNTER.labels(operation="delete", outcome=SubmissionStatus.STORAGE_ERROR.value).inc()
        raise StorageError(MSG_DELETE_FAILED)

    outcome = SubmissionStatus.OK if deleted else SubmissionStatus.NOT_FOUND
    SUBMISSION_COUNTER.labels(operation="delete", outcome=outcome.value).inc()
    if deleted:
        logger.info(f"Guestbook entry {entry_id} deleted")
    return deleted


async def get_entry(db: AsyncSession, entry_id: int) -> Optional[GuestbookEntry]:
    return await guestbook_repo.load_by_id(db, entry_id)


async def count_entries(db: AsyncSession) -> int:
    return await guestbook_repo.count(db)


async def list_entries(db: AsyncSession, page: int = 0, page_size: Optional[int] = None) -> GuestbookPageResponse:
    """
    One page of entries, newest first. Out-of-range pages are clamped to the
    nearest valid page; the response reports both requested and served page.
    """
    if page_size is None:
        page_size = settings.GUESTBOOK_PAGE_SIZE

    total = await guestbook_repo.count(db)
    served = clamp_page(page, total, page_size)
    items = []
    if total:
        items = await guestbook_repo.query(db, limit=page_size, offset=page_offset(served, page_size))

    return GuestbookPageResponse(
        items=[GuestbookEntryResponse.model_validate(item) for item in items],
        page=served,
        requested_page=page,
        page_size=page_size,
        last_page=get_last_page(total, page_size),
        total=total,
    )
