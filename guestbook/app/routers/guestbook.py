from typing import Optional
from fastapi import APIRouter, Depends, File, Query, Request, Response, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from guestbook.core.config import settings
from guestbook.core.database import get_db
from guestbook.core.enums import SubmissionStatus
from guestbook.core.exceptions import EntryNotFoundError, StorageError, ValidationFailedError
from guestbook.core.rate_limit_config import get_rate_limiter
from guestbook.schemas.guestbook import (
    FieldCheckResponse,
    FieldValidationRequest,
    FieldValidationResponse,
    GuestbookCountResponse,
    GuestbookCreate,
    GuestbookDeleteResponse,
    GuestbookEntryResponse,
    GuestbookPageResponse,
    GuestbookUpdate,
)
from guestbook.schemas.media import MediaResponse
from guestbook.services.guestbook_service import (
    SubmissionResult,
    count_entries,
    delete_entry,
    get_entry,
    list_entries,
    submit_entry,
    update_entry,
)
from guestbook.services.media_service import get_media, parse_bundle, store_upload
from guestbook.services.validation import check_fields

router = APIRouter(prefix="/guestbook", tags=["guestbook"])

# Listings depend on who is looking (edit/delete links) and must not be cached
NO_CACHE_HEADERS = {"Cache-Control": "private, no-store", "Vary": "Cookie"}

def _raise_for(result: SubmissionResult):
    if result.status == SubmissionStatus.VALIDATION_FAILED:
        raise ValidationFailedError(result.errors, result.message)
    if result.status == SubmissionStatus.NOT_FOUND:
        raise EntryNotFoundError(message=result.message)
    if result.status == SubmissionStatus.STORAGE_ERROR:
        raise StorageError(result.message)

@router.get("", response_model=GuestbookPageResponse, dependencies=[Depends(get_rate_limiter("/guestbook"))])
async def list_guestbook_entries(
    request: Request,
    response: Response,
    page: int = 0,
    page_size: Optional[int] = Query(None, ge=1, le=settings.GUESTBOOK_MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db)
):
    """
    Entries newest first. A page outside the valid range is redirected to
    the nearest valid page (or served clamped when redirects are disabled).
    """
    result = await list_entries(db, page, page_size)
    if result.clamped and settings.GUESTBOOK_REDIRECT_OUT_OF_RANGE:
        url = request.url.include_query_params(page=result.page)
        return RedirectResponse(str(url), status_code=302, headers=NO_CACHE_HEADERS)

    for key, value in NO_CACHE_HEADERS.items():
        response.headers[key] = value
    return result

@router.get("/count", response_model=GuestbookCountResponse, dependencies=[Depends(get_rate_limiter("/guestbook/count"))])
async def count_guestbook_entries(db: AsyncSession = Depends(get_db)):
    return GuestbookCountResponse(count=await count_entries(db))

@router.post("/validate", response_model=FieldValidationResponse, dependencies=[Depends(get_rate_limiter("/guestbook/validate"))])
async def validate_guestbook_fields(payload: FieldValidationRequest):
    """
    Per-field feedback for interactive forms. Only the fields present in the
    body are checked; nothing is stored.
    """
    results = check_fields(payload.model_dump(exclude_unset=True))
    return {name: FieldCheckResponse(valid=r.valid, message=r.message) for name, r in results.items()}

@router.post("/media/{bundle}", response_model=MediaResponse, status_code=201, dependencies=[Depends(get_rate_limiter("/guestbook/media/{bundle}"))])
async def upload_guestbook_media(
    bundle: str,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db)
):
    """Upload an avatar or review image; reference the returned id in a submission."""
    return await store_upload(db, parse_bundle(bundle), file)

@router.get("/media/{media_id}", response_model=MediaResponse)
async def get_guestbook_media(media_id: int, db: AsyncSession = Depends(get_db)):
    return await get_media(db, media_id)

@router.post("", response_model=GuestbookEntryResponse, status_code=201, dependencies=[Depends(get_rate_limiter("/guestbook/submit"))])
async def create_guestbook_entry(payload: GuestbookCreate, db: AsyncSession = Depends(get_db)):
    result = await submit_entry(db, payload.model_dump())
    _raise_for(result)
    return result.entry

@router.get("/{entry_id}", response_model=GuestbookEntryResponse, dependencies=[Depends(get_rate_limiter("/guestbook/{entry_id}"))])
async def get_guestbook_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    entry = await get_entry(db, entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    return entry

@router.patch("/{entry_id}", response_model=GuestbookEntryResponse, dependencies=[Depends(get_rate_limiter("/guestbook/{entry_id}/update"))])
async def update_guestbook_entry(entry_id: int, payload: GuestbookUpdate, db: AsyncSession = Depends(get_db)):
    result = await update_entry(db, entry_id, payload.model_dump(exclude_unset=True))
    _raise_for(result)
    return result.entry

@router.delete("/{entry_id}", response_model=GuestbookDeleteResponse, dependencies=[Depends(get_rate_limiter("/guestbook/{entry_id}/delete"))])
async def delete_guestbook_entry(entry_id: int, db: AsyncSession = Depends(get_db)):
    """Deleting an id that does not exist is not an error; `deleted` is simply false."""
    deleted = await delete_entry(db, entry_id)
    if deleted:
        return GuestbookDeleteResponse(deleted=True, message="The guestbook entry has been deleted.")
    return GuestbookDeleteResponse(deleted=False, message=f"Guestbook entry {entry_id} not found")
