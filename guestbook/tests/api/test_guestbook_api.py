import pytest
from unittest.mock import AsyncMock, patch
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from guestbook.core.config import settings
from guestbook.models import GuestbookEntry
from guestbook.repository.guestbook import guestbook_repo


@pytest.mark.asyncio
async def test_guestbook_entry_lifecycle(client: AsyncClient, db_session, valid_fields):
    """
    Submit -> Get -> List -> Update -> Delete -> Delete Again
    """
    # 1. Submit
    response = await client.post("/api/v1/guestbook", json=valid_fields)
    assert response.status_code == 201
    entry = response.json()
    entry_id = entry["id"]
    assert entry["name"] == valid_fields["name"]
    assert entry["avatar_media_id"] is None

    # Verify DB
    stored = (await db_session.execute(select(GuestbookEntry).where(GuestbookEntry.id == entry_id))).scalars().first()
    assert stored is not None

    # 2. Get
    response = await client.get(f"/api/v1/guestbook/{entry_id}")
    assert response.status_code == 200
    assert response.json()["email"] == valid_fields["email"]

    # 3. List
    response = await client.get("/api/v1/guestbook")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["id"] == entry_id

    # 4. Partial update
    response = await client.patch(f"/api/v1/guestbook/{entry_id}", json={"phone": "7000000001"})
    assert response.status_code == 200
    assert response.json()["phone"] == "7000000001"
    assert response.json()["message"] == valid_fields["message"]

    # 5. Delete
    response = await client.delete(f"/api/v1/guestbook/{entry_id}")
    assert response.status_code == 200
    assert response.json()["deleted"] is True

    # 6. Delete again is not an error
    response = await client.delete(f"/api/v1/guestbook/{entry_id}")
    assert response.status_code == 200
    assert response.json()["deleted"] is False

    response = await client.get(f"/api/v1/guestbook/{entry_id}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_submit_validation_errors(client: AsyncClient, db_session):
    response = await client.post("/api/v1/guestbook", json={
        "name": "A",
        "email": "not-an-email",
        "phone": "12345",
        "message": "",
    })
    assert response.status_code == 422
    body = response.json()
    assert set(body["errors"]) == {"name", "email", "phone", "message", "review"}
    assert body["errors"]["name"] == "The name must be at least 2 characters long."

    count = (await client.get("/api/v1/guestbook/count")).json()["count"]
    assert count == 0


@pytest.mark.asyncio
async def test_update_errors(client: AsyncClient, valid_fields):
    response = await client.patch("/api/v1/guestbook/999", json={"phone": "9123456789"})
    assert response.status_code == 404

    entry_id = (await client.post("/api/v1/guestbook", json=valid_fields)).json()["id"]
    response = await client.patch(f"/api/v1/guestbook/{entry_id}", json={"phone": "6123456789"})
    assert response.status_code == 422
    assert set(response.json()["errors"]) == {"phone"}


@pytest.mark.asyncio
async def test_storage_error_is_generic(client: AsyncClient, valid_fields):
    with patch.object(guestbook_repo, "create", new_callable=AsyncMock) as mock_create:
        mock_create.side_effect = OperationalError("INSERT", {}, Exception("connection refused on 10.0.0.5"))
        response = await client.post("/api/v1/guestbook", json=valid_fields)

    assert response.status_code == 500
    detail = response.json()["detail"]
    assert detail == "An error occurred while saving your entry. Please try again later."
    assert "10.0.0.5" not in response.text


@pytest.mark.asyncio
async def test_delete_storage_error_is_generic(client: AsyncClient):
    with patch.object(guestbook_repo, "delete", new_callable=AsyncMock) as mock_delete:
        mock_delete.side_effect = OperationalError("DELETE", {}, Exception("database is locked"))
        response = await client.delete("/api/v1/guestbook/1")

    assert response.status_code == 500
    assert response.json()["detail"] == "Failed to delete the guestbook entry. Please try again later."
    assert "locked" not in response.text


@pytest.mark.asyncio
async def test_storage_error_notifies_admin(client: AsyncClient, valid_fields):
    with patch.object(guestbook_repo, "create", new_callable=AsyncMock) as mock_create, \
         patch("guestbook.app.exception_handlers.send_ntfy_notification", new_callable=AsyncMock) as mock_notify:
        mock_create.side_effect = OperationalError("INSERT", {}, Exception("boom"))
        await client.post("/api/v1/guestbook", json=valid_fields)

    mock_notify.assert_awaited_once()
    assert mock_notify.call_args.kwargs["priority"] == "high"


@pytest.mark.asyncio
async def test_listing_redirects_out_of_range_page(client: AsyncClient, seed_entries):
    await seed_entries(12)

    response = await client.get("/api/v1/guestbook", params={"page": 5, "page_size": 5})
    assert response.status_code == 302
    assert "page=2" in response.headers["location"]
    assert "page_size=5" in response.headers["location"]

    response = await client.get("/api/v1/guestbook", params={"page": -3, "page_size": 5})
    assert response.status_code == 302
    assert "page=0" in response.headers["location"]

    response = await client.get("/api/v1/guestbook", params={"page": 2, "page_size": 5})
    assert response.status_code == 200
    assert len(response.json()["items"]) == 2


@pytest.mark.asyncio
async def test_listing_serves_clamped_page_without_redirect(client: AsyncClient, seed_entries):
    await seed_entries(12)
    with patch.object(settings, "GUESTBOOK_REDIRECT_OUT_OF_RANGE", False):
        response = await client.get("/api/v1/guestbook", params={"page": 5})

    assert response.status_code == 200
    data = response.json()
    assert data["page"] == 2
    assert data["requested_page"] == 5
    assert data["page_size"] == settings.GUESTBOOK_PAGE_SIZE
    assert len(data["items"]) == 2


@pytest.mark.asyncio
async def test_listing_is_not_cacheable(client: AsyncClient):
    response = await client.get("/api/v1/guestbook")
    assert response.status_code == 200
    assert response.headers["cache-control"] == "private, no-store"
    assert response.json()["items"] == []


@pytest.mark.asyncio
async def test_page_size_bounds(client: AsyncClient):
    response = await client.get("/api/v1/guestbook", params={"page_size": 0})
    assert response.status_code == 422
    response = await client.get("/api/v1/guestbook", params={"page_size": settings.GUESTBOOK_MAX_PAGE_SIZE + 1})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_field_validation_feedback(client: AsyncClient):
    response = await client.post("/api/v1/guestbook/validate", json={"name": "Jo", "email": "jo@"})
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"name", "email"}
    assert data["name"] == {"valid": True, "message": "The name is valid."}
    assert data["email"]["valid"] is False
