"""Tests for the CSV import endpoints.

The request session is swapped for one bound to the in-memory SQLite
engine from conftest.
"""
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select

from csv_importer.db.session import get_session
from csv_importer.main import app
from csv_importer.models.contact import Contact
from csv_importer.services.errors import ImportAbortedError


# ─── Helpers ──────────────────────────────────────────────────────────────────

def make_session_override(session_factory):
    async def _override():
        async with session_factory() as session:
            yield session
    return _override


async def _post_csv(path: str, body: bytes, **params):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(
            path,
            params=params,
            files={"file": ("contacts.csv", body, "text/csv")},
        )


@pytest.fixture
def override_session(session_factory):
    app.dependency_overrides[get_session] = make_session_override(session_factory)
    yield
    app.dependency_overrides.clear()


# ─── GET /api/v1/import ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_targets_includes_contacts():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/import")
    assert response.status_code == 200
    assert "contacts" in response.json()["targets"]


# ─── POST /api/v1/import/{target} ────────────────────────────────────────────

@pytest.mark.asyncio
async def test_import_contacts_persists_rows(override_session, session_factory):
    response = await _post_csv(
        "/api/v1/import/contacts",
        b"Id,Name,Email\n1,John,john@x.com\n2,Jane,jane@x.com",
    )

    assert response.status_code == 200
    assert response.json() == {"succeeded": True, "errors": []}

    async with session_factory() as session:
        contacts = (await session.execute(select(Contact).order_by(Contact.id))).scalars().all()
    assert [c.name for c in contacts] == ["John", "Jane"]
    assert {c.source for c in contacts} == {"contacts.csv"}


@pytest.mark.asyncio
async def test_import_reports_row_errors(override_session, count_contacts):
    response = await _post_csv(
        "/api/v1/import/contacts",
        b"Id,Name,Email\n1,John,john@x.com\nabc,Jane,jane@x.com",
    )

    assert response.status_code == 200
    body = response.json()
    assert body["succeeded"] is False
    assert body["errors"] == [{"row": 2, "description": "Invalid format detected."}]
    assert await count_contacts() == 0


@pytest.mark.asyncio
async def test_validate_only_query_param(override_session, count_contacts):
    response = await _post_csv(
        "/api/v1/import/contacts",
        b"Id,Name,Email\n1,John,john@x.com",
        validate_only="true",
    )

    assert response.json()["succeeded"] is True
    assert await count_contacts() == 0


@pytest.mark.asyncio
async def test_unknown_target_returns_404(override_session):
    response = await _post_csv("/api/v1/import/invoices", b"Id\n1")
    assert response.status_code == 404
    assert "invoices" in response.json()["detail"]


@pytest.mark.asyncio
async def test_aborted_import_returns_500(override_session):
    with patch(
        "csv_importer.services.importer.CsvImporter.process_csv",
        new=AsyncMock(side_effect=ImportAbortedError("CSV import failed: db down")),
    ):
        response = await _post_csv("/api/v1/import/contacts", b"Id,Name,Email\n1,John,john@x.com")

    assert response.status_code == 500
    assert response.json() == {"detail": "CSV import could not complete."}
