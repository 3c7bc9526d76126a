"""HTTP surface: auth wiring, permission gates and downloads."""
import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from tests.conftest import make_profile
from wms.core.database import get_db
from wms.core.security import get_current_user_token
from wms.main import app
from wms.rbac import dependencies
from wms.rbac.roles import UserRole
from wms.services import message_service, report_service


@pytest.fixture
async def client(db):
    async def _db():
        yield db

    app.dependency_overrides[get_db] = _db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def login(monkeypatch):
    """Authenticate every request as `profile`."""

    def _login(profile):
        app.dependency_overrides[get_current_user_token] = lambda: {"sub": str(profile.id)}
        monkeypatch.setattr(dependencies, "_load_profile_with_permissions", AsyncMock(return_value=profile))
        return profile

    return _login


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200


async def test_missing_token_is_unauthorized(client):
    response = await client.get("/api/messages/unread-count")
    assert response.status_code == 401


async def test_client_cannot_browse_locations(client, login, company_id):
    login(make_profile(UserRole.CLIENT_USER, company_id))
    response = await client.get("/api/locations/zones")
    assert response.status_code == 403
    assert response.json()["detail"] == "Insufficient permissions"


async def test_unread_count(client, login, monkeypatch, company_id):
    profile = login(make_profile(UserRole.CLIENT_USER, company_id))
    counter = AsyncMock(return_value=3)
    monkeypatch.setattr(message_service, "unread_count", counter)

    response = await client.get("/api/messages/unread-count")

    assert response.status_code == 200
    assert response.json() == {"count": 3}
    scope = counter.await_args.args[1]
    assert scope.company_id == company_id
    assert counter.await_args.args[0] is profile


async def test_product_list_download(client, login, monkeypatch, company_id):
    login(make_profile(UserRole.CLIENT, company_id))
    export = report_service.ExportFile("products_20250301.pdf", "application/pdf", b"%PDF-1.4 stub")
    monkeypatch.setattr(report_service, "product_list", AsyncMock(return_value=export))

    response = await client.get("/api/reports/products/pdf")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.headers["content-disposition"] == "attachment; filename=products_20250301.pdf"
    assert response.content == b"%PDF-1.4 stub"


async def test_client_cannot_ask_for_another_company(client, login, company_id):
    login(make_profile(UserRole.CLIENT, company_id))
    response = await client.get("/api/reports/products/pdf", params={"company_id": str(uuid.uuid4())})
    assert response.status_code == 403


async def test_cors_preflight_allows_the_frontend(client):
    response = await client.options(
        "/api/auth/login",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
