import json
import os
import tempfile
import uuid

# Settings are cached at import time, so the environment must be ready first
_DB_DIR = tempfile.mkdtemp(prefix="geardesk-tests-")
os.environ["DEBUG"] = "true"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'geardesk.db')}"
os.environ["FIREBASE_PROJECT_ID"] = "geardesk-test"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:3000"
os.environ["WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("WOO_STORE_URL", None)

import httpx
import pytest
import pytest_asyncio

from geardesk.core.config import get_settings
from geardesk.core.database import Base, async_session, engine, init_models
from geardesk.core.security import AuthenticatedUser, require_staff
from geardesk.main import app
from geardesk.models.enums import UserRole
from geardesk.models.settings import WooSettings
from geardesk.models.user import User
from geardesk.services.email import EmailService, get_email_service
from geardesk.services.woocommerce import get_woo_transport


@pytest_asyncio.fixture
async def db():
    await init_models()
    async with async_session() as session:
        yield session
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


async def _make_user(db, role: UserRole, name: str) -> User:
    user = User(
        firebase_uid=f"uid-{uuid.uuid4().hex[:12]}",
        email=f"{name.lower().replace(' ', '.')}@geardesk.test",
        name=name,
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


def _as(user: User) -> AuthenticatedUser:
    auth_user = AuthenticatedUser(uid=user.firebase_uid, email=user.email, email_verified=True)
    auth_user.db_user_id = user.id
    auth_user.name = user.name
    auth_user.role = user.role.value
    auth_user.is_active = True
    return auth_user


@pytest_asyncio.fixture
async def admin_user(db):
    return await _make_user(db, UserRole.ADMIN, "Ada Admin")


@pytest_asyncio.fixture
async def staff_user(db):
    return await _make_user(db, UserRole.STAFF, "Sam Staff")


@pytest.fixture
def act_as():
    """Switch the authenticated user for subsequent requests."""
    def _switch(user: User) -> None:
        auth_user = _as(user)
        app.dependency_overrides[require_staff] = lambda: auth_user
    return _switch


@pytest_asyncio.fixture
async def client(db, admin_user, act_as):
    """API client authenticated as an admin."""
    act_as(admin_user)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as http:
        yield http
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def public_client(db):
    """API client with no credentials (quote links, webhooks)."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test"
    ) as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def sent_emails():
    """Enable email against a mock Resend endpoint and collect the sent messages."""
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"id": f"email-{len(sent)}"})

    settings = get_settings().model_copy(
        update={"resend_api_key": "re_test", "admin_email": "owner@geardesk.test"}
    )
    service = EmailService(settings=settings, transport=httpx.MockTransport(handler))
    app.dependency_overrides[get_email_service] = lambda: service
    yield sent
    app.dependency_overrides.pop(get_email_service, None)


@pytest_asyncio.fixture
async def woo_requests(db):
    """Configure WooCommerce against a mock store and collect the requests made."""
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        requests.append((request.method, request.url.path, body))
        if request.method == "GET":
            return httpx.Response(200, json=[])
        return httpx.Response(201, json={"id": 501, **(body or {})})

    db.add(WooSettings(
        store_url="https://shop.geardesk.test",
        consumer_key="ck_test",
        consumer_secret="cs_test",
    ))
    await db.commit()

    transport = httpx.MockTransport(handler)
    app.dependency_overrides[get_woo_transport] = lambda: transport
    yield requests
    app.dependency_overrides.pop(get_woo_transport, None)
