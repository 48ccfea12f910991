"""
Pytest configuration and fixtures.

Environment is pointed at a temporary data/upload directory before the app
package is imported, since settings are read at import time.
"""
import asyncio
import os
import tempfile

_tmp = tempfile.mkdtemp(prefix="polyglotquest-test-")
os.environ["STORE_BACKEND"] = "json"
os.environ["DATA_DIR"] = os.path.join(_tmp, "database")
os.environ["UPLOAD_DIR"] = os.path.join(_tmp, "uploads")
os.environ["ADMIN_API_KEY"] = "test-admin-key"
os.environ["FREE_TRIALS_ON_REGISTER"] = "5"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from app.models.user import User
from app.services.auth_service import hash_password
from app.services.ledger_service import LedgerService
from app.services.notification_service import NotificationService, get_notification_service
from app.services.payment_service import PaymentService
from app.services.progress_service import ProgressService
from app.services.store import MemoryStore, USERS, get_store
from app.services.user_service import UserService
from app.utils.time_utils import utc_now_iso

ADMIN_HEADERS = {"X-Admin-Key": "test-admin-key"}


class RecordingNotifier(NotificationService):
    """Notifier that records emails instead of talking to SMTP."""

    def __init__(self, fail: bool = False):
        super().__init__(user="", password="", admin_email="admin@example.com")
        self.fail = fail
        self.sent: list[dict] = []

    async def send_email(self, to, subject, html):
        if self.fail:
            raise RuntimeError("smtp unavailable")
        self.sent.append({"to": to, "subject": subject, "html": html})
        return True, "ok"


class YieldingStore(MemoryStore):
    """MemoryStore that yields to the event loop on every I/O call.

    Without the yields a plain MemoryStore never suspends, so concurrent
    tasks could not interleave and race tests would pass trivially.
    """

    async def _read(self, name):
        await asyncio.sleep(0)
        data = await super()._read(name)
        await asyncio.sleep(0)
        return data

    async def commit(self, changes):
        await asyncio.sleep(0)
        await super().commit(changes)


@pytest.fixture
def store() -> MemoryStore:
    return YieldingStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_notifier() -> RecordingNotifier:
    return RecordingNotifier(fail=True)


@pytest.fixture
def payment_service(store, notifier) -> PaymentService:
    return PaymentService(store, notifier)


@pytest.fixture
def progress_service(store) -> ProgressService:
    return ProgressService(store)


@pytest.fixture
def ledger_service(store) -> LedgerService:
    return LedgerService(store)


@pytest.fixture
def user_service(store, notifier) -> UserService:
    return UserService(store, notifier)


@pytest.fixture
def user_factory(store):
    """Insert a user record directly into the store."""
    counter = {"n": 0}

    async def create(free_trials: int = 0, points: int = 0, **overrides) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            id=overrides.pop("id", f"user-{n}"),
            name=overrides.pop("name", f"User {n}"),
            email=overrides.pop("email", f"user{n}@example.com"),
            phone=overrides.pop("phone", f"08120000{n:04d}"),
            password_hash=overrides.pop("password_hash", "not-a-real-hash"),
            free_trials=free_trials,
            points=points,
            created_at=utc_now_iso(),
            **overrides,
        )
        async with store.lock(USERS):
            users = await store.get(USERS)
            users.append(user.to_record())
            await store.commit({USERS: users})
        return user

    return create


@pytest.fixture
def get_user_record(store):
    async def get(user_id: str) -> User:
        users = await store.get(USERS)
        return User.model_validate(next(u for u in users if u["id"] == user_id))

    return get


@pytest_asyncio.fixture
async def client(store, notifier):
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notification_service] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    await notifier.drain()


@pytest_asyncio.fixture
async def auth_headers(client):
    """Register and log in a user through the API; returns bearer headers."""
    resp = await client.post("/api/auth/register", json={
        "name": "Budi",
        "email": "budi@example.com",
        "password": "rahasia123",
        "phone": "+62 812-3456-7890",
    })
    assert resp.status_code == 200, resp.text
    resp = await client.post("/api/auth/login", json={"email": "budi@example.com", "password": "rahasia123"})
    assert resp.status_code == 200, resp.text
    token = resp.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def hashed_password():
    return hash_password("rahasia123")
