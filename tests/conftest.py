import asyncio
import os
import tempfile

# Point the service at a throwaway SQLite file before any growth_service import.
_TMP_DIR = tempfile.mkdtemp(prefix="growth-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["MONITOR_INTERVAL_SECONDS"] = "0"
os.environ["USE_AWS"] = "False"

import pytest
from fastapi.testclient import TestClient

from growth_service import store
from growth_service.database import database, engine, metadata
from growth_service.gateway import MessagingGateway, build_whatsapp_url, get_gateway


class FakeGateway(MessagingGateway):
    """Records every send; can be told to fail, raise or hang."""

    def __init__(self, result=None, error=None, delay=0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls = []

    async def send(self, phone_number, message):
        self.calls.append((phone_number, message))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        if self.result is not None:
            return self.result
        return {"success": True, "whatsappUrl": build_whatsapp_url(phone_number, message)}


def wipe_tables():
    with engine.begin() as conn:
        for table in reversed(metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
async def db():
    metadata.create_all(engine)
    await database.connect()
    yield database
    await database.disconnect()
    wipe_tables()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def client(gateway):
    from growth_service.main import app

    app.dependency_overrides[get_gateway] = lambda: gateway
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
    wipe_tables()


async def make_user(role="vendor", name="Asha", email=None, phone=None, business_type=None):
    return await store.create_user(
        email=email or f"{store.new_id()}@example.com",
        password_hash="not-a-real-hash",
        role=role,
        name=name,
        business_type=business_type,
        phone=phone,
    )
