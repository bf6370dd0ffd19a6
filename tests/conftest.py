"""Shared pytest fixtures and configuration."""

import os
import tempfile
import uuid
from types import SimpleNamespace

import httpx
import pytest

# Point the app at a throwaway SQLite file before anything imports settings
_db_dir = tempfile.mkdtemp(prefix="listingops-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from listingops.core.security import create_access_token  # noqa: E402
from listingops.database import init_db, drop_db, get_db_session  # noqa: E402
from listingops.main import app  # noqa: E402
from listingops.models.catalog import Platform, PlatformType, Store, Category, Subcategory, Range  # noqa: E402
from listingops.models.user import User, UserRole  # noqa: E402


@pytest.fixture(autouse=True)
async def database():
    """Fresh tables for every test."""
    await init_db()
    yield
    await drop_db()


@pytest.fixture
async def seed(database):
    """
    Reference data and one principal per role.

    Motors category has ranges R1-R3 and subcategory Brakes; Home has range
    H1 and subcategory Kitchen. eBay carries Store A and Store B, Walmart
    carries Store W.
    """
    ids = SimpleNamespace()

    async with get_db_session() as session:
        users = {
            "superadmin": UserRole.SUPERADMIN,
            "productadmin": UserRole.PRODUCT_ADMIN,
            "listingadmin": UserRole.LISTING_ADMIN,
            "lister": UserRole.LISTER,
            "lister2": UserRole.LISTER,
            "compatadmin": UserRole.COMPATIBILITY_ADMIN,
            "editor": UserRole.COMPATIBILITY_EDITOR,
            "editor2": UserRole.COMPATIBILITY_EDITOR,
        }
        ids.users = {}
        for username, role in users.items():
            user = User(
                id=uuid.uuid4(),
                email=f"{username}@example.com",
                username=username,
                role=role.value,
                is_active=True,
            )
            session.add(user)
            ids.users[username] = user.id

        amazon = Platform(id=uuid.uuid4(), name="Amazon", type=PlatformType.SOURCE.value)
        ebay = Platform(id=uuid.uuid4(), name="eBay", type=PlatformType.LISTING.value)
        walmart = Platform(id=uuid.uuid4(), name="Walmart", type=PlatformType.LISTING.value)
        session.add_all([amazon, ebay, walmart])

        store_a = Store(id=uuid.uuid4(), name="Store A", platform_id=ebay.id)
        store_b = Store(id=uuid.uuid4(), name="Store B", platform_id=ebay.id)
        store_w = Store(id=uuid.uuid4(), name="Store W", platform_id=walmart.id)
        session.add_all([store_a, store_b, store_w])

        motors = Category(id=uuid.uuid4(), name="Ebay Motors")
        home = Category(id=uuid.uuid4(), name="Home")
        session.add_all([motors, home])

        brakes = Subcategory(id=uuid.uuid4(), name="Brakes", category_id=motors.id)
        kitchen = Subcategory(id=uuid.uuid4(), name="Kitchen", category_id=home.id)
        session.add_all([brakes, kitchen])

        ranges = [Range(id=uuid.uuid4(), name=f"R{n}", category_id=motors.id) for n in (1, 2, 3)]
        home_range = Range(id=uuid.uuid4(), name="H1", category_id=home.id)
        session.add_all(ranges + [home_range])

    ids.source_platform = amazon.id
    ids.ebay = ebay.id
    ids.walmart = walmart.id
    ids.store_a = store_a.id
    ids.store_b = store_b.id
    ids.store_w = store_w.id
    ids.motors = motors.id
    ids.home = home.id
    ids.brakes = brakes.id
    ids.kitchen = kitchen.id
    ids.r1, ids.r2, ids.r3 = (r.id for r in ranges)
    ids.h1 = home_range.id
    return ids


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def headers(seed):
    """Bearer headers keyed by seeded username."""
    return {
        username: {"Authorization": f"Bearer {create_access_token(user_id)}"}
        for username, user_id in seed.users.items()
    }


@pytest.fixture
def make_task(client, seed, headers):
    async def _make(category="motors", **overrides):
        category_id = seed.motors if category == "motors" else seed.home
        subcategory_id = seed.brakes if category == "motors" else seed.kitchen
        payload = {
            "productTitle": "Ceramic brake pad set",
            "supplierLink": "https://supplier.example.com/item/1",
            "sourcePrice": "12.50",
            "sellingPrice": "29.99",
            "sourcePlatformId": str(seed.source_platform),
            "marketplace": "EBAY_US",
            "categoryId": str(category_id),
            "subcategoryId": str(subcategory_id),
        }
        payload.update(overrides)
        # None drops a default field
        payload = {key: value for key, value in payload.items() if value is not None}
        response = await client.post("/api/tasks", json=payload, headers=headers["productadmin"])
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def make_assignment(client, seed, headers, make_task):
    async def _make(quantity=10, task=None, lister="lister", store=None, **overrides):
        if task is None:
            task = await make_task()
        payload = {
            "taskId": task["id"],
            "listerId": str(seed.users[lister]),
            "quantity": quantity,
            "listingPlatformId": str(seed.ebay),
            "storeId": str(store or seed.store_a),
        }
        payload.update(overrides)
        response = await client.post("/api/assignments", json=payload, headers=headers["listingadmin"])
        assert response.status_code == 201, response.text
        return response.json()

    return _make


@pytest.fixture
def report(client, headers):
    """POST a range quantity as the given user; returns the raw response."""
    async def _report(assignment_id, range_id, quantity, as_user="lister"):
        return await client.post(
            f"/api/assignments/{assignment_id}/complete-range",
            json={"rangeId": str(range_id), "quantity": quantity},
            headers=headers[as_user],
        )

    return _report
