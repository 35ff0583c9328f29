"""
Shared fixtures

In-memory SQLite (aiosqlite) behind the FastAPI app via a get_db override,
an httpx AsyncClient over ASGITransport, seeded catalog rows and bearer tokens.
Celery dispatch is replaced by a recorder so no broker is needed.
"""

import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_storefront.db")
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import get_db
from app.core.security import SecurityUtils
from app.main import app as fastapi_app
from app.models import Base, Product, ProductVariant, User, UserRole
from app.tasks import email_tasks

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def engine():
    """Create an in-memory async SQLite engine."""
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()

@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

@pytest_asyncio.fixture
async def db(session_factory):
    """Session for direct service-level tests."""
    async with session_factory() as session:
        yield session

# ---------------------------------------------------------------------------
# App and client
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def app(session_factory):
    async def _override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()

@pytest_asyncio.fixture
async def client(app):
    """Anonymous visitor; the session cookie persists across requests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c

@pytest.fixture(autouse=True)
def sent_tasks(monkeypatch):
    """Record Celery dispatches instead of talking to a broker."""
    calls = []

    def recorder(name):
        def delay(*args, **kwargs):
            calls.append((name, args))
        return delay

    monkeypatch.setattr(email_tasks.send_order_confirmation_email, "delay", recorder("confirmation"))
    monkeypatch.setattr(email_tasks.send_order_status_email, "delay", recorder("status"))
    return calls

# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

async def create_variant(
    session_factory,
    sku: str = "TEE-RED-M",
    price: int = 500,
    sale_price=None,
    inventory: int = 10,
    product_name: str = "Cotton Tee",
    variant_name: str = "Red / M",
    is_active: bool = True,
) -> ProductVariant:
    async with session_factory() as session:
        product = Product(name=product_name, slug=f"{sku.lower()}-product", is_active=True)
        variant = ProductVariant(
            product=product,
            sku=sku,
            name=variant_name,
            price=price,
            sale_price=sale_price,
            inventory=inventory,
            is_active=is_active,
        )
        session.add(variant)
        await session.commit()
        return variant

async def create_user(
    session_factory,
    email: str = "buyer@example.com",
    loyalty_points: int = 0,
    role: UserRole = UserRole.CUSTOMER,
) -> User:
    async with session_factory() as session:
        user = User(email=email, full_name="Test Buyer", role=role, loyalty_points=loyalty_points)
        session.add(user)
        await session.commit()
        return user

async def get_variant(session_factory, variant_id) -> ProductVariant:
    async with session_factory() as session:
        return await session.get(ProductVariant, variant_id)

async def get_user(session_factory, user_id) -> User:
    async with session_factory() as session:
        return await session.get(User, user_id)

def auth_headers(user: User) -> dict:
    token = SecurityUtils.create_access_token({"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}

@pytest_asyncio.fixture
async def variant(session_factory):
    return await create_variant(session_factory)

@pytest_asyncio.fixture
async def user(session_factory):
    return await create_user(session_factory, loyalty_points=50)

@pytest_asyncio.fixture
async def admin(session_factory):
    return await create_user(session_factory, email="admin@example.com", role=UserRole.ADMIN)

SHIPPING_ADDRESS = {
    "full_name": "Test Buyer",
    "phone": "0901234567",
    "address_line1": "12 Market Street",
    "city": "Hanoi",
    "country": "Vietnam",
}
