"""
Shared fixtures.

The app runs against a fresh in-memory SQLite database per test; Celery
dispatch is replaced by recorders so no broker is needed.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENV_MODE"] = "development"
os.environ["SEED_CATALOG"] = "false"

from dataclasses import dataclass, field  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402

from coffeeshop.core import security  # noqa: E402
from coffeeshop.database import build_engine, build_session_maker, get_db, init_db  # noqa: E402
from coffeeshop.main import app  # noqa: E402
from coffeeshop.models import Category, Product, ProductSize  # noqa: E402
from coffeeshop.services import UserService  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret-pass"


@dataclass
class TaskRecorder:
    """Stands in for a Celery task; keeps the args of every ``.delay`` call."""
    calls: list = field(default_factory=list)

    def delay(self, *args, **kwargs):
        self.calls.append(args)


@dataclass
class Dispatched:
    reset_otp: TaskRecorder
    login_notice: TaskRecorder
    order_confirmation: TaskRecorder


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    monkeypatch.setattr(security, "PBKDF2_ITERATIONS", 1000)


@pytest.fixture(autouse=True)
def dispatched(monkeypatch) -> Dispatched:
    recorders = Dispatched(TaskRecorder(), TaskRecorder(), TaskRecorder())
    monkeypatch.setattr("coffeeshop.routers.auth.send_password_reset_otp", recorders.reset_otp)
    monkeypatch.setattr("coffeeshop.routers.auth.send_login_notice", recorders.login_notice)
    monkeypatch.setattr("coffeeshop.routers.orders.send_order_confirmation", recorders.order_confirmation)
    return recorders


@pytest.fixture
async def engine():
    engine = build_engine(TEST_DATABASE_URL)
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def catalog(session_maker) -> dict[str, int]:
    """Two categories, three drinks with S/M/L sizes. Returns product ids by name."""
    async with session_maker() as session:
        coffee = Category(name="Coffee", description="Hot and iced coffee")
        tea = Category(name="Tea", description="Fruit teas")
        products = [
            Product(category=coffee, name="Latte", description="Espresso with milk", price=50000),
            Product(category=coffee, name="Espresso", description="Short and strong", price=40000),
            Product(category=tea, name="Peach Tea", description="Peach and lemongrass", price=45000),
        ]
        for product in products:
            product.sizes = [
                ProductSize(size="S", price_modifier=0),
                ProductSize(size="M", price_modifier=5000),
                ProductSize(size="L", price_modifier=10000),
            ]
        session.add_all(products)
        await session.commit()
        return {p.name: p.id for p in products}


@pytest.fixture
async def make_user(session_maker):
    async def _make(email: str = "an.nguyen@mail.com", first_name: str = "An"):
        async with session_maker() as session:
            return await UserService(session).register(
                first_name=first_name,
                last_name="Nguyen",
                email=email,
                password=PASSWORD,
                phone="0901234567",
            )
    return _make


@pytest.fixture
async def client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    """Register through the API and return bearer headers."""
    async def _register(email: str = "an.nguyen@mail.com", first_name: str = "An") -> dict:
        response = await client.post("/api/auth/register", json={
            "first_name": first_name,
            "last_name": "Nguyen",
            "email": email,
            "password": PASSWORD,
            "phone": "0901234567",
        })
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}
    return _register
