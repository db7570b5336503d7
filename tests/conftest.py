import os

# Settings are read at import time; configure them before anything from swish loads.
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")
os.environ.setdefault("DB_NAME", "swish_test")
os.environ.setdefault("DB_USER", "swish")
os.environ.setdefault("DB_PASS", "swish")
os.environ.setdefault("AES_ENC_SECRET", "8f3a1c9e4b7d2a6f0e5c8b3d1a9f7e2c4b6d8a0f3e5c7b9d1f2a4c6e8b0d3f5a")
os.environ.setdefault("PAYMENT_DELAY_SECONDS", "0")
os.environ.setdefault("ENABLE_RANDOM_PAYMENT_FAILURES", "false")

from decimal import Decimal
from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from swish.api.v1.deps import get_mailer, get_payment_gateway
from swish.core.security import create_access_token, hash_password
from swish.db.registry import Base, Card, User, UserRole
from swish.db.session import get_session_factory, make_session_factory
from swish.main import app
from swish.services.payment_gateway import MockPaymentGateway


class RecordingMailer:
    """Mailer double that keeps every message instead of sending it."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    async def send(self, to: str, subject: str, html: str, text: Optional[str] = None) -> bool:
        if self.fail:
            raise ConnectionError("SMTP server unreachable")
        self.sent.append({"to": to, "subject": subject, "html": html, "text": text})
        return True


@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so separate sessions really use separate connections."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'swish.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway(delay_seconds=0)


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def broken_mailer() -> RecordingMailer:
    return RecordingMailer(fail=True)


@pytest.fixture
async def client(session_factory, gateway, mailer):
    """Async test client wired to the SQLite database and the test doubles."""
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    app.dependency_overrides[get_mailer] = lambda: mailer

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def shipping_address() -> dict:
    return {
        "name": "Jordan Miles",
        "phone": "+15555550123",
        "streetAddress": "23 Court Street",
        "city": "Chicago",
        "state": "IL",
        "postalCode": "60612",
        "country": "United States",
    }


@pytest.fixture
def user_factory(session_factory):
    counter = {"n": 0}

    async def create(
        full_name: str = "Test User",
        email: Optional[str] = None,
        password: str = "password123",
        role: UserRole = UserRole.USER,
        pin: Optional[str] = None,
    ) -> User:
        counter["n"] += 1
        async with session_factory() as session:
            user = User(
                email=email or f"user{counter['n']}@example.com",
                full_name=full_name,
                hashed_password=hash_password(password),
                role=role,
                is_active=True,
                payment_methods=[],
                security_pin=hash_password(pin) if pin else None,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return create


@pytest.fixture
def card_factory(session_factory):
    async def create(owner_id: int, price: Optional[str] = None, name: str = "1986 Fleer Michael Jordan") -> Card:
        async with session_factory() as session:
            card = Card(
                name=name,
                player="Michael Jordan",
                team="Chicago Bulls",
                year=1986,
                brand="Fleer",
                card_number="57",
                condition="PSA 8",
                rarity="Rookie",
                is_for_trade=False,
                is_for_sale=price is not None,
                price=Decimal(price) if price is not None else None,
                owner_id=owner_id,
            )
            session.add(card)
            await session.commit()
            await session.refresh(card)
            return card

    return create


@pytest.fixture
def auth_headers():
    def build(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(subject=str(user.id))}"}

    return build
