"""Pytest configuration and fixtures for FreightLink tests.

Provides an in-memory SQLite database per test, an in-memory object store
with failure injection, a canned geocoder, stubbed Redis revocation, and
one profile per role with its company.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.auth.jwt import create_access_token
from app.auth.password import hash_password
from app.auth.revocation import TokenRevocation
from app.database import Base, get_db, transaction
from app.main import app
from app.middleware.exceptions import StorageFailureError
from app.models.company import Company, CompanyType
from app.models.profile import Profile, UserRole
from app.models.trailer import Trailer, TrailerType
from app.models.truck import Truck
from app.models.driver import Driver
from app.services.geocoding import Coordinates, get_geocoder
from app.services.storage import get_storage

TEST_PASSWORD = "testpassword123"


# ── Test Database Setup ──────────────────────────────────────────

@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database with the full schema."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


# ── Fakes for external services ──────────────────────────────────

class InMemoryStorage:
    """Object store double; flip ``fail_*`` to simulate an outage.

    ``fail_delete_after`` lets that many deletes succeed before the outage.
    """

    def __init__(self):
        self.objects: dict[str, bytes] = {}
        self.fail_put = False
        self.fail_delete = False
        self.fail_delete_after: int | None = None
        self.deleted: list[str] = []

    async def put(self, path: str, data: bytes, content_type: str | None = None) -> str:
        if self.fail_put:
            raise StorageFailureError("put", path, "simulated outage")
        self.objects[path] = data
        return path

    async def delete(self, path: str) -> None:
        if self.fail_delete or (
            self.fail_delete_after is not None and len(self.deleted) >= self.fail_delete_after
        ):
            raise StorageFailureError("delete", path, "simulated outage")
        self.objects.pop(path, None)
        self.deleted.append(path)

    async def resolve(self, path: str, expires_in: int | None = None) -> str:
        return f"https://storage.test/{path}?expires={expires_in or 3600}"


class StaticGeocoder:
    """Geocoder double with a fixed gazetteer; unknown places give None."""

    PLACES = {
        "johannesburg": Coordinates(latitude=-26.2041, longitude=28.0473),
        "durban": Coordinates(latitude=-29.8587, longitude=31.0218),
        "cape town": Coordinates(latitude=-33.9249, longitude=18.4241),
        "gaborone": Coordinates(latitude=-24.6282, longitude=25.9231),
    }

    def __init__(self):
        self.queries: list[str] = []

    async def geocode(self, address: str) -> Coordinates | None:
        self.queries.append(address)
        lowered = address.lower()
        for place, coordinates in self.PLACES.items():
            if place in lowered:
                return coordinates
        return None


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def geocoder() -> StaticGeocoder:
    return StaticGeocoder()


@pytest.fixture(autouse=True)
def revocation(monkeypatch):
    """Replace Redis-backed revocation with an in-process record."""
    revoked_tokens: set[str] = set()
    revoked_profiles: set[str] = set()

    async def revoke_token(token, expires_at):
        revoked_tokens.add(token)
        return True

    async def is_revoked(token):
        return token in revoked_tokens

    async def revoke_profile_tokens(profile_id, duration=None):
        revoked_profiles.add(profile_id)
        return True

    async def is_profile_revoked(profile_id):
        return profile_id in revoked_profiles

    monkeypatch.setattr(TokenRevocation, "revoke_token", staticmethod(revoke_token))
    monkeypatch.setattr(TokenRevocation, "is_revoked", staticmethod(is_revoked))
    monkeypatch.setattr(TokenRevocation, "revoke_profile_tokens", staticmethod(revoke_profile_tokens))
    monkeypatch.setattr(TokenRevocation, "is_profile_revoked", staticmethod(is_profile_revoked))
    return {"tokens": revoked_tokens, "profiles": revoked_profiles}


@pytest_asyncio.fixture
async def client(test_engine, db_session, storage, geocoder) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with a session per request on the test engine; commits / rolls back like get_db."""
    request_sessions = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with request_sessions() as session:
            async with transaction(session):
                yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_geocoder] = lambda: geocoder

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ── Test Data Fixtures ───────────────────────────────────────────

async def make_company(
    db: AsyncSession,
    name: str,
    company_type: CompanyType,
    **fields,
) -> Company:
    company = Company(name=name, company_type=company_type, **fields)
    db.add(company)
    await db.flush()
    return company


async def make_profile(
    db: AsyncSession,
    email: str,
    role: UserRole,
    company: Company | None = None,
    full_name: str | None = None,
) -> Profile:
    profile = Profile(
        email=email,
        hashed_password=hash_password(TEST_PASSWORD),
        full_name=full_name or email.split("@")[0].title(),
        role=role,
        company_id=company.id if company else None,
        is_active=True,
    )
    db.add(profile)
    await db.flush()
    return profile


@pytest.fixture
def new_profile(db_session: AsyncSession):
    """Factory for extra profiles, company-less unless one is given."""

    async def _make(email: str, role: UserRole, company: Company | None = None) -> Profile:
        return await make_profile(db_session, email, role, company)

    return _make


@pytest_asyncio.fixture
async def admin(db_session: AsyncSession) -> Profile:
    profile = await make_profile(db_session, "admin@freightlink.co.za", UserRole.ADMIN)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def supplier_company(db_session: AsyncSession) -> Company:
    company = await make_company(db_session, "Acme Minerals", CompanyType.SUPPLIER, city="Johannesburg")
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def supplier(db_session: AsyncSession, supplier_company: Company) -> Profile:
    profile = await make_profile(db_session, "supplier@acmeminerals.co.za", UserRole.SUPPLIER, supplier_company)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def transporter_company(db_session: AsyncSession) -> Company:
    company = await make_company(db_session, "Swift Haulage", CompanyType.TRANSPORTER, city="Durban")
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def transporter(db_session: AsyncSession, transporter_company: Company) -> Profile:
    profile = await make_profile(db_session, "dispatch@swifthaulage.co.za", UserRole.TRANSPORTER, transporter_company)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def rival_company(db_session: AsyncSession) -> Company:
    company = await make_company(db_session, "Rival Logistics", CompanyType.TRANSPORTER)
    await db_session.commit()
    return company


@pytest_asyncio.fixture
async def rival(db_session: AsyncSession, rival_company: Company) -> Profile:
    profile = await make_profile(db_session, "ops@rivallogistics.co.za", UserRole.TRANSPORTER, rival_company)
    await db_session.commit()
    return profile


@pytest_asyncio.fixture
async def truck(db_session: AsyncSession, transporter_company: Company) -> Truck:
    truck = Truck(company_id=transporter_company.id, registration_number="ND 123-456", make="Volvo")
    db_session.add(truck)
    await db_session.commit()
    return truck


@pytest_asyncio.fixture
async def trailer(db_session: AsyncSession, transporter_company: Company) -> Trailer:
    trailer = Trailer(
        company_id=transporter_company.id,
        registration_number="ND 654-321",
        trailer_type=TrailerType.TAUTLINER,
    )
    db_session.add(trailer)
    await db_session.commit()
    return trailer


@pytest_asyncio.fixture
async def driver(db_session: AsyncSession, transporter_company: Company) -> Driver:
    driver = Driver(company_id=transporter_company.id, first_name="Sipho", last_name="Ndlovu")
    db_session.add(driver)
    await db_session.commit()
    return driver


def auth_headers_for(profile: Profile) -> dict:
    token = create_access_token(
        profile_id=profile.id,
        role=profile.role.value,
        company_id=profile.company_id,
    )
    return {"Authorization": f"Bearer {token}"}


# ── Test Markers ─────────────────────────────────────────────────

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Pure rule tests, no database")
    config.addinivalue_line("markers", "workflow: Service-level tests against the test database")
    config.addinivalue_line("markers", "api: HTTP tests through the ASGI app")
