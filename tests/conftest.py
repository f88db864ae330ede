import itertools

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func
from sqlalchemy.future import select

from logistics_pro.auth.passwords import hash_password
from logistics_pro.auth.tokens import issue_token
from logistics_pro.core.config import Settings
from logistics_pro.core.constants import Role, ShipmentStatus
from logistics_pro.crud.shipment import generate_qr_token, generate_tracking_number
from logistics_pro.db import Database
from logistics_pro.main import create_app
from logistics_pro.models.shipment import Shipment
from logistics_pro.models.user import User

PASSWORD = "secret123"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        log_level="WARNING",
        auto_create_tables=False,
    )


@pytest.fixture
async def database(settings):
    database = Database(settings.database_url)
    await database.create_tables()
    yield database
    await database.dispose()


@pytest.fixture
def app(settings, database):
    return create_app(settings, database)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def strict_client(settings, database):
    strict = settings.model_copy(update={"strict_status_transitions": True})
    app = create_app(strict, database)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(database):
    counter = itertools.count(1)

    async def _make(role=Role.CLIENT, approved=True, active=True, name=None, password=PASSWORD):
        n = next(counter)
        async with database.session_factory() as session:
            user = User(
                phone=f"05{n:08d}",
                password_hash=hash_password(password),
                name=name or f"{role.value} {n}",
                role=role.value,
                is_approved=approved,
                is_active=active,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make


@pytest.fixture
def make_shipment(database):
    async def _make(customer, driver=None, status=ShipmentStatus.PENDING, destination="12 Harbour Road"):
        async with database.session_factory() as session:
            shipment = Shipment(
                tracking_number=generate_tracking_number(),
                qr_token=generate_qr_token(),
                customer_id=customer.id,
                driver_id=driver.id if driver else None,
                destination_address=destination,
                status=status.value,
            )
            session.add(shipment)
            await session.commit()
            await session.refresh(shipment)
            return shipment

    return _make


@pytest.fixture
def auth():
    def _headers(user):
        token = issue_token(user.id, user.phone, user.role).token
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def count_rows(database):
    async def _count(model, *criteria):
        async with database.session_factory() as session:
            result = await session.execute(select(func.count()).select_from(model).where(*criteria))
            return result.scalar_one()

    return _count


@pytest.fixture
def fetch(database):
    async def _fetch(model, ident):
        async with database.session_factory() as session:
            return await session.get(model, ident)

    return _fetch


@pytest.fixture
async def admin(make_user):
    return await make_user(Role.ADMIN, name="Dispatch Admin")


@pytest.fixture
async def super_admin(make_user):
    return await make_user(Role.SUPER_ADMIN, name="Root")


@pytest.fixture
async def client_user(make_user):
    return await make_user(Role.CLIENT, name="Alice Client")


@pytest.fixture
async def driver(make_user):
    return await make_user(Role.DRIVER, name="Dan Driver")
