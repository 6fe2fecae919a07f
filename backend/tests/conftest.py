"""
Hindustan Founders Network - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Callable, Awaitable

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession
from faker import Faker

_TEST_DIR = tempfile.mkdtemp(prefix="hfn-tests-")

# Set testing environment before anything reads settings
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DEBUG'] = 'false'
os.environ['DATABASE_URL'] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['LOG_FILE'] = ''
os.environ['UPLOAD_DIR'] = os.path.join(_TEST_DIR, 'uploads')
os.environ['SEED_DEMO_DATA'] = 'false'

from app.main import app
from app.core.database import Base, get_engine, get_session_local, close_db
from app.core.security import get_password_hash, create_token_pair
from app.models.user import User, UserRole
from app.services.realtime import notification_hub

fake = Faker()

TEST_PASSWORD = 'Founder2024pass'


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Fresh tables for each test; the app's own engine points at the same file"""
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with get_session_local()() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await close_db()


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac
    notification_hub._connections.clear()


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory for committed members; keyword arguments override the Faker defaults"""

    async def _make_user(**overrides) -> User:
        username = overrides.pop('username', None) or f"member_{fake.unique.random_int(10000, 9999999)}"
        fields = {
            'username': username,
            'email': overrides.pop('email', None) or f"{username}@example.in",
            'hashed_password': get_password_hash(overrides.pop('password', TEST_PASSWORD)),
            'name': fake.name(),
            'role': UserRole.FOUNDER,
            'is_active': True,
            'is_verified': True,
        }
        fields.update(overrides)
        user = User(**fields)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


def headers_for(user: User) -> dict:
    """Bearer header for a member"""
    tokens = create_token_pair(str(user.id), user.role.value)
    return {'Authorization': f"Bearer {tokens['access_token']}"}


@pytest.fixture
async def test_user(make_user) -> User:
    return await make_user(name='Asha Rao', title='Founder', company='Chai Labs', location='Bengaluru')


@pytest.fixture
async def other_user(make_user) -> User:
    return await make_user(name='Vikram Singh', role=UserRole.INVESTOR, company='Seed Capital')


@pytest.fixture
async def admin_user(make_user) -> User:
    return await make_user(name='Site Admin', role=UserRole.ADMIN)


@pytest.fixture
def auth_for() -> Callable[[User], dict]:
    return headers_for


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return headers_for(test_user)


@pytest.fixture
def other_headers(other_user: User) -> dict:
    return headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return headers_for(admin_user)


@pytest.fixture
def test_user_data() -> dict:
    """Registration payload"""
    username = f"member_{fake.unique.random_int(10000, 9999999)}"
    return {
        'username': username,
        'password': TEST_PASSWORD,
        'name': fake.name(),
        'email': f"{username}@example.in",
        'role': 'founder',
        'title': 'CEO',
        'company': fake.company()[:100],
        'location': 'Mumbai',
    }
