"""
Riskify - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['ENVIRONMENT'] = 'test'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['SIGNUP_BONUS_CREDITS'] = '0'
os.environ['RAZORPAY_KEY_ID'] = ''
os.environ['RAZORPAY_KEY_SECRET'] = ''
os.environ['RAZORPAY_WEBHOOK_SECRET'] = ''

from riskify.main import app
from riskify.core.database import Base, get_db
from riskify.models.user import User, UserRole
from riskify.core.security import get_password_hash, create_access_token

fake = Faker('en_AU')

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)

TINY_PNG = (
    "data:image/png;base64,"
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db_session: AsyncSession, role: UserRole, password: str, **fields) -> User:
    user = User(
        email=fake.unique.email(),
        username=fake.unique.user_name(),
        hashed_password=get_password_hash(password),
        full_name=fake.name(),
        company_name=fake.company(),
        role=role,
        is_active=True,
        **fields
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user with two legacy credits"""
    return await _make_user(db_session, UserRole.USER, 'testpassword123', swms_credits=2)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, UserRole.USER, 'otherpassword123', swms_credits=1)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """Create an admin test user"""
    return await _make_user(db_session, UserRole.ADMIN, 'adminpassword123')


def _headers(user: User) -> dict:
    token = create_access_token({
        'sub': str(user.id),
        'email': user.email,
        'role': user.role.value
    })
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user"""
    return _headers(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return _headers(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    """Generate authentication headers for admin user"""
    return _headers(admin_user)


def build_form(**overrides) -> dict:
    """A complete SWMS form payload as the wizard posts it (camelCase)"""
    form = {
        'companyName': 'Sparky Bros Pty Ltd',
        'projectName': 'Test Project',
        'projectNumber': 'P-1001',
        'projectAddress': '1 George St, Sydney NSW 2000',
        'jobName': 'Switchboard upgrade',
        'jobNumber': 'J-42',
        'startDate': '2026-11-02',
        'duration': '2 weeks',
        'dateCreated': '2026-10-18',
        'tradeType': 'Electrical',
        'principalContractor': 'BuildCo',
        'projectManager': 'Pat Manager',
        'siteSupervisor': 'Sam Supervisor',
        'authorisingPerson': 'Alex Director',
        'authorisingPosition': 'Director',
        'scopeOfWorks': 'Replace the main switchboard and sub-boards.',
        'reviewAndMonitoring': 'Reviewed daily by the site supervisor.',
        'emergencyContacts': [{'name': 'Emergency', 'phone': '000'}],
        'emergencyProcedures': 'Call 000 and notify the supervisor.',
        'highRiskActivities': [
            {'id': 'energised-electrical', 'title': 'Energised electrical installations',
             'description': 'Work on or near energised electrical installations', 'selected': True,
             'riskLevel': 'Extreme'},
            {'id': 'falls', 'title': 'Risk of a person falling more than 2 metres',
             'description': '', 'selected': False},
        ],
        'workActivities': [
            {
                'id': 'wa-1',
                'activity': 'Install main switchboard',
                'hazards': ['Electric shock', 'Arc flash'],
                'initialRisk': {'level': 'extreme', 'score': 20},
                'controlMeasures': ['Isolate and lock out', 'Test for dead'],
                'residualRisk': {'level': 'medium', 'score': 6},
                'legislation': ['AS/NZS 3000:2018'],
            },
        ],
        'ppeItems': [
            {'id': 'hard-hat', 'name': 'Hard hat', 'description': 'AS/NZS 1801', 'selected': True},
            {'id': 'ear-muffs', 'name': 'Hearing protection', 'selected': False},
        ],
        'plantEquipment': [
            {'id': 'pe-1', 'equipment': 'Scissor lift', 'riskLevel': 'High', 'certificationRequired': True},
        ],
    }
    form.update(overrides)
    return form


def build_activity(index: int, initial: int = 12, residual: int = 4) -> dict:
    from riskify.services.risk import level_for_score

    return {
        'id': f'wa-{index}',
        'activity': f'Activity {index}',
        'hazards': ['Hazard A', 'Hazard B'],
        'initialRisk': {'level': level_for_score(initial).value, 'score': initial},
        'controlMeasures': ['Control A', 'Control B'],
        'residualRisk': {'level': level_for_score(residual).value, 'score': residual},
        'legislation': ['WHS Regulation 2017'],
    }


@pytest.fixture
def form_payload() -> dict:
    return build_form()


@pytest.fixture
def make_form():
    return build_form


@pytest.fixture
def make_activity():
    return build_activity


@pytest.fixture
def tiny_png() -> str:
    """1x1 PNG data URL, used as a drawn signature or logo"""
    return TINY_PNG
