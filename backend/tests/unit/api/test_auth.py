"""
Unit Tests for Authentication API Endpoints
"""
import pytest
from httpx import AsyncClient
from faker import Faker

from riskify.core.config import settings

fake = Faker('en_AU')


class TestUserRegistration:
    """Test user registration endpoint"""

    @pytest.mark.asyncio
    async def test_register_success(self, client: AsyncClient):
        user_data = {
            'email': fake.unique.email(),
            'password': 'securePassword123!',
            'full_name': fake.name(),
            'company_name': 'Sparky Bros Pty Ltd',
            'abn': '51 824 753 556',
            'primary_trade': 'Electrical',
        }

        response = await client.post('/api/auth/register', json=user_data)

        assert response.status_code == 201
        data = response.json()
        assert data['email'] == user_data['email']
        assert data['company_name'] == 'Sparky Bros Pty Ltd'
        assert data['role'] == 'user'
        assert data['total_credits'] == 0
        assert 'hashed_password' not in data

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client: AsyncClient, test_user):
        user_data = {'email': test_user.email, 'password': 'securePassword123!'}

        response = await client.post('/api/auth/register', json=user_data)

        assert response.status_code == 400
        assert 'already registered' in response.json()['detail'].lower()

    @pytest.mark.asyncio
    async def test_register_duplicate_username(self, client: AsyncClient, test_user):
        user_data = {
            'email': fake.unique.email(),
            'username': test_user.username,
            'password': 'securePassword123!',
        }

        response = await client.post('/api/auth/register', json=user_data)

        assert response.status_code == 400
        assert response.json()['detail'] == 'Username already taken'

    @pytest.mark.asyncio
    @pytest.mark.parametrize('field,value', [
        ('email', 'not-an-email'),
        ('password', 'short'),
        ('abn', '1234'),
    ])
    async def test_register_invalid_input(self, client: AsyncClient, field, value):
        user_data = {'email': fake.unique.email(), 'password': 'securePassword123!'}
        user_data[field] = value

        response = await client.post('/api/auth/register', json=user_data)

        assert response.status_code == 422


class TestUserLogin:
    """Test login and session cookie"""

    @pytest.mark.asyncio
    async def test_login_success(self, client: AsyncClient, test_user):
        response = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'testpassword123',
        })

        assert response.status_code == 200
        data = response.json()
        assert data['token_type'] == 'bearer'
        assert data['access_token']
        assert data['user']['email'] == test_user.email
        assert settings.SESSION_COOKIE_NAME in response.cookies

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client: AsyncClient, test_user):
        response = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'wrongpassword',
        })

        assert response.status_code == 401
        assert response.json()['detail'] == 'Incorrect email or password'

    @pytest.mark.asyncio
    async def test_login_inactive_user(self, client: AsyncClient, db_session, test_user):
        test_user.is_active = False
        await db_session.commit()

        response = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'testpassword123',
        })

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_session_cookie_authenticates(self, client: AsyncClient, test_user):
        login = await client.post('/api/auth/login', json={
            'email': test_user.email,
            'password': 'testpassword123',
        })
        token = login.json()['access_token']

        client.cookies.set(settings.SESSION_COOKIE_NAME, token)
        response = await client.get('/api/auth/me')

        assert response.status_code == 200
        assert response.json()['id'] == str(test_user.id)


class TestCurrentUser:

    @pytest.mark.asyncio
    async def test_me_requires_auth(self, client: AsyncClient):
        response = await client.get('/api/auth/me')

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me_with_invalid_token(self, client: AsyncClient):
        response = await client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_me(self, client: AsyncClient, test_user, auth_headers):
        response = await client.get('/api/auth/me', headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['email'] == test_user.email
        assert data['swms_credits'] == 2
        assert data['total_credits'] == 2

    @pytest.mark.asyncio
    async def test_update_profile(self, client: AsyncClient, auth_headers):
        response = await client.patch('/api/auth/me/profile', headers=auth_headers, json={
            'company_name': 'New Co Pty Ltd',
            'license_number': 'EC-12345',
        })

        assert response.status_code == 200
        data = response.json()
        assert data['company_name'] == 'New Co Pty Ltd'
        assert data['license_number'] == 'EC-12345'

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/auth/logout', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['success'] is True
        assert settings.SESSION_COOKIE_NAME in response.headers.get('set-cookie', '')
