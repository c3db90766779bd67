"""
Unit Tests for Admin API Endpoints
"""
import pytest
from httpx import AsyncClient

from riskify.core.security import verify_password


class TestAdminAccess:

    @pytest.mark.asyncio
    @pytest.mark.parametrize('path', [
        '/api/admin/users',
        '/api/admin/swms',
        '/api/admin/usage',
        '/api/admin/popular-trades',
        '/api/admin/audit-logs',
    ])
    async def test_non_admin_forbidden(self, client: AsyncClient, auth_headers, path):
        response = await client.get(path, headers=auth_headers)

        assert response.status_code == 403
        assert response.json()['detail'] == 'Admin access required'

    @pytest.mark.asyncio
    async def test_requires_auth(self, client: AsyncClient):
        response = await client.get('/api/admin/users')

        assert response.status_code == 401


class TestUserManagement:

    @pytest.mark.asyncio
    async def test_list_users(self, client: AsyncClient, test_user, other_user, admin_auth_headers):
        response = await client.get('/api/admin/users', headers=admin_auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['total'] == 3
        assert data['total_pages'] == 1

    @pytest.mark.asyncio
    async def test_search_users(self, client: AsyncClient, test_user, other_user, admin_auth_headers):
        response = await client.get('/api/admin/users', headers=admin_auth_headers,
                                    params={'search': test_user.email})

        items = response.json()['items']
        assert [item['id'] for item in items] == [str(test_user.id)]

    @pytest.mark.asyncio
    async def test_filter_by_role(self, client: AsyncClient, test_user, admin_user, admin_auth_headers):
        response = await client.get('/api/admin/users?role=admin', headers=admin_auth_headers)

        assert [item['id'] for item in response.json()['items']] == [str(admin_user.id)]

    @pytest.mark.asyncio
    async def test_get_user_with_document_count(self, client: AsyncClient, test_user, auth_headers,
                                                admin_auth_headers):
        await client.post('/api/swms/draft', headers=auth_headers, json={'projectName': 'One'})

        response = await client.get(f'/api/admin/users/{test_user.id}', headers=admin_auth_headers)

        assert response.status_code == 200
        assert response.json()['documents_count'] == 1

    @pytest.mark.asyncio
    async def test_unknown_user(self, client: AsyncClient, admin_auth_headers):
        response = await client.get('/api/admin/users/00000000-0000-0000-0000-000000000000',
                                    headers=admin_auth_headers)

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_user(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.put(f'/api/admin/users/{test_user.id}', headers=admin_auth_headers,
                                    json={'company_name': 'Renamed Pty Ltd', 'is_active': False})

        assert response.status_code == 200
        assert response.json()['company_name'] == 'Renamed Pty Ltd'
        assert response.json()['is_active'] is False

    @pytest.mark.asyncio
    async def test_cannot_deactivate_self(self, client: AsyncClient, admin_user, admin_auth_headers):
        response = await client.put(f'/api/admin/users/{admin_user.id}', headers=admin_auth_headers,
                                    json={'is_active': False})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_grant_and_revoke_admin(self, client: AsyncClient, test_user, admin_auth_headers):
        granted = await client.patch(f'/api/admin/users/{test_user.id}/admin', headers=admin_auth_headers,
                                     json={'is_admin': True})
        assert granted.json()['role'] == 'admin'

        revoked = await client.patch(f'/api/admin/users/{test_user.id}/admin', headers=admin_auth_headers,
                                     json={'is_admin': False})
        assert revoked.json()['role'] == 'user'

    @pytest.mark.asyncio
    async def test_cannot_revoke_own_admin(self, client: AsyncClient, admin_user, admin_auth_headers):
        response = await client.patch(f'/api/admin/users/{admin_user.id}/admin', headers=admin_auth_headers,
                                      json={'is_admin': False})

        assert response.status_code == 400
        assert response.json()['detail'] == 'Cannot revoke your own admin rights'

    @pytest.mark.asyncio
    async def test_reset_password(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.patch(f'/api/admin/users/{test_user.id}/password', headers=admin_auth_headers,
                                      json={'new_password': 'brandnewpassword'})

        assert response.status_code == 200
        assert verify_password('brandnewpassword', test_user.hashed_password)


class TestCreditManagement:

    @pytest.mark.asyncio
    async def test_get_credits(self, client: AsyncClient, test_user, admin_auth_headers):
        data = (await client.get(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers)).json()

        assert data['swms_credits'] == 2
        assert data['total_credits'] == 2

    @pytest.mark.asyncio
    async def test_add_credits(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.post(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                                     json={'credits': 3, 'reason': 'Goodwill'})

        assert response.status_code == 200
        assert response.json()['addon_credits'] == 3
        assert response.json()['total_credits'] == 5

    @pytest.mark.asyncio
    async def test_remove_credits(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.post(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                                     json={'credits': -1, 'bucket': 'legacy'})

        assert response.json()['swms_credits'] == 1

    @pytest.mark.asyncio
    async def test_zero_credits_rejected(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.post(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                                     json={'credits': 0})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_set_credits(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.patch(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                                      json={'credits': 10})

        assert response.json()['swms_credits'] == 10

    @pytest.mark.asyncio
    async def test_subscription_credits_with_plan(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.post(f'/api/admin/users/{test_user.id}/subscription-credits',
                                     headers=admin_auth_headers, json={'credits': 10, 'plan': 'pro'})

        assert response.status_code == 200
        assert response.json()['subscription_credits'] == 10
        assert test_user.subscription_type == 'pro'
        assert test_user.subscription_status.value == 'active'

    @pytest.mark.asyncio
    async def test_subscription_credits_unknown_plan(self, client: AsyncClient, test_user, admin_auth_headers):
        response = await client.post(f'/api/admin/users/{test_user.id}/subscription-credits',
                                     headers=admin_auth_headers, json={'credits': 5, 'plan': 'single'})

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_addon_credits_are_additive(self, client: AsyncClient, test_user, admin_auth_headers):
        url = f'/api/admin/users/{test_user.id}/addon-credits'
        await client.post(url, headers=admin_auth_headers, json={'credits': 2})
        response = await client.post(url, headers=admin_auth_headers, json={'credits': 3})

        assert response.json()['addon_credits'] == 5

    @pytest.mark.asyncio
    async def test_actions_are_audited(self, client: AsyncClient, test_user, admin_user, admin_auth_headers):
        await client.post(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                          json={'credits': 1})
        await client.patch(f'/api/admin/users/{test_user.id}/credits', headers=admin_auth_headers,
                           json={'credits': 4})

        data = (await client.get('/api/admin/audit-logs', headers=admin_auth_headers)).json()
        assert data['total'] == 2
        assert [item['action'] for item in data['items']] == ['credits_set', 'credits_added']
        assert data['items'][0]['admin_email'] == admin_user.email
        assert data['items'][0]['target_id'] == str(test_user.id)

        filtered = (await client.get('/api/admin/audit-logs?action=credits_added',
                                     headers=admin_auth_headers)).json()
        assert filtered['total'] == 1


class TestAdminDocuments:

    @pytest.mark.asyncio
    async def test_all_documents(self, client: AsyncClient, test_user, auth_headers, other_auth_headers,
                                 admin_auth_headers, form_payload):
        await client.post('/api/swms', headers=auth_headers, json=form_payload)
        await client.post('/api/swms/draft', headers=other_auth_headers, json={'projectName': 'Other draft'})

        everything = (await client.get('/api/admin/swms', headers=admin_auth_headers)).json()
        completed = (await client.get('/api/admin/swms?status=completed', headers=admin_auth_headers)).json()

        assert everything['total'] == 2
        assert completed['total'] == 1
        assert completed['items'][0]['owner_email'] == test_user.email

    @pytest.mark.asyncio
    async def test_user_documents_include_recycle_bin(self, client: AsyncClient, test_user, auth_headers,
                                                      admin_auth_headers):
        first = (await client.post('/api/swms/draft', headers=auth_headers, json={'projectName': 'A'})).json()
        await client.post('/api/swms/draft', headers=auth_headers, json={'projectName': 'B'})
        await client.delete(f"/api/swms/{first['id']}", headers=auth_headers)

        data = (await client.get(f'/api/admin/user/{test_user.id}/swms', headers=admin_auth_headers)).json()

        assert data['total'] == 2
        assert data['draft_count'] == 1
        assert data['deleted_count'] == 1

    @pytest.mark.asyncio
    async def test_usage_stats(self, client: AsyncClient, test_user, auth_headers, admin_auth_headers,
                               form_payload):
        await client.post('/api/swms', headers=auth_headers, json=form_payload)

        data = (await client.get('/api/admin/usage', headers=admin_auth_headers)).json()

        assert data['total_users'] == 2
        assert data['admin_users'] == 1
        assert data['completed_documents'] == 1
        assert data['credits_used'] == 1
        assert data['credits_outstanding'] == 1
        assert data['revenue_cents'] == 0

    @pytest.mark.asyncio
    async def test_popular_trades(self, client: AsyncClient, auth_headers, admin_auth_headers, form_payload):
        await client.post('/api/swms', headers=auth_headers, json=form_payload)
        await client.post('/api/swms/draft', headers=auth_headers, json={'tradeType': 'Electrical'})
        await client.post('/api/swms/draft', headers=auth_headers, json={'tradeType': 'Plumbing'})

        trades = (await client.get('/api/admin/popular-trades', headers=admin_auth_headers)).json()['trades']

        assert trades[0] == {'trade': 'Electrical', 'documents': 2, 'completed': 1}
        assert trades[1]['trade'] == 'Plumbing'
