"""
Unit Tests for Reference Data API Endpoints
"""
import pytest
from httpx import AsyncClient


class TestTradeLibrary:
    """Trade task library, public"""

    @pytest.mark.asyncio
    async def test_list_trades(self, client: AsyncClient):
        response = await client.get('/api/trades')

        assert response.status_code == 200
        names = [trade['name'] for trade in response.json()]
        assert len(names) == 23
        assert 'General Construction' in names

    @pytest.mark.asyncio
    async def test_trade_activities(self, client: AsyncClient):
        response = await client.get('/api/trades/Electrical/activities')

        assert response.status_code == 200
        tasks = response.json()
        assert tasks[0]['task_id'] == 'elec-0001'
        assert tasks[0]['risk_level'] == 'extreme'
        assert tasks[0]['residual_risk_level'] == 'medium'

    @pytest.mark.asyncio
    async def test_unknown_trade(self, client: AsyncClient):
        response = await client.get('/api/trades/Astronaut/activities')

        assert response.status_code == 404
        assert response.json()['success'] is False

    @pytest.mark.asyncio
    async def test_risk_assessment_lookup(self, client: AsyncClient):
        response = await client.get('/api/risk-assessment/downlight')

        assert response.status_code == 200
        data = response.json()
        assert data['task']['task_id'] == 'elec-0002'
        assert data['work_activity']['activity'] == data['task']['activity']
        assert 'initialRisk' in data['work_activity']
        assert 'controlMeasures' in data['work_activity']

    @pytest.mark.asyncio
    async def test_high_risk_tasks(self, client: AsyncClient):
        response = await client.get('/api/tasks/high-risk?min_level=extreme')

        assert response.status_code == 200
        assert all(task['risk_level'] == 'extreme' for task in response.json())

    @pytest.mark.asyncio
    async def test_search_tasks(self, client: AsyncClient):
        response = await client.get('/api/tasks/search', params={'q': 'arc flash', 'trade': 'Electrical'})

        data = response.json()
        assert data['query'] == 'arc flash'
        assert data['total'] == len(data['tasks'])
        assert any(task['task_id'] == 'elec-0001' for task in data['tasks'])


class TestCatalogues:

    @pytest.mark.asyncio
    async def test_high_risk_activities(self, client: AsyncClient):
        response = await client.get('/api/reference/high-risk-activities')

        assert response.status_code == 200
        assert len(response.json()) == 18

    @pytest.mark.asyncio
    async def test_ppe(self, client: AsyncClient):
        response = await client.get('/api/reference/ppe')

        assert len(response.json()) == 15

    @pytest.mark.asyncio
    async def test_risk_matrix(self, client: AsyncClient):
        data = (await client.get('/api/reference/risk-matrix')).json()

        assert len(data['likelihood']) == 5
        assert len(data['consequence']) == 5
        assert len(data['rows']) == 5
        assert [band['level'] for band in data['bands']] == ['extreme', 'high', 'medium', 'low']

    @pytest.mark.asyncio
    async def test_safety_library_filter(self, client: AsyncClient):
        response = await client.get('/api/safety-library', params={'category': 'Codes of Practice'})

        codes = response.json()
        assert len(codes) == 4
        assert all(code['category'] == 'Codes of Practice' for code in codes)


class TestTradeBreakdown:

    @pytest.mark.asyncio
    async def test_tasks_for_trade(self, client: AsyncClient):
        response = await client.get('/api/tasks/trade/Plumbing')

        assert response.status_code == 200
        data = response.json()
        assert data['trade'] == 'Plumbing'
        assert data['total_tasks'] == len(data['tasks'])
        assert sum(data['risk_distribution'].values()) == data['total_tasks']
        assert data['high_risk_tasks'] == 2

    @pytest.mark.asyncio
    async def test_trade_name_with_ampersand(self, client: AsyncClient):
        response = await client.get('/api/tasks/trade/Solar%20%26%20Renewable')

        assert response.status_code == 200
        assert response.json()['trade'] == 'Solar & Renewable'

    @pytest.mark.asyncio
    async def test_unknown_trade(self, client: AsyncClient):
        response = await client.get('/api/tasks/trade/Astronaut')

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_activity_safety(self, client: AsyncClient):
        response = await client.get('/api/activities/Erect tube and coupler scaffold/safety')

        assert response.status_code == 200
        data = response.json()
        assert data['trade'] == 'Scaffolding'
        assert data['safety_data']['task_id'] == 'scaf-0001'
        assert data['swms_compliance']['is_high_risk_work'] is True
        assert data['swms_compliance']['has_training_requirements'] is True

    @pytest.mark.asyncio
    async def test_activity_safety_not_found(self, client: AsyncClient):
        response = await client.get('/api/activities/underwater basket weaving/safety')

        assert response.status_code == 404
        assert response.json()['success'] is False


class TestAutoGenerate:

    @pytest.mark.asyncio
    async def test_generate(self, client: AsyncClient):
        response = await client.post('/api/auto-generate-swms', json={
            'activities': ['Excavation work', 'Concrete pouring'],
            'tradeType': 'Earthworks',
            'title': 'Driveway slab',
        })

        assert response.status_code == 200
        data = response.json()
        assert len(data['risks']) == 3
        assert data['risk_summary']['extreme'] == 2
        assert 'AS 3798:2007' in data['compliance_codes']
        assert 'AS/NZS 2566.1:2019' in data['compliance_codes']
        assert data['unmatched_activities'] == []

    @pytest.mark.asyncio
    async def test_no_login_or_credit_needed(self, client: AsyncClient, auth_headers, test_user, db_session):
        response = await client.post(
            '/api/auto-generate-swms', json={'activities': ['Roof work']}, headers=auth_headers
        )
        await db_session.refresh(test_user)

        assert response.status_code == 200
        assert test_user.swms_credits == 2

    @pytest.mark.asyncio
    async def test_no_activities(self, client: AsyncClient):
        response = await client.post('/api/auto-generate-swms', json={'activities': [], 'tradeType': 'Roofing'})

        assert response.status_code == 422
