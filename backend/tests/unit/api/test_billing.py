"""
Unit Tests for User Billing and Payment API Endpoints
"""
import hashlib
import hmac
import json

import pytest
from httpx import AsyncClient
from unittest.mock import MagicMock

from riskify.core.config import settings
from riskify.models.billing import PaymentTransaction, TransactionStatus
from riskify.services.payment_service import payment_service


def _sign(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


@pytest.fixture
def razorpay_configured(monkeypatch):
    """Razorpay keys set and the SDK client replaced with a mock"""
    monkeypatch.setattr(settings, 'RAZORPAY_KEY_ID', 'rzp_test_key')
    monkeypatch.setattr(settings, 'RAZORPAY_KEY_SECRET', 'rzp_test_secret')
    monkeypatch.setattr(settings, 'RAZORPAY_WEBHOOK_SECRET', 'whsec_test')
    client = MagicMock()
    client.order.create.return_value = {'id': 'order_test_1'}
    monkeypatch.setattr(payment_service, '_client', client)
    return client


async def _pending_order(db_session, user, package: str = 'pack') -> PaymentTransaction:
    packages = settings.get_credit_packages()
    transaction = PaymentTransaction(
        user_id=user.id,
        razorpay_order_id=f'order_{package}',
        amount=packages[package]['price'],
        currency=settings.PAYMENT_CURRENCY,
        status=TransactionStatus.PENDING,
        package=package,
        credits=packages[package]['credits'],
        description=packages[package]['name'],
        extra_metadata={'kind': packages[package]['kind']},
    )
    db_session.add(transaction)
    await db_session.commit()
    return transaction


class TestUserBilling:
    """GET /user/billing, POST /user/use-credit, GET /user/credit-history"""

    @pytest.mark.asyncio
    async def test_billing_breakdown(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/user/billing', headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['credits'] == {
            'subscription_credits': 0,
            'addon_credits': 0,
            'swms_credits': 2,
            'total_credits': 2,
        }
        assert data['subscription']['subscription_status'] == 'none'
        assert data['credit_cost'] == settings.SWMS_CREDIT_COST

    @pytest.mark.asyncio
    async def test_use_credit(self, client: AsyncClient, db_session, test_user, auth_headers):
        test_user.addon_credits = 1
        await db_session.commit()

        response = await client.post('/api/user/use-credit', headers=auth_headers)

        assert response.status_code == 200
        data = response.json()
        assert data['credits_used'] == 1
        assert data['buckets'] == ['addon']
        assert data['credits']['total_credits'] == 2

    @pytest.mark.asyncio
    async def test_use_credit_when_empty(self, client: AsyncClient, db_session, test_user, auth_headers):
        test_user.swms_credits = 0
        await db_session.commit()

        response = await client.post('/api/user/use-credit', headers=auth_headers)

        assert response.status_code == 402
        assert response.json()['error']['code'] == 'INSUFFICIENT_CREDITS'

    @pytest.mark.asyncio
    async def test_credit_history(self, client: AsyncClient, auth_headers):
        await client.post('/api/user/use-credit', headers=auth_headers)
        await client.post('/api/user/use-credit', headers=auth_headers)

        data = (await client.get('/api/user/credit-history?page_size=1', headers=auth_headers)).json()

        assert data['total'] == 2
        assert len(data['transactions']) == 1
        assert data['transactions'][0]['transaction_type'] == 'usage'
        assert data['transactions'][0]['credits_changed'] == -1

    @pytest.mark.asyncio
    async def test_subscription(self, client: AsyncClient, auth_headers):
        response = await client.get('/api/user/subscription', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['monthly_allowance'] == 0


class TestPackages:

    @pytest.mark.asyncio
    async def test_packages_public(self, client: AsyncClient):
        response = await client.get('/api/payments/packages')

        assert response.status_code == 200
        data = response.json()
        assert data['configured'] is False
        packages = {p['key']: p for p in data['packages']}
        assert packages['single']['credits'] == 1
        assert packages['pro']['kind'] == 'subscription'

    @pytest.mark.asyncio
    async def test_create_order_not_configured(self, client: AsyncClient, auth_headers):
        response = await client.post('/api/payments/create-payment-intent', headers=auth_headers,
                                     json={'package': 'single'})

        assert response.status_code == 503
        assert response.json()['error']['code'] == 'PAYMENT_NOT_CONFIGURED'

    @pytest.mark.asyncio
    async def test_webhook_skipped_without_secret(self, client: AsyncClient):
        response = await client.post('/api/payments/webhook', content=b'{}')

        assert response.status_code == 200
        assert response.json()['status'] == 'skipped'


class TestRazorpayFlow:

    @pytest.mark.asyncio
    async def test_create_order(self, client: AsyncClient, auth_headers, razorpay_configured):
        response = await client.post('/api/payments/create-payment-intent', headers=auth_headers,
                                     json={'package': 'pack'})

        assert response.status_code == 200
        data = response.json()
        assert data['order_id'] == 'order_test_1'
        assert data['credits'] == 5
        assert data['key_id'] == 'rzp_test_key'
        sent = razorpay_configured.order.create.call_args.kwargs['data']
        assert sent['amount'] == data['amount']

    @pytest.mark.asyncio
    async def test_invalid_package(self, client: AsyncClient, auth_headers, razorpay_configured):
        response = await client.post('/api/payments/create-payment-intent', headers=auth_headers,
                                     json={'package': 'gold'})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_verify_grants_addon_credits(self, client: AsyncClient, db_session, test_user,
                                               auth_headers, razorpay_configured):
        transaction = await _pending_order(db_session, test_user, 'pack')
        signature = _sign('rzp_test_secret', f'{transaction.razorpay_order_id}|pay_1'.encode())
        payload = {
            'razorpay_order_id': transaction.razorpay_order_id,
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': signature,
        }

        response = await client.post('/api/payments/verify', headers=auth_headers, json=payload)
        assert response.status_code == 200
        assert response.json()['credits_added'] == 5
        assert response.json()['total_credits'] == 7

        again = await client.post('/api/payments/verify', headers=auth_headers, json=payload)
        assert again.json()['credits_added'] == 0
        assert test_user.addon_credits == 5

    @pytest.mark.asyncio
    async def test_verify_bad_signature(self, client: AsyncClient, db_session, test_user,
                                        auth_headers, razorpay_configured):
        transaction = await _pending_order(db_session, test_user)

        response = await client.post('/api/payments/verify', headers=auth_headers, json={
            'razorpay_order_id': transaction.razorpay_order_id,
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': 'bad',
        })

        assert response.status_code == 400
        await db_session.refresh(transaction)
        assert transaction.status == TransactionStatus.FAILED

    @pytest.mark.asyncio
    async def test_webhook_activates_subscription(self, client: AsyncClient, db_session, test_user,
                                                  razorpay_configured):
        transaction = await _pending_order(db_session, test_user, 'pro')
        body = json.dumps({
            'event': 'payment.captured',
            'payload': {'payment': {'entity': {'id': 'pay_2', 'order_id': transaction.razorpay_order_id}}},
        }).encode()

        response = await client.post('/api/payments/webhook', content=body,
                                     headers={'X-Razorpay-Signature': _sign('whsec_test', body)})

        assert response.status_code == 200
        assert response.json()['event'] == 'payment.captured'
        await db_session.refresh(test_user)
        assert test_user.subscription_type == 'pro'
        assert test_user.subscription_credits == 10

    @pytest.mark.asyncio
    async def test_webhook_bad_signature(self, client: AsyncClient, razorpay_configured):
        response = await client.post('/api/payments/webhook', content=b'{}',
                                     headers={'X-Razorpay-Signature': 'bad'})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_webhook_non_ascii_signature(self, client: AsyncClient, razorpay_configured):
        response = await client.post('/api/payments/webhook', content=b'{}',
                                     headers={'X-Razorpay-Signature': 'caf\u00e9'.encode('utf-8')})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_verify_then_webhooks_credit_once(self, client: AsyncClient, db_session, test_user,
                                                    auth_headers, razorpay_configured):
        transaction = await _pending_order(db_session, test_user, 'pack')
        order_id = transaction.razorpay_order_id
        await client.post('/api/payments/verify', headers=auth_headers, json={
            'razorpay_order_id': order_id,
            'razorpay_payment_id': 'pay_1',
            'razorpay_signature': _sign('rzp_test_secret', f'{order_id}|pay_1'.encode()),
        })

        for event in (
            {'event': 'payment.captured',
             'payload': {'payment': {'entity': {'id': 'pay_1', 'order_id': order_id}}}},
            {'event': 'order.paid',
             'payload': {'order': {'entity': {'id': order_id}},
                         'payment': {'entity': {'id': 'pay_1'}}}},
        ):
            body = json.dumps(event).encode()
            response = await client.post('/api/payments/webhook', content=body,
                                         headers={'X-Razorpay-Signature': _sign('whsec_test', body)})
            assert response.status_code == 200

        await db_session.refresh(test_user)
        assert test_user.addon_credits == 5
        history = (await client.get('/api/user/credit-history', headers=auth_headers)).json()
        assert [t['transaction_type'] for t in history['transactions']].count('purchase') == 1

    @pytest.mark.asyncio
    async def test_webhook_payment_failed(self, client: AsyncClient, db_session, test_user,
                                         auth_headers, razorpay_configured):
        transaction = await _pending_order(db_session, test_user, 'pack')
        body = json.dumps({
            'event': 'payment.failed',
            'payload': {'payment': {'entity': {'id': 'pay_3', 'order_id': transaction.razorpay_order_id}}},
        }).encode()

        response = await client.post('/api/payments/webhook', content=body,
                                     headers={'X-Razorpay-Signature': _sign('whsec_test', body)})

        assert response.status_code == 200
        await db_session.refresh(transaction)
        assert transaction.status == TransactionStatus.FAILED

        late = await client.post('/api/payments/verify', headers=auth_headers, json={
            'razorpay_order_id': transaction.razorpay_order_id,
            'razorpay_payment_id': 'pay_3',
            'razorpay_signature': _sign('rzp_test_secret', f'{transaction.razorpay_order_id}|pay_3'.encode()),
        })
        assert late.status_code == 400
        await db_session.refresh(test_user)
        assert test_user.addon_credits == 0

    @pytest.mark.asyncio
    async def test_payment_history(self, client: AsyncClient, db_session, test_user, auth_headers):
        await _pending_order(db_session, test_user)

        data = (await client.get('/api/payments/history', headers=auth_headers)).json()

        assert data['total'] == 1
        assert data['transactions'][0]['order_id'] == 'order_pack'
        assert data['transactions'][0]['status'] == 'pending'
