"""
Unit Tests for shared column types
"""
import uuid

import pytest
from httpx import AsyncClient

from riskify.core.types import GUID, canonical_id


class TestCanonicalId:

    def test_uuid_object(self):
        value = uuid.uuid4()

        assert canonical_id(value) == str(value)

    def test_upper_case_and_braced_ids_normalised(self):
        value = str(uuid.uuid4())

        assert canonical_id(value.upper()) == value
        assert canonical_id('{' + value + '}') == value

    def test_other_strings_unchanged(self):
        assert canonical_id('not-a-uuid') == 'not-a-uuid'

    def test_bind_param_keeps_none(self):
        assert GUID().process_bind_param(None, None) is None


class TestIdLookup:

    @pytest.mark.asyncio
    async def test_upper_case_document_id_resolves(self, client: AsyncClient, auth_headers):
        created = await client.post('/api/swms/draft', headers=auth_headers, json={'projectName': 'Case test'})
        document_id = created.json()['id']

        response = await client.get(f'/api/swms/draft/{document_id.upper()}', headers=auth_headers)

        assert response.status_code == 200
        assert response.json()['id'] == document_id
