"""
Unit Tests for SwmsService recycle bin retention
"""
from datetime import timedelta

import pytest
from sqlalchemy import select

from riskify.models.swms import SwmsDocument
from riskify.schemas.swms import SwmsDraftData
from riskify.services.swms_service import swms_service


async def _draft(db_session, user, name: str) -> SwmsDocument:
    return await swms_service.create_draft(db_session, user, SwmsDraftData(project_name=name))


async def _stored_ids(db_session) -> set:
    result = await db_session.execute(select(SwmsDocument.id))
    return set(result.scalars().all())


class TestPurgeExpired:

    @pytest.mark.asyncio
    async def test_kept_inside_retention(self, db_session, test_user):
        binned = await _draft(db_session, test_user, 'Binned')
        await swms_service.soft_delete(db_session, test_user, str(binned.id))

        purged = await swms_service.purge_expired(db_session, now=binned.deleted_at + timedelta(days=29))

        assert purged == 0
        assert str(binned.id) in await _stored_ids(db_session)

    @pytest.mark.asyncio
    async def test_removed_after_retention(self, db_session, test_user):
        live = await _draft(db_session, test_user, 'Live')
        binned = await _draft(db_session, test_user, 'Binned')
        live_id, binned_id = str(live.id), str(binned.id)
        await swms_service.soft_delete(db_session, test_user, binned_id)

        purged = await swms_service.purge_expired(
            db_session, now=binned.deleted_at + timedelta(days=30, seconds=1)
        )

        assert purged == 1
        assert await _stored_ids(db_session) == {live_id}

    @pytest.mark.asyncio
    async def test_restored_document_is_not_purged(self, db_session, test_user):
        document = await _draft(db_session, test_user, 'Restored')
        document_id = str(document.id)
        await swms_service.soft_delete(db_session, test_user, document_id)
        await swms_service.restore(db_session, test_user, document_id)

        purged = await swms_service.purge_expired(db_session, now=document.updated_at + timedelta(days=60))

        assert purged == 0
        assert document_id in await _stored_ids(db_session)
