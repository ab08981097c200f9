"""
Tests for reconciling the relational mirror with the primary store.
"""

import pytest

from app.documents import DocumentStore
from app.services.listing import LISTINGS_COLLECTION, ListingService
from app.services.mirror import PropertyMirrorService
from app.services.image import UploadTracker
from app.services.sync import MirrorReconciler
from app.schemas.listing import ListingForm
from tests.conftest import ListingFactory, make_current_user


@pytest.fixture
def reconciler(document_store: DocumentStore, mirror_service: PropertyMirrorService) -> MirrorReconciler:
    return MirrorReconciler(document_store, mirror_service)


async def _create_listing(document_store, mirror_service, object_storage, **overrides):
    service = ListingService(document_store, mirror_service, object_storage, uploads=UploadTracker())
    form = ListingForm.model_validate(ListingFactory.create_listing_data(**overrides))
    return await service.create_listing(form, make_current_user())


class TestCheck:

    async def test_empty_stores_are_in_sync(self, reconciler: MirrorReconciler):
        report = await reconciler.check()

        assert report.in_sync

    async def test_saga_writes_stay_in_sync(
        self, reconciler, document_store, mirror_service, object_storage
    ):
        await _create_listing(document_store, mirror_service, object_storage)
        await _create_listing(document_store, mirror_service, object_storage, city="Mumbai")

        assert (await reconciler.check()).in_sync

    async def test_reports_every_kind_of_divergence(
        self, reconciler, document_store, mirror_service, object_storage
    ):
        edited = await _create_listing(document_store, mirror_service, object_storage)
        orphan = await _create_listing(document_store, mirror_service, object_storage)
        unmirrored = await document_store.add(
            LISTINGS_COLLECTION, ListingForm.model_validate(ListingFactory.create_listing_data()).to_document("u1")
        )
        await document_store.update(LISTINGS_COLLECTION, edited.id, {"price": 1, "status": "underConstruction"})
        await document_store.delete(LISTINGS_COLLECTION, orphan.id)

        report = await reconciler.check()

        assert not report.in_sync
        assert report.only_in_primary == [unmirrored.id]
        assert report.only_in_mirror == [orphan.id]
        assert report.mismatched == {edited.id: ["price", "status"]}


class TestResync:

    async def test_resync_repairs_mirror(
        self, reconciler, document_store, mirror_service, object_storage
    ):
        edited = await _create_listing(document_store, mirror_service, object_storage)
        await document_store.update(LISTINGS_COLLECTION, edited.id, {"title": "Edited directly"})
        await document_store.add(
            LISTINGS_COLLECTION, ListingForm.model_validate(ListingFactory.create_listing_data()).to_document("u1")
        )

        result = await reconciler.resync()

        assert result.upserted == 2
        assert result.pruned == 0
        assert (await reconciler.check()).in_sync
        assert (await mirror_service.get_property(edited.id)).title == "Edited directly"

    async def test_prune_removes_orphans(
        self, reconciler, document_store, mirror_service, object_storage
    ):
        orphan = await _create_listing(document_store, mirror_service, object_storage)
        await document_store.delete(LISTINGS_COLLECTION, orphan.id)

        kept = await reconciler.resync()
        assert kept.pruned == 0
        assert (await reconciler.check()).only_in_mirror == [orphan.id]

        pruned = await reconciler.resync(prune=True)

        assert pruned.pruned == 1
        assert (await reconciler.check()).in_sync
