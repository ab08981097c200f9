"""
Unit tests for the service layer: the listing write saga, uploads in flight,
session events, and the mirror service.
"""

import pytest
from sqlalchemy.exc import OperationalError

from app.documents import DocumentStore
from app.schemas.listing import ListingForm
from app.schemas.property import PropertyMirrorCreate
from app.services.image import ImageService, UploadTracker
from app.services.listing import LISTINGS_COLLECTION, ListingService
from app.services.mirror import PropertyMirrorService, document_to_mirror
from app.services.session import (
    SIGNED_IN,
    SIGNED_OUT,
    SessionEvent,
    SessionEvents,
    SessionRegistry,
)
from app.utils.exceptions import (
    DuplicateResourceError,
    MirrorSyncError,
    PropertyNotFoundError,
    PropertyOwnershipError,
    UploadInProgressError,
    ValidationError,
)
from tests.conftest import ListingFactory, make_current_user


class FailingMirror:
    """Mirror whose writes all fail as if the database were unreachable."""

    def __init__(self, missing_on_delete: bool = False):
        self.missing_on_delete = missing_on_delete

    async def create_property(self, values):
        raise OperationalError("INSERT", {}, Exception("connection refused"))

    async def update_property(self, property_id, changes):
        raise OperationalError("UPDATE", {}, Exception("connection refused"))

    async def delete_property(self, property_id):
        if self.missing_on_delete:
            raise PropertyNotFoundError(property_id)
        raise OperationalError("DELETE", {}, Exception("connection refused"))


def _form(**overrides) -> ListingForm:
    return ListingForm.model_validate(ListingFactory.create_listing_data(**overrides))


@pytest.fixture
def listing_service(document_store, mirror_service, object_storage) -> ListingService:
    return ListingService(document_store, mirror_service, object_storage, uploads=UploadTracker())


class TestListingSaga:
    """Dual write with compensation."""

    async def test_create_mirrors_document(self, listing_service: ListingService, mirror_service):
        user = make_current_user()

        document = await listing_service.create_listing(_form(), user)

        row = await mirror_service.get_property(document.id)
        assert row.user_id == user.id
        assert row.mirrored_values()["price"] == document.data["price"]

    async def test_create_compensates_on_mirror_failure(self, document_store: DocumentStore, object_storage):
        service = ListingService(document_store, FailingMirror(), object_storage, uploads=UploadTracker())

        with pytest.raises(MirrorSyncError) as exc_info:
            await service.create_listing(_form(), make_current_user())

        assert exc_info.value.status_code == 502
        assert exc_info.value.operation == "create"
        assert await document_store.query(LISTINGS_COLLECTION) == []

    async def test_replace_restores_previous_document(
        self, listing_service: ListingService, document_store: DocumentStore, object_storage
    ):
        user = make_current_user()
        created = await listing_service.create_listing(_form(title="Original"), user)
        failing = ListingService(document_store, FailingMirror(), object_storage, uploads=UploadTracker())

        with pytest.raises(MirrorSyncError):
            await failing.replace_listing(created.id, _form(title="Changed"), user)

        document = await document_store.get(LISTINGS_COLLECTION, created.id)
        assert document.data == created.data

    async def test_delete_recreates_document(
        self, listing_service: ListingService, document_store: DocumentStore, object_storage
    ):
        user = make_current_user()
        created = await listing_service.create_listing(_form(), user)
        failing = ListingService(document_store, FailingMirror(), object_storage, uploads=UploadTracker())

        with pytest.raises(MirrorSyncError):
            await failing.delete_listing(created.id, user)

        document = await document_store.get(LISTINGS_COLLECTION, created.id)
        assert document.data == created.data

    async def test_delete_with_missing_mirror_row_succeeds(
        self, document_store: DocumentStore, object_storage
    ):
        user = make_current_user()
        document = await document_store.add(LISTINGS_COLLECTION, _form().to_document(user.id))
        service = ListingService(
            document_store, FailingMirror(missing_on_delete=True), object_storage, uploads=UploadTracker()
        )

        await service.delete_listing(document.id, user)

        assert await document_store.get(LISTINGS_COLLECTION, document.id) is None

    async def test_replace_forces_owner(self, listing_service: ListingService):
        user = make_current_user()
        created = await listing_service.create_listing(_form(), user)

        replaced = await listing_service.replace_listing(created.id, _form(title="New"), user)

        assert replaced.data["userId"] == user.id
        assert replaced.data["title"] == "New"

    async def test_mutations_check_ownership(self, listing_service: ListingService):
        created = await listing_service.create_listing(_form(), make_current_user("owner"))
        intruder = make_current_user("intruder")

        with pytest.raises(PropertyOwnershipError):
            await listing_service.replace_listing(created.id, _form(), intruder)
        with pytest.raises(PropertyOwnershipError):
            await listing_service.delete_listing(created.id, intruder)
        with pytest.raises(PropertyOwnershipError):
            await listing_service.remove_image(created.id, "http://test/media/x.jpg", intruder)

    async def test_get_listing_with_unsafe_id(self, listing_service: ListingService):
        with pytest.raises(PropertyNotFoundError):
            await listing_service.get_listing("../users")


class TestUploadTracker:

    async def test_submission_refused_while_uploading(self, document_store, mirror_service, object_storage):
        tracker = UploadTracker()
        service = ListingService(document_store, mirror_service, object_storage, uploads=tracker)
        user = make_current_user()

        async with tracker.track(user.id):
            assert tracker.is_uploading(user.id)
            with pytest.raises(UploadInProgressError):
                await service.create_listing(_form(), user)

        assert not tracker.is_uploading(user.id)
        await service.create_listing(_form(), user)

    async def test_other_users_are_not_blocked(self):
        tracker = UploadTracker()

        async with tracker.track("a"):
            tracker.ensure_idle("b")
            assert not tracker.is_uploading("b")

    async def test_nested_uploads(self):
        tracker = UploadTracker()

        async with tracker.track("a"):
            async with tracker.track("a"):
                pass
            assert tracker.is_uploading("a")
        assert not tracker.is_uploading("a")

    async def test_tracker_released_on_failure(self, object_storage):
        tracker = UploadTracker()
        service = ImageService(object_storage, tracker=tracker)

        class BrokenUpload:
            filename = "a.jpg"
            content_type = "image/jpeg"

            async def read(self):
                return b"not an image"

        with pytest.raises(ValidationError):
            await service.upload_images("a", [BrokenUpload()])

        assert not tracker.is_uploading("a")


class TestSessionEvents:

    async def test_subscribe_and_unsubscribe(self):
        events = SessionEvents()
        received = []

        unsubscribe = events.subscribe(received.append)
        await events.emit(SessionEvent(SIGNED_IN, "u1", "s1"))
        unsubscribe()
        unsubscribe()
        await events.emit(SessionEvent(SIGNED_OUT, "u1", "s1"))

        assert [e.kind for e in received] == [SIGNED_IN]
        assert events.listener_count == 0

    async def test_async_listener(self):
        events = SessionEvents()
        received = []

        async def listener(event):
            received.append(event.session_id)

        events.subscribe(listener)
        await events.emit(SessionEvent(SIGNED_IN, "u1", "s1"))

        assert received == ["s1"]

    async def test_failing_listener_does_not_stop_others(self):
        events = SessionEvents()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        events.subscribe(broken)
        events.subscribe(received.append)
        await events.emit(SessionEvent(SIGNED_IN, "u1", "s1"))

        assert len(received) == 1

    async def test_registry_emits_on_open_and_close(self, document_store: DocumentStore):
        events = SessionEvents()
        registry = SessionRegistry(document_store, events)
        received = []
        registry.subscribe(received.append)

        session_id = await registry.open("u1")
        assert await registry.is_active(session_id, "u1")
        assert not await registry.is_active(session_id, "u2")

        assert await registry.close(session_id) is True
        assert await registry.close(session_id) is False
        assert not await registry.is_active(session_id, "u1")

        assert [(e.kind, e.user_id, e.session_id) for e in received] == [
            (SIGNED_IN, "u1", session_id),
            (SIGNED_OUT, "u1", session_id),
        ]

    async def test_is_active_with_malformed_id(self, document_store: DocumentStore):
        registry = SessionRegistry(document_store, SessionEvents())

        assert await registry.is_active("../../etc", "u1") is False


class TestPropertyMirrorService:

    def _values(self, property_id: str = "p1", user_id: str = "u1"):
        body = ListingFactory.create_mirror_data(property_id, user_id)
        return PropertyMirrorCreate.model_validate(body).require_all()

    async def test_create_and_duplicate(self, mirror_service: PropertyMirrorService):
        prop = await mirror_service.create_property(self._values())

        assert prop.id == "p1"
        assert prop.created_at is not None
        with pytest.raises(DuplicateResourceError):
            await mirror_service.create_property(self._values())

    async def test_update_missing(self, mirror_service: PropertyMirrorService):
        with pytest.raises(PropertyNotFoundError):
            await mirror_service.update_property("missing", {"title": "x"})

    async def test_update_ignores_id(self, mirror_service: PropertyMirrorService):
        await mirror_service.create_property(self._values())

        prop = await mirror_service.update_property("p1", {"id": "other", "title": "Renamed"})

        assert prop.id == "p1"
        assert prop.title == "Renamed"

    async def test_delete_missing(self, mirror_service: PropertyMirrorService):
        with pytest.raises(PropertyNotFoundError):
            await mirror_service.delete_property("missing")

    async def test_upsert(self, mirror_service: PropertyMirrorService):
        values = self._values()
        await mirror_service.upsert_property(values)
        prop = await mirror_service.upsert_property({**values, "price": 1})

        assert prop.price == 1
        assert await mirror_service.property_repo.count() == 1

    async def test_shortlist_once_per_pair(self, mirror_service: PropertyMirrorService):
        await mirror_service.create_property(self._values())

        first = await mirror_service.shortlist_property("u2", "p1")
        second = await mirror_service.shortlist_property("u2", "p1")

        assert first.id == second.id
        shortlists = await mirror_service.get_shortlisted("u2")
        assert [s.property.id for s in shortlists] == ["p1"]

    async def test_shortlist_unknown_property(self, mirror_service: PropertyMirrorService):
        with pytest.raises(PropertyNotFoundError):
            await mirror_service.shortlist_property("u2", "missing")

    async def test_document_to_mirror(self, document_store: DocumentStore):
        document = await document_store.add(LISTINGS_COLLECTION, _form().to_document("u1"))

        values = document_to_mirror(document)

        assert values["id"] == document.id
        assert values["area_sqft"] == 950
        assert values["user_id"] == "u1"
        assert "images" not in values
