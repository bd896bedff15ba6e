"""
Tests for the in-memory record store.

These tests verify the store contract the lifecycle controller relies on,
in particular the compare-and-set status update.
"""

import threading

import pytest

from shared.errors import NotFoundError, StorageError, ValidationError
from shared.models import PurchaseFacts, ReceiptInfo, RequestStatus, UserRole
from shared.record_store import InMemoryRecordStore, create_record_store


@pytest.fixture
def facts() -> PurchaseFacts:
    return PurchaseFacts(liters=10, rate=100, total=1000)


class TestStoreLifecycle:
    """Tests for connect/close and construction."""

    def test_calls_before_connect_fail(self, facts):
        store = InMemoryRecordStore()

        with pytest.raises(StorageError):
            store.create(7, facts)

    def test_calls_after_close_fail(self, empty_store, facts):
        empty_store.close()

        with pytest.raises(StorageError):
            empty_store.get(1)

    def test_loads_users_fixture(self, users_file):
        store = InMemoryRecordStore(users_file=users_file)
        store.connect()

        managers = store.list_users_by_role(UserRole.MANAGER)
        assert {m.username for m in managers} == {"lee.manager", "kim.manager"}

    def test_reconnect_keeps_saved_tokens(self, users_file):
        store = InMemoryRecordStore(users_file=users_file)
        store.connect()
        store.save_push_token(11, "fcm-token-kim")

        store.close()
        store.connect()

        assert store.get_user(11).push_token == "fcm-token-kim"
        assert len(store.list_users_by_role(UserRole.MANAGER)) == 2

    def test_missing_users_fixture(self, tmp_path):
        store = InMemoryRecordStore(users_file=tmp_path / "nope.json")

        with pytest.raises(StorageError):
            store.connect()

    def test_create_record_store_memory(self):
        assert isinstance(create_record_store("memory://"), InMemoryRecordStore)

    def test_create_record_store_unknown_scheme(self):
        with pytest.raises(StorageError):
            create_record_store("mysql://user:pw@localhost/fuel")


class TestRequests:
    """Tests for fuel request records."""

    def test_create_assigns_increasing_ids(self, store, facts):
        first = store.create(7, facts)
        second = store.create(7, facts)

        assert first.id == 1
        assert second.id == 2
        assert first.status == RequestStatus.PENDING

    def test_get_returns_copy(self, store, facts):
        created = store.create(7, facts)
        fetched = store.get(created.id)
        fetched.status = RequestStatus.APPROVED

        assert store.get(created.id).status == RequestStatus.PENDING

    def test_get_unknown(self, store):
        assert store.get(999) is None

    def test_list_by_owner(self, store, facts):
        store.create(7, facts)
        store.create(8, facts)
        store.create(7, facts)

        assert [r.id for r in store.list_by_owner(7)] == [1, 3]

    def test_list_by_status(self, store, facts):
        a = store.create(7, facts)
        b = store.create(7, facts)
        store.update_status(a.id, RequestStatus.APPROVED)

        pending = store.list_by_status([RequestStatus.PENDING])
        decided = store.list_by_status({"Approved", "Rejected"})

        assert [r.id for r in pending] == [b.id]
        assert [r.id for r in decided] == [a.id]


class TestUpdateStatus:
    """Tests for the atomic status update."""

    def test_returns_previous_status(self, store, facts):
        request = store.create(7, facts)

        previous = store.update_status(request.id, RequestStatus.APPROVED)

        assert previous == RequestStatus.PENDING
        updated = store.get(request.id)
        assert updated.status == RequestStatus.APPROVED
        assert updated.updated_at is not None

    def test_expected_mismatch_does_not_write(self, store, facts):
        request = store.create(7, facts)
        store.update_status(request.id, RequestStatus.REJECTED)

        previous = store.update_status(
            request.id, RequestStatus.APPROVED, expected=RequestStatus.PENDING
        )

        assert previous == RequestStatus.REJECTED
        assert store.get(request.id).status == RequestStatus.REJECTED

    def test_unknown_request(self, store):
        with pytest.raises(NotFoundError):
            store.update_status(42, RequestStatus.APPROVED)

    def test_concurrent_compare_and_set_single_winner(self, store, facts):
        request = store.create(7, facts)
        barrier = threading.Barrier(8)
        previous_values = []
        lock = threading.Lock()

        def attempt(status):
            barrier.wait()
            prev = store.update_status(request.id, status, expected=RequestStatus.PENDING)
            with lock:
                previous_values.append(prev)

        threads = [
            threading.Thread(
                target=attempt,
                args=(RequestStatus.APPROVED if i % 2 else RequestStatus.REJECTED,),
            )
            for i in range(8)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert previous_values.count(RequestStatus.PENDING) == 1


class TestReceipts:

    def test_attach_and_get(self, store, facts):
        request = store.create(7, facts)

        receipt = store.attach_receipt(request.id, ReceiptInfo(file_path="receipt_1.jpg", file_type="image/jpeg"))

        assert receipt.driver_id == 7
        assert store.get_receipt(request.id).file_path == "receipt_1.jpg"

    def test_create_with_receipt(self, store, facts):
        request = store.create(7, facts, ReceiptInfo(file_path="receipt_1.jpg", file_type="image/jpeg"))

        receipt = store.get_receipt(request.id)
        assert receipt.request_id == request.id
        assert receipt.driver_id == 7
        assert receipt.file_type == "image/jpeg"

    def test_create_with_receipt_rejects_later_attach(self, store, facts):
        request = store.create(7, facts, ReceiptInfo(file_path="a.jpg"))

        with pytest.raises(ValidationError):
            store.attach_receipt(request.id, ReceiptInfo(file_path="b.jpg"))

    def test_create_without_receipt(self, store, facts):
        request = store.create(7, facts)

        assert store.get_receipt(request.id) is None

    def test_second_receipt_rejected(self, store, facts):
        request = store.create(7, facts)
        store.attach_receipt(request.id, ReceiptInfo(file_path="a.jpg"))

        with pytest.raises(ValidationError):
            store.attach_receipt(request.id, ReceiptInfo(file_path="b.jpg"))
        assert store.get_receipt(request.id).file_path == "a.jpg"

    def test_receipt_for_unknown_request(self, store):
        with pytest.raises(NotFoundError):
            store.attach_receipt(5, ReceiptInfo(file_path="a.jpg"))


class TestNotificationsAndUsers:

    def test_add_notification_defaults_unread(self, store):
        notification = store.add_notification(7, "Title", "Body", {"requestId": "1"})

        assert notification.is_read is False
        assert notification.data == {"requestId": "1"}
        assert store.count_notifications() == 1

    def test_list_notifications_newest_first(self, store):
        store.add_notification(7, "first", "a")
        store.add_notification(8, "other", "b")
        store.add_notification(7, "second", "c")

        titles = [n.title for n in store.list_notifications(7)]
        assert titles == ["second", "first"]
        assert len(store.list_notifications()) == 3

    def test_save_push_token(self, store, tokenless_driver):
        store.save_push_token(tokenless_driver.id, "newtoken")

        assert store.get_user(tokenless_driver.id).push_token == "newtoken"

    def test_save_push_token_unknown_user(self, store):
        with pytest.raises(NotFoundError):
            store.save_push_token(999, "tok")

    def test_list_users_by_role_empty(self, store):
        assert store.list_users_by_role(UserRole.MANAGER) == []

    def test_count_notifications_after_close_fails(self, empty_store):
        empty_store.close()

        with pytest.raises(StorageError):
            empty_store.count_notifications()
