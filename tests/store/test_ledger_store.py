"""
Ledger Store contract tests.

Run against both backends through the parametrized ``store`` fixture:
batches are all-or-nothing, versions guard concurrent updates, transforms
resolve against current values and subscribers see committed state only.
"""

import pytest

from ops_kernel.exceptions import (
    MissingDocumentError,
    OptimisticLockError,
    StoreError,
)
from ops_kernel.store.base import Append, Increment


class TestSingleDocumentWrites:
    def test_create_assigns_id_and_version(self, store):
        doc_id = store.create("items", {"name": "Stapler", "quantity": 3})

        doc = store.get_by_id("items", doc_id)
        assert doc.data == {"name": "Stapler", "quantity": 3}
        assert doc.version == 1

    def test_create_with_explicit_id(self, store):
        store.create("items", {"name": "Stapler"}, doc_id="stapler")
        assert store.get_by_id("items", "stapler").get("name") == "Stapler"

    def test_duplicate_create_rejected(self, store):
        store.create("items", {"name": "Stapler"}, doc_id="stapler")

        with pytest.raises(StoreError):
            store.create("items", {"name": "Other"}, doc_id="stapler")

        assert store.get_by_id("items", "stapler").get("name") == "Stapler"

    def test_missing_document_reads_none(self, store):
        assert store.get_by_id("items", "nope") is None

    def test_update_merges_dotted_paths(self, store):
        doc_id = store.create("employees", {"leave_balance": {"sick": {"total": 7, "used": 0}}})

        store.update("employees", doc_id, {"leave_balance.sick.used": 2, "leave_balance.casual.total": 6})

        doc = store.get_by_id("employees", doc_id)
        assert doc.get("leave_balance") == {
            "sick": {"total": 7, "used": 2},
            "casual": {"total": 6},
        }
        assert doc.version == 2

    def test_update_missing_document(self, store):
        with pytest.raises(MissingDocumentError) as exc_info:
            store.update("items", "ghost", {"quantity": 1})
        assert exc_info.value.doc_id == "ghost"

    def test_delete(self, store):
        doc_id = store.create("items", {"name": "Stapler"})
        store.delete("items", doc_id)
        assert store.get_by_id("items", doc_id) is None

    def test_delete_missing_document(self, store):
        with pytest.raises(MissingDocumentError):
            store.delete("items", "ghost")

    def test_returned_documents_are_copies(self, store):
        doc_id = store.create("items", {"tags": ["a"]})

        doc = store.get_by_id("items", doc_id)
        doc.data["tags"].append("b")

        assert store.get_by_id("items", doc_id).get("tags") == ["a"]


class TestTransforms:
    def test_increment_existing_value(self, store):
        doc_id = store.create("inventory", {"quantity": 10})
        store.update("inventory", doc_id, {"quantity": Increment(-5)})
        assert store.get_by_id("inventory", doc_id).get("quantity") == 5

    def test_increment_missing_field_starts_at_zero(self, store):
        doc_id = store.create("employees", {})
        store.update("employees", doc_id, {"leave_balance.sick.used": Increment(3)})
        assert store.get_by_id("employees", doc_id).get("leave_balance.sick.used") == 3

    def test_increment_may_go_negative(self, store):
        doc_id = store.create("inventory", {"quantity": 1})
        store.update("inventory", doc_id, {"quantity": Increment(-4)})
        assert store.get_by_id("inventory", doc_id).get("quantity") == -3

    def test_increment_non_numeric_rejected(self, store):
        doc_id = store.create("inventory", {"quantity": "ten"})
        with pytest.raises(StoreError):
            store.update("inventory", doc_id, {"quantity": Increment(1)})
        assert store.get_by_id("inventory", doc_id).version == 1

    def test_append_to_list(self, store):
        doc_id = store.create("tasks", {"history": [{"seq": 0}]})
        store.update("tasks", doc_id, {"history": Append({"seq": 1})})
        assert store.get_by_id("tasks", doc_id).get("history") == [{"seq": 0}, {"seq": 1}]

    def test_append_to_missing_list(self, store):
        doc_id = store.create("tasks", {})
        store.update("tasks", doc_id, {"history": Append("created")})
        assert store.get_by_id("tasks", doc_id).get("history") == ["created"]

    def test_transforms_in_create_resolve_against_empty(self, store):
        doc_id = store.create("counters", {"hits": Increment(1)})
        assert store.get_by_id("counters", doc_id).get("hits") == 1


class TestOptimisticLocking:
    def test_matching_version_applies(self, store):
        doc_id = store.create("items", {"status": "Pending"})
        store.update("items", doc_id, {"status": "Approved"}, expected_version=1)
        assert store.get_by_id("items", doc_id).version == 2

    def test_stale_version_rejected(self, store):
        doc_id = store.create("items", {"status": "Pending"})
        store.update("items", doc_id, {"status": "Approved"})

        with pytest.raises(OptimisticLockError) as exc_info:
            store.update("items", doc_id, {"status": "Rejected"}, expected_version=1)

        assert exc_info.value.actual_version == 2
        assert store.get_by_id("items", doc_id).get("status") == "Approved"

    def test_stale_delete_rejected(self, store):
        doc_id = store.create("items", {"status": "Pending"})
        store.update("items", doc_id, {"status": "Approved"})
        with pytest.raises(OptimisticLockError):
            store.delete("items", doc_id, expected_version=1)
        assert store.get_by_id("items", doc_id) is not None


class TestBatchAtomicity:
    def test_all_operations_commit_together(self, store):
        a = store.create("inventory", {"quantity": 10})
        b = store.create("inventory", {"quantity": 5})

        batch = store.batch()
        batch.update("inventory", a, {"quantity": Increment(-2)})
        batch.update("inventory", b, {"quantity": Increment(3)})
        created = batch.create("log", {"note": "moved"})
        batch.commit()

        assert store.get_by_id("inventory", a).get("quantity") == 8
        assert store.get_by_id("inventory", b).get("quantity") == 8
        assert store.get_by_id("log", created) is not None

    def test_failed_batch_leaves_no_partial_state(self, store):
        a = store.create("inventory", {"quantity": 10})

        batch = store.batch()
        batch.update("inventory", a, {"quantity": Increment(-5)})
        batch.create("log", {"note": "never"}, doc_id="log-1")
        batch.update("inventory", "missing", {"quantity": Increment(1)})
        with pytest.raises(MissingDocumentError):
            batch.commit()

        doc = store.get_by_id("inventory", a)
        assert doc.get("quantity") == 10
        assert doc.version == 1
        assert store.get_by_id("log", "log-1") is None

    def test_version_conflict_aborts_whole_batch(self, store):
        a = store.create("requests", {"status": "Pending"})
        b = store.create("inventory", {"quantity": 3})
        store.update("requests", a, {"status": "Issued"})

        batch = store.batch()
        batch.update("requests", a, {"status": "Issued"}, expected_version=1)
        batch.update("inventory", b, {"quantity": Increment(-3)})
        with pytest.raises(OptimisticLockError):
            batch.commit()

        assert store.get_by_id("inventory", b).get("quantity") == 3

    def test_operations_on_same_document_apply_in_order(self, store):
        a = store.create("inventory", {"quantity": 1})

        batch = store.batch()
        batch.update("inventory", a, {"quantity": Increment(2)})
        batch.update("inventory", a, {"quantity": Increment(3)}, expected_version=2)
        batch.commit()

        doc = store.get_by_id("inventory", a)
        assert doc.get("quantity") == 6
        assert doc.version == 3

    def test_set_replaces_document(self, store):
        store.create("attendance", {"status": "Present", "time_in": "09:00"}, doc_id="e1_2024-07-01")

        batch = store.batch()
        batch.set("attendance", "e1_2024-07-01", {"status": "Late"})
        batch.commit()

        doc = store.get_by_id("attendance", "e1_2024-07-01")
        assert doc.data == {"status": "Late"}
        assert doc.version == 2

    def test_empty_batch_commits_nothing(self, store):
        batch = store.batch()
        assert len(batch) == 0
        batch.commit()

    def test_batch_commits_once(self, store):
        batch = store.batch()
        batch.create("items", {"name": "x"})
        batch.commit()
        with pytest.raises(StoreError):
            batch.commit()

    def test_rejected_batch_is_logged(self, store, captured_logs):
        with pytest.raises(MissingDocumentError):
            store.update("items", "ghost", {"quantity": 1})

        rejected = [r for r in captured_logs() if r["message"] == "batch_rejected"]
        assert rejected
        assert rejected[0]["collections"] == ["items"]


class TestQueries:
    def test_filter_by_equality(self, store):
        store.create("requests", {"status": "Pending Store", "department": "HR"})
        store.create("requests", {"status": "Issued", "department": "HR"})
        store.create("requests", {"status": "Pending Store", "department": "IT"})

        found = store.get("requests", {"status": "Pending Store"})
        assert sorted(d.get("department") for d in found) == ["HR", "IT"]

    def test_filter_on_nested_field(self, store):
        store.create("employees", {"profile": {"department": "HR"}})
        store.create("employees", {"profile": {"department": "IT"}})
        assert len(store.get("employees", {"profile.department": "IT"})) == 1

    def test_unknown_collection_is_empty(self, store):
        assert store.get("nothing") == []


class TestSubscriptions:
    def test_initial_snapshot_delivered(self, store):
        store.create("requests", {"status": "Pending"})
        snapshots = []

        store.subscribe("requests", snapshots.append)

        assert len(snapshots) == 1
        assert len(snapshots[0]) == 1

    def test_delivered_after_each_commit(self, store):
        snapshots = []
        store.subscribe("requests", snapshots.append, {"status": "Pending"})

        doc_id = store.create("requests", {"status": "Pending"})
        store.update("requests", doc_id, {"status": "Approved"})

        assert [len(s) for s in snapshots] == [0, 1, 0]

    def test_other_collections_do_not_notify(self, store):
        snapshots = []
        store.subscribe("requests", snapshots.append)
        store.create("inventory", {"quantity": 1})
        assert len(snapshots) == 1

    def test_failed_batch_does_not_notify(self, store):
        snapshots = []
        store.subscribe("requests", snapshots.append)
        with pytest.raises(MissingDocumentError):
            store.update("requests", "ghost", {"status": "x"})
        assert len(snapshots) == 1

    def test_cancelled_subscription_stops(self, store):
        snapshots = []
        sub = store.subscribe("requests", snapshots.append)
        sub.cancel()
        store.create("requests", {"status": "Pending"})
        assert len(snapshots) == 1
        assert not sub.active

    def test_failing_callback_does_not_fail_commit(self, store, captured_logs):
        def explode(_snapshot):
            if store.get("requests"):
                raise RuntimeError("observer broke")

        store.subscribe("requests", explode)
        doc_id = store.create("requests", {"status": "Pending"})

        assert store.get_by_id("requests", doc_id) is not None
        assert any(r["message"] == "subscription_callback_failed" for r in captured_logs())
