# tests/test_collection.py
"""Tests for the collection facade: authorization, batches, rollback and persistence."""

import json
import os
import tempfile
from pathlib import Path

import pytest

from artmint import Collection, Identity, InvalidArgument, NotFound, Unauthorized
from artmint.events import CREATED, DESTROYED, TRANSFERRED
from artmint.signatures import verify_notification_origin

ADMIN = "admin"


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def collection(temp_dir):
    """Create a collection administered by ADMIN."""
    return Collection(temp_dir / "gallery", admin=ADMIN, name="Gallery", symbol="GAL")


@pytest.fixture(scope="module")
def admin_identity():
    """Identity with a key pair, shared across the module (key generation is slow)."""
    return Identity.generate("admin")


class TestConstruction:
    """Test opening and creating collections."""

    def test_new_collection_requires_admin(self, temp_dir):
        with pytest.raises(InvalidArgument):
            Collection(temp_dir / "gallery")

    def test_reopen_keeps_admin_and_name(self, temp_dir, collection):
        """Stored admin, name and symbol win on reopen."""
        reopened = Collection(temp_dir / "gallery")
        assert reopened.admin == ADMIN
        assert reopened.name == "Gallery"
        assert reopened.symbol == "GAL"

    def test_reopen_with_other_admin_fails(self, temp_dir, collection):
        """Administrator is fixed at construction."""
        with pytest.raises(InvalidArgument):
            Collection(temp_dir / "gallery", admin="mallory")

    def test_signer_must_be_admin(self, temp_dir, admin_identity):
        with pytest.raises(InvalidArgument):
            Collection(temp_dir / "gallery", admin="someone-else", signer=admin_identity)

    def test_signer_needs_private_key(self, temp_dir, admin_identity):
        public_only = Identity(username="admin", public_key=admin_identity.public_key)
        with pytest.raises(InvalidArgument):
            Collection(temp_dir / "gallery", admin=public_only.id, signer=public_only)


class TestCreate:
    """Test minting."""

    def test_ids_increase(self, collection):
        """Successive creates return consecutive ids."""
        ids = [collection.create("anyone", "alice", f"p{i}") for i in range(4)]
        assert ids == [1, 2, 3, 4]

    def test_anyone_may_create_for_anyone(self, collection):
        """Minting is permissionless and attributes the destination."""
        item_id = collection.create("bob", "alice", "x")
        assert collection.owner_of(item_id) == "alice"

    def test_content_round_trip(self, collection):
        """contentPointerOf(create(A, "x")) is "x"."""
        item_id = collection.create("alice", "alice", "x")
        assert collection.content_pointer_of(item_id) == "x"

    def test_create_null_destination(self, collection):
        with pytest.raises(InvalidArgument):
            collection.create("alice", "", "x")
        assert collection.total_live_count() == 0

    def test_no_reuse_after_destroy(self, collection):
        """A create after destructions never returns a retired id."""
        first = collection.create("alice", "alice", "a")
        second = collection.create("alice", "alice", "b")
        collection.destroy("alice", second)
        collection.destroy("alice", first)

        third = collection.create("alice", "alice", "c")
        assert third not in (first, second)
        assert third == 3


class TestCreateBatch:
    """Test batch minting."""

    def test_empty_batch_fails(self, collection):
        with pytest.raises(InvalidArgument):
            collection.create_batch("alice", "alice", [])

    def test_batch_returns_ids_in_order(self, collection):
        """Each pointer gets the next id, in input order."""
        collection.create("alice", "bob", "before")
        before = collection.total_live_count()

        ids = collection.create_batch("alice", "alice", ["p1", "p2"])

        assert ids == [2, 3]
        assert collection.content_pointer_of(2) == "p1"
        assert collection.content_pointer_of(3) == "p2"
        assert collection.items_owned_by("alice") == {2, 3}
        assert collection.total_live_count() == before + 2

    def test_batch_null_destination_rolls_back(self, collection):
        """A failed batch allocates nothing."""
        with pytest.raises(InvalidArgument):
            collection.create_batch("alice", "", ["p1", "p2"])
        assert collection.create("alice", "alice", "x") == 1

    def test_batch_emits_ordered_notifications(self, collection):
        ids = collection.create_batch("alice", "alice", ["p1", "p2", "p3"])
        events = collection.events.find_by_type(CREATED)
        assert [e.item_id for e in events] == ids
        assert [e.payload["content_pointer"] for e in events] == ["p1", "p2", "p3"]


class TestDestroy:
    """Test burning and the authorization rules."""

    def test_owner_destroys(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.destroy("alice", item_id)

        assert item_id not in collection
        assert collection.items_owned_by("alice") == set()
        with pytest.raises(NotFound):
            collection.owner_of(item_id)
        with pytest.raises(NotFound):
            collection.content_pointer_of(item_id)

    def test_admin_destroys_any(self, collection):
        """Administrator may destroy regardless of owner."""
        item_id = collection.create("alice", "alice", "a")
        collection.destroy(ADMIN, item_id)
        assert collection.total_live_count() == 0

    def test_stranger_unauthorized(self, collection):
        item_id = collection.create("alice", "alice", "a")
        with pytest.raises(Unauthorized) as exc:
            collection.destroy("mallory", item_id)
        assert exc.value.caller == "mallory"
        assert exc.value.item_id == item_id
        assert collection.owner_of(item_id) == "alice"

    def test_approved_operator_destroys(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.approve("alice", item_id, "bob")
        collection.destroy("bob", item_id)
        assert item_id not in collection

    def test_blanket_operator_destroys(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.set_approval_for_all("alice", "bob", True)
        collection.destroy("bob", item_id)
        assert item_id not in collection

    def test_missing_item(self, collection):
        with pytest.raises(NotFound):
            collection.destroy(ADMIN, 1)

    def test_destroy_clears_item_approval(self, collection):
        """Approvals do not outlive the item."""
        item_id = collection.create("alice", "alice", "a")
        collection.approve("alice", item_id, "bob")
        collection.destroy("alice", item_id)
        assert collection.approvals.get_approved(item_id) is None

    def test_destroy_notification(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.destroy(ADMIN, item_id)

        event = collection.events.find_by_type(DESTROYED)[0]
        assert event.payload == {"from": "alice", "item_id": item_id}


class TestDestroyBatch:
    """Test batch burning."""

    def test_empty_batch_fails(self, collection):
        with pytest.raises(InvalidArgument):
            collection.destroy_batch("alice", [])

    def test_batch_mixed_owners_by_admin(self, collection):
        """Authorization is evaluated per id."""
        a = collection.create("alice", "alice", "a")
        b = collection.create("bob", "bob", "b")
        collection.destroy_batch(ADMIN, [a, b])
        assert collection.total_live_count() == 0

    def test_unauthorized_element_rolls_back_all(self, collection):
        """C destroying [id1 (A's, approved), id2 (B's)] leaves both live."""
        id1 = collection.create("A", "A", "p1")
        id2 = collection.create("B", "B", "p2")
        collection.approve("A", id1, "C")
        events_before = len(collection.events)

        with pytest.raises(Unauthorized):
            collection.destroy_batch("C", [id1, id2])

        assert collection.owner_of(id1) == "A"
        assert collection.owner_of(id2) == "B"
        assert collection.items_owned_by("A") == {id1}
        assert collection.get_approved(id1) == "C"
        assert collection.total_live_count() == 2
        assert len(collection.events) == events_before

    def test_missing_element_rolls_back_all(self, collection):
        id1 = collection.create("A", "A", "p1")
        with pytest.raises(NotFound):
            collection.destroy_batch("A", [id1, 99])
        assert id1 in collection

    def test_duplicate_ids_fail(self, collection):
        """The second occurrence of an id is no longer live."""
        id1 = collection.create("A", "A", "p1")
        with pytest.raises(NotFound):
            collection.destroy_batch("A", [id1, id1])
        assert id1 in collection

    def test_rollback_not_persisted(self, temp_dir, collection):
        """A failed batch leaves the stored state untouched."""
        id1 = collection.create("A", "A", "p1")
        id2 = collection.create("B", "B", "p2")
        with pytest.raises(Unauthorized):
            collection.destroy_batch("A", [id1, id2])

        reopened = Collection(temp_dir / "gallery")
        assert reopened.all_items() == [id1, id2]


class TestAtomicity:
    """Test that a failed invocation leaves memory, state file and event log untouched."""

    def test_event_log_failure_rolls_back(self, temp_dir, collection, monkeypatch):
        """A failed event log write undoes the mutation in memory and on disk."""
        def failing_save():
            raise OSError("disk full")

        monkeypatch.setattr(collection.events, "_save", failing_save)
        with pytest.raises(OSError):
            collection.create("alice", "alice", "x")
        monkeypatch.undo()

        assert collection.all_items() == []
        assert len(collection.events) == 0
        assert not (temp_dir / "gallery" / "collection.json.tmp").exists()

        reopened = Collection(temp_dir / "gallery")
        assert reopened.all_items() == []
        assert reopened.create("alice", "alice", "x") == 1

    def test_state_swap_failure_rolls_back_events(self, temp_dir, collection, monkeypatch):
        """If the state file cannot be replaced, the appended events are dropped again."""
        collection.create("alice", "alice", "kept")

        real_replace = os.replace

        def failing_replace(src, dst):
            if Path(dst).name == "collection.json":
                raise OSError("read-only")
            real_replace(src, dst)

        monkeypatch.setattr(os, "replace", failing_replace)
        with pytest.raises(OSError):
            collection.create("alice", "alice", "lost")
        monkeypatch.undo()

        assert collection.all_items() == [1]
        reopened = Collection(temp_dir / "gallery")
        assert reopened.all_items() == [1]
        assert len(reopened.events) == 1

    def test_interrupt_rolls_back(self, collection, monkeypatch):
        """KeyboardInterrupt mid-invocation restores state and frees the collection."""
        def interrupted(notification):
            raise KeyboardInterrupt

        monkeypatch.setattr(collection, "_emit", interrupted)
        with pytest.raises(KeyboardInterrupt):
            collection.create("alice", "alice", "x")
        monkeypatch.undo()

        assert collection.all_items() == []
        assert collection.create("alice", "alice", "x") == 1


class TestTransferAndApproval:
    """Test transfer and approval operations."""

    def test_owner_transfers(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.transfer("alice", item_id, "bob")

        assert collection.owner_of(item_id) == "bob"
        assert collection.items_owned_by("alice") == set()
        assert collection.items_owned_by("bob") == {item_id}
        event = collection.events.find_by_type(TRANSFERRED)[0]
        assert event.payload == {"from": "alice", "to": "bob", "item_id": item_id}

    def test_transfer_clears_approval(self, collection):
        item_id = collection.create("alice", "alice", "a")
        collection.approve("alice", item_id, "carol")
        collection.transfer("carol", item_id, "bob")

        assert collection.get_approved(item_id) is None
        with pytest.raises(Unauthorized):
            collection.destroy("carol", item_id)

    def test_admin_cannot_transfer(self, collection):
        item_id = collection.create("alice", "alice", "a")
        with pytest.raises(Unauthorized):
            collection.transfer(ADMIN, item_id, "mallory")

    def test_transfer_to_empty_fails(self, collection):
        item_id = collection.create("alice", "alice", "a")
        with pytest.raises(InvalidArgument):
            collection.transfer("alice", item_id, "")
        assert collection.owner_of(item_id) == "alice"

    def test_stranger_cannot_approve(self, collection):
        item_id = collection.create("alice", "alice", "a")
        with pytest.raises(Unauthorized):
            collection.approve("mallory", item_id, "mallory")

    def test_cannot_approve_owner(self, collection):
        item_id = collection.create("alice", "alice", "a")
        with pytest.raises(InvalidArgument):
            collection.approve("alice", item_id, "alice")

    def test_operator_for_self_fails(self, collection):
        with pytest.raises(InvalidArgument):
            collection.set_approval_for_all("alice", "alice", True)

    def test_get_approved_missing_item(self, collection):
        with pytest.raises(NotFound):
            collection.get_approved(5)


class TestObserversAndSigning:
    """Test notification delivery."""

    def test_subscriber_receives_committed_events(self, collection):
        received = []
        collection.subscribe(received.append)

        ids = collection.create_batch("alice", "alice", ["a", "b"])
        with pytest.raises(Unauthorized):
            collection.destroy("mallory", ids[0])

        assert [n.item_id for n in received] == ids

    def test_observer_error_does_not_undo(self, collection):
        def broken(notification):
            raise RuntimeError("observer down")

        collection.subscribe(broken)
        item_id = collection.create("alice", "alice", "a")
        assert collection.owner_of(item_id) == "alice"
        assert len(collection.events) == 1

    def test_notifications_signed_by_admin(self, temp_dir, admin_identity):
        collection = Collection(
            temp_dir / "signed",
            admin=admin_identity.id,
            signer=admin_identity,
        )
        collection.create("alice", "alice", "a")

        event = collection.events.list()[0]
        assert event.signature is not None
        assert verify_notification_origin(event, admin_identity)


class TestPersistence:
    """Test state survives reopening."""

    def test_reload_state(self, temp_dir, collection):
        a = collection.create("alice", "alice", "a")
        b = collection.create("bob", "bob", "b")
        collection.set_approval_for_all("bob", "carol", True)
        collection.approve("alice", a, "dave")
        collection.destroy("bob", b)

        reopened = Collection(temp_dir / "gallery")

        assert reopened.all_items() == [a]
        assert reopened.owner_of(a) == "alice"
        assert reopened.content_pointer_of(a) == "a"
        assert reopened.get_approved(a) == "dave"
        assert reopened.is_approved_for_all("bob", "carol")
        assert reopened.create("alice", "alice", "c") == 3
        assert len(reopened.events) == 5

    def test_state_file_layout(self, temp_dir, collection):
        collection.create("alice", "alice", "a")
        with open(temp_dir / "gallery" / "collection.json") as f:
            data = json.load(f)
        assert data["admin"] == ADMIN
        assert data["ledger"]["next_id"] == 2
        assert data["ledger"]["items"][0]["owner"] == "alice"
