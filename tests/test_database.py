"""Tests for the flip store (ge_tracker.database)."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ge_tracker.database import FlipRecord, FlipStore, init_db
from ge_tracker.domain.enums import FlipStatus
from ge_tracker.domain.models import Flip


@pytest.fixture
def store():
    """FlipStore over an in-memory SQLite database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    yield FlipStore(Session)
    engine.dispose()


def _new(item_name="Abyssal whip", days_ago=1, **kwargs):
    return Flip(
        item_name=item_name,
        buy_price=kwargs.pop("buy_price", 1_000_000),
        buy_date=datetime(2024, 6, 1) - timedelta(days=days_ago),
        **kwargs,
    )


class TestCreateAndRead:
    def test_create_assigns_id(self, store):
        flip = store.create("alice", _new(quantity=3, item_id=4151, strategy_tag="Fast Flip"))
        assert flip.id
        assert flip.user_id == "alice"
        assert flip.quantity == 3
        assert flip.item_id == 4151
        assert flip.status is FlipStatus.OPEN

    def test_get(self, store):
        created = store.create("alice", _new())
        fetched = store.get("alice", created.id)
        assert fetched.item_name == "Abyssal whip"
        assert fetched.buy_price == 1_000_000

    def test_get_missing(self, store):
        assert store.get("alice", "nope") is None

    def test_scoped_by_user(self, store):
        created = store.create("alice", _new())
        assert store.get("bob", created.id) is None
        assert store.list("bob") == []
        assert store.update("bob", created.id, {"notes": "mine"}) is None
        assert store.soft_delete("bob", created.id) is False
        assert store.delete("bob", created.id) is False

    def test_list_newest_first(self, store):
        store.create("alice", _new("Old", days_ago=10))
        store.create("alice", _new("New", days_ago=1))
        store.create("alice", _new("Mid", days_ago=5))
        assert [f.item_name for f in store.list("alice")] == ["New", "Mid", "Old"]


class TestUpdate:
    def test_complete_a_flip(self, store):
        created = store.create("alice", _new())
        sold_at = datetime(2024, 6, 1, 8, 0)
        updated = store.update("alice", created.id, {"sell_price": 1_100_000, "sell_date": sold_at})
        assert updated.sell_price == 1_100_000
        assert updated.sell_date == sold_at
        assert updated.status is FlipStatus.COMPLETED

    def test_unknown_fields_ignored(self, store):
        created = store.create("alice", _new())
        updated = store.update("alice", created.id, {"user_id": "mallory", "notes": "ok"})
        assert updated.user_id == "alice"
        assert updated.notes == "ok"


class TestDeletion:
    def test_soft_delete_hides_and_restore_returns(self, store):
        created = store.create("alice", _new())
        assert store.soft_delete("alice", created.id) is True

        assert store.list("alice") == []
        tombstoned = store.list("alice", include_deleted=True)
        assert len(tombstoned) == 1
        assert tombstoned[0].is_deleted

        assert store.restore("alice", created.id) is True
        restored = store.list("alice")
        assert len(restored) == 1
        assert restored[0].deleted_at is None

    def test_hard_delete(self, store):
        created = store.create("alice", _new())
        assert store.delete("alice", created.id) is True
        assert store.get("alice", created.id) is None
        assert store.list("alice", include_deleted=True) == []

    def test_missing_row(self, store):
        assert store.soft_delete("alice", "nope") is False
        assert store.restore("alice", "nope") is False
        assert store.delete("alice", "nope") is False


class TestRecord:
    def test_to_domain(self):
        record = FlipRecord(
            id="abc", user_id="alice", item_name="Shark", quantity=100,
            buy_price=900, sell_price=1_000,
            buy_date=datetime(2024, 6, 1), sell_date=datetime(2024, 6, 2),
        )
        flip = record.to_domain()
        assert flip.id == "abc"
        assert flip.is_completed
