from __future__ import annotations

import pytest

from rowmapper.domain.batch import BatchState
from rowmapper.domain.record import Item
from rowmapper.errors import BatchStateError


@pytest.fixture
def record(model) -> Item:
    return Item(model, {"id": 5, "first_name": "Ada", "last_name": "Lovelace"}, table="users", auto_save=True)


def test_end_batch_saves_once_with_all_fields(record: Item, model) -> None:
    record.start_batch()
    record.set("first_name", "Grace")
    record.set("last_name", "Hopper")
    assert model.calls == 0

    record.end_batch()

    assert model.calls == 1
    sql, params = model.executed[0]
    assert params == {"first_name": "Grace", "last_name": "Hopper", "id": 5}
    assert "first_name = :first_name" in sql and "last_name = :last_name" in sql
    assert record.auto_save is True
    assert record.modified == {}


def test_cancel_batch_restores_values_without_saving(record: Item, model) -> None:
    record.start_batch()
    record.set("first_name", "Grace")
    record.set("last_name", "Hopper")

    record.cancel_batch()

    assert model.calls == 0
    assert record.get("first_name") == "Ada"
    assert record.get("last_name") == "Lovelace"
    assert record.auto_save is True
    assert record.in_batch is False


def test_end_batch_without_auto_save_does_not_persist(model) -> None:
    record = Item(model, {"id": 5, "first_name": "Ada"}, table="users")
    record.start_batch()
    record.set("first_name", "Grace")
    record.end_batch()
    assert model.calls == 0
    assert record.modified == {"first_name": "Ada"}


def test_cancel_batch_reverts_changes_made_before_the_batch(model) -> None:
    record = Item(model, {"id": 5, "first_name": "Ada", "last_name": "Lovelace"}, table="users")
    record.set("first_name", "Grace")
    record.start_batch()
    record.set("last_name", "Hopper")
    record.cancel_batch()
    assert record.get("first_name") == "Ada"
    assert record.get("last_name") == "Lovelace"


def test_nested_start_batch_is_rejected(record: Item) -> None:
    record.start_batch()
    with pytest.raises(BatchStateError):
        record.start_batch()
    assert record.in_batch is True


def test_end_or_cancel_without_batch_is_rejected(record: Item) -> None:
    with pytest.raises(BatchStateError):
        record.end_batch()
    with pytest.raises(BatchStateError):
        record.cancel_batch()


def test_batch_state_transitions(record: Item) -> None:
    assert record._batch.state is BatchState.IDLE
    record.start_batch()
    assert record._batch.state is BatchState.IN_BATCH
    assert record._batch.saved_auto_save is True
    assert record.auto_save is False
    record.end_batch()
    assert record._batch.state is BatchState.IDLE
    assert record._batch.saved_auto_save is None


def test_batch_context_manager_commits_once(record: Item, model) -> None:
    with record.batch():
        record.set("first_name", "Grace")
        record.set("last_name", "Hopper")
    assert model.calls == 1


def test_batch_context_manager_cancels_on_error(record: Item, model) -> None:
    with pytest.raises(RuntimeError):
        with record.batch():
            record.set("first_name", "Grace")
            raise RuntimeError("boom")
    assert model.calls == 0
    assert record.get("first_name") == "Ada"
    assert record.in_batch is False
