"""
test_records.py - Unit tests for the append-only record log
"""

import pytest

from vault import (
    derive_address,
    Message, Record, LifecycleState, ContractInactive, OutOfRange, InvalidArgument,
    compute_add_data, compute_get_record, compute_get_record_id_at, compute_get_record_count,
    EMPTY_RECORD, REASON_NOT_ACTIVE, REASON_OUT_OF_RANGE,
)

from tests.fake_view import FakeView


OWNER = derive_address("owner")
ALICE = derive_address("alice")


class TestAddData:

    def test_first_record_gets_id_one(self):
        pending = compute_add_data(FakeView(OWNER), Message(ALICE), "hello")
        assert pending.return_value == 1
        slots = [(sc.slot, sc.key, sc.old_value, sc.new_value) for sc in pending.state_changes]
        assert slots == [
            ("record_counter", None, 0, 1),
            ("records", 1, None, Record(1, "hello")),
            ("record_ids", 0, None, 1),
        ]
        (log,) = pending.logs
        assert log.name == "DataAdded"
        assert log.args_dict == {"id": 1, "info": "hello"}

    def test_next_id_follows_counter(self):
        view = FakeView(OWNER, records=["a", "b"])
        pending = compute_add_data(view, Message(ALICE), "c")
        assert pending.return_value == 3
        assert pending.state_changes[2].key == 2

    def test_empty_string_accepted(self):
        pending = compute_add_data(FakeView(OWNER), Message(ALICE), "")
        assert pending.state_changes[1].new_value == Record(1, "")

    def test_inactive_rejected(self):
        view = FakeView(OWNER, lifecycle=LifecycleState.INACTIVE)
        with pytest.raises(ContractInactive) as exc:
            compute_add_data(view, Message(OWNER), "x")
        assert exc.value.reason == REASON_NOT_ACTIVE

    def test_non_string_rejected(self):
        with pytest.raises(InvalidArgument):
            compute_add_data(FakeView(OWNER), Message(ALICE), 123)


class TestReads:

    def test_get_record(self):
        view = FakeView(OWNER, records=["a", "b"])
        assert compute_get_record(view, Message(ALICE), 2).return_value == Record(2, "b")

    def test_unknown_record_is_empty(self):
        view = FakeView(OWNER, records=["a"])
        assert compute_get_record(view, Message(ALICE), 5).return_value == EMPTY_RECORD
        assert compute_get_record(view, Message(ALICE), 0).return_value == EMPTY_RECORD

    def test_get_record_id_at(self):
        view = FakeView(OWNER, records=["a", "b"])
        assert compute_get_record_id_at(view, Message(ALICE), 0).return_value == 1
        assert compute_get_record_id_at(view, Message(ALICE), 1).return_value == 2

    @pytest.mark.parametrize("index", [2, 100, -1])
    def test_index_out_of_range(self, index):
        view = FakeView(OWNER, records=["a", "b"])
        with pytest.raises(OutOfRange) as exc:
            compute_get_record_id_at(view, Message(ALICE), index)
        assert exc.value.reason == REASON_OUT_OF_RANGE

    def test_empty_index_out_of_range(self):
        with pytest.raises(OutOfRange):
            compute_get_record_id_at(FakeView(OWNER), Message(ALICE), 0)

    def test_record_count(self):
        view = FakeView(OWNER, records=["a", "b", "c"])
        assert compute_get_record_count(view, Message(ALICE)).return_value == 3

    def test_reads_work_while_inactive(self):
        view = FakeView(OWNER, lifecycle=LifecycleState.INACTIVE, records=["a"])
        assert compute_get_record(view, Message(ALICE), 1).return_value == Record(1, "a")
