"""
records.py - Append-only record log

Records get consecutive ids starting at 1. The id index keeps insertion
order and always has exactly record_counter entries:

    addData("a")  ->  counter 1, index [1],    records {1: "a"}
    addData("b")  ->  counter 2, index [1, 2], records {1: "a", 2: "b"}

No record is ever updated or deleted.
"""

from __future__ import annotations

from .core import (
    ContractView, Message, PendingCall, Record, StateChange,
    InvalidArgument, OutOfRange,
    SLOT_RECORD_COUNTER, SLOT_RECORDS, SLOT_RECORD_IDS, REASON_OUT_OF_RANGE,
    build_call, empty_pending_call, data_added_event,
)
from .lifecycle import require_active


def compute_add_data(view: ContractView, msg: Message, info: str) -> PendingCall:
    """
    Append a record holding info. Open to any caller while ACTIVE.

    The lifecycle gate is checked here, before anything else, so that no
    path into this operation can skip it.

    Args:
        view: Read-only contract access
        msg: Call context (sender is not restricted)
        info: Arbitrary text, empty string allowed

    Returns:
        PendingCall with the counter bump, the new record, the index append
        and a DataAdded event. The new id is the return value.

    Raises:
        ContractInactive: If the contract is INACTIVE.
        InvalidArgument: If info is not a string.
    """
    failure = require_active(view)
    if failure is not None:
        raise failure
    if not isinstance(info, str):
        raise InvalidArgument(f"info must be a string, got {type(info).__name__}")

    old_counter = view.record_counter
    new_id = old_counter + 1
    record = Record(new_id, info)
    changes = [
        StateChange(SLOT_RECORD_COUNTER, None, old_counter, new_id),
        StateChange(SLOT_RECORDS, new_id, None, record),
        StateChange(SLOT_RECORD_IDS, len(view.record_ids()), None, new_id),
    ]
    return build_call(
        "addData",
        changes,
        logs=[data_added_event(new_id, info)],
        return_value=new_id,
    )


def compute_get_record(view: ContractView, msg: Message, record_id: int) -> PendingCall:
    """Read a record. Ids never assigned yield the empty record (id 0)."""
    return empty_pending_call("getRecord", return_value=view.record(record_id))


def compute_get_record_id_at(view: ContractView, msg: Message, index: int) -> PendingCall:
    """
    Read the id stored at position index of the record index.

    Raises:
        OutOfRange: If index is negative or not below the number of records.
    """
    ids = view.record_ids()
    if not isinstance(index, int) or index < 0 or index >= len(ids):
        raise OutOfRange(REASON_OUT_OF_RANGE)
    return empty_pending_call("getRecordIdAt", return_value=ids[index])


def compute_get_record_count(view: ContractView, msg: Message) -> PendingCall:
    return empty_pending_call("getRecordCount", return_value=len(view.record_ids()))
