"""
test_core_types.py - Unit tests for core data structures

Tests:
- Address normalization and derivation
- Native unit conversion
- Message: validation, normalization, immutability
- Record, EventLog, StateChange, PendingCall
- CallReceipt: status helpers, raise_for_status
- ContractState.copy independence
"""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime
from decimal import Decimal

from vault import (
    Message, Record, EventLog, StateChange, PendingCall, CallReceipt, CallResult,
    ContractState, ContractView, LifecycleState,
    ContractError, InvalidArgument, Unauthorized,
    build_call, empty_pending_call, deposit_event, data_added_event,
    normalize_address, derive_address, is_zero_address, to_native, from_native,
    EMPTY_RECORD, ZERO_ADDRESS, REASON_NOT_OWNER,
)
from tests.fake_view import FakeView


class TestAddresses:
    """Tests for principal normalization."""

    def test_normalize_lowercases_and_prefixes(self):
        raw = "AB" * 20
        assert normalize_address(raw) == "0x" + "ab" * 20
        assert normalize_address("0X" + raw) == "0x" + "ab" * 20

    def test_normalized_forms_compare_equal(self):
        assert normalize_address("0x" + "Cd" * 20) == normalize_address("0x" + "cD" * 20)

    def test_wrong_length_rejected(self):
        with pytest.raises(InvalidArgument):
            normalize_address("0x1234")

    def test_non_hex_rejected(self):
        with pytest.raises(InvalidArgument):
            normalize_address("0x" + "zz" * 20)

    def test_non_string_rejected(self):
        with pytest.raises(InvalidArgument):
            normalize_address(12345)

    def test_derive_address_is_deterministic(self):
        assert derive_address("alice") == derive_address("alice")
        assert derive_address("alice") != derive_address("bob")
        assert normalize_address(derive_address("alice")) == derive_address("alice")

    def test_zero_address(self):
        assert is_zero_address(ZERO_ADDRESS)
        assert is_zero_address("00" * 20)
        assert not is_zero_address(derive_address("alice"))


class TestNativeUnits:
    """Tests for to_native / from_native."""

    def test_one_coin(self):
        assert to_native("1") == 10 ** 18

    def test_fraction(self):
        assert to_native("0.5") == 5 * 10 ** 17

    def test_truncates_below_one_unit(self):
        assert to_native("0.0000000000000000019") == 1

    def test_custom_decimals(self):
        assert to_native("1.25", decimals=2) == 125

    def test_negative_rejected(self):
        with pytest.raises(ValueError):
            to_native("-1")

    def test_not_a_number_rejected(self):
        with pytest.raises(ValueError):
            to_native("one")
        with pytest.raises(ValueError):
            to_native("NaN")

    def test_from_native(self):
        assert from_native(10 ** 18) == Decimal("1")


class TestMessage:
    """Tests for Message creation and validation."""

    def test_sender_normalized(self):
        msg = Message("0x" + "AB" * 20, 5, b"\x01")
        assert msg.sender == "0x" + "ab" * 20
        assert msg.value == 5
        assert msg.data == b"\x01"

    def test_defaults(self):
        msg = Message(derive_address("alice"))
        assert msg.value == 0
        assert msg.data == b""

    def test_negative_value_rejected(self):
        with pytest.raises(ValueError):
            Message(derive_address("alice"), -1)

    def test_bool_value_rejected(self):
        with pytest.raises(ValueError):
            Message(derive_address("alice"), True)

    def test_non_bytes_data_rejected(self):
        with pytest.raises(ValueError):
            Message(derive_address("alice"), 0, "calldata")

    def test_bytearray_data_frozen_to_bytes(self):
        msg = Message(derive_address("alice"), 0, bytearray(b"\x01\x02"))
        assert isinstance(msg.data, bytes)

    def test_immutable(self):
        msg = Message(derive_address("alice"))
        with pytest.raises(FrozenInstanceError):
            msg.value = 10


class TestRecordAndEvents:
    """Tests for Record and EventLog."""

    def test_empty_record(self):
        assert EMPTY_RECORD.id == 0
        assert EMPTY_RECORD.info == ""

    def test_record_rejects_negative_id(self):
        with pytest.raises(ValueError):
            Record(-1, "x")

    def test_record_rejects_non_string_info(self):
        with pytest.raises(ValueError):
            Record(1, 42)

    def test_event_requires_name(self):
        with pytest.raises(ValueError):
            EventLog("  ")

    def test_deposit_event_args(self):
        alice = derive_address("alice")
        log = deposit_event(alice, 7)
        assert log.name == "Deposit"
        assert log.args_dict == {"sender": alice, "amount": 7}

    def test_data_added_event_repr(self):
        assert repr(data_added_event(1, "hi")) == "DataAdded(id=1, info='hi')"


class TestPendingCall:
    """Tests for build_call / empty_pending_call."""

    def test_empty_pending_call(self):
        pending = empty_pending_call("getOwner", return_value="x")
        assert pending.is_empty()
        assert pending.return_value == "x"

    def test_build_call_freezes_lists(self):
        changes = [StateChange("total_held", None, 0, 1)]
        pending = build_call("receive", changes)
        changes.append(StateChange("total_held", None, 1, 2))
        assert len(pending.state_changes) == 1
        assert isinstance(pending.state_changes, tuple)
        assert not pending.is_empty()

    def test_transfers_alone_make_call_non_empty(self):
        pending = build_call("withdraw", transfers=[(derive_address("owner"), 1)])
        assert not pending.is_empty()

    def test_state_change_repr(self):
        sc = StateChange("balances", "0xabc", None, 5)
        assert repr(sc) == "balances['0xabc']: None → 5"


class TestCallReceipt:
    """Tests for CallReceipt helpers."""

    def _receipt(self, **kwargs) -> CallReceipt:
        defaults = dict(
            operation="deposit",
            message=Message(derive_address("alice"), 1),
            status=CallResult.APPLIED,
            sequence_number=0,
            timestamp=datetime(2025, 1, 1),
        )
        defaults.update(kwargs)
        return CallReceipt(**defaults)

    def test_applied_receipt(self):
        receipt = self._receipt()
        assert receipt.succeeded
        assert receipt.reason == ""
        receipt.raise_for_status()

    def test_rejected_receipt_reraises(self):
        receipt = self._receipt(
            status=CallResult.REJECTED, error=Unauthorized(REASON_NOT_OWNER)
        )
        assert not receipt.succeeded
        assert receipt.reason == REASON_NOT_OWNER
        with pytest.raises(Unauthorized):
            receipt.raise_for_status()

    def test_repr_is_boxed(self):
        text = repr(self._receipt(logs=(deposit_event(derive_address("alice"), 1),)))
        assert "Call #0: deposit" in text
        assert "Deposit(" in text


class TestContractState:
    """ContractState.copy must not share mutable containers."""

    def test_copy_is_independent(self):
        state = ContractState(owner=derive_address("owner"))
        clone = state.copy()
        clone.balances["x"] = 1
        clone.record_ids.append(1)
        clone.records[1] = Record(1, "a")
        clone.lifecycle = LifecycleState.INACTIVE
        assert state.balances == {}
        assert state.record_ids == []
        assert state.records == {}
        assert state.lifecycle == LifecycleState.ACTIVE


class TestErrors:
    """ContractError carries its reason."""

    def test_reason_attribute(self):
        err = Unauthorized(REASON_NOT_OWNER)
        assert isinstance(err, ContractError)
        assert err.reason == REASON_NOT_OWNER
        assert str(err) == REASON_NOT_OWNER


def test_fake_view_satisfies_protocol():
    assert isinstance(FakeView(derive_address("owner")), ContractView)
