"""
Core types and pure functions for the contract unit.

This module provides the foundational data structures and protocols:
1. Protocols: ContractView for read-only access to contract state
2. Immutable data structures: Message, Record, EventLog, StateChange, PendingCall, CallReceipt
3. Exceptions: ContractError and the rejection taxonomy
4. The mutable state aggregate (ContractState), owned only by Contract
5. Principal helpers and native-unit conversion

All functions in this module are pure and operate on read-only views.
No function can mutate contract state directly.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_DOWN, InvalidOperation
from enum import Enum
import hashlib
from typing import (
    Dict, List, Optional, Any, Protocol, Tuple, runtime_checkable
)


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved all-zero principal. Never a valid ownership target.
ZERO_ADDRESS = "0x" + "00" * 20

ADDRESS_HEX_LENGTH = 40

# Width of the host numeric type used on the arithmetic paths.
UINT256_MAX = 2 ** 256 - 1

# Native value unit has 18 decimal places (1 coin = 10**18 base units).
NATIVE_DECIMALS = 18

# Fixed rejection reasons surfaced to callers.
REASON_NOT_ACTIVE = "Contract is not active"
REASON_ZERO_ADDRESS = "Invalid address: zero address"
REASON_NOT_OWNER = "Caller is not the owner"
REASON_INSUFFICIENT_FUNDS = "Insufficient funds"
REASON_OUT_OF_RANGE = "Index out of range"
REASON_OVERFLOW = "Arithmetic overflow"
REASON_NOT_PAYABLE = "Operation does not accept value"

# Event names
EVENT_DEPOSIT = "Deposit"
EVENT_DATA_ADDED = "DataAdded"

# Slots of the state aggregate addressed by StateChange.
SLOT_OWNER = "owner"
SLOT_LIFECYCLE = "lifecycle"
SLOT_BALANCES = "balances"
SLOT_TOTAL_HELD = "total_held"
SLOT_RECORD_COUNTER = "record_counter"
SLOT_RECORDS = "records"
SLOT_RECORD_IDS = "record_ids"

SCALAR_SLOTS = frozenset({SLOT_OWNER, SLOT_LIFECYCLE, SLOT_TOTAL_HELD, SLOT_RECORD_COUNTER})
MAPPING_SLOTS = frozenset({SLOT_BALANCES, SLOT_RECORDS})


# ============================================================================
# TYPE ALIASES
# ============================================================================

# A normalized address string: "0x" followed by 40 lower-case hex digits.
Principal = str

# Mapping from principal to deposited native units.
BalanceMap = Dict[str, int]


# ============================================================================
# ENUMS
# ============================================================================

class LifecycleState(Enum):
    """
    Binary lifecycle flag of the contract.

    Values match the ABI encoding of the state (uint8).
    ACTIVE is the initial state; INACTIVE is terminal.
    """
    ACTIVE = 0
    INACTIVE = 1


class CallResult(Enum):
    """
    Outcome of a call.

    APPLIED: The call ran to completion and all of its state changes were applied.
    REJECTED: The call failed; none of its state changes were applied.
    """
    APPLIED = "applied"
    REJECTED = "rejected"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ContractError(Exception):
    """
    Base exception for every rejection raised by a contract operation.

    The human-readable reason is kept on .reason so callers can compare
    against the fixed reason strings.
    """

    def __init__(self, reason: str = ""):
        super().__init__(reason)
        self.reason = reason


class Unauthorized(ContractError):
    """Raised when a privileged operation is called by someone other than the owner."""
    pass


class InvalidTarget(ContractError):
    """Raised when the zero address is passed as the new owner."""
    pass


class ContractInactive(ContractError):
    """Raised when an active-only operation is called while the contract is inactive."""
    pass


class InsufficientFunds(ContractError):
    """Raised when a withdrawal exceeds the contract's total holdings."""
    pass


class OutOfRange(ContractError):
    """Raised when an index lookup falls outside the record index."""
    pass


class RemoteCallFailure(ContractError):
    """Raised when a nested call to another deployed service does not succeed."""
    pass


class ArithmeticOverflow(ContractError):
    """Raised when checked arithmetic would leave the uint256 range."""
    pass


class InvalidArgument(ContractError):
    """Raised when call arguments cannot be decoded or are out of domain."""
    pass


class ValueNotAccepted(ContractError):
    """Raised when value is attached to an operation that is not payable."""
    pass


class StaleState(ContractError):
    """Raised when a pending state change was computed against a value that no longer holds."""
    pass


# ============================================================================
# PRINCIPALS AND NATIVE UNITS
# ============================================================================

def normalize_address(value: str) -> Principal:
    """
    Return the canonical form of an address.

    Accepts "0x"-prefixed or bare 40-digit hex in any case.

    Raises:
        InvalidArgument: If the value is not a 20-byte hex address.
    """
    if not isinstance(value, str):
        raise InvalidArgument(f"Address must be a string, got {type(value).__name__}")
    body = value[2:] if value[:2].lower() == "0x" else value
    if len(body) != ADDRESS_HEX_LENGTH:
        raise InvalidArgument(f"Address must have {ADDRESS_HEX_LENGTH} hex digits: {value!r}")
    try:
        int(body, 16)
    except ValueError:
        raise InvalidArgument(f"Address is not hexadecimal: {value!r}") from None
    return "0x" + body.lower()


def derive_address(seed: str) -> Principal:
    """
    Derive a deterministic address from an arbitrary seed string.

    Uses the last 20 bytes of sha256(seed). Handy for naming test accounts
    ("alice", "bob") and for service deployment addresses.
    """
    digest = hashlib.sha256(seed.encode()).hexdigest()
    return "0x" + digest[-ADDRESS_HEX_LENGTH:]


def is_zero_address(value: str) -> bool:
    """Return True if value normalizes to the reserved zero address."""
    return normalize_address(value) == ZERO_ADDRESS


def to_native(amount: Any, decimals: int = NATIVE_DECIMALS) -> int:
    """
    Convert a decimal amount of whole coins to integer native units.

    to_native("1") == 10**18. Fractions below one native unit are truncated.

    Raises:
        ValueError: If the amount is not a finite, non-negative number.
    """
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise ValueError(f"Amount is not a number: {amount!r}") from None
    if value.is_nan() or value.is_infinite():
        raise ValueError(f"Amount must be finite, got {amount!r}")
    if value < 0:
        raise ValueError(f"Amount must be non-negative, got {amount!r}")
    scaled = (value * (Decimal(10) ** decimals)).quantize(Decimal("1"), rounding=ROUND_DOWN)
    return int(scaled)


def from_native(units: int, decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Convert integer native units back to a Decimal amount of whole coins."""
    return Decimal(units) / (Decimal(10) ** decimals)


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Message:
    """
    The context of one call: who is calling, how much value is attached,
    and the raw calldata.

    Attributes:
        sender: Calling principal (normalized on construction).
        value: Attached native units (non-negative).
        data: Raw calldata. Empty for a plain value transfer.
    """
    sender: Principal
    value: int = 0
    data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, 'sender', normalize_address(self.sender))
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValueError(f"Message value must be int, got {type(self.value)}")
        if self.value < 0:
            raise ValueError(f"Message value must be non-negative, got {self.value}")
        if not isinstance(self.data, (bytes, bytearray)):
            raise ValueError(f"Message data must be bytes, got {type(self.data)}")
        object.__setattr__(self, 'data', bytes(self.data))

    def __repr__(self) -> str:
        return f"Message({self.sender}, value={self.value}, data={self.data[:4].hex() or '-'})"


@dataclass(frozen=True, slots=True)
class Record:
    """
    One entry of the record log. Immutable once stored.

    A record with id 0 is the default "not found" value.
    """
    id: int
    info: str

    def __post_init__(self):
        if not isinstance(self.id, int) or self.id < 0:
            raise ValueError(f"Record id must be a non-negative int, got {self.id!r}")
        if not isinstance(self.info, str):
            raise ValueError(f"Record info must be str, got {type(self.info)}")


EMPTY_RECORD = Record(0, "")


@dataclass(frozen=True, slots=True)
class EventLog:
    """
    An emitted notification.

    Attributes:
        name: Event name ("Deposit", "DataAdded").
        args: Event arguments as a frozen tuple of (key, value) pairs.
    """
    name: str
    args: Tuple[Tuple[str, Any], ...] = ()

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValueError("EventLog name cannot be empty")

    @property
    def args_dict(self) -> Dict[str, Any]:
        """Get args as a dictionary for convenience."""
        return dict(self.args)

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self.args)
        return f"{self.name}({inner})"


def deposit_event(sender: Principal, amount: int) -> EventLog:
    return EventLog(EVENT_DEPOSIT, (("sender", sender), ("amount", amount)))


def data_added_event(record_id: int, info: str) -> EventLog:
    return EventLog(EVENT_DATA_ADDED, (("id", record_id), ("info", info)))


@dataclass(frozen=True, slots=True)
class StateChange:
    """
    One change to the state aggregate, recorded for atomic application and audit.

    Attributes:
        slot: Which field of ContractState changes (one of the SLOT_* constants).
        key: Mapping key for mapping slots, list index for record_ids, None for scalars.
        old_value: The value the change was computed against (None if absent).
        new_value: The value after the change.
    """
    slot: str
    key: Any
    old_value: Any
    new_value: Any

    def __repr__(self) -> str:
        target = self.slot if self.key is None else f"{self.slot}[{self.key!r}]"
        return f"{target}: {self.old_value!r} → {self.new_value!r}"


@dataclass(frozen=True, slots=True)
class PendingCall:
    """
    The outcome of running an operation against a view - represents INTENT.

    Created by the pure operation functions and submitted to Contract for
    atomic application.

    Attributes:
        operation: Name of the operation that produced this call
        state_changes: Changes to apply, in order
        logs: Events to emit if the call is applied
        transfers: Outgoing native transfers as (recipient, amount) pairs
        return_value: Value returned to the caller
    """
    operation: str
    state_changes: Tuple[StateChange, ...] = ()
    logs: Tuple[EventLog, ...] = ()
    transfers: Tuple[Tuple[Principal, int], ...] = ()
    return_value: Any = None

    def is_empty(self) -> bool:
        """Return True if this call changes nothing, emits nothing and moves no value."""
        return not self.state_changes and not self.logs and not self.transfers

    def __repr__(self) -> str:
        return (f"PendingCall({self.operation}: {len(self.state_changes)} changes, "
                f"{len(self.logs)} logs, {len(self.transfers)} transfers)")


def build_call(
    operation: str,
    state_changes: Optional[List[StateChange]] = None,
    logs: Optional[List[EventLog]] = None,
    transfers: Optional[List[Tuple[Principal, int]]] = None,
    return_value: Any = None,
) -> PendingCall:
    """
    Build a PendingCall from changes, logs and transfers.

    This is the standard way for operations to describe their effect.

    Example:
        def compute_mark(view, msg):
            old = view.total_held
            changes = [StateChange(SLOT_TOTAL_HELD, None, old, old + msg.value)]
            return build_call("mark", changes)
    """
    return PendingCall(
        operation=operation,
        state_changes=tuple(state_changes or ()),
        logs=tuple(logs or ()),
        transfers=tuple(transfers or ()),
        return_value=return_value,
    )


def empty_pending_call(operation: str, return_value: Any = None) -> PendingCall:
    """
    Create a PendingCall with no effects.

    Used by read operations and by writes that turn out to be no-ops.
    """
    return PendingCall(operation=operation, return_value=return_value)


@dataclass(frozen=True, slots=True)
class CallReceipt:
    """
    An executed, immutable record of one call - represents FACT.

    Attributes:
        operation: Resolved operation name ("receive" and "fallback" included)
        message: The call context
        status: APPLIED or REJECTED
        state_changes: Changes applied (empty when rejected)
        logs: Events emitted (empty when rejected)
        transfers: Outgoing native transfers (empty when rejected)
        return_value: Value returned to the caller (None when rejected)
        error: The rejection, if any
        sequence_number: Position in the contract's receipt log
        timestamp: Logical time of execution
    """
    operation: str
    message: Message
    status: CallResult
    sequence_number: int
    timestamp: datetime
    state_changes: Tuple[StateChange, ...] = ()
    logs: Tuple[EventLog, ...] = ()
    transfers: Tuple[Tuple[Principal, int], ...] = ()
    return_value: Any = None
    error: Optional[ContractError] = None

    @property
    def succeeded(self) -> bool:
        return self.status == CallResult.APPLIED

    @property
    def reason(self) -> str:
        return self.error.reason if self.error is not None else ""

    def raise_for_status(self) -> None:
        """Re-raise the rejection carried by this receipt, if any."""
        if self.error is not None:
            raise self.error

    def __repr__(self) -> str:
        w = 100  # Inner content width
        bar = "─" * w

        def pad(text: str) -> str:
            """Pad or truncate text to exactly w characters."""
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [
            "",
            f"┌{bar}┐",
            f"│{pad(' Call #' + str(self.sequence_number) + ': ' + self.operation)}│",
            f"├{bar}┤",
            f"│{pad('   sender    : ' + self.message.sender)}│",
            f"│{pad('   value     : ' + str(self.message.value))}│",
            f"│{pad('   timestamp : ' + str(self.timestamp))}│",
        ]
        if self.state_changes:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' State Changes (' + str(len(self.state_changes)) + '):')}│")
            for sc in self.state_changes:
                lines.append(f"│{pad('   ' + repr(sc))}│")
        if self.logs:
            lines.append(f"├{bar}┤")
            lines.append(f"│{pad(' Events (' + str(len(self.logs)) + '):')}│")
            for log in self.logs:
                lines.append(f"│{pad('   ' + repr(log))}│")
        if self.transfers:
            lines.append(f"├{bar}┤")
            for recipient, amount in self.transfers:
                lines.append(f"│{pad('   transfer ' + str(amount) + ' → ' + recipient)}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


# ============================================================================
# STATE AGGREGATE
# ============================================================================

@dataclass(slots=True)
class ContractState:
    """
    The complete persistent state of one contract.

    Owned exclusively by a Contract instance. Operations never see this
    object; they read through a ContractView and describe changes as
    StateChange records.
    """
    owner: Principal
    lifecycle: LifecycleState = LifecycleState.ACTIVE
    balances: BalanceMap = field(default_factory=dict)
    total_held: int = 0
    record_counter: int = 0
    records: Dict[int, Record] = field(default_factory=dict)
    record_ids: List[int] = field(default_factory=list)

    def copy(self) -> ContractState:
        """Return an independent copy. Records are immutable and can be shared."""
        return ContractState(
            owner=self.owner,
            lifecycle=self.lifecycle,
            balances=dict(self.balances),
            total_held=self.total_held,
            record_counter=self.record_counter,
            records=dict(self.records),
            record_ids=list(self.record_ids),
        )


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class ContractView(Protocol):
    """
    Read-only interface to contract state.

    Operation functions take a ContractView to declare their read-only
    intent. Contract implements this protocol; tests use FakeView.
    """

    @property
    def address(self) -> Principal:
        """Address of the contract itself."""
        ...

    @property
    def owner(self) -> Principal:
        ...

    @property
    def lifecycle(self) -> LifecycleState:
        ...

    @property
    def total_held(self) -> int:
        ...

    @property
    def record_counter(self) -> int:
        ...

    def balance_of(self, principal: Principal) -> Optional[int]:
        """Return the deposited balance, or None if the principal never deposited."""
        ...

    def record(self, record_id: int) -> Record:
        """Return the record with this id, or EMPTY_RECORD."""
        ...

    def record_ids(self) -> Tuple[int, ...]:
        """Return the record index in insertion order."""
        ...
