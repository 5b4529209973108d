"""
contract.py - Stateful contract unit

The Contract class is the central state manager of the system.
It is the only module that mutates state, ensuring controlled and auditable changes.

Key responsibilities:
    - Implements ContractView protocol for safe read-only access by pure functions
    - Executes calls atomically (all changes of a call apply, or none do)
    - Owns the state aggregate (owner, lifecycle, balances, holdings, records)
    - Keeps the receipt log and provides clone() and replay()
    - Serializes calls, including calls that re-enter through a nested call
"""

from __future__ import annotations
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Optional, Tuple
import threading

from .core import (
    # Types
    CallReceipt, CallResult, ContractState, EventLog, LifecycleState,
    Message, PendingCall, Principal, Record, StateChange, BalanceMap,
    # Constants
    EMPTY_RECORD, ZERO_ADDRESS, REASON_OUT_OF_RANGE,
    SLOT_RECORD_IDS, SCALAR_SLOTS, MAPPING_SLOTS,
    # Exceptions
    ContractError, OutOfRange, StaleState,
    # Helper functions
    normalize_address,
)
from . import abi
from .access import compute_get_owner, compute_transfer_ownership
from .lifecycle import compute_get_state, compute_set_inactive
from .funds import (
    compute_deposit, compute_withdraw, compute_get_balance, compute_get_total_held,
    compute_receive, compute_fallback,
)
from .records import (
    compute_add_data, compute_get_record, compute_get_record_id_at, compute_get_record_count,
)
from .calculator import (
    Connector, compute_add, compute_interact_with_calculator, remote_connector,
)
from .dispatch import Dispatcher, Operation, OperationTable
from .services import ServiceDirectory


U256 = abi.TYPE_UINT256
ADDR = abi.TYPE_ADDRESS
STR = abi.TYPE_STRING


def contract_operations(connect: Connector) -> List[Operation]:
    """
    The public operation surface of the contract.

    Args:
        connect: Builds the addition capability used by interactWithCalculator.
    """
    return [
        # Access control
        Operation("getOwner", compute_get_owner, outputs=(ADDR,), mutating=False),
        Operation("transferOwnership", compute_transfer_ownership, inputs=(ADDR,)),
        # Lifecycle
        Operation("getState", compute_get_state, outputs=(abi.TYPE_UINT8,), mutating=False),
        Operation("setInactive", compute_set_inactive),
        # Funds
        Operation("deposit", compute_deposit, payable=True),
        Operation("withdraw", compute_withdraw, inputs=(U256,)),
        Operation("getBalance", compute_get_balance, inputs=(ADDR,), outputs=(U256,),
                  mutating=False),
        Operation("getTotalHeld", compute_get_total_held, outputs=(U256,), mutating=False),
        # Records
        Operation("addData", compute_add_data, inputs=(STR,), outputs=(U256,)),
        Operation("getRecord", compute_get_record, inputs=(U256,), outputs=(U256, STR),
                  mutating=False),
        Operation("getRecordIdAt", compute_get_record_id_at, inputs=(U256,), outputs=(U256,),
                  mutating=False),
        Operation("getRecordCount", compute_get_record_count, outputs=(U256,), mutating=False),
        # Calculator
        Operation("interactWithCalculator",
                  partial(compute_interact_with_calculator, connect=connect),
                  inputs=(ADDR, U256, U256), outputs=(U256,), mutating=False),
        Operation("add", compute_add, inputs=(U256, U256), outputs=(U256,), mutating=False),
    ]


def _apply_change(state: ContractState, sc: StateChange) -> None:
    """
    Apply one change to a state aggregate in place.

    Raises:
        StaleState: If the current value is not the one the change was computed against.
    """
    if sc.slot in SCALAR_SLOTS:
        current = getattr(state, sc.slot)
        if current != sc.old_value:
            raise StaleState(f"{sc.slot}: expected {sc.old_value!r}, found {current!r}")
        setattr(state, sc.slot, sc.new_value)
    elif sc.slot in MAPPING_SLOTS:
        mapping = getattr(state, sc.slot)
        current = mapping.get(sc.key)
        if current != sc.old_value:
            raise StaleState(f"{sc.slot}[{sc.key!r}]: expected {sc.old_value!r}, found {current!r}")
        mapping[sc.key] = sc.new_value
    elif sc.slot == SLOT_RECORD_IDS:
        if sc.old_value is not None or sc.key != len(state.record_ids):
            raise StaleState(f"record_ids: expected append at {sc.key}, length is {len(state.record_ids)}")
        state.record_ids.append(sc.new_value)
    else:
        raise ValueError(f"Unknown state slot: {sc.slot}")


class Contract:
    """
    Owner-gated contract unit with a lifecycle flag, a value ledger, a record
    log and a bridge to an external addition service.

    Implements the ContractView protocol, allowing the contract to be passed to
    the pure operation functions that access only read-only members.

    Design Principles:
        - Two phases: an operation computes a PendingCall from the view, then
          the contract applies its changes to a copy of the state and swaps
          the copy in. A rejection in either phase leaves the state untouched.
        - Always logs: every call made through transact() or send() gets a
          receipt, applied or rejected.

    Thread Safety:
        Calls are serialized with a re-entrant lock, so a nested call that
        comes back into the same contract does not deadlock.

    Example:
        directory = ServiceDirectory()
        calc = directory.deploy(Calculator(), deployer=owner)
        contract = Contract(owner, directory=directory)

        contract.deposit(alice, value=to_native("1"))
        contract.add_data(alice, "hello")
        contract.interact_with_calculator(alice, calc, 2, 3)   # 5
    """

    def __init__(
        self,
        deployer: str,
        name: str = "TestContract",
        directory: Optional[ServiceDirectory] = None,
        initial_time: Optional[datetime] = None,
        verbose: bool = True,
    ):
        """
        Deploy a contract. The deployer becomes the owner.

        Args:
            deployer: Address of the deploying account
            name: Contract name used in output
            directory: Where the contract registers itself and resolves
                       remote services (default: a private directory)
            initial_time: Starting logical time (default: 1970-01-01)
            verbose: Print every receipt (default: True)
        """
        self.name = name
        self.deployer = normalize_address(deployer)
        self.verbose = verbose
        self._state = ContractState(owner=self.deployer)
        self._current_time: datetime = initial_time or datetime(1970, 1, 1)
        self.receipts: List[CallReceipt] = []
        self.logs: List[EventLog] = []
        self._next_sequence: int = 0
        self._lock = threading.RLock()
        self.directory = directory if directory is not None else ServiceDirectory()
        self.operations = OperationTable(contract_operations(remote_connector(self.directory)))
        self.dispatcher = Dispatcher(self.operations, receive=compute_receive, fallback=compute_fallback)
        self.address: Principal = self.directory.deploy(self, self.deployer)
        if self.verbose:
            print(f"📝 Deployed: {self.name} at {self.address} (owner {self.deployer})")

    # ========================================================================
    # ContractView PROTOCOL IMPLEMENTATION (read-only members)
    # ========================================================================

    @property
    def owner(self) -> Principal:
        return self._state.owner

    @property
    def lifecycle(self) -> LifecycleState:
        return self._state.lifecycle

    @property
    def total_held(self) -> int:
        return self._state.total_held

    @property
    def record_counter(self) -> int:
        return self._state.record_counter

    def balance_of(self, principal: Principal) -> Optional[int]:
        return self._state.balances.get(principal)

    def record(self, record_id: int) -> Record:
        return self._state.records.get(record_id, EMPTY_RECORD)

    def record_ids(self) -> Tuple[int, ...]:
        return tuple(self._state.record_ids)

    @property
    def balances(self) -> BalanceMap:
        """Copy of every deposited balance."""
        return dict(self._state.balances)

    @property
    def current_time(self) -> datetime:
        """Current logical time of the contract."""
        return self._current_time

    def snapshot(self) -> ContractState:
        """Independent copy of the whole state aggregate."""
        return self._state.copy()

    # ========================================================================
    # TIME MANAGEMENT
    # ========================================================================

    def advance_time(self, new_time: datetime) -> None:
        """
        Advance the logical clock. Time can only move forward.

        Raises:
            ValueError: If new_time is before the current time
        """
        if new_time < self._current_time:
            raise ValueError(
                f"Cannot move time backwards: {new_time} < {self._current_time}"
            )
        self._current_time = new_time

    # ========================================================================
    # CALL EXECUTION
    # ========================================================================

    def send(self, sender: str, value: int = 0, data: bytes = b"") -> CallReceipt:
        """
        Deliver a raw call, the way a plain transaction reaches the contract.

        Empty data reaches receive; data matching no selector reaches fallback.
        Never raises for a rejection; inspect the returned receipt.

        Raises:
            InvalidArgument: If sender is not an address. No receipt is recorded.
            ValueError: If value is negative or data is not bytes.
        """
        return self._execute(Message(sender, value, data))

    def transact(self, sender: str, operation: str, *args: Any, value: int = 0) -> CallReceipt:
        """
        Call a named operation and record the outcome.

        Arguments are encoded through the operation's ABI signature, so a call
        made here is indistinguishable from the same call sent as raw calldata.

        Returns:
            CallReceipt with status APPLIED or REJECTED

        Raises:
            InvalidArgument: If sender is not an address. Rejections of a
                well-formed call are returned as receipts instead.
        """
        msg, error = self._message(sender, operation, args, value)
        if error is not None:
            with self._lock:
                return self._record(msg, operation, None, error)
        return self._execute(msg)

    def call(self, operation: str, *args: Any, sender: str = ZERO_ADDRESS, value: int = 0) -> Any:
        """
        Run an operation without applying or recording anything.

        Returns:
            The operation's return value

        Raises:
            ContractError: If the operation rejects the call
        """
        msg, error = self._message(sender, operation, args, value)
        if error is not None:
            raise error
        with self._lock:
            return self.dispatcher.dispatch(self, msg).return_value

    def invoke(self, sender: str, operation: str, *args: Any, value: int = 0) -> Any:
        """
        Call an operation the way a client library would: state-changing
        operations are transacted, read operations are simulated.

        Returns:
            The operation's return value

        Raises:
            ContractError: If the operation rejects the call
        """
        if self.operations.get(operation).mutating:
            receipt = self.transact(sender, operation, *args, value=value)
            receipt.raise_for_status()
            return receipt.return_value
        return self.call(operation, *args, sender=sender, value=value)

    def handle(self, message: Message) -> bytes:
        """
        Serve a raw call from another unit and return the ABI-encoded result.

        Read operations are served like call() and leave no receipt; anything
        else is executed and recorded like send().

        Raises:
            ContractError: If the call is rejected
        """
        _, op = self.dispatcher.route(message)
        if op is not None and not op.mutating:
            with self._lock:
                pending = self.dispatcher.dispatch(self, message)
            return op.encode_output(pending.return_value)
        receipt = self._execute(message)
        receipt.raise_for_status()
        return op.encode_output(receipt.return_value) if op is not None else b""

    def _message(
        self, sender: str, operation: str, args: Tuple[Any, ...], value: int
    ) -> Tuple[Message, Optional[ContractError]]:
        op = self.operations.get(operation)
        try:
            data = op.encode_input(args)
        except ContractError as e:
            return Message(sender, value, op.selector), e
        return Message(sender, value, data), None

    def _execute(self, msg: Message) -> CallReceipt:
        """
        Execute one call atomically.

        All changes of the call are applied to a copy of the state; the copy
        replaces the live state only after every change applied cleanly.
        """
        with self._lock:
            name, _ = self.dispatcher.route(msg)
            try:
                pending = self.dispatcher.dispatch(self, msg)
                new_state = self._state.copy()
                for sc in pending.state_changes:
                    _apply_change(new_state, sc)
            except ContractError as e:
                return self._record(msg, name, None, e)
            self._state = new_state
            return self._record(msg, name, pending, None)

    def _record(
        self,
        msg: Message,
        operation: str,
        pending: Optional[PendingCall],
        error: Optional[ContractError],
    ) -> CallReceipt:
        sequence = self._next_sequence
        self._next_sequence += 1
        if pending is not None:
            receipt = CallReceipt(
                operation=operation,
                message=msg,
                status=CallResult.APPLIED,
                sequence_number=sequence,
                timestamp=self._current_time,
                state_changes=pending.state_changes,
                logs=pending.logs,
                transfers=pending.transfers,
                return_value=pending.return_value,
            )
            self.logs.extend(pending.logs)
        else:
            receipt = CallReceipt(
                operation=operation,
                message=msg,
                status=CallResult.REJECTED,
                sequence_number=sequence,
                timestamp=self._current_time,
                error=error,
            )
        self.receipts.append(receipt)
        if self.verbose:
            self._print_receipt(receipt)
        return receipt

    def _print_receipt(self, receipt: CallReceipt) -> None:
        """Print the receipt box with a result line appended."""
        lines = repr(receipt).split('\n')
        w = 100
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        if receipt.succeeded:
            result = "✓ APPLIED"
        else:
            result = f"✗ REJECTED: {type(receipt.error).__name__}: {receipt.reason}"
        lines[-1] = f"├{bar}┤"
        lines.append(f"│{pad(' ' + result)}│")
        lines.append(f"└{bar}┘")
        print("\n".join(lines))

    # ========================================================================
    # OPERATIONS (client-style wrappers)
    # ========================================================================

    def get_owner(self) -> Principal:
        return self.invoke(ZERO_ADDRESS, "getOwner")

    def transfer_ownership(self, sender: str, new_owner: str) -> None:
        self.invoke(sender, "transferOwnership", new_owner)

    def get_state(self) -> LifecycleState:
        return self.invoke(ZERO_ADDRESS, "getState")

    def set_inactive(self, sender: str) -> None:
        self.invoke(sender, "setInactive")

    def deposit(self, sender: str, value: int = 0) -> None:
        self.invoke(sender, "deposit", value=value)

    def withdraw(self, sender: str, amount: int) -> None:
        self.invoke(sender, "withdraw", amount)

    def get_balance(self, principal: str) -> int:
        return self.invoke(ZERO_ADDRESS, "getBalance", principal)

    def get_total_held(self) -> int:
        return self.invoke(ZERO_ADDRESS, "getTotalHeld")

    def add_data(self, sender: str, info: str) -> int:
        """Append a record and return its id."""
        return self.invoke(sender, "addData", info)

    def get_record(self, record_id: int) -> Record:
        return self.invoke(ZERO_ADDRESS, "getRecord", record_id)

    def get_record_id_at(self, index: int) -> int:
        # uint256 calldata cannot carry a negative index
        if isinstance(index, int) and index < 0:
            raise OutOfRange(REASON_OUT_OF_RANGE)
        return self.invoke(ZERO_ADDRESS, "getRecordIdAt", index)

    def get_record_count(self) -> int:
        return self.invoke(ZERO_ADDRESS, "getRecordCount")

    def interact_with_calculator(self, sender: str, service_address: str, a: int, b: int) -> int:
        return self.invoke(sender, "interactWithCalculator", service_address, a, b)

    def add(self, a: int, b: int) -> int:
        return self.invoke(ZERO_ADDRESS, "add", a, b)

    # ========================================================================
    # AUDIT AND HISTORY
    # ========================================================================

    def verify_invariants(self) -> Dict[str, Any]:
        """
        Check the structural invariants of the state aggregate.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every invariant holds
            - 'violations': List[str] - Description of each violation

        Example:
            result = contract.verify_invariants()
            assert result['valid'], result['violations']
        """
        state = self._state
        violations = []

        if state.owner == ZERO_ADDRESS:
            violations.append("owner is the zero address")
        if len(state.record_ids) != state.record_counter:
            violations.append(
                f"record index length {len(state.record_ids)} != counter {state.record_counter}"
            )
        if state.record_ids != list(range(1, state.record_counter + 1)):
            violations.append("record ids are not 1..counter in insertion order")
        for record_id in state.record_ids:
            stored = state.records.get(record_id)
            if stored is None or stored.id != record_id:
                violations.append(f"record {record_id} missing or mislabeled")
        if state.total_held < 0:
            violations.append(f"total held is negative: {state.total_held}")
        for principal, amount in state.balances.items():
            if amount < 0:
                violations.append(f"balance of {principal} is negative: {amount}")

        return {
            'valid': len(violations) == 0,
            'violations': violations,
        }

    def clone(self) -> Contract:
        """
        Create an independent copy of this contract.

        The clone shares the directory (so it can reach the same services)
        and the address, but is not registered in the directory itself.

        Returns:
            A new Contract instance with identical state and history
        """
        cloned = Contract.__new__(Contract)
        cloned.name = self.name
        cloned.deployer = self.deployer
        cloned.verbose = self.verbose
        cloned._state = self._state.copy()
        cloned._current_time = self._current_time
        cloned.receipts = list(self.receipts)
        cloned.logs = list(self.logs)
        cloned._next_sequence = self._next_sequence
        cloned._lock = threading.RLock()
        cloned.directory = self.directory
        cloned.operations = self.operations
        cloned.dispatcher = self.dispatcher
        cloned.address = self.address
        return cloned

    def replay(self) -> Contract:
        """
        Deploy a fresh contract and re-execute every applied call in order.

        Rejected calls are skipped; they changed nothing the first time.
        The replayed contract is deployed into the same directory, so it gets
        a new address but resolves the same services.

        Returns:
            New Contract whose state equals this one's

        Raises:
            ContractError: If a call that was applied originally is rejected on replay
        """
        replayed = Contract(
            self.deployer,
            name=f"{self.name}_replayed",
            directory=self.directory,
            verbose=self.verbose,
        )
        for receipt in self.receipts:
            if not receipt.succeeded:
                continue
            if receipt.timestamp > replayed.current_time:
                replayed.advance_time(receipt.timestamp)
            result = replayed._execute(receipt.message)
            if not result.succeeded:
                raise ContractError(f"Replay failed at call {receipt.sequence_number}: {result.reason}")
        return replayed

    def __repr__(self) -> str:
        return (f"Contract({self.name} at {self.address}, owner={self.owner}, "
                f"state={self.lifecycle.name}, held={self.total_held}, records={self.record_counter})")
