"""
vault - Owner-gated contract unit

A single contract unit with an owner, an active/inactive lifecycle flag, a
deposit/withdraw value ledger, an append-only record log and a bridge to an
independently deployed addition service.

Usage:
    from vault import Contract, Calculator, ServiceDirectory, derive_address, to_native

    owner = derive_address("owner")
    alice = derive_address("alice")

    directory = ServiceDirectory()
    calc = directory.deploy(Calculator(), deployer=owner)
    contract = Contract(owner, directory=directory)

    contract.deposit(alice, value=to_native("1"))
    record_id = contract.add_data(alice, "hello")
    total = contract.interact_with_calculator(alice, calc, 2, 3)

    # Raw calls never raise; inspect the receipt instead
    receipt = contract.send(alice, value=to_native("0.5"))
    assert receipt.succeeded
"""

# Core types
from .core import (
    ContractView,
    ContractState,
    Message,
    Record,
    EventLog,
    StateChange,
    PendingCall,
    CallReceipt,
    CallResult,
    LifecycleState,
    Principal,
    build_call,
    empty_pending_call,
    deposit_event,
    data_added_event,
    normalize_address,
    derive_address,
    is_zero_address,
    to_native,
    from_native,
    EMPTY_RECORD,
    ZERO_ADDRESS,
    UINT256_MAX,
    NATIVE_DECIMALS,
    EVENT_DEPOSIT,
    EVENT_DATA_ADDED,
    REASON_NOT_ACTIVE,
    REASON_ZERO_ADDRESS,
    REASON_NOT_OWNER,
    REASON_INSUFFICIENT_FUNDS,
    REASON_OUT_OF_RANGE,
    REASON_OVERFLOW,
    REASON_NOT_PAYABLE,
    # Exceptions
    ContractError,
    Unauthorized,
    InvalidTarget,
    ContractInactive,
    InsufficientFunds,
    OutOfRange,
    RemoteCallFailure,
    ArithmeticOverflow,
    InvalidArgument,
    ValueNotAccepted,
    StaleState,
)

# Calling interface
from . import abi

# Operations
from .access import require_owner, compute_transfer_ownership, compute_get_owner
from .lifecycle import require_active, compute_set_inactive, compute_get_state
from .funds import (
    compute_deposit,
    compute_withdraw,
    compute_get_balance,
    compute_get_total_held,
    compute_receive,
    compute_fallback,
)
from .records import (
    compute_add_data,
    compute_get_record,
    compute_get_record_id_at,
    compute_get_record_count,
)
from .calculator import (
    AdditionService,
    RemoteService,
    RemoteAdditionClient,
    remote_connector,
    checked_add,
    checked_mul,
    compute_interact_with_calculator,
    compute_add,
)

# Dispatch
from .dispatch import Operation, OperationTable, Dispatcher, RECEIVE, FALLBACK

# Services
from .services import (
    Calculator,
    InternalFunctionService,
    ServiceDirectory,
    PRIVATE_FUNCTION_RESULT,
)

# Contract
from .contract import Contract, contract_operations


__all__ = [
    # Core
    'ContractView', 'ContractState', 'Message', 'Record', 'EventLog',
    'StateChange', 'PendingCall', 'CallReceipt', 'CallResult', 'LifecycleState',
    'Principal', 'build_call', 'empty_pending_call', 'deposit_event',
    'data_added_event', 'normalize_address', 'derive_address', 'is_zero_address',
    'to_native', 'from_native',
    'EMPTY_RECORD', 'ZERO_ADDRESS', 'UINT256_MAX', 'NATIVE_DECIMALS',
    'EVENT_DEPOSIT', 'EVENT_DATA_ADDED',
    'REASON_NOT_ACTIVE', 'REASON_ZERO_ADDRESS', 'REASON_NOT_OWNER',
    'REASON_INSUFFICIENT_FUNDS', 'REASON_OUT_OF_RANGE', 'REASON_OVERFLOW',
    'REASON_NOT_PAYABLE',
    # Exceptions
    'ContractError', 'Unauthorized', 'InvalidTarget', 'ContractInactive',
    'InsufficientFunds', 'OutOfRange', 'RemoteCallFailure', 'ArithmeticOverflow',
    'InvalidArgument', 'ValueNotAccepted', 'StaleState',
    # Calling interface
    'abi',
    # Operations
    'require_owner', 'compute_transfer_ownership', 'compute_get_owner',
    'require_active', 'compute_set_inactive', 'compute_get_state',
    'compute_deposit', 'compute_withdraw', 'compute_get_balance',
    'compute_get_total_held', 'compute_receive', 'compute_fallback',
    'compute_add_data', 'compute_get_record', 'compute_get_record_id_at',
    'compute_get_record_count',
    'AdditionService', 'RemoteService', 'RemoteAdditionClient', 'remote_connector',
    'checked_add', 'checked_mul', 'compute_interact_with_calculator', 'compute_add',
    # Dispatch
    'Operation', 'OperationTable', 'Dispatcher', 'RECEIVE', 'FALLBACK',
    # Services
    'Calculator', 'InternalFunctionService', 'ServiceDirectory',
    'PRIVATE_FUNCTION_RESULT',
    # Contract
    'Contract', 'contract_operations',
]

__version__ = '1.0.0'
