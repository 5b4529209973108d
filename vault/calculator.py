"""
calculator.py - Addition through a remote service, or locally

1. checked_add() / checked_mul() - uint256 arithmetic that fails instead of wrapping
2. AdditionService - The capability the contract depends on
3. RemoteAdditionClient - AdditionService backed by a deployed service, over the ABI
4. compute_interact_with_calculator() - Nested call to a remote addition service
5. compute_add() - Same addition, computed locally

The contract only ever sees the AdditionService protocol. In production the
capability is a RemoteAdditionClient pointed at an address; tests can hand in
any object with an add() method.
"""

from __future__ import annotations
from typing import Callable, Protocol, runtime_checkable

from . import abi
from .core import (
    ContractView, ContractError, Message, PendingCall, Principal,
    ArithmeticOverflow, InvalidArgument, RemoteCallFailure,
    UINT256_MAX, REASON_OVERFLOW,
    empty_pending_call, normalize_address,
)


ADD_SIGNATURE = "add(uint256,uint256)"


# ============================================================================
# CHECKED ARITHMETIC
# ============================================================================

def _check_operand(value: int) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidArgument(f"Operand must be an integer, got {type(value).__name__}")
    if value < 0 or value > UINT256_MAX:
        raise InvalidArgument(f"Operand {value} outside uint256 range")


def checked_add(a: int, b: int) -> int:
    """
    Add two uint256 values.

    Raises:
        InvalidArgument: If an operand is not a uint256.
        ArithmeticOverflow: If the sum exceeds UINT256_MAX.
    """
    _check_operand(a)
    _check_operand(b)
    result = a + b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(REASON_OVERFLOW)
    return result


def checked_mul(a: int, b: int) -> int:
    """Multiply two uint256 values, failing on overflow like checked_add."""
    _check_operand(a)
    _check_operand(b)
    result = a * b
    if result > UINT256_MAX:
        raise ArithmeticOverflow(REASON_OVERFLOW)
    return result


# ============================================================================
# CAPABILITY INTERFACES
# ============================================================================

@runtime_checkable
class AdditionService(Protocol):
    """
    Anything that adds two integers.

    add() returns the sum or raises RemoteCallFailure.
    """

    def add(self, a: int, b: int) -> int:
        ...


@runtime_checkable
class RemoteService(Protocol):
    """A deployed unit that accepts raw calls and returns ABI-encoded output."""

    def handle(self, message: Message) -> bytes:
        ...


class ServiceResolver(Protocol):
    """Maps an address to the service deployed there."""

    def resolve(self, address: str) -> RemoteService:
        ...


# Builds the capability for (service_address, calling_contract_address).
Connector = Callable[[Principal, Principal], AdditionService]


class RemoteAdditionClient:
    """
    AdditionService that reaches a deployed service through the fixed
    calling interface add(uint256,uint256) -> uint256.

    Every way the remote side can fail (no service at the address, a
    rejection inside the service, output that does not decode) surfaces as
    RemoteCallFailure. Nothing is retried.
    """

    def __init__(self, resolver: ServiceResolver, address: str, caller: str):
        self.resolver = resolver
        self.address = normalize_address(address)
        self.caller = normalize_address(caller)

    def add(self, a: int, b: int) -> int:
        data = abi.encode_call(ADD_SIGNATURE, (a, b))
        try:
            service = self.resolver.resolve(self.address)
            output = service.handle(Message(self.caller, 0, data))
            (result,) = abi.decode((abi.TYPE_UINT256,), output)
        except RemoteCallFailure:
            raise
        except ContractError as e:
            raise RemoteCallFailure(
                f"Call to {self.address} failed: {e.reason or type(e).__name__}"
            ) from e
        return result

    def __repr__(self) -> str:
        return f"RemoteAdditionClient({self.address})"


def remote_connector(resolver: ServiceResolver) -> Connector:
    """Return a Connector that builds RemoteAdditionClients on resolver."""
    def connect(address: Principal, caller: Principal) -> AdditionService:
        return RemoteAdditionClient(resolver, address, caller)
    return connect


# ============================================================================
# OPERATIONS
# ============================================================================

def compute_interact_with_calculator(
    view: ContractView,
    msg: Message,
    service_address: str,
    a: int,
    b: int,
    *,
    connect: Connector,
) -> PendingCall:
    """
    Ask the addition service at service_address for a + b.

    The nested call completes (or fails) before this operation returns. A
    failure rejects the whole enclosing call.

    Raises:
        RemoteCallFailure: If the remote service does not return a sum.
    """
    service = connect(normalize_address(service_address), view.address)
    result = service.add(a, b)
    return empty_pending_call("interactWithCalculator", return_value=result)


def compute_add(view: ContractView, msg: Message, a: int, b: int) -> PendingCall:
    """Local addition. Does not depend on any remote service being reachable."""
    return empty_pending_call("add", return_value=checked_add(a, b))
