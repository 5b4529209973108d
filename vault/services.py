"""
services.py - Independently deployed collaborator services

Classes:
- Calculator: addition service reached by interactWithCalculator
- InternalFunctionService: multiplication plus an entry point named like an
  internal helper that any caller can nevertheless reach
- ServiceDirectory: address -> deployed unit, with deterministic addresses

Both services are stateless. They answer raw calls through handle() and
also expose plain Python methods.
"""

from __future__ import annotations
from typing import Dict, Optional

from . import abi
from .core import (
    Message, PendingCall, Principal, RemoteCallFailure,
    derive_address, empty_pending_call, normalize_address,
)
from .calculator import RemoteService, checked_add, checked_mul
from .dispatch import Dispatcher, Operation, OperationTable


PRIVATE_FUNCTION_RESULT = "This is a private function"


class _StatelessService:
    """Serves raw calls for a unit that has no persistent state."""

    dispatcher: Dispatcher

    def handle(self, message: Message) -> bytes:
        """
        Execute a raw call and return the ABI-encoded result.

        Raises:
            ContractError: If the call is rejected.
        """
        pending = self.dispatcher.dispatch(self, message)
        _, op = self.dispatcher.route(message)
        return op.encode_output(pending.return_value) if op is not None else b""


# ============================================================================
# CALCULATOR
# ============================================================================

def _compute_calculator_add(view, msg: Message, a: int, b: int) -> PendingCall:
    return empty_pending_call("add", return_value=checked_add(a, b))


class Calculator(_StatelessService):
    """
    Addition service: add(uint256,uint256) -> uint256.

    Overflow is rejected, which the caller sees as a failed remote call.
    """

    def __init__(self):
        self.dispatcher = Dispatcher(OperationTable([
            Operation("add", _compute_calculator_add,
                      inputs=(abi.TYPE_UINT256, abi.TYPE_UINT256),
                      outputs=(abi.TYPE_UINT256,), mutating=False),
        ]))

    def add(self, a: int, b: int) -> int:
        return checked_add(a, b)

    def __repr__(self) -> str:
        return "Calculator()"


# ============================================================================
# INTERNAL FUNCTION SERVICE
# ============================================================================

def _multiply(a: int, b: int) -> int:
    return checked_mul(a, b)


def _compute_calculate(view, msg: Message, a: int, b: int) -> PendingCall:
    return empty_pending_call("calculate", return_value=_multiply(a, b))


def _compute_private_function(view, msg: Message) -> PendingCall:
    # No caller restriction despite the name.
    return empty_pending_call("privateFunction", return_value=PRIVATE_FUNCTION_RESULT)


class InternalFunctionService(_StatelessService):
    """
    calculate(a, b) -> a * b, built on an internal multiply helper, and
    privateFunction() -> fixed descriptive string, open to every caller.
    """

    def __init__(self):
        self.dispatcher = Dispatcher(OperationTable([
            Operation("calculate", _compute_calculate,
                      inputs=(abi.TYPE_UINT256, abi.TYPE_UINT256),
                      outputs=(abi.TYPE_UINT256,), mutating=False),
            Operation("privateFunction", _compute_private_function,
                      outputs=(abi.TYPE_STRING,), mutating=False),
        ]))

    def calculate(self, a: int, b: int) -> int:
        return _multiply(a, b)

    def private_function(self) -> str:
        return PRIVATE_FUNCTION_RESULT

    def __repr__(self) -> str:
        return "InternalFunctionService()"


# ============================================================================
# DIRECTORY
# ============================================================================

class ServiceDirectory:
    """
    Registry of deployed units by address.

    deploy() assigns the address derived from (deployer, deployer's nonce),
    so the same deployment sequence always yields the same addresses.

    Example:
        directory = ServiceDirectory()
        calc = directory.deploy(Calculator(), deployer=owner)
        directory.resolve(calc).handle(message)
    """

    def __init__(self):
        self._services: Dict[Principal, RemoteService] = {}
        self._nonces: Dict[Principal, int] = {}

    def deploy(self, service: RemoteService, deployer: str) -> Principal:
        """Register service at the next address for deployer and return it."""
        deployer = normalize_address(deployer)
        nonce = self._nonces.get(deployer, 0)
        address = derive_address(f"{deployer}:{nonce}")
        self._nonces[deployer] = nonce + 1
        self.register(address, service)
        return address

    def register(self, address: str, service: RemoteService) -> None:
        """
        Register service at a fixed address.

        Raises:
            ValueError: If the address is already taken.
        """
        address = normalize_address(address)
        if address in self._services:
            raise ValueError(f"Address {address} already in use")
        self._services[address] = service

    def resolve(self, address: str) -> RemoteService:
        """
        Return the service deployed at address.

        Raises:
            RemoteCallFailure: If nothing is deployed there.
        """
        address = normalize_address(address)
        service = self._services.get(address)
        if service is None:
            raise RemoteCallFailure(f"No service deployed at {address}")
        return service

    def get(self, address: str) -> Optional[RemoteService]:
        return self._services.get(normalize_address(address))

    def __contains__(self, address: str) -> bool:
        return normalize_address(address) in self._services

    def __len__(self) -> int:
        return len(self._services)
