"""
dispatch.py - Operation table and call routing

Each operation is declared once (name, ABI input/output types, payability,
whether it writes state) and reached through its 4-byte selector.

Routing of a raw Message:

    data empty                      -> receive
    data starts with known selector -> that operation, ABI-decoded arguments
    anything else                   -> fallback

If a unit has no receive handler, empty calldata goes to fallback. A unit
with neither rejects the call. Value attached to a non-payable operation
is rejected.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from . import abi
from .core import (
    ContractView, Message, PendingCall, Record,
    InvalidArgument, ValueNotAccepted, REASON_NOT_PAYABLE,
)


RECEIVE = "receive"
FALLBACK = "fallback"

# Handler type: (view, msg, *args) -> PendingCall
OperationHandler = Callable[..., PendingCall]
DefaultHandler = Callable[[ContractView, Message], PendingCall]


@dataclass(frozen=True, slots=True)
class Operation:
    """
    Declaration of one externally invocable entry point.

    Attributes:
        name: Operation name, also the first part of the signature
        handler: Pure function (view, msg, *args) -> PendingCall
        inputs: ABI types of the arguments
        outputs: ABI types of the return value
        payable: Whether value may be attached
        mutating: Whether the operation can change state
    """
    name: str
    handler: OperationHandler
    inputs: Tuple[str, ...] = ()
    outputs: Tuple[str, ...] = ()
    payable: bool = False
    mutating: bool = True

    @property
    def signature(self) -> str:
        return abi.make_signature(self.name, self.inputs)

    @property
    def selector(self) -> bytes:
        return abi.selector(self.signature)

    def encode_input(self, args: Tuple[Any, ...]) -> bytes:
        """Build calldata for a call to this operation."""
        return self.selector + abi.encode(self.inputs, args)

    def encode_output(self, value: Any) -> bytes:
        """ABI-encode a return value produced by the handler."""
        if not self.outputs:
            return b""
        if isinstance(value, Record):
            values: Tuple[Any, ...] = (value.id, value.info)
        elif isinstance(value, Enum):
            values = (value.value,)
        elif len(self.outputs) > 1:
            values = tuple(value)
        else:
            values = (value,)
        return abi.encode(self.outputs, values)


class OperationTable:
    """Operations of one unit, indexed by name and by selector."""

    def __init__(self, operations: Iterable[Operation] = ()):
        self._by_name: Dict[str, Operation] = {}
        self._by_selector: Dict[bytes, Operation] = {}
        for op in operations:
            self.register(op)

    def register(self, op: Operation) -> None:
        """
        Add an operation.

        Raises:
            ValueError: If the name or selector is already taken, or the name
                        collides with a default handler.
        """
        if op.name in (RECEIVE, FALLBACK):
            raise ValueError(f"{op.name} is reserved for the default handler")
        if op.name in self._by_name:
            raise ValueError(f"Operation {op.name} already registered")
        if op.selector in self._by_selector:
            raise ValueError(f"Selector collision for {op.signature}")
        self._by_name[op.name] = op
        self._by_selector[op.selector] = op

    def get(self, name: str) -> Operation:
        if name not in self._by_name:
            raise ValueError(f"Unknown operation: {name}")
        return self._by_name[name]

    def find(self, selector: bytes) -> Optional[Operation]:
        return self._by_selector.get(selector)

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def __contains__(self, name: str) -> bool:
        return name in self._by_name

    def __len__(self) -> int:
        return len(self._by_name)


class Dispatcher:
    """
    Routes messages to operations or to the default handlers.

    receive handles empty calldata, fallback handles calldata that matches
    no selector. Either may be None.
    """

    def __init__(
        self,
        table: OperationTable,
        receive: Optional[DefaultHandler] = None,
        fallback: Optional[DefaultHandler] = None,
    ):
        self.table = table
        self.receive = receive
        self.fallback = fallback

    def route(self, msg: Message) -> Tuple[str, Optional[Operation]]:
        """Return (operation name, Operation or None for a default handler)."""
        if not msg.data:
            return (RECEIVE if self.receive is not None else FALLBACK), None
        if len(msg.data) >= abi.SELECTOR_SIZE:
            op = self.table.find(msg.data[:abi.SELECTOR_SIZE])
            if op is not None:
                return op.name, op
        return FALLBACK, None

    def dispatch(self, view: ContractView, msg: Message) -> PendingCall:
        """
        Run the handler the message routes to.

        Raises:
            InvalidArgument: If arguments do not decode, or nothing handles the call.
            ValueNotAccepted: If value is attached to a non-payable operation.
            ContractError: Whatever the handler raises.
        """
        name, op = self.route(msg)
        if op is None:
            handler = self.receive if name == RECEIVE else self.fallback
            if handler is None:
                if msg.value:
                    raise ValueNotAccepted(REASON_NOT_PAYABLE)
                raise InvalidArgument("No operation matches the calldata")
            return handler(view, msg)
        _, encoded_args = abi.split_call(msg.data)
        args = abi.decode(op.inputs, encoded_args)
        return self.invoke(op, view, msg, args)

    def invoke(
        self,
        op: Operation,
        view: ContractView,
        msg: Message,
        args: Tuple[Any, ...],
    ) -> PendingCall:
        if msg.value and not op.payable:
            raise ValueNotAccepted(REASON_NOT_PAYABLE)
        return op.handler(view, msg, *args)
