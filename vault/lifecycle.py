"""
lifecycle.py - Active/Inactive lifecycle flag

The contract starts ACTIVE. The owner can switch it to INACTIVE; nothing
switches it back. Active-only operations call require_active() inside their
own body, so the gate holds however the operation is reached.
"""

from __future__ import annotations
from typing import Optional

from .core import (
    ContractView, ContractError, ContractInactive, LifecycleState, Message,
    PendingCall, StateChange,
    SLOT_LIFECYCLE, REASON_NOT_ACTIVE,
    build_call, empty_pending_call,
)
from .access import require_owner


def require_active(view: ContractView) -> Optional[ContractError]:
    """
    Check that the contract is ACTIVE.

    Returns:
        None if active, otherwise the ContractInactive error to raise.
    """
    if view.lifecycle != LifecycleState.ACTIVE:
        return ContractInactive(REASON_NOT_ACTIVE)
    return None


def compute_set_inactive(view: ContractView, msg: Message) -> PendingCall:
    """
    Switch the contract to INACTIVE.

    Idempotent: calling it while already INACTIVE succeeds with no change.

    Raises:
        Unauthorized: If msg.sender is not the owner.
    """
    failure = require_owner(view, msg.sender)
    if failure is not None:
        raise failure
    if view.lifecycle == LifecycleState.INACTIVE:
        return empty_pending_call("setInactive")
    return build_call(
        "setInactive",
        [StateChange(SLOT_LIFECYCLE, None, view.lifecycle, LifecycleState.INACTIVE)],
    )


def compute_get_state(view: ContractView, msg: Message) -> PendingCall:
    return empty_pending_call("getState", return_value=view.lifecycle)
