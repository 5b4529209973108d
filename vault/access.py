"""
access.py - Owner-based access control

1. require_owner() - Pure guard, returns the rejection instead of raising it
2. compute_transfer_ownership() - Replace the owner
3. compute_get_owner() - Read the owner

Authorization is evaluated against the view on every call; nothing is cached.
"""

from __future__ import annotations
from typing import Optional

from .core import (
    ContractView, ContractError, Message, PendingCall, StateChange,
    Unauthorized, InvalidTarget,
    SLOT_OWNER, ZERO_ADDRESS, REASON_NOT_OWNER, REASON_ZERO_ADDRESS,
    build_call, empty_pending_call, normalize_address,
)


def require_owner(view: ContractView, caller: str) -> Optional[ContractError]:
    """
    Check that caller is the current owner.

    Returns:
        None if the check passes, otherwise the Unauthorized error to raise.
    """
    if normalize_address(caller) != view.owner:
        return Unauthorized(REASON_NOT_OWNER)
    return None


def compute_transfer_ownership(view: ContractView, msg: Message, new_owner: str) -> PendingCall:
    """
    Hand ownership to new_owner.

    The zero-address target is rejected before the caller is checked, so
    it fails with InvalidTarget for every caller.

    Raises:
        InvalidTarget: If new_owner is the zero address.
        Unauthorized: If msg.sender is not the owner.
    """
    target = normalize_address(new_owner)
    if target == ZERO_ADDRESS:
        raise InvalidTarget(REASON_ZERO_ADDRESS)
    failure = require_owner(view, msg.sender)
    if failure is not None:
        raise failure
    return build_call(
        "transferOwnership",
        [StateChange(SLOT_OWNER, None, view.owner, target)],
    )


def compute_get_owner(view: ContractView, msg: Message) -> PendingCall:
    return empty_pending_call("getOwner", return_value=view.owner)
