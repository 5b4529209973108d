"""
funds.py - Deposit/withdraw value ledger

This module computes every change to the contract's native holdings:
1. compute_deposit() - Credit the caller's balance and the total holdings
2. compute_withdraw() - Owner draws from the total holdings
3. compute_receive() - Plain value transfer, credits total holdings only
4. compute_fallback() - Unmatched calldata, credits total holdings only

Balances and total holdings are tracked separately:

    deposit:   balances[sender] += v     total_held += v
    receive:                             total_held += v
    fallback:                            total_held += v
    withdraw:                            total_held -= v

Withdraw never debits an individual balance. Balances therefore read as a
per-principal deposit history, and total_held is not the sum of balances.

All functions take ContractView (read-only) and return immutable results.
"""

from __future__ import annotations
from typing import List

from .core import (
    ContractView, Message, PendingCall, StateChange, EventLog,
    InsufficientFunds, InvalidArgument,
    SLOT_BALANCES, SLOT_TOTAL_HELD, REASON_INSUFFICIENT_FUNDS,
    build_call, empty_pending_call, deposit_event, normalize_address,
)
from .access import require_owner


def _credit_total(view: ContractView, amount: int) -> List[StateChange]:
    if amount == 0:
        return []
    old_total = view.total_held
    return [StateChange(SLOT_TOTAL_HELD, None, old_total, old_total + amount)]


def compute_deposit(view: ContractView, msg: Message) -> PendingCall:
    """
    Accept the attached value as a deposit by msg.sender.

    Any amount is valid, including zero. A zero deposit still creates the
    sender's balance entry and still emits Deposit(sender, 0).

    Returns:
        PendingCall with the balance credit, the total credit and a Deposit event.
    """
    sender = msg.sender
    old_balance = view.balance_of(sender)
    new_balance = (old_balance or 0) + msg.value
    changes = [StateChange(SLOT_BALANCES, sender, old_balance, new_balance)]
    changes.extend(_credit_total(view, msg.value))
    return build_call("deposit", changes, logs=[deposit_event(sender, msg.value)])


def compute_withdraw(view: ContractView, msg: Message, amount: int) -> PendingCall:
    """
    Send amount of the contract's holdings to the owner.

    Raises:
        Unauthorized: If msg.sender is not the owner.
        InvalidArgument: If amount is not a non-negative integer.
        InsufficientFunds: If amount exceeds the total holdings.
    """
    failure = require_owner(view, msg.sender)
    if failure is not None:
        raise failure
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidArgument(f"Withdraw amount must be a non-negative integer, got {amount!r}")
    old_total = view.total_held
    if amount > old_total:
        raise InsufficientFunds(REASON_INSUFFICIENT_FUNDS)
    if amount == 0:
        return empty_pending_call("withdraw")
    return build_call(
        "withdraw",
        [StateChange(SLOT_TOTAL_HELD, None, old_total, old_total - amount)],
        transfers=[(view.owner, amount)],
    )


def compute_get_balance(view: ContractView, msg: Message, principal: str) -> PendingCall:
    balance = view.balance_of(normalize_address(principal))
    return empty_pending_call("getBalance", return_value=balance or 0)


def compute_get_total_held(view: ContractView, msg: Message) -> PendingCall:
    return empty_pending_call("getTotalHeld", return_value=view.total_held)


def compute_receive(view: ContractView, msg: Message) -> PendingCall:
    """Plain value transfer with no calldata: credit total holdings only."""
    changes = _credit_total(view, msg.value)
    if not changes:
        return empty_pending_call("receive")
    return build_call("receive", changes)


def compute_fallback(view: ContractView, msg: Message) -> PendingCall:
    """
    Calldata that matches no operation.

    Without value this is a successful no-op. With value, the value is
    accepted into total holdings exactly as receive does.
    """
    changes = _credit_total(view, msg.value)
    if not changes:
        return empty_pending_call("fallback")
    return build_call("fallback", changes)
