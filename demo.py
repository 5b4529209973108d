#!/usr/bin/env python3
"""
demo.py - Interactive Tutorial: The Contract Unit Step by Step

Walks through every operation of the contract with verbose receipts, so each
call shows its state changes, events and outcome. Press Enter to advance.

WHAT YOU'LL LEARN:
  1-3:  Deployment     - Owner, services, the calculator bridge
  4-6:  Value          - Deposit, receive/fallback, withdraw
  7-8:  Records        - Appending data, the lifecycle gate
  9-10: History        - Rejections, receipts and replay

Run:
    python demo.py           # Interactive mode (press Enter for each step)
    python demo.py --quick   # Run all steps without pausing
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
import sys

from vault import (
    Contract, Calculator, InternalFunctionService, ServiceDirectory,
    derive_address, to_native, from_native,
)


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass
class DemoConfig:
    """Configuration for the tutorial. Modify these to experiment."""
    start_time: datetime = datetime(2025, 1, 1, 9, 0, 0)
    constant_a: int = 2
    constant_b: int = 3
    deposit_amount: str = "1"
    record_info: str = "Test information"


CONFIG = DemoConfig()

QUICK_MODE = "--quick" in sys.argv

OWNER = derive_address("owner")
OTHER = derive_address("other")


def wait_for_enter():
    """Pause for user input unless in quick mode."""
    if not QUICK_MODE:
        input("\n[Press Enter to continue...]")


def step_header(number: int, title: str, objective: str):
    print(f"\n{'='*70}")
    print(f"STEP {number}: {title}")
    print(f"{'='*70}")
    print(f"\nObjective: {objective}\n")


def section_header(text: str):
    print(f"\n--- {text} ---\n")


# ============================================================================
# PHASE 1: DEPLOYMENT
# ============================================================================

def step_01_deploy():
    step_header(1, "Deployment",
        "The deployer becomes the owner; services get reproducible addresses.")

    directory = ServiceDirectory()
    calculator = directory.deploy(Calculator(), OWNER)
    internal = directory.deploy(InternalFunctionService(), OWNER)
    contract = Contract(OWNER, directory=directory, initial_time=CONFIG.start_time)

    section_header("Initial State")
    print(f"Owner:       {contract.get_owner()}")
    print(f"State:       {contract.get_state().name}")
    print(f"Calculator:  {calculator}")
    print(f"Internal:    {internal}")
    return contract, calculator, internal


def step_02_ownership(contract: Contract):
    step_header(2, "Ownership",
        "Only the owner can hand over ownership, and never to the zero address.")

    contract.transfer_ownership(OWNER, OTHER)
    print(f"Owner is now: {contract.get_owner()}")
    contract.transfer_ownership(OTHER, OWNER)
    print(f"And back:     {contract.get_owner()}")
    return contract


def step_03_calculator(contract: Contract, calculator: str, internal: str):
    step_header(3, "Calculator",
        "interactWithCalculator makes a nested call to another deployed unit.")

    a, b = CONFIG.constant_a, CONFIG.constant_b
    print(f"Constant A: {a}")
    print(f"Constant B: {b}")
    result = contract.interact_with_calculator(OTHER, calculator, a, b)
    print(f"Result from contract: {result}")
    print(f"Local add:            {contract.add(a, b)}")

    service = contract.directory.resolve(internal)
    print(f"calculate({a}, {b}):      {service.calculate(a, b)}")
    print(f"privateFunction():   {service.private_function()!r}")
    return contract


# ============================================================================
# PHASE 2: VALUE
# ============================================================================

def step_04_deposit(contract: Contract):
    step_header(4, "Deposit",
        "A deposit credits the sender's balance and the contract's holdings.")

    contract.deposit(OTHER, value=to_native(CONFIG.deposit_amount))
    section_header("After Deposit")
    print(f"Event:       {contract.logs[-1]}")
    print(f"Balance:     {from_native(contract.get_balance(OTHER))}")
    print(f"Total held:  {from_native(contract.get_total_held())}")
    return contract


def step_05_receive_and_fallback(contract: Contract):
    step_header(5, "Receive and Fallback",
        "Plain transfers and unmatched calldata credit holdings, never balances.")

    contract.send(OWNER, data=bytes.fromhex("12345678"))
    contract.send(OWNER, value=to_native("1"))
    print(f"Total held:     {from_native(contract.get_total_held())}")
    print(f"Owner balance:  {contract.get_balance(OWNER)}")
    return contract


def step_06_withdraw(contract: Contract):
    step_header(6, "Withdraw",
        "The owner draws from total holdings; the transfer is on the receipt.")

    contract.withdraw(OWNER, to_native("1"))
    print(f"Transfers:   {contract.receipts[-1].transfers}")
    print(f"Total held:  {from_native(contract.get_total_held())}")
    return contract


# ============================================================================
# PHASE 3: RECORDS
# ============================================================================

def step_07_add_data(contract: Contract):
    step_header(7, "Records",
        "Records get consecutive ids starting at 1.")

    record_id = contract.add_data(OWNER, CONFIG.record_info)
    print(f"New id:      {record_id}")
    print(f"Record:      {contract.get_record(record_id)}")
    print(f"Index[0]:    {contract.get_record_id_at(0)}")
    return contract


def step_08_only_active(contract: Contract):
    step_header(8, "Lifecycle Gate",
        "After setInactive, addData is rejected for everyone.")

    contract.advance_time(contract.current_time + timedelta(days=1))
    contract.set_inactive(OWNER)
    print(f"State: {contract.get_state().name}")
    receipt = contract.transact(OWNER, "addData", CONFIG.record_info)
    print(f"addData rejected: {receipt.reason!r}")
    return contract


# ============================================================================
# PHASE 4: HISTORY
# ============================================================================

def step_09_receipts(contract: Contract):
    step_header(9, "Receipts",
        "Every call leaves a receipt, applied or rejected.")

    for receipt in contract.receipts:
        status = "✓" if receipt.succeeded else "✗"
        print(f"  #{receipt.sequence_number:<3} {status} {receipt.operation:<20} {receipt.reason}")
    return contract


def step_10_replay(contract: Contract):
    step_header(10, "Replay",
        "Re-executing the applied calls reproduces the state exactly.")

    contract.verbose = False
    replayed = contract.replay()
    print(f"Original:  {contract}")
    print(f"Replayed:  {replayed}")
    print(f"Same state: {replayed.snapshot() == contract.snapshot()}")
    print(f"Invariants: {contract.verify_invariants()}")
    return contract


def main():
    """Run the complete tutorial."""
    print("=" * 70)
    print("       CONTRACT UNIT - INTERACTIVE TUTORIAL")
    print("=" * 70)

    if QUICK_MODE:
        print("Running in QUICK mode (no pauses)")
    else:
        print("Running in INTERACTIVE mode (press Enter to advance)")

    wait_for_enter()

    contract, calculator, internal = step_01_deploy()
    wait_for_enter()

    contract = step_02_ownership(contract)
    wait_for_enter()

    contract = step_03_calculator(contract, calculator, internal)
    wait_for_enter()

    contract = step_04_deposit(contract)
    wait_for_enter()

    contract = step_05_receive_and_fallback(contract)
    wait_for_enter()

    contract = step_06_withdraw(contract)
    wait_for_enter()

    contract = step_07_add_data(contract)
    wait_for_enter()

    contract = step_08_only_active(contract)
    wait_for_enter()

    contract = step_09_receipts(contract)
    wait_for_enter()

    step_10_replay(contract)

    print("\n" + "=" * 70)
    print("       TUTORIAL COMPLETE!")
    print("=" * 70)
    print("""
    Next steps:
      - See vault/contract.py for the execution model
      - Run tests: pytest tests/
    """)


if __name__ == "__main__":
    main()
