"""
conftest.py - Shared pytest fixtures for contract tests

Provides common fixtures used across unit, scenario and conformance tests:
- Named accounts (owner, alice, bob)
- A service directory with a deployed Calculator
- A fresh, silent Contract deployed into that directory
"""

import pytest

from vault import (
    Calculator, Contract, ServiceDirectory, derive_address,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def addr(name: str) -> str:
    """Deterministic test account for a readable name."""
    return derive_address(name)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def owner() -> str:
    return addr("owner")


@pytest.fixture
def alice() -> str:
    return addr("alice")


@pytest.fixture
def bob() -> str:
    return addr("bob")


@pytest.fixture
def directory() -> ServiceDirectory:
    return ServiceDirectory()


@pytest.fixture
def calculator_address(directory, owner) -> str:
    """Address of a Calculator deployed before the contract."""
    return directory.deploy(Calculator(), owner)


@pytest.fixture
def contract(directory, owner, calculator_address) -> Contract:
    """A freshly deployed contract owned by `owner`."""
    return Contract(owner, directory=directory, verbose=False)
