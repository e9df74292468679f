"""
Shared pytest configuration and fixtures for the ledger client tests.
"""

import pytest

from helpers import FakeConnection, make_signer
from ledger_client import LedgerClient


@pytest.fixture
def connection():
    """In-memory connection with no accounts."""
    return FakeConnection()


@pytest.fixture
def bare_client(connection):
    """Client without any plugin installed."""
    return LedgerClient(connection)


@pytest.fixture
def payer():
    """Deterministic keypair used as identity and fee payer."""
    return make_signer("payer")


@pytest.fixture
def client(connection, payer):
    """Client with the core plugins installed and a keypair identity."""
    return LedgerClient.make(connection).set_identity(payer)


@pytest.fixture
def signer_a():
    return make_signer("a")


@pytest.fixture
def signer_b():
    return make_signer("b")
