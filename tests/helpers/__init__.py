"""
Test helpers for the ledger client test suite.
"""

from .factories import (
    make_public_key,
    make_public_keys,
    make_signer,
    make_token_account_data,
    make_instruction,
)
from .fakes import FakeConnection

__all__ = [
    "make_public_key",
    "make_public_keys",
    "make_signer",
    "make_token_account_data",
    "make_instruction",
    "FakeConnection",
]
