"""
Typed account decoding.
"""

from .account import (
    Account,
    AccountCodec,
    MaybeAccount,
    assert_account_exists,
    is_account,
    to_account,
    to_maybe_account,
)

__all__ = [
    "Account",
    "AccountCodec",
    "MaybeAccount",
    "assert_account_exists",
    "is_account",
    "to_account",
    "to_maybe_account",
]
