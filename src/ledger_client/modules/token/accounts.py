"""
Token account layout.

A token account is 165 bytes::

    offset  size  field
    0       32    mint
    32      32    owner
    64      8     amount (u64)
    72      36    delegate (COption<PublicKey>)
    108     1     state
    109     12    is_native (COption<u64>)
    121     8     delegated_amount (u64)
    129     36    close_authority (COption<PublicKey>)
"""

from __future__ import annotations
import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from ...runtime.publickey import PublicKey

TOKEN_ACCOUNT_SIZE = 165

MINT_OFFSET = 0
OWNER_OFFSET = 32
AMOUNT_OFFSET = 64
DELEGATE_OFFSET = 72
STATE_OFFSET = 108

_LAYOUT = struct.Struct("<32s32sQI32sBIQQI32s")


class TokenAccountState(IntEnum):
    UNINITIALIZED = 0
    INITIALIZED = 1
    FROZEN = 2


@dataclass(frozen=True)
class TokenAccount:
    """Decoded token account data."""
    mint: PublicKey
    owner: PublicKey
    amount: int
    delegate: Optional[PublicKey] = None
    state: TokenAccountState = TokenAccountState.INITIALIZED
    is_native: Optional[int] = None
    delegated_amount: int = 0
    close_authority: Optional[PublicKey] = None


class TokenAccountCodec:
    """Encodes and decodes the 165-byte token account layout."""

    name = "TokenAccount"

    def decode(self, data: bytes) -> TokenAccount:
        if len(data) != TOKEN_ACCOUNT_SIZE:
            raise ValueError(f"Token account data must be {TOKEN_ACCOUNT_SIZE} bytes, got {len(data)}")

        (mint, owner, amount, delegate_tag, delegate, state, native_tag, native,
         delegated_amount, close_tag, close_authority) = _LAYOUT.unpack(data)

        return TokenAccount(
            mint=PublicKey(mint),
            owner=PublicKey(owner),
            amount=amount,
            delegate=PublicKey(delegate) if delegate_tag else None,
            state=TokenAccountState(state),
            is_native=native if native_tag else None,
            delegated_amount=delegated_amount,
            close_authority=PublicKey(close_authority) if close_tag else None,
        )

    def encode(self, account: TokenAccount) -> bytes:
        empty = bytes(32)
        return _LAYOUT.pack(
            account.mint.to_bytes(),
            account.owner.to_bytes(),
            account.amount,
            1 if account.delegate is not None else 0,
            account.delegate.to_bytes() if account.delegate is not None else empty,
            int(account.state),
            1 if account.is_native is not None else 0,
            account.is_native or 0,
            account.delegated_amount,
            1 if account.close_authority is not None else 0,
            account.close_authority.to_bytes() if account.close_authority is not None else empty,
        )


token_account_codec = TokenAccountCodec()


__all__ = [
    "TOKEN_ACCOUNT_SIZE",
    "MINT_OFFSET",
    "OWNER_OFFSET",
    "AMOUNT_OFFSET",
    "DELEGATE_OFFSET",
    "STATE_OFFSET",
    "TokenAccountState",
    "TokenAccount",
    "TokenAccountCodec",
    "token_account_codec",
]
