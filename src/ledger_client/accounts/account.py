"""
Typed account decoding.

Codecs turn raw account data into typed values. A missing account and an
account whose data does not decode are distinct, typed failures; neither is
ever replaced by a default value.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Generic, Optional, Protocol, TypeVar, Union

from ..runtime.errors import AccountNotFoundError, UnexpectedAccountError
from ..runtime.publickey import PublicKey
from ..rpc.types import MissingAccount, UnparsedAccount, UnparsedMaybeAccount

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class AccountCodec(Protocol[T_co]):
    """Decoder for one account family."""

    name: str

    def decode(self, data: bytes) -> T_co:
        ...


@dataclass(frozen=True)
class Account(Generic[T]):
    """An existing account with decoded data."""
    public_key: PublicKey
    executable: bool
    owner: PublicKey
    lamports: int
    data: T
    rent_epoch: Optional[int] = None
    exists: bool = True


MaybeAccount = Union[Account[T], MissingAccount]


def assert_account_exists(
    account: UnparsedMaybeAccount,
    name: Optional[str] = None,
    solution: Optional[str] = None,
) -> UnparsedAccount:
    """
    Narrow a maybe-account to an existing one.

    Raises:
        AccountNotFoundError: If the account does not exist
    """
    if not account.exists:
        raise AccountNotFoundError(account.public_key, name, solution)
    return account


def to_account(
    account: UnparsedMaybeAccount,
    codec: AccountCodec[T],
    solution: Optional[str] = None,
) -> Account[T]:
    """
    Decode an account that must exist.

    Raises:
        AccountNotFoundError: If the account does not exist
        UnexpectedAccountError: If its data does not decode with ``codec``
    """
    account = assert_account_exists(account, codec.name, solution)
    try:
        data = codec.decode(account.data)
    except Exception as e:
        raise UnexpectedAccountError(account.public_key, codec.name, cause=e) from e

    return Account(
        public_key=account.public_key,
        executable=account.executable,
        owner=account.owner,
        lamports=account.lamports,
        data=data,
        rent_epoch=account.rent_epoch,
    )


def to_maybe_account(account: UnparsedMaybeAccount, codec: AccountCodec[T]) -> MaybeAccount:
    """Decode an account if it exists; missing accounts pass through."""
    if not account.exists:
        return account
    return to_account(account, codec)


def is_account(value: Any) -> bool:
    return isinstance(value, Account)


__all__ = [
    "AccountCodec",
    "Account",
    "MaybeAccount",
    "assert_account_exists",
    "to_account",
    "to_maybe_account",
    "is_account",
]
