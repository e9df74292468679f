"""
RPC value types.

Account records come in two shapes so that "no account at this address" is
never confused with a failed read: ``UnparsedAccount`` (``exists`` is True)
and ``MissingAccount`` (``exists`` is False). Read failures raise instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..runtime.publickey import PublicKey

Commitment = Literal["processed", "confirmed", "finalized"]


@dataclass(frozen=True)
class AccountInfo:
    """Raw account contents as returned by the node."""
    executable: bool
    owner: PublicKey
    lamports: int
    data: bytes
    rent_epoch: Optional[int] = None


@dataclass(frozen=True)
class UnparsedAccount:
    """An existing account whose data has not been decoded yet."""
    public_key: PublicKey
    executable: bool
    owner: PublicKey
    lamports: int
    data: bytes
    rent_epoch: Optional[int] = None
    exists: bool = field(default=True, init=False)

    @classmethod
    def from_info(cls, public_key: PublicKey, info: AccountInfo) -> UnparsedAccount:
        return cls(
            public_key=public_key,
            executable=info.executable,
            owner=info.owner,
            lamports=info.lamports,
            data=info.data,
            rent_epoch=info.rent_epoch,
        )


@dataclass(frozen=True)
class MissingAccount:
    """An address with no account behind it."""
    public_key: PublicKey
    exists: bool = field(default=False, init=False)


UnparsedMaybeAccount = Union[UnparsedAccount, MissingAccount]


@dataclass(frozen=True)
class BlockhashWithExpiryBlockHeight:
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True)
class SendAndConfirmTransactionResponse:
    """
    Outcome of a confirmed transaction.

    Attributes:
        signature: Base-58 transaction signature
        confirm_response: Confirmation result as returned by the connection
        blockhash: Blockhash the transaction was built with
        last_valid_block_height: Last block height at which it could land
    """
    signature: str
    confirm_response: Dict[str, Any]
    blockhash: str
    last_valid_block_height: int


class ConfirmOptions(BaseModel):
    """
    Options for sending and confirming transactions.
    """
    commitment: Optional[Commitment] = Field(default=None, description="Commitment to confirm at")
    preflight_commitment: Optional[Commitment] = Field(
        default=None, alias="preflightCommitment", description="Commitment used for preflight simulation"
    )
    skip_preflight: Optional[bool] = Field(default=None, alias="skipPreflight", description="Skip preflight simulation")
    max_retries: Optional[int] = Field(default=None, alias="maxRetries", ge=0, description="Node-side send retries")

    model_config = {"populate_by_name": True}

    def to_send_options(self) -> Dict[str, Any]:
        """Convert to ``sendTransaction`` configuration."""
        result: Dict[str, Any] = {}
        if self.skip_preflight is not None:
            result["skipPreflight"] = self.skip_preflight
        preflight = self.preflight_commitment or self.commitment
        if preflight is not None:
            result["preflightCommitment"] = preflight
        if self.max_retries is not None:
            result["maxRetries"] = self.max_retries
        return result


__all__ = [
    "Commitment",
    "AccountInfo",
    "UnparsedAccount",
    "MissingAccount",
    "UnparsedMaybeAccount",
    "BlockhashWithExpiryBlockHeight",
    "SendAndConfirmTransactionResponse",
    "ConfirmOptions",
]
