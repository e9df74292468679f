"""
RPC transport and client.
"""

from .client import RpcClient
from .connection import Connection, HttpConnection, parse_account_info
from .types import (
    AccountInfo,
    BlockhashWithExpiryBlockHeight,
    Commitment,
    ConfirmOptions,
    MissingAccount,
    SendAndConfirmTransactionResponse,
    UnparsedAccount,
    UnparsedMaybeAccount,
)

__all__ = [
    "RpcClient",
    "Connection",
    "HttpConnection",
    "parse_account_info",
    "AccountInfo",
    "BlockhashWithExpiryBlockHeight",
    "Commitment",
    "ConfirmOptions",
    "MissingAccount",
    "SendAndConfirmTransactionResponse",
    "UnparsedAccount",
    "UnparsedMaybeAccount",
]
