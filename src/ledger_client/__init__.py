"""
Ledger Client Python SDK

This package provides a client SDK for building, signing and submitting
ledger transactions and for querying and decoding on-chain accounts.
"""

# Composition root and configuration
from .client import LedgerClient, ClientConfig, CLUSTER_ENDPOINTS, mainnet_client, devnet_client, local_client

# Runtime components
from .runtime.errors import *
from .runtime.publickey import PublicKey, to_public_key
from .runtime.disposable import AbortController, AbortSignal, Disposable, DisposableScope, linked_signal
from .runtime.task import Task, TaskOptions, TaskStatus

# Operations, programs and accounts
from .operations import (
    Operation, OperationConstructor, OperationHandler, OperationOptions, OperationScope,
    OperationClient, use_operation
)
from .programs import Program, ProgramClient, parse_custom_error_code
from .accounts import Account, AccountCodec, assert_account_exists, to_account, to_maybe_account

# Signing and transaction infrastructure
from .signers import *
from .tx import *

# Queries and RPC
from .query import GpaBuilder, GmaBuilder, GmaBuilderOptions, MemcmpFilter, DataSizeFilter
from .rpc import (
    RpcClient, Connection, HttpConnection, ConfirmOptions, AccountInfo,
    UnparsedAccount, MissingAccount, BlockhashWithExpiryBlockHeight, SendAndConfirmTransactionResponse
)

__version__ = "0.1.0"
__all__ = [
    "LedgerClient",
    "ClientConfig",
    "CLUSTER_ENDPOINTS",
    "mainnet_client",
    "devnet_client",
    "local_client",
    "PublicKey",
    "to_public_key",
    "AbortController",
    "AbortSignal",
    "Disposable",
    "DisposableScope",
    "linked_signal",
    "Task",
    "TaskOptions",
    "TaskStatus",
    "Operation",
    "OperationConstructor",
    "OperationHandler",
    "OperationOptions",
    "OperationScope",
    "OperationClient",
    "use_operation",
    "Program",
    "ProgramClient",
    "parse_custom_error_code",
    "Account",
    "AccountCodec",
    "assert_account_exists",
    "to_account",
    "to_maybe_account",
    "GpaBuilder",
    "GmaBuilder",
    "GmaBuilderOptions",
    "MemcmpFilter",
    "DataSizeFilter",
    "RpcClient",
    "Connection",
    "HttpConnection",
    "ConfirmOptions",
    "AccountInfo",
    "UnparsedAccount",
    "MissingAccount",
    "BlockhashWithExpiryBlockHeight",
    "SendAndConfirmTransactionResponse",
    # Errors
    "ErrorCode",
    "LedgerError",
    "SdkError",
    "HandlerMissingError",
    "OperationCanceledError",
    "OperationTimeoutError",
    "TaskIsAlreadyRunningError",
    "UnexpectedTypeError",
    "ProgramNotRecognizedError",
    "OperationUnauthorizedForGuestsError",
    "UnexpectedSignerError",
    "FeePayerMissingError",
    "AccountNotFoundError",
    "UnexpectedAccountError",
    "UnexpectedAccountDataError",
    "RpcError",
    "RpcRequestError",
    "SendTransactionError",
    "FailedToConfirmTransactionError",
    "FailedToConfirmTransactionWithResponseError",
    "BlockHeightExceededError",
    "ProgramError",
    "ParsedProgramError",
    "UnknownProgramError",
    "is_cancellation_error",
    # Signers
    "Signer",
    "SignerKind",
    "KeypairSigner",
    "IdentitySigner",
    "GuestIdentitySigner",
    "dedupe_signers",
    "get_signer_histogram",
    # Transactions
    "TransactionBuilder",
    "AccountMeta",
    "InstructionWithSigners",
    "TransactionInstruction",
    "Transaction",
]
