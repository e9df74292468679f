"""
Ledger Client Error Model

This module provides the error handling framework for the ledger client SDK.
Errors are grouped by where they originate: the SDK itself, the RPC
transport, or an on-chain program.
"""

from __future__ import annotations
from typing import Optional, Dict, Any, List, TYPE_CHECKING
from enum import IntEnum

if TYPE_CHECKING:
    from .publickey import PublicKey


class ErrorCode(IntEnum):
    """Ledger client error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2

    # SDK errors (100-199)
    OPERATION_HANDLER_MISSING = 100
    OPERATION_CANCELED = 101
    OPERATION_TIMEOUT = 102
    TASK_ALREADY_RUNNING = 103
    UNEXPECTED_TYPE = 104
    PROGRAM_NOT_RECOGNIZED = 105
    UNAUTHORIZED_FOR_GUESTS = 106
    UNEXPECTED_SIGNER = 107
    FEE_PAYER_MISSING = 108

    # Account errors (200-299)
    ACCOUNT_NOT_FOUND = 200
    UNEXPECTED_ACCOUNT = 201

    # RPC errors (300-399)
    RPC_REQUEST_FAILED = 300
    SEND_TRANSACTION_FAILED = 301
    CONFIRM_TRANSACTION_FAILED = 302
    TRANSACTION_FAILED = 303
    BLOCK_HEIGHT_EXCEEDED = 304

    # Program errors (400-499)
    PROGRAM_ERROR = 400
    UNKNOWN_PROGRAM_ERROR = 401


class LedgerError(Exception):
    """
    Base class for all ledger client errors.

    Provides structured error information shared by every error family.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        """
        Initialize a ledger client error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result: Dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


# =============================================================================
# SDK errors
# =============================================================================

class SdkError(LedgerError):
    """Errors raised by the SDK itself."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, code, details, cause)


class HandlerMissingError(SdkError):
    """No handler was registered for the dispatched operation key."""

    def __init__(self, key: str):
        message = (
            f"No operation handler was registered for the [{key}] operation. "
            f"Did you forget to register it? You may do this by using: "
            f"\"client.operations().register(operation, handler)\"."
        )
        super().__init__(message, ErrorCode.OPERATION_HANDLER_MISSING, {"key": key})
        self.key = key


class OperationCanceledError(SdkError):
    """The operation was abandoned through its cancellation signal."""

    def __init__(self, message: str = "The operation was canceled.", reason: Any = None):
        details = {"reason": reason} if reason is not None else None
        super().__init__(message, ErrorCode.OPERATION_CANCELED, details)
        self.reason = reason


class OperationTimeoutError(OperationCanceledError):
    """The operation was abandoned because its timeout elapsed."""

    def __init__(self, timeout: float):
        super().__init__(f"The operation timed out after {timeout} seconds.")
        self.code = ErrorCode.OPERATION_TIMEOUT
        self.timeout = timeout


class TaskIsAlreadyRunningError(SdkError):
    """A task was started again before its previous run completed."""

    def __init__(self):
        message = (
            "Trying to re-run a task that hasn't completed yet. "
            "Ensure the task has completed using \"await\" before trying to run it again."
        )
        super().__init__(message, ErrorCode.TASK_ALREADY_RUNNING)


class UnexpectedTypeError(SdkError):
    """A value was not of a supported type."""

    def __init__(self, variable: str, actual_type: str, expected_type: str):
        message = (
            f"Expected variable [{variable}] to be "
            f"of type [{expected_type}] but got [{actual_type}]."
        )
        super().__init__(message, ErrorCode.UNEXPECTED_TYPE,
                         {"variable": variable, "actual": actual_type, "expected": expected_type})


class ProgramNotRecognizedError(SdkError):
    """A program lookup by name or address failed."""

    def __init__(self, name_or_address: Any, cluster: Optional[str] = None):
        self.name_or_address = name_or_address
        self.cluster = cluster
        is_name = isinstance(name_or_address, str)
        to_string = name_or_address if is_name else str(name_or_address)
        message = (
            f"The provided program {'name' if is_name else 'address'} [{to_string}] "
            f"is not recognized in the [{cluster}] cluster. "
            "Did you forget to register this program? "
            "If so, you may use \"client.programs().register(program)\" to fix this."
        )
        super().__init__(message, ErrorCode.PROGRAM_NOT_RECOGNIZED)


class OperationUnauthorizedForGuestsError(SdkError):
    """A guest identity was asked to sign."""

    def __init__(self, operation: str):
        message = (
            f"Trying to access the [{operation}] operation as a guest. "
            "Ensure a signing identity is set, for instance by using "
            "\"client.set_identity(KeypairSigner.generate())\"."
        )
        super().__init__(message, ErrorCode.UNAUTHORIZED_FOR_GUESTS)


class UnexpectedSignerError(SdkError):
    """A signer was provided that the transaction does not require."""

    def __init__(self, public_key: "PublicKey"):
        super().__init__(
            f"The signer [{public_key}] is not required by this transaction.",
            ErrorCode.UNEXPECTED_SIGNER,
        )
        self.public_key = public_key


class FeePayerMissingError(SdkError):
    """A transaction was compiled without a fee payer."""

    def __init__(self):
        super().__init__(
            "A fee payer is required to compile a transaction. "
            "Use \"builder.set_fee_payer(signer)\" or set a default fee payer on the RPC client.",
            ErrorCode.FEE_PAYER_MISSING,
        )


# =============================================================================
# Account errors
# =============================================================================

class AccountNotFoundError(SdkError):
    """The read succeeded but no account lives at the address."""

    def __init__(self, address: "PublicKey", account_type: Optional[str] = None,
                 solution: Optional[str] = None):
        message = (
            (f"The account of type [{account_type}] was not found" if account_type
             else "No account was found")
            + f" at the provided address [{address}]."
            + (f" {solution}" if solution else "")
        )
        super().__init__(message, ErrorCode.ACCOUNT_NOT_FOUND)
        self.address = address
        self.account_type = account_type


class UnexpectedAccountError(SdkError):
    """The account exists but its data does not decode as expected."""

    def __init__(self, address: "PublicKey", expected_type: str,
                 cause: Optional[BaseException] = None):
        message = (
            f"The account at the provided address [{address}] "
            f"is not of the expected type [{expected_type}]."
        )
        super().__init__(message, ErrorCode.UNEXPECTED_ACCOUNT, cause=cause)
        self.address = address
        self.expected_type = expected_type


# Name used in the error taxonomy for decode failures
UnexpectedAccountDataError = UnexpectedAccountError


# =============================================================================
# RPC errors
# =============================================================================

class RpcError(LedgerError):
    """Errors raised while talking to the RPC node."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.RPC_REQUEST_FAILED,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, code, details, cause)


class RpcRequestError(RpcError):
    """A JSON-RPC request failed or returned an error payload."""

    def __init__(self, message: str, rpc_code: Optional[int] = None, data: Any = None,
                 cause: Optional[BaseException] = None):
        details: Dict[str, Any] = {}
        if rpc_code is not None:
            details["rpcCode"] = rpc_code
        if data is not None:
            details["data"] = data
        super().__init__(message, ErrorCode.RPC_REQUEST_FAILED, details, cause)
        self.rpc_code = rpc_code
        self.data = data


class SendTransactionError(RpcRequestError):
    """The node rejected a transaction, typically during preflight simulation."""

    def __init__(self, message: str, rpc_code: Optional[int] = None, data: Any = None,
                 logs: Optional[List[str]] = None):
        super().__init__(message, rpc_code, data)
        self.code = ErrorCode.SEND_TRANSACTION_FAILED
        self.logs = logs or []


class FailedToConfirmTransactionError(RpcError):
    """Confirmation could not be obtained from the node."""

    def __init__(self, cause: BaseException):
        super().__init__(
            f"The transaction could not be confirmed: {cause}",
            ErrorCode.CONFIRM_TRANSACTION_FAILED,
            cause=cause,
        )


class FailedToConfirmTransactionWithResponseError(RpcError):
    """The transaction was confirmed but its execution failed."""

    def __init__(self, response: Dict[str, Any]):
        err = (response.get("value") or {}).get("err")
        super().__init__(
            f"The transaction was confirmed with an error: {err}",
            ErrorCode.TRANSACTION_FAILED,
            {"err": err},
        )
        self.response = response
        self.error = err


class BlockHeightExceededError(RpcError):
    """The blockhash used by the transaction expired before confirmation."""

    def __init__(self, signature: str):
        super().__init__(
            f"Signature [{signature}] has expired: block height exceeded.",
            ErrorCode.BLOCK_HEIGHT_EXCEEDED,
            {"signature": signature},
        )
        self.signature = signature


# =============================================================================
# Program errors
# =============================================================================

class ProgramError(LedgerError):
    """Errors raised by on-chain programs."""

    def __init__(self, message: str, program: Any, code: ErrorCode = ErrorCode.PROGRAM_ERROR,
                 logs: Optional[List[str]] = None, cause: Optional[BaseException] = None):
        super().__init__(message, code, {"program": getattr(program, "name", str(program))}, cause)
        self.program = program
        self.logs = logs or []


class ParsedProgramError(ProgramError):
    """A program failure resolved to a program specific error."""

    def __init__(self, program: Any, resolved: BaseException, logs: Optional[List[str]] = None,
                 cause: Optional[BaseException] = None):
        super().__init__(
            f"The program [{program.name}] at address [{program.address}] "
            f"raised an error: {resolved}",
            program,
            ErrorCode.PROGRAM_ERROR,
            logs,
            cause,
        )
        self.resolved = resolved


class UnknownProgramError(ProgramError):
    """A program failure that its error resolver could not identify."""

    def __init__(self, program: Any, cause: BaseException):
        super().__init__(
            f"The program [{program.name}] at address [{program.address}] "
            "raised an error that is not recognized by the programs registered by the SDK.",
            program,
            ErrorCode.UNKNOWN_PROGRAM_ERROR,
            getattr(cause, "logs", None),
            cause,
        )


def error_from_response(response: Dict[str, Any]) -> Optional[RpcRequestError]:
    """
    Create an appropriate error from a JSON-RPC response.

    Args:
        response: JSON-RPC response possibly containing an error object

    Returns:
        Appropriate error instance or None if no error
    """
    if "error" not in response:
        return None

    error_data = response["error"]
    if not isinstance(error_data, dict):
        return RpcRequestError(str(error_data))

    message = error_data.get("message", "Unknown error")
    rpc_code = error_data.get("code")
    data = error_data.get("data")

    # Preflight failures carry the simulation logs
    if isinstance(data, dict) and data.get("logs") is not None:
        return SendTransactionError(message, rpc_code, data, list(data["logs"]))

    return RpcRequestError(message, rpc_code, data)


def is_cancellation_error(error: BaseException) -> bool:
    """Check whether an error means "abandoned" rather than "failed"."""
    return isinstance(error, OperationCanceledError)


__all__ = [
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
    "error_from_response",
    "is_cancellation_error",
]
