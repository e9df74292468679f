"""Runtime helpers for the ledger client SDK"""

from .publickey import PublicKey, to_public_key
from .errors import LedgerError, ErrorCode
from .disposable import AbortController, AbortSignal, Disposable, DisposableScope
from .task import Task, TaskOptions, TaskStatus

__all__ = [
    "PublicKey",
    "to_public_key",
    "LedgerError",
    "ErrorCode",
    "AbortController",
    "AbortSignal",
    "Disposable",
    "DisposableScope",
    "Task",
    "TaskOptions",
    "TaskStatus",
]
