"""
Operation registry.
"""

from .client import OperationClient
from .operation import (
    Operation,
    OperationConstructor,
    OperationHandler,
    OperationOptions,
    OperationScope,
    use_operation,
)

__all__ = [
    "Operation",
    "OperationConstructor",
    "OperationHandler",
    "OperationOptions",
    "OperationScope",
    "OperationClient",
    "use_operation",
]
