"""
System program module.
"""

from .client import SystemClient, SystemPlugin, system_module
from .instructions import SYSTEM_PROGRAM_ID, create_account_instruction, transfer_instruction
from .operations import (
    CreateAccountInput,
    TransferSolInput,
    create_account_builder,
    create_account_operation,
    transfer_sol_builder,
    transfer_sol_operation,
)

__all__ = [
    "SystemClient",
    "SystemPlugin",
    "system_module",
    "SYSTEM_PROGRAM_ID",
    "create_account_instruction",
    "transfer_instruction",
    "CreateAccountInput",
    "TransferSolInput",
    "create_account_builder",
    "create_account_operation",
    "transfer_sol_builder",
    "transfer_sol_operation",
]
