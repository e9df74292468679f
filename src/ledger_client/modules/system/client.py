"""
System module facade and plugin.
"""

from __future__ import annotations
from typing import Any, Dict, Optional, TYPE_CHECKING

from ...operations.operation import OperationOptions
from ...programs.program import Program
from ...runtime.publickey import PublicKey
from ...signers.signer import Signer
from .instructions import SYSTEM_PROGRAM_ID
from .operations import (
    SYSTEM_PROGRAM_NAME,
    CreateAccountInput,
    TransferSolInput,
    create_account_handler,
    create_account_operation,
    transfer_sol_handler,
    transfer_sol_operation,
)

if TYPE_CHECKING:
    from ...client import LedgerClient


class SystemClient:
    """
    System operations available as ``client.system()``.

    Example:
        ```python
        output = await client.system().transfer_sol(to=recipient, lamports=5_000)
        print(output["response"].signature)
        ```
    """

    def __init__(self, client: "LedgerClient"):
        self._client = client

    async def transfer_sol(
        self,
        to: PublicKey,
        lamports: int,
        source: Optional[Signer] = None,
        options: Optional[OperationOptions] = None,
    ) -> Dict[str, Any]:
        operation = transfer_sol_operation(TransferSolInput(to=to, lamports=lamports, source=source))
        return await self._client.operations().execute(operation, options)

    async def create_account(
        self,
        space: int,
        lamports: Optional[int] = None,
        new_account: Optional[Signer] = None,
        program: PublicKey = SYSTEM_PROGRAM_ID,
        options: Optional[OperationOptions] = None,
    ) -> Dict[str, Any]:
        operation = create_account_operation(
            CreateAccountInput(space=space, lamports=lamports, new_account=new_account, program=program)
        )
        return await self._client.operations().execute(operation, options)


class SystemPlugin:
    """Registers the system program, its operations and ``client.system()``."""

    def install(self, client: "LedgerClient") -> None:
        client.programs().register(Program(SYSTEM_PROGRAM_NAME, SYSTEM_PROGRAM_ID))
        (
            client.operations()
            .register(transfer_sol_operation, transfer_sol_handler)
            .register(create_account_operation, create_account_handler)
        )
        client.register_module("system", SystemClient(client))


def system_module() -> SystemPlugin:
    return SystemPlugin()


__all__ = ["SystemClient", "SystemPlugin", "system_module"]
