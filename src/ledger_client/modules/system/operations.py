"""
System program operations: SOL transfers and account creation.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Sequence, TYPE_CHECKING

from pydantic import BaseModel, Field

from ...operations.operation import Operation, OperationScope, use_operation
from ...programs.program import Program
from ...runtime.publickey import PublicKey
from ...signers.signer import KeypairSigner, Signer
from ...tx.builder import TransactionBuilder
from ...tx.instruction import InstructionWithSigners
from .instructions import SYSTEM_PROGRAM_ID, create_account_instruction, transfer_instruction

if TYPE_CHECKING:
    from ...client import LedgerClient

logger = logging.getLogger(__name__)

SYSTEM_PROGRAM_NAME = "SystemProgram"


# =============================================================================
# Transfer SOL
# =============================================================================

transfer_sol_operation = use_operation("TransferSolOperation")


class TransferSolInput(BaseModel):
    """
    Input of the transfer SOL operation.
    """
    to: PublicKey = Field(..., description="Recipient address")
    lamports: int = Field(..., ge=0, description="Amount to send in lamports")
    source: Optional[Signer] = Field(
        default=None, alias="from", description="Sender; defaults to the client identity"
    )
    instruction_key: Optional[str] = Field(default=None, alias="instructionKey")

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}


def transfer_sol_builder(
    client: "LedgerClient",
    params: TransferSolInput,
    payer: Optional[Signer] = None,
    programs: Sequence[Program] = (),
) -> TransactionBuilder:
    """
    Build a transaction moving lamports between two system accounts.

    Args:
        client: Client providing the identity and program registry
        params: Transfer input
        payer: Fee payer; defaults to the RPC default fee payer when sent
        programs: Program overrides
    """
    source = params.source or client.identity()
    program = client.programs().get(SYSTEM_PROGRAM_NAME, programs)

    builder = TransactionBuilder.make()
    if payer is not None:
        builder.set_fee_payer(payer)
    return builder.add(
        InstructionWithSigners(
            transfer_instruction(source.public_key, params.to, params.lamports, program.address),
            [source],
            key=params.instruction_key or "transferSol",
        )
    )


async def transfer_sol_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> Dict[str, Any]:
    params = TransferSolInput.model_validate(operation.input)
    builder = transfer_sol_builder(client, params, scope.payer, scope.programs)
    scope.throw_if_canceled()
    return await builder.send_and_confirm(client, scope.confirm_options)


# =============================================================================
# Create account
# =============================================================================

create_account_operation = use_operation("CreateAccountOperation")


class CreateAccountInput(BaseModel):
    """
    Input of the create account operation.
    """
    space: int = Field(..., ge=0, description="Data length of the new account")
    lamports: Optional[int] = Field(
        default=None, ge=0, description="Initial balance; defaults to the rent-exempt minimum"
    )
    new_account: Optional[Signer] = Field(
        default=None, alias="newAccount", description="New account; defaults to a generated keypair"
    )
    program: PublicKey = Field(default=SYSTEM_PROGRAM_ID, description="Owner of the new account")
    instruction_key: Optional[str] = Field(default=None, alias="instructionKey")

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}


async def create_account_builder(
    client: "LedgerClient",
    params: CreateAccountInput,
    payer: Optional[Signer] = None,
    programs: Sequence[Program] = (),
) -> TransactionBuilder:
    """
    Build a transaction creating a new account.

    The builder context holds ``new_account`` and ``lamports``.
    """
    payer = payer or client.rpc().get_default_fee_payer()
    new_account = params.new_account or KeypairSigner.generate()
    lamports = params.lamports
    if lamports is None:
        lamports = await client.rpc().get_rent(params.space)
    program = client.programs().get(SYSTEM_PROGRAM_NAME, programs)

    logger.debug(f"Creating account {new_account.public_key} with {lamports} lamports")
    return (
        TransactionBuilder.make()
        .set_fee_payer(payer)
        .set_context({"new_account": new_account, "lamports": lamports})
        .add(
            InstructionWithSigners(
                create_account_instruction(
                    payer.public_key,
                    new_account.public_key,
                    lamports,
                    params.space,
                    params.program,
                    program.address,
                ),
                [payer, new_account],
                key=params.instruction_key or "createAccount",
            )
        )
    )


async def create_account_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> Dict[str, Any]:
    params = CreateAccountInput.model_validate(operation.input)
    builder = await create_account_builder(client, params, scope.payer, scope.programs)
    scope.throw_if_canceled()
    return await builder.send_and_confirm(client, scope.confirm_options)


__all__ = [
    "SYSTEM_PROGRAM_NAME",
    "transfer_sol_operation",
    "TransferSolInput",
    "transfer_sol_builder",
    "transfer_sol_handler",
    "create_account_operation",
    "CreateAccountInput",
    "create_account_builder",
    "create_account_handler",
]
