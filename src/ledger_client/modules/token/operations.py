"""
Token program operations.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Union, TYPE_CHECKING

from pydantic import BaseModel, Field

from ...accounts.account import Account, MaybeAccount, to_account, to_maybe_account
from ...operations.operation import Operation, OperationScope, use_operation
from ...programs.program import Program
from ...query.gma_builder import DEFAULT_CHUNK_SIZE, GmaBuilder, GmaBuilderOptions
from ...query.gpa_builder import GpaBuilder
from ...runtime.publickey import PublicKey
from ...signers.signer import Signer, is_signer
from ...tx.builder import TransactionBuilder
from ...tx.instruction import InstructionWithSigners
from .accounts import TokenAccount, token_account_codec
from .gpa_builder import TokenGpaBuilder
from .program import TOKEN_PROGRAM_NAME, transfer_tokens_instruction

if TYPE_CHECKING:
    from ...client import LedgerClient

logger = logging.getLogger(__name__)


# =============================================================================
# Find token account by address
# =============================================================================

find_token_account_by_address_operation = use_operation("FindTokenAccountByAddressOperation")


class FindTokenAccountByAddressInput(BaseModel):
    address: PublicKey = Field(..., description="Token account address")


async def find_token_account_by_address_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> Account[TokenAccount]:
    params = FindTokenAccountByAddressInput.model_validate(operation.input)
    account = await client.rpc().get_account(params.address, scope.commitment)
    scope.throw_if_canceled()
    return to_account(account, token_account_codec)


# =============================================================================
# Find token accounts by owner
# =============================================================================

find_token_accounts_by_owner_operation = use_operation("FindTokenAccountsByOwnerOperation")


class FindTokenAccountsByOwnerInput(BaseModel):
    owner: PublicKey = Field(..., description="Wallet owning the token accounts")
    mint: Optional[PublicKey] = Field(default=None, description="Only accounts of this mint")


async def find_token_accounts_by_owner_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> List[Account[TokenAccount]]:
    params = FindTokenAccountsByOwnerInput.model_validate(operation.input)
    program = client.programs().get(TOKEN_PROGRAM_NAME, scope.programs)
    base = GpaBuilder(client, program.address)
    if scope.commitment is not None:
        base.merge_config({"commitment": scope.commitment})

    builder = TokenGpaBuilder.from_builder(base).where_token_account().where_owner(params.owner)
    if params.mint is not None:
        builder.where_mint(params.mint)

    accounts = await builder.get_token_accounts()
    scope.throw_if_canceled()
    return accounts


# =============================================================================
# Find token accounts by addresses
# =============================================================================

find_token_accounts_by_addresses_operation = use_operation("FindTokenAccountsByAddressesOperation")


class FindTokenAccountsByAddressesInput(BaseModel):
    addresses: List[PublicKey] = Field(..., description="Token account addresses")
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, alias="chunkSize", gt=0)

    model_config = {"populate_by_name": True}


async def find_token_accounts_by_addresses_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> List[MaybeAccount]:
    params = FindTokenAccountsByAddressesInput.model_validate(operation.input)
    options = GmaBuilderOptions(chunk_size=params.chunk_size, commitment=scope.commitment)
    accounts = await GmaBuilder(client, params.addresses, options).get()
    scope.throw_if_canceled()
    return [to_maybe_account(account, token_account_codec) for account in accounts]


# =============================================================================
# Transfer tokens
# =============================================================================

transfer_tokens_operation = use_operation("TransferTokensOperation")


class TransferTokensInput(BaseModel):
    """
    Input of the transfer tokens operation.
    """
    source: PublicKey = Field(..., description="Token account to debit")
    destination: PublicKey = Field(..., description="Token account to credit")
    amount: int = Field(..., ge=0, description="Amount in base units")
    owner: Optional[Union[Signer, PublicKey]] = Field(
        default=None, description="Source owner; a PublicKey means a multisig owner"
    )
    multi_signers: List[Signer] = Field(default_factory=list, alias="multiSigners")
    instruction_key: Optional[str] = Field(default=None, alias="instructionKey")

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}


def transfer_tokens_builder(
    client: "LedgerClient",
    params: TransferTokensInput,
    payer: Optional[Signer] = None,
    programs: Sequence[Program] = (),
) -> TransactionBuilder:
    owner = params.owner if params.owner is not None else client.identity()
    if is_signer(owner):
        owner_address, signers = owner.public_key, [owner]
        multi_signer_keys: List[PublicKey] = []
    else:
        owner_address, signers = owner, list(params.multi_signers)
        multi_signer_keys = [signer.public_key for signer in params.multi_signers]

    program = client.programs().get(TOKEN_PROGRAM_NAME, programs)

    builder = TransactionBuilder.make()
    if payer is not None:
        builder.set_fee_payer(payer)
    return builder.add(
        InstructionWithSigners(
            transfer_tokens_instruction(
                params.source,
                params.destination,
                owner_address,
                params.amount,
                multi_signer_keys,
                program.address,
            ),
            signers,
            key=params.instruction_key or "transferTokens",
        )
    )


async def transfer_tokens_handler(
    operation: Operation, client: "LedgerClient", scope: OperationScope
) -> Dict[str, Any]:
    params = TransferTokensInput.model_validate(operation.input)
    builder = transfer_tokens_builder(client, params, scope.payer, scope.programs)
    scope.throw_if_canceled()
    return await builder.send_and_confirm(client, scope.confirm_options)


__all__ = [
    "find_token_account_by_address_operation",
    "FindTokenAccountByAddressInput",
    "find_token_account_by_address_handler",
    "find_token_accounts_by_owner_operation",
    "FindTokenAccountsByOwnerInput",
    "find_token_accounts_by_owner_handler",
    "find_token_accounts_by_addresses_operation",
    "FindTokenAccountsByAddressesInput",
    "find_token_accounts_by_addresses_handler",
    "transfer_tokens_operation",
    "TransferTokensInput",
    "transfer_tokens_builder",
    "transfer_tokens_handler",
]
