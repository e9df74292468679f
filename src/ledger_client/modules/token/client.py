"""
Token module facade and plugin.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Union, TYPE_CHECKING

from ...accounts.account import Account, MaybeAccount
from ...operations.operation import OperationOptions
from ...runtime.publickey import PublicKey
from ...signers.signer import Signer
from .accounts import TokenAccount
from .gpa_builder import TokenGpaBuilder
from .operations import (
    FindTokenAccountByAddressInput,
    FindTokenAccountsByAddressesInput,
    FindTokenAccountsByOwnerInput,
    TransferTokensInput,
    find_token_account_by_address_handler,
    find_token_account_by_address_operation,
    find_token_accounts_by_addresses_handler,
    find_token_accounts_by_addresses_operation,
    find_token_accounts_by_owner_handler,
    find_token_accounts_by_owner_operation,
    transfer_tokens_handler,
    transfer_tokens_operation,
)
from .program import TOKEN_PROGRAM_NAME, token_program

if TYPE_CHECKING:
    from ...client import LedgerClient


class TokenClient:
    """
    Token operations available as ``client.tokens()``.

    Example:
        ```python
        accounts = await client.tokens().find_token_accounts_by_owner(owner)
        balances = {account.public_key: account.data.amount for account in accounts}
        ```
    """

    def __init__(self, client: "LedgerClient"):
        self._client = client

    def gpa(self) -> TokenGpaBuilder:
        """A token account scan against the registered token program."""
        program = self._client.programs().get(TOKEN_PROGRAM_NAME)
        return TokenGpaBuilder(self._client, program.address)

    async def find_token_account_by_address(
        self, address: PublicKey, options: Optional[OperationOptions] = None
    ) -> Account[TokenAccount]:
        operation = find_token_account_by_address_operation(FindTokenAccountByAddressInput(address=address))
        return await self._client.operations().execute(operation, options)

    async def find_token_accounts_by_owner(
        self,
        owner: PublicKey,
        mint: Optional[PublicKey] = None,
        options: Optional[OperationOptions] = None,
    ) -> List[Account[TokenAccount]]:
        operation = find_token_accounts_by_owner_operation(FindTokenAccountsByOwnerInput(owner=owner, mint=mint))
        return await self._client.operations().execute(operation, options)

    async def find_token_accounts_by_addresses(
        self,
        addresses: Sequence[PublicKey],
        chunk_size: int = 100,
        options: Optional[OperationOptions] = None,
    ) -> List[MaybeAccount]:
        operation = find_token_accounts_by_addresses_operation(
            FindTokenAccountsByAddressesInput(addresses=list(addresses), chunk_size=chunk_size)
        )
        return await self._client.operations().execute(operation, options)

    async def transfer_tokens(
        self,
        source: PublicKey,
        destination: PublicKey,
        amount: int,
        owner: Optional[Union[Signer, PublicKey]] = None,
        multi_signers: Sequence[Signer] = (),
        options: Optional[OperationOptions] = None,
    ) -> Dict[str, Any]:
        operation = transfer_tokens_operation(
            TransferTokensInput(
                source=source,
                destination=destination,
                amount=amount,
                owner=owner,
                multi_signers=list(multi_signers),
            )
        )
        return await self._client.operations().execute(operation, options)


class TokenPlugin:
    """Registers the token program, its operations and ``client.tokens()``."""

    def install(self, client: "LedgerClient") -> None:
        client.programs().register(token_program())
        (
            client.operations()
            .register(find_token_account_by_address_operation, find_token_account_by_address_handler)
            .register(find_token_accounts_by_owner_operation, find_token_accounts_by_owner_handler)
            .register(find_token_accounts_by_addresses_operation, find_token_accounts_by_addresses_handler)
            .register(transfer_tokens_operation, transfer_tokens_handler)
        )
        client.register_module("tokens", TokenClient(client))


def token_module() -> TokenPlugin:
    return TokenPlugin()


__all__ = ["TokenClient", "TokenPlugin", "token_module"]
