"""
Program-account queries specialized for token accounts.
"""

from __future__ import annotations
from typing import List

from ...accounts.account import Account, to_account
from ...query.gpa_builder import GpaBuilder
from ...runtime.publickey import PublicKey
from .accounts import (
    AMOUNT_OFFSET,
    DELEGATE_OFFSET,
    MINT_OFFSET,
    OWNER_OFFSET,
    TOKEN_ACCOUNT_SIZE,
    TokenAccount,
    token_account_codec,
)


class TokenGpaBuilder(GpaBuilder):
    """
    Token account scans.

    Example:
        ```python
        accounts = await (
            TokenGpaBuilder(client, TOKEN_PROGRAM_ID)
            .where_token_account()
            .where_owner(owner)
            .get_token_accounts()
        )
        ```
    """

    def where_token_account(self) -> TokenGpaBuilder:
        return self.where_size(TOKEN_ACCOUNT_SIZE)

    def where_mint(self, mint: PublicKey) -> TokenGpaBuilder:
        return self.where(MINT_OFFSET, mint)

    def where_owner(self, owner: PublicKey) -> TokenGpaBuilder:
        return self.where(OWNER_OFFSET, owner)

    def where_amount(self, amount: int) -> TokenGpaBuilder:
        return self.where(AMOUNT_OFFSET, amount, byte_length=8)

    def where_delegate(self, delegate: PublicKey) -> TokenGpaBuilder:
        # COption tag 1 followed by the key
        return self.where(DELEGATE_OFFSET, b"\x01\x00\x00\x00" + delegate.to_bytes())

    def select_mint(self) -> TokenGpaBuilder:
        return self.slice(MINT_OFFSET, 32)

    def select_owner(self) -> TokenGpaBuilder:
        return self.slice(OWNER_OFFSET, 32)

    async def get_token_accounts(self) -> List[Account[TokenAccount]]:
        return await self.get_and_map(lambda account: to_account(account, token_account_codec))


__all__ = ["TokenGpaBuilder"]
