"""
Token program module.
"""

from .accounts import TOKEN_ACCOUNT_SIZE, TokenAccount, TokenAccountCodec, TokenAccountState, token_account_codec
from .client import TokenClient, TokenPlugin, token_module
from .gpa_builder import TokenGpaBuilder
from .operations import (
    FindTokenAccountByAddressInput,
    FindTokenAccountsByAddressesInput,
    FindTokenAccountsByOwnerInput,
    TransferTokensInput,
    find_token_account_by_address_operation,
    find_token_accounts_by_addresses_operation,
    find_token_accounts_by_owner_operation,
    transfer_tokens_builder,
    transfer_tokens_operation,
)
from .program import (
    TOKEN_PROGRAM_ID,
    TOKEN_PROGRAM_NAME,
    TokenProgramError,
    resolve_token_error,
    token_program,
    transfer_tokens_instruction,
)

__all__ = [
    "TOKEN_ACCOUNT_SIZE",
    "TokenAccount",
    "TokenAccountCodec",
    "TokenAccountState",
    "token_account_codec",
    "TokenClient",
    "TokenPlugin",
    "token_module",
    "TokenGpaBuilder",
    "FindTokenAccountByAddressInput",
    "FindTokenAccountsByAddressesInput",
    "FindTokenAccountsByOwnerInput",
    "TransferTokensInput",
    "find_token_account_by_address_operation",
    "find_token_accounts_by_addresses_operation",
    "find_token_accounts_by_owner_operation",
    "transfer_tokens_builder",
    "transfer_tokens_operation",
    "TOKEN_PROGRAM_ID",
    "TOKEN_PROGRAM_NAME",
    "TokenProgramError",
    "resolve_token_error",
    "token_program",
    "transfer_tokens_instruction",
]
