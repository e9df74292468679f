"""
Token program address, instructions and error resolver.
"""

from __future__ import annotations
import struct
from typing import Optional, Sequence

from ...programs.program import Program, parse_custom_error_code
from ...runtime.errors import ErrorCode, LedgerError
from ...runtime.publickey import PublicKey
from ...tx.instruction import AccountMeta, TransactionInstruction

TOKEN_PROGRAM_NAME = "TokenProgram"
TOKEN_PROGRAM_ID = PublicKey("TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA")

TRANSFER = 3

TOKEN_ERRORS = {
    0: ("NotRentExempt", "Lamport balance below rent-exempt threshold"),
    1: ("InsufficientFunds", "Insufficient funds"),
    2: ("InvalidMint", "Invalid Mint"),
    3: ("MintMismatch", "Account not associated with this Mint"),
    4: ("OwnerMismatch", "Owner does not match"),
    5: ("FixedSupply", "Fixed supply"),
    6: ("AlreadyInUse", "Already in use"),
    7: ("InvalidNumberOfProvidedSigners", "Invalid number of provided signers"),
    8: ("InvalidNumberOfRequiredSigners", "Invalid number of required signers"),
    9: ("UninitializedState", "State is unititialized"),
    10: ("NativeNotSupported", "Instruction does not support native tokens"),
    11: ("NonNativeHasBalance", "Non-native account can only be closed if its balance is zero"),
    12: ("InvalidInstruction", "Invalid instruction"),
    13: ("InvalidState", "State is invalid for requested operation"),
    14: ("Overflow", "Operation overflowed"),
    15: ("AuthorityTypeNotSupported", "Account does not support specified authority type"),
    16: ("MintCannotFreeze", "This token mint cannot freeze accounts"),
    17: ("AccountFrozen", "Account is frozen"),
    18: ("MintDecimalsMismatch", "The provided decimals value different from the Mint decimals"),
    19: ("NonNativeNotSupported", "Instruction does not support non-native tokens"),
}


class TokenProgramError(LedgerError):
    """An error code raised by the token program."""

    def __init__(self, program_code: int, name: str, message: str):
        super().__init__(message, ErrorCode.PROGRAM_ERROR, {"programCode": program_code, "name": name})
        self.program_code = program_code
        self.name = name


def resolve_token_error(error: BaseException) -> Optional[TokenProgramError]:
    """Map a failed send to a ``TokenProgramError`` using its custom error code."""
    code = parse_custom_error_code(error)
    if code is None or code not in TOKEN_ERRORS:
        return None
    name, message = TOKEN_ERRORS[code]
    return TokenProgramError(code, name, message)


def token_program() -> Program:
    return Program(TOKEN_PROGRAM_NAME, TOKEN_PROGRAM_ID, error_resolver=resolve_token_error)


def transfer_tokens_instruction(
    source: PublicKey,
    destination: PublicKey,
    owner: PublicKey,
    amount: int,
    multi_signers: Sequence[PublicKey] = (),
    program_id: PublicKey = TOKEN_PROGRAM_ID,
) -> TransactionInstruction:
    """
    Move ``amount`` base units between two token accounts.

    With ``multi_signers`` the owner is a multisig account and does not sign
    itself.
    """
    keys = [
        AccountMeta(source, is_signer=False, is_writable=True),
        AccountMeta(destination, is_signer=False, is_writable=True),
        AccountMeta(owner, is_signer=not multi_signers, is_writable=False),
    ]
    keys.extend(AccountMeta(signer, is_signer=True, is_writable=False) for signer in multi_signers)
    return TransactionInstruction(program_id, tuple(keys), struct.pack("<BQ", TRANSFER, amount))


__all__ = [
    "TOKEN_PROGRAM_NAME",
    "TOKEN_PROGRAM_ID",
    "TOKEN_ERRORS",
    "TokenProgramError",
    "resolve_token_error",
    "token_program",
    "transfer_tokens_instruction",
]
