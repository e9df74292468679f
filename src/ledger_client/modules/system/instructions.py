"""
System program instructions.
"""

import struct

from ...runtime.publickey import PublicKey
from ...tx.instruction import AccountMeta, TransactionInstruction

SYSTEM_PROGRAM_ID = PublicKey.default()

CREATE_ACCOUNT = 0
TRANSFER = 2


def create_account_instruction(
    from_pubkey: PublicKey,
    new_account_pubkey: PublicKey,
    lamports: int,
    space: int,
    owner: PublicKey,
    program_id: PublicKey = SYSTEM_PROGRAM_ID,
) -> TransactionInstruction:
    """
    Allocate a new account funded by ``from_pubkey`` and assign it to ``owner``.

    Both the funding and the new account must sign.
    """
    data = struct.pack("<IQQ", CREATE_ACCOUNT, lamports, space) + owner.to_bytes()
    return TransactionInstruction(
        program_id=program_id,
        keys=(
            AccountMeta(from_pubkey, is_signer=True, is_writable=True),
            AccountMeta(new_account_pubkey, is_signer=True, is_writable=True),
        ),
        data=data,
    )


def transfer_instruction(
    from_pubkey: PublicKey,
    to_pubkey: PublicKey,
    lamports: int,
    program_id: PublicKey = SYSTEM_PROGRAM_ID,
) -> TransactionInstruction:
    data = struct.pack("<IQ", TRANSFER, lamports)
    return TransactionInstruction(
        program_id=program_id,
        keys=(
            AccountMeta(from_pubkey, is_signer=True, is_writable=True),
            AccountMeta(to_pubkey, is_signer=False, is_writable=True),
        ),
        data=data,
    )


__all__ = ["SYSTEM_PROGRAM_ID", "create_account_instruction", "transfer_instruction"]
