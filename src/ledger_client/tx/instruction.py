"""
Instruction records for ledger transactions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..runtime.publickey import PublicKey
from ..signers.signer import Signer


@dataclass(frozen=True)
class AccountMeta:
    """An account referenced by an instruction."""
    pubkey: PublicKey
    is_signer: bool = False
    is_writable: bool = False


@dataclass(frozen=True)
class TransactionInstruction:
    """
    One program invocation.

    Attributes:
        program_id: Program executing the instruction
        keys: Accounts the program reads or writes, in program order
        data: Opaque instruction payload
    """
    program_id: PublicKey
    keys: Sequence[AccountMeta] = ()
    data: bytes = b""


@dataclass
class InstructionWithSigners:
    """
    An instruction together with the signers it requires.

    Attributes:
        instruction: The instruction to execute
        signers: Signers that must sign the transaction for this instruction
        key: Optional label used to split builders around this instruction
    """
    instruction: TransactionInstruction
    signers: List[Signer] = field(default_factory=list)
    key: Optional[str] = None


__all__ = ["AccountMeta", "TransactionInstruction", "InstructionWithSigners"]
