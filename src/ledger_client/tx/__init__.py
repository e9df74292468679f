"""
Transaction building and assembly.
"""

from .builder import TransactionBuilder
from .instruction import AccountMeta, InstructionWithSigners, TransactionInstruction
from .message import CompiledInstruction, Message, MessageHeader, Transaction

__all__ = [
    "TransactionBuilder",
    "AccountMeta",
    "InstructionWithSigners",
    "TransactionInstruction",
    "Message",
    "MessageHeader",
    "CompiledInstruction",
    "Transaction",
]
