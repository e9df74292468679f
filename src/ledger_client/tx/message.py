"""
Legacy transaction message compilation and wire serialization.

A message lists every account the transaction touches exactly once, ordered
as: fee payer, other writable signers, read-only signers, writable
non-signers, read-only non-signers. Instructions then refer to accounts by
index into that list.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..runtime.codec import b58decode, b58encode, encode_shortvec
from ..runtime.errors import FeePayerMissingError, UnexpectedSignerError
from ..runtime.publickey import PublicKey
from ..signers.signer import Signer, dedupe_signers
from .instruction import AccountMeta, TransactionInstruction

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 64
EMPTY_SIGNATURE = bytes(SIGNATURE_LENGTH)


@dataclass(frozen=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass(frozen=True)
class CompiledInstruction:
    program_id_index: int
    accounts: List[int]
    data: bytes


@dataclass(frozen=True)
class Message:
    """A compiled transaction message."""
    header: MessageHeader
    account_keys: List[PublicKey]
    recent_blockhash: str
    instructions: List[CompiledInstruction]

    @classmethod
    def compile(
        cls,
        fee_payer: Optional[PublicKey],
        instructions: Sequence[TransactionInstruction],
        recent_blockhash: str,
    ) -> Message:
        """
        Compile instructions into a message.

        Args:
            fee_payer: Account paying the fees; always the first signer
            instructions: Instructions in execution order
            recent_blockhash: Base-58 blockhash the transaction is valid for

        Raises:
            FeePayerMissingError: If no fee payer is given
        """
        if fee_payer is None:
            raise FeePayerMissingError()

        # Merge flags per account, keeping first-seen order
        metas: Dict[PublicKey, AccountMeta] = {
            fee_payer: AccountMeta(fee_payer, is_signer=True, is_writable=True)
        }
        for ix in instructions:
            for meta in ix.keys:
                existing = metas.get(meta.pubkey)
                if existing is None:
                    metas[meta.pubkey] = meta
                else:
                    metas[meta.pubkey] = AccountMeta(
                        meta.pubkey,
                        existing.is_signer or meta.is_signer,
                        existing.is_writable or meta.is_writable,
                    )
            if ix.program_id not in metas:
                metas[ix.program_id] = AccountMeta(ix.program_id)

        ordered = list(metas.values())
        payer_meta, rest = ordered[0], ordered[1:]
        writable_signers = [m for m in rest if m.is_signer and m.is_writable]
        readonly_signers = [m for m in rest if m.is_signer and not m.is_writable]
        writable_others = [m for m in rest if not m.is_signer and m.is_writable]
        readonly_others = [m for m in rest if not m.is_signer and not m.is_writable]

        account_keys = [m.pubkey for m in
                        [payer_meta] + writable_signers + readonly_signers + writable_others + readonly_others]
        index = {key: i for i, key in enumerate(account_keys)}

        header = MessageHeader(
            num_required_signatures=1 + len(writable_signers) + len(readonly_signers),
            num_readonly_signed_accounts=len(readonly_signers),
            num_readonly_unsigned_accounts=len(readonly_others),
        )
        compiled = [
            CompiledInstruction(
                program_id_index=index[ix.program_id],
                accounts=[index[meta.pubkey] for meta in ix.keys],
                data=bytes(ix.data),
            )
            for ix in instructions
        ]
        return cls(header, account_keys, recent_blockhash, compiled)

    @property
    def signer_keys(self) -> List[PublicKey]:
        return self.account_keys[:self.header.num_required_signatures]

    def serialize(self) -> bytes:
        """Serialize the message; these are the bytes every signer signs."""
        out = bytearray()
        out.append(self.header.num_required_signatures)
        out.append(self.header.num_readonly_signed_accounts)
        out.append(self.header.num_readonly_unsigned_accounts)

        out += encode_shortvec(len(self.account_keys))
        for key in self.account_keys:
            out += key.to_bytes()

        blockhash = b58decode(self.recent_blockhash)
        if len(blockhash) != 32:
            raise ValueError(f"Recent blockhash must decode to 32 bytes, got {len(blockhash)}")
        out += blockhash

        out += encode_shortvec(len(self.instructions))
        for ix in self.instructions:
            out.append(ix.program_id_index)
            out += encode_shortvec(len(ix.accounts))
            out += bytes(ix.accounts)
            out += encode_shortvec(len(ix.data))
            out += ix.data
        return bytes(out)


@dataclass
class Transaction:
    """
    A transaction ready to be signed and sent.

    Signature slots follow the message's signer keys; unsigned slots are
    serialized as zero bytes.
    """
    instructions: List[TransactionInstruction] = field(default_factory=list)
    fee_payer: Optional[PublicKey] = None
    recent_blockhash: Optional[str] = None
    last_valid_block_height: Optional[int] = None
    signatures: Dict[PublicKey, bytes] = field(default_factory=dict)

    def compile_message(self) -> Message:
        if self.recent_blockhash is None:
            raise ValueError("A recent blockhash is required to compile a transaction")
        return Message.compile(self.fee_payer, self.instructions, self.recent_blockhash)

    async def sign(self, signers: Sequence[Signer]) -> Transaction:
        """
        Add signatures from signers, deduplicated by public key.

        Raises:
            UnexpectedSignerError: If a signer is not required by the message
        """
        message = self.compile_message()
        message_bytes = message.serialize()
        required = set(message.signer_keys)

        for signer in dedupe_signers(signers):
            if signer.public_key not in required:
                raise UnexpectedSignerError(signer.public_key)
            self.signatures[signer.public_key] = await signer.sign_message(message_bytes)
            logger.debug(f"Signed transaction with {signer.kind.value} signer {signer.public_key}")
        return self

    @property
    def signature(self) -> Optional[str]:
        """Base-58 fee payer signature, which identifies the transaction."""
        if self.fee_payer is None or self.fee_payer not in self.signatures:
            return None
        return b58encode(self.signatures[self.fee_payer])

    def missing_signers(self) -> List[PublicKey]:
        return [key for key in self.compile_message().signer_keys if key not in self.signatures]

    def serialize(self) -> bytes:
        message = self.compile_message()
        out = bytearray(encode_shortvec(len(message.signer_keys)))
        for key in message.signer_keys:
            out += self.signatures.get(key, EMPTY_SIGNATURE)
        out += message.serialize()
        return bytes(out)


__all__ = ["Message", "MessageHeader", "CompiledInstruction", "Transaction", "SIGNATURE_LENGTH"]
