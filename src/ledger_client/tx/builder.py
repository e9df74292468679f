"""
Transaction builder for ledger transactions.

A TransactionBuilder accumulates instruction records (an instruction plus the
signers it needs) in execution order. Instructions in one transaction run
sequentially, so later instructions may rely on state written by earlier
ones; the builder never reorders records on its own.

The builder is mutable and every fluent method returns the builder itself.
Methods that change the record list replace it with a new list, so lists
returned earlier by ``get_instructions_with_signers()`` are snapshots.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

from ..runtime.publickey import PublicKey
from ..signers.signer import Signer, dedupe_signers
from .instruction import InstructionWithSigners, TransactionInstruction
from .message import Transaction

if TYPE_CHECKING:
    from ..client import LedgerClient
    from ..rpc.types import BlockhashWithExpiryBlockHeight, ConfirmOptions

logger = logging.getLogger(__name__)

BuilderInput = Union[InstructionWithSigners, "TransactionBuilder"]


class TransactionBuilder:
    """
    Ordered instruction records with their signers.

    Example:
        ```python
        builder = (
            TransactionBuilder.make()
            .set_fee_payer(payer)
            .add(InstructionWithSigners(create_ix, [payer, new_account], key="createAccount"))
            .add(InstructionWithSigners(init_ix, [payer]))
            .set_context({"new_account": new_account})
        )
        output = await builder.send_and_confirm(client)
        ```
    """

    def __init__(self, transaction_options: Optional["BlockhashWithExpiryBlockHeight"] = None):
        """
        Initialize transaction builder.

        Args:
            transaction_options: Optional blockhash to build the transaction with
        """
        self._records: List[InstructionWithSigners] = []
        self._transaction_options = transaction_options
        self._fee_payer: Optional[Signer] = None
        self._context: Dict[str, Any] = {}

    @classmethod
    def make(cls, transaction_options: Optional["BlockhashWithExpiryBlockHeight"] = None) -> TransactionBuilder:
        return cls(transaction_options)

    @staticmethod
    def _flatten(txs: Tuple[BuilderInput, ...]) -> List[InstructionWithSigners]:
        records: List[InstructionWithSigners] = []
        for tx in txs:
            if isinstance(tx, TransactionBuilder):
                records.extend(tx.get_instructions_with_signers())
            else:
                records.append(tx)
        return records

    def prepend(self, *txs: BuilderInput) -> TransactionBuilder:
        """Insert records (or other builders' records) before all current records."""
        self._records = self._flatten(txs) + self._records
        return self

    def append(self, *txs: BuilderInput) -> TransactionBuilder:
        """Add records (or other builders' records) after all current records."""
        self._records = self._records + self._flatten(txs)
        return self

    def add(self, *txs: BuilderInput) -> TransactionBuilder:
        return self.append(*txs)

    def split_using_key(self, key: str, include: bool = True) -> Tuple[TransactionBuilder, TransactionBuilder]:
        """
        Split the records around the first record labelled ``key``.

        Args:
            key: Record label to split on
            include: Keep the labelled record in the first builder

        Returns:
            Two builders; if the key is absent, the second one is empty
        """
        first = TransactionBuilder(self._transaction_options)
        second = TransactionBuilder(self._transaction_options)
        position = next((i for i, record in enumerate(self._records) if record.key == key), -1)

        if position > -1:
            position += 1 if include else 0
            first.add(*self._records[:position])
            second.add(*self._records[position:])
        else:
            first.add(self)

        return first, second

    def split_before_key(self, key: str) -> Tuple[TransactionBuilder, TransactionBuilder]:
        return self.split_using_key(key, False)

    def split_after_key(self, key: str) -> Tuple[TransactionBuilder, TransactionBuilder]:
        return self.split_using_key(key, True)

    def get_instructions_with_signers(self) -> List[InstructionWithSigners]:
        return list(self._records)

    def get_instructions(self) -> List[TransactionInstruction]:
        return [record.instruction for record in self._records]

    def get_instruction_count(self) -> int:
        return len(self._records)

    def is_empty(self) -> bool:
        return self.get_instruction_count() == 0

    def get_signers(self) -> List[Signer]:
        """
        All record signers, one per public key.

        The first signer appended for a key is the one kept. The fee payer is
        not included unless a record lists it.
        """
        return dedupe_signers(signer for record in self._records for signer in record.signers)

    def set_transaction_options(self, transaction_options: "BlockhashWithExpiryBlockHeight") -> TransactionBuilder:
        self._transaction_options = transaction_options
        return self

    def get_transaction_options(self) -> Optional["BlockhashWithExpiryBlockHeight"]:
        return self._transaction_options

    def set_fee_payer(self, fee_payer: Signer) -> TransactionBuilder:
        self._fee_payer = fee_payer
        return self

    def get_fee_payer(self) -> Optional[PublicKey]:
        return self._fee_payer.public_key if self._fee_payer is not None else None

    def get_fee_payer_signer(self) -> Optional[Signer]:
        return self._fee_payer

    def set_context(self, context: Dict[str, Any]) -> TransactionBuilder:
        self._context = context
        return self

    def get_context(self) -> Dict[str, Any]:
        return self._context

    def when(self, condition: bool, callback: Callable[[TransactionBuilder], TransactionBuilder]) -> TransactionBuilder:
        return callback(self) if condition else self

    def unless(self, condition: bool, callback: Callable[[TransactionBuilder], TransactionBuilder]) -> TransactionBuilder:
        return self.when(not condition, callback)

    def to_transaction(
        self,
        blockhash_with_expiry: Optional["BlockhashWithExpiryBlockHeight"] = None,
    ) -> Transaction:
        """Assemble an unsigned transaction from the current records."""
        options = blockhash_with_expiry or self._transaction_options
        return Transaction(
            instructions=self.get_instructions(),
            fee_payer=self.get_fee_payer(),
            recent_blockhash=options.blockhash if options else None,
            last_valid_block_height=options.last_valid_block_height if options else None,
        )

    async def send_and_confirm(
        self,
        client: "LedgerClient",
        confirm_options: Optional["ConfirmOptions"] = None,
    ) -> Dict[str, Any]:
        """
        Sign, send and confirm the transaction through the client's RPC.

        Returns:
            ``{"response": SendAndConfirmTransactionResponse, **context}``
        """
        logger.debug(f"Sending transaction with {self.get_instruction_count()} instruction(s)")
        response = await client.rpc().send_and_confirm_transaction(self, confirm_options)
        return {"response": response, **self.get_context()}

    def __repr__(self) -> str:
        keys = [record.key for record in self._records]
        return f"TransactionBuilder(instructions={len(self._records)}, keys={keys})"


__all__ = ["TransactionBuilder"]
