"""
RPC client used by operation handlers.

Wraps a ``Connection`` with the SDK's account records, signing and
confirmation flow. Reads return ``UnparsedAccount``/``MissingAccount``
records; transport failures are raised unchanged.
"""

from __future__ import annotations
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union, TYPE_CHECKING
from urllib.parse import quote

from ..runtime.codec import zip_map
from ..runtime.errors import (
    FailedToConfirmTransactionError,
    FailedToConfirmTransactionWithResponseError,
    LedgerError,
    ParsedProgramError,
    ProgramNotRecognizedError,
    UnknownProgramError,
)
from ..runtime.publickey import PublicKey
from ..signers.signer import Signer, get_signer_histogram
from ..tx.builder import TransactionBuilder
from ..tx.message import Transaction
from .types import (
    AccountInfo,
    BlockhashWithExpiryBlockHeight,
    Commitment,
    ConfirmOptions,
    MissingAccount,
    SendAndConfirmTransactionResponse,
    UnparsedAccount,
    UnparsedMaybeAccount,
)

if TYPE_CHECKING:
    from ..client import LedgerClient

logger = logging.getLogger(__name__)

_INSTRUCTION_ERROR = re.compile(r"Error processing Instruction (\d+):")

TransactionInput = Union[Transaction, TransactionBuilder]


class RpcClient:
    """
    Account reads and transaction submission for one client.

    Example:
        ```python
        account = await client.rpc().get_account(address)
        if account.exists:
            print(account.lamports)
        ```
    """

    def __init__(self, client: "LedgerClient"):
        self._client = client
        self._default_fee_payer: Optional[Signer] = None

    @property
    def connection(self):
        return self._client.connection

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_account(self, public_key: PublicKey, commitment: Optional[Commitment] = None) -> UnparsedMaybeAccount:
        info = await self.connection.get_account_info(public_key, commitment)
        return self._to_maybe_account(public_key, info)

    async def account_exists(self, public_key: PublicKey, commitment: Optional[Commitment] = None) -> bool:
        balance = await self.connection.get_balance(public_key, commitment)
        return balance > 0

    async def get_multiple_accounts(
        self, public_keys: Sequence[PublicKey], commitment: Optional[Commitment] = None
    ) -> List[UnparsedMaybeAccount]:
        """
        Fetch several accounts in one request.

        Returns:
            One record per input key, in input order
        """
        infos = await self.connection.get_multiple_accounts_info(public_keys, commitment)
        return zip_map(public_keys, infos, self._to_maybe_account)

    async def get_program_accounts(
        self, program_id: PublicKey, config: Optional[Dict[str, Any]] = None
    ) -> List[UnparsedAccount]:
        accounts = await self.connection.get_program_accounts(program_id, config)
        return [UnparsedAccount.from_info(public_key, info) for public_key, info in accounts]

    async def get_balance(self, public_key: PublicKey, commitment: Optional[Commitment] = None) -> int:
        return await self.connection.get_balance(public_key, commitment)

    async def get_rent(self, data_length: int, commitment: Optional[Commitment] = None) -> int:
        return await self.connection.get_minimum_balance_for_rent_exemption(data_length, commitment)

    async def get_latest_blockhash(self, commitment: Commitment = "finalized") -> BlockhashWithExpiryBlockHeight:
        return await self.connection.get_latest_blockhash(commitment)

    # =========================================================================
    # Writes
    # =========================================================================

    async def _prepare_transaction(
        self, transaction: TransactionInput, signers: Sequence[Signer]
    ) -> Tuple[Transaction, List[Signer], BlockhashWithExpiryBlockHeight]:
        if (
            isinstance(transaction, Transaction)
            and transaction.recent_blockhash
            and transaction.last_valid_block_height is not None
        ):
            blockhash = BlockhashWithExpiryBlockHeight(
                transaction.recent_blockhash, transaction.last_valid_block_height
            )
        elif isinstance(transaction, TransactionBuilder) and transaction.get_transaction_options() is not None:
            blockhash = transaction.get_transaction_options()
        else:
            blockhash = await self.get_latest_blockhash()

        signers = list(signers)
        if isinstance(transaction, TransactionBuilder):
            # Record signers come first so their objects win deduplication
            signers = transaction.get_signers() + signers
            fee_payer = transaction.get_fee_payer_signer()
            if fee_payer is not None:
                signers.append(fee_payer)
            transaction = transaction.to_transaction(blockhash)
        elif transaction.recent_blockhash is None:
            transaction.recent_blockhash = blockhash.blockhash
            transaction.last_valid_block_height = blockhash.last_valid_block_height

        return transaction, signers, blockhash

    async def sign_transaction(self, transaction: Transaction, signers: Sequence[Signer]) -> Transaction:
        """
        Sign a transaction, keypairs first then external identities.

        Signers are deduplicated by public key; the first one wins.
        """
        histogram = get_signer_histogram(signers)
        if histogram.keypairs:
            await transaction.sign(histogram.keypairs)
        for identity in histogram.identities:
            await transaction.sign([identity])
        return transaction

    async def send_transaction(
        self,
        transaction: TransactionInput,
        send_options: Optional[Dict[str, Any]] = None,
        signers: Sequence[Signer] = (),
    ) -> str:
        """
        Sign and submit a transaction without waiting for confirmation.

        Args:
            transaction: Transaction or builder to send
            send_options: ``sendTransaction`` configuration
            signers: Extra signers on top of the builder's

        Returns:
            Base-58 transaction signature

        Raises:
            ParsedProgramError: If a registered program resolved the failure
            UnknownProgramError: If a registered program could not resolve it
        """
        transaction, signers, _ = await self._prepare_transaction(transaction, signers)

        default_fee_payer = self.get_default_fee_payer()
        if transaction.fee_payer is None and default_fee_payer is not None:
            transaction.fee_payer = default_fee_payer.public_key
            signers = list(signers) + [default_fee_payer]

        await self.sign_transaction(transaction, signers)
        raw_transaction = transaction.serialize()

        try:
            return await self.connection.send_raw_transaction(raw_transaction, send_options or {})
        except LedgerError as error:
            parsed = self._parse_program_error(error, transaction)
            if parsed is error:
                raise
            raise parsed from error

    async def confirm_transaction(
        self,
        signature: str,
        blockhash_with_expiry: BlockhashWithExpiryBlockHeight,
        commitment: Optional[Commitment] = None,
    ) -> Dict[str, Any]:
        """
        Wait for a transaction to be confirmed.

        Raises:
            FailedToConfirmTransactionError: If the node could not confirm it
            FailedToConfirmTransactionWithResponseError: If it executed with an error
        """
        try:
            response = await self.connection.confirm_transaction(signature, blockhash_with_expiry, commitment)
        except LedgerError as error:
            raise FailedToConfirmTransactionError(error) from error

        if (response.get("value") or {}).get("err"):
            raise FailedToConfirmTransactionWithResponseError(response)

        logger.debug(f"Confirmed transaction {signature}")
        return response

    async def send_and_confirm_transaction(
        self,
        transaction: TransactionInput,
        confirm_options: Optional[ConfirmOptions] = None,
        signers: Sequence[Signer] = (),
    ) -> SendAndConfirmTransactionResponse:
        transaction, signers, blockhash = await self._prepare_transaction(transaction, signers)
        confirm_options = confirm_options or ConfirmOptions()

        signature = await self.send_transaction(transaction, confirm_options.to_send_options(), signers)
        confirm_response = await self.confirm_transaction(signature, blockhash, confirm_options.commitment)

        return SendAndConfirmTransactionResponse(
            signature=signature,
            confirm_response=confirm_response,
            blockhash=blockhash.blockhash,
            last_valid_block_height=blockhash.last_valid_block_height,
        )

    async def airdrop(
        self, public_key: PublicKey, lamports: int, commitment: Optional[Commitment] = None
    ) -> SendAndConfirmTransactionResponse:
        if lamports <= 0:
            raise ValueError("Airdrop amount must be a positive number of lamports")

        signature = await self.connection.request_airdrop(public_key, lamports)
        blockhash = await self.get_latest_blockhash()
        confirm_response = await self.confirm_transaction(signature, blockhash, commitment)

        return SendAndConfirmTransactionResponse(
            signature=signature,
            confirm_response=confirm_response,
            blockhash=blockhash.blockhash,
            last_valid_block_height=blockhash.last_valid_block_height,
        )

    # =========================================================================
    # Fee payer and helpers
    # =========================================================================

    def set_default_fee_payer(self, payer: Signer) -> RpcClient:
        self._default_fee_payer = payer
        return self

    def get_default_fee_payer(self) -> Signer:
        if self._default_fee_payer is not None:
            return self._default_fee_payer
        return self._client.identity()

    def get_explorer_url(self, signature: str) -> str:
        cluster = self._client.cluster
        if cluster in ("devnet", "testnet"):
            cluster_param = f"?cluster={cluster}"
        elif cluster in ("localnet", "custom"):
            cluster_param = f"?cluster=custom&customUrl={quote(self.connection.rpc_endpoint, safe='')}"
        else:
            cluster_param = ""
        return f"https://explorer.solana.com/tx/{signature}{cluster_param}"

    @staticmethod
    def _to_maybe_account(public_key: PublicKey, info: Optional[AccountInfo]) -> UnparsedMaybeAccount:
        if info is None:
            return MissingAccount(public_key)
        return UnparsedAccount.from_info(public_key, info)

    def _parse_program_error(self, error: LedgerError, transaction: Transaction) -> LedgerError:
        """
        Resolve a send failure to the program that raised it.

        Errors without logs, without an instruction index or from programs
        that are not registered are returned unchanged.
        """
        logs = getattr(error, "logs", None)
        if not logs:
            return error

        match = _INSTRUCTION_ERROR.search(error.message)
        if match is None:
            return error

        index = int(match.group(1))
        if index >= len(transaction.instructions):
            return error

        program_id = transaction.instructions[index].program_id
        try:
            program = self._client.programs().get(program_id)
        except ProgramNotRecognizedError:
            return error

        if program.error_resolver is None:
            return UnknownProgramError(program, error)

        resolved = program.error_resolver(error)
        if resolved is None:
            return UnknownProgramError(program, error)

        logger.debug(f"Resolved error from program {program.name}: {resolved}")
        return ParsedProgramError(program, resolved, logs, error)


__all__ = ["RpcClient", "TransactionInput"]
