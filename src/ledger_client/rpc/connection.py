"""
Connection capability.

``Connection`` is the transport contract the SDK core consumes. The SDK never
retries or reinterprets transport failures; whatever a connection raises
reaches the caller unchanged.

``HttpConnection`` implements the contract as JSON-RPC 2.0 over HTTP with
``aiohttp``.
"""

from __future__ import annotations
import asyncio
import itertools
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import aiohttp

from ..runtime.codec import b64decode, b64encode
from ..runtime.errors import BlockHeightExceededError, RpcRequestError, error_from_response
from ..runtime.publickey import PublicKey
from .types import AccountInfo, BlockhashWithExpiryBlockHeight, Commitment

logger = logging.getLogger(__name__)

KeyedAccountInfo = Tuple[PublicKey, AccountInfo]

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}


class Connection(ABC):
    """
    Transport used by the SDK to read accounts and submit transactions.

    Implementations must be safe to call concurrently from one event loop.
    """

    rpc_endpoint: str = ""
    commitment: Optional[Commitment] = None

    @abstractmethod
    async def get_account_info(
        self, public_key: PublicKey, commitment: Optional[Commitment] = None
    ) -> Optional[AccountInfo]:
        """Fetch one account, or None if it does not exist."""

    @abstractmethod
    async def get_multiple_accounts_info(
        self, public_keys: Sequence[PublicKey], commitment: Optional[Commitment] = None
    ) -> List[Optional[AccountInfo]]:
        """Fetch several accounts in one request, in input order."""

    @abstractmethod
    async def get_program_accounts(
        self, program_id: PublicKey, config: Optional[Dict[str, Any]] = None
    ) -> List[KeyedAccountInfo]:
        """
        Scan the accounts owned by a program.

        Args:
            program_id: Owning program
            config: Wire configuration (``filters``, ``dataSlice``, ``commitment``)
        """

    @abstractmethod
    async def get_balance(self, public_key: PublicKey, commitment: Optional[Commitment] = None) -> int:
        """Balance in lamports."""

    @abstractmethod
    async def get_minimum_balance_for_rent_exemption(
        self, data_length: int, commitment: Optional[Commitment] = None
    ) -> int:
        """Lamports an account of ``data_length`` bytes needs to be rent exempt."""

    @abstractmethod
    async def get_latest_blockhash(
        self, commitment: Optional[Commitment] = None
    ) -> BlockhashWithExpiryBlockHeight:
        """Blockhash to build a transaction with."""

    @abstractmethod
    async def send_raw_transaction(
        self, raw_transaction: bytes, options: Optional[Dict[str, Any]] = None
    ) -> str:
        """Submit a signed transaction and return its signature."""

    @abstractmethod
    async def confirm_transaction(
        self,
        signature: str,
        blockhash_with_expiry: BlockhashWithExpiryBlockHeight,
        commitment: Optional[Commitment] = None,
    ) -> Dict[str, Any]:
        """
        Wait for a signature to reach ``commitment``.

        Returns:
            ``{"context": {...}, "value": {"err": ...}}``
        """

    @abstractmethod
    async def request_airdrop(self, public_key: PublicKey, lamports: int) -> str:
        """Ask a test cluster faucet for lamports."""


def parse_account_info(raw: Optional[Dict[str, Any]]) -> Optional[AccountInfo]:
    """Convert a base64-encoded JSON account into an AccountInfo."""
    if raw is None:
        return None
    data = raw.get("data") or ["", "base64"]
    if isinstance(data, list):
        encoded, encoding = data[0], data[1]
        if encoding != "base64":
            raise RpcRequestError(f"Unexpected account data encoding [{encoding}]")
        payload = b64decode(encoded)
    else:
        payload = b64decode(data)
    return AccountInfo(
        executable=bool(raw.get("executable", False)),
        owner=PublicKey(raw["owner"]),
        lamports=int(raw.get("lamports", 0)),
        data=payload,
        rent_epoch=raw.get("rentEpoch"),
    )


class HttpConnection(Connection):
    """
    JSON-RPC 2.0 connection over HTTP.

    Example:
        ```python
        async with HttpConnection("https://api.devnet.solana.com", commitment="confirmed") as connection:
            info = await connection.get_account_info(address)
        ```
    """

    def __init__(
        self,
        endpoint: str,
        commitment: Optional[Commitment] = None,
        timeout: float = 30.0,
        poll_interval: float = 0.5,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Initialize the connection.

        Args:
            endpoint: RPC endpoint URL
            commitment: Default commitment for reads and confirmations
            timeout: Per-request timeout in seconds
            poll_interval: Delay between confirmation status polls
            session: Optional aiohttp session; created lazily when omitted
        """
        self.rpc_endpoint = endpoint
        self.commitment = commitment
        self._timeout = timeout
        self._poll_interval = poll_interval
        self._session = session
        self._owns_session = session is None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> HttpConnection:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP session if owned by this connection."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None if self._owns_session else self._session

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self._timeout))
            self._owns_session = True
        return self._session

    # =========================================================================
    # Low-level RPC
    # =========================================================================

    async def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Make a JSON-RPC 2.0 call.

        Args:
            method: RPC method name
            params: Positional method parameters

        Returns:
            Result from the RPC call

        Raises:
            RpcRequestError: If the call fails
        """
        payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": next(self._ids), "method": method}
        if params is not None:
            payload["params"] = params

        logger.debug(f"Request: {method}")
        try:
            async with self._get_session().post(self.rpc_endpoint, json=payload) as response:
                if response.status != 200:
                    raise RpcRequestError(f"HTTP {response.status}: {response.reason}", response.status)
                response_data = await response.json(content_type=None)
        except aiohttp.ClientError as e:
            raise RpcRequestError(f"HTTP request failed: {e}", cause=e)
        except json.JSONDecodeError as e:
            raise RpcRequestError(f"Invalid JSON response: {e}", cause=e)

        error = error_from_response(response_data)
        if error is not None:
            raise error

        return response_data.get("result")

    def _commitment_config(self, commitment: Optional[Commitment], **extra: Any) -> Dict[str, Any]:
        config = {key: value for key, value in extra.items() if value is not None}
        commitment = commitment or self.commitment
        if commitment is not None:
            config["commitment"] = commitment
        return config

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_account_info(
        self, public_key: PublicKey, commitment: Optional[Commitment] = None
    ) -> Optional[AccountInfo]:
        result = await self._call(
            "getAccountInfo",
            [str(public_key), self._commitment_config(commitment, encoding="base64")],
        )
        return parse_account_info(result["value"])

    async def get_multiple_accounts_info(
        self, public_keys: Sequence[PublicKey], commitment: Optional[Commitment] = None
    ) -> List[Optional[AccountInfo]]:
        result = await self._call(
            "getMultipleAccounts",
            [[str(key) for key in public_keys], self._commitment_config(commitment, encoding="base64")],
        )
        return [parse_account_info(raw) for raw in result["value"]]

    async def get_program_accounts(
        self, program_id: PublicKey, config: Optional[Dict[str, Any]] = None
    ) -> List[KeyedAccountInfo]:
        config = dict(config or {})
        config.setdefault("encoding", "base64")
        if "commitment" not in config and self.commitment is not None:
            config["commitment"] = self.commitment
        result = await self._call("getProgramAccounts", [str(program_id), config])
        return [(PublicKey(item["pubkey"]), parse_account_info(item["account"])) for item in result]

    async def get_balance(self, public_key: PublicKey, commitment: Optional[Commitment] = None) -> int:
        result = await self._call("getBalance", [str(public_key), self._commitment_config(commitment)])
        return int(result["value"])

    async def get_minimum_balance_for_rent_exemption(
        self, data_length: int, commitment: Optional[Commitment] = None
    ) -> int:
        result = await self._call(
            "getMinimumBalanceForRentExemption", [data_length, self._commitment_config(commitment)]
        )
        return int(result)

    async def get_latest_blockhash(
        self, commitment: Optional[Commitment] = None
    ) -> BlockhashWithExpiryBlockHeight:
        result = await self._call("getLatestBlockhash", [self._commitment_config(commitment)])
        value = result["value"]
        return BlockhashWithExpiryBlockHeight(value["blockhash"], int(value["lastValidBlockHeight"]))

    async def get_block_height(self, commitment: Optional[Commitment] = None) -> int:
        return int(await self._call("getBlockHeight", [self._commitment_config(commitment)]))

    # =========================================================================
    # Writes
    # =========================================================================

    async def send_raw_transaction(
        self, raw_transaction: bytes, options: Optional[Dict[str, Any]] = None
    ) -> str:
        config = {"encoding": "base64", **(options or {})}
        signature = await self._call("sendTransaction", [b64encode(raw_transaction), config])
        logger.debug(f"Sent transaction {signature}")
        return signature

    async def confirm_transaction(
        self,
        signature: str,
        blockhash_with_expiry: BlockhashWithExpiryBlockHeight,
        commitment: Optional[Commitment] = None,
    ) -> Dict[str, Any]:
        target = _COMMITMENT_RANK[commitment or self.commitment or "finalized"]

        while True:
            result = await self._call("getSignatureStatuses", [[signature]])
            status = result["value"][0]
            if status is not None:
                reached = _COMMITMENT_RANK.get(status.get("confirmationStatus") or "processed", 0)
                if status.get("err") is not None or reached >= target:
                    logger.debug(f"Transaction {signature} reached {status.get('confirmationStatus')}")
                    return {"context": result["context"], "value": {"err": status.get("err")}}

            if await self.get_block_height(commitment) > blockhash_with_expiry.last_valid_block_height:
                raise BlockHeightExceededError(signature)

            await asyncio.sleep(self._poll_interval)

    async def request_airdrop(self, public_key: PublicKey, lamports: int) -> str:
        return await self._call("requestAirdrop", [str(public_key), lamports])


__all__ = ["Connection", "HttpConnection", "KeyedAccountInfo", "parse_account_info"]
