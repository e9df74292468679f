"""
Bulk account fetcher.

Resolves an ordered address list to account records while staying under the
node's per-request batch limit. Addresses are split into chunks, chunks are
fetched concurrently, and results are reassembled in input order. Chunk
boundaries are never visible in the result.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable, List, Optional, Sequence, TypeVar, TYPE_CHECKING

from pydantic import BaseModel, Field

from ..runtime.codec import chunk
from ..runtime.publickey import PublicKey
from ..rpc.types import Commitment, UnparsedMaybeAccount

if TYPE_CHECKING:
    from ..client import LedgerClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_CHUNK_SIZE = 100


class GmaBuilderOptions(BaseModel):
    """Options for bulk account fetches."""
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, alias="chunkSize", gt=0,
                            description="Maximum addresses per request")
    commitment: Optional[Commitment] = Field(default=None, description="Read commitment")

    model_config = {"populate_by_name": True}


class GmaBuilder:
    """
    Chunked, order-preserving ``getMultipleAccounts``.

    Every result slot is either an ``UnparsedAccount`` (``exists`` is True)
    or a ``MissingAccount`` carrying the requested address. A failed chunk
    fails the whole fetch; partial results are never returned.

    Example:
        ```python
        accounts = await GmaBuilder(client, addresses).chunk_by(50).get()
        found = [account for account in accounts if account.exists]
        ```
    """

    def __init__(
        self,
        client: "LedgerClient",
        public_keys: Sequence[PublicKey],
        options: Optional[GmaBuilderOptions] = None,
    ):
        options = options or GmaBuilderOptions()
        self.client = client
        self.commitment = options.commitment
        self._chunk_size = options.chunk_size
        self._public_keys: List[PublicKey] = list(public_keys)

    @classmethod
    def make(
        cls,
        client: "LedgerClient",
        public_keys: Sequence[PublicKey],
        options: Optional[GmaBuilderOptions] = None,
    ) -> GmaBuilder:
        return cls(client, public_keys, options)

    def chunk_by(self, chunk_size: int) -> GmaBuilder:
        if chunk_size <= 0:
            raise ValueError("chunk size must be positive")
        self._chunk_size = chunk_size
        return self

    def get_chunk_size(self) -> int:
        return self._chunk_size

    def add_public_keys(self, public_keys: Sequence[PublicKey]) -> GmaBuilder:
        self._public_keys = self._public_keys + list(public_keys)
        return self

    def get_public_keys(self) -> List[PublicKey]:
        return list(self._public_keys)

    # Pagination helpers slice the address list before any request is made.

    async def get_first(self, n: int = 1) -> List[UnparsedMaybeAccount]:
        end = self._clamp(n)
        return await self._get_chunks(self._public_keys[:end])

    async def get_last(self, n: int = 1) -> List[UnparsedMaybeAccount]:
        start = len(self._public_keys) - self._clamp(n)
        return await self._get_chunks(self._public_keys[start:])

    async def get_between(self, start: int, end: int) -> List[UnparsedMaybeAccount]:
        """Fetch addresses in ``[start, end)``, bounds clamped and swapped if reversed."""
        start = self._clamp(start)
        end = self._clamp(end)
        if start > end:
            start, end = end, start
        return await self._get_chunks(self._public_keys[start:end])

    async def get_page(self, page: int, per_page: int) -> List[UnparsedMaybeAccount]:
        """Fetch a 1-indexed page of ``per_page`` addresses."""
        return await self.get_between((page - 1) * per_page, page * per_page)

    async def get(self) -> List[UnparsedMaybeAccount]:
        return await self._get_chunks(self._public_keys)

    async def get_and_map(self, callback: Callable[[UnparsedMaybeAccount], T]) -> List[T]:
        return [callback(account) for account in await self.get()]

    async def _get_chunks(self, public_keys: Sequence[PublicKey]) -> List[UnparsedMaybeAccount]:
        chunks = chunk(public_keys, self._chunk_size)
        logger.debug(f"Fetching {len(public_keys)} account(s) in {len(chunks)} chunk(s)")

        tasks = [asyncio.ensure_future(self._get_chunk(keys)) for keys in chunks]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        return [account for result in results for account in result]

    async def _get_chunk(self, public_keys: List[PublicKey]) -> List[UnparsedMaybeAccount]:
        return await self.client.rpc().get_multiple_accounts(public_keys, self.commitment)

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self._public_keys)))


__all__ = ["GmaBuilder", "GmaBuilderOptions", "DEFAULT_CHUNK_SIZE"]
