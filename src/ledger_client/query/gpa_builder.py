"""
Program-account query builder.

Composes byte-offset predicates over a program's account data into the
``getProgramAccounts`` wire configuration, runs the scan and post-processes
the results. Filters are conjunctive; the node applies all of them.

Matching is exact bytes at an offset. A wrong offset or byte order silently
matches nothing rather than failing.
"""

from __future__ import annotations
import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar, Union, TYPE_CHECKING

from ..runtime.codec import b58encode, int_to_le_bytes
from ..runtime.errors import UnexpectedTypeError
from ..runtime.publickey import PublicKey
from ..rpc.types import UnparsedAccount
from .gma_builder import GmaBuilder, GmaBuilderOptions

if TYPE_CHECKING:
    from ..client import LedgerClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
B = TypeVar("B", bound="GpaBuilder")

GpaSortCallback = Callable[[UnparsedAccount, UnparsedAccount], int]
WhereValue = Union[str, bytes, bytearray, PublicKey, int]


@dataclass(frozen=True)
class MemcmpFilter:
    """Exact match of base-58 ``bytes`` at ``offset``."""
    offset: int
    bytes: str

    def to_dict(self) -> Dict[str, Any]:
        return {"memcmp": {"offset": self.offset, "bytes": self.bytes}}


@dataclass(frozen=True)
class DataSizeFilter:
    """Exact total account data length."""
    data_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {"dataSize": self.data_size}


GpaFilter = Union[MemcmpFilter, DataSizeFilter, Dict[str, Any]]


def encode_comparand(value: WhereValue, byte_length: Optional[int] = None) -> str:
    """
    Normalize a ``where`` value to the base-58 text the node matches on.

    Args:
        value: Base-58 string (used as is), raw bytes, a public key, or a
            non-negative integer encoded little-endian
        byte_length: Fixed width for integers; minimal width when omitted

    Raises:
        UnexpectedTypeError: If the value type is not supported
    """
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return b58encode(bytes(value))
    if isinstance(value, PublicKey):
        return value.to_base58()
    if isinstance(value, int) and not isinstance(value, bool):
        return b58encode(int_to_le_bytes(value, byte_length))
    raise UnexpectedTypeError("value", type(value).__name__, "str | bytes | PublicKey | int")


class GpaBuilder:
    """
    Fluent builder for program-account scans.

    The builder is mutable; every configuration method returns the builder.
    Terminal reads never change its state, so ``get()`` may be called any
    number of times.

    Example:
        ```python
        accounts = await (
            GpaBuilder(client, token_program)
            .where_size(165)
            .where(32, owner)
            .get()
        )
        ```
    """

    def __init__(self, client: "LedgerClient", program_id: PublicKey):
        self.client = client
        self.program_id = program_id
        self._config: Dict[str, Any] = {}
        self._filters: List[GpaFilter] = []
        self._data_slice: Optional[Dict[str, int]] = None
        self._sort_callback: Optional[GpaSortCallback] = None

    @classmethod
    def from_builder(cls: Type[B], builder: GpaBuilder) -> B:
        """
        Create a builder of this class carrying another builder's state.

        Filters, data slice, config and comparator are copied, so further
        changes to either builder do not affect the other.
        """
        new_builder = cls(builder.client, builder.program_id)
        new_builder._config = dict(builder._config)
        new_builder._filters = list(builder._filters)
        new_builder._data_slice = dict(builder._data_slice) if builder._data_slice is not None else None
        new_builder._sort_callback = builder._sort_callback
        return new_builder

    def merge_config(self: B, config: Dict[str, Any]) -> B:
        """
        Merge raw ``getProgramAccounts`` configuration.

        ``filters`` and ``dataSlice`` entries are routed through
        ``add_filter`` and ``slice``.
        """
        config = dict(config)
        filters = config.pop("filters", None)
        data_slice = config.pop("dataSlice", None)
        self._config.update(config)
        if filters:
            self.add_filter(*filters)
        if data_slice is not None:
            self.slice(data_slice["offset"], data_slice["length"])
        return self

    def add_filter(self: B, *filters: GpaFilter) -> B:
        self._filters = self._filters + list(filters)
        return self

    def where(self: B, offset: int, value: WhereValue, byte_length: Optional[int] = None) -> B:
        """
        Require ``value`` at byte ``offset`` of the account data.

        Args:
            offset: Byte offset into the account data
            value: Comparand; see ``encode_comparand``
            byte_length: Fixed width for integer comparands
        """
        return self.add_filter(MemcmpFilter(offset, encode_comparand(value, byte_length)))

    def where_size(self: B, data_size: int) -> B:
        return self.add_filter(DataSizeFilter(data_size))

    def slice(self: B, offset: int, length: int) -> B:
        self._data_slice = {"offset": offset, "length": length}
        return self

    def without_data(self: B) -> B:
        return self.slice(0, 0)

    def sort_using(self: B, callback: GpaSortCallback) -> B:
        """Order results with a comparator returning a negative, zero or positive int."""
        self._sort_callback = callback
        return self

    def get_filters(self) -> List[GpaFilter]:
        return list(self._filters)

    def get_config(self) -> Dict[str, Any]:
        """The wire configuration sent to the node."""
        config = dict(self._config)
        if self._filters:
            config["filters"] = [f if isinstance(f, dict) else f.to_dict() for f in self._filters]
        if self._data_slice is not None:
            config["dataSlice"] = dict(self._data_slice)
        return config

    async def get(self) -> List[UnparsedAccount]:
        config = self.get_config()
        logger.debug(f"Scanning program {self.program_id} with {len(config.get('filters', []))} filter(s)")
        accounts = await self.client.rpc().get_program_accounts(self.program_id, config)

        if self._sort_callback is not None:
            accounts = sorted(accounts, key=functools.cmp_to_key(self._sort_callback))

        return accounts

    async def get_and_map(self, callback: Callable[[UnparsedAccount], T]) -> List[T]:
        return [callback(account) for account in await self.get()]

    async def get_public_keys(self) -> List[PublicKey]:
        return await self.get_and_map(lambda account: account.public_key)

    async def get_data_as_public_keys(self) -> List[PublicKey]:
        """Read each account's (sliced) data as a 32-byte public key."""
        return await self.get_and_map(lambda account: PublicKey(account.data))

    async def get_multiple_accounts(
        self,
        callback: Optional[Callable[[UnparsedAccount], PublicKey]] = None,
        options: Optional[GmaBuilderOptions] = None,
    ) -> GmaBuilder:
        """
        Map scan results to addresses and hand them to a bulk fetcher.

        Args:
            callback: Address extractor; defaults to reading the data as a key
            options: Bulk fetcher options
        """
        callback = callback or (lambda account: PublicKey(account.data))
        return GmaBuilder(self.client, await self.get_and_map(callback), options)


__all__ = [
    "GpaBuilder",
    "GpaSortCallback",
    "GpaFilter",
    "MemcmpFilter",
    "DataSizeFilter",
    "encode_comparand",
]
