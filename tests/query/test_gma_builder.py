"""
Tests for the chunked bulk account fetcher.
"""

import asyncio
import math

import pytest
from pydantic import ValidationError

from helpers import make_public_key, make_public_keys
from ledger_client.query.gma_builder import DEFAULT_CHUNK_SIZE, GmaBuilder, GmaBuilderOptions
from ledger_client.rpc.types import MissingAccount, UnparsedAccount
from ledger_client.runtime.errors import RpcRequestError


class TestExistenceTagging:
    """Test existing and missing slots"""

    @pytest.mark.asyncio
    async def test_missing_and_existing(self, bare_client, connection):
        """Test [X, Y, Z] with only Y on chain"""
        x, y, z = make_public_key("x"), make_public_key("y"), make_public_key("z")
        connection.add_account(y, b"hello", lamports=7)

        result = await GmaBuilder(bare_client, [x, y, z]).get()

        assert result == [
            MissingAccount(x),
            UnparsedAccount(y, False, connection.accounts[y].owner, 7, b"hello", 0),
            MissingAccount(z),
        ]
        assert [account.exists for account in result] == [False, True, False]

    @pytest.mark.asyncio
    async def test_empty_list(self, bare_client, connection):
        assert await GmaBuilder(bare_client, []).get() == []
        assert connection.calls_to("get_multiple_accounts_info") == []


class TestChunking:
    """Test chunks are invisible in the result"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("chunk_size", [1, 7, 100, 1000])
    async def test_chunk_size_does_not_change_result(self, bare_client, connection, chunk_size):
        """Test 250 addresses give the same ordered result for any chunk size"""
        addresses = make_public_keys(250)
        for address in addresses[::2]:
            connection.add_account(address, address.to_bytes()[:4])

        result = await GmaBuilder(bare_client, addresses).chunk_by(chunk_size).get()

        assert [account.public_key for account in result] == addresses
        assert [account.exists for account in result] == [i % 2 == 0 for i in range(250)]
        calls = connection.calls_to("get_multiple_accounts_info")
        assert len(calls) == math.ceil(250 / chunk_size)
        assert all(len(call[1]) <= chunk_size for call in calls)

    @pytest.mark.asyncio
    async def test_order_kept_when_chunks_finish_out_of_order(self, bare_client, connection):
        addresses = make_public_keys(30)
        for address in addresses:
            connection.add_account(address, b"x")
        connection.chunk_delay = lambda index: 0.01 * (3 - index)

        result = await GmaBuilder(bare_client, addresses).chunk_by(10).get()

        assert [account.public_key for account in result] == addresses

    @pytest.mark.asyncio
    async def test_chunk_failure_fails_the_fetch(self, bare_client, connection):
        """Test one failed chunk fails the whole call and cancels the others"""
        addresses = make_public_keys(30)
        connection.fail_on_chunk = 1
        connection.chunk_delay = lambda index: 0 if index == 1 else 1.0

        with pytest.raises(RpcRequestError, match="chunk 1 failed"):
            await GmaBuilder(bare_client, addresses).chunk_by(10).get()

        await asyncio.sleep(0.01)
        assert connection.canceled_chunks == 2

    @pytest.mark.asyncio
    async def test_commitment_is_forwarded(self, bare_client, connection):
        options = GmaBuilderOptions(chunk_size=5, commitment="finalized")
        await GmaBuilder(bare_client, make_public_keys(6), options).get()

        calls = connection.calls_to("get_multiple_accounts_info")
        assert [call[2] for call in calls] == ["finalized", "finalized"]

    def test_defaults_and_validation(self, bare_client):
        builder = GmaBuilder.make(bare_client, make_public_keys(2))
        assert builder.get_chunk_size() == DEFAULT_CHUNK_SIZE
        assert GmaBuilderOptions(chunkSize=3).chunk_size == 3
        with pytest.raises(ValueError):
            builder.chunk_by(0)
        with pytest.raises(ValidationError):
            GmaBuilderOptions(chunk_size=0)

    def test_add_public_keys(self, bare_client):
        first, second = make_public_keys(2)
        builder = GmaBuilder(bare_client, [first])
        keys = builder.get_public_keys()
        builder.add_public_keys([second])
        assert keys == [first]
        assert builder.get_public_keys() == [first, second]


class TestPagination:
    """Test slices fetch only the requested addresses"""

    @pytest.fixture
    def addresses(self):
        return make_public_keys(10, prefix="page")

    async def fetched(self, connection):
        return [key for call in connection.calls_to("get_multiple_accounts_info") for key in call[1]]

    @pytest.mark.asyncio
    async def test_get_first(self, bare_client, connection, addresses):
        result = await GmaBuilder(bare_client, addresses).get_first(3)
        assert [account.public_key for account in result] == addresses[:3]
        assert await self.fetched(connection) == addresses[:3]

    @pytest.mark.asyncio
    async def test_get_first_default_and_clamp(self, bare_client, addresses):
        builder = GmaBuilder(bare_client, addresses)
        assert [a.public_key for a in await builder.get_first()] == addresses[:1]
        assert [a.public_key for a in await builder.get_first(100)] == addresses

    @pytest.mark.asyncio
    async def test_get_last(self, bare_client, connection, addresses):
        result = await GmaBuilder(bare_client, addresses).get_last(2)
        assert [account.public_key for account in result] == addresses[8:]
        assert await self.fetched(connection) == addresses[8:]

    @pytest.mark.asyncio
    async def test_get_between(self, bare_client, addresses):
        builder = GmaBuilder(bare_client, addresses)
        assert [a.public_key for a in await builder.get_between(2, 5)] == addresses[2:5]
        assert [a.public_key for a in await builder.get_between(5, 2)] == addresses[2:5]

    @pytest.mark.asyncio
    async def test_get_page(self, bare_client, addresses):
        builder = GmaBuilder(bare_client, addresses)
        assert [a.public_key for a in await builder.get_page(2, 3)] == addresses[3:6]
        assert [a.public_key for a in await builder.get_page(4, 3)] == addresses[9:]

    @pytest.mark.asyncio
    async def test_first_page_starts_at_first_address(self, bare_client, addresses):
        builder = GmaBuilder(bare_client, addresses)
        assert [a.public_key for a in await builder.get_page(1, 3)] == addresses[:3]
        assert [a.public_key for a in await builder.get_between(0, 3)] == addresses[:3]
        assert [a.public_key for a in await builder.get_between(-4, 100)] == addresses

    @pytest.mark.asyncio
    async def test_zero_count_fetches_nothing(self, bare_client, connection, addresses):
        builder = GmaBuilder(bare_client, addresses)
        assert await builder.get_first(0) == []
        assert await builder.get_last(0) == []
        assert await self.fetched(connection) == []

    @pytest.mark.asyncio
    async def test_get_and_map(self, bare_client, connection, addresses):
        connection.add_account(addresses[0], b"abc")
        builder = GmaBuilder(bare_client, addresses[:2])
        assert await builder.get_and_map(lambda account: account.exists) == [True, False]
