"""
Tests for client configuration, composition and plugins.
"""

import logging
from unittest.mock import Mock

import pytest

from helpers import FakeConnection, make_signer
from ledger_client import CLUSTER_ENDPOINTS, ClientConfig, LedgerClient, devnet_client
from ledger_client.client import resolve_cluster
from ledger_client.modules import SystemClient, TokenClient
from ledger_client.rpc.connection import HttpConnection
from ledger_client.signers.signer import GuestIdentitySigner


class TestClientConfig:
    """Test configuration defaults and validation"""

    def test_defaults(self):
        config = ClientConfig()
        assert config.endpoint == CLUSTER_ENDPOINTS["localnet"]
        assert config.commitment == "confirmed"
        assert config.timeout == 30.0

    def test_cluster_names_resolve(self):
        assert ClientConfig(endpoint="devnet").endpoint == "https://api.devnet.solana.com"

    def test_invalid_timeout(self):
        with pytest.raises(ValueError):
            ClientConfig(timeout=0)

    @pytest.mark.parametrize("endpoint,cluster", [
        ("https://api.mainnet-beta.solana.com", "mainnet-beta"),
        ("https://api.devnet.solana.com/", "devnet"),
        ("https://my-devnet-node.example", "devnet"),
        ("http://localhost:8899", "localnet"),
        ("https://rpc.example.com", "custom"),
    ])
    def test_resolve_cluster(self, endpoint, cluster):
        assert resolve_cluster(endpoint) == cluster


class TestLedgerClient:
    """Test composition and module access"""

    def test_make_installs_core_plugins(self, connection):
        client = LedgerClient.make(connection)

        assert isinstance(client.system(), SystemClient)
        assert isinstance(client.tokens(), TokenClient)
        assert client.programs().get("SystemProgram")
        assert client.programs().get("TokenProgram")
        assert client.operations().has("TransferSolOperation")

    def test_unknown_module(self, bare_client):
        with pytest.raises(AttributeError):
            bare_client.nothing()

    def test_use_installs_plugin(self, bare_client):
        plugin = Mock()
        assert bare_client.use(plugin) is bare_client
        plugin.install.assert_called_once_with(bare_client)

    def test_identity(self, bare_client):
        assert isinstance(bare_client.identity(), GuestIdentitySigner)
        signer = make_signer("identity")
        assert bare_client.set_identity(signer).identity() is signer

    def test_cluster_override(self):
        client = LedgerClient(FakeConnection("https://rpc.example.com"), ClientConfig(cluster="devnet"))
        assert client.cluster == "devnet"

    def test_debug_sets_log_level(self):
        logger = logging.getLogger("ledger_client")
        previous = logger.level
        try:
            LedgerClient(FakeConnection(), ClientConfig(debug=True))
            assert logger.level == logging.DEBUG
        finally:
            logger.setLevel(previous)

    @pytest.mark.asyncio
    async def test_make_from_cluster_name(self):
        async with LedgerClient.make("devnet") as client:
            assert isinstance(client.connection, HttpConnection)
            assert client.connection.rpc_endpoint == "https://api.devnet.solana.com"
            assert client.cluster == "devnet"

    @pytest.mark.asyncio
    async def test_endpoint_overrides_config(self):
        config = ClientConfig(commitment="finalized", timeout=5)
        client = LedgerClient.make("testnet", config)

        assert client.connection.rpc_endpoint == "https://api.testnet.solana.com"
        assert client.connection.commitment == "finalized"
        assert config.endpoint == CLUSTER_ENDPOINTS["localnet"]
        await client.close()

    @pytest.mark.asyncio
    async def test_factories(self):
        client = devnet_client(commitment="processed")
        assert client.cluster == "devnet"
        assert client.config.commitment == "processed"
        await client.close()
