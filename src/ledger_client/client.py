"""
Ledger client composition root.

A ``LedgerClient`` owns one operation registry, one program registry, one
RPC client and the current identity. Plugins install operations, programs
and module facades into a client instance; nothing is shared between
clients.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Union

from .operations.client import OperationClient
from .programs.client import ProgramClient
from .rpc.client import RpcClient
from .rpc.connection import Connection, HttpConnection
from .rpc.types import Commitment
from .signers.signer import GuestIdentitySigner, Signer

logger = logging.getLogger(__name__)

CLUSTER_ENDPOINTS: Dict[str, str] = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "localnet": "http://127.0.0.1:8899",
}


@dataclass
class ClientConfig:
    """Configuration for a ledger client."""

    endpoint: str = CLUSTER_ENDPOINTS["localnet"]
    commitment: Optional[Commitment] = "confirmed"
    timeout: float = 30.0
    cluster: Optional[str] = None
    debug: bool = False

    def __post_init__(self):
        if self.endpoint in CLUSTER_ENDPOINTS:
            self.endpoint = CLUSTER_ENDPOINTS[self.endpoint]
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")


def resolve_cluster(endpoint: str) -> str:
    """
    Guess the cluster name from an RPC endpoint.

    Returns:
        One of ``mainnet-beta``, ``devnet``, ``testnet``, ``localnet`` or ``custom``
    """
    for cluster, url in CLUSTER_ENDPOINTS.items():
        if endpoint.rstrip("/") == url:
            return cluster
    if "devnet" in endpoint:
        return "devnet"
    if "testnet" in endpoint:
        return "testnet"
    if "mainnet" in endpoint:
        return "mainnet-beta"
    if "localhost" in endpoint or "127.0.0.1" in endpoint:
        return "localnet"
    return "custom"


class LedgerClient:
    """
    Entry point of the SDK.

    Example:
        ```python
        client = LedgerClient.make("devnet").set_identity(KeypairSigner.generate())
        await client.system().transfer_sol(to=recipient, lamports=1_000)
        ```
    """

    def __init__(self, connection: Connection, config: Optional[ClientConfig] = None):
        """
        Initialize the client.

        Args:
            connection: Transport used for every read and send
            config: Client configuration; derived from the connection when omitted
        """
        self.config = config or ClientConfig(endpoint=connection.rpc_endpoint or CLUSTER_ENDPOINTS["localnet"])
        self.connection = connection
        self.cluster = self.config.cluster or resolve_cluster(connection.rpc_endpoint or self.config.endpoint)

        if self.config.debug:
            logging.getLogger("ledger_client").setLevel(logging.DEBUG)

        self._identity: Signer = GuestIdentitySigner()
        self._operations = OperationClient(self)
        self._programs = ProgramClient(self)
        self._rpc = RpcClient(self)
        self._modules: Dict[str, Any] = {}

    @classmethod
    def make(
        cls,
        endpoint_or_connection: Union[str, Connection, None] = None,
        config: Optional[ClientConfig] = None,
    ) -> LedgerClient:
        """
        Create a client with the core plugins installed.

        Args:
            endpoint_or_connection: Endpoint URL, cluster name or connection
            config: Client configuration
        """
        from .modules import core_plugins

        if isinstance(endpoint_or_connection, Connection):
            connection = endpoint_or_connection
        else:
            if config is None:
                config = ClientConfig(endpoint=endpoint_or_connection or CLUSTER_ENDPOINTS["localnet"])
            elif endpoint_or_connection is not None:
                config = replace(config, endpoint=endpoint_or_connection)
            connection = HttpConnection(config.endpoint, config.commitment, config.timeout)

        client = cls(connection, config)
        for plugin in core_plugins():
            client.use(plugin)
        return client

    def use(self, plugin: Any) -> LedgerClient:
        """Install a plugin, any object with an ``install(client)`` method."""
        logger.debug(f"Installing plugin {type(plugin).__name__}")
        plugin.install(self)
        return self

    def operations(self) -> OperationClient:
        return self._operations

    def programs(self) -> ProgramClient:
        return self._programs

    def rpc(self) -> RpcClient:
        return self._rpc

    def identity(self) -> Signer:
        return self._identity

    def set_identity(self, identity: Signer) -> LedgerClient:
        self._identity = identity
        return self

    def register_module(self, name: str, module: Any) -> LedgerClient:
        """Expose a module facade as ``client.<name>()``."""
        self._modules[name] = module
        return self

    def __getattr__(self, name: str) -> Callable[[], Any]:
        modules = self.__dict__.get("_modules", {})
        if name in modules:
            return lambda: modules[name]
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    async def close(self) -> None:
        close = getattr(self.connection, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> LedgerClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"LedgerClient(cluster='{self.cluster}', identity={self._identity!r})"


# Convenience functions for quick client creation
def mainnet_client(**kwargs) -> LedgerClient:
    """Create a client for mainnet-beta."""
    return LedgerClient.make(config=ClientConfig(endpoint="mainnet-beta", **kwargs))


def devnet_client(**kwargs) -> LedgerClient:
    """Create a client for devnet."""
    return LedgerClient.make(config=ClientConfig(endpoint="devnet", **kwargs))


def local_client(**kwargs) -> LedgerClient:
    """Create a client for a local test validator."""
    return LedgerClient.make(config=ClientConfig(endpoint="localnet", **kwargs))


__all__ = [
    "LedgerClient",
    "ClientConfig",
    "CLUSTER_ENDPOINTS",
    "resolve_cluster",
    "mainnet_client",
    "devnet_client",
    "local_client",
]
