"""
Plugins installed by ``LedgerClient.make``.
"""

from typing import List

from .system import SystemClient, SystemPlugin, system_module
from .token import TokenClient, TokenPlugin, token_module


def core_plugins() -> List:
    return [system_module(), token_module()]


__all__ = [
    "core_plugins",
    "SystemClient",
    "SystemPlugin",
    "system_module",
    "TokenClient",
    "TokenPlugin",
    "token_module",
]
