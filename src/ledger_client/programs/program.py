"""
On-chain program descriptors.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from ..runtime.publickey import PublicKey

ErrorResolver = Callable[[BaseException], Optional[BaseException]]

_CUSTOM_ERROR = re.compile(r"custom program error: (0x[0-9a-fA-F]+)")


@dataclass
class Program:
    """
    A program the SDK knows by name and address.

    Attributes:
        name: Registry name, e.g. ``"TokenProgram"``
        address: Program address
        clusters: Clusters the program is deployed on; None means all
        error_resolver: Maps a failed send to a program specific error, or None
    """
    name: str
    address: PublicKey
    clusters: Optional[Sequence[str]] = None
    error_resolver: Optional[ErrorResolver] = None

    def deployed_on(self, cluster: str) -> bool:
        return self.clusters is None or cluster in self.clusters


def parse_custom_error_code(error: Any) -> Optional[int]:
    """
    Extract the first ``custom program error: 0x..`` code.

    Args:
        error: An error carrying ``logs``, a list of log lines, or a message

    Returns:
        The numeric code, or None if no custom error is reported
    """
    if isinstance(error, str):
        lines = [error]
    elif isinstance(error, (list, tuple)):
        lines = list(error)
    else:
        lines = list(getattr(error, "logs", None) or []) + [str(getattr(error, "message", error))]

    for line in lines:
        match = _CUSTOM_ERROR.search(line)
        if match is not None:
            return int(match.group(1), 16)
    return None


__all__ = ["Program", "ErrorResolver", "parse_custom_error_code"]
