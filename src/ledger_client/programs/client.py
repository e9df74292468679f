"""
Program registry owned by one client.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Union, TYPE_CHECKING

from ..runtime.errors import ProgramNotRecognizedError
from ..runtime.publickey import PublicKey
from .program import Program

if TYPE_CHECKING:
    from ..client import LedgerClient

logger = logging.getLogger(__name__)


class ProgramClient:
    """
    Programs registered by plugins, looked up by name or address.

    Lookups only see programs deployed on the client's cluster. Overrides
    passed to a lookup come first, then the most recently registered program
    wins.
    """

    def __init__(self, client: "LedgerClient"):
        self._client = client
        self._programs: List[Program] = []

    def register(self, program: Program) -> ProgramClient:
        logger.debug(f"Registered program {program.name} at {program.address}")
        self._programs.append(program)
        return self

    def all(self, overrides: Sequence[Program] = ()) -> List[Program]:
        cluster = self._client.cluster
        registered = [p for p in reversed(self._programs) if p.deployed_on(cluster)]
        return list(overrides) + registered

    def get(self, name_or_address: Union[str, PublicKey], overrides: Sequence[Program] = ()) -> Program:
        """
        Find a program by name, or by address when given a PublicKey.

        Raises:
            ProgramNotRecognizedError: If no matching program is registered
        """
        if isinstance(name_or_address, str):
            program = next((p for p in self.all(overrides) if p.name == name_or_address), None)
        else:
            program = next((p for p in self.all(overrides) if p.address == name_or_address), None)

        if program is None:
            raise ProgramNotRecognizedError(name_or_address, self._client.cluster)
        return program

    def get_by_address(self, address: PublicKey, overrides: Sequence[Program] = ()) -> Optional[Program]:
        try:
            return self.get(address, overrides)
        except ProgramNotRecognizedError:
            return None


__all__ = ["ProgramClient"]
