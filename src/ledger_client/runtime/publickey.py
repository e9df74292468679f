"""
PublicKey Pydantic custom type for ledger addresses.
"""

from __future__ import annotations
from typing import Any, Union

import base58
from pydantic import GetCoreSchemaHandler
from pydantic_core import CoreSchema, core_schema

PUBLIC_KEY_LENGTH = 32


class PublicKey:
    """Custom Pydantic type for 32-byte ledger addresses, base-58 encoded as text."""

    def __init__(self, value: Union[str, bytes, bytearray, "PublicKey"]):
        if isinstance(value, PublicKey):
            key_bytes = value.to_bytes()
        elif isinstance(value, (bytes, bytearray)):
            key_bytes = bytes(value)
        elif isinstance(value, str):
            try:
                key_bytes = base58.b58decode(value)
            except ValueError as e:
                raise ValueError(f"Invalid base-58 public key: {value!r}") from e
        else:
            raise ValueError(f"PublicKey must be built from str, bytes or PublicKey, got {type(value)}")

        if len(key_bytes) != PUBLIC_KEY_LENGTH:
            raise ValueError(f"PublicKey must be {PUBLIC_KEY_LENGTH} bytes, got {len(key_bytes)}")

        self._key_bytes = key_bytes

    @classmethod
    def default(cls) -> PublicKey:
        """The all-zero address, used by the system program."""
        return cls(bytes(PUBLIC_KEY_LENGTH))

    @classmethod
    def from_base58(cls, value: str) -> PublicKey:
        return cls(value)

    def to_bytes(self) -> bytes:
        return self._key_bytes

    def to_base58(self) -> str:
        return base58.b58encode(self._key_bytes).decode("ascii")

    def equals(self, other: Any) -> bool:
        return self == other

    def __bytes__(self) -> bytes:
        return self._key_bytes

    def __str__(self) -> str:
        return self.to_base58()

    def __repr__(self) -> str:
        return f"PublicKey('{self.to_base58()}')"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, PublicKey):
            return self._key_bytes == other._key_bytes
        if isinstance(other, str):
            return self.to_base58() == other
        return False

    def __hash__(self) -> int:
        return hash(self._key_bytes)

    @classmethod
    def __get_pydantic_core_schema__(
        cls,
        source_type: Any,
        handler: GetCoreSchemaHandler,
    ) -> CoreSchema:
        """Return a Pydantic CoreSchema that validates the PublicKey."""
        return core_schema.no_info_before_validator_function(
            cls._validate,
            core_schema.is_instance_schema(cls),
        )

    @classmethod
    def _validate(cls, value: Any) -> PublicKey:
        """Validate and convert the input to a PublicKey."""
        if isinstance(value, cls):
            return value
        if isinstance(value, (str, bytes, bytearray)):
            return cls(value)
        raise ValueError(f"Invalid PublicKey: {value}")


def to_public_key(value: Any) -> PublicKey:
    """
    Normalize an address-like value.

    Accepts a PublicKey, a base-58 string, raw bytes, or any object with a
    ``public_key`` attribute (such as a Signer).
    """
    if isinstance(value, PublicKey):
        return value
    if hasattr(value, "public_key"):
        return to_public_key(value.public_key)
    return PublicKey(value)


__all__ = ["PublicKey", "PUBLIC_KEY_LENGTH", "to_public_key"]
