r"""
Signer interface for ledger transactions.

Two kinds of signer exist and both satisfy the same ``{public_key,
sign_message}`` capability:

- ``KeypairSigner`` holds the secret key and signs locally.
- ``IdentitySigner`` only knows the public key and delegates signing to an
  external identity (wallet, hardware device, remote service).

Two signers are the same signer iff their public keys are equal, whatever
their kind.
"""

from __future__ import annotations
import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Union

from ..crypto.ed25519 import Ed25519PrivateKey
from ..runtime.codec import unique_by
from ..runtime.errors import LedgerError, OperationUnauthorizedForGuestsError
from ..runtime.publickey import PublicKey

SignFunction = Callable[[bytes], Union[bytes, Awaitable[bytes]]]


class SignerError(LedgerError):
    """Base exception for signer operations."""
    pass


class SignerKind(str, Enum):
    """The concrete signer variant."""
    KEYPAIR = "keypair"
    IDENTITY = "identity"


class Signer(ABC):
    """
    Base signer interface.

    All signers expose a public key and an asynchronous ``sign_message``.
    """

    kind: SignerKind

    @property
    @abstractmethod
    def public_key(self) -> PublicKey:
        """
        Get the signer's address.

        Returns:
            Public key of the signer
        """
        pass

    @abstractmethod
    async def sign_message(self, message: bytes) -> bytes:
        """
        Sign a serialized transaction message.

        Args:
            message: Bytes to sign

        Returns:
            64-byte signature

        Raises:
            SignerError: If signing fails
        """
        pass

    def same_as(self, other: Any) -> bool:
        """Check whether another signer shares this signer's public key."""
        return is_signer(other) and self.public_key == other.public_key

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}('{self.public_key}')"


class KeypairSigner(Signer):
    """Signer holding an Ed25519 secret key."""

    kind = SignerKind.KEYPAIR

    def __init__(self, private_key: Ed25519PrivateKey):
        """
        Initialize keypair signer.

        Args:
            private_key: Ed25519 private key
        """
        self.private_key = private_key
        self._public_key = private_key.public_key().to_public_key()

    @classmethod
    def generate(cls) -> KeypairSigner:
        """Generate a signer with a fresh random keypair."""
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_secret_key(cls, secret_key: bytes) -> KeypairSigner:
        """
        Create a signer from secret key material.

        Accepts the 32-byte seed or the 64-byte ``seed || public key`` form.
        """
        if len(secret_key) == 64:
            signer = cls(Ed25519PrivateKey(secret_key[:32]))
            if signer.public_key.to_bytes() != bytes(secret_key[32:]):
                raise SignerError("Secret key does not match its embedded public key")
            return signer
        return cls(Ed25519PrivateKey(secret_key))

    @classmethod
    def from_seed(cls, seed: Union[str, bytes]) -> KeypairSigner:
        """Deterministic signer, for tests and fixtures."""
        return cls(Ed25519PrivateKey.from_seed(seed))

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    @property
    def secret_key(self) -> bytes:
        """64-byte ``seed || public key`` secret key."""
        return self.private_key.to_bytes() + self._public_key.to_bytes()

    def sign(self, message: bytes) -> bytes:
        """Sign synchronously with the local secret key."""
        return self.private_key.sign(message)

    async def sign_message(self, message: bytes) -> bytes:
        return self.sign(message)

    def verify(self, signature: bytes, message: bytes) -> bool:
        return self.private_key.public_key().verify(signature, message)


class IdentitySigner(Signer):
    """Signer that delegates signing to an external identity."""

    kind = SignerKind.IDENTITY

    def __init__(self, public_key: Union[PublicKey, str, bytes], sign_fn: SignFunction):
        """
        Initialize identity signer.

        Args:
            public_key: Address of the identity
            sign_fn: Sync or async callable producing a signature for a message
        """
        self._public_key = PublicKey(public_key)
        self._sign_fn = sign_fn

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    async def sign_message(self, message: bytes) -> bytes:
        signature = self._sign_fn(message)
        if inspect.isawaitable(signature):
            signature = await signature
        return bytes(signature)


class GuestIdentitySigner(IdentitySigner):
    """Identity used when no wallet is connected; it cannot sign."""

    def __init__(self, public_key: Optional[PublicKey] = None):
        super().__init__(public_key or PublicKey.default(), self._refuse)

    @staticmethod
    def _refuse(message: bytes) -> bytes:
        raise OperationUnauthorizedForGuestsError("sign_message")


@dataclass
class SignerHistogram:
    """Deduplicated signers split by kind, in first-occurrence order."""
    all: List[Signer] = field(default_factory=list)
    keypairs: List[KeypairSigner] = field(default_factory=list)
    identities: List[IdentitySigner] = field(default_factory=list)


def is_signer(value: Any) -> bool:
    return isinstance(value, Signer)


def is_keypair_signer(value: Any) -> bool:
    return isinstance(value, Signer) and value.kind == SignerKind.KEYPAIR


def is_identity_signer(value: Any) -> bool:
    return isinstance(value, Signer) and value.kind == SignerKind.IDENTITY


def dedupe_signers(signers: Iterable[Signer]) -> List[Signer]:
    """
    Drop repeated public keys, keeping the first signer seen for each.

    The retained object matters: a keypair and an identity sharing a key are
    not interchangeable when signing.
    """
    return unique_by(signers, lambda signer: signer.public_key)


def get_signer_histogram(signers: Iterable[Signer]) -> SignerHistogram:
    histogram = SignerHistogram()
    for signer in dedupe_signers(signers):
        histogram.all.append(signer)
        if is_keypair_signer(signer):
            histogram.keypairs.append(signer)
        else:
            histogram.identities.append(signer)
    return histogram


__all__ = [
    "Signer",
    "SignerKind",
    "SignerError",
    "KeypairSigner",
    "IdentitySigner",
    "GuestIdentitySigner",
    "SignerHistogram",
    "SignFunction",
    "is_signer",
    "is_keypair_signer",
    "is_identity_signer",
    "dedupe_signers",
    "get_signer_histogram",
]
