"""
Transaction signers.
"""

from .signer import (
    GuestIdentitySigner,
    IdentitySigner,
    KeypairSigner,
    Signer,
    SignerError,
    SignerHistogram,
    SignerKind,
    dedupe_signers,
    get_signer_histogram,
    is_identity_signer,
    is_keypair_signer,
    is_signer,
)

__all__ = [
    "Signer",
    "SignerKind",
    "SignerError",
    "KeypairSigner",
    "IdentitySigner",
    "GuestIdentitySigner",
    "SignerHistogram",
    "dedupe_signers",
    "get_signer_histogram",
    "is_signer",
    "is_keypair_signer",
    "is_identity_signer",
]
