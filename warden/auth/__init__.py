"""Warden Authentication Package.

Login/secret authentication with pluggable credential verifiers.

Usage:
    from warden.auth import PBKDF2Verifier, hash_secret

    stored = hash_secret("correct horse")
    ok = await PBKDF2Verifier().verify("correct horse", stored, {})
"""

from warden.auth.verifier import (
    CallableVerifier,
    CredentialVerifier,
    PBKDF2Verifier,
    hash_secret,
)
from warden.auth.authenticator import Authenticator

__all__ = [
    "Authenticator",
    "CallableVerifier",
    "CredentialVerifier",
    "PBKDF2Verifier",
    "hash_secret",
]
