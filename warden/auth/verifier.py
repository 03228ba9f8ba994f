"""Credential verifiers.

The engine never inspects stored secrets itself; it hands both sides to a
verifier. Implementations:
- PBKDF2Verifier: salted PBKDF2-HMAC hashes (default)
- CallableVerifier: wraps any sync or async verify function
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import inspect
import logging
import secrets
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

DEFAULT_ITERATIONS = 260_000
DEFAULT_ALGORITHM = "sha256"
SALT_BYTES = 16

VerifyFunction = Callable[[str, str, Mapping[str, Any]], Union[bool, Awaitable[bool]]]


class CredentialVerifier(ABC):
    """Abstract credential verifier."""

    @property
    def placeholder_secret(self) -> str:
        """Stored value checked when the login does not exist.

        Verifying against it should cost as much as a real check.
        """
        return ""

    @abstractmethod
    async def verify(self, supplied: str, stored: str, options: Mapping[str, Any]) -> bool:
        """Check a supplied secret against a stored one.

        Args:
            supplied: Secret given by the caller
            stored: Secret stored for the user (typically a hash)
            options: Verifier options from settings

        Returns:
            Whether the secret matches. Internal failures raise.
        """
        pass


def _derive(supplied: str, pepper: str, algorithm: str, salt: bytes, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        algorithm, (supplied + pepper).encode("utf-8"), salt, iterations
    ).hex()


def hash_secret(
    secret: str,
    *,
    iterations: int = DEFAULT_ITERATIONS,
    algorithm: str = DEFAULT_ALGORITHM,
    salt: bytes | None = None,
    pepper: str = "",
) -> str:
    """Hash a secret for storage.

    Format: ``pbkdf2_<algorithm>$<iterations>$<salt hex>$<digest hex>``
    """
    if algorithm not in hashlib.algorithms_guaranteed:
        raise ValueError(f"Unsupported hash algorithm: {algorithm}")
    salt = salt if salt is not None else secrets.token_bytes(SALT_BYTES)
    digest = _derive(secret, pepper, algorithm, salt, iterations)
    return f"pbkdf2_{algorithm}${iterations}${salt.hex()}${digest}"


def _parse_hash(stored: str) -> tuple[str, int, bytes, str] | None:
    parts = stored.split("$")
    if len(parts) != 4 or not parts[0].startswith("pbkdf2_"):
        return None
    algorithm = parts[0][len("pbkdf2_"):]
    if algorithm not in hashlib.algorithms_guaranteed:
        return None
    try:
        iterations = int(parts[1])
        salt = bytes.fromhex(parts[2])
    except ValueError:
        return None
    if iterations < 1:
        return None
    return algorithm, iterations, salt, parts[3]


class PBKDF2Verifier(CredentialVerifier):
    """Verify secrets hashed with hash_secret().

    Hashing is CPU-bound and runs in a worker thread.
    """

    def __init__(self, iterations: int = DEFAULT_ITERATIONS, algorithm: str = DEFAULT_ALGORITHM):
        if algorithm not in hashlib.algorithms_guaranteed:
            raise ValueError(f"Unsupported hash algorithm: {algorithm}")
        self.iterations = iterations
        self.algorithm = algorithm
        digest_size = hashlib.new(algorithm).digest_size
        self._placeholder = (
            f"pbkdf2_{algorithm}${iterations}${'00' * SALT_BYTES}${'00' * digest_size}"
        )

    @property
    def placeholder_secret(self) -> str:
        return self._placeholder

    def verify_sync(self, supplied: str, stored: str, options: Mapping[str, Any]) -> bool:
        parsed = _parse_hash(stored)
        if parsed is None:
            logger.warning("Stored secret is not a recognised PBKDF2 hash")
            return False

        algorithm, iterations, salt, expected = parsed
        actual = _derive(supplied, options.get("pepper", ""), algorithm, salt, iterations)
        return hmac.compare_digest(actual, expected)

    async def verify(self, supplied: str, stored: str, options: Mapping[str, Any]) -> bool:
        return await asyncio.to_thread(self.verify_sync, supplied, stored, options)


class CallableVerifier(CredentialVerifier):
    """Adapt a plain function (sync or async) to the verifier interface."""

    def __init__(self, func: VerifyFunction, placeholder_secret: str = ""):
        self.func = func
        self._placeholder = placeholder_secret

    @property
    def placeholder_secret(self) -> str:
        return self._placeholder

    async def verify(self, supplied: str, stored: str, options: Mapping[str, Any]) -> bool:
        result = self.func(supplied, stored, options)
        if inspect.isawaitable(result):
            result = await result
        return bool(result)
