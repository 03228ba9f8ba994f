"""Tests for credential verifiers."""

import pytest

from warden.auth.verifier import CallableVerifier, PBKDF2Verifier, hash_secret

ITERATIONS = 1_000


@pytest.fixture
def verifier():
    return PBKDF2Verifier(iterations=ITERATIONS)


class TestHashSecret:
    """Test stored hash format."""

    def test_format(self):
        stored = hash_secret("pw", iterations=ITERATIONS, salt=b"\x01" * 16)
        scheme, iterations, salt, digest = stored.split("$")

        assert scheme == "pbkdf2_sha256"
        assert iterations == str(ITERATIONS)
        assert salt == "01" * 16
        assert len(digest) == 64

    def test_random_salt(self):
        assert hash_secret("pw", iterations=ITERATIONS) != hash_secret("pw", iterations=ITERATIONS)

    def test_unsupported_algorithm(self):
        with pytest.raises(ValueError):
            hash_secret("pw", algorithm="md4-nope")


class TestPBKDF2Verifier:
    """Test PBKDF2 verification."""

    @pytest.mark.asyncio
    async def test_match_and_mismatch(self, verifier):
        stored = hash_secret("correctpw", iterations=ITERATIONS)
        assert await verifier.verify("correctpw", stored, {}) is True
        assert await verifier.verify("wrong", stored, {}) is False

    @pytest.mark.asyncio
    async def test_pepper_option(self, verifier):
        stored = hash_secret("pw", iterations=ITERATIONS, pepper="spice")
        assert await verifier.verify("pw", stored, {"pepper": "spice"}) is True
        assert await verifier.verify("pw", stored, {}) is False

    @pytest.mark.asyncio
    async def test_other_algorithm_in_stored_hash(self, verifier):
        """The stored hash, not the verifier default, decides the algorithm."""
        stored = hash_secret("pw", iterations=ITERATIONS, algorithm="sha512")
        assert await verifier.verify("pw", stored, {}) is True

    @pytest.mark.asyncio
    async def test_malformed_stored_value(self, verifier):
        assert await verifier.verify("pw", "plaintext", {}) is False
        assert await verifier.verify("pw", "pbkdf2_sha256$abc$00$00", {}) is False
        assert await verifier.verify("pw", "pbkdf2_sha256$0$00$00", {}) is False

    @pytest.mark.asyncio
    async def test_placeholder_is_well_formed_and_never_matches(self, verifier):
        """The placeholder costs a full derivation and rejects everything."""
        placeholder = verifier.placeholder_secret
        assert placeholder.startswith(f"pbkdf2_sha256${ITERATIONS}$")
        assert await verifier.verify("", placeholder, {}) is False


class TestCallableVerifier:
    """Test the function adapter."""

    @pytest.mark.asyncio
    async def test_sync_function(self):
        verifier = CallableVerifier(lambda supplied, stored, options: supplied == stored)
        assert await verifier.verify("a", "a", {}) is True
        assert await verifier.verify("a", "b", {}) is False

    @pytest.mark.asyncio
    async def test_async_function(self):
        async def verify(supplied, stored, options):
            return supplied == stored

        verifier = CallableVerifier(verify)
        assert await verifier.verify("a", "a", {}) is True

    def test_default_placeholder(self):
        assert CallableVerifier(lambda *args: False).placeholder_secret == ""
