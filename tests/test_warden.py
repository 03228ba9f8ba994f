"""Tests for the Warden entry points."""

import pytest
from pydantic import ValidationError

from warden import (
    MISSING,
    AuthenticatedUser,
    AuthenticationError,
    AuthorizationError,
    CallableVerifier,
    ConfigurationError,
    Guest,
    Rule,
    UserNotFoundError,
    Warden,
    WardenSettings,
    hash_secret,
)
from warden.authz.resolver import PrincipalResolver

ITERATIONS = 1_000


@pytest.fixture
def settings():
    """Fast hashing for tests."""
    return WardenSettings(pbkdf2_iterations=ITERATIONS)


@pytest.fixture
def options():
    """Raw construction input in the CASL-like shape."""
    return {
        "roles": [
            {"name": "reader", "authorizations": [{"action": "read", "subject": "Article"}]},
            {
                "name": "editor",
                "extends": ["reader"],
                "authorizations": [
                    {"action": "update", "subject": "Article", "conditions": {"authorId": 1}},
                ],
            },
        ],
        "users": [
            {
                "login": "bob",
                "password": hash_secret("correctpw", iterations=ITERATIONS),
                "roles": ["editor"],
            },
            {
                "login": "eve",
                "password": hash_secret("evepw", iterations=ITERATIONS),
                "roles": ["reader"],
                "authorizations": [{"action": "read", "subject": "Article", "inverted": True}],
            },
        ],
        "guest": {"authorizations": [{"action": "read", "subject": "Comment"}]},
    }


@pytest.fixture
def warden(options, settings):
    return Warden(options, settings=settings)


class CountingVerifier:
    """Records verify() calls and accepts one fixed secret."""

    def __init__(self, accepted: str):
        self.accepted = accepted
        self.calls = []

    def __call__(self, supplied, stored, options):
        self.calls.append((supplied, stored, dict(options)))
        return supplied == self.accepted and stored == "stored-" + self.accepted


class TestConstruction:
    """Test building the engine."""

    def test_duplicate_login(self, settings):
        """Duplicate logins are a configuration error."""
        users = [{"login": "bob", "secret": "a"}, {"login": "bob", "secret": "b"}]
        with pytest.raises(ConfigurationError) as exc_info:
            Warden({"users": users}, settings=settings)
        assert exc_info.value.code == "duplicate_login"

    def test_role_cycle_fails_at_startup(self, settings):
        roles = [{"name": "x", "extends": ["y"]}, {"name": "y", "extends": ["x"]}]
        with pytest.raises(ConfigurationError):
            Warden({"roles": roles}, settings=settings)

    def test_invalid_shape(self, settings):
        with pytest.raises(ValidationError):
            Warden({"users": [{"login": "nosecret"}]}, settings=settings)

    def test_default_guest_has_no_rules(self, settings):
        warden = Warden({}, settings=settings)
        assert warden.rules_for(None) == ()
        assert warden.is_authorized(None, "read", "Article") is False


class TestPrincipalResolver:
    """Test principal reference resolution."""

    def test_principal_object_returned_unchanged(self):
        guest = Guest(rules=[Rule.allow("read", "Article")])
        assert PrincipalResolver().resolve(guest) is guest

    def test_none_is_guest(self):
        guest = Guest(roles=["reader"])
        assert PrincipalResolver(guest=guest).resolve(None) is guest

    def test_missing_is_not_guest(self):
        """Undefined principal must never silently become the guest."""
        with pytest.raises(ConfigurationError) as exc_info:
            PrincipalResolver().resolve(MISSING)
        assert exc_info.value.code == "missing_principal"

    def test_unsupported_type(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PrincipalResolver().resolve({"roles": []})
        assert exc_info.value.code == "invalid_principal"


class TestAuthorization:
    """Test is_authorized / ensure_authorization."""

    def test_by_login(self, warden):
        assert warden.is_authorized("bob", "read", "Article") is True
        assert warden.is_authorized("bob", "delete", "Article") is False

    def test_conditions_against_subject_data(self, warden):
        assert warden.is_authorized("bob", "update", "Article", {"authorId": 1})
        assert not warden.is_authorized("bob", "update", "Article", {"authorId": 2})
        assert not warden.is_authorized("bob", "update", "Article")

    def test_own_rules_override_roles(self, warden):
        """Eve's own deny beats her reader role."""
        assert warden.is_authorized("eve", "read", "Article") is False

    def test_unknown_login(self, warden):
        with pytest.raises(AuthorizationError) as exc_info:
            warden.is_authorized("nobody", "read", "Article")
        assert isinstance(exc_info.value, UserNotFoundError)
        assert exc_info.value.code == "user_not_found"

    def test_guest(self, warden):
        """None evaluates against the configured guest."""
        assert warden.is_authorized(None, "read", "Comment") is True
        assert warden.is_authorized(None, "read", "Article") is False

    def test_missing_principal(self, warden):
        with pytest.raises(ConfigurationError):
            warden.is_authorized(MISSING, "read", "Article")

    def test_explicit_principal_with_unknown_role(self, warden):
        """Unresolvable role references surface at request time."""
        with pytest.raises(ConfigurationError) as exc_info:
            warden.is_authorized(Guest(roles=["ghost"]), "read", "Article")
        assert exc_info.value.code == "unknown_role"

    def test_ensure_authorization(self, warden):
        assert warden.ensure_authorization("bob", "read", "Article") is True
        with pytest.raises(AuthorizationError) as exc_info:
            warden.ensure_authorization("bob", "delete", "Article")
        assert exc_info.value.code == "forbidden"
        assert "delete" not in exc_info.value.message

    def test_explain(self, warden):
        decision = warden.explain("eve", "read", "Article")
        assert decision.allowed is False
        assert decision.matched_rule.inverted is True

    def test_rules_for_order(self, warden):
        """Role rules first (parents before children), own rules last."""
        rules = warden.rules_for("bob")
        assert [sorted(r.actions) for r in rules] == [["read"], ["update"]]


class TestAuthentication:
    """Test authenticate / ensure_authentication."""

    @pytest.mark.asyncio
    async def test_correct_secret(self, warden):
        user = await warden.authenticate("bob", "correctpw")

        assert isinstance(user, AuthenticatedUser)
        assert user.login == "bob"
        assert not hasattr(user, "secret")
        assert "secret" not in user.model_dump()

    @pytest.mark.asyncio
    async def test_authenticated_user_is_a_principal(self, warden):
        user = await warden.ensure_authentication("bob", "correctpw")
        assert warden.is_authorized(user, "read", "Article")

    @pytest.mark.asyncio
    async def test_wrong_secret_returns_false(self, warden):
        assert await warden.authenticate("bob", "wrong") is False

    @pytest.mark.asyncio
    async def test_unknown_login_returns_false(self, warden):
        assert await warden.authenticate("nobody", "whatever") is False

    @pytest.mark.asyncio
    async def test_ensure_authentication_raises(self, warden):
        with pytest.raises(AuthenticationError) as exc_info:
            await warden.ensure_authentication("bob", "wrong")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unknown_and_wrong_fail_identically(self, warden):
        """Unknown login and bad secret raise the same error."""
        with pytest.raises(AuthenticationError) as unknown:
            await warden.ensure_authentication("nobody", "x")
        with pytest.raises(AuthenticationError) as wrong:
            await warden.ensure_authentication("bob", "x")
        assert (unknown.value.code, unknown.value.message) == (wrong.value.code, wrong.value.message)

    @pytest.mark.asyncio
    async def test_verifier_called_once_for_unknown_login(self, settings):
        """Enumeration resistance: same verifier call count on both failure paths."""
        counting = CountingVerifier("pw")
        verifier = CallableVerifier(counting, placeholder_secret="placeholder")
        warden = Warden(
            {"users": [{"login": "bob", "secret": "stored-pw"}]},
            verifier=verifier,
            settings=settings,
        )

        assert await warden.authenticate("nobody", "pw") is False
        assert len(counting.calls) == 1
        assert counting.calls[0][:2] == ("", "placeholder")

        assert await warden.authenticate("bob", "bad") is False
        assert len(counting.calls) == 2

        assert await warden.authenticate("bob", "pw")
        assert counting.calls[-1][:2] == ("pw", "stored-pw")

    @pytest.mark.asyncio
    async def test_verifier_receives_settings_options(self):
        counting = CountingVerifier("pw")
        settings = WardenSettings(verifier_options={"pepper": "p"})
        warden = Warden(
            {"users": [{"login": "bob", "secret": "stored-pw"}]},
            verifier=CallableVerifier(counting),
            settings=settings,
        )

        await warden.authenticate("bob", "pw")
        await warden.authenticate("nobody", "pw")

        assert [call[2] for call in counting.calls] == [{"pepper": "p"}, {"pepper": "p"}]

    @pytest.mark.asyncio
    async def test_verifier_errors_propagate(self, settings):
        """Internal verifier failures are not turned into False."""

        def broken(supplied, stored, options):
            raise RuntimeError("hash backend down")

        warden = Warden(
            {"users": [{"login": "bob", "secret": "x"}]},
            verifier=CallableVerifier(broken),
            settings=settings,
        )
        with pytest.raises(RuntimeError):
            await warden.authenticate("bob", "pw")
