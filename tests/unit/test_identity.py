# =============================================================================
# tests/unit/test_identity.py
# Unit Tests for Identity Resolution and the Supabase Identity Provider
# =============================================================================

import pytest
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from subtrack_core.auth import (
    AuthorizationArtifact,
    ExecutionContext,
    IdentityProvider,
    IdentityResolver,
    IdentitySource,
    LocalAccountService,
    ProviderSession,
    ProviderUser,
    StreamlitQueryContext,
    SupabaseIdentityProvider,
    SessionStateStore,
    create_identity_resolver,
    require_identity,
)
from subtrack_core.auth import context as context_module
from subtrack_core.config import TrackerSettings
from subtrack_core.errors import IdentityError, IdentityProviderError


class FakeProvider(IdentityProvider):
    """Provider with a scripted session and user"""

    def __init__(self, user=None, fail=False, fail_exchange=False):
        self.user = user
        self.fail = fail
        self.fail_exchange = fail_exchange
        self.exchanged = []
        self.signed_out = False

    async def get_session(self):
        if self.fail:
            raise IdentityProviderError("provider down", operation="get_session")
        return ProviderSession(access_token="token", user_id=self.user.id) if self.user else None

    async def get_user(self):
        return self.user

    async def exchange_authorization_artifact(self, artifact):
        if self.fail_exchange:
            raise IdentityProviderError("bad code", operation="exchange_authorization_artifact")
        self.exchanged.append(artifact)
        self.user = ProviderUser(id="exchanged-user", email="new@example.com")
        return ProviderSession(access_token="token", user_id=self.user.id)

    async def sign_out(self):
        if self.fail:
            raise IdentityProviderError("provider down", operation="sign_out")
        self.signed_out = True


class FakeContext(ExecutionContext):

    def __init__(self, artifact=None):
        self.artifact = artifact

    def pending_artifact(self):
        return self.artifact

    def clear_artifact(self):
        self.artifact = None


@pytest.fixture
def accounts(local_db, session_store):
    return LocalAccountService(local_db, session_store, bcrypt_rounds=4)


@pytest.fixture
def logged_in_accounts(accounts):
    accounts.register_user("ada", "abcd", full_name="Ada Lovelace")
    accounts.login_user("ada", "abcd")
    return accounts


class TestIdentityResolver:
    """Test resolution order and degradation"""

    @pytest.mark.asyncio
    async def test_federated_user_wins(self, logged_in_accounts, owner_id):
        provider = FakeProvider(ProviderUser(id=owner_id, email="ada@example.com",
                                             metadata={"full_name": "Ada L."}))
        identity = await IdentityResolver(logged_in_accounts, provider).resolve_identity()

        assert identity.owner_id == owner_id
        assert identity.owner_key == owner_id
        assert identity.display_name == "Ada L."
        assert identity.source == IdentitySource.FEDERATED
        assert identity.is_federated

    @pytest.mark.asyncio
    async def test_falls_back_to_local_user(self, logged_in_accounts):
        identity = await IdentityResolver(logged_in_accounts, FakeProvider()).resolve_identity()

        assert identity.owner_key == "ada"
        assert identity.owner_id is None
        assert identity.source == IdentitySource.LOCAL
        assert identity.greeting_name == "Ada Lovelace"

    @pytest.mark.asyncio
    async def test_provider_failure_is_not_fatal(self, logged_in_accounts):
        identity = await IdentityResolver(logged_in_accounts, FakeProvider(fail=True)).resolve_identity()
        assert identity.owner_key == "ada"

    @pytest.mark.asyncio
    async def test_no_source_resolves_to_none(self, accounts):
        assert await IdentityResolver(accounts, FakeProvider()).resolve_identity() is None

    @pytest.mark.asyncio
    async def test_without_provider_uses_local_only(self, logged_in_accounts):
        identity = await IdentityResolver(logged_in_accounts).resolve_identity()
        assert identity.owner_key == "ada"

    @pytest.mark.asyncio
    async def test_pending_artifact_is_exchanged_and_cleared(self, accounts):
        provider = FakeProvider()
        context = FakeContext(AuthorizationArtifact(code="abc"))

        identity = await IdentityResolver(accounts, provider, context).resolve_identity()

        assert provider.exchanged[0].code == "abc"
        assert context.artifact is None
        assert identity.owner_id == "exchanged-user"

    @pytest.mark.asyncio
    async def test_failed_exchange_is_cleared_and_not_fatal(self, logged_in_accounts):
        context = FakeContext(AuthorizationArtifact(code="expired"))
        provider = FakeProvider(fail_exchange=True)

        identity = await IdentityResolver(logged_in_accounts, provider, context).resolve_identity()

        assert context.artifact is None
        assert identity.owner_key == "ada"

    @pytest.mark.asyncio
    async def test_error_artifact_is_not_exchanged(self, accounts):
        provider = FakeProvider()
        context = FakeContext(AuthorizationArtifact(error="access_denied"))

        assert await IdentityResolver(accounts, provider, context).resolve_identity() is None
        assert provider.exchanged == []
        assert context.artifact is None

    @pytest.mark.asyncio
    async def test_sign_out_clears_both(self, logged_in_accounts, owner_id):
        provider = FakeProvider(ProviderUser(id=owner_id))
        resolver = IdentityResolver(logged_in_accounts, provider)

        await resolver.sign_out()

        assert provider.signed_out
        assert logged_in_accounts.get_current_user() is None

    @pytest.mark.asyncio
    async def test_sign_out_survives_provider_failure(self, logged_in_accounts):
        await IdentityResolver(logged_in_accounts, FakeProvider(fail=True)).sign_out()
        assert logged_in_accounts.get_current_user() is None


class TestSessionIsolation:

    @pytest.mark.asyncio
    async def test_local_login_stays_in_its_session(self, local_db):
        session_a = LocalAccountService(local_db, SessionStateStore({}), bcrypt_rounds=4)
        session_b = LocalAccountService(local_db, SessionStateStore({}), bcrypt_rounds=4)
        session_a.register_user("alice", "abcd")
        session_a.login_user("alice", "abcd")

        identity_a = await IdentityResolver(session_a).resolve_identity()
        identity_b = await IdentityResolver(session_b).resolve_identity()

        assert identity_a.owner_key == "alice"
        assert identity_b is None

    @pytest.mark.asyncio
    async def test_each_session_gets_its_own_client(self, tmp_path, monkeypatch):
        from subtrack_core.data import supabase_client
        client_a, client_b = MagicMock(), MagicMock()
        monkeypatch.setattr(supabase_client, "acreate_client", AsyncMock(side_effect=[client_a, client_b]))
        settings = TrackerSettings(
            supabase_url="https://x.supabase.co",
            supabase_key="k",
            local_db_path=tmp_path / "app.db",
        )
        state_a, state_b = {}, {}

        resolver_a = await create_identity_resolver(settings, FakeContext(), session_state=state_a)
        resolver_b = await create_identity_resolver(settings, FakeContext(), session_state=state_b)
        again_a = await create_identity_resolver(settings, FakeContext(), session_state=state_a)

        assert resolver_a.provider.client is client_a
        assert resolver_b.provider.client is client_b
        assert again_a.provider.client is client_a
        assert resolver_a.accounts.session.state is state_a


class TestRequireIdentity:

    def test_none_raises(self):
        with pytest.raises(IdentityError) as exc_info:
            require_identity(None)
        assert exc_info.value.message == "Could not resolve your identity"


class TestSupabaseIdentityProvider:
    """Test mapping of Supabase Auth responses"""

    @pytest.mark.asyncio
    async def test_no_session(self, mock_supabase):
        assert await SupabaseIdentityProvider(mock_supabase).get_session() is None

    @pytest.mark.asyncio
    async def test_session_and_user(self, mock_supabase, owner_id):
        user = SimpleNamespace(id=owner_id, email="ada@example.com", user_metadata={"name": "Ada"})
        mock_supabase.auth.get_session.return_value = SimpleNamespace(
            access_token="at", refresh_token="rt", user=user,
        )
        mock_supabase.auth.get_user.return_value = SimpleNamespace(user=user)
        provider = SupabaseIdentityProvider(mock_supabase)

        session = await provider.get_session()
        provider_user = await provider.get_user()

        assert session.user_id == owner_id
        assert provider_user.email == "ada@example.com"
        assert provider_user.display_name == "Ada"

    @pytest.mark.asyncio
    async def test_errors_are_wrapped(self, mock_supabase):
        mock_supabase.auth.get_user.side_effect = RuntimeError("network")

        with pytest.raises(IdentityProviderError) as exc_info:
            await SupabaseIdentityProvider(mock_supabase).get_user()

        assert exc_info.value.details["operation"] == "get_user"

    @pytest.mark.asyncio
    async def test_exchange_code(self, mock_supabase):
        mock_supabase.auth.exchange_code_for_session.return_value = SimpleNamespace(
            session=SimpleNamespace(access_token="at", refresh_token="rt", user=None),
        )

        session = await SupabaseIdentityProvider(mock_supabase).exchange_authorization_artifact(
            AuthorizationArtifact(code="abc")
        )

        mock_supabase.auth.exchange_code_for_session.assert_awaited_once_with({"auth_code": "abc"})
        assert session.access_token == "at"

    @pytest.mark.asyncio
    async def test_exchange_token_pair(self, mock_supabase):
        mock_supabase.auth.set_session = AsyncMock(return_value=SimpleNamespace(
            session=SimpleNamespace(access_token="at", refresh_token="rt", user=None),
        ))

        await SupabaseIdentityProvider(mock_supabase).exchange_authorization_artifact(
            AuthorizationArtifact(access_token="at", refresh_token="rt")
        )

        mock_supabase.auth.set_session.assert_awaited_once_with("at", "rt")

    @pytest.mark.asyncio
    async def test_exchange_without_session_fails(self, mock_supabase):
        mock_supabase.auth.exchange_code_for_session.return_value = SimpleNamespace(session=None)

        with pytest.raises(IdentityProviderError):
            await SupabaseIdentityProvider(mock_supabase).exchange_authorization_artifact(
                AuthorizationArtifact(code="abc")
            )


class TestStreamlitQueryContext:

    def test_no_artifact(self, monkeypatch):
        monkeypatch.setattr(context_module.st, "query_params", {"page": "list"})
        assert StreamlitQueryContext().pending_artifact() is None

    def test_code_artifact_and_clear(self, monkeypatch):
        params = {"code": "abc", "page": "list"}
        monkeypatch.setattr(context_module.st, "query_params", params)
        context = StreamlitQueryContext()

        artifact = context.pending_artifact()
        context.clear_artifact()

        assert artifact.code == "abc"
        assert not artifact.is_error
        assert params == {"page": "list"}

    def test_error_artifact(self, monkeypatch):
        monkeypatch.setattr(context_module.st, "query_params", {"error": "access_denied"})
        assert StreamlitQueryContext().pending_artifact().is_error
