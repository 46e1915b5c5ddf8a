# =============================================================================
# tests/integration/test_persistence_flow.py
# End-to-End Flows: Local Login -> Federated Sign-In -> Migration -> Outage
# =============================================================================

import pytest
from datetime import timedelta

from subtrack_core.analytics import count_renewals_this_week, monthly_equivalent_cost
from subtrack_core.auth import (
    IdentityProvider,
    IdentityResolver,
    LocalAccountService,
    ProviderSession,
    ProviderUser,
    require_identity,
)
from subtrack_core.bootstrap import bootstrap
from subtrack_core.config import TrackerSettings
from subtrack_core.errors import RemoteUnreachableError
from subtrack_core.models import BillingCycle, Subscription
from subtrack_core.offline import InMemorySubscriptionStore, SubscriptionDataService


class SwitchableProvider(IdentityProvider):
    """Signed out until `user` is set"""

    def __init__(self):
        self.user = None

    async def get_session(self):
        return ProviderSession(access_token="token", user_id=self.user.id) if self.user else None

    async def get_user(self):
        return self.user

    async def exchange_authorization_artifact(self, artifact):
        raise NotImplementedError

    async def sign_out(self):
        self.user = None


class FlakyStore(InMemorySubscriptionStore):
    """In-memory store that can be taken offline"""

    def __init__(self):
        super().__init__()
        self.offline = False

    async def list(self, owner_id):
        if self.offline:
            raise RemoteUnreachableError("offline", table="subscriptions", operation="list")
        return await super().list(owner_id)


class TestLocalToFederatedFlow:

    @pytest.mark.asyncio
    async def test_full_lifecycle(self, local_db, cache, session_store, owner_id, today):
        accounts = LocalAccountService(local_db, session_store, bcrypt_rounds=4)
        provider = SwitchableProvider()
        resolver = IdentityResolver(accounts, provider)
        remote = FlakyStore()
        service = SubscriptionDataService(cache, remote=remote)

        # Local account, data kept in the cache
        assert accounts.register_user("ada", "abcd").success
        assert accounts.login_user("ada", "abcd").success
        local_identity = require_identity(await resolver.resolve_identity())
        assert local_identity.owner_id is None

        netflix = Subscription.create("Netflix", 10, today + timedelta(days=2), today=today)
        figma = Subscription.create("Figma", 120, today + timedelta(days=30),
                                    cycle=BillingCycle.ANNUALLY, today=today)
        await service.add_one(netflix, local_identity.owner_key)
        await service.add_one(figma, local_identity.owner_key)
        assert remote.write_count == 0

        # Federated sign-in: first load migrates the cache
        provider.user = ProviderUser(id=owner_id, email="ada@example.com")
        identity = require_identity(await resolver.resolve_identity())
        assert identity.owner_id == owner_id

        migrated = await service.load(local_identity.owner_key, identity.owner_id)
        assert [s.name for s in migrated] == ["Netflix", "Figma"]
        assert cache.is_migrated(owner_id)
        assert monthly_equivalent_cost(migrated) == pytest.approx(20.0)
        assert count_renewals_this_week(migrated, today) == 1

        # Second load touches nothing
        writes = remote.write_count
        assert await service.load(local_identity.owner_key, identity.owner_id) == migrated
        assert remote.write_count == writes

        # Remote edits are not mirrored into the cache
        await service.delete_one(netflix.id, local_identity.owner_key, identity.owner_id)
        assert [s.name for s in await service.load(local_identity.owner_key, owner_id)] == ["Figma"]

        # Outage: stale cache is served
        remote.offline = True
        stale = await service.load(local_identity.owner_key, owner_id)
        assert [s.name for s in stale] == ["Netflix", "Figma"]

        # Sign out of everything
        await resolver.sign_out()
        assert await resolver.resolve_identity() is None

    @pytest.mark.asyncio
    async def test_deleting_everything_stays_empty(self, cache, owner_id, owner_key, make_subscription):
        remote = InMemorySubscriptionStore()
        service = SubscriptionDataService(cache, remote=remote)
        cache.put(owner_key, [make_subscription()])

        subs = await service.load(owner_key, owner_id)
        await service.save([], owner_key, owner_id)

        assert len(subs) == 1
        assert await service.load(owner_key, owner_id) == []


class TestBootstrap:

    @pytest.mark.asyncio
    async def test_local_only_wiring(self, tmp_path, today):
        app = await bootstrap(TrackerSettings(local_db_path=tmp_path / "app.db"), session_state={})

        assert not app.data_service.remote_enabled
        assert app.identity_resolver.provider is None
        assert await app.identity_resolver.resolve_identity() is None

        accounts = app.identity_resolver.accounts
        accounts.register_user("grace", "hopper")
        accounts.login_user("grace", "hopper")
        identity = require_identity(await app.identity_resolver.resolve_identity())

        sub = Subscription.create("iCloud", 2.99, today + timedelta(days=10), today=today)
        await app.data_service.add_one(sub, identity.owner_key, identity.owner_id)
        assert await app.data_service.load(identity.owner_key) == [sub]

    @pytest.mark.asyncio
    async def test_two_browser_sessions_share_data_file_not_login(self, tmp_path):
        settings = TrackerSettings(local_db_path=tmp_path / "app.db")
        first = await bootstrap(settings, session_state={})
        second = await bootstrap(settings, session_state={})

        first.identity_resolver.accounts.register_user("alice", "abcd")
        first.identity_resolver.accounts.login_user("alice", "abcd")

        assert require_identity(await first.identity_resolver.resolve_identity()).owner_key == "alice"
        assert await second.identity_resolver.resolve_identity() is None
        assert second.identity_resolver.accounts.login_user("alice", "abcd").success
