# =============================================================================
# subtrack_core/bootstrap.py
# Application Wiring for Views
# =============================================================================
"""
One call that configures logging and builds the services a view needs.

Usage:
------
app = await bootstrap()
identity = require_identity(await app.identity_resolver.resolve_identity())
subscriptions = await app.data_service.load(identity.owner_key, identity.owner_id)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, MutableMapping, Optional

from subtrack_core.auth import IdentityResolver, create_identity_resolver
from subtrack_core.auth.context import ExecutionContext
from subtrack_core.config import TrackerSettings, load_settings
from subtrack_core.logging import get_logger, setup_logging
from subtrack_core.offline import SubscriptionDataService, create_data_service

logger = get_logger(__name__)


@dataclass
class TrackerApp:
    settings: TrackerSettings
    data_service: SubscriptionDataService
    identity_resolver: IdentityResolver


async def bootstrap(
    settings: Optional[TrackerSettings] = None,
    context: Optional[ExecutionContext] = None,
    session_state: Optional[MutableMapping[str, Any]] = None,
) -> TrackerApp:
    """
    Configure logging and create the data service and identity resolver
    of the current browser session.

    Raises:
        NotAvailableError: if the local database cannot be opened
    """
    settings = settings or load_settings()
    setup_logging(settings.log_level, log_to_file=settings.log_to_file)

    data_service = await create_data_service(settings, session_state)
    identity_resolver = await create_identity_resolver(settings, context, session_state)

    logger.info(
        "Subscription tracker ready "
        f"(remote store {'enabled' if data_service.remote_enabled else 'disabled'})"
    )
    return TrackerApp(
        settings=settings,
        data_service=data_service,
        identity_resolver=identity_resolver,
    )
