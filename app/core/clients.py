"""
Process-wide Clients

The database engine and the identity provider are built once at startup,
shared by every request and closed at shutdown.

Design:
- Held in a ServiceClients container stored on app.state, and handed to
  request handlers through FastAPI dependencies (no module-level globals)
- Startup is all-or-nothing: if the store cannot be reached or the identity
  provider cannot be initialized, initialize_clients raises and the
  application refuses to start
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from app.core.setting import Settings
from app.db.session import build_engine, build_session_maker, create_tables, ping_database
from app.services.identity import FirebaseIdentityProvider, IdentityGate, IdentityProvider

logger = logging.getLogger(__name__)


@dataclass
class ServiceClients:
    """Long-lived handles shared across requests."""
    engine: AsyncEngine
    session_maker: async_sessionmaker
    identity: IdentityGate
    store_timeout: float
    connect_timeout: float
    rate_limit_count: int
    rate_limit_window: timedelta


async def initialize_clients(
    settings: Settings,
    identity_provider: Optional[IdentityProvider] = None,
) -> ServiceClients:
    """
    Connect to the store and initialize the identity provider.

    Args:
        settings: Application settings
        identity_provider: Provider to use instead of Firebase (local runs, tests)

    Raises:
        StoreError: If the database is unreachable within the connect timeout
        IdentityProviderError: If the identity provider cannot be initialized
    """
    engine = build_engine(settings.database_url, settings.DATABASE_CONNECT_TIMEOUT)
    try:
        await ping_database(engine, settings.DATABASE_CONNECT_TIMEOUT)
        if settings.DATABASE_AUTO_CREATE:
            await create_tables(engine)
        logger.info("Database connection established")

        if identity_provider is None:
            identity_provider = FirebaseIdentityProvider.from_settings(
                credentials_file=settings.FIREBASE_CREDENTIALS_FILE,
                project_id=settings.FIREBASE_PROJECT_ID,
            )
    except Exception:
        await engine.dispose()
        raise

    return ServiceClients(
        engine=engine,
        session_maker=build_session_maker(engine),
        identity=IdentityGate(identity_provider, timeout=settings.IDENTITY_TIMEOUT),
        store_timeout=settings.STORE_OPERATION_TIMEOUT,
        connect_timeout=settings.DATABASE_CONNECT_TIMEOUT,
        rate_limit_count=settings.SLUG_RATE_LIMIT_COUNT,
        rate_limit_window=timedelta(days=settings.SLUG_RATE_LIMIT_WINDOW_DAYS),
    )


async def shutdown_clients(clients: ServiceClients) -> None:
    """Release the identity provider and dispose the engine."""
    try:
        clients.identity.provider.close()
    except Exception as e:
        logger.warning(f"Failed to close identity provider: {e}")
    await clients.engine.dispose()
    logger.info("Service clients shut down")
