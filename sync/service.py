"""
Wiring of the sync pipeline from application settings
"""

from typing import Dict, Optional
from core.config import Settings, settings as default_settings
from core.database import create_engine, create_session_maker
from core.exceptions import ConfigurationError
from sync.base import ApiSource
from sync.extractors.ffxivcollect_source import FFXIVCollectSource
from sync.extractors.http_fetcher import HttpFetcher
from sync.extractors.xivapi_source import XivapiSource
from sync.loaders.base import PersistenceBackend
from sync.loaders.local_store import LocalStore
from sync.loaders.sql_store import SqlStore
from sync.orchestrator import SyncOrchestrator
from sync.transformers.definitions import build_default_registry
import logging

logger = logging.getLogger(__name__)


def build_backend(settings: Optional[Settings] = None) -> PersistenceBackend:
    settings = settings or default_settings
    backend = settings.PERSISTENCE_BACKEND.lower()

    if backend == "local":
        logger.info(f"Using local store at {settings.LOCAL_STORE_PATH or '<memory>'}")
        return LocalStore(settings.LOCAL_STORE_PATH)

    if backend == "sql":
        engine = create_engine(settings.DATABASE_URL)
        logger.info("Using SQL store")
        return SqlStore(create_session_maker(engine))

    raise ConfigurationError(
        f"Unknown persistence backend: {settings.PERSISTENCE_BACKEND}",
        context={"backend": settings.PERSISTENCE_BACKEND}
    )


def build_sources(fetcher: HttpFetcher) -> Dict[str, ApiSource]:
    sources = [XivapiSource(fetcher), FFXIVCollectSource(fetcher)]
    return {source.source_id: source for source in sources}


def build_orchestrator(
    settings: Optional[Settings] = None,
    fetcher: Optional[HttpFetcher] = None,
    backend: Optional[PersistenceBackend] = None
) -> SyncOrchestrator:
    """Assemble an orchestrator with the default registry and sync config."""
    settings = settings or default_settings
    fetcher = fetcher or HttpFetcher.from_settings(settings)

    return SyncOrchestrator(
        registry=build_default_registry(),
        sources=build_sources(fetcher),
        backend=backend or build_backend(settings),
        history_limit=settings.SYNC_HISTORY_LIMIT
    )


async def close_orchestrator(orchestrator: SyncOrchestrator):
    """Stop timers and release the HTTP client shared by the sources."""
    orchestrator.stop_scheduled_syncs()

    fetchers = {id(source.fetcher): source.fetcher for source in orchestrator.sources.values()}
    for fetcher in fetchers.values():
        await fetcher.aclose()
