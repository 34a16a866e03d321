"""Select a ``PriceStore`` backend from configuration."""

from price_collector.apps.collector.config import CollectorConfig
from price_collector.apps.collector.memory_store import InMemoryPriceStore
from price_collector.apps.collector.repository import PriceRepository
from price_collector.core.config import ConfigError
from price_collector.core.protocols import PriceStore


def build_store(config: CollectorConfig) -> PriceStore:
    """Return an unopened store for ``config.store_backend``.

    Raises:
        ConfigError: If the backend name is not recognised.

    """
    if config.store_backend == "sql":
        return PriceRepository(config.db_url)
    if config.store_backend == "memory":
        return InMemoryPriceStore()
    msg = f"Unknown store backend: {config.store_backend!r}"
    raise ConfigError(msg)
