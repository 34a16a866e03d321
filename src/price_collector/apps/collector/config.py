"""Configuration dataclass for the price collector service.

Hold all tuneable parameters for the collector: store backend and URL,
scheduling interval, retention policy, and upstream source settings.
Immutable after construction to prevent accidental mutation during
long-running collection sessions.
"""

from dataclasses import dataclass, replace
from typing import Any

from price_collector.core.config import ConfigError, ConfigLoader

_DEFAULT_DB_URL = "sqlite+aiosqlite:///prices.db"
_DEFAULT_INTERVAL_SECONDS = 60.0
_DEFAULT_RETENTION_HOURS = 24.0
_DEFAULT_DELETE_BATCH_SIZE = 100
_DEFAULT_TIMEOUT_SECONDS = 15.0
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})

STORE_BACKENDS = ("sql", "memory")


@dataclass(frozen=True)
class CollectorConfig:
    """Immutable configuration for a price collector session.

    Attributes:
        db_url: SQLAlchemy async connection string
            (e.g. ``sqlite+aiosqlite:///prices.db``).
        store_backend: ``"sql"`` for the SQLAlchemy repository or
            ``"memory"`` for the in-process store.
        interval_seconds: Fixed period between scheduled runs once the
            scheduler has aligned to a minute boundary.
        retention_hours: Records older than this are pruned after each run.
            ``None`` keeps records forever.
        delete_batch_size: Maximum rows removed per delete statement during
            the retention sweep.
        skip_overlapping_runs: Drop a tick when the previous run is still
            in flight instead of starting a second concurrent run.
        timeout_seconds: Per-request HTTP timeout for both price sources.
        coingecko_base_url: Base URL of the CoinGecko API.
        coin_id: CoinGecko coin identifier.
        vs_currency: Quote currency for the coin price.
        frankfurter_base_url: Base URL of the Frankfurter API.
        fx_base: Base currency of the exchange rate.
        fx_symbol: Quote currency of the exchange rate.

    """

    db_url: str = _DEFAULT_DB_URL
    store_backend: str = "sql"
    interval_seconds: float = _DEFAULT_INTERVAL_SECONDS
    retention_hours: float | None = _DEFAULT_RETENTION_HOURS
    delete_batch_size: int = _DEFAULT_DELETE_BATCH_SIZE
    skip_overlapping_runs: bool = True
    timeout_seconds: float = _DEFAULT_TIMEOUT_SECONDS
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    frankfurter_base_url: str = "https://api.frankfurter.dev/v1"
    fx_base: str = "USD"
    fx_symbol: str = "BRL"

    def __post_init__(self) -> None:
        """Validate numeric bounds and the store backend name.

        Raises:
            ConfigError: If any value is out of range.

        """
        if self.store_backend not in STORE_BACKENDS:
            msg = f"Unknown store backend {self.store_backend!r}; use one of {STORE_BACKENDS}"
            raise ConfigError(msg)
        if self.interval_seconds <= 0:
            msg = f"interval_seconds must be positive, got {self.interval_seconds}"
            raise ConfigError(msg)
        if self.delete_batch_size <= 0:
            msg = f"delete_batch_size must be positive, got {self.delete_batch_size}"
            raise ConfigError(msg)
        if self.timeout_seconds <= 0:
            msg = f"timeout_seconds must be positive, got {self.timeout_seconds}"
            raise ConfigError(msg)
        if self.retention_hours is not None and self.retention_hours <= 0:
            msg = f"retention_hours must be positive or None, got {self.retention_hours}"
            raise ConfigError(msg)

    @classmethod
    def from_loader(cls, loader: ConfigLoader) -> "CollectorConfig":
        """Build a config from the ``store``, ``collector`` and ``sources`` sections.

        Values substituted from environment variables arrive as strings and
        are coerced here. Missing keys fall back to the dataclass defaults.

        Args:
            loader: Loaded YAML configuration.

        Returns:
            A validated ``CollectorConfig``.

        Raises:
            ConfigError: If a value cannot be coerced or is out of range.

        """
        store = loader.get_section("store")
        collector = loader.get_section("collector")
        sources = loader.get_section("sources")
        coingecko: dict[str, Any] = sources.get("coingecko") or {}
        frankfurter: dict[str, Any] = sources.get("frankfurter") or {}

        defaults = cls()
        retention = collector.get("retention_hours", _DEFAULT_RETENTION_HOURS)
        retention_hours = _to_float(retention, "collector.retention_hours") if retention else None

        return cls(
            db_url=str(store.get("db_url") or defaults.db_url),
            store_backend=str(store.get("backend") or defaults.store_backend),
            interval_seconds=_to_float(
                collector.get("interval_seconds", defaults.interval_seconds),
                "collector.interval_seconds",
            ),
            retention_hours=retention_hours or None,
            delete_batch_size=_to_int(
                collector.get("delete_batch_size", defaults.delete_batch_size),
                "collector.delete_batch_size",
            ),
            skip_overlapping_runs=_to_bool(
                collector.get("skip_overlapping_runs", defaults.skip_overlapping_runs),
                "collector.skip_overlapping_runs",
            ),
            timeout_seconds=_to_float(
                sources.get("timeout_seconds", defaults.timeout_seconds),
                "sources.timeout_seconds",
            ),
            coingecko_base_url=str(coingecko.get("base_url") or defaults.coingecko_base_url),
            coin_id=str(coingecko.get("coin_id") or defaults.coin_id),
            vs_currency=str(coingecko.get("vs_currency") or defaults.vs_currency),
            frankfurter_base_url=str(frankfurter.get("base_url") or defaults.frankfurter_base_url),
            fx_base=str(frankfurter.get("base") or defaults.fx_base),
            fx_symbol=str(frankfurter.get("symbol") or defaults.fx_symbol),
        )

    def with_overrides(self, **changes: Any) -> "CollectorConfig":
        """Return a copy with the given non-``None`` fields replaced.

        A ``retention_hours`` override of ``0`` clears the retention window,
        matching how ``from_loader`` reads a zero from settings.yaml.
        """
        updates = {k: v for k, v in changes.items() if v is not None}
        if updates.get("retention_hours") == 0:
            updates["retention_hours"] = None
        return replace(self, **updates)


def _to_float(value: Any, key: str) -> float:
    """Coerce a config value to float, raising ConfigError on failure."""
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{key} must be a number, got {value!r}"
        raise ConfigError(msg) from exc


def _to_int(value: Any, key: str) -> int:
    """Coerce a config value to int, raising ConfigError on failure."""
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        msg = f"{key} must be an integer, got {value!r}"
        raise ConfigError(msg) from exc


def _to_bool(value: Any, key: str) -> bool:
    """Coerce a YAML bool or an env-var string to bool."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    msg = f"{key} must be a boolean, got {value!r}"
    raise ConfigError(msg)
