"""Load the collector's YAML settings.

Settings come from ``settings.yaml`` with per-section overrides from an
optional, git-ignored ``settings.local.yaml``. A scalar written as
``${NAME}`` or ``${NAME:default}`` is replaced by that environment variable,
after ``.env`` has been loaded into the environment.
"""

import os
import re
from pathlib import Path
from typing import Any, cast

import yaml
from dotenv import load_dotenv

_DEFAULT_CONFIG_DIR = Path(__file__).parent.parent / "config"
_ENV_REFERENCE = re.compile(r"^\$\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<default>.*))?\}$")


class ConfigError(Exception):
    """Raise when configuration loading or validation fails."""


class ConfigLoader:
    """Read settings sections from a config directory."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Load ``.env`` and the YAML files in ``config_dir``.

        Args:
            config_dir: Directory holding ``settings.yaml``. Defaults to the
                config packaged with price_collector.

        Raises:
            ConfigError: If a file is not a mapping or references an unset
                environment variable without a default.

        """
        load_dotenv()
        self.config_dir = Path(config_dir or _DEFAULT_CONFIG_DIR)
        settings = _read_yaml(self.config_dir / "settings.yaml")
        _merge(settings, _read_yaml(self.config_dir / "settings.local.yaml"))
        self._settings = cast("dict[str, Any]", _resolve_env(settings))

    def get_section(self, name: str) -> dict[str, Any]:
        """Return a top-level settings section.

        Args:
            name: Section name such as ``collector`` or ``store``.

        Returns:
            The section mapping, or an empty dict if it is absent.

        Raises:
            ConfigError: If the section exists but is not a mapping.

        """
        section: Any = self._settings.get(name)
        if section is None:
            return {}
        if isinstance(section, dict):
            return cast("dict[str, Any]", section)
        msg = f"{name} config must be a dict, got {type(section).__name__}"
        raise ConfigError(msg)


def _read_yaml(path: Path) -> dict[str, Any]:
    """Parse a YAML mapping, treating a missing or empty file as ``{}``."""
    if not path.exists():
        return {}
    with path.open() as f:
        data: Any = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        msg = f"{path.name} must contain a mapping, got {type(data).__name__}"
        raise ConfigError(msg)
    return cast("dict[str, Any]", data)


def _merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    """Merge ``override`` into ``base`` in place, recursing into sections."""
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(cast("dict[str, Any]", current), cast("dict[str, Any]", value))
        else:
            base[key] = value


def _resolve_env(value: Any) -> Any:
    """Replace ``${NAME[:default]}`` scalars with environment values."""
    if isinstance(value, dict):
        return {k: _resolve_env(v) for k, v in cast("dict[str, Any]", value).items()}
    if not isinstance(value, str):
        return value
    match = _ENV_REFERENCE.match(value)
    if match is None:
        return value
    resolved = os.getenv(match["name"], match["default"])
    if resolved is None:
        msg = f"Required environment variable ${{{match['name']}}} is not set and has no default"
        raise ConfigError(msg)
    return resolved


_config: ConfigLoader | None = None


def get_config() -> ConfigLoader:
    """Return the shared ``ConfigLoader`` for the packaged settings.

    Created on first use so importing the package never touches the
    filesystem or the environment.

    Returns:
        The shared ``ConfigLoader`` instance.

    """
    global _config  # noqa: PLW0603
    if _config is None:
        _config = ConfigLoader()
    return _config
