"""Settings file discovery through an environment variable."""
from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

DEFAULT_ENV_VAR = "SwitchConfig"
TEMP_LOCATION_KEY = "TempMetadataFileLocation"


@dataclass(frozen=True)
class SwitchConfig:
    """Immutable view of the settings file shared by every flow element."""

    path: Path
    settings: Mapping[str, Any]

    @classmethod
    def from_env(cls, env_var: str = DEFAULT_ENV_VAR, environ: Mapping[str, str] | None = None) -> "SwitchConfig":
        return load_switch_config(env_var, environ)

    @property
    def temp_metadata_file_location(self) -> Path | None:
        value = self.settings.get(TEMP_LOCATION_KEY)
        return Path(value) if value else None

    def get(self, key: str, default: Any = None) -> Any:
        return self.settings.get(key, default)

    def require(self, key: str) -> Any:
        if key not in self.settings:
            raise ConfigError(f'Setting "{key}" is missing from {self.path}')
        return self.settings[key]


def load_switch_config(env_var: str = DEFAULT_ENV_VAR, environ: Mapping[str, str] | None = None) -> SwitchConfig:
    """Read the JSON settings file whose path is stored in ``env_var``.

    The variable is checked before the filesystem is touched, so a missing
    variable fails without any I/O.
    """

    environ = os.environ if environ is None else environ
    location = environ.get(env_var)
    if not location:
        raise ConfigError(f'Environment variable "{env_var}" is not set')

    path = Path(location)
    if path.suffix.lower() != ".json":
        raise ConfigError(
            f'Settings path "{location}" defined in environment variable "{env_var}" does not point to a JSON file'
        )

    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except FileNotFoundError as exc:
        raise ConfigError(f"Settings file {path} does not exist") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Settings file {path} is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"Settings file {path} must contain a JSON object")

    LOGGER.debug("Loaded %d settings from %s", len(payload), path)
    return SwitchConfig(path=path, settings=MappingProxyType(payload))
