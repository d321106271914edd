"""Layered configuration for the listing wizard.

Keys use dot notation (``autosave.interval_seconds``) and are looked up in
this order, first hit wins:

1. caller arguments (``cli``)
2. environment, ``LISTINGWIZARD_<KEY>`` with dots as underscores (``env``)
3. user YAML file (``user_config``)
4. system YAML file (``system_config``)
5. built-in defaults (``default``)

Environment values arrive as strings; the typed ``resolve_*`` helpers
coerce them.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from listingwizard.core.errors import ConfigError

ENV_PREFIX = "LISTINGWIZARD_"

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}

_MISSING = object()


def default_config() -> dict[str, Any]:
    home = Path.home() / ".listingwizard"
    return {
        "autosave": {"enabled": True, "interval_seconds": 30},
        "auth": {
            "initial_delay_seconds": 1.0,
            "grace_window_seconds": 3.0,
            "status_poll_seconds": 0.25,
            "accepted_roles": ["property_owner", "owner", "user", "customer"],
        },
        "drafts": {"dir": str(home / "drafts"), "key_prefix": "property_draft_"},
        "validation": {"seasonal_overlap_check": False},
        "wizard": {"steps_file": None},
        "gateway": {"base_url": "", "api_key": "", "timeout_seconds": 15},
        "storage": {"bucket": "public-images", "path_prefix": "properties"},
        "logging": {"level": DEFAULT_LOGGING_LEVEL, "color": True},
        "diagnostics": {"enabled": False, "dir": str(home / "diagnostics")},
    }


@dataclass
class ConfigSource:
    """A resolved value and the layer it came from."""

    value: Any
    source: str


@dataclass(frozen=True)
class LoggingPolicy:
    level_name: str
    emit_error: bool
    emit_warning: bool
    emit_info: bool
    emit_debug: bool
    source: ConfigSource


def _walk(data: dict[str, Any], prefix: str = "") -> Iterator[str]:
    """Yield the dotted path of every leaf in a nested mapping."""
    for key, value in data.items():
        path = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _walk(value, path + ".")
        else:
            yield path


def _dig(data: dict[str, Any], key: str) -> Any:
    node: Any = data
    for part in key.split("."):
        if not isinstance(node, dict) or node.get(part) is None:
            return _MISSING
        node = node[part]
    return node


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e
    return data if isinstance(data, dict) else {}


class ConfigResolver:
    """Resolve dotted keys across caller args, env, YAML files and defaults.

    YAML files are read lazily on first lookup and cached for the life of
    the resolver.
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        self.cli_args = cli_args or {}
        self.user_config_path = (
            user_config_path or Path.home() / ".config" / "listingwizard" / "config.yaml"
        )
        self.system_config_path = system_config_path or Path("/etc/listingwizard/config.yaml")
        self.defaults = default_config() if defaults is None else defaults
        self._file_cache: dict[Path, dict[str, Any]] = {}

    def _file(self, path: Path) -> dict[str, Any]:
        if path not in self._file_cache:
            self._file_cache[path] = _read_yaml(path)
        return self._file_cache[path]

    def _layers(self) -> list[tuple[str, Callable[[str], Any]]]:
        return [
            ("cli", lambda key: _dig(self.cli_args, key)),
            ("env", self._env_value),
            ("user_config", lambda key: _dig(self._file(self.user_config_path), key)),
            ("system_config", lambda key: _dig(self._file(self.system_config_path), key)),
            ("default", lambda key: _dig(self.defaults, key)),
        ]

    @staticmethod
    def _env_value(key: str) -> Any:
        value = os.environ.get(ENV_PREFIX + key.upper().replace(".", "_"))
        return _MISSING if value is None else value

    def _lookup(self, key: str) -> tuple[Any, str] | None:
        for source, get in self._layers():
            value = get(key)
            if value is not _MISSING:
                return value, source
        return None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Return ``(value, source)`` for ``key``.

        Raises:
            ConfigError: No layer defines the key.
        """
        found = self._lookup(key)
        if found is None:
            raise ConfigError(f"Config key '{key}' not found in any source")
        return found

    def resolve_optional(self, key: str, default: Any = None) -> Any:
        found = self._lookup(key)
        return default if found is None else found[0]

    def resolve_float(self, key: str) -> float:
        value, _src = self.resolve(key)
        if isinstance(value, bool):
            raise ConfigError(f"Config key '{key}' must be a number")
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Config key '{key}' must be a number, got {value!r}") from e

    def resolve_bool(self, key: str) -> bool:
        value, _src = self.resolve(key)
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE_VALUES:
            return True
        if text in _FALSE_VALUES:
            return False
        raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")

    def resolve_str_list(self, key: str) -> list[str]:
        """Lists pass through; strings (from env) are split on commas."""
        value, _src = self.resolve(key)
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        if isinstance(value, list):
            return [str(v) for v in value]
        raise ConfigError(f"Config key '{key}' must be a list")

    def resolve_logging_level(self) -> str:
        return self._logging_level()[0]

    def resolve_logging_policy(self) -> LoggingPolicy:
        level_name, src = self._logging_level()
        return LoggingPolicy(
            level_name=level_name,
            emit_error=True,
            emit_warning=True,
            emit_info=level_name != "quiet",
            emit_debug=level_name in {"verbose", "debug"},
            source=src,
        )

    def _logging_level(self) -> tuple[str, ConfigSource]:
        # ``verbosity`` is accepted as an older spelling of logging.level.
        found = self._lookup("logging.level") or self._lookup("verbosity")
        if found is None:
            return DEFAULT_LOGGING_LEVEL, ConfigSource(DEFAULT_LOGGING_LEVEL, "default")

        value, source = found
        if not isinstance(value, str):
            raise ConfigError(
                f"Config key 'logging.level' must be a string, got {type(value).__name__}"
            )
        level = value.strip().lower()
        if level not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid 'logging.level': {value!r}. Allowed values: {allowed}")
        return level, ConfigSource(level, source)

    def list_known_keys(self) -> list[str]:
        return sorted(_walk(self.defaults))

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key named by defaults, caller args or config files."""
        keys = set(_walk(self.defaults)) | set(_walk(self.cli_args))
        keys |= set(_walk(self._file(self.user_config_path)))
        keys |= set(_walk(self._file(self.system_config_path)))

        resolved: dict[str, ConfigSource] = {}
        for key in sorted(keys):
            found = self._lookup(key)
            if found is not None:
                resolved[key] = ConfigSource(*found)
        return resolved


@dataclass(frozen=True)
class WizardSettings:
    """Typed runtime settings for one wizard instance."""

    autosave_enabled: bool = True
    autosave_interval: float = 30.0
    auth_initial_delay: float = 1.0
    auth_grace_window: float = 3.0
    auth_status_poll: float = 0.25
    accepted_roles: tuple[str, ...] = ("property_owner", "owner", "user", "customer")
    drafts_dir: Path = Path.home() / ".listingwizard" / "drafts"
    draft_key_prefix: str = "property_draft_"
    seasonal_overlap_check: bool = False
    steps_file: Path | None = None
    storage_path_prefix: str = "properties"

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> WizardSettings:
        interval = resolver.resolve_float("autosave.interval_seconds")
        if interval <= 0:
            raise ConfigError("Config key 'autosave.interval_seconds' must be positive")
        steps_file = resolver.resolve_optional("wizard.steps_file")
        return cls(
            autosave_enabled=resolver.resolve_bool("autosave.enabled"),
            autosave_interval=interval,
            auth_initial_delay=resolver.resolve_float("auth.initial_delay_seconds"),
            auth_grace_window=resolver.resolve_float("auth.grace_window_seconds"),
            auth_status_poll=resolver.resolve_float("auth.status_poll_seconds"),
            accepted_roles=tuple(resolver.resolve_str_list("auth.accepted_roles")),
            drafts_dir=Path(str(resolver.resolve("drafts.dir")[0])).expanduser(),
            draft_key_prefix=str(resolver.resolve("drafts.key_prefix")[0]),
            seasonal_overlap_check=resolver.resolve_bool("validation.seasonal_overlap_check"),
            steps_file=Path(str(steps_file)).expanduser() if steps_file else None,
            storage_path_prefix=str(resolver.resolve("storage.path_prefix")[0]),
        )
