from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, cast

import yaml

from .gitlab_rest import DEFAULT_API_URL
from .pagination import DEFAULT_AUTH_HEADER, DEFAULT_TIMEOUT
from .periods import CADENCES

CONFIG_DEFAULT = "milesync.config.yaml"


class ConfigError(RuntimeError):
    pass


@dataclass
class SyncConfig:
    version: int
    base_url: str
    project_id: str | None
    project_name: str | None
    namespace: str | None
    token: str | None
    auth_header: str
    cadence: str
    lookahead: int
    http_timeout: float | None
    dry_run_default: bool
    # Logging configuration
    logging_json_enabled: bool
    logging_level: str
    # Environment authentication configuration
    env_auth_load_dotenv: bool
    env_auth_dotenv_path: str | None

    def validate(self) -> None:
        """Check values a run cannot proceed without.

        Unknown cadences are deliberately accepted here; the period
        calculator reports them and the run becomes a no-op.
        """
        if isinstance(self.lookahead, bool) or self.lookahead <= 0:
            raise ConfigError(
                f"schedule.lookahead must be a positive integer, got {self.lookahead!r}"
            )
        if not self.base_url:
            raise ConfigError("gitlab.base_url must not be empty")
        if not self.project_id and not (self.project_name and self.namespace):
            raise ConfigError(
                "either gitlab.project_id or gitlab.project_name + gitlab.namespace is required"
            )


def _resolve_env_var(value: Any, env_var_name: str | None = None) -> Any:
    """Resolve environment variable if value starts with $."""
    if isinstance(value, str) and value.startswith('$'):
        env_name = env_var_name or value[1:]
        return os.getenv(env_name) or None
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {}) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' section must be a mapping")
    return cast(dict[str, Any], value)


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc


def _as_timeout(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"http.timeout must be a number, got {value!r}") from exc


def config_from_mapping(raw: dict[str, Any]) -> SyncConfig:
    gl = _section(raw, 'gitlab')
    schedule = _section(raw, 'schedule')
    http = _section(raw, 'http')
    behavior = _section(raw, 'behavior')
    logging_config = _section(raw, 'logging')
    env_auth = _section(raw, 'environment')

    project_id = gl.get('project_id')
    return SyncConfig(
        version=_as_int(raw.get('version', 1), 'version'),
        base_url=str(gl.get('base_url') or DEFAULT_API_URL),
        project_id=str(project_id) if project_id not in (None, '') else None,
        project_name=gl.get('project_name'),
        namespace=gl.get('namespace'),
        token=_resolve_env_var(gl.get('token')),
        auth_header=str(gl.get('auth_header') or DEFAULT_AUTH_HEADER),
        cadence=str(schedule.get('cadence', CADENCES[1])),
        lookahead=_as_int(schedule.get('lookahead', 4), 'schedule.lookahead'),
        http_timeout=_as_timeout(http.get('timeout', DEFAULT_TIMEOUT)),
        dry_run_default=bool(behavior.get('dry_run_default', False)),
        logging_json_enabled=bool(logging_config.get('json_enabled', False)),
        logging_level=str(logging_config.get('level', 'INFO')),
        env_auth_load_dotenv=bool(env_auth.get('load_dotenv', True)),
        env_auth_dotenv_path=env_auth.get('dotenv_path'),
    )


def load_config(path: str | Path) -> SyncConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f'Configuration file not found: {p}')
    try:
        raw = yaml.safe_load(p.read_text()) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f'Invalid YAML in {p}: {exc}') from exc
    if not isinstance(raw, dict):
        raise ConfigError(f'{p} must contain a mapping at the top level')
    return config_from_mapping(cast(dict[str, Any], raw))


__all__ = ["CONFIG_DEFAULT", "ConfigError", "SyncConfig", "config_from_mapping", "load_config"]
