"""Environment-based authentication for milesync.

Loads ``.env`` files through python-dotenv and resolves the GitLab token
from the usual environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .logging import get_logger

TOKEN_ALTERNATIVES = ("GITLAB_PRIVATE_TOKEN", "GL_TOKEN", "CI_JOB_TOKEN")


@dataclass
class EnvAuthConfig:
    """Configuration for environment-based authentication."""

    load_dotenv: bool = True
    dotenv_path: str | None = None
    token_var: str = "GITLAB_TOKEN"
    alternatives: tuple[str, ...] = field(default=TOKEN_ALTERNATIVES)


class EnvironmentAuthManager:
    """Resolves the API token from environment variables and .env files."""

    def __init__(self, config: EnvAuthConfig):
        self.config = config
        self.logger = get_logger()
        self._dotenv_loaded = False
        if config.load_dotenv:
            self._load_dotenv()

    @property
    def dotenv_loaded(self) -> bool:
        return self._dotenv_loaded

    def _load_dotenv(self) -> None:
        candidates = (
            [self.config.dotenv_path] if self.config.dotenv_path else ['.env', '.env.local']
        )
        for location in candidates:
            env_path = Path(location)
            if env_path.exists():
                load_dotenv(str(env_path))
                self._dotenv_loaded = True
                self.logger.debug(f"Loaded environment variables from {env_path}")
                return

    def get_token(self) -> str | None:
        """Get the GitLab token from environment variables."""
        for var in (self.config.token_var, *self.config.alternatives):
            token = os.getenv(var)
            if token:
                self.logger.debug(f"Found GitLab token in {var}")
                return token
        return None


def resolve_token(
    configured: str | None,
    *,
    load_env: bool = True,
    dotenv_path: str | None = None,
) -> str | None:
    """Prefer an explicitly configured token, else look in the environment."""
    if configured:
        return configured
    manager = EnvironmentAuthManager(EnvAuthConfig(load_dotenv=load_env, dotenv_path=dotenv_path))
    return manager.get_token()


__all__ = ["EnvAuthConfig", "EnvironmentAuthManager", "TOKEN_ALTERNATIVES", "resolve_token"]
