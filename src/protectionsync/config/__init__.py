"""Application configuration helpers."""

from __future__ import annotations

from .env import optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .github import (
    DEFAULT_GITHUB_API_URL,
    GITHUB_API_VERSION,
    GitHubConfig,
    default_github_resilience,
    get_github_config,
)
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .sync import SyncConfig, get_sync_config

__all__ = [
    "DEFAULT_GITHUB_API_URL",
    "GITHUB_API_VERSION",
    "CacheConfig",
    "ConfigurationError",
    "GitHubConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "SyncConfig",
    "configure_logging",
    "default_github_resilience",
    "get_github_config",
    "get_sync_config",
    "optional_env_var",
    "require_env_vars",
]
