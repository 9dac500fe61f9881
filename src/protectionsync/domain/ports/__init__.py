"""Domain port definitions for adapters."""

from __future__ import annotations

from .applying import ProtectionApplier, ProtectionTranslator
from .fetching import ProtectionReader, RepositoryLister
from .rate_limit import RateLimitSource

__all__ = [
    "ProtectionApplier",
    "ProtectionReader",
    "ProtectionTranslator",
    "RateLimitSource",
    "RepositoryLister",
]
