"""Domain port definitions for adapters."""

from __future__ import annotations

from .loading import ExistingStateLoader, ExistingStateUnavailableError, RecordPage

__all__ = [
    "ExistingStateLoader",
    "ExistingStateUnavailableError",
    "RecordPage",
]
