"""Provider error types."""

from __future__ import annotations


class MetricsUnavailableError(RuntimeError):
    """Raised when a provider cannot produce a snapshot for this tick."""
