"""Normalized exception hierarchy for quorum aggregation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class QuorumError(Exception):
    """Base class for errors raised by ip_quorum."""


class ConfigError(QuorumError):
    """Raised when a pool configuration is invalid."""


class NoQuorumError(QuorumError):
    """Raised when no value reached a strict majority."""

    def __init__(
        self,
        message: str,
        *,
        tally: Mapping[str, int] | None = None,
        total: int = 0,
        threshold: int = 0,
        reason: str | None = None,
        pending: Sequence[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.tally = dict(tally) if tally is not None else {}
        self.total = total
        self.threshold = threshold
        self.reason = reason
        self.pending = list(pending) if pending is not None else []


class QuorumTimeoutError(NoQuorumError):
    """Raised when the aggregation deadline passes before a quorum forms."""


class ResolversFailedError(NoQuorumError):
    """Raised when a majority of askers failed and empty winners are rejected."""


__all__ = [
    "QuorumError",
    "ConfigError",
    "NoQuorumError",
    "QuorumTimeoutError",
    "ResolversFailedError",
]
