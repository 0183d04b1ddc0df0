"""Configuration models for quorum runs and resolver pools."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "ExhaustionPolicy",
    "QuorumConfig",
    "DnsResolverSpec",
    "HttpResolverSpec",
    "PoolConfig",
]


class ExhaustionPolicy(str, Enum):
    """What to do once every asker reported and no value won."""

    EMPTY = "empty"
    RAISE = "raise"


@dataclass(frozen=True, slots=True)
class QuorumConfig:
    """Aggregation behaviour shared by every pool."""

    timeout_s: float | None = None
    on_exhausted: ExhaustionPolicy = ExhaustionPolicy.EMPTY
    allow_empty_winner: bool = True
    fail_fast: bool = False
    max_concurrency: int | None = None

    def __post_init__(self) -> None:
        if self.timeout_s is not None and self.timeout_s < 0:
            raise ValueError("timeout_s must be non-negative")
        if self.max_concurrency is not None and self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if not isinstance(self.on_exhausted, ExhaustionPolicy):
            object.__setattr__(self, "on_exhausted", ExhaustionPolicy(self.on_exhausted))


@dataclass(frozen=True, slots=True)
class DnsResolverSpec:
    """One DNS question asked of one nameserver."""

    name: str
    qname: str
    rdtype: str
    server: str
    port: int = 53
    timeout_s: float = 2.0


@dataclass(frozen=True, slots=True)
class HttpResolverSpec:
    """One plain-text IP echo endpoint."""

    url: str
    name: str | None = None
    timeout_s: float | None = None

    @property
    def label(self) -> str:
        return self.name or self.url


@dataclass(frozen=True, slots=True)
class PoolConfig:
    """Resolver pools together with their quorum settings."""

    quorum: QuorumConfig = field(default_factory=QuorumConfig)
    dns: tuple[DnsResolverSpec, ...] = ()
    http: tuple[HttpResolverSpec, ...] = ()
