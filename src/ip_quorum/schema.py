"""Pydantic models validating pool configuration files."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "QuorumConfigModel",
    "DnsResolverModel",
    "HttpResolverModel",
    "PoolConfigModel",
]

_DNS_RECORD_TYPES = frozenset({"A", "AAAA", "TXT"})


class QuorumConfigModel(BaseModel):
    """Schema of the ``quorum`` section."""

    model_config = ConfigDict(extra="forbid")

    timeout_s: float | None = Field(default=None, ge=0)
    on_exhausted: Literal["empty", "raise"] = "empty"
    allow_empty_winner: bool = True
    fail_fast: bool = False
    max_concurrency: int | None = Field(default=None, ge=1)


class DnsResolverModel(BaseModel):
    """Schema of one ``dns`` entry."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    qname: str = Field(min_length=1)
    rdtype: str = "A"
    server: str = Field(min_length=1)
    port: int = Field(default=53, ge=1, le=65535)
    timeout_s: float = Field(default=2.0, gt=0)

    @field_validator("rdtype")
    @classmethod
    def _check_rdtype(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _DNS_RECORD_TYPES:
            raise ValueError(f"rdtype must be one of {sorted(_DNS_RECORD_TYPES)}")
        return normalized


class HttpResolverModel(BaseModel):
    """Schema of one ``http`` entry."""

    model_config = ConfigDict(extra="forbid")

    url: str = Field(pattern=r"^https?://")
    name: str | None = None
    timeout_s: float | None = Field(default=None, gt=0)


class PoolConfigModel(BaseModel):
    """Schema of a whole pool configuration file."""

    model_config = ConfigDict(extra="forbid")

    quorum: QuorumConfigModel = Field(default_factory=QuorumConfigModel)
    dns: list[DnsResolverModel] | None = None
    http: list[HttpResolverModel | str] | None = None
