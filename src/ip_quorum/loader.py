"""Pool configuration loading."""
from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, cast

from pydantic import ValidationError
import yaml

from .config import (
    DnsResolverSpec,
    ExhaustionPolicy,
    HttpResolverSpec,
    PoolConfig,
    QuorumConfig,
)
from .dns_resolvers import DEFAULT_DNS_RESOLVERS
from .errors import ConfigError
from .http_resolvers import DEFAULT_HTTP_RESOLVERS
from .schema import HttpResolverModel, PoolConfigModel

__all__ = ["ConfigError", "load_pool_config", "parse_pool_config"]


def _format_validation_error(source: str, exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part is not None)
        message = error.get("msg", "unknown error")
        if location:
            details.append(f"{location}: {message}")
        else:
            details.append(message)
    summary = "; ".join(details)
    return f"invalid pool configuration ({source}): {summary}"


def _load_yaml(path: Path) -> MutableMapping[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read pool configuration {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, MutableMapping):
        raise ConfigError(f"pool configuration is not a mapping: {path}")
    return cast(MutableMapping[str, Any], data)


def _http_spec(entry: HttpResolverModel | str) -> HttpResolverSpec:
    if isinstance(entry, str):
        return HttpResolverSpec(url=entry)
    return HttpResolverSpec(url=entry.url, name=entry.name, timeout_s=entry.timeout_s)


def parse_pool_config(data: Mapping[str, Any], *, source: str = "<mapping>") -> PoolConfig:
    """Validate ``data`` and build a :class:`PoolConfig`.

    Missing ``dns`` or ``http`` keys select the built-in pools; an explicit
    empty list disables that pool.
    """

    try:
        model = PoolConfigModel.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(source, exc)) from exc

    quorum = QuorumConfig(
        timeout_s=model.quorum.timeout_s,
        on_exhausted=ExhaustionPolicy(model.quorum.on_exhausted),
        allow_empty_winner=model.quorum.allow_empty_winner,
        fail_fast=model.quorum.fail_fast,
        max_concurrency=model.quorum.max_concurrency,
    )
    if model.dns is None:
        dns = DEFAULT_DNS_RESOLVERS
    else:
        dns = tuple(DnsResolverSpec(**entry.model_dump()) for entry in model.dns)
    if model.http is None:
        http = DEFAULT_HTTP_RESOLVERS
    else:
        http = tuple(_http_spec(entry) for entry in model.http)
    return PoolConfig(quorum=quorum, dns=dns, http=http)


def load_pool_config(path: str | Path) -> PoolConfig:
    """Read a YAML pool configuration file."""

    path = Path(path)
    return parse_pool_config(_load_yaml(path), source=str(path))
