"""Entry points resolving the external IP address through a resolver pool."""
from __future__ import annotations

from collections.abc import Iterable

from .config import DnsResolverSpec, HttpResolverSpec, PoolConfig, QuorumConfig
from .dns_resolvers import AddressResolver, build_dns_askers, DEFAULT_DNS_RESOLVERS, QueryFn
from .http_resolvers import build_http_askers, DEFAULT_HTTP_RESOLVERS, SessionFactory
from .observability import EventLogger
from .quorum import aggregate


def default_pool(quorum: QuorumConfig | None = None) -> PoolConfig:
    return PoolConfig(
        quorum=quorum or QuorumConfig(),
        dns=DEFAULT_DNS_RESOLVERS,
        http=DEFAULT_HTTP_RESOLVERS,
    )


def resolve_via_dns(
    resolvers: Iterable[DnsResolverSpec] | None = None,
    *,
    config: QuorumConfig | None = None,
    event_logger: EventLogger | None = None,
    query_fn: QueryFn | None = None,
    address_resolver: AddressResolver | None = None,
) -> str:
    """Return the address agreed on by a majority of the DNS resolvers."""

    askers = build_dns_askers(
        resolvers, query_fn=query_fn, address_resolver=address_resolver
    )
    return aggregate(askers, config=config, event_logger=event_logger)


def resolve_via_http(
    resolvers: Iterable[HttpResolverSpec | str] | None = None,
    *,
    config: QuorumConfig | None = None,
    event_logger: EventLogger | None = None,
    session_factory: SessionFactory | None = None,
) -> str:
    """Return the address agreed on by a majority of the HTTP echo services."""

    askers = build_http_askers(resolvers, session_factory=session_factory)
    return aggregate(askers, config=config, event_logger=event_logger)


def resolve_pool(
    pool: PoolConfig,
    *,
    event_logger: EventLogger | None = None,
    query_fn: QueryFn | None = None,
    address_resolver: AddressResolver | None = None,
    session_factory: SessionFactory | None = None,
) -> dict[str, str]:
    """Run every non-empty pool of ``pool`` and return results keyed by pool."""

    results: dict[str, str] = {}
    if pool.dns:
        results["dns"] = resolve_via_dns(
            pool.dns,
            config=pool.quorum,
            event_logger=event_logger,
            query_fn=query_fn,
            address_resolver=address_resolver,
        )
    if pool.http:
        results["http"] = resolve_via_http(
            pool.http,
            config=pool.quorum,
            event_logger=event_logger,
            session_factory=session_factory,
        )
    return results


__all__ = ["default_pool", "resolve_pool", "resolve_via_dns", "resolve_via_http"]
