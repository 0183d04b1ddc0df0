"""DNS based askers for the external IP address."""
from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
import ipaddress
import logging
import time
from typing import Any

import dns.exception
import dns.inet
import dns.message
import dns.query
import dns.rcode
import dns.rdatatype
import dns.resolver

from .askers import AskResult, elapsed_ms, FailureReason
from .config import DnsResolverSpec

LOGGER = logging.getLogger(__name__)

DEFAULT_DNS_RESOLVERS: tuple[DnsResolverSpec, ...] = (
    DnsResolverSpec(
        name="google",
        qname="o-o.myaddr.l.google.com.",
        rdtype="TXT",
        server="ns1.google.com",
    ),
    DnsResolverSpec(
        name="opendns",
        qname="myip.opendns.com.",
        rdtype="A",
        server="resolver1.opendns.com",
    ),
    DnsResolverSpec(
        name="akamai",
        qname="whoami.akamai.net.",
        rdtype="A",
        server="ns1-1.akamaitech.net",
    ),
)

QueryFn = Callable[..., dns.message.Message]
AddressResolver = Callable[[str, float], str]


class MalformedAnswer(ValueError):
    """The answer section did not carry what the question asked for."""


def resolve_server_address(server: str, timeout: float) -> str:
    """Return an IP literal for ``server``, looking up its A record if needed."""

    if dns.inet.is_address(server):
        return server
    answer = dns.resolver.resolve(server, "A", lifetime=timeout)
    return answer[0].address


def canonical_ipv4(text: str) -> str | None:
    """Dotted-decimal IPv4 form of ``text`` or ``None`` when it is not IPv4."""

    try:
        address = ipaddress.ip_address(text.strip())
    except ValueError:
        return None
    if isinstance(address, ipaddress.IPv6Address):
        mapped = address.ipv4_mapped
        if mapped is None:
            return None
        return str(mapped)
    return str(address)


def _record_text(rdata: Any, rdtype: int) -> str:
    if rdtype == dns.rdatatype.TXT:
        if not rdata.strings:
            raise MalformedAnswer("empty TXT record")
        return rdata.strings[0].decode("ascii", errors="replace")
    if rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
        return rdata.address
    raise MalformedAnswer(f"unsupported record type {dns.rdatatype.to_text(rdtype)}")


def extract_address(response: dns.message.Message, rdtype: int) -> str:
    """Text of the first record in the answer section matching ``rdtype``."""

    if response.rcode() != dns.rcode.NOERROR:
        raise MalformedAnswer(f"rcode {dns.rcode.to_text(response.rcode())}")
    if not response.answer:
        raise MalformedAnswer("empty answer section")
    rrset = response.answer[0]
    if rrset.rdtype != rdtype or len(rrset) == 0:
        raise MalformedAnswer(
            f"expected {dns.rdatatype.to_text(rdtype)}, got {dns.rdatatype.to_text(rrset.rdtype)}"
        )
    return _record_text(next(iter(rrset)), rdtype)


class DnsAsker:
    """Ask one nameserver for the caller's address."""

    def __init__(
        self,
        spec: DnsResolverSpec,
        *,
        query_fn: QueryFn | None = None,
        address_resolver: AddressResolver | None = None,
    ) -> None:
        self._spec = spec
        self._rdtype = dns.rdatatype.from_text(spec.rdtype)
        self._query_fn = query_fn or dns.query.udp
        self._address_resolver = address_resolver or resolve_server_address

    @property
    def name(self) -> str:
        return self._spec.name

    @property
    def spec(self) -> DnsResolverSpec:
        return self._spec

    def _failure(
        self, reason: FailureReason, exc: BaseException | None, ts0: float
    ) -> AskResult:
        LOGGER.debug("dns resolver %s failed (%s): %s", self.name, reason.value, exc)
        return AskResult.failure(self.name, reason, error=exc, latency_ms=elapsed_ms(ts0))

    def __call__(self) -> AskResult:
        spec = self._spec
        ts0 = time.monotonic()
        try:
            query = dns.message.make_query(spec.qname, self._rdtype)
        except (dns.exception.DNSException, ValueError) as exc:
            return self._failure(FailureReason.MALFORMED, exc, ts0)
        try:
            where = self._address_resolver(spec.server, spec.timeout_s)
            response = self._query_fn(query, where, timeout=spec.timeout_s, port=spec.port)
        except dns.exception.Timeout as exc:
            return self._failure(FailureReason.TIMEOUT, exc, ts0)
        except (dns.exception.DNSException, OSError) as exc:
            return self._failure(FailureReason.TRANSPORT, exc, ts0)

        try:
            text = extract_address(response, self._rdtype)
        except MalformedAnswer as exc:
            return self._failure(FailureReason.MALFORMED, exc, ts0)

        address = canonical_ipv4(text)
        if address is None:
            return self._failure(FailureReason.NOT_IPV4, MalformedAnswer(text), ts0)
        return AskResult.success(self.name, address, latency_ms=elapsed_ms(ts0))

    def __repr__(self) -> str:
        return f"DnsAsker({self._spec.name!r}, server={self._spec.server!r})"


def build_dns_askers(
    resolvers: Iterable[DnsResolverSpec] | None = None,
    *,
    query_fn: QueryFn | None = None,
    address_resolver: AddressResolver | None = None,
) -> list[DnsAsker]:
    specs: Sequence[DnsResolverSpec] = (
        DEFAULT_DNS_RESOLVERS if resolvers is None else tuple(resolvers)
    )
    return [
        DnsAsker(spec, query_fn=query_fn, address_resolver=address_resolver) for spec in specs
    ]


__all__ = [
    "DEFAULT_DNS_RESOLVERS",
    "DnsAsker",
    "MalformedAnswer",
    "build_dns_askers",
    "canonical_ipv4",
    "extract_address",
    "resolve_server_address",
]
