"""HTTP based askers for the external IP address."""
from __future__ import annotations

from collections.abc import Callable, Iterable
import logging
import time
from typing import Any, Protocol

import requests
from requests import exceptions as requests_exceptions

from .askers import AskResult, elapsed_ms, FailureReason
from .config import HttpResolverSpec

LOGGER = logging.getLogger(__name__)

DEFAULT_HTTP_URLS: tuple[str, ...] = (
    "http://v4.ident.me/",
    "http://whatismyip.akamai.com/",
    "http://checkip.amazonaws.com/",
    "http://ipecho.net/plain",
    "http://inet-ip.info/ip",
    "http://eth0.me/",
    "http://wgetip.com/",
    "http://bot.whatismyipaddress.com/",
    "http://ipof.in/txt",
    "http://smart-ip.net/myip",
    "https://ip.tyk.nu/",
    "https://tnx.nl/ip",
    "https://l2.io/ip",
    "https://api.ipify.org/",
    "https://myexternalip.com/raw",
    "https://icanhazip.com",
    "https://ifconfig.io/ip",
    "https://wtfismyip.com/text",
)

DEFAULT_HTTP_RESOLVERS: tuple[HttpResolverSpec, ...] = tuple(
    HttpResolverSpec(url=url) for url in DEFAULT_HTTP_URLS
)


class ResponseProtocol(Protocol):
    status_code: int
    text: str

    def close(self) -> None: ...
    def raise_for_status(self) -> None: ...


class SessionProtocol(Protocol):
    def get(self, url: str, *args: Any, **kwargs: Any) -> ResponseProtocol: ...
    def close(self) -> None: ...


SessionFactory = Callable[[], SessionProtocol]


def _classify(exc: requests_exceptions.RequestException) -> FailureReason:
    if isinstance(exc, requests_exceptions.Timeout):
        return FailureReason.TIMEOUT
    if isinstance(exc, requests_exceptions.HTTPError):
        return FailureReason.HTTP_STATUS
    return FailureReason.TRANSPORT


class HttpAsker:
    """GET one echo URL and use the trimmed body as the answer."""

    def __init__(
        self,
        spec: HttpResolverSpec,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self._spec = spec
        self._session_factory: SessionFactory = session_factory or requests.Session

    @property
    def name(self) -> str:
        return self._spec.label

    @property
    def spec(self) -> HttpResolverSpec:
        return self._spec

    def _fetch(self, session: SessionProtocol) -> str:
        response = session.get(self._spec.url, timeout=self._spec.timeout_s)
        try:
            response.raise_for_status()
            return response.text.strip()
        finally:
            response.close()

    def __call__(self) -> AskResult:
        ts0 = time.monotonic()
        session = self._session_factory()
        try:
            body = self._fetch(session)
        except requests_exceptions.RequestException as exc:
            reason = _classify(exc)
            LOGGER.debug("http resolver %s failed (%s): %s", self.name, reason.value, exc)
            return AskResult.failure(self.name, reason, error=exc, latency_ms=elapsed_ms(ts0))
        finally:
            session.close()
        return AskResult.success(self.name, body, latency_ms=elapsed_ms(ts0))

    def __repr__(self) -> str:
        return f"HttpAsker({self._spec.url!r})"


def build_http_askers(
    resolvers: Iterable[HttpResolverSpec | str] | None = None,
    *,
    session_factory: SessionFactory | None = None,
) -> list[HttpAsker]:
    specs = DEFAULT_HTTP_RESOLVERS if resolvers is None else tuple(resolvers)
    return [
        HttpAsker(
            spec if isinstance(spec, HttpResolverSpec) else HttpResolverSpec(url=spec),
            session_factory=session_factory,
        )
        for spec in specs
    ]


__all__ = [
    "DEFAULT_HTTP_RESOLVERS",
    "DEFAULT_HTTP_URLS",
    "HttpAsker",
    "ResponseProtocol",
    "SessionFactory",
    "SessionProtocol",
    "build_http_askers",
]
