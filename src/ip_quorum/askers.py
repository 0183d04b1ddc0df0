"""Asker protocol and tagged results."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
import time
from typing import Protocol


class FailureReason(str, Enum):
    """Why an asker could not produce a usable value."""

    TRANSPORT = "transport"
    TIMEOUT = "timeout"
    HTTP_STATUS = "http_status"
    MALFORMED = "malformed"
    NOT_IPV4 = "not_ipv4"
    UNEXPECTED = "unexpected"


@dataclass(slots=True)
class AskResult:
    """Outcome of a single asker.

    ``text`` is what the aggregator tallies: the value on success and the
    empty string on failure. ``reason`` stays available so callers can tell
    "the resolver answered empty" apart from "the resolver errored".
    """

    asker: str
    value: str = ""
    reason: FailureReason | None = None
    error: BaseException | None = None
    latency_ms: int | None = None

    @property
    def ok(self) -> bool:
        return self.reason is None

    @property
    def text(self) -> str:
        return self.value if self.ok else ""

    @classmethod
    def success(cls, asker: str, value: str, *, latency_ms: int | None = None) -> AskResult:
        return cls(asker=asker, value=value, latency_ms=latency_ms)

    @classmethod
    def failure(
        cls,
        asker: str,
        reason: FailureReason,
        *,
        error: BaseException | None = None,
        latency_ms: int | None = None,
    ) -> AskResult:
        return cls(asker=asker, reason=reason, error=error, latency_ms=latency_ms)


class Asker(Protocol):
    """A one-shot query against one external resolver."""

    @property
    def name(self) -> str: ...

    def __call__(self) -> AskResult | str: ...


class CallableAsker:
    """Wrap a plain ``() -> str`` callable as a named asker."""

    def __init__(self, name: str, func: Callable[[], str]) -> None:
        self._name = name
        self._func = func

    @property
    def name(self) -> str:
        return self._name

    def __call__(self) -> AskResult:
        ts0 = time.monotonic()
        value = self._func()
        return AskResult.success(self._name, value, latency_ms=elapsed_ms(ts0))

    def __repr__(self) -> str:
        return f"CallableAsker({self._name!r})"


def asker_name(asker: object, index: int) -> str:
    name = getattr(asker, "name", None)
    if isinstance(name, str) and name:
        return name
    return f"asker-{index}"


def normalize_result(name: str, result: object) -> AskResult:
    if isinstance(result, AskResult):
        return result
    if isinstance(result, str):
        return AskResult.success(name, result)
    raise TypeError(f"asker {name!r} returned {type(result).__name__}, expected str or AskResult")


def elapsed_ms(ts0: float) -> int:
    return int((time.monotonic() - ts0) * 1000)


__all__ = [
    "Asker",
    "AskResult",
    "CallableAsker",
    "FailureReason",
    "asker_name",
    "elapsed_ms",
    "normalize_result",
]
