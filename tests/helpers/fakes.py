from __future__ import annotations

from collections.abc import Callable, Mapping
import threading
from typing import Any

from requests import exceptions as requests_exceptions

from ip_quorum.askers import AskResult, FailureReason

GATE_LIMIT_S = 5.0


class GatedAsker:
    """Deterministic asker that optionally waits for a gate before answering."""

    def __init__(
        self,
        name: str,
        value: str = "",
        *,
        gate: threading.Event | None = None,
        delay_s: float = 0.0,
        failure: FailureReason | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.name = name
        self._value = value
        self._gate = gate
        self._delay_s = delay_s
        self._failure = failure
        self._error = error
        self.started = threading.Event()
        self.finished = threading.Event()

    def __call__(self) -> AskResult | str:
        self.started.set()
        try:
            if self._gate is not None:
                self._gate.wait(GATE_LIMIT_S)
            if self._delay_s:
                threading.Event().wait(self._delay_s)
            if self._error is not None:
                raise self._error
            if self._failure is not None:
                return AskResult.failure(self.name, self._failure)
            return self._value
        finally:
            self.finished.set()


class RecordingEventLogger:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        self.events.append((event_type, dict(record)))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [record for event, record in self.events if event == event_type]


class FakeResponse:
    def __init__(
        self,
        *,
        status_code: int = 200,
        text: str = "",
        body_error: BaseException | None = None,
    ) -> None:
        self.status_code = status_code
        self._text = text
        self._body_error = body_error
        self.closed = False

    @property
    def text(self) -> str:
        if self._body_error is not None:
            raise self._body_error
        return self._text

    def raise_for_status(self) -> None:
        if not (200 <= self.status_code < 300):
            raise requests_exceptions.HTTPError(f"{self.status_code} error", response=self)

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Session returning canned responses (or raising) per URL."""

    def __init__(
        self,
        routes: Mapping[str, FakeResponse | BaseException | str] | None = None,
        *,
        default: FakeResponse | BaseException | str | None = None,
    ) -> None:
        self._routes = dict(routes or {})
        self._default = default
        self.calls: list[tuple[str, float | None]] = []
        self.responses: list[FakeResponse] = []
        self.closed = False

    def get(self, url: str, timeout: float | None = None, **_: Any) -> FakeResponse:
        self.calls.append((url, timeout))
        outcome = self._routes.get(url, self._default)
        if outcome is None:
            raise AssertionError(f"unexpected url {url}")
        if isinstance(outcome, BaseException):
            raise outcome
        response = outcome if isinstance(outcome, FakeResponse) else FakeResponse(text=outcome)
        self.responses.append(response)
        return response

    def close(self) -> None:
        self.closed = True


class SessionRecorder:
    """Session factory handing out a fresh :class:`FakeSession` per call."""

    def __init__(self, build: Callable[[], FakeSession]) -> None:
        self._build = build
        self._lock = threading.Lock()
        self.sessions: list[FakeSession] = []

    def __call__(self) -> FakeSession:
        session = self._build()
        with self._lock:
            self.sessions.append(session)
        return session
