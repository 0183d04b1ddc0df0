"""Structured events emitted while a quorum run is in progress.

Sinks implement :class:`EventLogger`. The aggregator never talks to a sink
directly: it goes through :class:`QuorumEvents`, which shapes the records,
stamps them with the run id and keeps a failing sink from disturbing the
vote.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
import sys
from threading import Lock
from typing import Any, Protocol, TextIO
from uuid import uuid4

from .askers import AskResult

PathLike = str | Path

LOGGER = logging.getLogger(__name__)

EVENT_ASKER_RESULT = "asker_result"
EVENT_QUORUM_REACHED = "quorum_reached"
EVENT_QUORUM_REJECTED = "quorum_rejected"
EVENT_QUORUM_EXHAUSTED = "quorum_exhausted"
EVENT_QUORUM_TIMEOUT = "quorum_timeout"


class EventLogger(Protocol):
    """Protocol for structured event loggers."""

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        """Persist ``record`` for ``event_type``."""


def _safe_emit(sink: EventLogger, event_type: str, record: Mapping[str, Any]) -> None:
    try:
        sink.emit(event_type, record)
    except Exception:  # noqa: BLE001
        LOGGER.debug("event sink %r failed on %s", sink, event_type, exc_info=True)


def asker_result_record(result: AskResult) -> dict[str, Any]:
    return {
        "asker": result.asker,
        "ok": result.ok,
        "value": result.value,
        "reason": result.reason.value if result.reason is not None else None,
        "error": str(result.error) if result.error is not None else None,
        "latency_ms": result.latency_ms,
    }


class QuorumEvents:
    """Per-run event channel bound to an optional sink."""

    def __init__(self, sink: EventLogger | None = None, *, run_id: str | None = None) -> None:
        self._sink = sink
        self.run_id = run_id or uuid4().hex

    def _emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        if self._sink is None:
            return
        payload = dict(record)
        payload.setdefault("run_id", self.run_id)
        _safe_emit(self._sink, event_type, payload)

    def asker_result(self, result: AskResult) -> None:
        self._emit(EVENT_ASKER_RESULT, asker_result_record(result))

    def reached(self, record: Mapping[str, Any]) -> None:
        self._emit(EVENT_QUORUM_REACHED, record)

    def rejected(self, record: Mapping[str, Any]) -> None:
        self._emit(EVENT_QUORUM_REJECTED, record)

    def exhausted(self, record: Mapping[str, Any]) -> None:
        self._emit(EVENT_QUORUM_EXHAUSTED, record)

    def timed_out(self, record: Mapping[str, Any]) -> None:
        self._emit(EVENT_QUORUM_TIMEOUT, record)


class _LineSink:
    """Writes one JSON document per event; subclasses supply ``_write``."""

    def __init__(self) -> None:
        self._lock = Lock()

    def _write(self, line: str) -> None:
        raise NotImplementedError

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        payload = {"event": event_type, **record}
        line = json.dumps(payload, ensure_ascii=False, default=str)
        with self._lock:
            self._write(line + "\n")


class JsonlLogger(_LineSink):
    """Append events to a JSONL file, creating parent directories on first use."""

    def __init__(self, path: PathLike) -> None:
        super().__init__()
        self._path = Path(path)
        self._prepared = False

    @property
    def path(self) -> Path:
        return self._path

    def _write(self, line: str) -> None:
        if not self._prepared:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._prepared = True
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(line)


class StdLogger(_LineSink):
    def __init__(self, stream: TextIO | None = None) -> None:
        super().__init__()
        self._stream = stream or sys.stdout

    def _write(self, line: str) -> None:
        self._stream.write(line)
        self._stream.flush()


class CompositeLogger:
    """Fan out events to several sinks; one failing sink does not stop the rest."""

    def __init__(self, loggers: Iterable[EventLogger] | None = None) -> None:
        self._loggers: list[EventLogger] = list(loggers or ())
        self._lock = Lock()

    def add(self, logger: EventLogger) -> None:
        with self._lock:
            self._loggers.append(logger)

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        with self._lock:
            loggers = tuple(self._loggers)
        for logger in loggers:
            _safe_emit(logger, event_type, record)


__all__ = [
    "EVENT_ASKER_RESULT",
    "EVENT_QUORUM_EXHAUSTED",
    "EVENT_QUORUM_REACHED",
    "EVENT_QUORUM_REJECTED",
    "EVENT_QUORUM_TIMEOUT",
    "CompositeLogger",
    "EventLogger",
    "JsonlLogger",
    "PathLike",
    "QuorumEvents",
    "StdLogger",
    "asker_result_record",
]
