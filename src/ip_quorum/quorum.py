"""Majority aggregation over concurrently running askers.

Every asker is started at once on its own daemon thread and reports into a
shared queue. The calling thread is the only consumer: it drains the queue,
tallies the collapsed string of each result and returns as soon as one value
has been reported by more than half of the pool. Askers still running at that
point are left to finish on their own; their results are never looked at.
"""
from __future__ import annotations

from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import logging
import queue
import threading
import time
from typing import Any

from .askers import Asker, AskResult, asker_name, elapsed_ms, FailureReason, normalize_result
from .config import ExhaustionPolicy, QuorumConfig
from .errors import NoQuorumError, QuorumTimeoutError, ResolversFailedError
from .observability import EventLogger, QuorumEvents

LOGGER = logging.getLogger(__name__)

REASON_QUORUM = "quorum"
REASON_EXHAUSTED = "exhausted"
REASON_UNREACHABLE = "unreachable"
REASON_TIMEOUT = "timeout"


def quorum_threshold(total: int) -> int:
    """Smallest vote count that is a strict majority of ``total``."""

    if total <= 0:
        raise ValueError("total must be positive")
    return total // 2 + 1


@dataclass(slots=True)
class QuorumOutcome:
    value: str
    votes: int
    threshold: int
    total: int
    reached: bool
    reason: str
    tally: dict[str, int] = field(default_factory=dict)
    observations: list[AskResult] = field(default_factory=list)
    pending: list[str] = field(default_factory=list)

    @property
    def failures(self) -> list[AskResult]:
        return [entry for entry in self.observations if not entry.ok]

    def as_record(self) -> dict[str, Any]:
        return {
            "value": self.value,
            "votes": self.votes,
            "threshold": self.threshold,
            "total": self.total,
            "reached": self.reached,
            "reason": self.reason,
            "tally": dict(self.tally),
            "pending": list(self.pending),
        }


def _invoke(asker: Asker, name: str) -> AskResult:
    ts0 = time.monotonic()
    try:
        result = normalize_result(name, asker())
    except Exception as exc:  # noqa: BLE001
        LOGGER.debug("asker %s raised", name, exc_info=True)
        return AskResult.failure(
            name, FailureReason.UNEXPECTED, error=exc, latency_ms=elapsed_ms(ts0)
        )
    if result.latency_ms is None:
        result.latency_ms = elapsed_ms(ts0)
    return result


def _start_asker(
    asker: Asker,
    index: int,
    name: str,
    results: queue.SimpleQueue[tuple[int, AskResult]],
    slots: threading.BoundedSemaphore | None,
) -> None:
    def _worker() -> None:
        if slots is None:
            result = _invoke(asker, name)
        else:
            with slots:
                result = _invoke(asker, name)
        results.put((index, result))

    threading.Thread(target=_worker, name=f"ip-quorum-{name}", daemon=True).start()


def _can_still_win(tally: Mapping[str, int], outstanding: int, threshold: int) -> bool:
    leader = max(tally.values(), default=0)
    return leader + outstanding >= threshold


def _log_failure(result: AskResult) -> None:
    if not result.ok and result.reason is not None:
        LOGGER.debug("asker %s failed: %s", result.asker, result.reason.value)


class _Collector:
    """Owns the tally for a single aggregation."""

    def __init__(self, names: Sequence[str]) -> None:
        self.names = list(names)
        self.total = len(self.names)
        self.threshold = quorum_threshold(self.total)
        self.tally: Counter[str] = Counter()
        self.observations: list[AskResult] = []
        self._consumed: set[int] = set()

    @property
    def outstanding(self) -> int:
        return self.total - len(self._consumed)

    def add(self, index: int, result: AskResult) -> int:
        self._consumed.add(index)
        self.observations.append(result)
        self.tally[result.text] += 1
        return self.tally[result.text]

    def outcome(self, value: str, *, reached: bool, reason: str) -> QuorumOutcome:
        return QuorumOutcome(
            value=value,
            votes=self.tally.get(value, 0) if reached else 0,
            threshold=self.threshold,
            total=self.total,
            reached=reached,
            reason=reason,
            tally=dict(self.tally),
            observations=list(self.observations),
            pending=[
                name for index, name in enumerate(self.names) if index not in self._consumed
            ],
        )


def _finish_without_quorum(
    collector: _Collector,
    *,
    reason: str,
    config: QuorumConfig,
    events: QuorumEvents,
) -> QuorumOutcome:
    outcome = collector.outcome("", reached=False, reason=reason)
    LOGGER.warning(
        "no quorum among %d askers (threshold %d): %s",
        outcome.total,
        outcome.threshold,
        reason,
    )
    events.exhausted(outcome.as_record())
    if config.on_exhausted is ExhaustionPolicy.RAISE:
        raise NoQuorumError(
            f"no value reached {outcome.threshold}/{outcome.total} votes ({reason})",
            tally=outcome.tally,
            total=outcome.total,
            threshold=outcome.threshold,
            reason=reason,
            pending=outcome.pending,
        )
    return outcome


def _accept(
    collector: _Collector, value: str, *, config: QuorumConfig, events: QuorumEvents
) -> QuorumOutcome:
    outcome = collector.outcome(value, reached=True, reason=REASON_QUORUM)
    if outcome.value == "" and not config.allow_empty_winner:
        events.rejected(outcome.as_record())
        raise ResolversFailedError(
            f"{outcome.votes}/{outcome.total} askers produced no value",
            tally=outcome.tally,
            total=outcome.total,
            threshold=outcome.threshold,
            reason=REASON_QUORUM,
            pending=outcome.pending,
        )
    LOGGER.debug(
        "quorum reached for %r with %d/%d votes", outcome.value, outcome.votes, outcome.total
    )
    events.reached(outcome.as_record())
    return outcome


def run_quorum(
    askers: Sequence[Asker],
    *,
    config: QuorumConfig | None = None,
    event_logger: EventLogger | None = None,
) -> QuorumOutcome:
    """Run ``askers`` concurrently and return the first strict-majority value.

    All askers are started before the first result is read. Once the call
    returns or raises, askers that have not reported yet keep running on their
    daemon threads and whatever they produce is dropped.
    """

    if not askers:
        raise ValueError("askers must not be empty")
    if config is None:
        config = QuorumConfig()

    names = [asker_name(asker, index) for index, asker in enumerate(askers)]
    collector = _Collector(names)
    events = QuorumEvents(event_logger)
    deadline = None if config.timeout_s is None else time.monotonic() + config.timeout_s

    results: queue.SimpleQueue[tuple[int, AskResult]] = queue.SimpleQueue()
    slots = (
        threading.BoundedSemaphore(config.max_concurrency)
        if config.max_concurrency is not None and config.max_concurrency < collector.total
        else None
    )
    for index, asker in enumerate(askers):
        _start_asker(asker, index, names[index], results, slots)

    while collector.outstanding:
        timeout = None if deadline is None else max(deadline - time.monotonic(), 0.0)
        try:
            index, result = results.get(timeout=timeout)
        except queue.Empty:
            outcome = collector.outcome("", reached=False, reason=REASON_TIMEOUT)
            events.timed_out(outcome.as_record())
            raise QuorumTimeoutError(
                f"no quorum within {config.timeout_s}s",
                tally=outcome.tally,
                total=outcome.total,
                threshold=outcome.threshold,
                reason=REASON_TIMEOUT,
                pending=outcome.pending,
            ) from None
        _log_failure(result)
        events.asker_result(result)
        if collector.add(index, result) >= collector.threshold:
            return _accept(collector, result.text, config=config, events=events)
        if config.fail_fast and not _can_still_win(
            collector.tally, collector.outstanding, collector.threshold
        ):
            return _finish_without_quorum(
                collector, reason=REASON_UNREACHABLE, config=config, events=events
            )
    return _finish_without_quorum(
        collector, reason=REASON_EXHAUSTED, config=config, events=events
    )


def aggregate(
    askers: Sequence[Asker],
    *,
    config: QuorumConfig | None = None,
    event_logger: EventLogger | None = None,
) -> str:
    """Return the value agreed on by a strict majority of ``askers``."""

    return run_quorum(askers, config=config, event_logger=event_logger).value


__all__ = [
    "QuorumOutcome",
    "aggregate",
    "quorum_threshold",
    "run_quorum",
    "REASON_EXHAUSTED",
    "REASON_QUORUM",
    "REASON_TIMEOUT",
    "REASON_UNREACHABLE",
]
