from __future__ import annotations

import pytest

from ip_quorum.askers import (
    AskResult,
    asker_name,
    CallableAsker,
    FailureReason,
    normalize_result,
)


def test_failure_collapses_to_empty_text() -> None:
    result = AskResult(asker="x", value="1.2.3.4", reason=FailureReason.MALFORMED)

    assert result.ok is False
    assert result.text == ""


def test_empty_success_is_distinguishable_from_failure() -> None:
    answered_empty = AskResult.success("a", "")
    errored = AskResult.failure("b", FailureReason.TRANSPORT, error=OSError("down"))

    assert answered_empty.text == errored.text == ""
    assert answered_empty.ok is True
    assert errored.ok is False
    assert isinstance(errored.error, OSError)


def test_callable_asker_wraps_plain_function() -> None:
    asker = CallableAsker("static", lambda: "192.0.2.1")

    result = asker()

    assert asker.name == "static"
    assert result.ok
    assert result.value == "192.0.2.1"
    assert result.latency_ms is not None


def test_asker_name_falls_back_to_position() -> None:
    assert asker_name(lambda: "x", 3) == "asker-3"
    assert asker_name(CallableAsker("named", lambda: ""), 0) == "named"


def test_normalize_result_rejects_unknown_types() -> None:
    assert normalize_result("a", "1.1.1.1") == AskResult.success("a", "1.1.1.1")
    with pytest.raises(TypeError):
        normalize_result("a", None)
