from __future__ import annotations

from collections.abc import Iterator
import threading

import pytest


@pytest.fixture
def gate() -> Iterator[threading.Event]:
    """Gate for slow askers; always opened at teardown so no worker lingers."""

    event = threading.Event()
    yield event
    event.set()
