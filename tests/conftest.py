"""Shared test fixtures for pipestate."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any

import pytest

from pipestate.core.event_log import EventLog
from pipestate.core.handler import EventHandler
from pipestate.core.state_store import StateStore
from pipestate.models.events import EventBase
from pipestate.models.state import PortForward


@pytest.fixture
def artifact_names() -> list[str]:
    """The artifacts a test run is configured with."""
    return ["img"]


@pytest.fixture
def store(artifact_names: list[str]) -> StateStore:
    """Provide a fresh StateStore seeded with the test artifacts."""
    return StateStore(artifact_names)


@pytest.fixture
def event_log() -> EventLog:
    """Provide an empty EventLog."""
    return EventLog()


@pytest.fixture
def handler(store: StateStore, event_log: EventLog) -> EventHandler:
    """Provide an EventHandler wired to the test store and log."""
    return EventHandler(store, event_log)


@pytest.fixture
def make_port_forward() -> Callable[..., PortForward]:
    """Factory fixture: build a PortForward with sensible defaults."""

    def _factory(local_port: int = 8080, **overrides: Any) -> PortForward:
        defaults: dict[str, Any] = {
            "local_port": local_port,
            "remote_port": 8888,
            "pod_name": "pod",
            "container_name": "container",
            "namespace": "ns",
            "port_name": "portname",
            "resource_type": "resourceType",
            "resource_name": "resourceName",
        }
        defaults.update(overrides)
        return PortForward(**defaults)

    return _factory


@pytest.fixture
def start_tailer() -> Callable[[EventLog], tuple[threading.Thread, list[EventBase]]]:
    """Factory fixture: tail a log on a daemon thread, collecting events."""

    def _factory(log: EventLog) -> tuple[threading.Thread, list[EventBase]]:
        received: list[EventBase] = []
        thread = threading.Thread(target=log.tail, args=(received.append,), daemon=True)
        thread.start()
        return thread, received

    return _factory


@pytest.fixture
def wait_for() -> Callable[..., None]:
    """Poll a condition until true or fail the test after a timeout."""

    def _wait(condition: Callable[[], bool], timeout: float = 5.0) -> None:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if condition():
                return
            time.sleep(0.01)
        pytest.fail("Timed out waiting")

    return _wait
