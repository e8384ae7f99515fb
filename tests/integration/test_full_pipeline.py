"""End-to-end tests — concurrent phases, live observers, consistent results.

These tests exercise the EventHandler, StateStore, EventLog, reset
transforms, StateProjection and PipelineRunner working together, with
real threads standing in for build/deploy/port-forward workers.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from pipestate.config import Settings
from pipestate.core.handler import EventHandler
from pipestate.models.events import BuildEvent, EventKind
from pipestate.models.state import State
from pipestate.models.status import Status
from pipestate.monitor.projection import StateProjection
from pipestate.runner import PipelineRunner

ARTIFACTS = [f"image-{i}" for i in range(16)]


class _SlowBuilder:
    def __init__(self) -> None:
        self.barrier = threading.Barrier(4)

    def build(self, artifact: str) -> None:
        # Forces four builds to overlap.
        self.barrier.wait(timeout=5)


class _NoopDeployer:
    def deploy(self, artifacts: list[str]) -> None:
        pass


class _Checker:
    def check(self, handler: EventHandler, timeout: float) -> None:
        for i in range(8):
            handler.resource_status_check_event_succeeded(f"ns:pod/p{i}")


class TestConcurrentPhases:
    @pytest.fixture
    def handler(self) -> EventHandler:
        return EventHandler.for_artifacts(ARTIFACTS)

    def test_disjoint_updates_not_lost(self, handler: EventHandler):
        def build(name: str) -> None:
            handler.build_in_progress(name)
            handler.log_event(f"building {name}")
            handler.build_complete(name)

        def forward(port: int) -> None:
            handler.port_forwarded(port, 80, f"pod-{port}", "c", "ns", "http", "pod", f"pod-{port}")

        with ThreadPoolExecutor(max_workers=16) as pool:
            futures = [pool.submit(build, name) for name in ARTIFACTS]
            futures += [pool.submit(forward, 9000 + i) for i in range(32)]
            futures.append(pool.submit(handler.deploy_in_progress))
            for f in futures:
                f.result()

        state = handler.get_state()
        assert all(s == Status.COMPLETE for s in state.build_state.artifacts.values())
        assert sorted(state.forwarded_ports) == list(range(9000, 9032))
        assert state.deploy_state.status == Status.IN_PROGRESS

        builds = [e for e in handler.log.history() if isinstance(e, BuildEvent)]
        assert len(builds) == 2 * len(ARTIFACTS)

    def test_tailers_see_same_order(self, handler: EventHandler, start_tailer):
        tailers = [start_tailer(handler.log) for _ in range(3)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            for name in ARTIFACTS:
                pool.submit(handler.build_in_progress, name)
        handler.close()

        for thread, _ in tailers:
            thread.join(timeout=5)
            assert not thread.is_alive()

        expected = [id(e) for e in handler.log.history()[:-1]]
        for _, received in tailers:
            assert len(received) == len(ARTIFACTS)
            assert [id(e) for e in received] == expected

    def test_transient_in_progress_visible_in_stream(self, handler: EventHandler):
        handler.build_in_progress("image-0")
        handler.build_complete("image-0")
        handler.close()
        statuses = []
        handler.for_each_event(lambda e: statuses.append(e.status))
        assert statuses == [Status.IN_PROGRESS, Status.COMPLETE]
        assert handler.get_state().build_state.artifacts["image-0"] == Status.COMPLETE

    def test_snapshots_never_half_reset(self, handler: EventHandler):
        stop = threading.Event()
        torn: list[set[Status]] = []

        def all_complete(state: State) -> State:
            for name in state.build_state.artifacts:
                state.build_state.artifacts[name] = Status.COMPLETE
            return state

        def reader() -> None:
            while not stop.is_set():
                values = set(handler.get_state().build_state.artifacts.values())
                if len(values) > 1:
                    torn.append(values)

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for t in threads:
            t.start()
        for _ in range(200):
            handler.store.replace(all_complete)
            handler.reset_state_on_build()
        stop.set()
        for t in threads:
            t.join(timeout=5)
        assert torn == []


class TestRunnerWithObserver:
    def test_runner_stream_reconstructs_state(self):
        handler = EventHandler.for_artifacts(ARTIFACTS[:8])
        projection = StateProjection(handler.log, ARTIFACTS[:8])
        kinds: list[EventKind] = []
        observer = threading.Thread(
            target=handler.for_each_event, args=(lambda e: kinds.append(e.kind),)
        )
        observer.start()

        runner = PipelineRunner(
            handler, _SlowBuilder(), _NoopDeployer(), _Checker(),
            settings=Settings(max_concurrent_builds=4),
        )
        runner.dev_cycle(ARTIFACTS[:8])
        handler.close()
        observer.join(timeout=5)

        assert projection.snapshot().model_dump() == handler.get_state().model_dump()
        assert kinds.count(EventKind.BUILD) == 16
        assert kinds.count(EventKind.RESOURCE_STATUS_CHECK) == 8
        state = handler.get_state()
        assert state.status_check_state.status == Status.SUCCEEDED
