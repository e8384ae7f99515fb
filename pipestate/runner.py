"""Pipeline runner — drives the handler through build, deploy and check.

The runner owns no build or deploy logic.  It calls out to pluggable
``Builder`` / ``Deployer`` / ``StatusChecker`` backends and reports every
boundary and outcome through an ``EventHandler``:

1. ``build``  — reset on build, then one worker per artifact
2. ``deploy`` — reset on deploy, deploy, then the status check
3. ``perform_status_check`` — started, delegate polling, succeeded/failed
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Protocol, runtime_checkable

from pipestate.config import Settings
from pipestate.config import settings as _default_settings
from pipestate.core.handler import EventHandler

logger = logging.getLogger(__name__)


class PipelineError(RuntimeError):
    """Base class for failures surfaced by the runner."""


class BuildError(PipelineError):
    """Raised when one or more artifacts failed to build."""

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = failures
        names = ", ".join(sorted(failures))
        super().__init__(f"build failed for artifact(s): {names}")


class DeployError(PipelineError):
    """Raised when the deployer reports a failure."""


class StatusCheckError(PipelineError):
    """Raised when deployed resources never became healthy."""


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class Builder(Protocol):
    """Builds a single artifact.  Raises on failure."""

    def build(self, artifact: str) -> None:
        ...


@runtime_checkable
class Deployer(Protocol):
    """Applies the built artifacts to the cluster.  Raises on failure."""

    def deploy(self, artifacts: list[str]) -> None:
        ...


@runtime_checkable
class StatusChecker(Protocol):
    """Waits for deployed resources to stabilize.

    Implementations report per-resource progress through the handler's
    ``resource_status_check_event_*`` and
    ``status_check_event_in_progress`` methods, and raise if the
    resources do not stabilize within *timeout* seconds.
    """

    def check(self, handler: EventHandler, timeout: float) -> None:
        ...


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class PipelineRunner:
    """Runs build -> deploy -> status check cycles for one pipeline.

    Parameters
    ----------
    handler:
        Where progress is recorded.
    builder, deployer:
        Phase backends.
    status_checker:
        Optional; without one the status check is skipped.
    settings:
        Runtime settings.  Defaults to the module-level
        ``pipestate.config.settings``.
    """

    def __init__(
        self,
        handler: EventHandler,
        builder: Builder,
        deployer: Deployer,
        status_checker: StatusChecker | None = None,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.handler = handler
        self._builder = builder
        self._deployer = deployer
        self._status_checker = status_checker
        self._settings = settings if settings is not None else _default_settings
        self.has_deployed = False

    @property
    def settings(self) -> Settings:
        return self._settings

    def dev_cycle(self, artifacts: list[str]) -> None:
        """One full iteration: build every artifact, then deploy them."""
        self.build(artifacts)
        self.deploy(artifacts)

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def build(self, artifacts: list[str]) -> None:
        """Build *artifacts* concurrently.

        Raises ``BuildError`` after every worker finished if any failed.
        """
        self.handler.reset_state_on_build()
        if not artifacts:
            return

        workers = max(1, min(self._settings.max_concurrent_builds, len(artifacts)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="build") as pool:
            results = list(pool.map(self._build_one, artifacts))

        failures = {name: exc for name, exc in zip(artifacts, results) if exc is not None}
        if failures:
            raise BuildError(failures)

    def _build_one(self, artifact: str) -> BaseException | None:
        self.handler.build_in_progress(artifact)
        try:
            self._builder.build(artifact)
        except Exception as exc:
            logger.warning("Build of %s failed: %s", artifact, exc)
            self.handler.build_failed(artifact, exc)
            return exc
        self.handler.build_complete(artifact)
        return None

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def deploy(self, artifacts: list[str]) -> None:
        """Deploy *artifacts*, then run the status check if enabled."""
        self.handler.reset_state_on_deploy()
        self.handler.deploy_in_progress()
        try:
            self._deployer.deploy(artifacts)
        except Exception as exc:
            self.handler.deploy_failed(exc)
            raise DeployError(f"deploying {len(artifacts)} artifact(s): {exc}") from exc
        finally:
            self.has_deployed = True
        self.handler.deploy_complete()
        self.perform_status_check()

    def perform_status_check(self) -> None:
        """Wait for deployments to stabilize, if checking is enabled."""
        if not self._settings.status_check or self._status_checker is None:
            return

        start = time.monotonic()
        logger.info("Waiting for deployments to stabilize")
        self.handler.status_check_event_started()
        try:
            self._status_checker.check(
                self.handler, self._settings.status_check_timeout_seconds
            )
        except Exception as exc:
            self.handler.status_check_event_failed(exc)
            raise StatusCheckError(f"status check: {exc}") from exc
        self.handler.status_check_event_succeeded()
        logger.info("Deployments stabilized in %.2fs", time.monotonic() - start)
