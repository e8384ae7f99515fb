"""pipestate: concurrent pipeline-status aggregation for build/deploy loops.

Tracks per-artifact builds, deploys, post-deploy status checks, file syncs
and active port-forwards for one pipeline run.  Phases report through an
``EventHandler``; observers read a deep-copied snapshot or tail the
ordered event stream.
"""

__version__ = "0.1.0"
__description__ = "Concurrent pipeline-status aggregator with a live event stream"

from pipestate.core.event_log import EventLog
from pipestate.core.handler import EventHandler
from pipestate.core.state_store import StateStore
from pipestate.monitor.projection import StateProjection
from pipestate.runner import PipelineRunner

__all__ = [
    "EventHandler",
    "EventLog",
    "PipelineRunner",
    "StateProjection",
    "StateStore",
    "__version__",
]
