"""Observer-side views over the event stream.

Modules
-------
projection
    ``StateProjection`` replays an ``EventLog`` into a ``State`` — what a
    remote client tailing the stream would reconstruct.
"""
