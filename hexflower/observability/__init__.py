"""
Observability for the Hex Flower Engine.

Provides a run log of navigation rolls and cursor movements.
"""

from hexflower.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    NavigationEvent,
    NavigationOutcome,
    get_run_log,
    reset_run_log,
)

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "NavigationEvent",
    "NavigationOutcome",
    "get_run_log",
    "reset_run_log",
]
