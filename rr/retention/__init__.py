"""Retention decision engine.

Pure computation over in-memory entities: no I/O, no CLI, no Rich.
"""

from .errors import InvalidStrategyConfig
from .model import Deployment, Environment, Project, Release, as_utc
from .observer import ConsoleObserver, KeptEvent, NullObserver, RecordingObserver, RetentionObserver
from .service import RetentionPlan, RetentionService, Scope
from .strategy import (
    STRATEGY_NAMES,
    KeepDeployedWithinStrategy,
    KeepMostRecentStrategy,
    RetentionStrategy,
    build_strategy,
)

__all__ = [
    # model
    "Deployment",
    "Environment",
    "Project",
    "Release",
    "as_utc",
    # errors
    "InvalidStrategyConfig",
    # observer
    "ConsoleObserver",
    "KeptEvent",
    "NullObserver",
    "RecordingObserver",
    "RetentionObserver",
    # strategy
    "STRATEGY_NAMES",
    "KeepDeployedWithinStrategy",
    "KeepMostRecentStrategy",
    "RetentionStrategy",
    "build_strategy",
    # service
    "RetentionPlan",
    "RetentionService",
    "Scope",
]
