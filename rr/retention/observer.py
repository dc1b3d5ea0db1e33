"""Observers notified when a strategy keeps a release.

Observers are purely informational: a strategy computes the same result with
or without one. They are passed per call, never wired globally.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Protocol

from rr.output.console import ConsoleProtocol, Style
from rr.retention.model import Environment, Project, Release

__all__ = [
    "RetentionObserver",
    "NullObserver",
    "ConsoleObserver",
    "RecordingObserver",
    "KeptEvent",
    "NULL_OBSERVER",
]


class RetentionObserver(Protocol):
    def release_kept(self, project: Project, environment: Environment, release: Release) -> None:
        """Called once per release a strategy keeps for a (project, environment) scope."""
        ...


class NullObserver:
    def release_kept(self, project: Project, environment: Environment, release: Release) -> None:
        return None


NULL_OBSERVER = NullObserver()


class ConsoleObserver:
    """Reports kept releases as dimmed lines on a console."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console
        # Rich consoles are not safe to interleave from worker threads.
        self._lock = threading.Lock()

    def release_kept(self, project: Project, environment: Environment, release: Release) -> None:
        message = (
            f"Keeping release {release.version} for project {project.name} "
            f"in environment {environment.name}."
        )
        with self._lock:
            self._console.print(message, Style.DIM)


@dataclass(frozen=True, slots=True)
class KeptEvent:
    project: Project
    environment: Environment
    release: Release


def _empty_events() -> list[KeptEvent]:
    return []


@dataclass
class RecordingObserver:
    """Captures every notification; safe to share across worker threads."""

    events: list[KeptEvent] = field(default_factory=_empty_events)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def release_kept(self, project: Project, environment: Environment, release: Release) -> None:
        with self._lock:
            self.events.append(KeptEvent(project, environment, release))

    def kept_in(self, environment_id: str) -> set[str]:
        """Release ids kept in the given environment, across all projects."""
        with self._lock:
            return {e.release.id for e in self.events if e.environment.id == environment_id}
