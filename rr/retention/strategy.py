"""Retention strategies.

A strategy decides, for one (project, environment) scope, which of the
project's releases to keep. The service only ever talks to the
``RetentionStrategy`` protocol, so a new policy is a new class here and
nothing else changes.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta
from typing import Protocol

from rr.core.config import RetentionConfig
from rr.retention.errors import InvalidStrategyConfig
from rr.retention.model import Deployment, Environment, Project, Release, as_utc
from rr.retention.observer import NULL_OBSERVER, RetentionObserver

__all__ = [
    "RetentionStrategy",
    "KeepMostRecentStrategy",
    "KeepDeployedWithinStrategy",
    "STRATEGY_NAMES",
    "build_strategy",
]


class RetentionStrategy(Protocol):
    def determine_releases_to_keep(
        self,
        project: Project,
        environment: Environment,
        releases: Sequence[Release],
        deployments: Sequence[Deployment],
        *,
        observer: RetentionObserver | None = None,
    ) -> set[Release]:
        """Return the subset of ``releases`` to keep in this scope.

        ``releases`` belong to ``project`` and ``deployments`` target
        ``environment``. Deployments of releases not in ``releases`` must be
        ignored.
        """
        ...


def _scoped_deployments(
    releases: Sequence[Release], deployments: Sequence[Deployment]
) -> list[Deployment]:
    release_ids = {r.id for r in releases}
    return [d for d in deployments if d.release_id in release_ids]


def _select(
    project: Project,
    environment: Environment,
    releases: Sequence[Release],
    keep_ids: set[str],
    observer: RetentionObserver | None,
) -> set[Release]:
    observer = observer or NULL_OBSERVER
    kept: set[Release] = set()
    for release in releases:
        if release.id not in keep_ids or release in kept:
            continue
        kept.add(release)
        observer.release_kept(project, environment, release)
    return kept


class KeepMostRecentStrategy:
    """Keep the releases behind the N most recent deployments.

    N counts deployment records, not distinct releases: a release redeployed
    inside the top N takes several slots, so fewer than N releases can be
    kept. Equal timestamps keep their input order; naive timestamps are read
    as UTC.
    """

    def __init__(self, num_to_keep: int) -> None:
        if isinstance(num_to_keep, bool) or not isinstance(num_to_keep, int):
            raise InvalidStrategyConfig("keep count", f"expected an integer, got {num_to_keep!r}")
        if num_to_keep < 0:
            raise InvalidStrategyConfig("keep count", f"must be >= 0, got {num_to_keep}")
        self._num_to_keep = num_to_keep

    @property
    def num_to_keep(self) -> int:
        return self._num_to_keep

    def determine_releases_to_keep(
        self,
        project: Project,
        environment: Environment,
        releases: Sequence[Release],
        deployments: Sequence[Deployment],
        *,
        observer: RetentionObserver | None = None,
    ) -> set[Release]:
        if self._num_to_keep == 0:
            return set()

        # sorted() is stable under reverse=True as well.
        recent = sorted(
            _scoped_deployments(releases, deployments),
            key=lambda d: as_utc(d.deployed_at),
            reverse=True,
        )[: self._num_to_keep]

        keep_ids = {d.release_id for d in recent}
        return _select(project, environment, releases, keep_ids, observer)

    def __repr__(self) -> str:
        return f"KeepMostRecentStrategy(num_to_keep={self._num_to_keep})"


class KeepDeployedWithinStrategy:
    """Keep every release deployed within ``max_age`` of a reference instant.

    Without an explicit ``now`` the reference is the newest deployment in the
    scope, so the decision depends on the data alone and not on the clock.
    Naive timestamps, including ``now``, are read as UTC.
    """

    def __init__(self, max_age: timedelta, *, now: datetime | None = None) -> None:
        if max_age < timedelta(0):
            raise InvalidStrategyConfig("max age", f"must not be negative, got {max_age}")
        self._max_age = max_age
        self._now = now

    def determine_releases_to_keep(
        self,
        project: Project,
        environment: Environment,
        releases: Sequence[Release],
        deployments: Sequence[Deployment],
        *,
        observer: RetentionObserver | None = None,
    ) -> set[Release]:
        scoped = _scoped_deployments(releases, deployments)
        if not scoped:
            return set()

        instants = [(d.release_id, as_utc(d.deployed_at)) for d in scoped]
        now = as_utc(self._now) if self._now is not None else max(at for _, at in instants)
        keep_ids = {release_id for release_id, at in instants if now - at <= self._max_age}
        return _select(project, environment, releases, keep_ids, observer)

    def __repr__(self) -> str:
        return f"KeepDeployedWithinStrategy(max_age={self._max_age!r}, now={self._now!r})"


STRATEGY_NAMES = ("most-recent", "deployed-within")


def build_strategy(config: RetentionConfig) -> RetentionStrategy:
    """Build the strategy named in ``config``.

    Raises:
        InvalidStrategyConfig: Unknown strategy name or out-of-range setting.
    """
    match config.strategy:
        case "most-recent":
            return KeepMostRecentStrategy(config.keep)
        case "deployed-within":
            try:
                max_age = timedelta(days=config.max_age_days)
            except OverflowError:
                raise InvalidStrategyConfig(
                    "max age", f"too large: {config.max_age_days} days"
                ) from None
            return KeepDeployedWithinStrategy(max_age)
        case other:
            names = ", ".join(STRATEGY_NAMES)
            raise InvalidStrategyConfig("strategy", f"unknown {other!r} (expected one of: {names})")
