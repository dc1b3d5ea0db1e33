"""Runs a retention strategy across every (project, environment) pair."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime

from rr.retention.errors import InvalidStrategyConfig
from rr.retention.model import Deployment, Environment, Project, Release, as_utc
from rr.retention.observer import RetentionObserver
from rr.retention.strategy import RetentionStrategy

__all__ = ["RetentionService", "RetentionPlan", "Scope"]


@dataclass(frozen=True, slots=True)
class Scope:
    """The inputs a strategy sees for one (project, environment) pair."""

    project: Project
    environment: Environment
    releases: tuple[Release, ...]
    deployments: tuple[Deployment, ...]


@dataclass(frozen=True, slots=True)
class RetentionPlan:
    """Every supplied release, split into keep and purge.

    Both sides are ordered by (project id, created, release id).
    """

    keep: tuple[Release, ...]
    purge: tuple[Release, ...]


def _report_order(release: Release) -> tuple[str, datetime, str]:
    return (release.project_id, as_utc(release.created), release.id)


class RetentionService:
    """Applies one strategy to each (project, environment) pair and merges the results.

    Pairs are independent, so with ``max_workers > 1`` they run on a thread
    pool. The merge always happens on the calling thread in pair order, which
    keeps the result identical to a sequential run.
    """

    def __init__(self, strategy: RetentionStrategy, *, max_workers: int = 1) -> None:
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise InvalidStrategyConfig("worker count", f"must be >= 1, got {max_workers!r}")
        self._strategy = strategy
        self._max_workers = max_workers

    def scopes(
        self,
        projects: Iterable[Project],
        environments: Iterable[Environment],
        releases: Iterable[Release],
        deployments: Iterable[Deployment],
    ) -> list[Scope]:
        """Partition the inputs into one scope per (project, environment) pair.

        Projects are the outer loop, environments the inner one. Input order is
        preserved inside each scope.
        """
        environments = list(environments)

        releases_by_project: defaultdict[str, list[Release]] = defaultdict(list)
        for release in releases:
            releases_by_project[release.project_id].append(release)

        deployments_by_env: defaultdict[str, list[Deployment]] = defaultdict(list)
        for deployment in deployments:
            deployments_by_env[deployment.environment_id].append(deployment)

        scopes: list[Scope] = []
        for project in projects:
            project_releases = tuple(releases_by_project.get(project.id, ()))
            release_ids = {r.id for r in project_releases}
            for environment in environments:
                env_deployments = tuple(
                    d
                    for d in deployments_by_env.get(environment.id, ())
                    if d.release_id in release_ids
                )
                scopes.append(Scope(project, environment, project_releases, env_deployments))
        return scopes

    def _run(self, scope: Scope, observer: RetentionObserver | None) -> set[Release]:
        return self._strategy.determine_releases_to_keep(
            scope.project,
            scope.environment,
            scope.releases,
            scope.deployments,
            observer=observer,
        )

    def determine_releases_to_keep(
        self,
        projects: Iterable[Project],
        environments: Iterable[Environment],
        releases: Iterable[Release],
        deployments: Iterable[Deployment],
        *,
        observer: RetentionObserver | None = None,
    ) -> set[Release]:
        """Return the union of every pair's kept releases, one entry per release id."""
        scopes = self.scopes(projects, environments, releases, deployments)

        kept: set[Release] = set()
        if self._max_workers == 1 or len(scopes) < 2:
            for scope in scopes:
                kept |= self._run(scope, observer)
            return kept

        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = [pool.submit(self._run, scope, observer) for scope in scopes]
            for future in futures:
                kept |= future.result()
        return kept

    def classify(
        self,
        projects: Iterable[Project],
        environments: Iterable[Environment],
        releases: Iterable[Release],
        deployments: Iterable[Deployment],
        *,
        observer: RetentionObserver | None = None,
    ) -> RetentionPlan:
        """Split every supplied release into keep and purge.

        Releases of unknown projects are never kept. Nothing is deleted here;
        acting on the plan is up to the caller.
        """
        releases = list(releases)
        kept = self.determine_releases_to_keep(
            projects, environments, releases, deployments, observer=observer
        )

        purge: dict[str, Release] = {}
        for release in releases:
            if release not in kept and release.id not in purge:
                purge[release.id] = release

        return RetentionPlan(
            keep=tuple(sorted(kept, key=_report_order)),
            purge=tuple(sorted(purge.values(), key=_report_order)),
        )
