from __future__ import annotations

from datetime import datetime

import pytest

from rr.retention.errors import InvalidStrategyConfig
from rr.retention.model import Deployment, Release
from rr.retention.observer import RecordingObserver
from rr.retention.service import RetentionService
from rr.retention.strategy import KeepMostRecentStrategy
from rr.test._factories import deployment, environment, project, release


def _service(num_to_keep: int = 1, *, max_workers: int = 1) -> RetentionService:
    return RetentionService(KeepMostRecentStrategy(num_to_keep), max_workers=max_workers)


def test_keeps_most_recent_release() -> None:
    r1 = release("R1", version="1.0.0", created="2024-01-01T08:00:00")
    r2 = release("R2", version="1.0.1", created="2024-01-02T08:00:00")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E1", "2024-01-02T12:00:00"),
    ]

    result = _service().determine_releases_to_keep([project()], [environment()], [r1, r2], deployments)

    assert result == {r2}


def test_release_without_deployments_is_not_kept() -> None:
    result = _service().determine_releases_to_keep(
        [project()], [environment()], [release("R1")], []
    )
    assert result == set()


def test_keeps_most_recent_per_environment() -> None:
    r1 = release("R1")
    r2 = release("R2", version="1.0.1")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E2", "2024-01-02T12:00:00"),
    ]

    result = _service().determine_releases_to_keep(
        [project()],
        [environment("E1", "Staging"), environment("E2", "Production")],
        [r1, r2],
        deployments,
    )

    assert result == {r1, r2}


def test_respects_keep_limit() -> None:
    releases = [
        release("R1", version="1.0.0", created="2024-01-01T08:00:00"),
        release("R2", version="1.0.1", created="2024-01-02T08:00:00"),
        release("R3", version="1.0.2", created="2024-01-03T08:00:00"),
    ]
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E1", "2024-01-02T12:00:00"),
        deployment("D3", "R3", "E1", "2024-01-03T12:00:00"),
    ]

    result = _service(2).determine_releases_to_keep(
        [project()], [environment()], releases, deployments
    )

    assert result == {releases[1], releases[2]}


def test_zero_to_keep_keeps_nothing() -> None:
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E1", "2024-01-02T12:00:00"),
    ]
    result = _service(0).determine_releases_to_keep(
        [project()], [environment()], [release("R1"), release("R2")], deployments
    )
    assert result == set()


def test_projects_sharing_an_environment_are_not_mixed() -> None:
    r1 = release("R1", project_id="P1", version="1.0.0")
    r2 = release("R2", project_id="P1", version="1.0.1")
    # Same version string as R1, different project.
    r3 = release("R3", project_id="P2", version="1.0.0")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E1", "2024-01-02T12:00:00"),
        deployment("D3", "R3", "E1", "2024-01-01T10:00:00"),
    ]
    observer = RecordingObserver()

    result = _service().determine_releases_to_keep(
        [project("P1"), project("P2")],
        [environment()],
        [r1, r2, r3],
        deployments,
        observer=observer,
    )

    assert result == {r2, r3}
    kept_for = {(e.project.id, e.release.id) for e in observer.events}
    assert kept_for == {("P1", "R2"), ("P2", "R3")}


def test_same_release_in_two_environments_appears_once() -> None:
    r1 = release("R1")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R1", "E2", "2024-01-02T12:00:00"),
    ]
    observer = RecordingObserver()

    result = _service().determine_releases_to_keep(
        [project()],
        [environment("E1", "Staging"), environment("E2", "Production")],
        [r1],
        deployments,
        observer=observer,
    )

    assert result == {r1}
    assert len(result) == 1
    # Kept by both passes, merged into one entry.
    assert len(observer.events) == 2


def test_empty_inputs_yield_empty_result() -> None:
    service = _service(3)
    assert service.determine_releases_to_keep([], [], [], []) == set()
    assert service.determine_releases_to_keep([project()], [], [release("R1")], []) == set()
    assert service.determine_releases_to_keep([], [environment()], [release("R1")], []) == set()


def test_deployment_of_unknown_release_is_ignored() -> None:
    r1 = release("R1")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R-missing", "E1", "2024-01-05T10:00:00"),
    ]

    result = _service().determine_releases_to_keep([project()], [environment()], [r1], deployments)

    assert result == {r1}


def test_release_of_unknown_project_is_never_kept() -> None:
    orphan = release("R9", project_id="P-missing")
    deployments = [deployment("D1", "R9", "E1", "2024-01-01T10:00:00")]

    result = _service().determine_releases_to_keep(
        [project()], [environment()], [orphan], deployments
    )

    assert result == set()


def test_deployment_to_unknown_environment_is_ignored() -> None:
    deployments = [deployment("D1", "R1", "E-missing", "2024-01-01T10:00:00")]
    result = _service().determine_releases_to_keep(
        [project()], [environment()], [release("R1")], deployments
    )
    assert result == set()


def test_result_is_deterministic() -> None:
    releases = [release(f"R{i}") for i in range(5)]
    # All deployed at the same instant: the tie-break decides.
    deployments = [deployment(f"D{i}", f"R{i}", "E1", "2024-01-01T10:00:00") for i in range(5)]
    service = _service(2)

    first = service.determine_releases_to_keep([project()], [environment()], releases, deployments)
    for _ in range(5):
        again = service.determine_releases_to_keep(
            [project()], [environment()], releases, deployments
        )
        assert {r.id for r in again} == {r.id for r in first}
    assert {r.id for r in first} == {"R0", "R1"}


def test_scopes_partition_by_project_and_environment() -> None:
    r1 = release("R1", project_id="P1")
    r2 = release("R2", project_id="P2")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        deployment("D2", "R2", "E1", "2024-01-01T11:00:00"),
        deployment("D3", "R1", "E2", "2024-01-01T12:00:00"),
    ]

    scopes = _service().scopes(
        [project("P1"), project("P2")],
        [environment("E1"), environment("E2")],
        [r1, r2],
        deployments,
    )

    assert [(s.project.id, s.environment.id) for s in scopes] == [
        ("P1", "E1"),
        ("P1", "E2"),
        ("P2", "E1"),
        ("P2", "E2"),
    ]
    assert [d.id for d in scopes[0].deployments] == ["D1"]
    assert [d.id for d in scopes[1].deployments] == ["D3"]
    assert [d.id for d in scopes[2].deployments] == ["D2"]
    assert scopes[3].deployments == ()
    assert scopes[2].releases == (r2,)


def test_naive_deployment_mixed_with_aware_ones() -> None:
    r1 = release("R1")
    r2 = release("R2", version="1.0.1")
    deployments = [
        deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
        Deployment("D2", "R2", "E1", datetime(2024, 1, 2, 10, 0)),
    ]

    result = _service().determine_releases_to_keep([project()], [environment()], [r1, r2], deployments)

    assert result == {r2}


class TestParallel:
    def _data(self) -> tuple[list, list, list[Release], list]:
        projects = [project(f"P{p}") for p in range(4)]
        environments = [environment(f"E{e}", f"Env-{e}") for e in range(3)]
        releases = [
            release(f"P{p}-R{r}", project_id=f"P{p}") for p in range(4) for r in range(6)
        ]
        deployments = [
            deployment(
                f"D{p}-{r}-{e}",
                f"P{p}-R{r}",
                f"E{e}",
                f"2024-01-{(r * 3 + e) % 28 + 1:02d}T10:00:00",
            )
            for p in range(4)
            for r in range(6)
            for e in range(3)
            if (r + e) % 2 == 0
        ]
        return projects, environments, releases, deployments

    def test_matches_sequential_result(self) -> None:
        projects, environments, releases, deployments = self._data()

        sequential = _service(2).determine_releases_to_keep(
            projects, environments, releases, deployments
        )
        parallel = _service(2, max_workers=4).determine_releases_to_keep(
            projects, environments, releases, deployments
        )

        assert parallel == sequential
        assert sequential

    def test_observer_sees_every_pair(self) -> None:
        projects, environments, releases, deployments = self._data()
        observer = RecordingObserver()

        _service(1, max_workers=4).determine_releases_to_keep(
            projects, environments, releases, deployments, observer=observer
        )

        pairs = {(e.project.id, e.environment.id) for e in observer.events}
        assert len(pairs) == len(projects) * len(environments)

    def test_rejects_non_positive_workers(self) -> None:
        with pytest.raises(InvalidStrategyConfig, match="worker count"):
            _service(max_workers=0)


class TestClassify:
    def test_splits_keep_and_purge(self) -> None:
        r1 = release("R1", created="2024-01-01T08:00:00")
        r2 = release("R2", created="2024-01-02T08:00:00")
        r3 = release("R3", created="2024-01-03T08:00:00")
        deployments = [
            deployment("D1", "R1", "E1", "2024-01-01T10:00:00"),
            deployment("D3", "R3", "E1", "2024-01-03T10:00:00"),
        ]

        plan = _service().classify([project()], [environment()], [r3, r1, r2], deployments)

        assert plan.keep == (r3,)
        assert plan.purge == (r1, r2)

    def test_duplicate_release_ids_purged_once(self) -> None:
        r1 = release("R1")
        plan = _service().classify([project()], [environment()], [r1, r1], [])
        assert plan.keep == ()
        assert plan.purge == (r1,)

    def test_orphan_releases_are_purge_candidates(self) -> None:
        orphan = release("R9", project_id="P-missing")
        plan = _service().classify([project()], [environment()], [orphan], [])
        assert plan.purge == (orphan,)

    def test_naive_created_sorts_with_aware_ones(self) -> None:
        r1 = release("R1", created="2024-01-02T08:00:00")
        r2 = Release("R2", "1.0.1", "P1", datetime(2024, 1, 1, 8, 0))
        r3 = release("R3", created="2024-01-03T08:00:00")

        plan = _service().classify([project()], [environment()], [r3, r1, r2], [])

        assert plan.keep == ()
        assert [r.id for r in plan.purge] == ["R2", "R1", "R3"]
