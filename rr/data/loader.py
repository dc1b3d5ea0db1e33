"""Load projects, environments, releases and deployments from JSON files.

Each file is a JSON array of objects with PascalCase keys, e.g. Releases.json:

    [{"Id": "Release-1", "ProjectId": "Project-1", "Version": "1.0.0",
      "Created": "2000-01-01T09:00:00"}]

Every loader returns ``Ok(tuple_of_entities)`` or ``Err(LoadError)``. A file
holding JSON ``null`` is an empty collection, not an error.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from rr.core.result import Err, Ok, Result
from rr.core.structured import StrDict, as_obj_list, as_str_dict, get_str
from rr.retention.model import Deployment, Environment, Project, Release

__all__ = [
    "Dataset",
    "LoadError",
    "PROJECTS_FILE",
    "ENVIRONMENTS_FILE",
    "RELEASES_FILE",
    "DEPLOYMENTS_FILE",
    "UNKNOWN_CREATED",
    "load_projects",
    "load_environments",
    "load_releases",
    "load_deployments",
    "load_dataset",
    "load_dataset_lenient",
    "parse_timestamp",
]

PROJECTS_FILE = "Projects.json"
ENVIRONMENTS_FILE = "Environments.json"
RELEASES_FILE = "Releases.json"
DEPLOYMENTS_FILE = "Deployments.json"

# Stand-in for a release with no Created value; sorts before every real one.
UNKNOWN_CREATED = datetime.min.replace(tzinfo=UTC)

LoadErrorKind = Literal[
    "not_found",
    "unreadable",
    "invalid_json",
    "invalid_shape",
    "invalid_record",
]


@dataclass(frozen=True, slots=True)
class LoadError:
    kind: LoadErrorKind
    message: str
    path: Path


@dataclass(frozen=True, slots=True)
class Dataset:
    """The four collections the retention service consumes."""

    projects: tuple[Project, ...] = ()
    environments: tuple[Environment, ...] = ()
    releases: tuple[Release, ...] = ()
    deployments: tuple[Deployment, ...] = ()


def parse_timestamp(value: str) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken to be UTC. Returns None if unparseable, or if
    the UTC equivalent falls outside the datetime range (for example
    ``0001-01-01T00:00:00+01:00``).
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    except (ValueError, OverflowError):
        return None


def _required_id(record: StrDict, key: str) -> Result[str, str]:
    value = get_str(record, key)
    if value is None:
        return Err(f"missing {key}")
    return Ok(value)


def _plain_str(record: StrDict, key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


def _timestamp(record: StrDict, key: str, *, default: datetime | None = None) -> Result[datetime, str]:
    raw = record.get(key)
    if raw is None and default is not None:
        return Ok(default)
    if not isinstance(raw, str):
        return Err(f"missing {key}")
    parsed = parse_timestamp(raw)
    if parsed is None:
        return Err(f"invalid {key} timestamp: {raw!r}")
    return Ok(parsed)


def _parse_project(record: StrDict) -> Result[Project, str]:
    project_id = _required_id(record, "Id")
    if isinstance(project_id, Err):
        return project_id
    return Ok(Project(id=project_id.value, name=_plain_str(record, "Name")))


def _parse_environment(record: StrDict) -> Result[Environment, str]:
    env_id = _required_id(record, "Id")
    if isinstance(env_id, Err):
        return env_id
    return Ok(Environment(id=env_id.value, name=_plain_str(record, "Name")))


def _parse_release(record: StrDict) -> Result[Release, str]:
    release_id = _required_id(record, "Id")
    if isinstance(release_id, Err):
        return release_id
    project_id = _required_id(record, "ProjectId")
    if isinstance(project_id, Err):
        return project_id
    created = _timestamp(record, "Created", default=UNKNOWN_CREATED)
    if isinstance(created, Err):
        return created

    return Ok(
        Release(
            id=release_id.value,
            version=_plain_str(record, "Version"),
            project_id=project_id.value,
            created=created.value,
        )
    )


def _parse_deployment(record: StrDict) -> Result[Deployment, str]:
    deployment_id = _required_id(record, "Id")
    if isinstance(deployment_id, Err):
        return deployment_id
    release_id = _required_id(record, "ReleaseId")
    if isinstance(release_id, Err):
        return release_id
    environment_id = _required_id(record, "EnvironmentId")
    if isinstance(environment_id, Err):
        return environment_id
    deployed_at = _timestamp(record, "DeployedAt")
    if isinstance(deployed_at, Err):
        return deployed_at

    return Ok(
        Deployment(
            id=deployment_id.value,
            release_id=release_id.value,
            environment_id=environment_id.value,
            deployed_at=deployed_at.value,
        )
    )


def _load_records[T](
    path: Path, parse: Callable[[StrDict], Result[T, str]]
) -> Result[tuple[T, ...], LoadError]:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Err(LoadError("not_found", f"data file not found: {path}", path))
    except (OSError, UnicodeDecodeError) as e:
        return Err(LoadError("unreadable", f"failed to read data file: {e}", path))

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(LoadError("invalid_json", f"invalid JSON in {path.name}: {e}", path))

    if obj is None:
        return Ok(())

    items = as_obj_list(obj)
    if items is None:
        return Err(LoadError("invalid_shape", f"{path.name} root must be a JSON array", path))

    out: list[T] = []
    for index, item in enumerate(items):
        record = as_str_dict(item)
        if record is None:
            return Err(
                LoadError("invalid_shape", f"{path.name}[{index}] must be a JSON object", path)
            )
        parsed = parse(record)
        if isinstance(parsed, Err):
            return Err(LoadError("invalid_record", f"{path.name}[{index}]: {parsed.error}", path))
        out.append(parsed.value)

    return Ok(tuple(out))


def load_projects(path: Path) -> Result[tuple[Project, ...], LoadError]:
    return _load_records(path, _parse_project)


def load_environments(path: Path) -> Result[tuple[Environment, ...], LoadError]:
    return _load_records(path, _parse_environment)


def load_releases(path: Path) -> Result[tuple[Release, ...], LoadError]:
    return _load_records(path, _parse_release)


def load_deployments(path: Path) -> Result[tuple[Deployment, ...], LoadError]:
    return _load_records(path, _parse_deployment)


def load_dataset(data_dir: Path) -> Result[Dataset, LoadError]:
    """Load all four files from ``data_dir``, stopping at the first failure."""
    projects = load_projects(data_dir / PROJECTS_FILE)
    if isinstance(projects, Err):
        return projects
    environments = load_environments(data_dir / ENVIRONMENTS_FILE)
    if isinstance(environments, Err):
        return environments
    releases = load_releases(data_dir / RELEASES_FILE)
    if isinstance(releases, Err):
        return releases
    deployments = load_deployments(data_dir / DEPLOYMENTS_FILE)
    if isinstance(deployments, Err):
        return deployments

    return Ok(
        Dataset(
            projects=projects.value,
            environments=environments.value,
            releases=releases.value,
            deployments=deployments.value,
        )
    )


def load_dataset_lenient(data_dir: Path) -> tuple[Dataset, tuple[LoadError, ...]]:
    """Load all four files, treating any file that fails as empty.

    The failures are returned alongside so the caller can still report them.
    """
    errors: list[LoadError] = []

    def collect[T](result: Result[tuple[T, ...], LoadError]) -> tuple[T, ...]:
        if isinstance(result, Err):
            errors.append(result.error)
            return ()
        return result.value

    dataset = Dataset(
        projects=collect(load_projects(data_dir / PROJECTS_FILE)),
        environments=collect(load_environments(data_dir / ENVIRONMENTS_FILE)),
        releases=collect(load_releases(data_dir / RELEASES_FILE)),
        deployments=collect(load_deployments(data_dir / DEPLOYMENTS_FILE)),
    )
    return dataset, tuple(errors)
