from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime


# Entities compare and hash by id only: a set of releases holds one entry per
# release identity no matter which environment pass selected it.


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str = field(compare=False)


@dataclass(frozen=True, slots=True)
class Environment:
    id: str
    name: str = field(compare=False)


@dataclass(frozen=True, slots=True)
class Release:
    """A versioned build of one project."""

    id: str
    version: str = field(compare=False)
    project_id: str = field(compare=False)
    created: datetime = field(compare=False)


@dataclass(frozen=True, slots=True)
class Deployment:
    """One instant a release was deployed to one environment."""

    id: str
    release_id: str = field(compare=False)
    environment_id: str = field(compare=False)
    deployed_at: datetime = field(compare=False)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` with a naive timestamp read as UTC.

    Aware and naive datetimes cannot be compared or subtracted, and callers
    building entities by hand do not always attach a zone. Aware values are
    returned unchanged.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
