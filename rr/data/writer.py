from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from rr.core.result import Err, Ok, Result
from rr.data.loader import UNKNOWN_CREATED
from rr.retention.model import Release
from rr.retention.service import RetentionPlan

__all__ = ["PLAN_SCHEMA", "WriteError", "plan_to_payload", "write_plan"]

PLAN_SCHEMA = 1


@dataclass(frozen=True, slots=True)
class WriteError:
    message: str
    path: Path


def _release_payload(release: Release) -> dict[str, object]:
    # Same shape as Releases.json so a plan can be fed back to other tools.
    created = None if release.created == UNKNOWN_CREATED else release.created.isoformat()
    return {
        "Id": release.id,
        "ProjectId": release.project_id,
        "Version": release.version,
        "Created": created,
    }


def plan_to_payload(plan: RetentionPlan) -> dict[str, object]:
    return {
        "schema": PLAN_SCHEMA,
        "keep": [_release_payload(r) for r in plan.keep],
        "purge": [_release_payload(r) for r in plan.purge],
    }


def _dump_beside(path: Path, payload: dict[str, object]) -> None:
    # The temp file sits next to ``path`` so os.replace never crosses a
    # filesystem; readers see the old plan or the new one, never a partial.
    path.parent.mkdir(parents=True, exist_ok=True)
    staged: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as handle:
            staged = Path(handle.name)
            json.dump(payload, handle, indent=2)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staged, path)
        staged = None
    finally:
        if staged is not None:
            staged.unlink(missing_ok=True)


def write_plan(path: Path, plan: RetentionPlan) -> Result[None, WriteError]:
    """Write the keep/purge plan as JSON, replacing ``path`` atomically."""
    try:
        _dump_beside(path, plan_to_payload(plan))
    except OSError as e:
        return Err(WriteError(f"failed to write retention plan: {e}", path))
    return Ok(None)
