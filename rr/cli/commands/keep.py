"""Keep command - decide which releases to retain and which may be purged."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import NoReturn

import typer

from rr.cli.context import build_context
from rr.core.config import RetentionConfig
from rr.core.errors import ErrorCode
from rr.core.result import Err, Ok
from rr.data.loader import UNKNOWN_CREATED, Dataset, load_dataset, load_dataset_lenient
from rr.data.writer import write_plan
from rr.output.console import ConsoleProtocol, Style
from rr.retention.errors import InvalidStrategyConfig
from rr.retention.model import Release
from rr.retention.observer import ConsoleObserver, NullObserver, RetentionObserver
from rr.retention.service import RetentionPlan, RetentionService
from rr.retention.strategy import STRATEGY_NAMES, build_strategy


def _exit(console: ConsoleProtocol, message: str, *, code: ErrorCode) -> NoReturn:
    console.error(message)
    raise typer.Exit(code=int(code))


def _settings(
    base: RetentionConfig,
    *,
    strategy: str | None,
    keep_count: int | None,
    max_age_days: int | None,
    workers: int | None,
) -> RetentionConfig:
    overrides: dict[str, object] = {
        "strategy": strategy,
        "keep": keep_count,
        "max_age_days": max_age_days,
        "workers": workers,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def _load(console: ConsoleProtocol, data_dir: Path, *, lenient: bool) -> Dataset:
    if lenient:
        dataset, errors = load_dataset_lenient(data_dir)
        for error in errors:
            console.warning(f"{error.message} (treated as empty)")
        return dataset

    match load_dataset(data_dir):
        case Ok(dataset):
            return dataset
        case Err(error):
            _exit(console, error.message, code=ErrorCode.IO_ERROR)


def _created(release: Release) -> str:
    if release.created == UNKNOWN_CREATED:
        return "-"
    return release.created.strftime("%Y-%m-%d %H:%M")


def _rows(releases: tuple[Release, ...], project_names: dict[str, str]) -> list[list[str]]:
    return [
        [
            project_names.get(r.project_id, r.project_id),
            r.id,
            r.version or "-",
            _created(r),
        ]
        for r in releases
    ]


def _report(console: ConsoleProtocol, plan: RetentionPlan, dataset: Dataset) -> None:
    project_names = {p.id: p.name for p in dataset.projects}
    columns = ("Project", "Release", "Version", "Created")

    if plan.keep:
        console.table("Keep", columns, _rows(plan.keep, project_names))
    else:
        console.print("No releases to keep", Style.DIM)

    if plan.purge:
        console.table("Purge", columns, _rows(plan.purge, project_names))

    console.success(f"{len(plan.keep)} kept, {len(plan.purge)} purgeable")


def keep(
    data_dir: Path | None = typer.Option(
        None, "--data-dir", "-d", help="Directory holding Projects/Environments/Releases/Deployments.json"
    ),
    keep_count: int | None = typer.Option(
        None, "--keep", "-n", help="Deployments to keep per project and environment"
    ),
    strategy: str | None = typer.Option(
        None, "--strategy", help=f"Retention policy: {', '.join(STRATEGY_NAMES)}"
    ),
    max_age_days: int | None = typer.Option(
        None, "--max-age-days", help="Age limit for the deployed-within policy"
    ),
    workers: int | None = typer.Option(None, "--workers", help="Evaluate pairs on N threads"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to retention.toml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the plan as JSON"),
    lenient: bool = typer.Option(False, "--lenient", help="Treat unreadable data files as empty"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not list each kept release"),
) -> None:
    """Classify releases into keep and purge. Nothing is deleted."""
    ctx = build_context(config)
    console = ctx.console

    settings = _settings(
        ctx.config.retention,
        strategy=strategy,
        keep_count=keep_count,
        max_age_days=max_age_days,
        workers=workers,
    )
    try:
        service = RetentionService(build_strategy(settings), max_workers=settings.workers)
    except InvalidStrategyConfig as e:
        _exit(console, str(e), code=ErrorCode.USER_ERROR)

    dataset = _load(console, data_dir or Path(ctx.config.data.dir), lenient=lenient)

    observer: RetentionObserver = NullObserver() if quiet else ConsoleObserver(console)
    plan = service.classify(
        dataset.projects,
        dataset.environments,
        dataset.releases,
        dataset.deployments,
        observer=observer,
    )

    _report(console, plan, dataset)

    if output is not None:
        result = write_plan(output, plan)
        if isinstance(result, Err):
            _exit(console, result.error.message, code=ErrorCode.IO_ERROR)
        console.info(f"plan written to {output}")
