"""Reading retention inputs and writing retention plans."""

from .loader import (
    Dataset,
    LoadError,
    load_dataset,
    load_dataset_lenient,
    load_deployments,
    load_environments,
    load_projects,
    load_releases,
)
from .writer import WriteError, plan_to_payload, write_plan

__all__ = [
    "Dataset",
    "LoadError",
    "WriteError",
    "load_dataset",
    "load_dataset_lenient",
    "load_deployments",
    "load_environments",
    "load_projects",
    "load_releases",
    "plan_to_payload",
    "write_plan",
]
