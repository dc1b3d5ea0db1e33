"""Result type for loaders and writers.

Boundary code (reading data files, writing plans, parsing config) reports
failure as a value instead of raising, so callers can tell "no data" apart
from "load failed":

    match load_releases(path):
        case Ok(releases):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result carrying ``value``."""

    value: T


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result carrying ``error``."""

    error: E


type Result[T, E] = Ok[T] | Err[E]
