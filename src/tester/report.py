"""Collecting per-package test failures into one report."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from common.errors import TestFailuresError


@dataclass(frozen=True)
class TesterError:
    """Why a package failed; only the first failing step is reported."""

    __test__ = False

    message: str


@dataclass(frozen=True)
class TestFailure:
    __test__ = False

    package_name: str
    message: str


def collect_failures(results: Iterable[Tuple[str, Optional[TesterError]]]) -> List[TestFailure]:
    """Keep the failed ``(package_name, error)`` pairs, sorted by name.

    Sorting is plain (case-sensitive) string order so the report doesn't
    depend on which package finished first.
    """
    failures = [TestFailure(name, err.message) for name, err in results if err is not None]
    failures.sort(key=lambda f: f.package_name)
    return failures


def format_failures(failures: List[TestFailure]) -> str:
    lines = ["", "", "=== ERRORS ===", ""]
    for failure in failures:
        lines.append(f"Error in {failure.package_name}")
        lines.append(failure.message)
    return "\n".join(lines)


def raise_for_failures(failures: List[TestFailure]) -> None:
    """Raise one TestFailuresError listing every failure, if there are any."""
    if failures:
        raise TestFailuresError([(f.package_name, f.message) for f in failures])
