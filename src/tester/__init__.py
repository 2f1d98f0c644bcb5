"""Per-package checks, compilation and linting before publishing."""

from .report import TesterError, TestFailure, collect_failures, raise_for_failures
from .runner import Tester, run_tests, select_packages

__all__ = [
    "TesterError",
    "TestFailure",
    "collect_failures",
    "raise_for_failures",
    "Tester",
    "run_tests",
    "select_packages",
]
