"""Testing declaration packages before they are published.

Each package goes through the same steps, stopping at the first failure:

1. ``npm install`` if the package has a package.json (bulk phase, below)
2. tsconfig.json house rules
3. package.json field allow-list
4. compile with tsc
5. lint with tslint, if the package has a tslint.json

All packages are installed before any is tested. Failures are collected and
reported together at the end so one run surfaces every broken package.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple

from common.concurrency import Outcome, n_at_a_time
from common.data_files import read_json
from common.errors import ValidationError
from common.logging_utils import PackageLog, extra_context
from common.process import ProcessResult, ProcessRunner
from config import default_concurrency
from constants import Constants
from definitions.models import TypingsData

from .checks import check_package_json, check_tsconfig
from .report import TesterError, TestFailure, collect_failures, format_failures, raise_for_failures

logger = logging.getLogger(__name__)

_BENIGN_NPM_WARNING = re.compile(Constants.NPM_BENIGN_WARNING)


def strip_benign_warnings(output: str) -> str:
    """Drop npm's complaints about missing description/repository/license."""
    return _BENIGN_NPM_WARNING.sub("", output)


class Tester:
    """Runs the install and test steps for single packages."""

    __test__ = False

    def __init__(
        self,
        store: Any,
        process_runner: Optional[ProcessRunner] = None,
        reader: Callable[[str], Any] = read_json,
    ):
        self._store = store
        self._runner = process_runner or ProcessRunner()
        self._read = reader

    async def install_dependencies(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        cwd = self._store.package_path(pkg)
        if not os.path.isfile(os.path.join(cwd, Constants.PACKAGE_JSON_FILE)):
            return None
        result = await self._runner.run("npm", ["install"], cwd)
        stdout = strip_benign_warnings(result.stdout)
        if stdout:
            log.info(stdout)
        if not result.ok:
            message = f"npm install exited with code {result.exit_code}\n{stdout}\n{result.stderr}"
            log.error(message)
            return TesterError(message)
        return None

    async def test_single(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        """Run steps 2-5 on ``pkg``; return the first failure, or None."""
        steps: Sequence[Callable[[TypingsData, PackageLog], Awaitable[Optional[TesterError]]]] = (
            self._check_tsconfig,
            self._check_package_json,
            self._compile,
            self._lint,
        )
        for step in steps:
            err = await step(pkg, log)
            if err is not None:
                return err
        return None

    async def _check_tsconfig(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        path = self._store.file_path(pkg, Constants.TSCONFIG_FILE)
        return _catch_errors(log, lambda: check_tsconfig(self._read(path)))

    async def _check_package_json(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        if not pkg.has_package_json:
            return None
        path = self._store.file_path(pkg, Constants.PACKAGE_JSON_FILE)
        return _catch_errors(log, lambda: check_package_json(path, self._read))

    async def _compile(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        return await self._run_command(log, self._store.package_path(pkg), Constants.TSC_COMMAND)

    async def _lint(self, pkg: TypingsData, log: PackageLog) -> Optional[TesterError]:
        cwd = self._store.package_path(pkg)
        if not os.path.isfile(os.path.join(cwd, Constants.TSLINT_FILE)):
            return None
        return await self._run_command(log, cwd, Constants.TSLINT_COMMAND, "--format", "stylish", *pkg.files)

    async def _run_command(self, log: PackageLog, cwd: str, cmd: str, *args: str) -> Optional[TesterError]:
        log.info(f"Running: {' '.join((cmd,) + args)}")
        result: ProcessResult = await self._runner.run(cmd, list(args), cwd)
        if result.stdout:
            log.info(result.stdout)
        if result.stderr:
            log.error(result.stderr)
        if result.ok:
            return None
        return TesterError(f"{cmd} exited with code {result.exit_code}\n{result.stdout}\n{result.stderr}")


def _catch_errors(log: PackageLog, action: Callable[[], None]) -> Optional[TesterError]:
    try:
        action()
    except (ValidationError, OSError) as err:
        log.error(str(err))
        return TesterError(str(err))
    return None


def _as_tester_error(outcome: Outcome[Optional[TesterError]]) -> Optional[TesterError]:
    if outcome.error is not None:
        return TesterError(f"{type(outcome.error).__name__}: {outcome.error}")
    return outcome.value


async def run_tests(
    packages: Sequence[TypingsData],
    tester: Tester,
    max_concurrency: Optional[int] = None,
) -> List[TestFailure]:
    """Install then test ``packages``, at most ``max_concurrency`` at a time.

    Returns:
        The failures, sorted by package name (empty when all passed).

    Raises:
        TestFailuresError: If any package failed.
    """
    names = [pkg.typings_package_name for pkg in packages]
    logger.info("Testing %d packages: %s", len(packages), ",".join(names))
    if max_concurrency is None:
        max_concurrency = default_concurrency()
    logger.info("Running with %d processes.", max_concurrency)

    async def install(pkg: TypingsData) -> Optional[TesterError]:
        log = PackageLog(pkg.typings_package_name)
        try:
            return await tester.install_dependencies(pkg, log)
        finally:
            log.flush_to(logger, lambda m: m)

    async def test(pkg: TypingsData) -> Optional[TesterError]:
        log = PackageLog(pkg.typings_package_name)
        try:
            return await tester.test_single(pkg, log)
        finally:
            logger.info("Testing %s", pkg.typings_package_name)
            log.flush_to(logger)

    logger.info("Installing dependencies...")
    install_outcomes = await n_at_a_time(max_concurrency, packages, install)

    results: List[Tuple[str, Optional[TesterError]]] = []
    installed: List[TypingsData] = []
    for pkg, outcome in zip(packages, install_outcomes):
        err = _as_tester_error(outcome)
        if err is None:
            installed.append(pkg)
        else:
            results.append((pkg.typings_package_name, err))

    logger.info("Testing...")
    test_outcomes = await n_at_a_time(max_concurrency, installed, test)
    results.extend(
        (pkg.typings_package_name, _as_tester_error(outcome))
        for pkg, outcome in zip(installed, test_outcomes)
    )

    failures = collect_failures(results)
    if failures:
        logger.error(
            format_failures(failures),
            extra=extra_context(event="test_failures", count=len(failures)),
        )
    raise_for_failures(failures)
    return failures


def select_packages(
    typings: Sequence[TypingsData],
    pattern: Optional[str] = None,
    changed: Optional[Sequence[str]] = None,
) -> List[TypingsData]:
    """Pick the packages to test.

    A ``pattern`` (regex searched in the package name) wins; otherwise
    ``changed`` names restrict the set; otherwise everything.
    """
    if pattern is not None:
        regexp = re.compile(pattern)
        return [t for t in typings if regexp.search(t.typings_package_name)]
    if changed is not None:
        wanted = set(changed)
        return [t for t in typings if t.typings_package_name in wanted]
    return list(typings)
