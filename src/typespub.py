"""typespub - test and version @types packages before publishing.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import sys

from args import parse_args
from common.errors import (
    MissingVersionInfoError,
    RegistryError,
    RegistryInconsistencyError,
    TestFailuresError,
    UnexpectedSemverError,
    ValidationError,
)
from common.http_client import RegistryFetcher
from common.logging_utils import configure_logging
from config import PublisherConfig
from constants import Constants, ExitCodes
from definitions import PackageStore
from tester import Tester, run_tests, select_packages
from versioning.versions import Versions, changes_exist, read_changes, save_result

logger = logging.getLogger(__name__)


def _setup_logging(args) -> None:
    """Configure logging based on CLI arguments."""
    configure_logging(getattr(args, "LOG_LEVEL", None))
    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def _require_types_data(store: PackageStore) -> None:
    if not store.exists():
        logger.error("Run parse-definitions first! (%s not found)", Constants.TYPES_DATA_FILE)
        sys.exit(ExitCodes.FILE_ERROR.value)


def run_test_command(args, config: PublisherConfig) -> None:
    """Entry point for ``typespub test``."""
    store = PackageStore(config)
    _require_types_data(store)
    typings = store.read_typings()

    if args.PATTERN is not None:
        selected = select_packages(typings, pattern=args.PATTERN)
    elif args.ALL or not changes_exist(config.data_dir):
        selected = select_packages(typings)
    else:
        selected = select_packages(typings, changed=read_changes(config.data_dir))

    tester = Tester(store)
    asyncio.run(run_tests(selected, tester, config.max_concurrency))
    logger.info("All %d packages passed.", len(selected))


def run_calculate_versions(args, config: PublisherConfig) -> None:
    """Entry point for ``typespub calculate-versions``."""
    store = PackageStore(config)
    _require_types_data(store)
    all_packages = store.read_all_packages()
    fetcher = RegistryFetcher.from_config(config)

    result = asyncio.run(
        Versions.determine_from_npm(all_packages, fetcher, config, force_update=args.FORCE_UPDATE)
    )
    # Only written once every package resolved.
    save_result(config.data_dir, result)
    logger.info(
        "Wrote %s: %d changes, %d additions",
        Constants.VERSIONS_FILE, len(result.changes), len(result.additions),
    )


def main(argv=None) -> None:
    """Main function of the program."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        config = PublisherConfig.from_args(args)
        if getattr(args, "RUN_FROM_DEFINITELY_TYPED", False):
            config = config.with_overrides(definitely_typed_path=os.getcwd())
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    try:
        if args.action == "test":
            run_test_command(args, config)
        elif args.action == "calculate-versions":
            run_calculate_versions(args, config)
    except TestFailuresError as e:
        logger.error("There was a test failure in: %s", ", ".join(e.package_names))
        sys.exit(ExitCodes.TEST_FAILURE.value)
    except RegistryInconsistencyError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.INCONSISTENT_REGISTRY.value)
    except RegistryError as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.CONNECTION_ERROR.value)
    except (ValidationError, UnexpectedSemverError, MissingVersionInfoError, KeyError, OSError) as e:
        logger.error("%s", e)
        sys.exit(ExitCodes.FILE_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
