"""Argument parsing functionality for typespub."""

import argparse


def _positive_int(value: str) -> int:
    try:
        number = int(value, 10)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected a number, got {value!r}") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Expected a positive number, got {number}")
    return number


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to YAML configuration file",
                        action="store",
                        type=str)
    parser.add_argument("--data-dir",
                        dest="DATA_DIR",
                        help="Directory holding typesData.json and the version files",
                        action="store",
                        type=str)
    parser.add_argument("--registry",
                        dest="REGISTRY_URL",
                        help="npm registry base URL",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="typespub",
        description="Test and version @types declaration packages for publishing",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="action", required=True)

    test_parser = subparsers.add_parser(
        "test",
        help="Check, compile and lint packages",
    )
    _add_common_options(test_parser)
    test_parser.add_argument("PATTERN",
                             help="Only test packages whose name matches this regular expression",
                             nargs="?",
                             default=None)
    test_parser.add_argument("--all",
                             dest="ALL",
                             help="Test every package, not just the changed ones",
                             action="store_true")
    test_parser.add_argument("--nProcesses", "--n-processes",
                             dest="N_PROCESSES",
                             help="Number of packages to work on at once (default: CPU count)",
                             action="store",
                             type=_positive_int)
    test_parser.add_argument("--runFromDefinitelyTyped", "--run-from-definitely-typed",
                             dest="RUN_FROM_DEFINITELY_TYPED",
                             help="Use the current directory as the DefinitelyTyped checkout",
                             action="store_true")
    test_parser.add_argument("--definitely-typed",
                             dest="DEFINITELY_TYPED_PATH",
                             help="Path to the DefinitelyTyped checkout",
                             action="store",
                             type=str)

    versions_parser = subparsers.add_parser(
        "calculate-versions",
        help="Compare packages against the registry and compute versions to publish",
    )
    _add_common_options(versions_parser)
    versions_parser.add_argument("--forceUpdate", "--force-update",
                                 dest="FORCE_UPDATE",
                                 help="Treat every package as changed",
                                 action="store_true")

    return parser.parse_args(argv)
