"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    TEST_FAILURE = 3
    INCONSISTENT_REGISTRY = 4


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    TYPES_SCOPE = "@types"
    REGISTRY_CONCURRENCY = 25
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    DEFINITELY_TYPED_PATH = "../DefinitelyTyped"
    DATA_DIR = "data"
    TYPES_DATA_FILE = "typesData.json"
    NOT_NEEDED_FILE = "notNeededPackages.json"
    VERSIONS_FILE = "versions.json"
    CHANGES_FILE = "version-changes.json"
    ADDITIONS_FILE = "version-additions.json"

    TSCONFIG_FILE = "tsconfig.json"
    PACKAGE_JSON_FILE = "package.json"
    TSLINT_FILE = "tslint.json"
    TSC_COMMAND = "tsc"
    TSLINT_COMMAND = "tslint"

    # compilerOptions that must match exactly
    REQUIRED_COMPILER_OPTIONS = {
        "module": "commonjs",
        "noEmit": True,
        "forceConsistentCasingInFileNames": True,
    }
    # compilerOptions that must be present, value unchecked
    PRESENT_COMPILER_OPTIONS = ("noImplicitAny", "strictNullChecks")
    ALLOWED_PACKAGE_JSON_FIELDS = ("dependencies", "peerDependencies", "description")
    NPM_BENIGN_WARNING = r"npm WARN \S+ No (description|repository field\.|license field\.)\n?"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "TYPESPUB_LOG_LEVEL"
    ENV_REGISTRY_URL = "TYPESPUB_REGISTRY_URL"
    ENV_DATA_DIR = "TYPESPUB_DATA_DIR"
    ENV_DEFINITELY_TYPED = "TYPESPUB_DEFINITELY_TYPED"
    ENV_MAX_CONCURRENCY = "TYPESPUB_MAX_CONCURRENCY"
