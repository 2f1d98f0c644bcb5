"""Runtime configuration for a publisher run.

Precedence, lowest to highest: built-in defaults, YAML config file,
environment variables, CLI arguments. The resulting value is handed to the
components that need it; nothing reads configuration from module state.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Optional

import yaml

from constants import Constants

logger = logging.getLogger(__name__)


def default_concurrency() -> int:
    """Number of parallel workers to use when the caller doesn't say."""
    return os.cpu_count() or 1


@dataclass(frozen=True)
class PublisherConfig:
    """Configuration for the tester and the version resolver."""

    registry_url: str = Constants.REGISTRY_URL_NPM
    definitely_typed_path: str = Constants.DEFINITELY_TYPED_PATH
    data_dir: str = Constants.DATA_DIR
    max_concurrency: int = field(default_factory=default_concurrency)
    registry_concurrency: int = Constants.REGISTRY_CONCURRENCY
    request_timeout: int = Constants.REQUEST_TIMEOUT
    retry_max: int = Constants.HTTP_RETRY_MAX
    retry_base_delay: float = Constants.HTTP_RETRY_BASE_DELAY_SEC

    def __post_init__(self) -> None:
        if self.max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {self.max_concurrency}")
        if self.registry_concurrency <= 0:
            raise ValueError(f"registry_concurrency must be positive, got {self.registry_concurrency}")
        if self.retry_max <= 0:
            raise ValueError(f"retry_max must be positive, got {self.retry_max}")
        if not self.registry_url.endswith("/"):
            object.__setattr__(self, "registry_url", self.registry_url + "/")

    def with_overrides(self, **overrides: Any) -> "PublisherConfig":
        """Return a copy with the non-None ``overrides`` applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    @classmethod
    def from_args(cls, args: Any) -> "PublisherConfig":
        """Create config from defaults, config file, environment and CLI arguments.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            PublisherConfig instance.
        """
        config = cls()
        config_path = getattr(args, "CONFIG", None)
        if config_path:
            config = config.with_overrides(**load_config_file(config_path))
        config = config.with_overrides(**_env_overrides())
        return config.with_overrides(
            registry_url=getattr(args, "REGISTRY_URL", None),
            data_dir=getattr(args, "DATA_DIR", None),
            definitely_typed_path=getattr(args, "DEFINITELY_TYPED_PATH", None),
            max_concurrency=getattr(args, "N_PROCESSES", None),
        )


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load configuration overrides from a YAML file.

    The file may hold the keys at top level or under a ``publisher:`` section.
    A missing file is an error, since the user asked for it explicitly.
    """
    if not os.path.isfile(config_path):
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    section = data.get("publisher", data)
    if not isinstance(section, dict):
        raise ValueError(f"'publisher' section in {config_path} must be a mapping")
    logger.debug("Loaded config from %s: %s", config_path, sorted(section))
    return dict(section)


def _env_overrides() -> Dict[str, Any]:
    overrides: Dict[str, Any] = {
        "registry_url": os.environ.get(Constants.ENV_REGISTRY_URL) or None,
        "data_dir": os.environ.get(Constants.ENV_DATA_DIR) or None,
        "definitely_typed_path": os.environ.get(Constants.ENV_DEFINITELY_TYPED) or None,
    }
    raw = os.environ.get(Constants.ENV_MAX_CONCURRENCY)
    if raw:
        try:
            overrides["max_concurrency"] = int(raw)
        except ValueError as exc:
            raise ValueError(f"{Constants.ENV_MAX_CONCURRENCY} must be an integer, got {raw!r}") from exc
    return overrides
