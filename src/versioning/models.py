"""Data models for version calculation."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .semver import Semver

# Names of packages, as in typesData.json.
Changes = List[str]


@dataclass(frozen=True)
class VersionInfo:
    """Latest version info for a package.

    If the package changed, ``version`` is the version to publish and
    ``content_hash`` the new hash. Otherwise both are what the registry has.
    """
    version: Semver
    content_hash: str = ""  # also stored as "typesPublisherContentHash" in the registry
    deprecated: bool = False

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self.version.to_json(),
            "contentHash": self.content_hash,
            "deprecated": self.deprecated,
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "VersionInfo":
        return cls(
            version=Semver.from_json(data["version"]),
            content_hash=data.get("contentHash", ""),
            deprecated=bool(data.get("deprecated", False)),
        )


NEVER_PUBLISHED = VersionInfo(Semver.NONE, "", False)


@dataclass
class VersionResult:
    """Outcome of a resolver run. ``additions`` is a subset of ``changes``."""
    changes: Changes = field(default_factory=list)
    additions: Changes = field(default_factory=list)
    versions: Any = None
