"""Three-part versions of published @types packages and how they advance."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Dict, Iterable, Optional, TypeVar

import semantic_version

from common.errors import UnexpectedSemverError

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class Semver:
    """Version of a package published to the registry.

    Ordered field-wise by (major, minor, patch). ``Semver.NONE`` (-1.-1.-1)
    stands for "never published" and sorts below every real version.
    """

    major: int
    minor: int
    patch: int

    NONE: ClassVar["Semver"]

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_json(self) -> Dict[str, int]:
        return {"major": self.major, "minor": self.minor, "patch": self.patch}

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Semver":
        return cls(int(data["major"]), int(data["minor"]), int(data["patch"]))


Semver.NONE = Semver(-1, -1, -1)


def try_parse_semver(text: str) -> Optional[Semver]:
    """Parse ``X.Y.Z`` (non-negative, no leading zeros), else return None.

    Prerelease and build tags such as ``1.0.0-beta`` count as unparsable: the
    registry holds them but they are never ours.
    """
    try:
        parsed = semantic_version.Version(text)
    except (ValueError, TypeError):
        return None
    if parsed.prerelease or parsed.build or str(parsed) != text:
        return None
    return Semver(parsed.major, parsed.minor, parsed.patch)


def parse_semver(text: str) -> Semver:
    """Like :func:`try_parse_semver` but a bad string is an error."""
    result = try_parse_semver(text)
    if result is None:
        raise UnexpectedSemverError(f"Unexpected semver: {text}")
    return result


def best(items: Iterable[T], is_better: Callable[[T, T], bool]) -> Optional[T]:
    """Return the item no other item is better than, or None if empty."""
    result: Optional[T] = None
    first = True
    for item in items:
        if first or is_better(item, result):  # type: ignore[arg-type]
            result = item
            first = False
    return result


def latest_patch_matching(version_keys: Iterable[str], major: int, minor: int) -> Optional[int]:
    """Highest patch among ``version_keys`` published under ``major.minor``.

    Keys that don't parse are skipped.
    """
    patches = []
    for key in version_keys:
        version = try_parse_semver(key)
        if version is not None and version.major == major and version.minor == minor:
            patches.append(version.patch)
    return best(patches, lambda a, b: a > b)


def update_version(prev: Semver, new_major: int, new_minor: int) -> Semver:
    """Next version to publish for a changed package.

    Same major.minor as before bumps the patch; anything else means the
    library itself moved, so take its major.minor and start at patch 0.
    """
    if prev.major == new_major and prev.minor == new_minor:
        return Semver(prev.major, prev.minor, prev.patch + 1)
    return Semver(new_major, new_minor, 0)
