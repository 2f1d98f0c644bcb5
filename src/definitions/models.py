"""Package descriptors produced by the parse step and read by the publisher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union

from constants import Constants


def full_package_name(typings_package_name: str) -> str:
    """``foo`` -> ``@types/foo``."""
    return f"{Constants.TYPES_SCOPE}/{typings_package_name}"


def escape_package_name(name: str) -> str:
    """Escape a scoped name for use as a single registry URL path segment."""
    return name.replace("/", "%2f")


@dataclass(frozen=True)
class TypingsData:
    """One publishable declaration package."""

    typings_package_name: str
    library_major_version: int
    library_minor_version: int
    content_hash: str
    has_package_json: bool = False
    files: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    subdirectory: Optional[str] = None

    @property
    def full_package_name(self) -> str:
        return full_package_name(self.typings_package_name)

    @property
    def escaped_package_name(self) -> str:
        return escape_package_name(self.full_package_name)

    @property
    def major_minor(self) -> Tuple[int, int]:
        return self.library_major_version, self.library_minor_version

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TypingsData":
        deps = data.get("dependencies") or ()
        if isinstance(deps, dict):
            deps = tuple(sorted(deps))
        return cls(
            typings_package_name=data["typingsPackageName"],
            library_major_version=int(data["libraryMajorVersion"]),
            library_minor_version=int(data["libraryMinorVersion"]),
            content_hash=data.get("contentHash", ""),
            has_package_json=bool(data.get("hasPackageJson", False)),
            files=tuple(data.get("files") or ()),
            dependencies=tuple(deps),
            subdirectory=data.get("subDirectoryPath") or None,
        )


@dataclass(frozen=True)
class NotNeededPackage:
    """A package whose library now ships its own types; it gets deprecated."""

    typings_package_name: str
    library_name: str = ""
    source_repo_url: str = ""
    as_of_version: Optional[str] = None

    @property
    def full_package_name(self) -> str:
        return full_package_name(self.typings_package_name)

    @property
    def escaped_package_name(self) -> str:
        return escape_package_name(self.full_package_name)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "NotNeededPackage":
        return cls(
            typings_package_name=data["typingsPackageName"],
            library_name=data.get("libraryName", ""),
            source_repo_url=data.get("sourceRepoURL", ""),
            as_of_version=data.get("asOfVersion") or None,
        )


AnyPackage = Union[TypingsData, NotNeededPackage]


@dataclass(frozen=True)
class AllPackages:
    """Live packages and not-needed (to be deprecated) packages."""

    typings: Tuple[TypingsData, ...] = ()
    not_needed: Tuple[NotNeededPackage, ...] = field(default=())

    def all(self) -> Iterator[AnyPackage]:
        yield from self.typings
        yield from self.not_needed

    def find(self, name: str) -> Optional[AnyPackage]:
        for pkg in self.all():
            if pkg.typings_package_name == name:
                return pkg
        return None
