"""Calculating the next version of every package from the registry's history.

The registry is the source of truth for what was last published: each
package's latest version carries the content hash it was built from. A
package whose local content hash differs (or that was never published) gets a
new version; everything else keeps the registry's version.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from common.concurrency import n_at_a_time
from common.data_files import exists_data_file, read_data_file, write_data_file, write_data_files
from common.errors import MissingVersionInfoError, RegistryInconsistencyError
from constants import Constants
from definitions.models import AllPackages, AnyPackage, NotNeededPackage, TypingsData

from .models import NEVER_PUBLISHED, Changes, VersionInfo, VersionResult
from .npm_info import fetch_version_info_from_npm
from .semver import Semver, parse_semver, update_version

logger = logging.getLogger(__name__)

# (package name, info to record, changed, added)
_Resolved = Tuple[str, VersionInfo, bool, bool]


class Versions:
    """Version info for every package, keyed by package name."""

    def __init__(self, data: Dict[str, VersionInfo]):
        self._data = {name: data[name] for name in sorted(data)}

    @classmethod
    async def determine_from_npm(
        cls,
        all_packages: AllPackages,
        fetcher: Any,
        config: Any,
        force_update: bool = False,
    ) -> VersionResult:
        """Compare content hashes of parsed packages against the registry.

        Args:
            all_packages: Live typings and not-needed packages.
            fetcher: Object with an async ``fetch_json(uri)``.
            config: Supplies ``registry_url`` and ``registry_concurrency``.
            force_update: Treat every live package as changed.

        Returns:
            VersionResult with ``changes``, ``additions`` (a subset of
            ``changes``) and the new :class:`Versions`.

        Raises:
            RegistryInconsistencyError: If a live package is deprecated in the
                registry. This aborts the whole run.
        """

        async def resolve_typings(pkg: TypingsData) -> _Resolved:
            name = pkg.typings_package_name
            registry_info = await fetch_version_info_from_npm(
                fetcher, config.registry_url, pkg.escaped_package_name, pkg.major_minor
            )
            added = registry_info is None
            if added:
                logger.info("Added: %s", name)
            info = registry_info or NEVER_PUBLISHED
            if info.deprecated:
                raise RegistryInconsistencyError(
                    f"Package {name} has been deprecated, so we shouldn't have parsed it. Was it re-added?"
                )
            changed = force_update or added or pkg.content_hash != info.content_hash
            if changed:
                logger.info("Changed: %s", name)
                info = VersionInfo(
                    version=update_version(info.version, pkg.library_major_version, pkg.library_minor_version),
                    content_hash=pkg.content_hash,
                    deprecated=info.deprecated,
                )
            return name, info, changed, added

        async def resolve_not_needed(pkg: NotNeededPackage) -> _Resolved:
            name = pkg.typings_package_name
            info = await fetch_version_info_from_npm(
                fetcher, config.registry_url, pkg.escaped_package_name
            ) or NEVER_PUBLISHED
            changed = not info.deprecated
            if changed:
                logger.info("Now deprecated: %s", name)
                version = parse_semver(pkg.as_of_version) if pkg.as_of_version else Semver(0, 0, 0)
                info = VersionInfo(version=version, content_hash=info.content_hash, deprecated=info.deprecated)
            return name, info, changed, False

        resolved: List[_Resolved] = []
        resolved += await n_at_a_time(
            config.registry_concurrency, all_packages.typings, resolve_typings, fail_fast=True
        )
        resolved += await n_at_a_time(
            config.registry_concurrency, all_packages.not_needed, resolve_not_needed, fail_fast=True
        )

        changes: Changes = []
        additions: Changes = []
        data: Dict[str, VersionInfo] = {}
        for name, info, changed, added in resolved:
            if changed:
                changes.append(name)
            if added:
                additions.append(name)
            data[name] = info

        logger.info(
            "Resolved %d packages: %d changed, %d added",
            len(data), len(changes), len(additions),
        )
        return VersionResult(changes=changes, additions=additions, versions=cls(data))

    @classmethod
    def load(cls, data_dir: str) -> "Versions":
        raw = read_data_file(data_dir, Constants.VERSIONS_FILE)
        return cls({name: VersionInfo.from_json(info) for name, info in raw.items()})

    @staticmethod
    def exists(data_dir: str) -> bool:
        return exists_data_file(data_dir, Constants.VERSIONS_FILE)

    def save(self, data_dir: str) -> str:
        return write_data_file(data_dir, Constants.VERSIONS_FILE, self.to_json())

    def to_json(self) -> Dict[str, Any]:
        # Sorted keys keep versions.json easy to read and diff.
        return {name: self._data[name].to_json() for name in sorted(self._data)}

    def names(self) -> List[str]:
        return list(self._data)

    def version_info(self, pkg: AnyPackage) -> VersionInfo:
        """Version info recorded for ``pkg``.

        Raises:
            MissingVersionInfoError: If the package wasn't part of the run.
        """
        info = self._data.get(pkg.typings_package_name)
        if info is None:
            raise MissingVersionInfoError(f"No version info for {pkg.typings_package_name}")
        return info

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, name: object) -> bool:
        return name in self._data


def read_changes(data_dir: str) -> Changes:
    """Read all changed packages."""
    return list(read_data_file(data_dir, Constants.CHANGES_FILE))


def read_additions(data_dir: str) -> Changes:
    """Read only packages which are newly added."""
    return list(read_data_file(data_dir, Constants.ADDITIONS_FILE))


def write_changes(data_dir: str, changes: Changes, additions: Changes) -> None:
    write_data_files(data_dir, {
        Constants.CHANGES_FILE: list(changes),
        Constants.ADDITIONS_FILE: list(additions),
    })


def changes_exist(data_dir: str) -> bool:
    return exists_data_file(data_dir, Constants.CHANGES_FILE)


def save_result(data_dir: str, result: VersionResult) -> None:
    """Persist a finished run.

    The version map and both change lists are staged together, so a failed
    write never leaves a new versions.json next to stale change lists.
    """
    write_data_files(data_dir, {
        Constants.VERSIONS_FILE: result.versions.to_json(),
        Constants.CHANGES_FILE: list(result.changes),
        Constants.ADDITIONS_FILE: list(result.additions),
    })
