"""Read-only access to the parsed package metadata in the data directory."""

from __future__ import annotations

import logging
import os
from typing import Any, Iterable, List, Sequence, Tuple

from common.data_files import exists_data_file, read_data_file
from constants import Constants

from .models import AllPackages, AnyPackage, NotNeededPackage, TypingsData

logger = logging.getLogger(__name__)


class PackageStore:
    """Loads package descriptors written by the parse step.

    ``typesData.json`` maps package name to descriptor (a list is accepted
    too); ``notNeededPackages.json`` holds ``{"packages": [...]}``.
    """

    def __init__(self, config: Any):
        self._data_dir = config.data_dir
        self._definitely_typed_path = config.definitely_typed_path

    def exists(self) -> bool:
        return exists_data_file(self._data_dir, Constants.TYPES_DATA_FILE)

    def read_typings(self) -> List[TypingsData]:
        raw = read_data_file(self._data_dir, Constants.TYPES_DATA_FILE)
        entries: Iterable[Any] = raw.values() if isinstance(raw, dict) else raw
        typings = [TypingsData.from_json(entry) for entry in entries]
        typings.sort(key=lambda t: t.typings_package_name)
        return typings

    def read_not_needed(self) -> List[NotNeededPackage]:
        if not exists_data_file(self._data_dir, Constants.NOT_NEEDED_FILE):
            return []
        raw = read_data_file(self._data_dir, Constants.NOT_NEEDED_FILE)
        entries = raw.get("packages", []) if isinstance(raw, dict) else raw
        return [NotNeededPackage.from_json(entry) for entry in entries]

    def read_all_packages(self) -> AllPackages:
        typings = self.read_typings()
        not_needed = self.read_not_needed()
        logger.debug("Loaded %d typings and %d not-needed packages", len(typings), len(not_needed))
        return AllPackages(tuple(typings), tuple(not_needed))

    def read_package(self, name: str) -> AnyPackage:
        """Return the descriptor for ``name``.

        Raises:
            KeyError: If no package has that name.
        """
        pkg = self.read_all_packages().find(name)
        if pkg is None:
            raise KeyError(f"No package named {name}")
        return pkg

    def package_path(self, pkg: TypingsData) -> str:
        """Directory holding ``pkg``'s sources in the upstream tree."""
        parts = [self._definitely_typed_path, pkg.typings_package_name]
        if pkg.subdirectory:
            parts.append(pkg.subdirectory)
        return os.path.join(*parts)

    def file_path(self, pkg: TypingsData, filename: str) -> str:
        return os.path.join(self.package_path(pkg), filename)


def changed_packages(all_packages: AllPackages, changes: Sequence[str]) -> Tuple[AnyPackage, ...]:
    """Map the persisted change list back to descriptors.

    Raises:
        KeyError: If a changed name doesn't match any known package.
    """
    by_name = {pkg.typings_package_name: pkg for pkg in all_packages.all()}
    result = []
    for name in changes:
        if name not in by_name:
            raise KeyError(f"Expected to find a package named {name}")
        result.append(by_name[name])
    return tuple(result)
