"""Package descriptors and the store that loads them."""

from .models import AllPackages, AnyPackage, NotNeededPackage, TypingsData, full_package_name
from .store import PackageStore, changed_packages

__all__ = [
    "AllPackages",
    "AnyPackage",
    "NotNeededPackage",
    "TypingsData",
    "full_package_name",
    "PackageStore",
    "changed_packages",
]
