"""Exception types raised across the publisher."""

from __future__ import annotations

from typing import List, Sequence, Tuple


class PublisherError(RuntimeError):
    """Base class for errors the CLI knows how to report."""


class ValidationError(PublisherError):
    """A package's tsconfig.json or package.json breaks a house rule."""


class RegistryError(PublisherError):
    """The registry answered with an error we can't interpret as "missing"."""


class RegistryInconsistencyError(PublisherError):
    """A package we're about to publish is marked deprecated in the registry."""


class UnexpectedSemverError(PublisherError, ValueError):
    """A version string that had to be X.Y.Z wasn't."""


class MissingVersionInfoError(PublisherError, KeyError):
    """No entry in the version map for a package."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class TestFailuresError(PublisherError):
    """One or more packages failed testing.

    ``failures`` holds ``(package_name, message)`` pairs sorted by name.
    """

    __test__ = False  # keep pytest from collecting this as a test class

    def __init__(self, failures: Sequence[Tuple[str, str]]):
        self.failures: List[Tuple[str, str]] = list(failures)
        lines = [f"There was a test failure in {len(self.failures)} package(s)."]
        for name, message in self.failures:
            lines.append(f"Error in {name}")
            lines.append(message)
        super().__init__("\n".join(lines))

    @property
    def package_names(self) -> List[str]:
        return [name for name, _ in self.failures]
