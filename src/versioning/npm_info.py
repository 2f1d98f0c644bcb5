"""Reading the last published version of a package from the npm registry."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from common.errors import RegistryError
from common.logging_utils import extra_context, is_debug_enabled, safe_url

from .models import VersionInfo
from .semver import latest_patch_matching, parse_semver

logger = logging.getLogger(__name__)

NOT_FOUND = "Not found"
CONTENT_HASH_FIELD = "typesPublisherContentHash"


def pick_version_key(info: Dict[str, Any], major_minor: Optional[Tuple[int, int]] = None) -> str:
    """Choose which published version to compare against.

    If there's already a published version with the requested major.minor,
    its highest patch wins; otherwise the ``latest`` dist-tag.
    """
    if major_minor is not None:
        major, minor = major_minor
        patch = None if major == -1 else latest_patch_matching(info.get("versions") or {}, major, minor)
        if patch is not None:
            return f"{major}.{minor}.{patch}"
    return info["dist-tags"]["latest"]


async def fetch_version_info_from_npm(
    fetcher: Any,
    registry_url: str,
    escaped_package_name: str,
    major_minor: Optional[Tuple[int, int]] = None,
) -> Optional[VersionInfo]:
    """Fetch the registry's view of a package.

    Returns:
        VersionInfo for the chosen version, or None if the package does not
        exist. An empty document or one without ``dist-tags`` counts as missing.

    Raises:
        RegistryError: For any other registry error, a document without a
            usable ``latest`` tag or ``versions`` map, or a version key the
            document doesn't contain.
    """
    uri = registry_url + escaped_package_name
    info = await fetcher.fetch_json(uri)

    if not isinstance(info, dict):
        raise RegistryError(f"Unexpected response from {safe_url(uri)}: {info!r}")
    if info.get("error"):
        if info["error"] == NOT_FOUND:
            return None
        raise RegistryError(f"Error getting version at {safe_url(uri)}: {info['error']}")
    if not info.get("dist-tags"):
        # The registry answers {} for some missing scoped packages.
        return None

    dist_tags = info["dist-tags"]
    versions = info.get("versions")
    if not isinstance(dist_tags, dict) or not isinstance(dist_tags.get("latest"), str):
        raise RegistryError(f"{safe_url(uri)} has no usable \"latest\" dist-tag")
    if not isinstance(versions, dict):
        raise RegistryError(f"{safe_url(uri)} has no usable \"versions\" map")

    version_key = pick_version_key(info, major_minor)
    version_data = versions.get(version_key)
    if not isinstance(version_data, dict):
        raise RegistryError(f"{safe_url(uri)} has no entry for version {version_key}")

    result = VersionInfo(
        version=parse_semver(version_key),
        content_hash=version_data.get(CONTENT_HASH_FIELD) or "",
        deprecated=bool(version_data.get("deprecated")),
    )
    if is_debug_enabled(logger):
        logger.debug(
            "Registry version info",
            extra=extra_context(
                event="registry_lookup",
                component="npm_info",
                target=escaped_package_name,
                version=str(result.version),
                deprecated=result.deprecated,
            )
        )
    return result
