"""Resolution of version selectors to published extension versions."""
import logging
from functools import cmp_to_key

from nodesemver import compare, max_satisfying

from ...core.errors import NoMatchingVersionError, NotFoundError
from ..domains import refs
from ..domains.registry_client import ExtensionsRegistryClient
from ..domains.models import Ref

logger = logging.getLogger(__name__)

LATEST = "latest"

_semver_key = cmp_to_key(lambda a, b: compare(a, b, False))


async def resolve_version(registry: ExtensionsRegistryClient, ref: Ref) -> str:
    """
    Resolve the version selector on `ref` to one published version.

    Args:
        registry: Extensions registry client
        ref: Reference whose version is None, "latest", an exact version or a semver range

    Returns:
        The highest published version matching the selector

    Raises:
        NotFoundError: If the extension has no published versions
        NoMatchingVersionError: If no published version satisfies the selector
    """
    extension_ref = refs.to_extension_ref(ref)
    versions = [ev.spec.version for ev in await registry.list_extension_versions(extension_ref)]
    if not versions:
        raise NotFoundError(f"No versions found for {extension_ref}")

    if not ref.version or ref.version == LATEST:
        resolved = max(versions, key=_semver_key)
    else:
        resolved = max_satisfying(versions, ref.version, loose=False)
        if not resolved:
            raise NoMatchingVersionError(
                f"No version of {extension_ref} matches requested version {ref.version}"
            )

    logger.debug(f"Resolved {extension_ref}@{ref.version or LATEST} to {resolved}")
    return resolved
