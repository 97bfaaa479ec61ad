"""Firebase Extensions API client."""
import logging
from typing import Any, Dict, List, Optional

from ...core.domains.api_client import GoogleApiClient
from . import refs
from .models import Extension, ExtensionInstance, ExtensionSpec, ExtensionVersion

logger = logging.getLogger(__name__)


def _to_extension_version(body: Dict[str, Any]) -> ExtensionVersion:
    spec = body.get("spec", {})
    return ExtensionVersion(
        name=body["name"],
        ref=body.get("ref", ""),
        state=body.get("state", "PUBLISHED"),
        spec=ExtensionSpec(
            name=spec.get("name", ""),
            version=spec["version"],
            params=spec.get("params", []),
        ),
    )


def _to_extension(body: Dict[str, Any]) -> Extension:
    return Extension(
        name=body["name"],
        ref=body.get("ref", ""),
        state=body.get("state", "PUBLISHED"),
        latest_version=body.get("latestVersion"),
    )


def _to_instance(body: Dict[str, Any]) -> ExtensionInstance:
    config = body.get("config") or {}
    return ExtensionInstance(
        name=body["name"],
        params=dict(config.get("params") or {}),
        extension_ref=config.get("extensionRef"),
        extension_version=config.get("extensionVersion"),
        state=body.get("state"),
    )


class ExtensionsRegistryClient:
    """Wrapper around the Firebase Extensions REST API."""

    def __init__(self, api: Optional[GoogleApiClient] = None):
        self._api = api

    @property
    def api(self) -> GoogleApiClient:
        """Lazy-initialize the HTTP client from config."""
        if self._api is None:
            self._api = GoogleApiClient.from_config("extensions_origin")
        return self._api

    async def list_instances(self, project_id: str) -> List[ExtensionInstance]:
        """List every extension instance installed on a project, in API order."""
        bodies = await self.api.list_all(f"projects/{project_id}/instances", "instances")
        logger.debug(f"Found {len(bodies)} extension instances on {project_id}")
        return [_to_instance(body) for body in bodies]

    async def list_extension_versions(self, extension_ref: str) -> List[ExtensionVersion]:
        """List every published version of `publisher/extension`."""
        name = refs.to_extension_name(refs.parse(extension_ref))
        bodies = await self.api.list_all(f"{name}/versions", "extensionVersions")
        return [_to_extension_version(body) for body in bodies]

    async def get_extension_version(self, extension_version_ref: str) -> ExtensionVersion:
        name = refs.to_extension_version_name(refs.parse(extension_version_ref))
        return _to_extension_version(await self.api.get(name))

    async def get_extension(self, extension_ref: str) -> Extension:
        name = refs.to_extension_name(refs.parse(extension_ref))
        return _to_extension(await self.api.get(name))
