"""GCP Secret Manager client wrapper."""
import os
import logging
from typing import Dict, List, Optional

from google.cloud import secretmanager
from google.iam.v1 import policy_pb2

from ...core.domains.config_loader import get_config, ConfigError
from .models import ProjectInfo, Secret, SecretVersion

logger = logging.getLogger(__name__)


def _secret_path(project_id: str, name: str) -> str:
    return f"projects/{project_id}/secrets/{name}"


def _to_secret(project_id: str, response) -> Secret:
    return Secret(
        project_id=project_id,
        name=response.name.split("/")[-1],
        labels=dict(response.labels),
    )


def _to_secret_version(secret: Secret, response) -> SecretVersion:
    return SecretVersion(
        secret=secret,
        version_id=response.name.split("/")[-1],
        state=response.state.name,
    )


class GCPSecretClient:
    """Async wrapper around the GCP Secret Manager client."""

    def __init__(self, client: Optional[secretmanager.SecretManagerServiceAsyncClient] = None):
        self._client = client

    @property
    def client(self) -> secretmanager.SecretManagerServiceAsyncClient:
        """Lazy-initialize client."""
        if self._client is None:
            get_config()
            self._client = secretmanager.SecretManagerServiceAsyncClient()
        return self._client

    def get_project_id(self) -> Optional[str]:
        """
        Get GCP project ID from config or environment variable.

        Priority order:
        1. GCP_PROJECT environment variable (allows override)
        2. Config file (primary source)

        Returns:
            Project ID string, or None if not found
        """
        gcp_project_env = os.getenv("GCP_PROJECT")
        if gcp_project_env:
            logger.debug(f"Using GCP_PROJECT from environment: {gcp_project_env}")
            return gcp_project_env

        try:
            project_id = get_config()['gcp']['project_id']
        except ConfigError as e:
            logger.error(f"Failed to load config: {e}")
            return None

        logger.debug(f"Using project_id from config: {project_id}")
        return project_id

    def get_project_info(self) -> ProjectInfo:
        """Build the ProjectInfo of the configured project; the number is optional."""
        project_id = self.get_project_id()
        if not project_id:
            raise ConfigError("No GCP project configured. Set GCP_PROJECT or gcp.project_id in the config file.")

        try:
            project_number = get_config()["gcp"].get("project_number")
        except ConfigError as e:
            logger.debug(f"No project number available: {e}")
            project_number = None
        return ProjectInfo(
            project_id=project_id,
            project_number=str(project_number) if project_number is not None else None,
        )

    async def list_secrets(self, project_id: str, list_filter: Optional[str] = None) -> List[Secret]:
        request = {"parent": f"projects/{project_id}"}
        if list_filter:
            request["filter"] = list_filter
        pager = await self.client.list_secrets(request=request)
        return [_to_secret(project_id, s) async for s in pager]

    async def get_secret(self, project_id: str, name: str) -> Secret:
        """
        Fetch a secret's metadata.

        Raises:
            google.api_core.exceptions.NotFound: If the secret doesn't exist
        """
        response = await self.client.get_secret(request={"name": _secret_path(project_id, name)})
        return _to_secret(project_id, response)

    async def create_secret(self, project_id: str, name: str, labels: Dict[str, str]) -> Secret:
        response = await self.client.create_secret(request={
            "parent": f"projects/{project_id}",
            "secret_id": name,
            "secret": {"replication": {"automatic": {}}, "labels": labels},
        })
        logger.info(f"Created secret {_secret_path(project_id, name)}")
        return _to_secret(project_id, response)

    async def patch_secret_labels(self, project_id: str, name: str, labels: Dict[str, str]) -> Secret:
        """Replace the labels of an existing secret."""
        response = await self.client.update_secret(request={
            "secret": {"name": _secret_path(project_id, name), "labels": labels},
            "update_mask": {"paths": ["labels"]},
        })
        return _to_secret(project_id, response)

    async def list_secret_versions(self, secret: Secret, list_filter: Optional[str] = None) -> List[SecretVersion]:
        request = {"parent": _secret_path(secret.project_id, secret.name)}
        if list_filter:
            request["filter"] = list_filter
        pager = await self.client.list_secret_versions(request=request)
        return [_to_secret_version(secret, v) async for v in pager]

    async def get_secret_version(self, secret: Secret, version: str = "latest") -> SecretVersion:
        """Fetch one version; the "latest" alias resolves to a concrete version id."""
        name = f"{_secret_path(secret.project_id, secret.name)}/versions/{version}"
        response = await self.client.get_secret_version(request={"name": name})
        return _to_secret_version(secret, response)

    async def get_iam_bindings(self, secret: Secret) -> Dict[str, List[str]]:
        """Return the secret's IAM policy as {role: [members]}."""
        policy = await self.client.get_iam_policy(
            request={"resource": _secret_path(secret.project_id, secret.name)}
        )
        return {binding.role: list(binding.members) for binding in policy.bindings}

    async def set_iam_bindings(self, secret: Secret, bindings: Dict[str, List[str]]) -> None:
        policy = policy_pb2.Policy(bindings=[
            policy_pb2.Binding(role=role, members=members) for role, members in bindings.items()
        ])
        await self.client.set_iam_policy(
            request={"resource": _secret_path(secret.project_id, secret.name), "policy": policy}
        )
