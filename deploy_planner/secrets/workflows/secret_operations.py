"""Workflows for secrets referenced by deployed functions."""
import logging
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from google.api_core import exceptions as gcp_exceptions

from ...core.domains import prompt
from ...core.errors import DeployPlannerError, InvalidSecretKeyError
from ..domains.models import Endpoint, ProjectInfo, Secret, SecretEnvVar, SecretVersion
from ..domains.gcp_client import GCPSecretClient
from ..domains.validators import to_upper_snake_case, validate_key, validate_secret_name

logger = logging.getLogger(__name__)

FIREBASE_MANAGED = "firebase-managed"
LATEST = "latest"


def labels() -> Dict[str, str]:
    """Labels marking a secret as managed (and therefore prunable) by Firebase."""
    return {FIREBASE_MANAGED: "true"}


def is_firebase_managed(secret: Secret) -> bool:
    return FIREBASE_MANAGED in secret.labels


def of(endpoints: Iterable[Endpoint]) -> List[SecretEnvVar]:
    """All secret environment variables bound by the given endpoints."""
    return [sev for endpoint in endpoints for sev in endpoint.secret_environment_variables]


def _in_project(project_info: ProjectInfo, sev: SecretEnvVar) -> bool:
    return sev.project_id in (project_info.project_id, project_info.project_number)


def in_use(project_info: ProjectInfo, secret: Secret, endpoint: Endpoint) -> bool:
    """Whether `endpoint` binds any version of `secret`."""
    return any(
        _in_project(project_info, sev) and sev.secret == secret.name
        for sev in of([endpoint])
    )


def version_in_use(project_info: ProjectInfo, secret_version: SecretVersion, endpoint: Endpoint) -> bool:
    """Whether `endpoint` binds exactly `secret_version` (a "latest" binding does not count)."""
    return any(
        _in_project(project_info, sev)
        and sev.secret == secret_version.secret.name
        and sev.version == secret_version.version_id
        for sev in of([endpoint])
    )


def ensure_valid_key(key: str, force: bool = False,
                     confirm: Callable[[str], bool] = prompt.confirm) -> str:
    """
    Return a key usable as an environment variable name for a secret.

    Keys that aren't UPPER_SNAKE_CASE are converted after the user agrees to it.

    Args:
        key: Requested key
        force: Non-interactive mode; a non-conforming key is rejected instead of converted
        confirm: Yes/no prompt

    Raises:
        InvalidSecretKeyError: If the key is rejected or still invalid after conversion
    """
    transformed = to_upper_snake_case(key)
    if transformed != key:
        if force:
            raise InvalidSecretKeyError("Secret key must be in UPPER_SNAKE_CASE.")
        logger.warning("By convention, secret key must be in UPPER_SNAKE_CASE.")
        if not confirm(f"Would you like to use {transformed} as key instead?"):
            raise InvalidSecretKeyError("Secret key must be in UPPER_SNAKE_CASE.")

    try:
        validate_key(transformed)
    except InvalidSecretKeyError as e:
        raise InvalidSecretKeyError(f"Invalid secret key {transformed}: {e}") from e
    return transformed


async def ensure_secret(store: GCPSecretClient, project_id: str, name: str, force: bool = False,
                        confirm: Callable[[str], bool] = prompt.confirm) -> Secret:
    """
    Return the named secret, creating it with Firebase-managed labels if missing.

    An existing secret that isn't Firebase-managed is relabeled if the user
    agrees (never in force mode).

    Raises:
        InvalidSecretKeyError: If the name is not a valid secret name
        google.api_core.exceptions.GoogleAPICallError: On any lookup failure other than NotFound
    """
    validate_secret_name(name)

    try:
        secret = await store.get_secret(project_id, name)
    except gcp_exceptions.NotFound:
        return await store.create_secret(project_id, name, labels())

    if not is_firebase_managed(secret) and not force:
        logger.warning(
            "Your secret is not managed by Firebase. Firebase managed secrets are "
            "automatically pruned to reduce your monthly cost for using Secret Manager."
        )
        if confirm(f"Would you like to have your secret {secret.name} managed by Firebase?"):
            return await store.patch_secret_labels(project_id, secret.name, {**secret.labels, **labels()})
    return secret


async def ensure_service_agent_role(store: GCPSecretClient, secret: Secret,
                                    service_account_emails: List[str], role: str) -> None:
    """Grant `role` on `secret` to each service account, writing the policy only if it changes."""
    bindings = await store.get_iam_bindings(secret)
    members = bindings.setdefault(role, [])
    missing = [f"serviceAccount:{email}" for email in service_account_emails
               if f"serviceAccount:{email}" not in members]
    if not missing:
        return

    members.extend(missing)
    await store.set_iam_bindings(secret, bindings)
    logger.info(
        f"Granted {role} on projects/{secret.project_id}/secrets/{secret.name} "
        f"to {', '.join(missing)}"
    )


async def prune_secrets(store: GCPSecretClient, project_info: Optional[ProjectInfo],
                        endpoints: List[Endpoint]) -> List[SecretVersion]:
    """
    Find Firebase-managed secret versions that no endpoint uses.

    "latest" bindings are resolved to the version they currently point at.
    Bindings to other projects, or to versions outside the managed pool, are
    ignored. Any collaborator error aborts the whole computation.
    Without `project_info` the store's configured project is used.

    Returns:
        Unused secret versions; order is not significant
    """
    if project_info is None:
        project_info = store.get_project_info()
    project_id = project_info.project_id

    pool: Dict[Tuple[str, str], SecretVersion] = {}
    for secret in await store.list_secrets(project_id, list_filter=f"labels.{FIREBASE_MANAGED}=true"):
        for version in await store.list_secret_versions(secret, list_filter="NOT state: DESTROYED"):
            pool[(secret.name, version.version_id)] = version

    used: Set[Tuple[str, str]] = set()
    for sev in of(endpoints):
        if not sev.version:
            raise DeployPlannerError(f"Secret {sev.secret} version is unexpectedly empty.")
        if not _in_project(project_info, sev):
            logger.debug(f"Ignoring secret {sev.secret} bound from project {sev.project_id}")
            continue

        version_id = sev.version
        if version_id == LATEST:
            resolved = await store.get_secret_version(Secret(project_id=project_id, name=sev.secret), LATEST)
            version_id = resolved.version_id
        used.add((sev.secret, version_id))

    for secret_name, version_id in used.difference(pool):
        logger.debug(f"Secret {secret_name}@{version_id} is in use but not a managed version of {project_id}")

    return [version for key, version in pool.items() if key not in used]
