"""Domain models for secret management."""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Secret:
    """A named secret container in Secret Manager."""
    project_id: str
    name: str
    labels: Dict[str, str] = field(default_factory=dict, compare=False, hash=False)


@dataclass(frozen=True)
class SecretVersion:
    """One immutable revision of a secret's value."""
    secret: Secret
    version_id: str
    state: Optional[str] = field(default=None, compare=False)  # "ENABLED", "DISABLED", "DESTROYED"


@dataclass(frozen=True)
class SecretEnvVar:
    """A deployed endpoint's binding of an environment variable to a secret version."""
    project_id: str
    key: str
    secret: str
    version: Optional[str] = None  # version id or "latest"


@dataclass
class Endpoint:
    """A deployed function, reduced to what secret management needs."""
    id: str
    region: str
    project: str
    secret_environment_variables: List[SecretEnvVar] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectInfo:
    """A project identified both by id and by number."""
    project_id: str
    project_number: Optional[str] = None
