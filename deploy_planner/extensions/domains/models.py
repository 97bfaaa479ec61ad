"""Domain models for extension planning."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Ref:
    """Structured pointer to a published extension, optionally at one version."""
    publisher_id: str
    extension_id: str
    version: Optional[str] = None  # exact version, semver range, "latest" or None


@dataclass
class ExtensionSpec:
    """The extension.yaml content of a published version."""
    name: str
    version: str
    params: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ExtensionVersion:
    """One published version of an extension."""
    name: str  # publishers/{p}/extensions/{e}/versions/{v}
    ref: str   # {p}/{e}@{v}
    spec: ExtensionSpec
    state: str = "PUBLISHED"


@dataclass
class Extension:
    """A published extension."""
    name: str  # publishers/{p}/extensions/{e}
    ref: str   # {p}/{e}
    state: str = "PUBLISHED"
    latest_version: Optional[str] = None


@dataclass
class ExtensionInstance:
    """An extension instance as reported by a live project."""
    name: str  # projects/{project}/instances/{instance_id}
    params: Dict[str, str] = field(default_factory=dict)
    extension_ref: Optional[str] = None
    extension_version: Optional[str] = None
    state: Optional[str] = None


@dataclass(frozen=True)
class InstanceSpec:
    """An extension instance as planned for deployment (params collapsed to strings)."""
    instance_id: str
    params: Dict[str, str]
    ref: Optional[Ref] = None


@dataclass
class ParamBindingOptions:
    """A param value per environment: the base value plus an optional local override."""
    base_value: str
    local: Optional[str] = None


@dataclass
class ManifestInstanceSpec:
    """An extension instance as written to the manifest, with per-environment bindings."""
    instance_id: str
    params: Dict[str, ParamBindingOptions]
    ref: Optional[Ref] = None
    param_specs: Optional[List[Dict[str, Any]]] = None
