"""Computes the installed ("have") and declared ("want") extension instances of a project."""
import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Union

from ...core.errors import AggregateConfigurationError, MissingReferenceError
from ..domains import refs
from ..domains.models import Extension, ExtensionVersion, InstanceSpec
from ..domains.params import EnvFileParamSource
from ..domains.registry_client import ExtensionsRegistryClient
from .versions import resolve_version

logger = logging.getLogger(__name__)

CONFIG_SECTION = "extensions"
CONFIG_SOURCE = "firebase.json"


@dataclass(frozen=True)
class Planned:
    """A declared entry that was turned into an InstanceSpec."""
    spec: InstanceSpec


@dataclass(frozen=True)
class Failed:
    """A declared entry that could not be planned."""
    instance_id: str
    error: Exception


EntryResult = Union[Planned, Failed]


class PlanningSession:
    """
    One reconciliation pass over a project's extension instances.

    The session owns the registry and param-source collaborators and a cache
    of extension metadata, keyed by canonical reference, that lives as long
    as the session does.
    """

    def __init__(self, registry: ExtensionsRegistryClient, param_source: EnvFileParamSource):
        self.registry = registry
        self.param_source = param_source
        self._extension_versions: Dict[str, ExtensionVersion] = {}
        self._extensions: Dict[str, Extension] = {}

    async def have(self, project_id: str) -> List[InstanceSpec]:
        """
        List the extension instances currently installed on a project.

        Instances keep the registry's listing order. Versions are already
        exact, so no resolution happens here.
        """
        specs = []
        for instance in await self.registry.list_instances(project_id):
            ref = None
            if instance.extension_ref:
                ref = replace(refs.parse(instance.extension_ref), version=instance.extension_version)
            specs.append(InstanceSpec(
                instance_id=instance.name.split("/")[-1],
                params=dict(instance.params),
                ref=ref,
            ))
        return specs

    async def want(
        self,
        project_id: str,
        project_number: str,
        aliases: List[str],
        project_dir: str,
        extensions: Dict[str, str],
        emulator_mode: bool = False,
    ) -> List[InstanceSpec]:
        """
        Build the instance specs declared in the 'extensions' section of firebase.json.

        Args:
            project_id: The project we are deploying to
            project_number: Used to pick `<instance>.env.<project_number>` param files
            aliases: Project aliases, used to pick `<instance>.env.<alias>` param files
            project_dir: Directory containing firebase.json and extensions/
            extensions: Mapping of instance id to extension reference
            emulator_mode: Also read `<instance>.env.local` and allow demo projects

        Returns:
            One spec per entry, in input order, with exact versions and substituted params

        Raises:
            AggregateConfigurationError: If any entry failed; lists every failure in input order
        """
        results: List[EntryResult] = []
        for instance_id, ref_string in extensions.items():
            results.append(await self._plan_entry(
                instance_id, ref_string, project_id, project_number, aliases, project_dir, emulator_mode,
            ))

        errors = [r.error for r in results if isinstance(r, Failed)]
        if errors:
            raise AggregateConfigurationError(CONFIG_SECTION, CONFIG_SOURCE, errors)
        return [r.spec for r in results if isinstance(r, Planned)]

    async def _plan_entry(self, instance_id, ref_string, project_id, project_number,
                          aliases, project_dir, emulator_mode) -> EntryResult:
        try:
            ref = refs.parse(ref_string)
            ref = replace(ref, version=await resolve_version(self.registry, ref))

            params = self.param_source.read_instance_params(
                project_dir=project_dir,
                instance_id=instance_id,
                project_id=project_id,
                project_number=project_number,
                aliases=aliases,
                check_local=emulator_mode,
            )
            auto_params = await self.param_source.get_auto_populated_project_params(project_id, emulator_mode)
            params = self.param_source.substitute_params(params, auto_params)
        except Exception as e:
            logger.debug(f"Got error reading extensions entry {instance_id}={ref_string}: {e}")
            return Failed(instance_id=instance_id, error=e)
        return Planned(spec=InstanceSpec(instance_id=instance_id, params=params, ref=ref))

    def _require_ref(self, spec: InstanceSpec, kind: str):
        if spec.ref is None:
            raise MissingReferenceError(f"Can't get {kind} for {spec.instance_id} because it has no ref")
        return spec.ref

    async def get_extension_version(self, spec: InstanceSpec) -> ExtensionVersion:
        """Fetch the ExtensionVersion an instance spec points at, once per session."""
        key = refs.to_extension_version_ref(self._require_ref(spec, "ExtensionVersion"))
        if key not in self._extension_versions:
            self._extension_versions[key] = await self.registry.get_extension_version(key)
        return self._extension_versions[key]

    async def get_extension(self, spec: InstanceSpec) -> Extension:
        """Fetch the Extension an instance spec points at, once per session."""
        key = refs.to_extension_ref(self._require_ref(spec, "Extension"))
        if key not in self._extensions:
            self._extensions[key] = await self.registry.get_extension(key)
        return self._extensions[key]

