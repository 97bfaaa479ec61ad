"""Per-instance param files and auto-populated project params."""
import json
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import urlparse

from dotenv import dotenv_values

from ...core.domains.api_client import GoogleApiClient
from ...core.errors import NotFoundError

logger = logging.getLogger(__name__)

DEMO_PROJECT_PREFIX = "demo-"
FAKE_PROJECT_NUMBER = "0"


def is_demo_project(project_id: str) -> bool:
    return project_id.startswith(DEMO_PROJECT_PREFIX)


def substitute_params(params: Dict[str, str], auto_params: Dict[str, str]) -> Dict[str, str]:
    """Replace `${KEY}` and `${param:KEY}` placeholders in every param value."""
    if not auto_params:
        return dict(params)
    pattern = re.compile(r"\$\{(?:param:)?(" + "|".join(re.escape(k) for k in auto_params) + r")\}")
    return {
        key: pattern.sub(lambda m: auto_params[m.group(1)], value)
        for key, value in params.items()
    }


class EnvFileParamSource:
    """
    Reads instance params from `<project_dir>/extensions/<instance_id>.env*` files.

    Files are layered in this order, later files overriding earlier ones:
        <id>.env, <id>.env.<alias>..., <id>.env.<project_number>,
        <id>.env.<project_id>, and <id>.env.local when check_local is set.
    """

    def __init__(self, firebase_api: Optional[GoogleApiClient] = None,
                 resource_manager_api: Optional[GoogleApiClient] = None):
        self._firebase_api = firebase_api
        self._resource_manager_api = resource_manager_api

    @property
    def firebase_api(self) -> GoogleApiClient:
        if self._firebase_api is None:
            self._firebase_api = GoogleApiClient.from_config("firebase_origin")
        return self._firebase_api

    @property
    def resource_manager_api(self) -> GoogleApiClient:
        if self._resource_manager_api is None:
            self._resource_manager_api = GoogleApiClient.from_config("resource_manager_origin")
        return self._resource_manager_api

    def read_instance_params(
        self,
        project_dir: str,
        instance_id: str,
        project_id: Optional[str] = None,
        project_number: Optional[str] = None,
        aliases: Optional[List[str]] = None,
        check_local: bool = False,
    ) -> Dict[str, str]:
        """
        Merge all param files that exist for an instance.

        Raises:
            NotFoundError: If none of the candidate files exist
        """
        suffixes = [f".{alias}" for alias in aliases or []]
        if project_number:
            suffixes.append(f".{project_number}")
        if project_id:
            suffixes.append(f".{project_id}")
        if check_local:
            suffixes.append(".local")

        extensions_dir = Path(project_dir) / "extensions"
        combined: Dict[str, str] = {}
        found = False
        for suffix in [""] + suffixes:
            path = extensions_dir / f"{instance_id}.env{suffix}"
            if not path.is_file():
                continue
            found = True
            values = dotenv_values(path)
            combined.update({k: v for k, v in values.items() if v is not None})
            logger.debug(f"Read params from {path}")

        if not found:
            raise NotFoundError(f"No params file found for {instance_id}")
        return combined

    async def get_auto_populated_project_params(self, project_id: str, emulator_mode: bool = False) -> Dict[str, str]:
        """
        Params every extension can reference without declaring them.

        Demo projects in emulator mode never reach the network.
        """
        if not project_id:
            return {}

        if emulator_mode and is_demo_project(project_id):
            sdk_config: Dict[str, str] = {}
            project_number = FAKE_PROJECT_NUMBER
        else:
            sdk_config = await self.firebase_api.get(f"projects/{project_id}/adminSdkConfig")
            project = await self.resource_manager_api.get(f"projects/{project_id}")
            project_number = str(project["projectNumber"])

        database_url = sdk_config.get("databaseURL") or f"https://{project_id}.firebaseio.com"
        storage_bucket = sdk_config.get("storageBucket") or f"{project_id}.appspot.com"
        firebase_config = json.dumps(
            {"projectId": project_id, "databaseURL": database_url, "storageBucket": storage_bucket},
            separators=(",", ":"),
        )
        return {
            "PROJECT_ID": project_id,
            "PROJECT_NUMBER": project_number,
            "DATABASE_URL": database_url,
            "DATABASE_INSTANCE": urlparse(database_url).hostname.split(".")[0],
            "STORAGE_BUCKET": storage_bucket,
            "FIREBASE_CONFIG": firebase_config,
        }

    def substitute_params(self, params: Dict[str, str], auto_params: Dict[str, str]) -> Dict[str, str]:
        return substitute_params(params, auto_params)
