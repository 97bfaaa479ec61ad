"""Tests for instance param files and auto-populated params."""
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from deploy_planner.core.errors import NotFoundError
from deploy_planner.extensions.domains.params import EnvFileParamSource, substitute_params


@pytest.fixture
def project_dir(tmp_path):
    (tmp_path / "extensions").mkdir()
    return tmp_path


def write_env(project_dir, filename, content):
    (project_dir / "extensions" / filename).write_text(content)


class TestReadInstanceParams:

    def test_layers_files_in_order(self, project_dir):
        write_env(project_dir, "resize.env", "SIZE=100x100\nBUCKET=base\nMODE=fast\n")
        write_env(project_dir, "resize.env.prod", "BUCKET=alias\n")
        write_env(project_dir, "resize.env.123456", "SIZE=number\n")
        write_env(project_dir, "resize.env.my-project", "MODE=project\n")
        write_env(project_dir, "resize.env.local", "MODE=local\n")

        params = EnvFileParamSource().read_instance_params(
            project_dir=str(project_dir),
            instance_id="resize",
            project_id="my-project",
            project_number="123456",
            aliases=["prod"],
        )

        assert params == {"SIZE": "number", "BUCKET": "alias", "MODE": "project"}

    def test_local_file_only_in_emulator_mode(self, project_dir):
        write_env(project_dir, "resize.env", "MODE=fast\n")
        write_env(project_dir, "resize.env.local", "MODE=local\n")

        params = EnvFileParamSource().read_instance_params(
            project_dir=str(project_dir), instance_id="resize", check_local=True,
        )

        assert params == {"MODE": "local"}

    def test_project_specific_file_alone_is_enough(self, project_dir):
        write_env(project_dir, "resize.env.my-project", "MODE=project\n")

        params = EnvFileParamSource().read_instance_params(
            project_dir=str(project_dir), instance_id="resize", project_id="my-project",
        )

        assert params == {"MODE": "project"}

    def test_no_files(self, project_dir):
        with pytest.raises(NotFoundError, match="No params file found for resize"):
            EnvFileParamSource().read_instance_params(project_dir=str(project_dir), instance_id="resize")


class TestSubstituteParams:

    def test_replaces_both_placeholder_forms(self):
        params = {
            "A": "${PROJECT_ID}",
            "B": "gs://${param:STORAGE_BUCKET}/images",
            "C": "${UNKNOWN} stays",
        }

        assert substitute_params(params, {"PROJECT_ID": "p", "STORAGE_BUCKET": "p.appspot.com"}) == {
            "A": "p",
            "B": "gs://p.appspot.com/images",
            "C": "${UNKNOWN} stays",
        }

    def test_no_auto_params(self):
        params = {"A": "${PROJECT_ID}"}

        assert substitute_params(params, {}) == params


class TestAutoPopulatedParams:

    @pytest.mark.asyncio
    async def test_demo_project_in_emulator_stays_offline(self):
        firebase_api = MagicMock()
        firebase_api.get = AsyncMock()
        source = EnvFileParamSource(firebase_api=firebase_api, resource_manager_api=firebase_api)

        params = await source.get_auto_populated_project_params("demo-test", emulator_mode=True)

        assert params["PROJECT_ID"] == "demo-test"
        assert params["PROJECT_NUMBER"] == "0"
        assert params["DATABASE_URL"] == "https://demo-test.firebaseio.com"
        assert params["DATABASE_INSTANCE"] == "demo-test"
        assert params["STORAGE_BUCKET"] == "demo-test.appspot.com"
        firebase_api.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_reads_admin_sdk_config(self):
        firebase_api = MagicMock()
        firebase_api.get = AsyncMock(return_value={
            "projectId": "my-project",
            "databaseURL": "https://my-project-default-rtdb.firebaseio.com",
            "storageBucket": "my-project.firebasestorage.app",
        })
        resource_manager_api = MagicMock()
        resource_manager_api.get = AsyncMock(return_value={"projectNumber": "123456"})
        source = EnvFileParamSource(firebase_api=firebase_api, resource_manager_api=resource_manager_api)

        params = await source.get_auto_populated_project_params("my-project")

        assert params["PROJECT_NUMBER"] == "123456"
        assert params["DATABASE_INSTANCE"] == "my-project-default-rtdb"
        assert params["STORAGE_BUCKET"] == "my-project.firebasestorage.app"
        assert json.loads(params["FIREBASE_CONFIG"]) == {
            "projectId": "my-project",
            "databaseURL": "https://my-project-default-rtdb.firebaseio.com",
            "storageBucket": "my-project.firebasestorage.app",
        }
        firebase_api.get.assert_awaited_once_with("projects/my-project/adminSdkConfig")
        resource_manager_api.get.assert_awaited_once_with("projects/my-project")

    @pytest.mark.asyncio
    async def test_no_project(self):
        assert await EnvFileParamSource().get_auto_populated_project_params("") == {}
