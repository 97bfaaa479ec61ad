"""Tests for the Extensions API client and the underlying REST helper."""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from deploy_planner.core.domains.api_client import GoogleApiClient
from deploy_planner.extensions.domains.registry_client import ExtensionsRegistryClient


@pytest.fixture
def api():
    api = MagicMock()
    api.get = AsyncMock()
    api.list_all = AsyncMock()
    return api


@pytest.mark.asyncio
async def test_list_instances(api):
    api.list_all.return_value = [{
        "name": "projects/my-project/instances/resize",
        "state": "ACTIVE",
        "config": {
            "params": {"SIZE": "200x200"},
            "extensionRef": "firebase/storage-resize-images",
            "extensionVersion": "0.1.18",
        },
    }]

    instances = await ExtensionsRegistryClient(api).list_instances("my-project")

    assert len(instances) == 1
    assert instances[0].name == "projects/my-project/instances/resize"
    assert instances[0].params == {"SIZE": "200x200"}
    assert instances[0].extension_ref == "firebase/storage-resize-images"
    assert instances[0].extension_version == "0.1.18"
    api.list_all.assert_awaited_once_with("projects/my-project/instances", "instances")


@pytest.mark.asyncio
async def test_list_instances_tolerates_null_config(api):
    api.list_all.return_value = [
        {"name": "projects/my-project/instances/bare", "config": {"params": None}},
        {"name": "projects/my-project/instances/empty", "config": None},
    ]

    instances = await ExtensionsRegistryClient(api).list_instances("my-project")

    assert [i.params for i in instances] == [{}, {}]
    assert instances[1].extension_ref is None


@pytest.mark.asyncio
async def test_list_extension_versions(api):
    api.list_all.return_value = [
        {"name": "publishers/firebase/extensions/resize/versions/0.1.0", "ref": "firebase/resize@0.1.0",
         "spec": {"name": "resize", "version": "0.1.0"}},
        {"name": "publishers/firebase/extensions/resize/versions/0.2.0", "ref": "firebase/resize@0.2.0",
         "spec": {"name": "resize", "version": "0.2.0", "params": [{"param": "SIZE"}]}},
    ]

    versions = await ExtensionsRegistryClient(api).list_extension_versions("firebase/resize")

    assert [v.spec.version for v in versions] == ["0.1.0", "0.2.0"]
    assert versions[1].spec.params == [{"param": "SIZE"}]
    api.list_all.assert_awaited_once_with(
        "publishers/firebase/extensions/resize/versions", "extensionVersions"
    )


@pytest.mark.asyncio
async def test_get_extension_version_and_extension(api):
    api.get.side_effect = [
        {"name": "publishers/firebase/extensions/resize/versions/0.2.0", "ref": "firebase/resize@0.2.0",
         "spec": {"name": "resize", "version": "0.2.0"}},
        {"name": "publishers/firebase/extensions/resize", "ref": "firebase/resize", "latestVersion": "0.2.0"},
    ]
    client = ExtensionsRegistryClient(api)

    version = await client.get_extension_version("firebase/resize@0.2.0")
    extension = await client.get_extension("firebase/resize")

    assert version.ref == "firebase/resize@0.2.0"
    assert extension.latest_version == "0.2.0"
    assert [c.args[0] for c in api.get.await_args_list] == [
        "publishers/firebase/extensions/resize/versions/0.2.0",
        "publishers/firebase/extensions/resize",
    ]


@pytest.mark.asyncio
async def test_list_all_follows_page_tokens():
    client = GoogleApiClient("https://example.googleapis.com/v1/", credentials=MagicMock())
    pages = [
        {"instances": [{"name": "a"}], "nextPageToken": "t1"},
        {"instances": [{"name": "b"}], "nextPageToken": "t2"},
        {"instances": [{"name": "c"}]},
    ]
    seen_tokens = []

    async def fake_get(path, params=None):
        seen_tokens.append(params.get("pageToken"))
        return pages[len(seen_tokens) - 1]

    with patch.object(client, "get", side_effect=fake_get):
        items = await client.list_all("projects/p/instances", "instances")

    assert [i["name"] for i in items] == ["a", "b", "c"]
    assert seen_tokens == [None, "t1", "t2"]
    assert client.origin == "https://example.googleapis.com/v1"


@pytest.mark.asyncio
async def test_access_token_refreshes_expired_credentials():
    credentials = MagicMock()
    credentials.valid = False
    credentials.token = "fresh-token"
    client = GoogleApiClient("https://example.googleapis.com", credentials=credentials)

    assert await client._access_token() == "fresh-token"
    credentials.refresh.assert_called_once()
