"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import httpx
import pytest
import pytest_asyncio

from quarry.templates import (
    ManifestFetcher,
    Repository,
    RepositoryStore,
    TemplateRegistryConfig,
    TemplateRegistryService,
)
from quarry.templates.defaults import bundled_manifests
from tests.fixtures.manifests import FakeManifestServer, default_server

if typ.TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def manifest_server() -> FakeManifestServer:
    """Return a fake manifest server with the standard routes."""
    return default_server()


@pytest_asyncio.fixture
async def http_client(
    manifest_server: FakeManifestServer,
) -> typ.AsyncIterator[httpx.AsyncClient]:
    """Yield an httpx client answered by the fake manifest server."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(manifest_server.handle))
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def fetcher(http_client: httpx.AsyncClient) -> ManifestFetcher:
    """Return a manifest fetcher using the fake server and bundled manifests."""
    return ManifestFetcher(http_client=http_client, bundled=bundled_manifests())


@pytest.fixture
def repository_file(tmp_path: Path) -> Path:
    """Return the repository file location inside a temporary workspace."""
    return tmp_path / ".config" / "repository_list.json"


@pytest.fixture
def mock_repositories() -> list[Repository]:
    """Return one enabled, one disabled and one unflagged repository."""
    return [
        Repository(url="1", description="1", enabled=True),
        Repository(url="2", description="2", enabled=False),
        Repository(url="3", description="3"),
    ]


@pytest.fixture
def store(
    repository_file: Path, mock_repositories: list[Repository]
) -> RepositoryStore:
    """Return a file-backed store holding the mock repositories in memory."""
    repository_store = RepositoryStore(repository_file)
    repository_store.replace_all(mock_repositories)
    return repository_store


@pytest_asyncio.fixture
async def service(
    repository_file: Path,
    http_client: httpx.AsyncClient,
) -> typ.AsyncIterator[TemplateRegistryService]:
    """Yield a service seeded with the built-in repositories."""
    config = TemplateRegistryConfig(repository_file=repository_file)
    async with TemplateRegistryService(config, http_client=http_client) as registry:
        yield registry
