"""Behavioural tests for the template repository registry."""
# ruff: noqa: D103

from __future__ import annotations

import asyncio
import json
import typing as typ

import httpx
import pytest
from pytest_bdd import given, parsers, scenario, then, when

from quarry.templates import (
    TemplateRegistryConfig,
    TemplateRegistryError,
    TemplateRegistryService,
)
from quarry.templates.defaults import DEFAULT_REPOSITORY_URL
from tests.fixtures.manifests import default_server

if typ.TYPE_CHECKING:
    from pathlib import Path

    from quarry.templates import OperationResult, Template


class RegistryContext(typ.TypedDict, total=False):
    """State shared between BDD steps in this module."""

    repository_file: Path
    service: TemplateRegistryService
    error: str
    results: list[OperationResult]
    templates: list[Template]


class StaticProvider:
    """Provider offering a fixed list of repositories."""

    def __init__(self, *urls: str) -> None:
        self._entries = [{"url": url} for url in urls]

    def get_repositories(self) -> list[dict[str, str]]:
        return list(self._entries)


@scenario(
    "../template_registry.feature",
    "Adding a repository records its project styles",
)
def test_add_repository_records_styles() -> None:
    """Added repositories are persisted with their styles."""


@scenario(
    "../template_registry.feature",
    "A URL that does not serve a manifest is rejected",
)
def test_non_manifest_url_rejected() -> None:
    """Non-manifest URLs are never stored."""


@scenario(
    "../template_registry.feature",
    "A batch update reports unknown repositories",
)
def test_batch_update_reports_unknown() -> None:
    """Batch updates report per-item status."""


@scenario(
    "../template_registry.feature",
    "Provider repositories are folded into the template list",
)
def test_provider_repositories_folded_in() -> None:
    """Provider repositories contribute templates."""


@pytest.fixture
def http_transport_client() -> typ.Iterator[httpx.AsyncClient]:
    client = httpx.AsyncClient(transport=httpx.MockTransport(default_server().handle))
    yield client
    asyncio.run(client.aclose())


@pytest.fixture
def registry_context() -> RegistryContext:
    return {}


def _read_repository_file(context: RegistryContext) -> list[dict[str, typ.Any]]:
    return json.loads(context["repository_file"].read_text())


def _split(values: str) -> list[str]:
    return [value for value in values.split(",") if value]


@given("a fresh workspace with the built-in repositories")
def fresh_workspace(
    registry_context: RegistryContext,
    tmp_path: Path,
    http_transport_client: httpx.AsyncClient,
) -> None:
    repository_file = tmp_path / ".config" / "repository_list.json"
    registry_context["repository_file"] = repository_file
    registry_context["service"] = TemplateRegistryService(
        TemplateRegistryConfig(repository_file=repository_file),
        http_client=http_transport_client,
    )


@given(parsers.parse('a provider offering "{url}"'))
def provider_offering(registry_context: RegistryContext, url: str) -> None:
    registry_context["service"].add_provider("workspace", StaticProvider(url))


@when(parsers.parse('I add the repository "{url}"'))
def add_repository(registry_context: RegistryContext, url: str) -> None:
    asyncio.run(registry_context["service"].add_repository(url))


@when(parsers.parse('I try to add the repository "{url}"'))
def try_add_repository(registry_context: RegistryContext, url: str) -> None:
    with pytest.raises(TemplateRegistryError) as excinfo:
        asyncio.run(registry_context["service"].add_repository(url))
    registry_context["error"] = str(excinfo.value)


@when(parsers.parse('I disable the built-in repository together with "{url}"'))
def disable_with_unknown(registry_context: RegistryContext, url: str) -> None:
    operations = [
        {"op": "enable", "url": DEFAULT_REPOSITORY_URL, "value": "false"},
        {"op": "enable", "url": url, "value": "false"},
    ]
    registry_context["results"] = asyncio.run(
        registry_context["service"].batch_update(operations)
    )


@when("I list the templates")
def list_templates(registry_context: RegistryContext) -> None:
    registry_context["templates"] = asyncio.run(
        registry_context["service"].get_all_templates()
    )


@then(
    parsers.parse('the repository file lists "{url}" with styles "{styles}"')
)
def repository_file_lists(
    registry_context: RegistryContext, url: str, styles: str
) -> None:
    entry = next(
        (
            repo
            for repo in _read_repository_file(registry_context)
            if repo["url"] == url
        ),
        None,
    )
    assert entry is not None, f"Expected {url} in the repository file"
    assert entry["projectStyles"] == _split(styles)
    assert entry["enabled"] is True


@then(parsers.parse('the template styles are "{styles}"'))
def template_styles_are(registry_context: RegistryContext, styles: str) -> None:
    listed = asyncio.run(registry_context["service"].get_all_template_styles())
    assert listed == _split(styles)


@then(parsers.parse('the registry rejects it with "{message}"'))
def registry_rejects(registry_context: RegistryContext, message: str) -> None:
    assert message in registry_context.get("error", ""), (
        f"Expected rejection mentioning {message!r}"
    )


@then("no repository file has been written")
def no_repository_file(registry_context: RegistryContext) -> None:
    assert not registry_context["repository_file"].exists()


@then(parsers.parse('the batch statuses are "{statuses}"'))
def batch_statuses_are(registry_context: RegistryContext, statuses: str) -> None:
    expected = [int(status) for status in _split(statuses)]
    assert [result.status for result in registry_context["results"]] == expected


@then("the built-in repository is disabled in the repository file")
def builtin_disabled(registry_context: RegistryContext) -> None:
    [builtin] = _read_repository_file(registry_context)
    assert builtin["url"] == DEFAULT_REPOSITORY_URL
    assert builtin["enabled"] is False


@then("no templates are listed")
def no_templates(registry_context: RegistryContext) -> None:
    assert asyncio.run(registry_context["service"].get_all_templates()) == []


@then(parsers.parse('the templates include "{label}"'))
def templates_include(registry_context: RegistryContext, label: str) -> None:
    labels = [template.label for template in registry_context["templates"]]
    assert label in labels, f"Expected {label!r} in {labels}"


@then(parsers.parse('the repository file marks "{url}" as protected'))
def repository_marked_protected(registry_context: RegistryContext, url: str) -> None:
    entry = next(
        (
            repo
            for repo in _read_repository_file(registry_context)
            if repo["url"] == url
        ),
        None,
    )
    assert entry is not None, f"Expected {url} in the repository file"
    assert entry["protected"] is True
