"""Unit tests for project style classification."""

from __future__ import annotations

import typing as typ

import pytest

from quarry.templates import DEFAULT_PROJECT_STYLE, Repository, Template
from quarry.templates.styles import (
    add_template_styles_to_repos,
    filter_templates_by_style,
    get_template_styles,
    styles_for_templates,
)
from tests.fixtures.manifests import (
    APPSODY_URL,
    CODEWIND_URL,
    STYLED_URL,
    UNREACHABLE_URL,
)

if typ.TYPE_CHECKING:
    from quarry.templates import ManifestFetcher


def _template(label: str, style: str) -> Template:
    return Template(label=label, url=f"https://x.test/{label}", project_style=style)


@pytest.mark.parametrize(
    ("styles", "expected"),
    [
        pytest.param([], [DEFAULT_PROJECT_STYLE], id="empty"),
        pytest.param(["Codewind"], ["Codewind"], id="single"),
        pytest.param(
            ["Codewind", "Appsody", "Codewind"], ["Codewind", "Appsody"], id="dedupe"
        ),
        pytest.param(["Appsody", "Codewind"], ["Appsody", "Codewind"], id="order"),
        pytest.param(["", "Appsody"], ["Codewind", "Appsody"], id="blank-style"),
    ],
)
def test_get_template_styles(styles: list[str], expected: list[str]) -> None:
    """Styles are distinct, first-seen, and default when nothing is known."""
    templates = [_template(str(i), style) for i, style in enumerate(styles)]

    assert get_template_styles(templates) == expected


def test_styles_for_templates_are_sorted() -> None:
    """Repository style lists are sorted for stable persistence."""
    templates = [_template("a", "Codewind"), _template("b", "Appsody")]

    assert styles_for_templates(templates) == ["Appsody", "Codewind"]


def test_filter_templates_by_style_keeps_order() -> None:
    """Filtering keeps matching templates in their original order."""
    templates = [
        _template("a", "Codewind"),
        _template("b", "Appsody"),
        _template("c", "Codewind"),
    ]

    matched = filter_templates_by_style(templates, "Codewind")

    assert [t.label for t in matched] == ["a", "c"]
    assert filter_templates_by_style(templates, "Unknown") == []


@pytest.mark.asyncio
async def test_add_template_styles_to_repos(fetcher: ManifestFetcher) -> None:
    """Each repository gets the sorted styles of its manifest."""
    repositories = [
        Repository(url=CODEWIND_URL, description="cw"),
        Repository(url=APPSODY_URL),
        Repository(url=STYLED_URL),
    ]

    styled = await add_template_styles_to_repos(repositories, fetcher)

    assert [repo.project_styles for repo in styled] == [
        ["Codewind"],
        ["Appsody"],
        ["Appsody", "Codewind"],
    ]
    assert styled[0].description == "cw"
    assert repositories[0].project_styles is None, "Inputs must not be mutated"


@pytest.mark.asyncio
async def test_add_template_styles_passes_failures_through(
    fetcher: ManifestFetcher,
) -> None:
    """A repository whose manifest fails is returned unchanged."""
    unreachable = Repository(url=UNREACHABLE_URL, project_styles=["Old"])

    [result] = await add_template_styles_to_repos([unreachable], fetcher)

    assert result is unreachable
    assert result.project_styles == ["Old"]
