"""Project style classification for templates and repositories."""

from __future__ import annotations

import typing as typ

import msgspec

from quarry.logging import get_logger, log_warning
from quarry.templates.aggregation import get_templates_from_repo
from quarry.templates.defaults import DEFAULT_PROJECT_STYLE
from quarry.templates.observability import RegistryEventType
from quarry.templates.results import Success, gather_results

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from quarry.templates.manifest import ManifestFetcher
    from quarry.templates.models import Repository, Template

logger = get_logger(__name__)


def get_template_styles(templates: cabc.Iterable[Template]) -> list[str]:
    """Return the distinct styles of ``templates`` in first-seen order.

    Templates without a style count as the default style, so an empty input
    yields ``[DEFAULT_PROJECT_STYLE]``.
    """
    styles = dict.fromkeys(
        template.project_style or DEFAULT_PROJECT_STYLE for template in templates
    )
    return list(styles) or [DEFAULT_PROJECT_STYLE]


def filter_templates_by_style(
    templates: cabc.Iterable[Template], project_style: str
) -> list[Template]:
    """Return the templates whose style is ``project_style``, order preserved."""
    return [
        template
        for template in templates
        if (template.project_style or DEFAULT_PROJECT_STYLE) == project_style
    ]


def styles_for_templates(templates: cabc.Iterable[Template]) -> list[str]:
    """Return the sorted unique styles recorded on a repository."""
    return sorted(get_template_styles(templates))


async def add_template_styles_to_repos(
    repositories: cabc.Sequence[Repository],
    fetcher: ManifestFetcher,
) -> list[Repository]:
    """Return copies of ``repositories`` with ``project_styles`` populated.

    Manifests are fetched concurrently. A repository whose manifest cannot be
    fetched is returned unchanged rather than dropped.
    """
    results = await gather_results(
        (repo.url, get_templates_from_repo(repo, fetcher)) for repo in repositories
    )
    styled: list[Repository] = []
    for repo, result in zip(repositories, results, strict=True):
        if isinstance(result, Success):
            styled.append(
                msgspec.structs.replace(
                    repo, project_styles=styles_for_templates(result.value)
                )
            )
            continue
        log_warning(
            logger,
            "[%s] url=%s error=%s",
            RegistryEventType.MANIFEST_FAILED,
            repo.url,
            result.error,
        )
        styled.append(repo)
    return styled
