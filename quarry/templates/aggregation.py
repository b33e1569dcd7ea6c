"""Template retrieval from one or many repositories.

Fetching a single repository surfaces every error to the caller. Fetching
many is best-effort: each repository is an independent unit, failures are
logged and contribute no templates.
"""

from __future__ import annotations

import typing as typ

from quarry.logging import get_logger, log_warning
from quarry.templates.errors import MissingURLError, RepositoryListMissingError
from quarry.templates.models import Template
from quarry.templates.observability import RegistryEventType
from quarry.templates.results import failures, gather_results, successes

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from quarry.templates.manifest import ManifestFetcher
    from quarry.templates.models import Manifest, ProvidedRepository, Repository

    type RepositoryLike = Repository | ProvidedRepository

logger = get_logger(__name__)


def _repository_url(repository: object) -> str:
    url = getattr(repository, "url", None)
    if not isinstance(url, str) or not url:
        raise MissingURLError(repository)
    return url


def flatten_manifest(manifest: Manifest, *, source_url: str) -> list[Template]:
    """Flatten a style-keyed manifest into templates tagged with their origin."""
    return [
        Template(
            label=descriptor.display_name,
            url=descriptor.location,
            project_style=style,
            description=descriptor.description,
            language=descriptor.language,
            project_type=descriptor.project_type,
            source_url=source_url,
        )
        for style, descriptors in manifest.items()
        for descriptor in descriptors
    ]


async def get_templates_from_repo(
    repository: RepositoryLike, fetcher: ManifestFetcher
) -> list[Template]:
    """Return the templates published by ``repository``.

    Raises
    ------
    MissingURLError
        If the repository has no URL.
    InvalidURLError
        If the URL is not an absolute http(s) URL.
    ManifestFetchError
        If the manifest cannot be retrieved or is not JSON.
    MalformedManifestError
        If the JSON is not a recognised manifest.

    """
    url = _repository_url(repository)
    manifest = await fetcher.fetch(url)
    return flatten_manifest(manifest, source_url=url)


async def get_templates_from_repos(
    repositories: cabc.Sequence[RepositoryLike] | None,
    fetcher: ManifestFetcher,
) -> list[Template]:
    """Return the templates of every repository that could be fetched.

    Repositories are fetched concurrently; output keeps the order of
    ``repositories``. An empty sequence yields no templates.

    Raises
    ------
    RepositoryListMissingError
        If ``repositories`` is ``None``.

    """
    if repositories is None:
        raise RepositoryListMissingError

    results = await gather_results(
        (str(getattr(repo, "url", repo)), get_templates_from_repo(repo, fetcher))
        for repo in repositories
    )
    for failure in failures(results):
        log_warning(
            logger,
            "[%s] url=%s error=%s",
            RegistryEventType.MANIFEST_FAILED,
            failure.source,
            failure.error,
        )
    return [template for result in successes(results) for template in result.value]
