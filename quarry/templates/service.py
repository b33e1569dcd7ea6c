"""Template registry service: the per-instance controller.

The service owns one repository store, one manifest fetcher, the provider
registry and the template cache. Committing operations run under a single
``asyncio.Lock`` so whole-file writes from one instance never interleave;
reads go straight to the in-memory state.
"""

from __future__ import annotations

import asyncio
import typing as typ

from quarry.logging import get_logger, log_info, log_warning
from quarry.templates import batch
from quarry.templates.aggregation import get_templates_from_repo
from quarry.templates.catalog import TemplateCatalog
from quarry.templates.config import TemplateRegistryConfig
from quarry.templates.defaults import bundled_manifests, default_repositories
from quarry.templates.errors import (
    DuplicateRepositoryError,
    MalformedManifestError,
    ManifestFetchError,
    ManifestValidationError,
)
from quarry.templates.manifest import ManifestFetcher, validate_url
from quarry.templates.models import Repository, split_known_fields
from quarry.templates.observability import RegistryEventType
from quarry.templates.providers import (
    ProviderRegistry,
    get_repos_from_providers,
    select_new_repositories,
)
from quarry.templates.store import RepositoryStore
from quarry.templates.styles import (
    add_template_styles_to_repos,
    styles_for_templates,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    import httpx

    from quarry.templates.models import OperationResult, ProvidedRepository, Template
    from quarry.templates.providers import RepositoryProvider

logger = get_logger(__name__)


class TemplateRegistryService:
    """Manages template repositories and the templates they publish.

    Parameters
    ----------
    config
        Registry configuration; defaults to an in-memory registry seeded with
        the built-in repositories.
    http_client
        Optional ``httpx.AsyncClient`` for manifest requests. When omitted
        the service's fetcher creates and owns one.
    store
        Optional pre-built store, overriding ``config.repository_file``.

    Examples
    --------
    >>> import asyncio
    >>> from pathlib import Path
    >>> config = TemplateRegistryConfig(repository_file=Path("repository_list.json"))
    >>> async def main() -> None:
    ...     async with TemplateRegistryService(config) as service:
    ...         templates = await service.get_all_templates()
    >>> # asyncio.run(main())

    """

    def __init__(
        self,
        config: TemplateRegistryConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        store: RepositoryStore | None = None,
    ) -> None:
        """Wire the store, fetcher, providers and template cache together."""
        self._config = config or TemplateRegistryConfig()
        use_defaults = self._config.use_default_repositories
        seed = default_repositories if use_defaults else None
        self._store = store or RepositoryStore(self._config.repository_file, seed=seed)
        self._fetcher = ManifestFetcher(
            timeout_s=self._config.fetch_timeout_s,
            user_agent=self._config.user_agent,
            http_client=http_client,
            bundled=bundled_manifests() if use_defaults else None,
        )
        self._providers = ProviderRegistry()
        self._catalog = TemplateCatalog(
            self._store,
            self._fetcher,
            before_refresh=self.update_repo_list_with_repos_from_providers,
        )
        self._lock = asyncio.Lock()

    @property
    def config(self) -> TemplateRegistryConfig:
        """Return the configuration this service was built with."""
        return self._config

    @property
    def store(self) -> RepositoryStore:
        """Return the underlying repository store."""
        return self._store

    @property
    def fetcher(self) -> ManifestFetcher:
        """Return the manifest fetcher shared by all operations."""
        return self._fetcher

    @property
    def catalog(self) -> TemplateCatalog:
        """Return the template cache."""
        return self._catalog

    @property
    def providers(self) -> cabc.Mapping[str, RepositoryProvider]:
        """Return a read-only view of the registered providers."""
        return self._providers.providers

    # Repositories

    def get_repositories(self) -> list[Repository]:
        """Return all repositories in insertion order."""
        return self._store.get_repositories()

    def get_enabled_repositories(self) -> list[Repository]:
        """Return repositories that are not explicitly disabled."""
        return self._store.get_enabled_repositories()

    async def write_repository_list(self) -> None:
        """Flush the in-memory repository list to the repository file."""
        async with self._lock:
            await self._store.write()

    async def add_repository(
        self, url: str, description: str | None = None
    ) -> Repository:
        """Register a new template repository.

        The URL must serve a recognised manifest; its styles are recorded on
        the new entry.

        Returns
        -------
        Repository
            The stored entry, enabled.

        Raises
        ------
        InvalidURLError
            If ``url`` is not an absolute http(s) URL.
        DuplicateRepositoryError
            If ``url`` is already registered.
        ManifestValidationError
            If ``url`` does not serve a JSON manifest of the expected form.

        """
        validate_url(url)
        if url in self._store:
            raise DuplicateRepositoryError(url)

        candidate = Repository(url=url, description=description, enabled=True)
        try:
            templates = await get_templates_from_repo(candidate, self._fetcher)
        except (ManifestFetchError, MalformedManifestError) as exc:
            raise ManifestValidationError(url) from exc
        candidate.project_styles = styles_for_templates(templates)

        async with self._lock:
            self._store.append(candidate)
            await self._store.write()
        self._catalog.invalidate()
        log_info(
            logger,
            "[%s] url=%s styles=%s",
            RegistryEventType.REPOSITORY_ADDED,
            url,
            ",".join(candidate.project_styles),
        )
        return candidate

    async def delete_repository(self, url: str) -> None:
        """Remove the repository registered under ``url``.

        Raises
        ------
        RepositoryNotFoundError
            If no repository has this URL; nothing is written.

        """
        async with self._lock:
            self._store.remove(url)
            await self._store.write()
        self._catalog.invalidate()
        log_info(logger, "[%s] url=%s", RegistryEventType.REPOSITORY_DELETED, url)

    async def enable_repository(self, url: str) -> None:
        """Enable the repository registered under ``url`` and persist.

        Raises
        ------
        RepositoryNotFoundError
            If no repository has this URL; nothing is modified.

        """
        await self._set_enabled(url, enabled=True)

    async def disable_repository(self, url: str) -> None:
        """Disable the repository registered under ``url`` and persist.

        Raises
        ------
        RepositoryNotFoundError
            If no repository has this URL; nothing is modified.

        """
        await self._set_enabled(url, enabled=False)

    async def _set_enabled(self, url: str, *, enabled: bool) -> None:
        async with self._lock:
            self._store.set_enabled(url, enabled=enabled)
            await self._store.write()
        self._catalog.invalidate()
        log_info(
            logger,
            "[%s] url=%s enabled=%s",
            RegistryEventType.REPOSITORY_TOGGLED,
            url,
            enabled,
        )

    # Batch operations

    def perform_operation(
        self, operation: batch.OperationInput
    ) -> OperationResult:
        """Apply one operation in memory; the caller is responsible for writing."""
        results = batch.apply_operations(self._store, [operation])
        self._catalog.invalidate()
        return results[0]

    async def batch_update(
        self, requested_operations: cabc.Iterable[batch.OperationInput]
    ) -> list[OperationResult]:
        """Apply ``requested_operations`` in order and persist once.

        Returns one result per input operation, in input order.
        """
        async with self._lock:
            results = await batch.batch_update(self._store, requested_operations)
        self._catalog.invalidate()
        return results

    # Providers

    def add_provider(
        self, name: str, provider: object, *, strict: bool = False
    ) -> bool:
        """Register a repository provider.

        Providers without a callable ``get_repositories`` are ignored (and
        logged) unless ``strict`` is set, in which case they raise
        ``InvalidProviderError``.
        """
        added = self._providers.add(name, provider, strict=strict)
        if added:
            self._catalog.invalidate()
        return added

    def remove_provider(self, name: str) -> bool:
        """Unregister a provider; return True if it was registered."""
        removed = self._providers.remove(name)
        if removed:
            self._catalog.invalidate()
        return removed

    async def get_repos_from_providers(self) -> list[ProvidedRepository]:
        """Return the repositories currently offered by registered providers."""
        return await get_repos_from_providers(self._providers.providers)

    async def update_repo_list_with_repos_from_providers(self) -> list[Repository]:
        """Fold new provider repositories into the store.

        Entries whose URL is already registered (or repeated by another
        provider) are skipped. The rest are classified concurrently; entries
        whose manifest cannot be used are dropped. Survivors are stored as
        enabled and protected, and the file is written once.

        Returns
        -------
        list[Repository]
            The repositories that were added.

        """
        if not len(self._providers):
            return []
        provided = await self.get_repos_from_providers()
        candidates = select_new_repositories(provided, self._store.urls())
        if not candidates:
            return []

        added = await self._classify_provided(candidates)
        if not added:
            return []

        async with self._lock:
            fresh = [repo for repo in added if repo.url not in self._store]
            for repo in fresh:
                self._store.append(repo)
            if fresh:
                await self._store.write()
        if fresh:
            self._catalog.invalidate()
        for repo in fresh:
            log_info(
                logger,
                "[%s] url=%s protected=true",
                RegistryEventType.REPOSITORY_ADDED,
                repo.url,
            )
        return fresh

    async def _classify_provided(
        self, candidates: cabc.Sequence[ProvidedRepository]
    ) -> list[Repository]:
        pending = [
            Repository(
                url=candidate.url,
                description=candidate.description,
                enabled=True,
                protected=True,
                extra_fields=split_known_fields(Repository, candidate.extra_fields)[1],
            )
            for candidate in candidates
        ]
        styled = await add_template_styles_to_repos(pending, self._fetcher)
        repositories: list[Repository] = []
        for repo in styled:
            # Unclassified entries had no usable manifest.
            if repo.project_styles is None:
                log_warning(
                    logger,
                    "[%s] url=%s reason=no usable manifest",
                    RegistryEventType.PROVIDER_REPOSITORY_REJECTED,
                    repo.url,
                )
                continue
            repositories.append(repo)
        return repositories

    # Templates

    async def get_all_templates(self) -> list[Template]:
        """Return the templates of all enabled repositories (cached)."""
        return await self._catalog.get_all_templates()

    async def get_all_template_styles(self) -> list[str]:
        """Return the distinct styles across all templates."""
        return await self._catalog.get_all_template_styles()

    async def get_templates(self, project_style: str | None = None) -> list[Template]:
        """Return all templates, optionally restricted to ``project_style``."""
        return await self._catalog.get_templates(project_style)

    # Lifecycle

    async def aclose(self) -> None:
        """Release the fetcher's HTTP client if the service owns it."""
        await self._fetcher.aclose()

    async def __aenter__(self) -> typ.Self:
        """Return the service for use as an async context manager."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close owned resources on context exit."""
        await self.aclose()
