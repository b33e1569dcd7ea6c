"""Cached catalogue of templates across the enabled repositories."""

from __future__ import annotations

import asyncio
import typing as typ

from quarry.logging import get_logger, log_info
from quarry.templates.aggregation import get_templates_from_repos
from quarry.templates.observability import RegistryEventType
from quarry.templates.styles import filter_templates_by_style, get_template_styles

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from quarry.templates.manifest import ManifestFetcher
    from quarry.templates.models import Template
    from quarry.templates.store import RepositoryStore

    type RefreshHook = cabc.Callable[[], cabc.Awaitable[object]]

logger = get_logger(__name__)


class TemplateCatalog:
    """Serve the merged template list, recomputing it only when stale.

    Parameters
    ----------
    store
        Repository store whose enabled entries feed the catalogue.
    fetcher
        Manifest fetcher used to pull each repository.
    before_refresh
        Optional coroutine function awaited before each recomputation, used
        by the service to fold in provider repositories first.

    """

    def __init__(
        self,
        store: RepositoryStore,
        fetcher: ManifestFetcher,
        *,
        before_refresh: RefreshHook | None = None,
    ) -> None:
        """Start with an empty, stale cache."""
        self._store = store
        self._fetcher = fetcher
        self._before_refresh = before_refresh
        self._templates: list[Template] = []
        self._generation = 0
        self._refreshed_generation: int | None = None
        self._refresh_lock = asyncio.Lock()

    @property
    def needs_refresh(self) -> bool:
        """Return True when the cached list no longer reflects the registry."""
        return self._refreshed_generation != self._generation

    def invalidate(self) -> None:
        """Mark the cache stale; the next read recomputes it."""
        self._generation += 1

    async def get_all_templates(self) -> list[Template]:
        """Return every template of the enabled repositories.

        Concurrent callers share one recomputation. An invalidation arriving
        during a recomputation keeps the cache stale.
        """
        if not self.needs_refresh:
            return list(self._templates)

        async with self._refresh_lock:
            if not self.needs_refresh:
                return list(self._templates)
            if self._before_refresh is not None:
                await self._before_refresh()
            generation = self._generation
            templates = await get_templates_from_repos(
                self._store.get_enabled_repositories(), self._fetcher
            )
            self._templates = templates
            self._refreshed_generation = generation
            log_info(
                logger,
                "[%s] templates=%d",
                RegistryEventType.CACHE_REFRESHED,
                len(templates),
            )
            return list(templates)

    async def get_all_template_styles(self) -> list[str]:
        """Return the distinct styles across all templates, first-seen order."""
        return get_template_styles(await self.get_all_templates())

    async def get_templates(self, project_style: str | None = None) -> list[Template]:
        """Return all templates, optionally restricted to one style."""
        templates = await self.get_all_templates()
        if project_style is None:
            return templates
        return filter_templates_by_style(templates, project_style)
