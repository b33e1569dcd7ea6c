"""External providers contributing template repositories.

A provider is any object with a zero-argument ``get_repositories()`` that
returns (directly or as an awaitable) a sequence of repository-like records,
each carrying at least a ``url``. Providers are plugins, so their output is
untrusted: a provider that fails or returns garbage contributes nothing, and
malformed entries are dropped one by one.
"""

from __future__ import annotations

import collections.abc as cabc
import inspect
import types
import typing as typ

import msgspec

from quarry.logging import get_logger, log_warning
from quarry.templates.errors import InvalidProviderError
from quarry.templates.models import ProvidedRepository, split_known_fields
from quarry.templates.observability import RegistryEventType
from quarry.templates.results import failures, gather_results, successes

logger = get_logger(__name__)

type ProviderPayload = (
    cabc.Sequence[object] | cabc.Awaitable[cabc.Sequence[object]]
)


@typ.runtime_checkable
class RepositoryProvider(typ.Protocol):
    """Capability exposed by repository providers."""

    def get_repositories(self) -> ProviderPayload:
        """Return repository-like records, optionally as an awaitable."""
        ...


def is_repository_provider(candidate: object) -> bool:
    """Return True when ``candidate`` exposes a callable ``get_repositories``."""
    return callable(getattr(candidate, "get_repositories", None))


class ProviderRegistry:
    """Named providers registered with one registry service instance."""

    def __init__(self) -> None:
        """Start with no providers."""
        self._providers: dict[str, RepositoryProvider] = {}

    @property
    def providers(self) -> cabc.Mapping[str, RepositoryProvider]:
        """Return a read-only view of the registered providers."""
        return types.MappingProxyType(self._providers)

    def add(self, name: str, provider: object, *, strict: bool = False) -> bool:
        """Register ``provider`` under ``name`` if it has the capability.

        Returns
        -------
        bool
            True if the provider was registered.

        Raises
        ------
        InvalidProviderError
            If ``strict`` is set and the provider lacks ``get_repositories``.

        """
        if not is_repository_provider(provider):
            if strict:
                raise InvalidProviderError(name)
            log_warning(
                logger,
                "[%s] provider=%s reason=missing get_repositories()",
                RegistryEventType.PROVIDER_IGNORED,
                name,
            )
            return False
        self._providers[name] = typ.cast("RepositoryProvider", provider)
        return True

    def remove(self, name: str) -> bool:
        """Unregister the provider called ``name``; return True if it existed."""
        return self._providers.pop(name, None) is not None

    def __len__(self) -> int:
        """Return the number of registered providers."""
        return len(self._providers)


async def _call_provider(name: str, provider: object) -> list[object]:
    if not is_repository_provider(provider):
        raise InvalidProviderError(name)
    payload = typ.cast("RepositoryProvider", provider).get_repositories()
    if inspect.isawaitable(payload):
        payload = await payload
    if isinstance(payload, (str, bytes)) or not isinstance(payload, cabc.Sequence):
        msg = f"provider '{name}' returned {type(payload).__name__}, expected a list"
        raise TypeError(msg)
    return list(payload)


def coerce_provided_repository(entry: object) -> ProvidedRepository | None:
    """Convert a provider entry to a ProvidedRepository, or None if unusable.

    Mapping entries keep their unrecognised keys in ``extra_fields``; entries
    read through attributes contribute ``url`` and ``description`` only.
    """
    extra: dict[str, object] = {}
    if isinstance(entry, cabc.Mapping):
        entry, extra = split_known_fields(ProvidedRepository, entry)
    try:
        repository = msgspec.convert(entry, ProvidedRepository, from_attributes=True)
    except msgspec.ValidationError:
        return None
    repository.extra_fields = extra
    return repository if repository.url else None


def _named(
    providers: cabc.Mapping[str, object] | cabc.Iterable[object],
) -> list[tuple[str, object]]:
    if isinstance(providers, cabc.Mapping):
        return [(str(name), provider) for name, provider in providers.items()]
    return [
        (f"provider[{index}]", provider) for index, provider in enumerate(providers)
    ]


async def get_repos_from_providers(
    providers: cabc.Mapping[str, object] | cabc.Iterable[object],
) -> list[ProvidedRepository]:
    """Collect the repositories offered by ``providers``.

    Parameters
    ----------
    providers
        Providers keyed by name, or an iterable of providers.

    Returns
    -------
    list[ProvidedRepository]
        Valid entries from every provider, concatenated in provider order.
        Providers that raise, return a non-list, or lack the capability
        contribute nothing; entries without a string ``url`` are dropped.

    """
    results = await gather_results(
        (name, _call_provider(name, provider)) for name, provider in _named(providers)
    )
    for failure in failures(results):
        log_warning(
            logger,
            "[%s] provider=%s error=%s",
            RegistryEventType.PROVIDER_FAILED,
            failure.source,
            failure.error,
        )

    repositories: list[ProvidedRepository] = []
    for result in successes(results):
        for entry in result.value:
            repository = coerce_provided_repository(entry)
            if repository is None:
                log_warning(
                    logger,
                    "[%s] provider=%s entry=%r",
                    RegistryEventType.PROVIDER_REPOSITORY_REJECTED,
                    result.source,
                    entry,
                )
                continue
            repositories.append(repository)
    return repositories


def select_new_repositories(
    candidates: cabc.Iterable[ProvidedRepository],
    known_urls: cabc.Set[str],
) -> list[ProvidedRepository]:
    """Return candidates whose URL is neither known nor repeated earlier."""
    seen = set(known_urls)
    selected: list[ProvidedRepository] = []
    for candidate in candidates:
        if candidate.url in seen:
            continue
        seen.add(candidate.url)
        selected.append(candidate)
    return selected
