"""Retrieval and normalisation of template repository manifests.

Two manifest shapes are recognised:

* a JSON object mapping a style name to an array of template descriptors::

      {"Codewind": [{"displayName": "Go", "location": "https://..."}]}

* a flat index array of descriptors, each optionally carrying
  ``projectStyle`` (descriptors without one belong to the default style)::

      [{"displayName": "Go", "location": "https://...", "projectStyle": "Codewind"}]

Both are normalised into a :data:`~quarry.templates.models.Manifest`, an
ordered mapping of style name to descriptors.
"""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from quarry.logging import get_logger, log_warning
from quarry.templates.defaults import DEFAULT_PROJECT_STYLE
from quarry.templates.errors import (
    InvalidURLError,
    MalformedManifestError,
    ManifestFetchError,
)
from quarry.templates.models import Manifest, TemplateDescriptor
from quarry.templates.observability import RegistryEventType

if typ.TYPE_CHECKING:
    import collections.abc as cabc

logger = get_logger(__name__)

_ALLOWED_SCHEMES = frozenset({"http", "https"})
_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "quarry/0.1"


def is_absolute_url(value: object) -> bool:
    """Return True when ``value`` is an absolute http(s) URL with a host."""
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        parsed = httpx.URL(value)
    except httpx.InvalidURL:
        return False
    return parsed.scheme in _ALLOWED_SCHEMES and bool(parsed.host)


def validate_url(value: object) -> str:
    """Return ``value`` unchanged if it is an absolute URL.

    Raises
    ------
    InvalidURLError
        If ``value`` is not an absolute http(s) URL.

    """
    if not is_absolute_url(value):
        raise InvalidURLError(value)
    return typ.cast("str", value)


def _group_index(descriptors: list[TemplateDescriptor]) -> Manifest:
    manifest: Manifest = {}
    for descriptor in descriptors:
        style = descriptor.project_style or DEFAULT_PROJECT_STYLE
        manifest.setdefault(style, []).append(descriptor)
    return manifest


def parse_manifest(data: object, *, url: str) -> Manifest:
    """Normalise decoded manifest JSON into a style-keyed mapping.

    Parameters
    ----------
    data
        Decoded JSON document served by the repository.
    url
        Manifest URL, used in error messages.

    Returns
    -------
    Manifest
        Descriptors grouped by style, in first-seen order.

    Raises
    ------
    MalformedManifestError
        If ``data`` matches neither recognised shape, or a descriptor lacks
        its required fields.

    """
    try:
        if isinstance(data, list):
            return _group_index(msgspec.convert(data, type=list[TemplateDescriptor]))
        if isinstance(data, dict):
            return msgspec.convert(data, type=dict[str, list[TemplateDescriptor]])
    except msgspec.ValidationError as exc:
        raise MalformedManifestError(url, str(exc)) from exc

    reason = f"expected an object or array, got {type(data).__name__}"
    raise MalformedManifestError(url, reason)


class ManifestFetcher:
    """Fetch repository manifests over HTTP.

    Parameters
    ----------
    timeout_s
        Request timeout for an owned client.
    user_agent
        ``User-Agent`` header for an owned client.
    http_client
        Optional ``httpx.AsyncClient`` (for example one backed by
        ``httpx.MockTransport`` in tests). When omitted, the fetcher creates
        and owns its client.
    bundled
        Read-only mapping of URL to manifest JSON served when fetching that
        URL fails, so built-in repositories work offline.

    """

    def __init__(
        self,
        *,
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        user_agent: str = _DEFAULT_USER_AGENT,
        http_client: httpx.AsyncClient | None = None,
        bundled: cabc.Mapping[str, bytes] | None = None,
    ) -> None:
        """Configure the fetcher and its HTTP client."""
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout_s,
            follow_redirects=True,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
        )
        self._bundled: cabc.Mapping[str, bytes] = bundled or {}

    async def fetch_json(self, url: str) -> object:
        """Return the decoded JSON document served at ``url``.

        Raises
        ------
        InvalidURLError
            If ``url`` is not an absolute http(s) URL.
        ManifestFetchError
            If the request fails, returns a non-2xx status, or the body is
            not JSON.

        """
        validate_url(url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            raise ManifestFetchError.unreachable(url, "request timed out") from exc
        except httpx.RequestError as exc:
            raise ManifestFetchError.unreachable(url, str(exc)) from exc

        if not response.is_success:
            raise ManifestFetchError.http_error(url, response.status_code)

        try:
            return msgspec.json.decode(response.content)
        except msgspec.DecodeError as exc:
            raise ManifestFetchError.not_json(url, response.text) from exc

    async def fetch(self, url: str) -> Manifest:
        """Fetch and normalise the manifest served at ``url``.

        Falls back to a bundled copy when the URL has one and the network
        fetch fails.

        Raises
        ------
        InvalidURLError
            If ``url`` is not an absolute http(s) URL.
        ManifestFetchError
            If the manifest cannot be retrieved or is not JSON.
        MalformedManifestError
            If the JSON is not a recognised manifest.

        """
        try:
            data = await self.fetch_json(url)
        except ManifestFetchError as exc:
            bundled = self._bundled.get(url)
            if bundled is None:
                raise
            log_warning(
                logger,
                "[%s] url=%s fallback=bundled error=%s",
                RegistryEventType.MANIFEST_FAILED,
                url,
                exc,
            )
            data = msgspec.json.decode(bundled)
        return parse_manifest(data, url=url)

    async def aclose(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> typ.Self:
        """Return the fetcher for use as an async context manager."""
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        """Close owned resources on context exit."""
        await self.aclose()
