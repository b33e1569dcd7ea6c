"""Errors raised by the template repository registry."""

from __future__ import annotations

# Body preview length for non-JSON responses
_BODY_PREVIEW_LIMIT = 80


class TemplateRegistryError(Exception):
    """Base class for template registry errors."""


class InvalidURLError(TemplateRegistryError, ValueError):
    """Raised when a repository URL is not an absolute http(s) URL."""

    def __init__(self, url: object) -> None:
        """Initialise with the rejected URL."""
        self.url = url
        super().__init__(f"Invalid URL: {url}")


class MissingURLError(TemplateRegistryError, ValueError):
    """Raised when a repository record carries no URL."""

    def __init__(self, repository: object) -> None:
        """Initialise with the offending repository record."""
        self.repository = repository
        super().__init__(f"repo '{repository}' must have a URL")


class DuplicateRepositoryError(TemplateRegistryError):
    """Raised when adding a URL that is already registered."""

    def __init__(self, url: str) -> None:
        """Initialise with the duplicated URL."""
        self.url = url
        super().__init__(f"{url} is already a template repository")


class RepositoryNotFoundError(TemplateRegistryError, LookupError):
    """Raised when no registered repository has the given URL."""

    def __init__(self, url: str) -> None:
        """Initialise with the missing URL."""
        self.url = url
        super().__init__(f"no repository found with URL '{url}'")


class ManifestFetchError(TemplateRegistryError):
    """Raised when a manifest cannot be retrieved or is not JSON."""

    def __init__(
        self, message: str, *, url: str, status_code: int | None = None
    ) -> None:
        """Initialise with a message, the manifest URL and optional status."""
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def unreachable(cls, url: str, detail: str) -> ManifestFetchError:
        """Return an error for transport failures (DNS, TLS, timeouts)."""
        return cls(f"URL '{url}' could not be fetched: {detail}", url=url)

    @classmethod
    def http_error(cls, url: str, status_code: int) -> ManifestFetchError:
        """Return an error for non-2xx responses."""
        return cls(
            f"URL '{url}' returned HTTP {status_code}",
            url=url,
            status_code=status_code,
        )

    @classmethod
    def not_json(cls, url: str, body: str = "") -> ManifestFetchError:
        """Return an error for a body that does not parse as JSON."""
        message = f"URL '{url}' should return JSON"
        if body:
            preview = body[:_BODY_PREVIEW_LIMIT]
            if len(body) > _BODY_PREVIEW_LIMIT:
                preview += "..."
            message = f"{message}, got: {preview!r}"
        return cls(message, url=url)


class MalformedManifestError(TemplateRegistryError):
    """Raised when JSON is served but is not a recognised template manifest."""

    def __init__(self, url: str, reason: str) -> None:
        """Initialise with the manifest URL and the shape problem."""
        self.url = url
        self.reason = reason
        super().__init__(
            f"URL '{url}' does not provide a recognised template manifest: {reason}"
        )


class ManifestValidationError(TemplateRegistryError):
    """Raised when a URL being added does not serve a usable manifest."""

    def __init__(self, url: str) -> None:
        """Initialise with the rejected repository URL."""
        self.url = url
        super().__init__(f"{url} does not point to a JSON file of the correct form")


class RepositoryListMissingError(TemplateRegistryError, ValueError):
    """Raised when template aggregation is given no repository list at all."""

    def __init__(self) -> None:
        """Build the fixed message."""
        super().__init__("a repository list is required to fetch templates")


class InvalidProviderError(TemplateRegistryError, TypeError):
    """Raised by strict registration of a provider without get_repositories()."""

    def __init__(self, name: str) -> None:
        """Initialise with the provider name."""
        self.name = name
        super().__init__(
            f"provider '{name}' does not expose a callable get_repositories()"
        )


class RepositoryFileError(TemplateRegistryError):
    """Raised when the repository file exists but cannot be used."""

    def __init__(self, path: object, reason: str) -> None:
        """Initialise with the file path and failure reason."""
        self.path = path
        self.reason = reason
        super().__init__(f"repository file {path} is unusable: {reason}")


class TemplateRegistryConfigError(TemplateRegistryError):
    """Raised when registry configuration from the environment is invalid."""

    @classmethod
    def invalid_timeout(cls, value: str) -> TemplateRegistryConfigError:
        """Return an error for a non-positive or non-numeric timeout."""
        return cls(
            f"Invalid QUARRY_FETCH_TIMEOUT_S '{value}'. Must be a positive number"
        )

    @classmethod
    def missing_repository_file(cls, command: str) -> TemplateRegistryConfigError:
        """Return an error for a mutating command with nowhere to persist."""
        return cls(
            f"'{command}' changes the repository list but no repository file is "
            "configured; set QUARRY_REPOSITORY_FILE, QUARRY_WORKSPACE_DIR or "
            "--repository-file"
        )
