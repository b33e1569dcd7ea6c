"""Template repository registry and template aggregation.

The registry keeps the list of template repositories a workspace knows
about and merges their manifests into one template catalogue. It provides:

- Validated registration, removal and enable/disable of repositories,
  persisted to a single JSON file
- Repositories contributed by pluggable providers
- Template retrieval that isolates failures per repository
- Project style classification and filtering
- Batched enable/disable requests with per-item status reporting

Usage
-----
Register a repository and list templates::

    from pathlib import Path

    from quarry.templates import TemplateRegistryConfig, TemplateRegistryService

    config = TemplateRegistryConfig(repository_file=Path("repository_list.json"))
    async with TemplateRegistryService(config) as service:
        await service.add_repository(
            "https://example.test/templates/index.json", "Team templates"
        )
        templates = await service.get_all_templates()

Apply a batch of enable/disable requests::

    results = await service.batch_update(
        [{"op": "enable", "url": "https://example.test/templates/index.json",
          "value": "false"}]
    )
    for result in results:
        print(result.status, result.requested_operation.url)

"""

from quarry.templates.config import TemplateRegistryConfig
from quarry.templates.defaults import DEFAULT_PROJECT_STYLE
from quarry.templates.errors import (
    DuplicateRepositoryError,
    InvalidProviderError,
    InvalidURLError,
    MalformedManifestError,
    ManifestFetchError,
    ManifestValidationError,
    MissingURLError,
    RepositoryFileError,
    RepositoryListMissingError,
    RepositoryNotFoundError,
    TemplateRegistryConfigError,
    TemplateRegistryError,
)
from quarry.templates.manifest import ManifestFetcher
from quarry.templates.models import (
    OperationRequest,
    OperationResult,
    ProvidedRepository,
    Repository,
    Template,
    TemplateDescriptor,
)
from quarry.templates.providers import RepositoryProvider
from quarry.templates.service import TemplateRegistryService
from quarry.templates.store import RepositoryStore

__all__ = [
    "DEFAULT_PROJECT_STYLE",
    "DuplicateRepositoryError",
    "InvalidProviderError",
    "InvalidURLError",
    "MalformedManifestError",
    "ManifestFetchError",
    "ManifestFetcher",
    "ManifestValidationError",
    "MissingURLError",
    "OperationRequest",
    "OperationResult",
    "ProvidedRepository",
    "Repository",
    "RepositoryFileError",
    "RepositoryListMissingError",
    "RepositoryNotFoundError",
    "RepositoryProvider",
    "RepositoryStore",
    "Template",
    "TemplateDescriptor",
    "TemplateRegistryConfig",
    "TemplateRegistryConfigError",
    "TemplateRegistryError",
    "TemplateRegistryService",
]
