"""Structured log event names for the template registry.

Registry modules prefix log lines with one of these values in brackets and
follow with ``key=value`` fields, so log aggregators can filter on the event
name::

    [templates.repository.added] url=https://example.test/index.json styles=Codewind

"""

from __future__ import annotations

import enum


class RegistryEventType(enum.StrEnum):
    """Log event names emitted by the template registry."""

    REPOSITORY_ADDED = "templates.repository.added"
    REPOSITORY_DELETED = "templates.repository.deleted"
    REPOSITORY_TOGGLED = "templates.repository.toggled"
    REPOSITORY_FILE_WRITTEN = "templates.repository_file.written"
    PROVIDER_IGNORED = "templates.provider.ignored"
    PROVIDER_FAILED = "templates.provider.failed"
    PROVIDER_REPOSITORY_REJECTED = "templates.provider.repository_rejected"
    MANIFEST_FAILED = "templates.manifest.failed"
    BATCH_COMPLETED = "templates.batch.completed"
    CACHE_REFRESHED = "templates.cache.refreshed"
