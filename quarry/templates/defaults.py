"""Built-in repositories used when a workspace has no repository file yet.

The tables are stored as encoded JSON so they cannot be mutated; every caller
decodes a fresh copy.
"""

from __future__ import annotations

import types
import typing as typ

import msgspec

from quarry.templates.models import Repository

DEFAULT_PROJECT_STYLE: typ.Final = "Codewind"

DEFAULT_REPOSITORY_URL: typ.Final = (
    "https://raw.githubusercontent.com/codewind-resources/codewind-templates/"
    "master/devfiles/index.json"
)

_DEFAULT_REPOSITORIES_JSON = b"""
[
  {
    "url": "https://raw.githubusercontent.com/codewind-resources/codewind-templates/master/devfiles/index.json",
    "description": "Standard Codewind templates.",
    "enabled": true,
    "projectStyles": ["Codewind"]
  }
]
"""

_DEFAULT_MANIFEST_JSON = b"""
[
  {
    "displayName": "Go",
    "description": "Sample Go application.",
    "language": "go",
    "projectType": "docker",
    "location": "https://github.com/codewind-resources/goTemplate"
  },
  {
    "displayName": "Lagom Java",
    "description": "Sample Lagom Java microservice.",
    "language": "java",
    "projectType": "docker",
    "location": "https://github.com/codewind-resources/lagomJavaTemplate"
  },
  {
    "displayName": "Node.js Express",
    "description": "Express web application with health and metrics endpoints.",
    "language": "nodejs",
    "projectType": "nodejs",
    "location": "https://github.com/codewind-resources/nodeExpressTemplate"
  },
  {
    "displayName": "Open Liberty",
    "description": "Java microservice running on Open Liberty.",
    "language": "java",
    "projectType": "docker",
    "location": "https://github.com/codewind-resources/openLibertyTemplate"
  },
  {
    "displayName": "Python",
    "description": "Sample Python Flask application.",
    "language": "python",
    "projectType": "docker",
    "location": "https://github.com/codewind-resources/pythonTemplate"
  },
  {
    "displayName": "Spring Boot",
    "description": "Spring Boot application with health and metrics endpoints.",
    "language": "java",
    "projectType": "spring",
    "location": "https://github.com/codewind-resources/springJavaTemplate"
  },
  {
    "displayName": "Swift",
    "description": "Kitura web application.",
    "language": "swift",
    "projectType": "swift",
    "location": "https://github.com/codewind-resources/swiftTemplate"
  }
]
"""

_BUNDLED_MANIFEST_SOURCES: typ.Final = types.MappingProxyType(
    {DEFAULT_REPOSITORY_URL: _DEFAULT_MANIFEST_JSON}
)


def default_repositories() -> list[Repository]:
    """Return a fresh copy of the built-in repository list."""
    return msgspec.json.decode(_DEFAULT_REPOSITORIES_JSON, type=list[Repository])


def bundled_manifests() -> typ.Mapping[str, bytes]:
    """Return the read-only mapping of repository URL to bundled manifest JSON."""
    return _BUNDLED_MANIFEST_SOURCES
