"""Configuration for the template repository registry.

Usage
-----
Build a configuration explicitly:

>>> from pathlib import Path
>>> config = TemplateRegistryConfig(repository_file=Path("/tmp/repository_list.json"))
>>> config.fetch_timeout_s
20.0

Or from environment variables:

>>> import os
>>> os.environ["QUARRY_WORKSPACE_DIR"] = "/workspace"
>>> TemplateRegistryConfig.from_env().repository_file
PosixPath('/workspace/.config/repository_list.json')

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from quarry.templates.errors import TemplateRegistryConfigError

_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "quarry/0.1"
_CONFIG_DIR_NAME = ".config"
_REPOSITORY_FILE_NAME = "repository_list.json"


def repository_file_for_workspace(workspace_dir: Path) -> Path:
    """Return the repository file location inside a workspace directory."""
    return workspace_dir / _CONFIG_DIR_NAME / _REPOSITORY_FILE_NAME


@dc.dataclass(frozen=True, slots=True)
class TemplateRegistryConfig:
    """Settings for a template registry service instance.

    Attributes
    ----------
    repository_file
        JSON file holding the repository list. ``None`` keeps the list in
        memory only.
    fetch_timeout_s
        Timeout applied to each manifest request, in seconds.
    user_agent
        ``User-Agent`` header sent with manifest requests.
    use_default_repositories
        Seed the registry with the built-in repositories when no repository
        file exists yet.

    """

    repository_file: Path | None = None
    fetch_timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT
    use_default_repositories: bool = True

    @staticmethod
    def _parse_timeout_from_env() -> float:
        raw = os.environ.get("QUARRY_FETCH_TIMEOUT_S", "")
        if not raw.strip():
            return _DEFAULT_TIMEOUT_S
        try:
            value = float(raw)
        except ValueError as exc:
            raise TemplateRegistryConfigError.invalid_timeout(raw) from exc
        if value <= 0:
            raise TemplateRegistryConfigError.invalid_timeout(raw)
        return value

    @staticmethod
    def _resolve_repository_file_from_env() -> Path | None:
        explicit = os.environ.get("QUARRY_REPOSITORY_FILE", "").strip()
        if explicit:
            return Path(explicit)
        workspace = os.environ.get("QUARRY_WORKSPACE_DIR", "").strip()
        if workspace:
            return repository_file_for_workspace(Path(workspace))
        return None

    @classmethod
    def from_env(cls) -> TemplateRegistryConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``QUARRY_REPOSITORY_FILE``: explicit repository file path.
        - ``QUARRY_WORKSPACE_DIR``: workspace root; the repository file is
          ``{dir}/.config/repository_list.json``. Ignored when
          ``QUARRY_REPOSITORY_FILE`` is set.
        - ``QUARRY_FETCH_TIMEOUT_S``: positive manifest request timeout.

        Raises
        ------
        TemplateRegistryConfigError
            If the timeout is not a positive number.

        """
        return cls(
            repository_file=cls._resolve_repository_file_from_env(),
            fetch_timeout_s=cls._parse_timeout_from_env(),
        )
