"""In-memory repository list backed by a single JSON file.

The store follows a load, mutate, flush discipline: the file is read lazily
on first access, every mutation happens on the in-memory list, and
:meth:`RepositoryStore.write` replaces the whole file in one step. Mutating
methods here are synchronous and never touch the disk, so a lookup failure
is raised before anything changes; the service layer decides when to flush.
"""

from __future__ import annotations

import asyncio
import contextlib
import os
import tempfile
import typing as typ

import msgspec

from quarry.logging import get_logger, log_debug
from quarry.templates.errors import (
    DuplicateRepositoryError,
    RepositoryFileError,
    RepositoryNotFoundError,
)
from quarry.templates.models import (
    Repository,
    repository_from_builtins,
    repository_to_builtins,
)
from quarry.templates.observability import RegistryEventType

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

logger = get_logger(__name__)

type SeedFactory = cabc.Callable[[], list[Repository]]


def encode_repository_list(repositories: cabc.Sequence[Repository]) -> bytes:
    """Encode repositories as indented JSON, the on-disk format."""
    payload = [repository_to_builtins(repo) for repo in repositories]
    return msgspec.json.format(msgspec.json.encode(payload), indent=2)


def decode_repository_list(
    raw: bytes, *, path: object = "<memory>"
) -> list[Repository]:
    """Decode the on-disk JSON format; blank input is an empty list.

    Keys the registry does not interpret are kept on each entry.

    Raises
    ------
    RepositoryFileError
        If ``raw`` is not a JSON array of repository objects.

    """
    if not raw.strip():
        return []
    try:
        entries = msgspec.json.decode(raw, type=list[dict[str, typ.Any]])
        return [repository_from_builtins(entry) for entry in entries]
    except msgspec.DecodeError as exc:
        raise RepositoryFileError(path, str(exc)) from exc


class RepositoryStore:
    """Owns the ordered list of registered template repositories.

    Parameters
    ----------
    path
        JSON file persisting the list. ``None`` keeps the list in memory and
        makes :meth:`write` a no-op.
    seed
        Factory for the initial list used when ``path`` does not exist yet.
        Without one, a missing file yields an empty list.

    """

    def __init__(
        self, path: Path | None = None, *, seed: SeedFactory | None = None
    ) -> None:
        """Configure the backing file and seed; nothing is read yet."""
        self._path = path
        self._seed = seed
        self._repositories: list[Repository] | None = None

    @property
    def path(self) -> Path | None:
        """Return the backing file path, if any."""
        return self._path

    def load(self) -> list[Repository]:
        """Return the live list, reading the file on first access."""
        if self._repositories is None:
            self._repositories = self._read()
        return self._repositories

    def _read(self) -> list[Repository]:
        if self._path is None or not self._path.exists():
            return self._seed() if self._seed is not None else []
        try:
            raw = self._path.read_bytes()
        except OSError as exc:
            raise RepositoryFileError(self._path, str(exc)) from exc
        return decode_repository_list(raw, path=self._path)

    def replace_all(self, repositories: cabc.Iterable[Repository]) -> None:
        """Replace the in-memory list wholesale without writing it."""
        self._repositories = list(repositories)

    def get_repositories(self) -> list[Repository]:
        """Return all repositories in insertion order."""
        return list(self.load())

    def get_enabled_repositories(self) -> list[Repository]:
        """Return repositories not explicitly disabled."""
        return [repo for repo in self.load() if repo.is_enabled]

    def get_repository(self, url: str) -> Repository | None:
        """Return the repository registered under ``url``, if any."""
        return next((repo for repo in self.load() if repo.url == url), None)

    def __contains__(self, url: object) -> bool:
        """Return True when a repository with this URL is registered."""
        return any(repo.url == url for repo in self.load())

    def urls(self) -> set[str]:
        """Return the set of registered URLs."""
        return {repo.url for repo in self.load()}

    def append(self, repository: Repository) -> None:
        """Append ``repository``, keeping URLs unique.

        Raises
        ------
        DuplicateRepositoryError
            If the URL is already registered.

        """
        if repository.url in self:
            raise DuplicateRepositoryError(repository.url)
        self.load().append(repository)

    def remove(self, url: str) -> Repository:
        """Remove and return the repository registered under ``url``.

        Raises
        ------
        RepositoryNotFoundError
            If no repository has this URL.

        """
        repositories = self.load()
        for index, repo in enumerate(repositories):
            if repo.url == url:
                return repositories.pop(index)
        raise RepositoryNotFoundError(url)

    def set_enabled(self, url: str, *, enabled: bool) -> Repository:
        """Set the enabled flag on the repository registered under ``url``.

        Raises
        ------
        RepositoryNotFoundError
            If no repository has this URL; nothing is modified.

        """
        repo = self.get_repository(url)
        if repo is None:
            raise RepositoryNotFoundError(url)
        repo.enabled = enabled
        return repo

    def enable_repository(self, url: str) -> Repository:
        """Enable the repository registered under ``url``."""
        return self.set_enabled(url, enabled=True)

    def disable_repository(self, url: str) -> Repository:
        """Disable the repository registered under ``url``."""
        return self.set_enabled(url, enabled=False)

    async def write(self) -> None:
        """Replace the repository file with the current in-memory list.

        The list is written to a temporary file next to the target and moved
        into place, so readers never see a partial file.
        """
        if self._path is None:
            return
        payload = encode_repository_list(self.load())
        await asyncio.to_thread(_replace_file, self._path, payload)
        log_debug(
            logger,
            "[%s] path=%s repositories=%d",
            RegistryEventType.REPOSITORY_FILE_WRITTEN,
            self._path,
            len(self.load()),
        )


def _replace_file(path: Path, payload: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
