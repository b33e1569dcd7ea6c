"""Typed records for template repositories, manifests and batch operations.

Field names are camelCase on the wire so ``repository_list.json`` stays
readable by other tools sharing the workspace; optional fields that were never
set are omitted on encode. Keys the models do not know about are kept in
``extra_fields`` and written back, so a hand-edited file round-trips unchanged.
"""

from __future__ import annotations

import typing as typ

import msgspec

if typ.TYPE_CHECKING:
    import collections.abc as cabc


class Repository(msgspec.Struct, kw_only=True, omit_defaults=True):
    """A registered template repository.

    Attributes
    ----------
    url : str
        Location of the repository manifest; unique within a registry.
    description : str, optional
        Human-readable summary shown to users.
    enabled : bool, optional
        Explicit enablement flag. ``None`` (absent) counts as enabled; only an
        explicit ``False`` disables the repository.
    protected : bool, optional
        ``True`` for entries contributed by a provider.
    project_styles : list[str], optional
        Styles found in the repository manifest (``projectStyles`` on disk).
    extra_fields : dict[str, Any]
        Keys found on disk that the registry does not interpret. They are
        merged back by :func:`repository_to_builtins`.

    """

    url: str
    description: str | None = None
    enabled: bool | None = None
    protected: bool | None = None
    project_styles: list[str] | None = msgspec.field(
        default=None, name="projectStyles"
    )
    extra_fields: dict[str, typ.Any] = msgspec.field(default_factory=dict)

    @property
    def is_enabled(self) -> bool:
        """Return False only when the repository was explicitly disabled."""
        return self.enabled is not False


class ProvidedRepository(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Minimal repository record accepted from a provider.

    Any further keys a provider supplies are carried in ``extra_fields``.
    """

    url: str
    description: str | None = None
    extra_fields: dict[str, typ.Any] = msgspec.field(default_factory=dict)


class TemplateDescriptor(msgspec.Struct, kw_only=True, rename="camel"):
    """A single entry of a repository manifest.

    Only ``displayName`` and ``location`` are required; anything beyond the
    fields below belongs to the project-creation consumer and is ignored.
    """

    display_name: str
    location: str
    description: str | None = None
    language: str | None = None
    project_type: str | None = None
    project_style: str | None = None


type Manifest = dict[str, list[TemplateDescriptor]]


class Template(msgspec.Struct, kw_only=True, omit_defaults=True):
    """A manifest entry flattened and tagged with its style and source."""

    label: str
    url: str
    project_style: str = msgspec.field(name="projectStyle")
    description: str | None = None
    language: str | None = None
    project_type: str | None = msgspec.field(default=None, name="projectType")
    source_url: str | None = msgspec.field(default=None, name="sourceURL")


class OperationRequest(msgspec.Struct, kw_only=True):
    """One requested change in a batch update, e.g. ``{op, url, value}``."""

    op: str = ""
    url: str = ""
    value: str | bool = ""

    @property
    def truthy_value(self) -> bool:
        """Interpret ``value`` the way the REST layer sends it (``"true"``)."""
        return self.value is True or self.value == "true"


class OperationResult(msgspec.Struct, kw_only=True, omit_defaults=True):
    """Outcome of one batch operation, carrying an HTTP-style status code."""

    status: int
    requested_operation: OperationRequest = msgspec.field(name="requestedOperation")
    error: str | None = None

    def to_builtins(self) -> dict[str, typ.Any]:
        """Return the JSON-ready representation of this result."""
        return msgspec.to_builtins(self)


_EXTRA_FIELDS = "extra_fields"


def _wire_names(struct_type: type[msgspec.Struct]) -> frozenset[str]:
    return frozenset(
        field.encode_name
        for field in msgspec.structs.fields(struct_type)
        if field.name != _EXTRA_FIELDS
    )


def split_known_fields(
    struct_type: type[msgspec.Struct], data: cabc.Mapping[str, typ.Any]
) -> tuple[dict[str, typ.Any], dict[str, typ.Any]]:
    """Split ``data`` into the keys ``struct_type`` decodes and all the others."""
    names = _wire_names(struct_type)
    known = {key: value for key, value in data.items() if key in names}
    extra = {key: value for key, value in data.items() if key not in names}
    return known, extra


def repository_from_builtins(data: cabc.Mapping[str, typ.Any]) -> Repository:
    """Build a Repository from a decoded JSON object, keeping unknown keys.

    Raises
    ------
    msgspec.ValidationError
        If ``url`` is missing or a known field has the wrong type.

    """
    known, extra = split_known_fields(Repository, data)
    repository = msgspec.convert(known, Repository)
    repository.extra_fields = extra
    return repository


def repository_to_builtins(repository: Repository) -> dict[str, typ.Any]:
    """Return the on-disk JSON object for ``repository``, extra keys last."""
    data = msgspec.to_builtins(repository)
    extra = data.pop(_EXTRA_FIELDS, {})
    return data | {key: value for key, value in extra.items() if key not in data}
