"""Batched enable/disable requests against a repository store.

Each requested operation is applied independently and reported with an
HTTP-style status code. The store is flushed once, after the whole batch.
"""

from __future__ import annotations

import collections.abc as cabc
import enum
import http
import typing as typ

import msgspec

from quarry.logging import get_logger, log_info
from quarry.templates.models import OperationRequest, OperationResult
from quarry.templates.observability import RegistryEventType

if typ.TYPE_CHECKING:
    from quarry.templates.store import RepositoryStore

    type OperationInput = OperationRequest | cabc.Mapping[str, object]

logger = get_logger(__name__)

UNKNOWN_REPOSITORY_URL = "Unknown repository URL"


class OperationType(enum.StrEnum):
    """Operations accepted in a batch update."""

    ENABLE = "enable"


def coerce_operation(operation: OperationInput) -> OperationRequest:
    """Return ``operation`` as an OperationRequest.

    Raises
    ------
    msgspec.ValidationError
        If a mapping cannot be interpreted as an operation.

    """
    if isinstance(operation, OperationRequest):
        return operation
    return msgspec.convert(operation, OperationRequest)


def perform_operation(
    store: RepositoryStore, operation: OperationRequest
) -> OperationResult:
    """Apply one operation to the in-memory store without persisting it.

    Returns
    -------
    OperationResult
        ``200`` when applied, ``404`` for an unknown repository URL and
        ``400`` for an unsupported ``op``.

    """
    if operation.op != OperationType.ENABLE:
        return OperationResult(
            status=http.HTTPStatus.BAD_REQUEST,
            requested_operation=operation,
            error=f"Unsupported operation '{operation.op}'",
        )

    repo = store.get_repository(operation.url)
    if repo is None:
        return OperationResult(
            status=http.HTTPStatus.NOT_FOUND,
            requested_operation=operation,
            error=UNKNOWN_REPOSITORY_URL,
        )

    repo.enabled = operation.truthy_value
    return OperationResult(status=http.HTTPStatus.OK, requested_operation=operation)


def _readable_part(raw: object) -> OperationRequest:
    """Keep the string ``op`` and ``url`` of an input that failed conversion."""
    if not isinstance(raw, cabc.Mapping):
        return OperationRequest()
    op = raw.get("op")
    url = raw.get("url")
    return OperationRequest(
        op=op if isinstance(op, str) else "",
        url=url if isinstance(url, str) else "",
    )


def apply_operations(
    store: RepositoryStore, operations: cabc.Iterable[OperationInput]
) -> list[OperationResult]:
    """Apply ``operations`` in order, one result per input, never aborting."""
    results: list[OperationResult] = []
    for raw in operations:
        try:
            operation = coerce_operation(raw)
        except msgspec.ValidationError as exc:
            results.append(
                OperationResult(
                    status=http.HTTPStatus.BAD_REQUEST,
                    requested_operation=_readable_part(raw),
                    error=f"Invalid operation: {exc}",
                )
            )
            continue
        results.append(perform_operation(store, operation))
    return results


async def batch_update(
    store: RepositoryStore, operations: cabc.Iterable[OperationInput]
) -> list[OperationResult]:
    """Apply ``operations`` and persist the store exactly once.

    Only a failure to write the repository file propagates.
    """
    results = apply_operations(store, operations)
    await store.write()
    applied = sum(1 for result in results if result.status == http.HTTPStatus.OK)
    log_info(
        logger,
        "[%s] requested=%d applied=%d",
        RegistryEventType.BATCH_COMPLETED,
        len(results),
        applied,
    )
    return results
