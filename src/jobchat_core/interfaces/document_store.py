"""Abstract document store interface."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, runtime_checkable

QueryOp = Literal["==", "!=", "<", "<=", ">", ">=", "in", "array-contains"]

# Checked against the stored document inside the write transaction
Precondition = Callable[[dict[str, Any]], bool]


@dataclass(frozen=True)
class ArrayUnion:
    """Update sentinel: append values to an array field, skipping duplicates."""

    values: tuple[Any, ...] = field(default_factory=tuple)

    def __init__(self, *values: Any) -> None:
        object.__setattr__(self, "values", tuple(values))


@runtime_checkable
class WriteBatch(Protocol):
    """A group of writes that become visible together or not at all."""

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> WriteBatch:
        """Queue a full overwrite of a document."""
        ...

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> WriteBatch:
        """Queue a write that fails the whole batch if the document exists."""
        ...

    def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        precondition: Precondition | None = None,
    ) -> WriteBatch:
        """Queue a field merge into an existing document.

        When precondition returns False for the stored document, the whole
        batch fails with FailedPreconditionError and nothing is written.
        """
        ...

    async def commit(self) -> None:
        """Apply every queued write atomically."""
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Key-value document interface keyed by collection and id."""

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document, or None if it does not exist."""
        ...

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""
        ...

    async def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create a document, raising AlreadyExistsError if present."""
        ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        precondition: Precondition | None = None,
    ) -> None:
        """Merge fields into an existing document, raising NotFoundError if absent
        and FailedPreconditionError if precondition rejects it.
        """
        ...

    async def query(
        self,
        collection: str,
        field_name: str,
        op: QueryOp,
        value: Any,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, document) pairs whose field satisfies the comparison."""
        ...

    def batch(self) -> WriteBatch:
        """Start a new atomic write batch."""
        ...
