"""SQLAlchemy-backed implementation of DocumentStore."""

from __future__ import annotations

import copy
import operator
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

import structlog
from sqlalchemy import ColumnElement, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jobchat_core.exceptions import (
    AlreadyExistsError,
    FailedPreconditionError,
    InvalidArgumentError,
    NotFoundError,
)
from jobchat_core.interfaces.document_store import ArrayUnion, Precondition, QueryOp
from jobchat_infra.db.models import DocumentModel

logger = structlog.get_logger()

_MISSING = object()

_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "in": lambda field_value, value: field_value in value,
    "array-contains": lambda field_value, value: (
        isinstance(field_value, list) and value in field_value
    ),
}


@dataclass
class _Write:
    """A queued batch write."""

    kind: Literal["set", "create", "update"]
    collection: str
    doc_id: str
    data: dict[str, Any]
    precondition: Precondition | None = None


def apply_update(document: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of document with changes merged in.

    Keys may be dotted paths into nested objects. ArrayUnion values append
    to the existing array, skipping elements already present.
    """
    merged = copy.deepcopy(document)
    for key, value in changes.items():
        *parents, leaf = key.split(".")
        target = merged
        for part in parents:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        if isinstance(value, ArrayUnion):
            current = target.get(leaf)
            items = list(current) if isinstance(current, list) else []
            items.extend(v for v in value.values if v not in items)
            target[leaf] = items
        else:
            target[leaf] = copy.deepcopy(value)
    return merged


def _lookup(document: dict[str, Any], path: str) -> Any:
    """Resolve a dotted path, returning _MISSING when any segment is absent."""
    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _json_equals(field_name: str, value: Any) -> ColumnElement[bool] | None:
    """SQL equality on a JSON path, or None unless the value is a string."""
    if not isinstance(value, str):
        return None
    return DocumentModel.data[tuple(field_name.split("."))].as_string() == value


class SqlWriteBatch:
    """Atomic write batch executed in one database transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with a session factory."""
        self._session_factory = session_factory
        self._writes: list[_Write] = []
        self._committed = False

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> SqlWriteBatch:
        """Queue a full overwrite."""
        self._writes.append(_Write("set", collection, doc_id, data))
        return self

    def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> SqlWriteBatch:
        """Queue a create-if-absent write."""
        self._writes.append(_Write("create", collection, doc_id, data))
        return self

    def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        precondition: Precondition | None = None,
    ) -> SqlWriteBatch:
        """Queue a merge into an existing document, optionally conditional."""
        self._writes.append(_Write("update", collection, doc_id, data, precondition))
        return self

    async def commit(self) -> None:
        """Apply all queued writes; on any failure nothing is persisted."""
        if self._committed:
            msg = "Write batch has already been committed"
            raise InvalidArgumentError(msg)
        self._committed = True
        if not self._writes:
            return

        try:
            async with self._session_factory() as session, session.begin():
                for write in self._writes:
                    await self._apply(session, write)
        except IntegrityError as e:
            raise AlreadyExistsError(
                "A document created in this batch already exists.", details=str(e.orig)
            ) from e

        logger.debug("batch_committed", writes=len(self._writes))

    @staticmethod
    async def _apply(session: AsyncSession, write: _Write) -> None:
        """Apply one write inside the open transaction."""
        existing = await session.get(
            DocumentModel,
            (write.collection, write.doc_id),
            with_for_update=write.precondition is not None,
        )

        if write.kind == "create":
            if existing is not None:
                raise AlreadyExistsError(
                    f"Document {write.collection}/{write.doc_id} already exists."
                )
            session.add(
                DocumentModel(
                    collection=write.collection,
                    id=write.doc_id,
                    data=copy.deepcopy(write.data),
                )
            )
        elif write.kind == "set":
            if existing is None:
                session.add(
                    DocumentModel(
                        collection=write.collection,
                        id=write.doc_id,
                        data=apply_update({}, write.data),
                    )
                )
            else:
                existing.data = apply_update({}, write.data)
        else:
            if existing is None:
                raise NotFoundError(write.collection, write.doc_id)
            if write.precondition is not None and not write.precondition(existing.data):
                raise FailedPreconditionError(
                    f"Document {write.collection}/{write.doc_id} changed state before the update."
                )
            existing.data = apply_update(existing.data, write.data)

        await session.flush()


class SqlDocumentStore:
    """DocumentStore over a single JSON documents table."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        """Initialize with an async session factory and, optionally, the engine it owns."""
        self._session_factory = session_factory
        self._engine = engine

    async def get(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Retrieve a document by collection and id."""
        async with self._session_factory() as session:
            model = await session.get(DocumentModel, (collection, doc_id))
            if model is None:
                return None
            return copy.deepcopy(model.data)

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create or overwrite a document."""
        await self.batch().set(collection, doc_id, data).commit()

    async def create(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        """Create a document, failing if it already exists."""
        await self.batch().create(collection, doc_id, data).commit()

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        precondition: Precondition | None = None,
    ) -> None:
        """Merge fields into an existing document."""
        await self.batch().update(collection, doc_id, data, precondition).commit()

    async def query(
        self,
        collection: str,
        field_name: str,
        op: QueryOp,
        value: Any,
        limit: int | None = None,
    ) -> list[tuple[str, dict[str, Any]]]:
        """Return (id, document) pairs matching a single-field comparison.

        Equality on a string value is pushed into SQL as a JSON path
        comparison. The final match always runs in Python so every operator
        has the same semantics on every backend.
        """
        compare = _COMPARATORS.get(op)
        if compare is None:
            msg = f"Unsupported query operator: {op}"
            raise InvalidArgumentError(msg)

        stmt = (
            select(DocumentModel)
            .where(DocumentModel.collection == collection)
            .order_by(DocumentModel.created_at, DocumentModel.id)
        )
        prefilter = _json_equals(field_name, value) if op == "==" else None
        if prefilter is not None:
            stmt = stmt.where(prefilter)
        async with self._session_factory() as session:
            result = await session.execute(stmt)
            models = result.scalars().all()

        matches: list[tuple[str, dict[str, Any]]] = []
        for model in models:
            field_value = _lookup(model.data, field_name)
            if field_value is _MISSING:
                continue
            try:
                matched = compare(field_value, value)
            except TypeError:
                matched = False
            if matched:
                matches.append((model.id, copy.deepcopy(model.data)))
                if limit is not None and len(matches) >= limit:
                    break
        return matches

    def batch(self) -> SqlWriteBatch:
        """Start a new atomic write batch."""
        return SqlWriteBatch(self._session_factory)

    async def close(self) -> None:
        """Dispose the owned engine, if any."""
        if self._engine is not None:
            await self._engine.dispose()
