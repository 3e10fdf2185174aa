"""Public interface re-exports for jobchat_core."""

from jobchat_core.interfaces.completion import CompletionClient
from jobchat_core.interfaces.document_store import (
    ArrayUnion,
    DocumentStore,
    QueryOp,
    WriteBatch,
)

__all__ = [
    "ArrayUnion",
    "CompletionClient",
    "DocumentStore",
    "QueryOp",
    "WriteBatch",
]
