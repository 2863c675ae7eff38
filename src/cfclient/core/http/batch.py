"""Batch operation sequencing.

A batch groups deletes, patches, replaces (PUT) and creates (POST)
against one collection into a single request. The API executes them in
the fixed order deletes -> patches -> puts -> posts, which lets a caller
delete a record and recreate one with the same name in one submission.
The payload is always built in that order, whatever order the
operations were added in.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    TypeVar,
)

from pydantic import BaseModel, ConfigDict, Field

from cfclient.core.observability import audit_log

T = TypeVar("T")


class BatchOperationKind(str, Enum):
    """Operation kinds, valued by their payload key."""

    DELETE = "deletes"
    PATCH = "patches"
    REPLACE = "puts"
    CREATE = "posts"


EXECUTION_ORDER = (
    BatchOperationKind.DELETE,
    BatchOperationKind.PATCH,
    BatchOperationKind.REPLACE,
    BatchOperationKind.CREATE,
)


@dataclass(frozen=True)
class BatchOperation:
    """One suboperation of a batch.

    ``payload`` is the JSON object sent for it; patches and replaces
    carry the target ``id``.
    """

    kind: BatchOperationKind
    payload: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def delete(cls, record_id: str) -> "BatchOperation":
        return cls(BatchOperationKind.DELETE, {"id": record_id})

    @classmethod
    def patch(cls, record_id: str, **fields: Any) -> "BatchOperation":
        return cls(BatchOperationKind.PATCH, {"id": record_id, **fields})

    @classmethod
    def replace(cls, record_id: str, **fields: Any) -> "BatchOperation":
        return cls(BatchOperationKind.REPLACE, {"id": record_id, **fields})

    @classmethod
    def create(cls, **fields: Any) -> "BatchOperation":
        return cls(BatchOperationKind.CREATE, dict(fields))


class BatchPlan:
    """Operations grouped by kind, submission order kept within a kind."""

    def __init__(self, operations: Iterable[BatchOperation] = ()):
        self._groups: Dict[BatchOperationKind, List[BatchOperation]] = {
            kind: [] for kind in EXECUTION_ORDER
        }
        for operation in operations:
            self.add(operation)

    def add(self, operation: BatchOperation) -> "BatchPlan":
        self._groups[operation.kind].append(operation)
        return self

    @property
    def deletes(self) -> List[BatchOperation]:
        return list(self._groups[BatchOperationKind.DELETE])

    @property
    def patches(self) -> List[BatchOperation]:
        return list(self._groups[BatchOperationKind.PATCH])

    @property
    def replaces(self) -> List[BatchOperation]:
        return list(self._groups[BatchOperationKind.REPLACE])

    @property
    def creates(self) -> List[BatchOperation]:
        return list(self._groups[BatchOperationKind.CREATE])

    def counts(self) -> Dict[str, int]:
        return {kind.value: len(self._groups[kind]) for kind in EXECUTION_ORDER}

    def __iter__(self) -> Iterator[BatchOperation]:
        """Iterate in execution order."""
        for kind in EXECUTION_ORDER:
            yield from self._groups[kind]

    def __len__(self) -> int:
        return sum(len(ops) for ops in self._groups.values())

    @property
    def is_empty(self) -> bool:
        return len(self) == 0

    def to_payload(self) -> Dict[str, List[Dict[str, Any]]]:
        """Build the request body; empty kinds are omitted.

        Keys are inserted in execution order so the serialized JSON lists
        them in that order too.
        """
        payload: Dict[str, List[Dict[str, Any]]] = {}
        for kind in EXECUTION_ORDER:
            operations = self._groups[kind]
            if operations:
                payload[kind.value] = [dict(op.payload) for op in operations]
        return payload


class BatchResult(BaseModel, Generic[T]):
    """Combined batch response split back into per-kind results."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    deletes: List[T] = Field(default_factory=list)
    patches: List[T] = Field(default_factory=list)
    replaces: List[T] = Field(default_factory=list, alias="puts")
    creates: List[T] = Field(default_factory=list, alias="posts")


SubmitBatch = Callable[[Dict[str, List[Dict[str, Any]]]], Awaitable[Optional[BatchResult[T]]]]


class BatchOperationSequencer(Generic[T]):
    """Submits a plan as one call and returns the demultiplexed result.

    The whole batch succeeds or fails together; suboperations are never
    retried individually.

    Args:
        submit: Sends the ordered payload and returns the parsed result.
        operation: Label for audit events.
    """

    def __init__(self, submit: SubmitBatch, operation: Optional[str] = None):
        self._submit = submit
        self.operation = operation

    async def submit(self, plan: BatchPlan) -> BatchResult[T]:
        payload = plan.to_payload()
        audit_log("batch_submitted", operation=self.operation, **plan.counts())
        result = await self._submit(payload)
        if result is None:
            return BatchResult()
        return result
