"""Optimistic view state for one record collection.

Edits show up in ``records`` immediately and are confirmed or undone once
the server answers:

- update / status change: the merged record replaces the displayed one;
- delete: the record disappears from the display;
- create: nothing is shown until the refetch, since the server assigns the ID.

Each mutation is a small transaction. ``begin`` captures a full snapshot,
``apply_speculative`` changes the display, ``commit`` refetches the whole
collection and replaces it, ``rollback`` puts the snapshot back as is.

A failed write rolls back. A write that succeeded but whose refetch failed
does not: the speculative state stays until the next successful refetch.

Operations on the same collection are not serialized. If two edits of the
same record overlap and the earlier one fails, its rollback restores a
snapshot taken before the later edit, hiding that edit until the next
refetch even if its write succeeds.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional

from recordhub.client.api import ApiClient
from recordhub.client.sync import SyncCoordinator
from recordhub.errors import NotFoundError, ValidationError
from recordhub.resources import ResourceKind
from recordhub.utils import find_record, now_iso

logger = logging.getLogger(__name__)

Record = Dict[str, Any]
Records = List[Record]


class MutationKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    STATUS_CHANGE = "statusChange"


@dataclass
class MutationIntent:
    kind: MutationKind
    collection: str
    payload: Record
    snapshot_before_mutation: Records
    target_id: Optional[str] = None


class OptimisticCollection:
    def __init__(self, kind: ResourceKind, api: ApiClient, coordinator: SyncCoordinator):
        self.kind = kind
        self.api = api
        self.coordinator = coordinator
        self.loaded = False
        self._records: Records = []
        self._listeners: List[Callable[[Records], None]] = []

    @property
    def records(self) -> Records:
        return copy.deepcopy(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: str) -> Optional[Record]:
        record = find_record(self._records, self.kind.id_field, record_id)
        return copy.deepcopy(record) if record is not None else None

    def subscribe(self, listener: Callable[[Records], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def replace(self, records: Records) -> None:
        self._records = copy.deepcopy(list(records))
        for listener in list(self._listeners):
            listener(self.records)

    async def load(self) -> Records:
        """Fetch the authoritative collection and display it."""
        records = await self.api.fetch(self.kind)
        self.replace(records)
        self.loaded = True
        return self.records

    # ==================== Transaction steps ====================

    def begin(self) -> Records:
        return copy.deepcopy(self._records)

    def apply_speculative(self, intent: MutationIntent) -> Records:
        id_field = self.kind.id_field
        target = str(intent.target_id).strip() if intent.target_id is not None else None

        if intent.kind in (MutationKind.UPDATE, MutationKind.STATUS_CHANGE):
            self.replace([
                intent.payload if str(r.get(id_field, "")).strip() == target else r
                for r in self._records
            ])
        elif intent.kind is MutationKind.DELETE:
            self.replace([
                r for r in self._records
                if str(r.get(id_field, "")).strip() != target
            ])
        return self.records

    async def commit(self) -> Records:
        return await self.load()

    def rollback(self, snapshot: Records) -> None:
        self.replace(snapshot)

    # ==================== Mutations ====================

    def _require(self, record_id: str) -> Record:
        record = find_record(self._records, self.kind.id_field, record_id)
        if record is None:
            raise NotFoundError(f"{self.kind.label} {record_id} is not in the current view.")
        return record

    def _intent(self, kind: MutationKind, payload: Record, target_id: Optional[str] = None) -> MutationIntent:
        return MutationIntent(
            kind=kind,
            collection=self.kind.name,
            payload=payload,
            snapshot_before_mutation=self.begin(),
            target_id=target_id,
        )

    async def create(self, payload: Record) -> Any:
        intent = self._intent(MutationKind.CREATE, dict(payload))
        return await self._submit(intent, lambda: self.api.create(self.kind, intent.payload))

    async def update(self, record_id: str, changes: Record) -> Any:
        current = self._require(record_id)
        merged = {**current, **changes, self.kind.id_field: current[self.kind.id_field]}
        intent = self._intent(MutationKind.UPDATE, merged, record_id)
        return await self._submit(intent, lambda: self.api.update(self.kind, merged))

    async def change_status(self, record_id: str, status: str) -> Any:
        if not self.kind.status_field:
            raise ValidationError(f"{self.kind.label} records have no status.")
        current = self._require(record_id)
        changes = {self.kind.status_field: status}
        completion = self.kind.completion_field
        if completion and status == "Completed" and not current.get(completion):
            changes[completion] = now_iso()
        merged = {**current, **changes}
        intent = self._intent(MutationKind.STATUS_CHANGE, merged, record_id)
        return await self._submit(intent, lambda: self.api.update(self.kind, merged))

    async def delete(self, record_id: str) -> Any:
        self._require(record_id)
        intent = self._intent(MutationKind.DELETE, {self.kind.id_field: record_id}, record_id)
        return await self._submit(intent, lambda: self.api.delete(self.kind, record_id))

    async def _submit(self, intent: MutationIntent, write: Callable[[], Awaitable[Any]]) -> Any:
        self.apply_speculative(intent)
        written = False

        async def action() -> Any:
            nonlocal written
            result = await write()
            written = True
            await self.commit()
            return result

        try:
            return await self.coordinator.run(action)
        except Exception:
            if written:
                logger.warning(
                    "Refetch of %s failed after %s; display not reconciled",
                    self.kind.name, intent.kind.value,
                )
            elif intent.kind is not MutationKind.CREATE:
                self.rollback(intent.snapshot_before_mutation)
            raise
