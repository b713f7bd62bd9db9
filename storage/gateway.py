"""
Persistence gateway: one façade over the remote table API and the local
mirror.

Mode is asked of the injected ``ModeProvider`` at the start of every call.
In guest mode nothing leaves the machine. In remote mode reads refresh the
mirror on success and fall back to it on failure, while failed writes are
raised and never mirrored.
"""
from __future__ import annotations
import logging
import secrets
import string
from typing import Any, Dict, List, Tuple

from core.collections import COLLECTIONS, Collection
from core.exceptions import RemoteWriteError
from core.result import Result
from core.wire import fill_packed_fields, format_timestamp, from_wire, now_utc, patch_to_wire, to_wire
from storage.local import LocalMirror
from storage.mode import ModeProvider
from storage.remote import RemoteStore

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits
ID_LENGTH = 12  # 62**12 is about 2**71


def new_local_id() -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))


# ---------- fallback policy ----------
def resolve_read(result: Result, cached: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return result.value if result.ok else cached


def resolve_write(result: Result, collection: str, action: str) -> Any:
    if result.ok:
        return result.value
    raise RemoteWriteError(
        f"{action} on {collection} failed: {result.error}", result.error.status_code
    ) from result.error


def _in_scope(record: Dict[str, Any], scope: Dict[str, Any]) -> bool:
    return all(record.get(k) == v for k, v in scope.items())


class CollectionGateway:
    """fetch/insert/update/delete for one entity collection."""
    def __init__(self, collection: Collection, remote: RemoteStore, mirror: LocalMirror, mode: ModeProvider):
        self.collection = collection
        self.remote = remote
        self.mirror = mirror
        self.mode = mode

    @property
    def name(self) -> str:
        return self.collection.name

    def _scope(self, scope: Dict[str, Any]) -> Dict[str, Any]:
        scope = {k: v for k, v in scope.items() if v is not None}
        allowed = {self.collection.scope} if self.collection.scope else set()
        unknown = set(scope) - allowed
        if unknown:
            raise ValueError(f"{self.name} cannot be filtered by {', '.join(sorted(unknown))}")
        return scope

    def _local(self, scope: Dict[str, Any]) -> List[Dict[str, Any]]:
        records = [r for r in self.mirror.get(self.name) if _in_scope(r, scope)]
        if self.collection.limit:
            records = records[:self.collection.limit]
        return records

    def _decode(self, records: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], List[Any]]:
        """Map records to models, skipping any that do not map. Returns (kept records, models)."""
        kept, models = [], []
        for r in records:
            if not isinstance(r, dict):
                logger.warning("Skipping non-object %s record: %r", self.name, r)
                continue
            try:
                models.append(from_wire(self.collection.model, r))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping unreadable %s record %r: %s", self.name, r.get("id"), e)
                continue
            kept.append(r)
        return kept, models

    def _models(self, records: List[Dict[str, Any]]) -> List[Any]:
        return self._decode(records)[1]

    def snapshot(self, **scope) -> List[Any]:
        return self._models(self._local(self._scope(scope)))

    def fetch(self, **scope) -> List[Any]:
        scope = self._scope(scope)
        if self.mode.is_guest():
            return self._models(self._local(scope))

        result = self.remote.fetch(self.name, scope or None)
        if not result.ok:
            logger.warning("Reading %s from local mirror: %s", self.name, result.error)
            return self._models(resolve_read(result, self._local(scope)))

        records, models = self._decode(resolve_read(result, []))
        if scope:
            others = [r for r in self.mirror.get(self.name) if not _in_scope(r, scope)]
            self.mirror.set(self.name, records + others)
        else:
            self.mirror.set(self.name, records)
        return models

    def insert(self, entity: Any) -> Any:
        if not isinstance(entity, self.collection.model):
            raise TypeError(f"{self.name} stores {self.collection.model.__name__}, got {type(entity).__name__}")
        record = to_wire(entity)

        if self.mode.is_guest():
            record["id"] = new_local_id()
            record["created_at"] = format_timestamp(now_utc())
            current = self.mirror.get(self.name)
            self.mirror.set(self.name, [record] + current)
            return from_wire(self.collection.model, record)

        record.pop("id", None)
        record.pop("created_at", None)
        rows = resolve_write(self.remote.insert(self.name, record), self.name, "insert")
        return from_wire(self.collection.model, rows[0])

    def update(self, record_id: str, **patch) -> None:
        model = self.collection.model

        if self.mode.is_guest():
            current = self.mirror.get(self.name)
            match = next((r for r in current if r.get("id") == record_id), {})
            wire_patch = patch_to_wire(model, fill_packed_fields(model, match, patch))
            self.mirror.set(self.name, [
                {**r, **wire_patch} if r.get("id") == record_id else r for r in current
            ])
            return

        wire_patch = patch_to_wire(model, patch)
        resolve_write(self.remote.update(self.name, record_id, wire_patch), self.name, "update")

    def delete(self, record_id: str) -> None:
        if self.mode.is_guest():
            current = self.mirror.get(self.name)
            self.mirror.set(self.name, [r for r in current if r.get("id") != record_id])
            return

        resolve_write(self.remote.delete(self.name, record_id), self.name, "delete")


class PersistenceGateway:
    """Entry point used by services and the controller, one attribute per collection."""
    def __init__(self, remote: RemoteStore, mirror: LocalMirror, mode: ModeProvider):
        self.remote = remote
        self.mirror = mirror
        self.mode = mode
        self.tasks = self._collection("tasks")
        self.projects = self._collection("projects")
        self.idea_items = self._collection("idea_items")
        self.folders = self._collection("folders")
        self.voice_notes = self._collection("voice_notes")
        self.subtasks = self._collection("subtasks")

    def _collection(self, name: str) -> CollectionGateway:
        return CollectionGateway(COLLECTIONS[name], self.remote, self.mirror, self.mode)

    @property
    def is_guest(self) -> bool:
        return self.mode.is_guest()
