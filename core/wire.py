"""
Boundary mapping between the entity dataclasses and the records stored
remotely and in the local mirror.

Every function here is pure. Wire records are flat JSON objects with
snake_case names; optional fields that are unset are left out.
"""
from __future__ import annotations
import json
import re
from dataclasses import fields
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from core.models import (
    ATTACHMENT_TYPES, FINANCIAL_TYPES, IDEA_ITEM_TYPES, PRIORITIES, TASK_STATUSES,
    Attachment, IdeaFolder, IdeaItem, IdeaProject, Subtask, Task, VoiceNote,
)

Record = Dict[str, Any]

# Postgres trims trailing zeros from fractional seconds and may send "+00"
_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?[+-]\d{2})$")


# ---------- timestamps ----------
def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    text = _SHORT_OFFSET.sub(r"\1:00", text)
    return datetime.fromisoformat(text)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _compact(record: Record) -> Record:
    return {k: v for k, v in record.items() if v is not None}


# ---------- attachments ----------
def attachment_to_wire(att: Attachment) -> Record:
    return _compact({
        "id": att.id,
        "name": att.name,
        "type": att.type,
        "data": att.data,
        "timestamp": None if att.created_at is None else int(att.created_at.timestamp() * 1000),
    })


def attachment_from_wire(raw: Record) -> Attachment:
    return Attachment(
        id=None if raw.get("id") is None else str(raw["id"]),
        name=raw.get("name") or "",
        type=raw.get("type") or "file",
        data=raw.get("data") or "",
        created_at=parse_timestamp(raw.get("timestamp")),
    )


# ---------- tasks ----------
def task_to_wire(task: Task) -> Record:
    return _compact({
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "niche": task.niche,
        "status": task.status,
        "due_date": task.due_date,
        "priority": task.priority,
        "value": task.value,
        "financial_type": task.financial_type,
        "financial_category": task.financial_category,
        "attachments": [attachment_to_wire(a) for a in task.attachments],
        "reschedule_count": task.reschedule_count,
        "is_habit": task.is_habit,
        "created_at": format_timestamp(task.created_at),
    })


def task_from_wire(raw: Record) -> Task:
    value = raw.get("value")
    return Task(
        id=raw.get("id"),
        title=raw.get("title") or "",
        description=raw.get("description"),
        niche=raw.get("niche") or "Geral",
        status=raw.get("status") or "todo",
        due_date=raw.get("due_date"),
        priority=raw.get("priority"),
        value=None if value is None else float(value),
        financial_type=raw.get("financial_type"),
        financial_category=raw.get("financial_category"),
        attachments=[attachment_from_wire(a) for a in raw.get("attachments") or []],
        reschedule_count=raw.get("reschedule_count") or 0,
        is_habit=bool(raw.get("is_habit")),
        created_at=parse_timestamp(raw.get("created_at")),
    )


# ---------- subtasks ----------
def subtask_to_wire(sub: Subtask) -> Record:
    return _compact({
        "id": sub.id,
        "task_id": sub.task_id,
        "title": sub.title,
        "completed": sub.completed,
        "created_at": format_timestamp(sub.created_at),
    })


def subtask_from_wire(raw: Record) -> Subtask:
    return Subtask(
        id=raw.get("id"),
        task_id=raw.get("task_id") or raw.get("taskId"),
        title=raw.get("title") or "",
        completed=bool(raw.get("completed")),
        created_at=parse_timestamp(raw.get("created_at")),
    )


# ---------- idea projects / folders / items ----------
def project_to_wire(project: IdeaProject) -> Record:
    return _compact({
        "id": project.id,
        "name": project.name,
        "description": project.description,
        "created_at": format_timestamp(project.created_at),
    })


def project_from_wire(raw: Record) -> IdeaProject:
    return IdeaProject(
        id=raw.get("id"),
        name=raw.get("name") or "",
        description=raw.get("description") or "",
        created_at=parse_timestamp(raw.get("created_at")),
    )


def folder_to_wire(folder: IdeaFolder) -> Record:
    record = _compact({
        "id": folder.id,
        "project_id": folder.project_id,
        "name": folder.name,
        "created_at": format_timestamp(folder.created_at),
    })
    # null parent is meaningful (root folder)
    record["parent_id"] = folder.parent_id
    return record


def folder_from_wire(raw: Record) -> IdeaFolder:
    # older local snapshots were written with camelCase keys
    return IdeaFolder(
        id=raw.get("id"),
        project_id=raw.get("project_id") or raw.get("projectId"),
        parent_id=raw.get("parent_id") or raw.get("parentId"),
        name=raw.get("name") or "",
        created_at=parse_timestamp(raw.get("created_at") or raw.get("createdAt")),
    )


def idea_item_to_wire(item: IdeaItem) -> Record:
    record = _compact({
        "id": item.id,
        "project_id": item.project_id,
        "type": item.type,
        "content": item.content,
        "name": item.name,
        "transcription": item.transcription,
        "hash": item.content_hash,
        "created_at": format_timestamp(item.created_at),
    })
    record["folder_id"] = item.folder_id
    return record


def idea_item_from_wire(raw: Record) -> IdeaItem:
    return IdeaItem(
        id=raw.get("id"),
        project_id=raw.get("project_id"),
        folder_id=raw.get("folder_id"),
        type=raw.get("type") or "text",
        content=raw.get("content") or "",
        name=raw.get("name"),
        transcription=raw.get("transcription"),
        content_hash=raw.get("hash"),
        created_at=parse_timestamp(raw.get("created_at")),
    )


# ---------- voice notes ----------
def encode_transcription(transcription: str, summary: Optional[str], niche: Optional[str]) -> str:
    if summary is None and niche is None:
        return transcription
    return json.dumps(
        {"transcription": transcription, "summary": summary, "niche": niche},
        ensure_ascii=False,
    )


def voice_note_to_wire(note: VoiceNote) -> Record:
    return _compact({
        "id": note.id,
        "audio_url": note.audio_url,
        "transcription": encode_transcription(note.transcription, note.summary, note.niche),
        "created_at": format_timestamp(note.created_at),
    })


def voice_note_from_wire(raw: Record) -> VoiceNote:
    text = raw.get("transcription") or ""
    summary = niche = None
    if text.startswith("{"):
        try:
            meta = json.loads(text)
        except ValueError:
            meta = None
        if isinstance(meta, dict):
            text = meta.get("transcription") or ""
            summary = meta.get("summary")
            niche = meta.get("niche")
    return VoiceNote(
        id=raw.get("id"),
        audio_url=raw.get("audio_url") or "",
        transcription=text,
        summary=summary,
        niche=niche,
        created_at=parse_timestamp(raw.get("created_at")),
    )


# ---------- patches ----------
# model field -> wire field, where they differ
RENAMED_FIELDS = {
    IdeaItem: {"content_hash": "hash"},
}

ENUM_FIELDS = {
    Task: {"status": TASK_STATUSES, "priority": PRIORITIES, "financial_type": FINANCIAL_TYPES},
    IdeaItem: {"type": IDEA_ITEM_TYPES},
}

# model fields stored together in one wire column
PACKED_FIELDS = {
    VoiceNote: ("transcription", "summary", "niche"),
}


def _patch_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, list):
        return [attachment_to_wire(v) if isinstance(v, Attachment) else v for v in value]
    return value


def fill_packed_fields(model: type, raw: Record, patch: Dict[str, Any]) -> Dict[str, Any]:
    """Complete a patch that sets only some packed fields from the stored record."""
    packed = PACKED_FIELDS.get(model)
    if not packed or not set(packed) & set(patch):
        return patch
    current = from_wire(model, raw)
    return {**{name: getattr(current, name) for name in packed}, **patch}


def patch_to_wire(model: type, patch: Dict[str, Any]) -> Record:
    """Translate a partial update keyed by model field names.

    Voice note metadata is stored inside ``transcription``, so a patch must
    carry transcription, summary and niche together (see
    ``fill_packed_fields``).
    """
    known = {f.name for f in fields(model)} - {"id"}
    unknown = set(patch) - known
    if unknown:
        raise ValueError(f"unknown {model.__name__} fields: {', '.join(sorted(unknown))}")
    allowed = ENUM_FIELDS.get(model, {})
    for name, values in allowed.items():
        if name in patch and patch[name] is not None and patch[name] not in values:
            raise ValueError(f"{name} must be one of {', '.join(values)}, got {patch[name]!r}")

    patch = dict(patch)
    packed = PACKED_FIELDS.get(model, ())
    touched = set(packed) & set(patch)
    if touched and touched != set(packed):
        raise ValueError(f"{model.__name__} patch must set {', '.join(packed)} together")
    if model is VoiceNote and touched:
        patch["transcription"] = encode_transcription(
            patch["transcription"] or "", patch.pop("summary"), patch.pop("niche")
        )

    renames = RENAMED_FIELDS.get(model, {})
    return {renames.get(k, k): _patch_value(v) for k, v in patch.items()}


MAPPERS: Dict[type, tuple] = {
    Task: (task_to_wire, task_from_wire),
    Subtask: (subtask_to_wire, subtask_from_wire),
    IdeaProject: (project_to_wire, project_from_wire),
    IdeaFolder: (folder_to_wire, folder_from_wire),
    IdeaItem: (idea_item_to_wire, idea_item_from_wire),
    VoiceNote: (voice_note_to_wire, voice_note_from_wire),
}


def to_wire(entity: Any) -> Record:
    return MAPPERS[type(entity)][0](entity)


def from_wire(model: type, raw: Record) -> Any:
    return MAPPERS[model][1](raw)
