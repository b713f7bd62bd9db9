from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

TASK_STATUSES = ("todo", "in-progress", "done")
PRIORITIES = ("low", "medium", "high")
FINANCIAL_TYPES = ("income", "expense")
ATTACHMENT_TYPES = ("image", "video", "audio", "pdf", "text", "file")
IDEA_ITEM_TYPES = ("text", "image", "audio", "video", "pdf", "file", "template")


def _check(name: str, value: Optional[str], allowed) -> None:
    if value is not None and value not in allowed:
        raise ValueError(f"{name} must be one of {', '.join(allowed)}, got {value!r}")


@dataclass
class Attachment:
    name: str
    type: str  # image | video | audio | pdf | text | file
    data: str  # data:<mime>;base64,...
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _check("type", self.type, ATTACHMENT_TYPES)


@dataclass
class Task:
    title: str
    niche: str = "Geral"
    status: str = "todo"  # todo | in-progress | done
    description: Optional[str] = None
    due_date: Optional[str] = None  # YYYY-MM-DD
    priority: Optional[str] = None  # low | medium | high
    value: Optional[float] = None  # negative = expense
    financial_type: Optional[str] = None  # income | expense
    financial_category: Optional[str] = None
    attachments: List[Attachment] = field(default_factory=list)
    reschedule_count: int = 0
    is_habit: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _check("status", self.status, TASK_STATUSES)
        _check("priority", self.priority, PRIORITIES)
        _check("financial_type", self.financial_type, FINANCIAL_TYPES)


@dataclass
class Subtask:
    task_id: str
    title: str
    completed: bool = False
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class IdeaProject:
    name: str
    description: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class IdeaFolder:
    project_id: str
    name: str
    parent_id: Optional[str] = None  # None = project root
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class IdeaItem:
    project_id: str
    type: str  # text | image | audio | video | pdf | file | template
    content: str  # text or data URI
    folder_id: Optional[str] = None  # None = project root
    name: Optional[str] = None
    transcription: Optional[str] = None
    content_hash: Optional[str] = None  # SHA-256 hex of the raw file
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        _check("type", self.type, IDEA_ITEM_TYPES)


@dataclass
class VoiceNote:
    audio_url: str
    transcription: str = ""
    summary: Optional[str] = None
    niche: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None
