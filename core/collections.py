from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Optional

from core.models import IdeaFolder, IdeaItem, IdeaProject, Subtask, Task, VoiceNote


@dataclass(frozen=True)
class Collection:
    name: str  # remote table and mirror key suffix
    model: type
    order: Optional[str] = None  # PostgREST order clause
    limit: Optional[int] = None
    scope: Optional[str] = None  # wire field fetches may be filtered on


TASKS = Collection("tasks", Task, order="created_at.desc")
PROJECTS = Collection("projects", IdeaProject)
IDEA_ITEMS = Collection("idea_items", IdeaItem, scope="project_id")
FOLDERS = Collection("folders", IdeaFolder, scope="project_id")
VOICE_NOTES = Collection("voice_notes", VoiceNote, limit=10)
SUBTASKS = Collection("subtasks", Subtask, scope="task_id")

COLLECTIONS: Dict[str, Collection] = {
    c.name: c for c in (TASKS, PROJECTS, IDEA_ITEMS, FOLDERS, VOICE_NOTES, SUBTASKS)
}
