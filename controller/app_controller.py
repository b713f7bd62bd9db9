import base64
import datetime as dt
import hashlib
from typing import Dict, List, Optional

from core.models import Attachment, IdeaFolder, IdeaItem, IdeaProject, Subtask, Task, VoiceNote
from core.wire import now_utc
from services.finance_service import FinanceService
from services.planner_service import PlannerService
from storage.gateway import PersistenceGateway

ALL_NICHES = "Todas"
WINDOWS = {"all": None, "today": 0, "next-7": 7, "next-30": 30}


def sha256_hex(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


def to_data_uri(raw: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"


def filter_tasks(tasks: List[Task], niche: Optional[str] = None, search: Optional[str] = None,
                 window: str = "all", today: Optional[dt.date] = None) -> List[Task]:
    """Board filters: niche, title search and due-date window.

    Done tasks always pass the window; undated open tasks never do.
    """
    if window not in WINDOWS:
        raise ValueError(f"window must be one of {', '.join(WINDOWS)}")
    today = today or dt.date.today()
    result = tasks
    if niche and niche != ALL_NICHES:
        result = [t for t in result if t.niche == niche]
    if search:
        needle = search.lower()
        result = [t for t in result if needle in t.title.lower()]
    days = WINDOWS[window]
    if days is not None:
        today_iso = today.isoformat()
        limit_iso = (today + dt.timedelta(days=days)).isoformat()

        def in_window(t: Task) -> bool:
            if t.status == "done":
                return True
            if not t.due_date:
                return False
            if days == 0:
                return t.due_date == today_iso
            return t.due_date <= limit_iso

        result = [t for t in result if in_window(t)]
    return result


class AppController:
    """Coordinates the front end with the persistence gateway and domain services."""
    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.finance = FinanceService(gateway)
        self.planner = PlannerService(gateway)

    # ---- tasks ----
    def list_tasks(self, niche: Optional[str] = None, search: Optional[str] = None,
                   window: str = "all", today: Optional[dt.date] = None, cached: bool = False) -> List[Task]:
        """Filtered board. ``cached`` reads the local snapshot without any remote call."""
        tasks = self.gateway.tasks.snapshot() if cached else self.gateway.tasks.fetch()
        return filter_tasks(tasks, niche, search, window, today)

    @staticmethod
    def counts(tasks: List[Task]) -> Dict[str, int]:
        done = sum(1 for t in tasks if t.status == "done")
        return {"pending": len(tasks) - done, "done": done}

    def add_task(self, title: str, niche: str = "Geral", description: Optional[str] = None,
                 due_date: Optional[str] = None, priority: str = "medium",
                 value: Optional[float] = None) -> Task:
        title = title.strip()
        if not title:
            raise ValueError("Task title is required")
        task = Task(
            title=title,
            niche=niche,
            description=description,
            status="todo",
            priority=priority,
            due_date=due_date or dt.date.today().isoformat(),
            value=value,
            reschedule_count=0,
        )
        return self.gateway.tasks.insert(task)

    def toggle_done(self, task: Task) -> str:
        new_status = "todo" if task.status == "done" else "done"
        self.gateway.tasks.update(task.id, status=new_status)
        return new_status

    def update_task(self, task_id: str, **fields) -> None:
        """Partial update, keyed by Task field names."""
        self.gateway.tasks.update(task_id, **fields)

    def delete_task(self, task_id: str) -> None:
        self.gateway.tasks.delete(task_id)

    def reschedule_overdue(self, today: Optional[dt.date] = None) -> int:
        return self.planner.reschedule_overdue(today)

    def add_attachment(self, task: Task, name: str, att_type: str, data: str) -> Attachment:
        att = Attachment(
            id=str(int(now_utc().timestamp() * 1000)),
            name=name,
            type=att_type,
            data=data,
            created_at=now_utc(),
        )
        attachments = list(task.attachments) + [att]
        self.gateway.tasks.update(task.id, attachments=attachments)
        task.attachments = attachments
        return att

    def remove_attachment(self, task: Task, att_id: str) -> None:
        attachments = [a for a in task.attachments if a.id != att_id]
        self.gateway.tasks.update(task.id, attachments=attachments)
        task.attachments = attachments

    # ---- subtasks ----
    def list_subtasks(self, task_id: str) -> List[Subtask]:
        return self.gateway.subtasks.fetch(task_id=task_id)

    def add_subtask(self, task_id: str, title: str) -> Subtask:
        if not title.strip():
            raise ValueError("Subtask title is required")
        return self.gateway.subtasks.insert(Subtask(task_id=task_id, title=title.strip()))

    def toggle_subtask(self, subtask: Subtask) -> bool:
        completed = not subtask.completed
        self.gateway.subtasks.update(subtask.id, completed=completed)
        return completed

    def delete_subtask(self, subtask_id: str) -> None:
        self.gateway.subtasks.delete(subtask_id)

    # ---- idea lab ----
    def list_projects(self) -> List[IdeaProject]:
        return self.gateway.projects.fetch()

    def create_project(self, name: str, description: str = "") -> IdeaProject:
        return self.gateway.projects.insert(IdeaProject(name=name, description=description))

    def delete_project(self, project_id: str) -> None:
        self.gateway.projects.delete(project_id)

    def list_folders(self, project_id: str) -> List[IdeaFolder]:
        return self.gateway.folders.fetch(project_id=project_id)

    def create_folder(self, project_id: str, name: str, parent_id: Optional[str] = None) -> IdeaFolder:
        return self.gateway.folders.insert(IdeaFolder(project_id=project_id, name=name, parent_id=parent_id))

    def list_idea_items(self, project_id: str, folder_id: Optional[str] = None) -> List[IdeaItem]:
        items = self.gateway.idea_items.fetch(project_id=project_id)
        return [i for i in items if i.folder_id == folder_id]

    def add_text_item(self, project_id: str, text: str, folder_id: Optional[str] = None,
                      template: bool = False) -> IdeaItem:
        item = IdeaItem(
            project_id=project_id,
            folder_id=folder_id,
            type="template" if template else "text",
            content=text,
        )
        return self.gateway.idea_items.insert(item)

    def add_file_item(self, project_id: str, name: str, raw: bytes, mime_type: str,
                      item_type: str = "file", folder_id: Optional[str] = None) -> IdeaItem:
        item = IdeaItem(
            project_id=project_id,
            folder_id=folder_id,
            type=item_type,
            content=to_data_uri(raw, mime_type),
            name=name,
            content_hash=sha256_hex(raw),
        )
        return self.gateway.idea_items.insert(item)

    def delete_idea_item(self, item_id: str) -> None:
        self.gateway.idea_items.delete(item_id)

    # ---- voice notes ----
    def list_voice_notes(self) -> List[VoiceNote]:
        return self.gateway.voice_notes.fetch()

    def save_voice_note(self, audio_url: str, transcription: str, summary: Optional[str] = None,
                        niche: Optional[str] = None) -> VoiceNote:
        note = VoiceNote(audio_url=audio_url, transcription=transcription, summary=summary, niche=niche)
        return self.gateway.voice_notes.insert(note)
