from __future__ import annotations
import datetime as dt
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

from core.models import FINANCIAL_TYPES, Attachment, Task

FINANCE_NICHE = "Finanças"
DEFAULT_CATEGORY = "Geral"

# Likelihood that an open entry actually happens, by task status
STATUS_PROBABILITY = {
    "done": 1.0,
    "in-progress": 0.6,
    "todo": 0.3,
}
UNKNOWN_PROBABILITY = 0.1


def probability(status: str) -> float:
    return STATUS_PROBABILITY.get(status, UNKNOWN_PROBABILITY)


def normalize(task: Task) -> Task:
    """Fill financial defaults for entries saved before those fields existed."""
    value = task.value or 0.0
    return replace(
        task,
        value=value,
        financial_type=task.financial_type or ("expense" if value < 0 else "income"),
        financial_category=task.financial_category or DEFAULT_CATEGORY,
    )


@dataclass
class MonthBucket:
    month: str  # YYYY-MM
    guaranteed: float = 0.0
    projected: float = 0.0
    gap: float = 0.0
    expenses: float = 0.0
    accumulated: float = 0.0


def _month_keys(today: dt.date, months: int) -> List[str]:
    keys = []
    year, month = today.year, today.month
    for _ in range(months):
        keys.append(f"{year:04d}-{month:02d}")
        month += 1
        if month > 12:
            year, month = year + 1, 1
    return keys


def monthly_projection(tasks: List[Task], today: dt.date, months: int = 6) -> List[MonthBucket]:
    """Cash projection for the next ``months`` months, starting with today's.

    Done entries count in full; open ones are weighted by ``probability``.
    Undated entries and entries outside the window are ignored.
    """
    buckets: Dict[str, MonthBucket] = {key: MonthBucket(key) for key in _month_keys(today, months)}

    for task in sorted(tasks, key=lambda t: t.due_date or ""):
        if not task.due_date:
            continue
        bucket = buckets.get(task.due_date[:7])
        if bucket is None:
            continue
        value = task.value or 0.0
        if task.status == "done":
            bucket.guaranteed += value
            bucket.projected += value
        else:
            weighted = value * probability(task.status)
            bucket.projected += weighted
            if value > 0:
                bucket.gap += weighted
        if value < 0:
            bucket.expenses += abs(value)

    running = 0.0
    for bucket in buckets.values():
        running += bucket.projected
        bucket.accumulated = running
    return list(buckets.values())


def totals(buckets: List[MonthBucket]) -> Dict[str, float]:
    return {
        "guaranteed": sum(b.guaranteed for b in buckets),
        "projected": sum(b.projected for b in buckets),
    }


def financial_records(tasks: List[Task]) -> List[Task]:
    """Entries in the finance niche or carrying a value, newest due date first."""
    records = [t for t in tasks if t.niche == FINANCE_NICHE or t.value]
    dated = sorted((t for t in records if t.due_date), key=lambda t: t.due_date, reverse=True)
    return dated + [t for t in records if not t.due_date]


class FinanceService:
    def __init__(self, gateway):
        self.gateway = gateway

    def entries(self) -> List[Task]:
        return [normalize(t) for t in self.gateway.tasks.fetch()]

    @staticmethod
    def _entry_fields(title: str, amount: float, entry_type: str, category: str,
                      due_date: Optional[str], guaranteed: bool,
                      attachments: Optional[List[Attachment]]) -> Dict[str, Any]:
        if entry_type not in FINANCIAL_TYPES:
            raise ValueError(f"entry_type must be income or expense, got {entry_type!r}")
        return {
            "title": title,
            "description": f"Lançamento: {category}",
            "niche": FINANCE_NICHE,
            "status": "done" if guaranteed else "in-progress",
            "priority": "high",
            "due_date": due_date or dt.date.today().isoformat(),
            "value": -abs(amount) if entry_type == "expense" else abs(amount),
            "financial_type": entry_type,
            "financial_category": category,
            "attachments": list(attachments or []),
        }

    def add_entry(self, title: str, amount: float, entry_type: str = "expense",
                  category: str = DEFAULT_CATEGORY, due_date: Optional[str] = None,
                  guaranteed: bool = False, attachments: Optional[List[Attachment]] = None) -> Task:
        fields = self._entry_fields(title, amount, entry_type, category, due_date, guaranteed, attachments)
        return self.gateway.tasks.insert(Task(**fields))

    def update_entry(self, entry_id: str, title: str, amount: float, entry_type: str = "expense",
                     category: str = DEFAULT_CATEGORY, due_date: Optional[str] = None,
                     guaranteed: bool = False, attachments: Optional[List[Attachment]] = None) -> None:
        """Rewrite every field of an existing entry, as the entry form saves it."""
        fields = self._entry_fields(title, amount, entry_type, category, due_date, guaranteed, attachments)
        self.gateway.tasks.update(entry_id, **fields)

    def projection(self, today: Optional[dt.date] = None, months: int = 6) -> List[MonthBucket]:
        return monthly_projection(self.entries(), today or dt.date.today(), months)
