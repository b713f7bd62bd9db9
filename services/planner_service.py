import datetime as dt
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class PlannerService:
    """Day operations: move overdue open tasks onto today."""
    def __init__(self, gateway):
        self.gateway = gateway

    def reschedule_overdue(self, today: Optional[dt.date] = None) -> int:
        if today is None:
            today = dt.date.today()
        today_iso = today.isoformat()

        moved = 0
        for task in self.gateway.tasks.fetch():
            if task.status == "done" or not task.due_date:
                continue
            if task.due_date[:10] >= today_iso:
                continue
            # each move counts as one more postponement
            self.gateway.tasks.update(
                task.id, due_date=today_iso, reschedule_count=(task.reschedule_count or 0) + 1
            )
            moved += 1
        if moved:
            logger.info("Rescheduled %d overdue task(s) to %s", moved, today_iso)
        return moved
