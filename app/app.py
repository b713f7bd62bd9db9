import argparse
import logging
import sys
from typing import List, Optional

from controller.app_controller import AppController, WINDOWS
from core import config
from core.exceptions import NexusError
from services.finance_service import totals
from storage.gateway import PersistenceGateway
from storage.local import LocalMirror, LocalStorage
from storage.mode import StoredGuestMode
from storage.probe import check_connection
from storage.remote import RemoteStore

logger = logging.getLogger(__name__)


def startup(storage: LocalStorage, base_url: str, api_key: str, has_session: bool,
            timeout: float = 2.5) -> bool:
    """Decide the operating mode once. Returns whether the remote answered.

    Offline or without a session the guest flag is set; it is never cleared
    here, only by an explicit ``guest off``.
    """
    online = check_connection(base_url, api_key, timeout=timeout)
    if not online or not has_session:
        StoredGuestMode(storage).set_guest_mode(True)
        logger.info("Running in guest mode (online=%s, session=%s)", online, has_session)
    return online


def build_controller(storage: LocalStorage) -> AppController:
    remote = RemoteStore(config.BASE_URL, config.API_KEY, config.ACCESS_TOKEN or None,
                         timeout=config.REQUEST_TIMEOUT)
    gateway = PersistenceGateway(remote, LocalMirror(storage), StoredGuestMode(storage))
    return AppController(gateway)


def _print_tasks(tasks) -> None:
    for t in tasks:
        mark = "x" if t.status == "done" else " "
        due = t.due_date or "-"
        value = "" if t.value is None else f"  {t.value:+.2f}"
        print(f"[{mark}] {t.id}  {due}  {t.niche}: {t.title}{value}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nexus", description="NexusApp tasks, finance and ideas")
    parser.add_argument("--db", help="Local storage file (default from config)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="Probe the remote and show the operating mode")

    p = sub.add_parser("tasks", help="List tasks")
    p.add_argument("--niche")
    p.add_argument("--search")
    p.add_argument("--window", choices=list(WINDOWS), default="all")
    p.add_argument("--cached", action="store_true", help="Show the local snapshot without contacting the remote")

    p = sub.add_parser("add", help="Create a task")
    p.add_argument("title")
    p.add_argument("--niche", default="Geral")
    p.add_argument("--due", help="YYYY-MM-DD, default today")
    p.add_argument("--priority", choices=["low", "medium", "high"], default="medium")
    p.add_argument("--value", type=float, help="Signed amount; negative = expense")

    p = sub.add_parser("done", help="Toggle a task between done and todo")
    p.add_argument("task_id")

    p = sub.add_parser("delete", help="Delete a task")
    p.add_argument("task_id")

    p = sub.add_parser("guest", help="Turn guest (local-only) mode on or off")
    p.add_argument("state", choices=["on", "off"])

    sub.add_parser("finance", help="Six-month cash projection")
    sub.add_parser("reschedule", help="Move overdue open tasks to today")
    return parser


def run(args: argparse.Namespace, storage: LocalStorage) -> int:
    if args.command == "guest":
        StoredGuestMode(storage).set_guest_mode(args.state == "on")
        print(f"guest mode {args.state}")
        return 0

    if args.command == "tasks" and args.cached:
        tasks = build_controller(storage).list_tasks(args.niche, args.search, args.window, cached=True)
        _print_tasks(tasks)
        return 0

    online = startup(storage, config.BASE_URL, config.API_KEY, bool(config.ACCESS_TOKEN),
                     timeout=config.PROBE_TIMEOUT)
    if args.command == "status":
        guest = StoredGuestMode(storage).is_guest()
        print(f"remote: {'reachable' if online else 'offline'}  mode: {'guest' if guest else 'remote'}")
        return 0

    controller = build_controller(storage)

    if args.command == "tasks":
        tasks = controller.list_tasks(args.niche, args.search, args.window)
        _print_tasks(tasks)
        counts = controller.counts(tasks)
        print(f"{counts['pending']} pending, {counts['done']} done")
    elif args.command == "add":
        task = controller.add_task(args.title, niche=args.niche, due_date=args.due,
                                   priority=args.priority, value=args.value)
        print(f"created {task.id}")
    elif args.command == "done":
        task = next((t for t in controller.list_tasks() if t.id == args.task_id), None)
        if task is None:
            print(f"no task {args.task_id}", file=sys.stderr)
            return 1
        print(f"{task.id} -> {controller.toggle_done(task)}")
    elif args.command == "delete":
        controller.delete_task(args.task_id)
        print(f"deleted {args.task_id}")
    elif args.command == "finance":
        buckets = controller.finance.projection()
        for b in buckets:
            print(f"{b.month}  guaranteed {b.guaranteed:10.2f}  projected {b.projected:10.2f}  "
                  f"expenses {b.expenses:10.2f}  accumulated {b.accumulated:10.2f}")
        t = totals(buckets)
        print(f"total guaranteed {t['guaranteed']:.2f}  total projected {t['projected']:.2f}")
    elif args.command == "reschedule":
        print(f"rescheduled {controller.reschedule_overdue()} task(s)")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else config.LOG_LEVEL, format=config.LOG_FORMAT)

    with LocalStorage(args.db or config.LOCAL_DB_PATH) as storage:
        try:
            return run(args, storage)
        except NexusError as e:
            logger.error("%s", e)
            return 1


if __name__ == "__main__":
    sys.exit(main())
