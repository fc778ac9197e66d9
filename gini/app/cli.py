"""gini CLI.

Principles:
- The core never prompts; selection and confirmation live here.
- Every destructive command asks for "yes" unless --yes is given.
- Stdlib-only interactive UI.
"""

from __future__ import annotations

import argparse
import os
import sys
from datetime import datetime
from pathlib import Path

from .. import __version__
from ..core.controller import GiniController, LogEntry
from ..core.backups import BackupInfo
from ..core.errors import GiniError, RestoreIncomplete
from ..core.project_root import resolve_root
from ..utils.env import get_author_identity, get_project_root_override


MIN_PREFIX_LENGTH = 4


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gini",
        description="A simple, efficient CLI checkpoint system for your projects",
    )
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("init", help="Initialize a new gini repository")

    checkpoint = subparsers.add_parser("checkpoint", aliases=["c"], help="Create a new checkpoint")
    checkpoint.add_argument("-m", "--message", required=True, help="Checkpoint message")

    restore = subparsers.add_parser("restore", aliases=["r"], help="Restore the project to a previous checkpoint")
    restore.add_argument(
        "selector",
        nargs="?",
        help="N (from `gini log`) | <hash> | <hash-prefix>; interactive when omitted",
    )
    restore.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    subparsers.add_parser("log", aliases=["l"], help="List all checkpoints in the project's history")

    backup = subparsers.add_parser("backup", aliases=["b"], help="Restore from a backup")
    backup.add_argument(
        "selector",
        nargs="?",
        help="N (from `gini backups`) | <backup-name>; interactive when omitted",
    )
    backup.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    subparsers.add_parser("backups", help="List backups taken before restores")
    subparsers.add_parser("status", help="Show repository status")
    subparsers.add_parser("verify", help="Check repository consistency")

    return parser


_ALIASES = {"c": "checkpoint", "r": "restore", "l": "log", "b": "backup"}


def main(args: list[str] | None = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)

    if parsed.debug:
        os.environ["GINI_DEBUG"] = "1"

    if not parsed.command:
        parser.print_help()
        return 1

    command = _ALIASES.get(parsed.command, parsed.command)
    try:
        if command == "init":
            return cmd_init(GiniController(project_root=_determine_start_dir()))

        controller = _open_controller()
        if command == "checkpoint":
            return cmd_checkpoint(parsed, controller)
        if command == "restore":
            return cmd_restore(parsed, controller)
        if command == "log":
            return cmd_log(controller)
        if command == "backup":
            return cmd_backup(parsed, controller)
        if command == "backups":
            return cmd_backups(controller)
        if command == "status":
            return cmd_status(controller)
        if command == "verify":
            return cmd_verify(controller)
    except RestoreIncomplete as e:
        print(f"gini: error: {e}", file=sys.stderr)
        print(f"gini: run `gini backup {e.backup}` to return to the previous state.", file=sys.stderr)
        return 1
    except GiniError as e:
        print(f"gini: error: {e}", file=sys.stderr)
        return 1
    except (EOFError, KeyboardInterrupt):
        print("\ngini: Canceled.", file=sys.stderr)
        return 1

    parser.print_help()
    return 1


def cmd_init(controller: GiniController) -> int:
    controller.init()
    print(f"gini: Initialized empty .gini project in {controller.project_root.resolve()}")
    return 0


def cmd_checkpoint(args: argparse.Namespace, controller: GiniController) -> int:
    author = controller.config.author
    name, email = get_author_identity(author.name, author.email)
    result = controller.checkpoint(args.message, author_name=name, author_email=email)
    print(f"gini: Checkpoint created with hash: {result.commit}")
    return 0


def cmd_log(controller: GiniController) -> int:
    found = False
    for entry in controller.history():
        found = True
        print(f"checkpoint {entry.digest}")
        print(f"Author: {entry.author}")
        print(f"Date:   {datetime.fromtimestamp(entry.timestamp):%Y-%m-%d %H:%M:%S}")
        print()
        for line in entry.message.split("\n"):
            print(f"\t{line}")
        print()
    if not found:
        print("gini: No checkpoints yet.")
    return 0


def cmd_restore(args: argparse.Namespace, controller: GiniController) -> int:
    commits = controller.log()
    if not commits:
        print("gini: No checkpoints found to restore.")
        return 0

    if args.selector:
        digest = resolve_commit_selector(args.selector, commits)
        if digest is None:
            print(f"gini: error: no checkpoint matches {args.selector!r}", file=sys.stderr)
            return 1
    else:
        print("gini: Available checkpoints:")
        for idx, entry in enumerate(commits, 1):
            print(f"  {idx}. {entry.digest[:7]} - {entry.summary}")
        index = _prompt_index(f"\ngini: Enter checkpoint number to restore (1-{len(commits)}): ", len(commits))
        if index is None:
            print(f"gini: error: Invalid selection: must be between 1 and {len(commits)}", file=sys.stderr)
            return 1
        digest = commits[index - 1].digest

    if not args.yes and not _confirm():
        print("gini: Restore cancelled.")
        return 0

    print(f"gini: Restoring to checkpoint {digest}...")
    result = controller.restore(digest)
    print(f"gini: Created backup {result.backup}")
    print("gini: Successfully restored project state.")
    return 0


def cmd_backups(controller: GiniController) -> int:
    backups = controller.list_backups()
    if not backups:
        print("gini: No backups found.")
        return 0

    print("#  Name                    Created              Target")
    for idx, info in enumerate(backups, 1):
        target = info.target[:7] if info.target else ""
        print(f"{idx:<2} {info.name:<23} {info.created_at:%Y-%m-%d %H:%M:%S}  {target}")
    return 0


def cmd_backup(args: argparse.Namespace, controller: GiniController) -> int:
    backups = controller.list_backups()
    if not backups:
        print("gini: No backups found.")
        return 0

    if args.selector:
        name = resolve_backup_selector(args.selector, backups)
        if name is None:
            print(f"gini: error: no backup matches {args.selector!r}", file=sys.stderr)
            return 1
    else:
        print("gini: Available backups:")
        for idx, info in enumerate(backups, 1):
            print(f"  {idx}. {info.name} (created: {info.created_at:%Y-%m-%d %H:%M:%S})")
        index = _prompt_index(f"\ngini: Enter backup number to restore (1-{len(backups)}): ", len(backups))
        if index is None:
            print(f"gini: error: Invalid selection: must be between 1 and {len(backups)}", file=sys.stderr)
            return 1
        name = backups[index - 1].name

    if not args.yes and not _confirm():
        print("gini: Restore cancelled.")
        return 0

    print(f"gini: Restoring from backup {name}...")
    controller.restore_from_backup(name)
    print("gini: Successfully restored from backup.")
    return 0


def cmd_status(controller: GiniController) -> int:
    status = controller.status()
    print(f"Project:     {status.project_root}")
    if status.detached:
        print("HEAD:        detached")
    else:
        print(f"Branch:      {status.branch}")
    print(f"Checkpoint:  {status.head or '(none)'}")
    print(f"Checkpoints: {status.checkpoint_count}")
    print(f"Backups:     {status.backup_count}")
    print(f"Objects:     {status.object_count}")
    return 0


def cmd_verify(controller: GiniController) -> int:
    report = controller.verify()
    print(f"gini: Checked {report.commits_checked} checkpoints, {report.objects_checked} objects.")
    if report.valid:
        print("gini: Repository OK.")
        return 0
    for issue in report.issues:
        print(f"  - {issue}")
    return 1


def resolve_commit_selector(selector: str, commits: list[LogEntry]) -> str | None:
    s = selector.strip().lower()
    if s.isdigit() and len(s) < MIN_PREFIX_LENGTH:
        n = int(s)
        if 1 <= n <= len(commits):
            return commits[n - 1].digest
        return None

    if len(s) < MIN_PREFIX_LENGTH:
        return None
    matches = {entry.digest for entry in commits if entry.digest.startswith(s)}
    if len(matches) == 1:
        return matches.pop()
    return None


def resolve_backup_selector(selector: str, backups: list[BackupInfo]) -> str | None:
    s = selector.strip()
    for info in backups:
        if info.name == s:
            return info.name
    if s.isdigit():
        n = int(s)
        if 1 <= n <= len(backups):
            return backups[n - 1].name
    return None


def _prompt_index(prompt: str, count: int) -> int | None:
    raw = input(prompt).strip()
    try:
        n = int(raw)
    except ValueError:
        return None
    if 1 <= n <= count:
        return n
    return None


def _confirm() -> bool:
    typed = input("gini: This will overwrite your current files. Type 'yes' to continue: ")
    return typed.strip().lower() == "yes"


def _determine_start_dir() -> Path:
    return get_project_root_override() or Path.cwd()


def _open_controller() -> GiniController:
    return GiniController(project_root=resolve_root(_determine_start_dir()))


if __name__ == "__main__":
    sys.exit(main())
