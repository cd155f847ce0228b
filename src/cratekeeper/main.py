"""Application entry point — CLI dispatcher for workspace mutations.

Handles three commands:
  1. `cratekeeper add-member [--kind lib|bin] [workspace] name [--link target ...]`
  2. `cratekeeper remove-member [workspace] name`
  3. `cratekeeper list-members [workspace]` — member list vs. directories on disk

The workspace defaults to the current directory. Progress lines go to
stdout, errors to stderr. Exit code is 0 on success and 1 on any validation
or stage failure; a failed build verification or commit does not change the
exit code.
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .errors import CratekeeperError
from .settings import load_settings
from .workspace.mutator import MutationReport, StageResult, WorkspaceMutator

logger = logging.getLogger(__name__)


def _print_stage(stage: StageResult) -> None:
    if stage.ok:
        mark = "ok"
    elif stage.required:
        mark = "FAILED"
    else:
        mark = "warn"
    line = f"[{mark}] {stage.name}"
    if stage.detail:
        line += f": {stage.detail}"
    print(line)


def _print_report(report: MutationReport) -> None:
    print()
    for line in report.summary_lines():
        print(line)
    if report.build is not None and not report.build.ok and report.build.output:
        print("\nBuild output:", file=sys.stderr)
        print(report.build.output, file=sys.stderr)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cratekeeper",
        description="Add and remove workspace members, keeping dependencies in sync.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="enable debug logging"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-member", help="create and register a new member")
    add.add_argument("--kind", choices=["lib", "bin"], default="lib")
    add.add_argument(
        "--link",
        nargs="+",
        action="extend",
        default=[],
        metavar="TARGET",
        help="existing members the new member depends on",
    )
    add.add_argument("workspace", nargs="?", default=".")
    add.add_argument("name")

    remove = sub.add_parser("remove-member", help="delete and unregister a member")
    remove.add_argument("workspace", nargs="?", default=".")
    remove.add_argument("name")

    for p in (add, remove):
        p.add_argument(
            "--no-commit", action="store_true", help="skip the git snapshot"
        )
        p.add_argument(
            "--no-verify", action="store_true", help="skip build verification"
        )

    listing = sub.add_parser("list-members", help="show registered and on-disk members")
    listing.add_argument("workspace", nargs="?", default=".")
    return parser


def _list_members(mutator: WorkspaceMutator, workspace: Path) -> int:
    status = mutator.list_members(workspace)
    for entry in status.registered:
        print(entry)
    for entry in status.missing:
        print(f"Registered but missing on disk: {entry}", file=sys.stderr)
    for entry in status.unregistered:
        print(f"Present on disk but not registered: {entry}", file=sys.stderr)
    return 0 if status.consistent else 1


def run(argv: list[str] | None = None) -> int:
    """Parse *argv*, run one command, and return the exit code."""
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.WARNING,
    )
    if args.verbose:
        logging.getLogger("cratekeeper").setLevel(logging.DEBUG)

    workspace = Path(args.workspace).expanduser().resolve()
    try:
        settings = load_settings(workspace)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        print("Check your cratekeeper.toml / CRATEKEEPER_* configuration.", file=sys.stderr)
        return 1
    logger.debug("Using %s", settings)

    mutator = WorkspaceMutator(settings, progress=_print_stage)
    try:
        if args.command == "list-members":
            return _list_members(mutator, workspace)
        if args.command == "add-member":
            report = mutator.add_member(
                workspace,
                args.name,
                kind=args.kind,
                links=args.link,
                commit=not args.no_commit,
                verify=not args.no_verify,
            )
        else:
            report = mutator.remove_member(
                workspace,
                args.name,
                commit=not args.no_commit,
                verify=not args.no_verify,
            )
    except (CratekeeperError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_report(report)
    if not report.ok:
        print(f"Error: {report.error}", file=sys.stderr)
        return 1
    return 0


def main() -> None:
    """Main entry point."""
    sys.exit(run())
