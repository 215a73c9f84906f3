"""CLI argument parsing and subcommand dispatch."""

from __future__ import annotations

from foldercompare.config import create_config_interactive
from foldercompare.config import load_config
from foldercompare.config import merge_config_into_args
from foldercompare.duplicates import DuplicateGroup
from foldercompare.duplicates import files_to_delete
from foldercompare.duplicates import GroupKind
from foldercompare.hasher import hash_file
from foldercompare.logging import configure_logging
from foldercompare.progress import tqdm_progress
from foldercompare.scanner import FileRecord
from foldercompare.scanner import ScanResult
from foldercompare.session import CompareSession
from foldercompare.worker import OperationWorker

import argparse
import functools
import logging
import pathlib
import sys


logger = logging.getLogger(__name__)


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 ** 2:
        return f"{size / 1024:.1f} KB"
    if size < 1024 ** 3:
        return f"{size / 1024 ** 2:.1f} MB"
    return f"{size / 1024 ** 3:.1f} GB"


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="foldercompare",
        description="Compare two folders, find duplicate files, and tidy folder trees.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show debug output")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show warnings and errors")
    parser.add_argument("--configure", action="store_true", help="Create or update the config file")

    # Options shared by all subcommands; None means "take it from the config"
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--no-progress", dest="progress", action="store_false", default=None,
        help="Disable progress bars",
    )
    common.add_argument(
        "--chunk-size", type=_positive_int, default=None, metavar="BYTES",
        help="Read size used when hashing files",
    )

    planning = argparse.ArgumentParser(add_help=False)
    planning.add_argument(
        "--dry-run", action="store_true", default=None, help="Show plan without executing",
    )

    matching = argparse.ArgumentParser(add_help=False)
    matching.add_argument(
        "--match", choices=["hash", "name"], default=None,
        help="Match files by content hash or by file name (default: hash)",
    )

    sub = parser.add_subparsers(dest="command")

    p_scan = sub.add_parser("scan", parents=[common], help="Scan a folder and show a summary")
    p_scan.add_argument("root", type=pathlib.Path, help="Folder to scan")

    p_dupes = sub.add_parser(
        "dupes", parents=[common, planning, matching], help="Find duplicates within one folder",
    )
    p_dupes.add_argument("root", type=pathlib.Path, help="Folder to scan")
    p_dupes.add_argument(
        "--delete", action="store_true",
        help="Delete all but the first file of every duplicate group",
    )

    p_compare = sub.add_parser(
        "compare", parents=[common, planning, matching], help="Find files present in both folders",
    )
    p_compare.add_argument("folder_a", type=pathlib.Path, help="Folder A")
    p_compare.add_argument("folder_b", type=pathlib.Path, help="Folder B")
    p_compare.add_argument(
        "--delete-from", choices=["A", "B"], default=None,
        help="Delete the matching files on this side",
    )

    p_unique = sub.add_parser(
        "unique", parents=[common, planning], help="List files present in only one folder",
    )
    p_unique.add_argument("folder_a", type=pathlib.Path, help="Folder A")
    p_unique.add_argument("folder_b", type=pathlib.Path, help="Folder B")
    p_unique.add_argument(
        "--copy", action="store_true",
        help="Copy files unique to one side into a subfolder of the other side",
    )

    p_flatten = sub.add_parser("flatten", parents=[common], help="Move all files up into the folder root")
    p_flatten.add_argument("root", type=pathlib.Path, help="Folder to flatten")

    p_prune = sub.add_parser("prune", parents=[common], help="Remove empty subfolders")
    p_prune.add_argument("root", type=pathlib.Path, help="Folder to clean up")

    p_datesort = sub.add_parser(
        "datesort", parents=[common], help="Sort files into YYYYMMDD_ folders by modification date",
    )
    p_datesort.add_argument("root", type=pathlib.Path, help="Folder to sort")

    return parser


def _make_session(args: argparse.Namespace) -> CompareSession:
    return CompareSession(
        hash_func=functools.partial(hash_file, chunk_size=args.chunk_size),
        extra_subfolders={"A": args.extra_subfolder_a, "B": args.extra_subfolder_b},
    )


def _scan(
    session: CompareSession, label: str, root: pathlib.Path, args: argparse.Namespace,
) -> ScanResult:
    """Scan on a worker thread while the main thread draws progress.

    Ctrl-C requests an abort; the partial listing is kept.
    """
    logger.info(f"Scanning {root} ...")
    # Reset on this thread so a Ctrl-C before the worker gets going still counts
    session.clear_abort()
    worker = OperationWorker(
        session, lambda on_progress: session.scan(label, root, on_progress, reset_token=False),
    )
    worker.start()
    with tqdm_progress(f"Scanning {label}", disable=not args.progress) as update:
        try:
            for event in worker.events():
                update(event)
        except KeyboardInterrupt:
            logger.info("Aborting scan ...")
            worker.stop()
            for event in worker.events():
                update(event)
    result = worker.result()

    logger.info(
        f"Found {len(result)} file(s) ({_format_size(result.total_size)}) in {result.root}"
    )
    logger.debug(f"{result.hashed} hashed, {result.cache_hits} from cache, {result.skipped} skipped")
    if result.aborted:
        logger.warning(f"Scan aborted: listing covers {result.attempted} of {result.total} file(s).")
    return result


def _log_groups(groups: list[DuplicateGroup], *, show_label: bool = False) -> None:
    logger.info(f"\nFound {len(groups)} duplicate group(s):\n")
    for i, group in enumerate(groups, 1):
        logger.info(f"  Group {i}: {group.key} ({len(group)} files, {_format_size(group.size)})")
        for member in group.members:
            prefix = f"[{member.source_label}] " if show_label else ""
            logger.info(f"    {prefix}{member.path}")
        logger.info("")


def _delete(session: CompareSession, paths: list[pathlib.Path], args: argparse.Namespace) -> None:
    if not paths:
        logger.info("Nothing to delete.")
        return
    if args.dry_run:
        logger.info(f"[DRY RUN] Would delete {len(paths)} file(s):")
        for p in paths:
            logger.info(f"  {p}")
        return

    result = session.delete(paths)
    for p in result.deleted:
        logger.info(f"  Deleted {p}")
    logger.info(f"Deleted {len(result.deleted)} file(s).")
    if result.failed:
        logger.warning(f"{len(result.failed)} file(s) could not be deleted:")
        for failure in result.failed:
            logger.warning(f"  {failure.path}: {failure.error}")


def cmd_scan(args: argparse.Namespace) -> None:
    """Scan a folder and print a summary."""
    session = _make_session(args)
    result = _scan(session, "A", args.root, args)
    by_type: dict[str, int] = {}
    for record in result.records:
        by_type[record.file_type.value] = by_type.get(record.file_type.value, 0) + 1
    if by_type:
        summary = ", ".join(f"{count} {kind}" for kind, count in sorted(by_type.items()))
        logger.info(f"  {summary}")


def cmd_dupes(args: argparse.Namespace) -> None:
    """Find duplicates within one folder."""
    session = _make_session(args)
    result = _scan(session, "A", args.root, args)
    if not result.records:
        logger.info("No files found.")
        return

    kind = GroupKind.HASH if args.match == "hash" else GroupKind.NAME
    groups = session.groups(kind, "A")
    if not groups:
        logger.info("No duplicates found.")
        return
    _log_groups(groups)

    if args.delete:
        for group in groups:
            logger.info(f"Keeping {group.members[0].path}")
        _delete(session, files_to_delete(groups), args)


def cmd_compare(args: argparse.Namespace) -> None:
    """Find files present in both folders."""
    session = _make_session(args)
    _scan(session, "A", args.folder_a, args)
    _scan(session, "B", args.folder_b, args)

    kind = GroupKind.CROSS_HASH if args.match == "hash" else GroupKind.CROSS_NAME
    groups = session.groups(kind)
    if not groups:
        logger.info("No files in common.")
        return
    _log_groups(groups, show_label=True)

    if args.delete_from:
        side = args.delete_from
        paths = [m.path for g in groups for m in g.members if m.source_label == side]
        _delete(session, paths, args)


def _log_unique(label: str, records: list[FileRecord]) -> None:
    logger.info(f"\n{len(records)} file(s) only in {label}:")
    for record in records:
        logger.info(f"  {record.relative_path}")


def cmd_unique(args: argparse.Namespace) -> None:
    """List, and optionally copy across, files present in only one folder."""
    session = _make_session(args)
    _scan(session, "A", args.folder_a, args)
    _scan(session, "B", args.folder_b, args)

    for label in ("A", "B"):
        _log_unique(label, session.unique(label))

    if not args.copy:
        return
    for label, other in (("A", "B"), ("B", "A")):
        records = session.unique(label)
        if not records:
            continue
        dest = session.root(other) / session.extra_subfolders[label]
        if args.dry_run:
            logger.info(f"[DRY RUN] Would copy {len(records)} file(s) to {dest}")
            continue
        with tqdm_progress(f"Copying {label}", disable=not args.progress) as update:
            result = session.copy_unique(label, on_progress=update)
        logger.info(f"Copied {result.copied_count} of {result.total_count} file(s) to {dest}.")
        for p in result.skipped_paths:
            logger.info(f"  Skipped {p}")


def cmd_flatten(args: argparse.Namespace) -> None:
    """Move every file of a folder tree into its root."""
    result = _make_session(args).flatten(args.root)
    logger.info(f"Moved {result.moved_count} file(s) into {args.root}.")
    if result.failed_paths:
        logger.warning(f"{len(result.failed_paths)} file(s) could not be moved:")
        for p in result.failed_paths:
            logger.warning(f"  {p}")


def cmd_prune(args: argparse.Namespace) -> None:
    """Remove empty folders."""
    removed = _make_session(args).prune_empty_directories(args.root)
    logger.info(f"Removed {removed} empty folder(s).")


def cmd_datesort(args: argparse.Namespace) -> None:
    """Sort files into date folders."""
    session = _make_session(args)
    with tqdm_progress("Sorting", disable=not args.progress) as update:
        result = session.sort_by_date(args.root, on_progress=update)
    logger.info(f"Moved {result.moved_count} of {result.total_count} file(s).")
    if result.skipped_paths:
        logger.warning(f"Skipped {len(result.skipped_paths)} file(s):")
        for p in result.skipped_paths:
            logger.warning(f"  {p}")


COMMANDS = {
    "scan": cmd_scan,
    "dupes": cmd_dupes,
    "compare": cmd_compare,
    "unique": cmd_unique,
    "flatten": cmd_flatten,
    "prune": cmd_prune,
    "datesort": cmd_datesort,
}


def main() -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    if args.configure:
        create_config_interactive()
        return

    cmd_func = COMMANDS.get(args.command)
    if cmd_func is None:
        parser.print_help()
        return

    merge_config_into_args(args, load_config())
    try:
        cmd_func(args)
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.error(str(e))
        sys.exit(1)
