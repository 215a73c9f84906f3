"""Filesystem mutations: delete, flatten, prune, date-sort, and unique-file copy.

Each operation works through its whole input and reports per-file failures
in its result instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from dataclasses import field
from foldercompare.progress import notify
from foldercompare.progress import ProgressCallback
from foldercompare.scanner import FileRecord
from foldercompare.walker import walk
from typing import NamedTuple

import datetime
import logging
import os
import pathlib
import shutil


logger = logging.getLogger(__name__)

EXTRA_SUBFOLDER_A = "_extraA"
EXTRA_SUBFOLDER_B = "_extraB"


@dataclass(frozen=True)
class DeleteFailure:
    """A file that could not be deleted."""

    path: pathlib.Path
    error: str


@dataclass
class DeleteResult:
    deleted: list[pathlib.Path] = field(default_factory=list)
    failed: list[DeleteFailure] = field(default_factory=list)


@dataclass
class FlattenResult:
    moved_count: int = 0
    failed_paths: list[pathlib.Path] = field(default_factory=list)


@dataclass
class DateSortResult:
    moved_count: int = 0
    total_count: int = 0
    skipped_paths: list[pathlib.Path] = field(default_factory=list)


@dataclass
class CopyUniqueResult:
    copied_count: int = 0
    total_count: int = 0
    skipped_paths: list[pathlib.Path] = field(default_factory=list)


class CopySource(NamedTuple):
    """A file to copy and the name it gets at the destination."""

    path: pathlib.Path
    name: str


def _require_directory(root: pathlib.Path) -> pathlib.Path:
    root = pathlib.Path(root).absolute()
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")
    return root


def _move_file(source: pathlib.Path, target: pathlib.Path) -> bool:
    """Rename *source* to *target*, falling back to copy + delete.

    Returns False if both attempts fail; a partial copy is removed.
    """
    try:
        os.rename(source, target)
        return True
    except OSError as e:
        logger.debug(f"rename {source} -> {target} failed ({e}), copying instead")

    try:
        shutil.copy2(source, target)
        source.unlink()
        return True
    except OSError as e:
        logger.warning(f"Could not move {source} to {target}: {e}")
        if target.exists() and source.exists():
            target.unlink(missing_ok=True)
        return False


def delete_files(paths: Iterable[pathlib.Path]) -> DeleteResult:
    """Delete each path independently and report every outcome."""
    result = DeleteResult()
    for path in paths:
        path = pathlib.Path(path)
        try:
            path.unlink()
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            result.failed.append(DeleteFailure(path=path, error=str(e)))
            continue
        logger.debug(f"deleted {path}")
        result.deleted.append(path)
    return result


def flatten(root: pathlib.Path) -> FlattenResult:
    """Move every file in a subfolder of *root* directly into *root*.

    A file whose name is already taken in *root* stays where it is and is
    reported in ``failed_paths``.
    """
    root = _require_directory(root)
    result = FlattenResult()
    for path in walk(root):
        if path.parent == root:
            continue
        target = root / path.name
        if target.exists():
            logger.debug(f"name collision, leaving {path} in place")
            result.failed_paths.append(path)
        elif _move_file(path, target):
            result.moved_count += 1
        else:
            result.failed_paths.append(path)

    logger.debug(f"flattened {root}: {result.moved_count} moved, {len(result.failed_paths)} failed")
    return result


def prune_empty_directories(root: pathlib.Path) -> int:
    """Remove every directory below *root* that holds no files, bottom-up.

    *root* itself is kept. Returns the number of directories removed.
    """
    root = _require_directory(root)
    removed = 0

    def prune(directory: pathlib.Path) -> bool:
        nonlocal removed
        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as e:
            logger.debug(f"cannot list {directory}: {e}")
            return False

        empty = True
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                if not prune(directory / entry.name):
                    empty = False
            else:
                empty = False

        if not empty or directory == root:
            return empty
        try:
            directory.rmdir()
        except OSError as e:
            logger.warning(f"Could not remove {directory}: {e}")
            return False
        logger.debug(f"removed empty directory {directory}")
        removed += 1
        return True

    prune(root)
    return removed


def bucket_name(mtime: float) -> str:
    """Date bucket for a modification timestamp, e.g. ``20240305_`` (local time)."""
    return datetime.datetime.fromtimestamp(mtime).strftime("%Y%m%d_")


def sort_by_date(
    root: pathlib.Path, *, on_progress: ProgressCallback | None = None,
) -> DateSortResult:
    """Move every file under *root* into a ``YYYYMMDD_`` bucket directly under *root*.

    Files already in their bucket are left alone. Name collisions and move
    failures are reported in ``skipped_paths``.
    """
    root = _require_directory(root)
    paths = walk(root)
    result = DateSortResult(total_count=len(paths))

    for index, path in enumerate(paths, 1):
        try:
            bucket = root / bucket_name(path.stat().st_mtime)
            bucket.mkdir(exist_ok=True)
            target = bucket / path.name
            if path.parent == bucket:
                pass
            elif target.exists():
                logger.debug(f"name collision in {bucket.name}, skipping {path}")
                result.skipped_paths.append(path)
            elif _move_file(path, target):
                result.moved_count += 1
            else:
                result.skipped_paths.append(path)
        except OSError as e:
            logger.warning(f"Could not sort {path}: {e}")
            result.skipped_paths.append(path)
        notify(on_progress, index, result.total_count, path.name)

    return result


def _copy_exclusive(source: pathlib.Path, target: pathlib.Path) -> None:
    """Copy bytes and metadata, refusing to overwrite *target*.

    On failure nothing is left behind at *target*.
    """
    with source.open("rb") as src:
        dst = target.open("xb")
        try:
            with dst:
                shutil.copyfileobj(src, dst)
            shutil.copystat(source, target)
        except OSError:
            target.unlink(missing_ok=True)
            raise


def copy_unique(
    sources: Sequence[CopySource | FileRecord],
    dest_root: pathlib.Path,
    subfolder_name: str,
    *,
    on_progress: ProgressCallback | None = None,
) -> CopyUniqueResult:
    """Copy *sources* into ``dest_root/subfolder_name``.

    A file is skipped when its name, compared case-insensitively, already
    exists in the destination folder or was copied earlier in this call.
    """
    dest_dir = pathlib.Path(dest_root) / subfolder_name
    dest_dir.mkdir(parents=True, exist_ok=True)
    used_names = {name.lower() for name in os.listdir(dest_dir)}
    result = CopyUniqueResult(total_count=len(sources))

    for index, source in enumerate(sources, 1):
        source_path = pathlib.Path(source.path)
        notify(on_progress, index, result.total_count, source.name)

        normalized = source.name.lower()
        if normalized in used_names:
            logger.debug(f"{source.name} already exists in {dest_dir}, skipping")
            result.skipped_paths.append(source_path)
            continue

        try:
            _copy_exclusive(source_path, dest_dir / source.name)
        except OSError as e:
            logger.warning(f"Could not copy {source_path}: {e}")
            result.skipped_paths.append(source_path)
            continue
        used_names.add(normalized)
        result.copied_count += 1

    return result
