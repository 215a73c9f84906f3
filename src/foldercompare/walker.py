"""Recursive, depth-first file enumeration."""

from __future__ import annotations

import logging
import os
import pathlib


logger = logging.getLogger(__name__)


def walk(root: pathlib.Path) -> list[pathlib.Path]:
    """Return every regular file below *root*, depth-first.

    Directories that cannot be listed are skipped and their files are simply
    missing from the result. Symbolic links are not followed.
    """
    files: list[pathlib.Path] = []
    _walk_into(pathlib.Path(root), files)
    return files


def _walk_into(directory: pathlib.Path, files: list[pathlib.Path]) -> None:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.debug(f"skipping unreadable directory {directory}: {e}")
        return

    for entry in entries:
        path = directory / entry.name
        try:
            if entry.is_dir(follow_symlinks=False):
                _walk_into(path, files)
            elif entry.is_file(follow_symlinks=False):
                files.append(path)
        except OSError as e:
            logger.debug(f"skipping {path}: {e}")
