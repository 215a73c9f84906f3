"""Two-folder comparison session: the entry point for presentation layers."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Iterator
from contextlib import contextmanager
from foldercompare.duplicates import classify
from foldercompare.duplicates import DuplicateGroup
from foldercompare.duplicates import GroupKind
from foldercompare.duplicates import unique_files
from foldercompare.duplicates import without_paths
from foldercompare.fileops import copy_unique
from foldercompare.fileops import CopyUniqueResult
from foldercompare.fileops import DateSortResult
from foldercompare.fileops import delete_files
from foldercompare.fileops import DeleteResult
from foldercompare.fileops import EXTRA_SUBFOLDER_A
from foldercompare.fileops import EXTRA_SUBFOLDER_B
from foldercompare.fileops import flatten
from foldercompare.fileops import FlattenResult
from foldercompare.fileops import prune_empty_directories
from foldercompare.fileops import sort_by_date
from foldercompare.hashcache import HashCache
from foldercompare.hasher import hash_file
from foldercompare.progress import ProgressCallback
from foldercompare.scanner import CancelToken
from foldercompare.scanner import FileRecord
from foldercompare.scanner import Scanner
from foldercompare.scanner import ScanResult

import logging
import pathlib
import threading


logger = logging.getLogger(__name__)

LABELS = ("A", "B")


class OperationInProgressError(RuntimeError):
    """Raised when an operation is started while another one is running."""


def _other(label: str) -> str:
    return "B" if label == "A" else "A"


class CompareSession:
    """Holds the listings of folders A and B plus the shared hash cache.

    At most one scan or mutation runs at a time; the cache is only touched
    from inside that operation.
    """

    def __init__(
        self,
        cache: HashCache | None = None,
        *,
        hash_func: Callable[[pathlib.Path], str] = hash_file,
        extra_subfolders: dict[str, str] | None = None,
    ) -> None:
        self.cache = cache if cache is not None else HashCache()
        self.scanner = Scanner(self.cache, hash_func=hash_func)
        self.token = CancelToken()
        self.extra_subfolders = extra_subfolders or {"A": EXTRA_SUBFOLDER_A, "B": EXTRA_SUBFOLDER_B}
        self._listings: dict[str, list[FileRecord]] = {label: [] for label in LABELS}
        self._roots: dict[str, pathlib.Path | None] = {label: None for label in LABELS}
        self._busy = threading.Lock()

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            raise OperationInProgressError(f"Cannot start {name}: another operation is running")
        try:
            yield
        finally:
            self._busy.release()

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @staticmethod
    def _check_label(label: str) -> None:
        if label not in LABELS:
            raise ValueError(f"Unknown folder label: {label!r}")

    def root(self, label: str) -> pathlib.Path | None:
        self._check_label(label)
        return self._roots[label]

    def listing(self, label: str) -> list[FileRecord]:
        """Current listing for folder *label* ("A" or "B")."""
        self._check_label(label)
        return list(self._listings[label])

    def scan(
        self,
        label: str,
        root: pathlib.Path,
        on_progress: ProgressCallback | None = None,
        *,
        reset_token: bool = True,
    ) -> ScanResult:
        """Scan *root* as folder *label*; the listing replaces the previous one.

        Pass ``reset_token=False`` when the scan runs on another thread and
        ``clear_abort()`` was called before that thread started.
        """
        self._check_label(label)
        with self._operation("scan"):
            result = self.scanner.scan(
                root, label, token=self.token, on_progress=on_progress, reset_token=reset_token,
            )
        self._listings[label] = list(result.records)
        self._roots[label] = result.root
        return result

    def request_abort(self) -> None:
        """Ask the running scan to stop after the current file."""
        logger.debug("abort requested")
        self.token.cancel()

    def clear_abort(self) -> None:
        """Forget an abort request that no scan has consumed yet."""
        self.token.reset()

    def groups(self, kind: GroupKind, label: str = "A") -> list[DuplicateGroup]:
        """Duplicate groups for one folder, or across both for cross kinds."""
        if kind.is_cross:
            return classify(kind, self._listings["A"], self._listings["B"])
        self._check_label(label)
        return classify(kind, self._listings[label])

    def unique(self, label: str) -> list[FileRecord]:
        """Files of folder *label* whose content is missing from the other folder."""
        self._check_label(label)
        return unique_files(self._listings[label], self._listings[_other(label)])

    def delete(self, paths: Iterable[pathlib.Path]) -> DeleteResult:
        """Delete files and drop the deleted ones from both listings."""
        with self._operation("delete"):
            result = delete_files(paths)
        for label in LABELS:
            self._listings[label] = without_paths(self._listings[label], result.deleted)
        return result

    def flatten(self, root: pathlib.Path) -> FlattenResult:
        with self._operation("flatten"):
            return flatten(root)

    def prune_empty_directories(self, root: pathlib.Path) -> int:
        with self._operation("prune"):
            return prune_empty_directories(root)

    def sort_by_date(
        self, root: pathlib.Path, on_progress: ProgressCallback | None = None,
    ) -> DateSortResult:
        with self._operation("date sort"):
            return sort_by_date(root, on_progress=on_progress)

    def copy_unique(
        self,
        label: str,
        dest_root: pathlib.Path | None = None,
        subfolder_name: str | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> CopyUniqueResult:
        """Copy the files unique to folder *label* into the other folder.

        The destination defaults to the other folder's scanned root and the
        subfolder to ``_extraA`` / ``_extraB``.
        """
        self._check_label(label)
        if dest_root is None:
            dest_root = self._roots[_other(label)]
            if dest_root is None:
                raise ValueError(f"Folder {_other(label)} has not been scanned")
        if subfolder_name is None:
            subfolder_name = self.extra_subfolders[label]
        sources = self.unique(label)
        with self._operation("copy"):
            return copy_unique(sources, dest_root, subfolder_name, on_progress=on_progress)
