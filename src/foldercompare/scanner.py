"""Scan a directory tree into a fingerprinted file listing."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from foldercompare.hashcache import CacheEntry
from foldercompare.hashcache import HashCache
from foldercompare.hasher import hash_file
from foldercompare.progress import notify
from foldercompare.progress import ProgressCallback
from foldercompare.walker import walk

import enum
import logging
import pathlib
import threading


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS: set[str] = {
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp",
    ".tiff", ".tif", ".svg", ".ico", ".heic", ".heif", ".avif",
}

VIDEO_EXTENSIONS: set[str] = {
    ".mp4", ".mov", ".avi", ".mkv", ".wmv", ".flv",
    ".webm", ".m4v", ".mpg", ".mpeg", ".3gp", ".ts",
}


class FileType(enum.Enum):
    """Media classification of a file."""

    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


def classify(path: pathlib.Path) -> FileType:
    """Classify a file as image, video, or other based on its extension."""
    ext = path.suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return FileType.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return FileType.VIDEO
    return FileType.OTHER


@dataclass(frozen=True)
class FileRecord:
    """One scanned file."""

    path: pathlib.Path
    name: str
    relative_path: pathlib.Path
    content_hash: str
    size: int
    source_label: str

    @property
    def file_type(self) -> FileType:
        return classify(self.path)


@dataclass
class ScanResult:
    """Listing produced by one scan pass over a root."""

    root: pathlib.Path
    records: list[FileRecord] = field(default_factory=list)
    aborted: bool = False
    total: int = 0
    attempted: int = 0
    hashed: int = 0
    cache_hits: int = 0

    @property
    def skipped(self) -> int:
        """Number of attempted files that could not be stat'ed or hashed."""
        return self.attempted - len(self.records)

    @property
    def total_size(self) -> int:
        return sum(r.size for r in self.records)

    def __len__(self) -> int:
        return len(self.records)


class CancelToken:
    """Cooperative cancellation flag shared between a scan and its caller.

    The scanner polls it once per file, so the file being hashed when
    ``cancel()`` is called is always finished first.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    def reset(self) -> None:
        self._event.clear()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class Scanner:
    """Walks a root and fingerprints every file, reusing cached hashes.

    Files are processed strictly one at a time in walk order. A file whose
    size and modification time match its cache entry is not read again.
    """

    def __init__(
        self,
        cache: HashCache | None = None,
        *,
        hash_func: Callable[[pathlib.Path], str] = hash_file,
    ) -> None:
        self.cache = cache if cache is not None else HashCache()
        self.hash_func = hash_func

    def scan(
        self,
        root: pathlib.Path,
        label: str,
        *,
        token: CancelToken | None = None,
        on_progress: ProgressCallback | None = None,
        reset_token: bool = True,
    ) -> ScanResult:
        """Scan *root* and return its listing tagged with *label*.

        Raises FileNotFoundError or NotADirectoryError if *root* is unusable.
        Per-file errors are logged and the file is left out of the listing.
        With ``reset_token=False`` a cancel issued before the scan starts is
        honoured; the caller is then responsible for resetting the token.
        """
        root = pathlib.Path(root).absolute()
        if not root.exists():
            raise FileNotFoundError(f"Directory not found: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Not a directory: {root}")

        if token is None:
            token = CancelToken()
        elif reset_token:
            token.reset()

        paths = walk(root)
        result = ScanResult(root=root, total=len(paths))
        logger.debug(f"scanning {root} as {label}: {result.total} file(s)")

        for index, path in enumerate(paths, 1):
            if token.cancelled:
                result.aborted = True
                logger.info(f"Scan of {root} aborted after {result.attempted} of {result.total} file(s).")
                return result

            result.attempted += 1
            record = self._fingerprint(root, path, label, result)
            if record is not None:
                result.records.append(record)
            notify(on_progress, index, result.total, path.name)

        logger.debug(
            f"scan of {root} finished: {len(result.records)} file(s), "
            f"{result.hashed} hashed, {result.cache_hits} from cache, {result.skipped} skipped"
        )
        return result

    def _fingerprint(
        self, root: pathlib.Path, path: pathlib.Path, label: str, result: ScanResult,
    ) -> FileRecord | None:
        """Stat and hash one file; return None if either step fails."""
        try:
            st = path.stat()
        except OSError as e:
            logger.debug(f"cannot stat {path}: {e}")
            return None

        content_hash = self.cache.lookup(path, st.st_size, st.st_mtime_ns)
        if content_hash is not None:
            result.cache_hits += 1
        else:
            try:
                content_hash = self.hash_func(path)
            except OSError as e:
                logger.debug(f"cannot hash {path}: {e}")
                return None
            self.cache.put(
                path, CacheEntry(content_hash=content_hash, mtime_ns=st.st_mtime_ns, size=st.st_size),
            )
            result.hashed += 1

        return FileRecord(
            path=path,
            name=path.name,
            relative_path=path.relative_to(root),
            content_hash=content_hash,
            size=st.st_size,
            source_label=label,
        )
