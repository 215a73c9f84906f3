"""Shared fixtures for foldercompare tests."""

from foldercompare.hasher import hash_file
from foldercompare.scanner import FileRecord

import pathlib
import pytest


@pytest.fixture
def folder_a(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create an empty folder A."""
    folder = tmp_path / "a"
    folder.mkdir()
    return folder


@pytest.fixture
def folder_b(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create an empty folder B."""
    folder = tmp_path / "b"
    folder.mkdir()
    return folder


@pytest.fixture
def sample_tree(tmp_path: pathlib.Path) -> pathlib.Path:
    """Create the tree /r with x.txt, sub/y.txt (same content) and z.txt."""
    root = tmp_path / "r"
    (root / "sub").mkdir(parents=True)
    (root / "x.txt").write_bytes(b"0123456789")
    (root / "sub" / "y.txt").write_bytes(b"0123456789")
    (root / "z.txt").write_bytes(b"abcde")
    return root


class CountingHasher:
    """hash_file wrapper that records every path it hashes."""

    def __init__(self) -> None:
        self.calls: list[pathlib.Path] = []

    def __call__(self, path: pathlib.Path) -> str:
        self.calls.append(path)
        return hash_file(path)

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def counting_hash() -> CountingHasher:
    return CountingHasher()


def _make_record(
    name: str,
    content_hash: str,
    *,
    label: str = "A",
    folder: str = "/r",
    size: int = 10,
) -> FileRecord:
    """Build a FileRecord without touching the filesystem."""
    path = pathlib.Path(folder) / name
    return FileRecord(
        path=path,
        name=pathlib.PurePath(name).name,
        relative_path=pathlib.Path(name),
        content_hash=content_hash,
        size=size,
        source_label=label,
    )


@pytest.fixture
def make_record():
    """Factory for in-memory FileRecords."""
    return _make_record
