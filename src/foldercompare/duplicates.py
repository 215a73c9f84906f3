"""Duplicate classification over scanned listings.

All functions here are pure: they never touch the filesystem and can be
re-run at any time on the current listings.
"""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Sequence
from dataclasses import dataclass
from foldercompare.scanner import FileRecord

import enum
import pathlib


@dataclass(frozen=True)
class DuplicateGroup:
    """Files sharing a content hash or a file name."""

    key: str
    members: tuple[FileRecord, ...]

    @property
    def paths(self) -> list[pathlib.Path]:
        return [m.path for m in self.members]

    @property
    def size(self) -> int:
        return sum(m.size for m in self.members)

    def __len__(self) -> int:
        return len(self.members)


class GroupKind(enum.Enum):
    """Which classifier to run."""

    HASH = "hash"
    NAME = "name"
    CROSS_HASH = "cross-hash"
    CROSS_NAME = "cross-name"

    @property
    def is_cross(self) -> bool:
        return self in (GroupKind.CROSS_HASH, GroupKind.CROSS_NAME)


KeyFunc = Callable[[FileRecord], str]


def _hash_key(record: FileRecord) -> str:
    return record.content_hash


def _name_key(record: FileRecord) -> str:
    return record.name


def _group_within(listing: Iterable[FileRecord], key_func: KeyFunc) -> list[DuplicateGroup]:
    """Group by key in first-seen order and drop singletons."""
    groups: dict[str, list[FileRecord]] = {}
    for record in listing:
        groups.setdefault(key_func(record), []).append(record)
    return [
        DuplicateGroup(key=key, members=tuple(members))
        for key, members in groups.items()
        if len(members) >= 2
    ]


def _group_across(
    listing_a: Sequence[FileRecord], listing_b: Sequence[FileRecord], key_func: KeyFunc,
) -> list[DuplicateGroup]:
    """Group keys present on both sides: A's matches first, then B's."""
    by_key_a: dict[str, list[FileRecord]] = {}
    for record in listing_a:
        by_key_a.setdefault(key_func(record), []).append(record)
    by_key_b: dict[str, list[FileRecord]] = {}
    for record in listing_b:
        by_key_b.setdefault(key_func(record), []).append(record)

    return [
        DuplicateGroup(key=key, members=tuple(members_a + by_key_b[key]))
        for key, members_a in by_key_a.items()
        if key in by_key_b
    ]


def by_hash(listing: Iterable[FileRecord]) -> list[DuplicateGroup]:
    """Files within one listing that have identical content."""
    return _group_within(listing, _hash_key)


def by_name(listing: Iterable[FileRecord]) -> list[DuplicateGroup]:
    """Files within one listing that have the same file name."""
    return _group_within(listing, _name_key)


def cross_by_hash(
    listing_a: Sequence[FileRecord], listing_b: Sequence[FileRecord],
) -> list[DuplicateGroup]:
    """Content present in both listings.

    Groups follow the first-seen order of A's hashes, so swapping A and B
    may reorder the result.
    """
    return _group_across(listing_a, listing_b, _hash_key)


def cross_by_name(
    listing_a: Sequence[FileRecord], listing_b: Sequence[FileRecord],
) -> list[DuplicateGroup]:
    """File names present in both listings."""
    return _group_across(listing_a, listing_b, _name_key)


def classify(
    kind: GroupKind,
    listing_a: Sequence[FileRecord],
    listing_b: Sequence[FileRecord] | None = None,
) -> list[DuplicateGroup]:
    """Run the classifier selected by *kind*."""
    if kind is GroupKind.HASH:
        return by_hash(listing_a)
    if kind is GroupKind.NAME:
        return by_name(listing_a)
    if listing_b is None:
        raise ValueError(f"{kind.value} grouping needs two listings")
    if kind is GroupKind.CROSS_HASH:
        return cross_by_hash(listing_a, listing_b)
    return cross_by_name(listing_a, listing_b)


def unique_files(
    listing: Iterable[FileRecord], other: Iterable[FileRecord],
) -> list[FileRecord]:
    """Records of *listing* whose content does not appear in *other*."""
    other_hashes = {r.content_hash for r in other}
    return [r for r in listing if r.content_hash not in other_hashes]


def files_to_delete(
    groups: Sequence[DuplicateGroup],
    keep: Iterable[pathlib.Path] | None = None,
    *,
    up_to: int | None = None,
) -> list[pathlib.Path]:
    """Paths to delete when resolving *groups*.

    Every member not in *keep* is selected. Without *keep* the first member
    of each group survives. A group is never emptied: if *keep* names none of
    its members, the first member is kept. With *up_to* only groups
    ``0..up_to`` (inclusive) are resolved. Each path is returned once.
    """
    keep_set = set(keep) if keep is not None else set()
    selected = groups if up_to is None else groups[: up_to + 1]

    to_delete: list[pathlib.Path] = []
    for group in selected:
        kept = {p for p in group.paths if p in keep_set}
        if not kept:
            kept = {group.members[0].path}
        to_delete.extend(p for p in group.paths if p not in kept)
    return list(dict.fromkeys(to_delete))


def without_paths(
    listing: Iterable[FileRecord], paths: Iterable[pathlib.Path],
) -> list[FileRecord]:
    """Return *listing* minus the records for *paths*."""
    removed = set(paths)
    return [r for r in listing if r.path not in removed]
