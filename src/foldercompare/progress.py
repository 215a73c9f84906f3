"""Progress events for long-running operations."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from tqdm import tqdm


@dataclass(frozen=True)
class ScanProgress:
    """One progress notification: *current* of *total* files, 1-based."""

    current: int
    total: int
    current_file: str


ProgressCallback = Callable[[ScanProgress], None]


def notify(
    on_progress: ProgressCallback | None, current: int, total: int, current_file: str,
) -> None:
    """Send a progress event if a callback was supplied."""
    if on_progress is not None:
        on_progress(ScanProgress(current=current, total=total, current_file=current_file))


@contextmanager
def tqdm_progress(desc: str, *, disable: bool = False) -> Iterator[ProgressCallback]:
    """Yield a progress callback that drives a tqdm bar."""
    bar = tqdm(desc=desc, unit="file", disable=disable)

    def update(event: ScanProgress) -> None:
        if bar.total != event.total:
            bar.total = event.total
            bar.refresh()
        bar.set_postfix_str(event.current_file, refresh=False)
        bar.update(event.current - bar.n)

    try:
        yield update
    finally:
        bar.close()
