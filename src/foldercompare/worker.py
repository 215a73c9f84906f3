"""Background execution of one session operation with a progress channel."""

from __future__ import annotations

from collections.abc import Callable
from collections.abc import Iterator
from foldercompare.progress import ProgressCallback
from foldercompare.progress import ScanProgress
from foldercompare.session import CompareSession
from typing import Generic
from typing import TypeVar

import logging
import queue
import threading


logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationWorker(Generic[T]):
    """Runs ``operation(on_progress)`` on a background thread.

    Progress events go into a bounded queue that the caller drains with
    ``events()``. When the queue is full the operation waits for the caller
    to catch up, so every event is delivered in order.
    """

    def __init__(
        self,
        session: CompareSession,
        operation: Callable[[ProgressCallback], T],
        *,
        max_events: int = 256,
        poll_interval: float = 0.05,
    ) -> None:
        self.session = session
        self.operation = operation
        self.poll_interval = poll_interval
        self._queue: queue.Queue[ScanProgress] = queue.Queue(maxsize=max_events)
        self._finished = threading.Event()
        self._result: T | None = None
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name="foldercompare-worker", daemon=True)

    def _push(self, event: ScanProgress) -> None:
        self._queue.put(event)

    def _run(self) -> None:
        try:
            self._result = self.operation(self._push)
        except BaseException as e:
            logger.debug(f"worker operation failed: {type(e).__name__}: {e}")
            self._error = e
        finally:
            self._finished.set()

    def start(self) -> OperationWorker[T]:
        self._thread.start()
        return self

    def stop(self) -> None:
        """Request cancellation; only scans react to it."""
        self.session.request_abort()

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    def events(self) -> Iterator[ScanProgress]:
        """Yield progress events until the operation has finished."""
        while True:
            try:
                event = self._queue.get(timeout=self.poll_interval)
            except queue.Empty:
                if self._finished.is_set() and self._queue.empty():
                    return
                continue
            yield event

    def result(self, timeout: float | None = None) -> T:
        """Wait for the operation and return its result, re-raising its error.

        Drain ``events()`` first: a full queue keeps the operation waiting.
        """
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("operation still running")
        if self._error is not None:
            raise self._error
        return self._result  # type: ignore[return-value]
