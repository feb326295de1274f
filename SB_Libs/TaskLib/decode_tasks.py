"""
Cancellable background tasks for image decode and encode work.

Decoding, cropping and saving images can block on file I/O, so they run on a
small thread pool instead of the thread handling user input. Every task is
submitted under a key (for example "crop-decode"); a newer submission under
the same key supersedes the older one, whose result is then discarded even if
it completes later.

Results are handed back through a ``dispatch`` callable. The default runs the
callback inline on the worker thread; a GUI passes a function that posts the
callback onto its UI thread so state is only mutated there.

Classes:
    TaskHandle: Handle for one submitted task
    BackgroundTasks: Keyed task runner on a ThreadPoolExecutor
"""

import concurrent.futures
import itertools
import logging
import threading
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

Dispatcher = Callable[[Callable[[], None]], None]
ResultCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


def _run_inline(callback: Callable[[], None]) -> None:
    callback()


class TaskHandle:
    """Handle for a submitted task. Once cancelled it never delivers a result."""

    def __init__(self, key: str, request_id: int):
        self.key = key
        self.request_id = request_id
        self.future: Optional[concurrent.futures.Future] = None
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        if self.future is not None:
            self.future.cancel()

    def __repr__(self) -> str:
        state = "cancelled" if self.cancelled else "live"
        return f"TaskHandle(key={self.key!r}, request_id={self.request_id}, {state})"


class BackgroundTasks:
    """
    Keyed background task runner.

    Example:
        >>> tasks = BackgroundTasks()
        >>> handle = tasks.submit("crop-decode", decode_image, "a.png",
        ...                       on_result=show_image)
        >>> tasks.cancel_all()  # user navigated away
    """

    def __init__(self, max_workers: int = 2, dispatch: Optional[Dispatcher] = None):
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="statbuddy-worker"
        )
        self._dispatch: Dispatcher = dispatch or _run_inline
        self._handles: Dict[str, TaskHandle] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def submit(
        self,
        key: str,
        fn: Callable[..., Any],
        *args: Any,
        on_result: Optional[ResultCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> TaskHandle:
        """
        Run ``fn(*args)`` in the background under ``key``.

        Any live task previously submitted under the same key is cancelled.

        Returns:
            The TaskHandle for the new task
        """
        with self._lock:
            previous = self._handles.get(key)
            handle = TaskHandle(key, next(self._ids))
            self._handles[key] = handle

        if previous is not None and not previous.cancelled:
            logger.debug(f"Superseding {previous!r} with request {handle.request_id}")
            previous.cancel()

        future = self._executor.submit(fn, *args)
        handle.future = future
        future.add_done_callback(lambda done: self._on_done(handle, done, on_result, on_error))
        return handle

    def _on_done(
        self,
        handle: TaskHandle,
        future: concurrent.futures.Future,
        on_result: Optional[ResultCallback],
        on_error: Optional[ErrorCallback],
    ) -> None:
        if future.cancelled() or handle.cancelled:
            logger.debug(f"Discarding result of {handle!r}")
            self._forget(handle)
            return

        error = future.exception()

        def deliver() -> None:
            # Re-checked on the receiving thread: a cancel may land in between.
            if handle.cancelled:
                logger.debug(f"Discarding result of {handle!r}")
                return
            self._forget(handle)
            if error is not None:
                if on_error is not None:
                    on_error(error)
                else:
                    logger.error(f"Background task {handle.key} failed: {error}")
            elif on_result is not None:
                on_result(future.result())

        self._dispatch(deliver)

    def _forget(self, handle: TaskHandle) -> None:
        with self._lock:
            if self._handles.get(handle.key) is handle:
                del self._handles[handle.key]

    def cancel(self, key: str) -> bool:
        """Cancel the live task under ``key``. Returns False if there was none."""
        with self._lock:
            handle = self._handles.pop(key, None)
        if handle is None:
            return False
        handle.cancel()
        return True

    def cancel_all(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.cancel()

    def shutdown(self, wait: bool = True) -> None:
        self.cancel_all()
        self._executor.shutdown(wait=wait)
