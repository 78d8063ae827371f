# pack_installer/parallel.py
from __future__ import annotations
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterable, TypeVar

from .console import progress
from .errors import Cancelled

T = TypeVar("T")


def _guarded(fn: Callable[[T, threading.Event], None], item: T,
             cancel_event: threading.Event) -> None:
    if cancel_event.is_set():
        raise Cancelled()
    fn(item, cancel_event)


def run_parallel(items: Iterable[T],
                 fn: Callable[[T, threading.Event], None],
                 workers: int,
                 cancel_event: threading.Event | None = None,
                 desc: str = "",
                 show_progress: bool = True) -> None:
    """
    Run fn(item, cancel_event) for every item on a bounded thread pool.

    Returns once every task has finished. The first task to fail sets
    cancel_event, pending tasks are dropped, running ones are drained and
    that first error is re-raised. Cancelled raised by siblings in reaction
    to it is never reported instead of it.
    """
    items = list(items)
    if not items:
        return
    if cancel_event is None:
        cancel_event = threading.Event()

    first_error: BaseException | None = None
    cancelled: Cancelled | None = None

    with progress(len(items), desc, show_progress) as bar:
        with ThreadPoolExecutor(max_workers=max(1, workers)) as ex:
            futs = [ex.submit(_guarded, fn, it, cancel_event) for it in items]
            for fut in as_completed(futs):
                if fut.cancelled():
                    continue
                exc = fut.exception()
                if exc is None:
                    bar.update(1)
                    continue
                if isinstance(exc, Cancelled):
                    cancelled = cancelled or exc
                    continue
                if first_error is None:
                    first_error = exc
                    cancel_event.set()
                    for f in futs:
                        f.cancel()

    if first_error is not None:
        raise first_error
    if cancelled is not None:
        raise cancelled
