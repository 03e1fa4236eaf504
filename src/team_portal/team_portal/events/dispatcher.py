"""In-process event queue drained by a single background worker.

``publish`` only enqueues, so a slow or failing handler never reaches the
request that produced the event.
"""
from __future__ import annotations

import logging
import queue
import threading
from collections import defaultdict
from typing import Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()

Handler = Callable[[object], None]


class EventDispatcher:
    def __init__(self) -> None:
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._handlers: dict[type, list[Handler]] = defaultdict(list)
        self._thread: Optional[threading.Thread] = None
        self._stop_pending = False
        self._lock = threading.Lock()

    def subscribe(self, event_type: type, handler: Handler) -> None:
        with self._lock:
            self._handlers[event_type].append(handler)

    def publish(self, event: object) -> None:
        self._queue.put(event)

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="event-dispatcher", daemon=True)
        self._thread.start()
        logger.info("Event dispatcher started")

    def stop(self, timeout: float = 5.0) -> None:
        """Deliver everything already queued, then stop the worker."""
        if not self.running:
            self.drain()
            return
        if not self._stop_pending:
            self._stop_pending = True
            self._queue.put(_STOP)
        self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Event dispatcher still busy after %.1fs; worker left running", timeout)
            return
        self._thread = None
        logger.info("Event dispatcher stopped")

    def drain(self) -> int:
        """Deliver queued events in the calling thread; returns how many ran."""
        delivered = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return delivered
            try:
                if event is not _STOP:
                    self._deliver(event)
                    delivered += 1
            finally:
                self._queue.task_done()

    def _run(self) -> None:
        while True:
            event = self._queue.get()
            try:
                if event is _STOP:
                    self._stop_pending = False
                    return
                self._deliver(event)
            finally:
                self._queue.task_done()

    def _deliver(self, event: object) -> None:
        with self._lock:
            handlers = list(self._handlers.get(type(event), ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Handler %r failed for %s", handler, type(event).__name__)
