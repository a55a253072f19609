"""
sync/worker.py

Background execution of blocking HTTP calls.

A ``RequestWorker`` wraps one callable and is moved onto its own QThread.
Results come back to the GUI thread through queued signal connections to a
relay object that lives on the GUI thread.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Set, Tuple

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

log = logging.getLogger(__name__)

DoneCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class RequestWorker(QObject):
    """
    Runs a single blocking call off the GUI thread.

    Signals:
        finished(object): Emitted with the call's return value on success
        failed(object): Emitted with the raised exception on failure
    """

    finished = pyqtSignal(object)
    failed = pyqtSignal(object)

    def __init__(self, fn: Callable[[], Any], label: str = ""):
        super().__init__()
        self.fn = fn
        self.label = label

    def run(self):
        """Execute the call."""
        try:
            result = self.fn()
        except Exception as e:
            log.debug("Request %s failed: %s", self.label, e)
            self.failed.emit(e)
            return
        self.finished.emit(result)


class _Relay(QObject):
    """Delivers worker results to plain callbacks on the GUI thread."""

    def __init__(self, on_done: DoneCallback, on_error: ErrorCallback, parent=None):
        super().__init__(parent)
        self._on_done = on_done
        self._on_error = on_error

    @pyqtSlot(object)
    def deliver_result(self, result):
        self._on_done(result)

    @pyqtSlot(object)
    def deliver_error(self, error):
        self._on_error(error)


class ThreadedRunner(QObject):
    """
    Starts one QThread per request.

    Running threads, their workers and relays are referenced from
    ``_active`` until the thread finishes, so none are garbage collected
    mid-request.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self._active: Set[Tuple[QThread, RequestWorker, _Relay]] = set()

    def submit(self, fn: Callable[[], Any], on_done: DoneCallback, on_error: ErrorCallback, label: str = "") -> None:
        thread = QThread()
        worker = RequestWorker(fn, label)
        relay = _Relay(on_done, on_error, self)
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.finished.connect(relay.deliver_result)
        worker.failed.connect(relay.deliver_error)

        worker.finished.connect(thread.quit)
        worker.failed.connect(thread.quit)

        entry = (thread, worker, relay)
        self._active.add(entry)

        def _cleanup():
            self._active.discard(entry)
            relay.deleteLater()
            worker.deleteLater()
            thread.deleteLater()

        thread.finished.connect(_cleanup)
        thread.start()

    def wait_all(self, msecs: int = 5000) -> None:
        """Block until running requests finish (used on shutdown)."""
        for thread, _worker, _relay in list(self._active):
            thread.wait(msecs)


class InlineRunner:
    """Runs requests synchronously on the calling thread.

    Same interface as ``ThreadedRunner``; callbacks fire before ``submit``
    returns. Useful for tests and scripted use.
    """

    def submit(self, fn: Callable[[], Any], on_done: DoneCallback, on_error: ErrorCallback, label: str = "") -> None:
        try:
            result = fn()
        except Exception as e:
            log.debug("Request %s failed: %s", label, e)
            on_error(e)
            return
        on_done(result)


Runner = Any  # ThreadedRunner or InlineRunner
