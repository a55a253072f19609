"""
sync/persistence.py

Keeps the rectangle store in step with the annotation persistence service.

Load adopts the most recent annotation set. Save updates the adopted set or
creates a new one. Auto-save is a trailing debounce on store mutations.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from api.client import AnnotationApi
from editing.store import RectangleStore
from errors import AnnotatorError, ImportFormatError, LoadFailure, SaveFailure
from sync.worker import InlineRunner, Runner

log = logging.getLogger(__name__)

DEFAULT_AUTO_SAVE_DELAY_MS = 2000


class PersistenceSync(QObject):
    """
    Load, save and auto-save of the annotation set.

    Each save gets an increasing sequence number. A response older than the
    newest response already applied is dropped, so a late reply can never
    overwrite the set id adopted from a newer one. Saves are not
    deduplicated: two saves issued back to back both reach the server.

    Signals:
        loading_changed(bool): Load started/finished
        loaded(int): Load applied; number of rectangles adopted
        saved(str): Save applied; the annotation set id
        succeeded(): A load or save completed without error
        failed(object): An ``AnnotatorError`` describing the failure
    """

    loading_changed = pyqtSignal(bool)
    loaded = pyqtSignal(int)
    saved = pyqtSignal(str)
    succeeded = pyqtSignal()
    failed = pyqtSignal(object)

    def __init__(
        self,
        store: RectangleStore,
        api: AnnotationApi,
        runner: Optional[Runner] = None,
        auto_save_delay_ms: int = DEFAULT_AUTO_SAVE_DELAY_MS,
        parent=None,
    ):
        super().__init__(parent)
        self.store = store
        self.api = api
        self.runner = runner if runner is not None else InlineRunner()
        self.annotation_set_id: Optional[str] = None
        self._loading = False
        self._applying_load = False
        self._auto_save = False
        self._next_seq = 0
        self._applied_seq = -1

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(auto_save_delay_ms)
        self._timer.timeout.connect(self.save)

        self.store.changed.connect(self._on_store_changed)

    # ---- state ----

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def auto_save_enabled(self) -> bool:
        return self._auto_save

    @property
    def auto_save_pending(self) -> bool:
        return self._timer.isActive()

    @property
    def auto_save_delay_ms(self) -> int:
        return self._timer.interval()

    def set_auto_save_delay(self, delay_ms: int) -> None:
        self._timer.setInterval(max(0, int(delay_ms)))

    # ---- load ----

    def load(self) -> None:
        """Fetch all annotation sets and adopt the last one."""
        self._set_loading(True)
        self.runner.submit(self.api.list_sets, self._on_loaded, self._on_load_error, label="load")

    def _on_loaded(self, sets: List[Any]) -> None:
        try:
            if sets:
                latest = sets[-1]
                if not isinstance(latest, dict):
                    raise LoadFailure(f"Annotation set is not an object: {type(latest).__name__}")
                self._applying_load = True
                try:
                    self.store.replace_all(latest.get("rectangles"))
                finally:
                    self._applying_load = False
                self.annotation_set_id = str(latest["_id"]) if latest.get("_id") else None
                log.info("Loaded %d rectangles from set %s", len(self.store), self.annotation_set_id)
            else:
                log.info("No saved annotation sets")
        except ImportFormatError as e:
            self._fail(LoadFailure(f"Malformed annotation set: {e.detail}"))
            return
        except LoadFailure as e:
            self._fail(e)
            return
        finally:
            self._set_loading(False)
        self.loaded.emit(len(self.store))
        self.succeeded.emit()

    def _on_load_error(self, error: BaseException) -> None:
        self._set_loading(False)
        self._fail(LoadFailure(str(error)))

    def _set_loading(self, value: bool) -> None:
        if value != self._loading:
            self._loading = value
            self.loading_changed.emit(value)

    # ---- save ----

    def save(self) -> int:
        """Send the current rectangles to the server.

        Returns:
            The sequence number of the issued save.
        """
        self._timer.stop()
        seq = self._next_seq
        self._next_seq += 1
        records = self.store.to_records()
        set_id = self.annotation_set_id

        if set_id:
            fn = lambda: self.api.update_set(set_id, records)
        else:
            fn = lambda: self.api.create_set(records)

        log.debug("Save #%d: %d rectangles, set %s", seq, len(records), set_id or "(new)")
        self.runner.submit(
            fn,
            lambda result: self._on_saved(seq, set_id, result),
            lambda error: self._on_save_error(seq, error),
            label=f"save#{seq}",
        )
        return seq

    def _is_stale(self, seq: int) -> bool:
        if seq < self._applied_seq:
            log.info("Dropping stale response for save #%d (newest applied #%d)", seq, self._applied_seq)
            return True
        self._applied_seq = seq
        return False

    def _on_saved(self, seq: int, set_id: Optional[str], result: Any) -> None:
        if self._is_stale(seq):
            return
        if set_id is None:
            self.annotation_set_id = str(result["_id"])
            log.info("Created annotation set %s", self.annotation_set_id)
        self.saved.emit(self.annotation_set_id or "")
        self.succeeded.emit()

    def _on_save_error(self, seq: int, error: BaseException) -> None:
        if self._is_stale(seq):
            return
        self._fail(SaveFailure(str(error)))

    # ---- auto-save ----

    def set_auto_save(self, enabled: bool) -> None:
        """Enable or disable auto-save; enabling with rectangles present schedules a save."""
        self._auto_save = bool(enabled)
        self._reschedule()

    def _on_store_changed(self) -> None:
        if self._applying_load:
            return
        self._reschedule()

    def _reschedule(self) -> None:
        if self._auto_save and len(self.store) > 0:
            self._timer.start()
        else:
            self._timer.stop()

    def shutdown(self) -> None:
        """Cancel a pending auto-save."""
        self._timer.stop()

    def _fail(self, error: AnnotatorError) -> None:
        log.warning("%s: %s", error.user_message, error.detail)
        self.failed.emit(error)
