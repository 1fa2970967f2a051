"""
Debounced auto-save for the article editor.

Each open editor gets an AutoSaver. Every change restarts a timer; when the
timer runs out without further changes the accumulated snapshot is handed to
the save callback. Saves are skipped while disabled or while the title is
blank.

Every scheduled timer carries a generation number. Restarting, cancelling or
closing bumps the generation, so a callback that was already running when its
timer got replaced finds itself stale and does nothing. Saves run under their
own lock and cancel()/close() wait on it, so once close() returns no auto-save
can land on top of a later explicit save.
"""

import threading
from functools import partial
from typing import Any, Callable, Dict, Optional

import config
from logger import get_logger

logger = get_logger("autosave")


class AutoSaver:
    def __init__(
        self,
        save: Callable[[Dict[str, Any]], Any],
        delay: Optional[float] = None,
        enabled: bool = True,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.save = save
        self.delay = config.AUTOSAVE_DELAY_SECONDS if delay is None else delay
        self.timer_factory = timer_factory
        self.snapshot: Dict[str, Any] = {}
        self.dirty = False
        self.last_saved = None
        self.closed = False
        self._enabled = enabled
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()
        # Held for the duration of a save; lock order is _save_lock then _lock
        self._save_lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool):
        with self._lock:
            self._enabled = value
            if not value:
                self._cancel_timer()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def change(self, **fields):
        with self._lock:
            if self.closed:
                logger.debug("Ignoring change on a closed auto-saver")
                return
            self.snapshot.update(fields)
            self.dirty = True
            self._cancel_timer()
            if self._enabled:
                self._timer = self.timer_factory(self.delay, partial(self._fire, self._generation))
                self._timer.daemon = True
                self._timer.start()

    def cancel(self):
        """Drop the pending timer and wait for a save already in progress"""
        with self._lock:
            self._cancel_timer()
        with self._save_lock:
            pass

    def close(self):
        """Stop for good; no save runs after this returns"""
        with self._lock:
            self.closed = True
            self._cancel_timer()
        with self._save_lock:
            pass

    def _cancel_timer(self):
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self, generation: int):
        with self._save_lock:
            with self._lock:
                if generation != self._generation:
                    logger.debug("Skipping stale auto-save timer")
                    return
                self._timer = None
                if self.closed or not (self.dirty and self._enabled):
                    return
                if not (self.snapshot.get("title") or "").strip():
                    logger.debug("Skipping auto-save with empty title")
                    return
                snapshot = dict(self.snapshot)

            try:
                self.save(snapshot)
            except Exception:
                # dirty stays set; the next change retries
                logger.exception("Auto-save failed")
                return

            with self._lock:
                # Changes that arrived during the save keep the editor dirty
                if self.snapshot == snapshot:
                    self.dirty = False
                self.last_saved = snapshot


class AutoSaveRegistry:
    """One AutoSaver per article id"""

    def __init__(self, save_factory: Callable[[str], Callable[[Dict[str, Any]], Any]], **saver_kwargs):
        self.save_factory = save_factory
        self.saver_kwargs = saver_kwargs
        self._savers: Dict[str, AutoSaver] = {}
        self._lock = threading.Lock()

    def get(self, article_id: str) -> AutoSaver:
        with self._lock:
            saver = self._savers.get(article_id)
            if saver is None:
                saver = AutoSaver(self.save_factory(article_id), **self.saver_kwargs)
                self._savers[article_id] = saver
            return saver

    def change(self, article_id: str, **fields) -> AutoSaver:
        saver = self.get(article_id)
        saver.change(**fields)
        return saver

    def set_enabled(self, article_id: str, enabled: bool) -> AutoSaver:
        saver = self.get(article_id)
        saver.enabled = enabled
        return saver

    def close(self, article_id: str):
        with self._lock:
            saver = self._savers.pop(article_id, None)
        if saver is not None:
            saver.close()

    def cancel_all(self):
        with self._lock:
            savers = list(self._savers.values())
            self._savers.clear()
        for saver in savers:
            saver.close()
        if savers:
            logger.info("Cancelled %d pending auto-saves", len(savers))

    def __len__(self):
        return len(self._savers)
