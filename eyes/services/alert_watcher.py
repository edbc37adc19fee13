# eyes/services/alert_watcher.py
# Background subscription on the class alert subtree
#
# Started from the app lifespan when ALERT_WATCHER_ENABLED=true. Every change
# under Alerts triggers a sweep that pushes pending alerts to teachers and the
# owning parent. Sweeps write seen flags, which fire the subscription again;
# those nested notifications only mark the watcher dirty so one more sweep
# runs after the current one instead of overlapping it.

import logging
import threading
from typing import Any, Callable, Optional

from eyes.db import paths
from eyes.db.store import Store
from eyes.services import alert_service
from eyes.services.notification_service import PushSender

logger = logging.getLogger("eyes.alert_watcher")


class AlertWatcher:

    def __init__(self, store: Store, sender: PushSender):
        self.store = store
        self.sender = sender
        self._lock = threading.Lock()
        self._running = False
        self._dirty = False
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def started(self) -> bool:
        return self._unsubscribe is not None

    def start(self) -> None:
        if self.started:
            return
        logger.info("Watching %s for emotion alerts", paths.alerts_root())
        self._unsubscribe = self.store.listen(paths.alerts_root(), self._on_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            logger.info("Alert watcher stopped")

    def _on_change(self, value: Any) -> None:
        if not value:
            return
        with self._lock:
            if self._running:
                self._dirty = True
                return
            self._running = True

        try:
            while True:
                delivered = alert_service.sweep(self.store, self.sender)
                if delivered:
                    logger.info("Alert sweep delivered %d push notification(s)", delivered)
                with self._lock:
                    if not self._dirty:
                        self._running = False
                        return
                    self._dirty = False
        except Exception:
            with self._lock:
                self._running = False
                self._dirty = False
            logger.exception("Alert sweep failed")
