"""
Change notification - tells other open views that the record store changed.
In-process listeners fire synchronously; other processes sharing the medium
notice through StorageWatcher polling the medium's change counter.
"""

import threading
import time
from typing import Callable, List

from .config import NOTIFY_POLL_INTERVAL_SEC
from ..util.logging import logger


Listener = Callable[[], None]

DUMMY_KEY_PREFIX = "_dummy_trigger_"


class ChangeNotifier:
    """Process-wide "store changed" broadcaster. Signals carry no payload."""

    def __init__(self, backend=None):
        self.backend = backend
        self._listeners: List[Listener] = []
        self._watchers: List["StorageWatcher"] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A function that removes the listener again.
        """
        if not callable(callback):
            raise ValueError(f"Listener must be callable: {callback}")

        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._listeners:
                    self._listeners.remove(callback)

        return unsubscribe

    def add_watcher(self, watcher: "StorageWatcher") -> None:
        """Register a watcher whose counter is acknowledged after each local write."""
        with self._lock:
            if watcher not in self._watchers:
                self._watchers.append(watcher)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def notify(self) -> None:
        """Signal a local mutation: dispatch to listeners, then poke the medium for other views."""
        self.dispatch(source="local")
        self._poke_medium()
        with self._lock:
            watchers = list(self._watchers)
        for watcher in watchers:
            watcher.acknowledge()

    def dispatch(self, source: str = "local") -> None:
        """Call every listener in subscription order. A failing listener does not stop the rest."""
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener()
            except Exception as e:
                logger.error(f"Change listener {getattr(listener, '__name__', listener)!r} failed: {e}")

        logger.log_notification(source, len(listeners))

    def _poke_medium(self) -> None:
        """Write and remove a throwaway key so watchers in other views see the counter move."""
        if self.backend is None:
            return

        dummy_key = f"{DUMMY_KEY_PREFIX}{int(time.time() * 1000)}"
        try:
            self.backend.set_item(dummy_key, "1")
            self.backend.remove_item(dummy_key)
        except Exception as e:
            logger.warning(f"Could not trigger cross-view storage signal: {e}")


class StorageWatcher:
    """
    Polls the medium's change counter and dispatches when another view wrote.

    Writes made through the watcher's own notifier are skipped via
    acknowledge(), since local listeners already ran for them.
    """

    def __init__(self, backend, notifier: ChangeNotifier, interval_sec: float = None):
        self.backend = backend
        self.notifier = notifier
        self.interval_sec = interval_sec if interval_sec is not None else NOTIFY_POLL_INTERVAL_SEC
        self._last_version = backend.data_version()
        notifier.add_watcher(self)
        self._stop_event = threading.Event()
        self._thread = None

    def acknowledge(self) -> None:
        """Mark the current counter as seen."""
        self._last_version = self.backend.data_version()

    def check(self) -> bool:
        """
        Poll once.

        Returns:
            True if a change from another view was detected and dispatched.
        """
        try:
            version = self.backend.data_version()
        except Exception as e:
            logger.warning(f"Storage watcher poll failed: {e}")
            return False

        if version == self._last_version:
            return False

        self._last_version = version
        self.notifier.dispatch(source="external")
        return True

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Storage watcher already running")

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="storage-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_sec):
            self.check()
