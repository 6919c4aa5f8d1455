"""Background thread tracking for SharkScope.

Each capture process gets one supervisor thread, named
capture-tshark-{session_id}. Threads started through the ThreadManager
remove themselves from it when their target returns, so the tracked set
is the set of supervisors still watching a process.
"""

import logging
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ThreadManager:
    """Starts and tracks named daemon threads."""

    def __init__(self):
        self._threads: Dict[str, threading.Thread] = {}
        self._lock = threading.Lock()

        logger.debug(' ThreadManager initialized')

    def start_thread(self, name: str, target: Callable, *args) -> threading.Thread:
        """Start a daemon thread that is tracked until `target` returns.

        Args:
            name: Unique thread name, also used as the Thread name
            target: Callable run in the new thread
            *args: Positional arguments for `target`

        Returns:
            The started thread
        """
        def run():
            try:
                target(*args)
            finally:
                self.unregister_thread(name, thread)

        thread = threading.Thread(target=run, name=name, daemon=True)
        # Tracked before start so a fast target cannot unregister first
        self.register_thread(name, thread)
        thread.start()
        return thread

    def register_thread(self, name: str, thread: threading.Thread) -> None:
        """Track a thread started elsewhere."""
        with self._lock:
            self._threads[name] = thread
        logger.debug(f' Thread registered (name={name})')

    def unregister_thread(
        self,
        name: str,
        thread: Optional[threading.Thread] = None,
    ) -> Optional[threading.Thread]:
        """Stop tracking a thread.

        Args:
            name: Thread name
            thread: If given, the entry is dropped only while `name` still
                maps to this thread; a newer thread reusing the name stays

        Returns:
            The thread that was dropped, or None
        """
        with self._lock:
            current = self._threads.get(name)
            if current is None or (thread is not None and current is not thread):
                return None
            del self._threads[name]
        logger.debug(f' Thread unregistered (name={name})')
        return current

    def get_active_threads(self) -> Dict[str, threading.Thread]:
        """Snapshot of tracked threads by name."""
        with self._lock:
            return dict(self._threads)

    def join_all(self, timeout: float) -> bool:
        """Wait for every tracked thread to finish.

        Args:
            timeout: Overall time limit in seconds, shared by all threads

        Returns:
            True if no tracked thread is still alive afterwards
        """
        deadline = time.monotonic() + timeout
        for thread in self.get_active_threads().values():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            thread.join(remaining)

        still_running = [
            name for name, thread in self.get_active_threads().items() if thread.is_alive()
        ]
        if still_running:
            logger.warning(f' Threads still running after join (names={still_running})')
        return not still_running


# Global singleton instance
_thread_manager: Optional[ThreadManager] = None


def get_thread_manager() -> ThreadManager:
    """Get the process-wide ThreadManager, creating it on first use."""
    global _thread_manager

    if _thread_manager is None:
        _thread_manager = ThreadManager()

    return _thread_manager


def reset_thread_manager() -> None:
    """Reset the global ThreadManager instance (for testing)."""
    global _thread_manager
    _thread_manager = None
