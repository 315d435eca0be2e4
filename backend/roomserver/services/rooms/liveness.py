import logging
import threading
import time
from typing import Any, Callable, Dict, Optional


class LivenessMonitor:
    """Heartbeat sweep over every tracked connection.

    Each sweep terminates connections that left the previous probe
    unanswered and probes the rest. Termination is left to the transport,
    which then runs the ordinary close path.
    """

    def __init__(
        self,
        interval: float = 30,
        start_task: Optional[Callable] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger=None,
    ):
        self.interval = interval
        self._start_task = start_task
        self._sleep = sleep or time.sleep
        self.logger = logger or logging.getLogger(__name__)
        self._alive: Dict[Any, bool] = {}
        self._lock = threading.Lock()
        self._running = False

    def __len__(self):
        return len(self._alive)

    def track(self, connection) -> None:
        with self._lock:
            self._alive[connection] = True

    def forget(self, connection) -> None:
        with self._lock:
            self._alive.pop(connection, None)

    def mark_alive(self, connection) -> None:
        with self._lock:
            if connection in self._alive:
                self._alive[connection] = True

    def is_pending(self, connection) -> bool:
        return self._alive.get(connection) is False

    def sweep(self) -> int:
        """Run one heartbeat cycle; returns how many connections were dropped."""
        with self._lock:
            entries = list(self._alive.items())
        dropped = 0
        for connection, alive in entries:
            if not connection.is_open:
                self.forget(connection)
                continue
            if not alive:
                self.forget(connection)
                dropped += 1
                self.logger.info(f"[heartbeat-timeout] conn={getattr(connection, 'id', connection)}")
                try:
                    connection.terminate()
                except Exception as exc:
                    self.logger.debug(f"[heartbeat-terminate-fail] conn={getattr(connection, 'id', connection)} error={exc}")
                continue
            with self._lock:
                if connection in self._alive:
                    self._alive[connection] = False
            try:
                connection.ping(lambda *args, conn=connection: self.mark_alive(conn))
            except Exception as exc:
                # Left pending; the next sweep drops it
                self.logger.debug(f"[heartbeat-probe-fail] conn={getattr(connection, 'id', connection)} error={exc}")
        return dropped

    def start(self) -> None:
        if self._running or not self.interval:
            return
        if self._start_task is None:
            raise RuntimeError('no background task runner configured')
        self._running = True
        self.logger.info(f"[heartbeat-start] interval={self.interval}s")
        self._start_task(self._run)

    def stop(self) -> None:
        self._running = False

    def _run(self) -> None:
        while self._running:
            self._sleep(self.interval)
            if not self._running:
                break
            self.sweep()
