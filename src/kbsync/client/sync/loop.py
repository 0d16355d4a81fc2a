"""Single-threaded event loop driving the syncer.

This module provides:
- EventLoop: Consumes messages from one inbox and dispatches them to a Syncer
- Ticker: Posts periodic full-sync ticks into the inbox
- install_signal_handlers: Turns SIGINT/SIGTERM into shutdown messages

Architecture:
    FileWatcher ─┐
    Ticker ──────┼──> inbox (queue.SimpleQueue) ──> EventLoop ──> Syncer
    signals ─────┘

Producers run in their own threads (or signal context) and only post
messages. The loop thread is the sole caller of the Syncer, so sync
state has exactly one writer and needs no locking. Messages are
handled one at a time in arrival order; a shutdown is observed
between messages, so an in-flight sync always completes.
"""

from __future__ import annotations

import logging
import queue
import signal
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from kbsync.client.sync.types import (
    FileEvent,
    FullSyncError,
    LoopMessage,
    MessageKind,
    SyncError,
)

if TYPE_CHECKING:
    from kbsync.client.sync.engine import Syncer

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.2  # seconds
POLL_INTERVAL = 0.5  # seconds


class LoopState(Enum):
    """Lifecycle of the event loop."""

    RUNNING = "running"
    STOPPED = "stopped"


class Ticker:
    """Posts a TICK message every interval seconds.

    Ticks coalesce: while one is still waiting in the inbox, no new one
    is posted, so a slow full sync never causes a backlog of ticks.
    """

    def __init__(self, inbox: queue.SimpleQueue[LoopMessage], interval: float) -> None:
        """Initialize the ticker.

        Args:
            inbox: Event loop inbox.
            interval: Seconds between ticks.
        """
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive: {interval}")
        self._inbox = inbox
        self._interval = interval
        self._stop_event = threading.Event()
        self._pending = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def acknowledge(self) -> None:
        """Mark the pending tick as consumed; called by the loop."""
        self._pending.clear()

    def fire(self) -> bool:
        """Post a tick unless one is already pending.

        Returns:
            True if a tick was posted.
        """
        if self._pending.is_set():
            logger.debug("Tick skipped, previous tick still pending")
            return False
        self._pending.set()
        self._inbox.put(LoopMessage.tick())
        return True

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval):
            self.fire()

    def start(self) -> None:
        """Start the ticker thread."""
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="SyncTicker", daemon=True)
        self._thread.start()

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the ticker thread."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None


class EventLoop:
    """Dispatches file events, ticks and shutdown requests to a Syncer.

    Usage:
        loop = EventLoop(syncer, debounce=0.2)
        watcher = FileWatcher(watch_dir, loop.inbox)
        ticker = Ticker(loop.inbox, interval=300)
        loop.attach_ticker(ticker)
        install_signal_handlers(loop)

        watcher.start()
        ticker.start()
        loop.run()  # returns after SIGINT/SIGTERM or loop.stop()
    """

    def __init__(
        self,
        syncer: Syncer,
        debounce: float = DEFAULT_DEBOUNCE,
        inbox: queue.SimpleQueue[LoopMessage] | None = None,
        sleep: Callable[[float], None] = time.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the event loop.

        Args:
            syncer: Syncer that performs all sync operations.
            debounce: Seconds to wait after a create/modify before reading.
            inbox: Queue to consume from (created if omitted).
            sleep: Sleep function used for the debounce.
            log: Logger to report on (defaults to the module logger).
        """
        self._syncer = syncer
        self._debounce = debounce
        self._inbox: queue.SimpleQueue[LoopMessage] = (
            inbox if inbox is not None else queue.SimpleQueue()
        )
        self._sleep = sleep
        self._log = log or logger
        self._ticker: Ticker | None = None
        self._state = LoopState.STOPPED

    @property
    def inbox(self) -> queue.SimpleQueue[LoopMessage]:
        """Queue that producers post messages to."""
        return self._inbox

    @property
    def state(self) -> LoopState:
        return self._state

    def attach_ticker(self, ticker: Ticker) -> None:
        """Let the loop acknowledge ticks so the ticker can post the next one."""
        self._ticker = ticker

    def post(self, message: LoopMessage) -> None:
        """Post a message to the inbox."""
        self._inbox.put(message)

    def stop(self) -> None:
        """Request an orderly exit after the current message."""
        self._inbox.put(LoopMessage.shutdown())

    def run(self) -> None:
        """Process messages until a shutdown message arrives."""
        self._state = LoopState.RUNNING
        self._log.debug("Event loop started")
        try:
            while True:
                try:
                    message = self._inbox.get(timeout=POLL_INTERVAL)
                except queue.Empty:
                    continue
                if not self._dispatch(message):
                    break
        finally:
            self._state = LoopState.STOPPED
            self._log.debug("Event loop stopped")

    def process_pending(self) -> int:
        """Handle every message currently queued without blocking.

        Stops early at a shutdown message.

        Returns:
            Number of messages handled.
        """
        handled = 0
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                return handled
            handled += 1
            if not self._dispatch(message):
                return handled

    def _dispatch(self, message: LoopMessage) -> bool:
        """Handle one message.

        Returns:
            False if the loop should exit.
        """
        if message.kind is MessageKind.SHUTDOWN:
            self._log.info("Shutting down")
            return False

        try:
            if message.kind is MessageKind.TICK:
                if self._ticker is not None:
                    self._ticker.acknowledge()
                self._handle_tick()
            elif message.event is not None:
                self._handle_file_event(message.event)
        except Exception:
            self._log.exception("Error processing %s", message.kind.name)
        return True

    def _handle_tick(self) -> None:
        try:
            self._syncer.full_sync()
        except FullSyncError as e:
            self._log.error("Periodic sync error: %s", e)
        except SyncError as e:
            self._log.error("Periodic sync failed: %s", e)

    def _handle_file_event(self, event: FileEvent) -> None:
        if not self._syncer.is_eligible(event.filename):
            return

        if event.is_removal:
            self._log.info("File removed: %s", event.filename)
            self._syncer.delete_file(event.filename)
            return

        self._log.info("File event: %s %s", event.event_type.value, event.filename)
        # Give the writer a moment to finish before reading.
        if self._debounce > 0:
            self._sleep(self._debounce)
        try:
            self._syncer.sync_file(event.filename)
        except SyncError as e:
            self._log.error("Sync failed for %s: %s", event.filename, e)


def install_signal_handlers(
    loop: EventLoop,
    signals: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM),
) -> dict[signal.Signals, Any]:
    """Route termination signals to an orderly loop shutdown.

    Must be called from the main thread.

    Args:
        loop: Loop to stop.
        signals: Signals to handle.

    Returns:
        Previous handlers, keyed by signal, for restoring later.
    """
    previous: dict[signal.Signals, Any] = {}

    def _handler(signum: int, _frame: object) -> None:
        logger.debug("Received signal %d", signum)
        loop.stop()

    for sig in signals:
        previous[sig] = signal.signal(sig, _handler)
    return previous


def restore_signal_handlers(previous: dict[signal.Signals, Any]) -> None:
    """Reinstate handlers returned by install_signal_handlers."""
    for sig, handler in previous.items():
        signal.signal(sig, handler)
