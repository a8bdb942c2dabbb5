#!/usr/bin/env python3
"""Best-effort progress channel between sync tasks and the console.

Delivery is best-effort: publishing never blocks. Messages published while no
consumer is attached, or while the buffer is full, are dropped and counted.
"""

from __future__ import annotations

import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from logging_utils import Logger

DEFAULT_BUFFER_SIZE = 1024


class Level(Enum):
    """Severity of a progress message."""
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressMessage:
    level: Level
    text: str


class ProgressChannel:
    """Many producers, one consumer, never blocks a producer."""

    def __init__(self, buffer_size: int = DEFAULT_BUFFER_SIZE) -> None:
        self._queue: "queue.Queue[ProgressMessage]" = queue.Queue(maxsize=buffer_size)
        self._listening = threading.Event()
        self._lock = threading.Lock()
        self.dropped = 0

    @property
    def listening(self) -> bool:
        return self._listening.is_set()

    def attach(self) -> None:
        self._listening.set()

    def detach(self) -> None:
        self._listening.clear()

    def publish(self, level: Level, text: str) -> bool:
        """Offer a message; return False when it was dropped."""
        if not self._listening.is_set():
            self._count_drop()
            return False
        try:
            self._queue.put_nowait(ProgressMessage(level, text))
        except queue.Full:
            self._count_drop()
            return False
        return True

    def debug(self, text: str) -> bool:
        return self.publish(Level.DEBUG, text)

    def info(self, text: str) -> bool:
        return self.publish(Level.INFO, text)

    def warn(self, text: str) -> bool:
        return self.publish(Level.WARN, text)

    def error(self, text: str) -> bool:
        return self.publish(Level.ERROR, text)

    def receive(self, timeout: float) -> Optional[ProgressMessage]:
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def empty(self) -> bool:
        return self._queue.empty()

    def _count_drop(self) -> None:
        with self._lock:
            self.dropped += 1


class ProgressConsumer:
    """Single consumer loop printing progress until the run completes.

    Errors are always shown. Everything else only in verbose mode; otherwise
    a heartbeat dot is written every ``heartbeat_s`` seconds.
    """

    POLL_INTERVAL_S = 0.2

    def __init__(self, channel: ProgressChannel, verbose: bool, heartbeat_s: float) -> None:
        self.channel = channel
        self.verbose = verbose
        self.heartbeat_s = heartbeat_s
        self.ticks = 0
        self._line_open = False

    def run(self, done: threading.Event) -> None:
        self.channel.attach()
        next_tick = time.monotonic() + self.heartbeat_s
        try:
            while not (done.is_set() and self.channel.empty()):
                message = self.channel.receive(
                    timeout=min(self.POLL_INTERVAL_S, self.heartbeat_s)
                )
                if message is not None:
                    self.render(message)
                now = time.monotonic()
                if now >= next_tick:
                    if not self.verbose:
                        Logger.heartbeat()
                        self.ticks += 1
                        self._line_open = True
                    next_tick = now + self.heartbeat_s
        finally:
            self.channel.detach()
            self._close_line()

    def _close_line(self) -> None:
        if self._line_open:
            Logger.end_heartbeat()
            self._line_open = False

    def render(self, message: ProgressMessage) -> None:
        if message.level is Level.ERROR:
            self._close_line()
            Logger.error(message.text)
            return
        if not self.verbose:
            return
        if message.level is Level.WARN:
            Logger.warn(message.text)
        elif message.level is Level.DEBUG:
            Logger.debug(message.text)
        else:
            Logger.info(message.text)
