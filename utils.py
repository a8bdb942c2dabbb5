#!/usr/bin/env python3
"""Utility functions for github-backup."""

from __future__ import annotations

import os
import threading
import time
from collections import deque
from typing import Deque
from urllib.parse import urlsplit

from logging_utils import Logger
from security import SecurityValidator


class RateLimiter:
    """Sliding window rate limiter for API requests."""

    def __init__(self, max_requests: int = 60, window_s: float = 60.0):
        self.max_requests = max_requests
        self.window_s = window_s
        self.requests: Deque[float] = deque()
        self.lock = threading.Lock()

    def wait_if_needed(self, operation_type: str = "API") -> None:
        """Block until another request fits in the window."""
        with self.lock:
            now = time.monotonic()
            self._expire(now)
            if len(self.requests) >= self.max_requests:
                wait_time = self.window_s - (now - self.requests[0])
                if wait_time > 0:
                    Logger.security_event(
                        "RATE_LIMIT_HIT",
                        f"rate limit reached for {operation_type}, "
                        f"waiting {wait_time:.2f}s",
                    )
                    time.sleep(wait_time)
                now = time.monotonic()
                self._expire(now)
            self.requests.append(now)

    def _expire(self, now: float) -> None:
        cutoff = now - self.window_s
        while self.requests and self.requests[0] <= cutoff:
            self.requests.popleft()


def derive_mirror_path(backup_root: str, clone_url: str) -> str:
    """Map a clone URL to its mirror directory under ``backup_root``.

    'https://github.com:443/octo/hello.git' -> '<root>/github.com/octo/hello.git'

    The result depends only on the arguments. Raises ValueError when the URL
    has no host or fewer than two path segments.
    """
    try:
        parsed = urlsplit(clone_url)
        # Accessing .port validates it
        parsed.port
    except ValueError as e:
        raise ValueError(f"malformed clone URL '{clone_url}': {e}")

    if not parsed.scheme or not parsed.hostname:
        raise ValueError(f"malformed clone URL '{clone_url}': missing scheme or host")

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:
        raise ValueError(
            f"malformed clone URL '{clone_url}': expected owner and repository"
        )

    try:
        host = SecurityValidator.validate_path_segment(parsed.hostname)
        for segment in segments:
            SecurityValidator.validate_path_segment(segment)
    except ValueError as e:
        raise ValueError(f"malformed clone URL '{clone_url}': {e}")

    return os.path.join(backup_root, host, *segments)
