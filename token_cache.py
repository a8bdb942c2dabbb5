#!/usr/bin/env python3
"""Access token cache file handling."""

from __future__ import annotations

import json
import os

from logging_utils import Logger

# Key used by older Go-based tools (goauth2 cache files)
LEGACY_TOKEN_KEY = "AccessToken"
TOKEN_KEY = "access_token"


class TokenCacheError(Exception):
    """Raised when the cache file cannot be read or written."""


class TokenCache:
    """JSON file holding a single OAuth access token."""

    def __init__(self, path: str) -> None:
        self.path = path

    def __repr__(self) -> str:
        return f"TokenCache({self.path!r})"

    def read(self) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except FileNotFoundError:
            raise TokenCacheError(f"cache file not found: {self.path}")
        except (OSError, ValueError) as e:
            raise TokenCacheError(f"cannot read cache file {self.path}: {e}")

        if not isinstance(data, dict):
            raise TokenCacheError(f"malformed cache file: {self.path}")

        value = data.get(TOKEN_KEY) or data.get(LEGACY_TOKEN_KEY)
        if not value or not isinstance(value, str):
            raise TokenCacheError(f"no access token stored in {self.path}")
        return value

    def write(self, value: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({TOKEN_KEY: value}, handle)
            # O_CREAT mode only applies to new files
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise TokenCacheError(f"cannot write cache file {self.path}: {e}")
        Logger.security_event("TOKEN_CACHED", f"access credentials stored in {self.path}")
