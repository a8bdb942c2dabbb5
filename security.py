#!/usr/bin/env python3
"""Security validation utilities for github-backup."""

import os
import re
from typing import List, Optional


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    MAX_URL_LENGTH = 2048
    MAX_USERNAME_LENGTH = 100
    MAX_PATH_LENGTH = 1024
    MAX_SEGMENT_LENGTH = 255

    # GitHub logins: alphanumerics and single hyphens; bots may carry [bot]
    SAFE_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9._-]*)(?:\[bot\])?$")

    @staticmethod
    def _has_control_chars(value: str) -> bool:
        return "\x00" in value or any(ord(c) < 32 for c in value)

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate an API or clone URL."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        if cls._has_control_chars(url):
            raise ValueError("URL contains null bytes or control characters")

        if not url.startswith(("http://", "https://")):
            raise ValueError("URL must use http or https scheme")

        if allowed_schemes:
            scheme = url.split("://")[0].lower()
            if scheme not in allowed_schemes:
                raise ValueError(
                    f"URL scheme '{scheme}' not in allowed schemes: {allowed_schemes}"
                )

        return url

    @classmethod
    def validate_username(cls, username: str) -> str:
        """Validate a GitHub login."""
        if not username or not isinstance(username, str):
            raise ValueError("Username must be a non-empty string")

        if len(username) > cls.MAX_USERNAME_LENGTH:
            raise ValueError(
                f"Username exceeds maximum length of {cls.MAX_USERNAME_LENGTH}"
            )

        if cls._has_control_chars(username):
            raise ValueError("Username contains null bytes or control characters")

        if not cls.SAFE_USERNAME_PATTERN.match(username):
            raise ValueError("Username contains invalid characters")

        return username

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate a local path and return it absolute and normalized."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        return os.path.abspath(os.path.expanduser(path))

    @classmethod
    def validate_path_segment(cls, segment: str) -> str:
        """Validate one component of a mirror path.

        A segment must stay inside its parent directory: no separators,
        no relative references, no control characters.
        """
        if not segment:
            raise ValueError("path segment must be non-empty")

        if len(segment) > cls.MAX_SEGMENT_LENGTH:
            raise ValueError(
                f"path segment exceeds maximum length of {cls.MAX_SEGMENT_LENGTH}"
            )

        if segment in (".", ".."):
            raise ValueError(f"path segment '{segment}' is a relative reference")

        if "\\" in segment or os.sep in segment:
            raise ValueError(f"path segment '{segment}' contains a separator")

        if cls._has_control_chars(segment):
            raise ValueError("path segment contains null bytes or control characters")

        return segment

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        patterns = [
            (r"(https?://)[^:/@\s]+:[^@\s]+@", r"\1[REDACTED]@"),  # URLs with credentials
            (r"(authorization:\s*)(bearer|token|basic)\s+[^\s]+", r"\1[REDACTED]"),
            (r"token\s*[=:]\s*[^\s]+", "token=[REDACTED]"),
            (r"password\s*[=:]\s*[^\s]+", "password=[REDACTED]"),
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
