#!/usr/bin/env python3
"""Configuration dataclasses for github-backup.

All values are frozen: they are built once before any worker starts and
handed to every task explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_WORKERS = 8
DEFAULT_HEARTBEAT_S = 2.0


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub API configuration."""
    api_url: str
    token: str


@dataclass(frozen=True)
class BackupConfig:
    """Backup behavior configuration."""
    backup_dir: str
    verbose: bool = False
    workers: int = DEFAULT_WORKERS
    heartbeat_s: float = DEFAULT_HEARTBEAT_S


@dataclass(frozen=True)
class Config:
    """Main configuration for a backup run."""
    github: GitHubConfig
    backup: BackupConfig


@dataclass(frozen=True)
class Session:
    """Authenticated identity presented to git on clone and fetch."""
    username: str
    token: str

    def __repr__(self) -> str:
        return f"Session(username={self.username!r}, token='***')"
