#!/usr/bin/env python3
"""Local bare mirrors of remote repositories."""

from __future__ import annotations

import os
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional

from logging_utils import Logger
from security import SecurityValidator

USERNAME_ENV = "GITHUB_BACKUP_USERNAME"
PASSWORD_ENV = "GITHUB_BACKUP_PASSWORD"

ASKPASS_SCRIPT = f"""#!/bin/sh
case "$1" in
  *Username*) printf '%s\\n' "${USERNAME_ENV}" ;;
  *Password*) printf '%s\\n' "${PASSWORD_ENV}" ;;
  *) exit 1 ;;
esac
"""


class MirrorError(Exception):
    """Synchronizing one mirror failed.

    ``detail`` carries the sanitized diagnostic output of git, if any.
    """

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message)
        self.detail = detail


class MirrorAction(Enum):
    CLONE = "clone"
    FETCH = "fetch"


@dataclass(frozen=True)
class GitCredentials:
    """Answers git's username/password prompts for HTTPS remotes.

    Every ``askpass_env`` call writes its own helper script, so concurrent
    clones and fetches never share state. The secret travels only in the
    child environment, never in the script body.
    """
    username: str
    token: str

    def __repr__(self) -> str:
        return f"GitCredentials(username={self.username!r}, token='***')"

    @contextmanager
    def askpass_env(self, base: Optional[Dict[str, str]] = None) -> Iterator[Dict[str, str]]:
        env = dict(os.environ if base is None else base)
        fd, path = tempfile.mkstemp(prefix="github_backup_askpass_", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as script:
                script.write(ASKPASS_SCRIPT)
            os.chmod(path, 0o700)
            env.update(
                {
                    "GIT_ASKPASS": path,
                    "GIT_TERMINAL_PROMPT": "0",
                    USERNAME_ENV: self.username,
                    PASSWORD_ENV: self.token,
                }
            )
            yield env
        finally:
            try:
                os.remove(path)
            except OSError as error:
                Logger.warn(f"failed to clean up temporary credential helper: {error}")


class Mirror:
    """Creates or updates the bare mirror of ``remote_url`` at ``path``."""

    def __init__(
        self,
        path: str,
        remote_url: str,
        credentials: Optional[GitCredentials] = None,
    ) -> None:
        self.path = path
        self.remote_url = remote_url
        self.credentials = credentials

    def inspect(self) -> MirrorAction:
        """Decide between a first clone and an incremental fetch."""
        if not os.path.lexists(self.path):
            return MirrorAction.CLONE
        if not os.path.isdir(self.path):
            raise MirrorError(f"{self.path} exists, but is a file")
        return MirrorAction.FETCH

    def sync(self) -> MirrorAction:
        action = self.inspect()
        if action is MirrorAction.CLONE:
            self.clone()
        else:
            self.fetch()
        return action

    def clone(self) -> None:
        try:
            os.makedirs(self.path, mode=0o777)
        except OSError:
            raise MirrorError(f"could not create {self.path}")
        self._run_git(["clone", "--mirror", self.remote_url, self.path])

    def fetch(self) -> None:
        self._run_git(["fetch", "--prune", "origin"], cwd=self.path)

    def _run_git(self, args: List[str], cwd: Optional[str] = None) -> None:
        command = ["git", *args]
        try:
            if self.credentials is None:
                self._execute(command, cwd, None)
            else:
                with self.credentials.askpass_env() as env:
                    self._execute(command, cwd, env)
        except FileNotFoundError as e:
            raise MirrorError(f"{self.path}: cannot run git: {e}")
        except subprocess.CalledProcessError as e:
            output = SecurityValidator.sanitize_for_logging(
                (e.stderr or "") + (e.stdout or "")
            ).strip()
            reason = output.splitlines()[-1] if output else "no output"
            raise MirrorError(
                f"{self.path}: git {args[0]} failed (exit {e.returncode}): {reason}",
                detail=output,
            )

    @staticmethod
    def _execute(command: List[str], cwd: Optional[str], env: Optional[Dict[str, str]]) -> None:
        subprocess.run(
            command,
            cwd=cwd,
            env=env,
            check=True,
            capture_output=True,
            text=True,
            stdin=subprocess.DEVNULL,
        )
