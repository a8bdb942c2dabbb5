#!/usr/bin/env python3
"""Main orchestrator for backing up every reachable GitHub repository."""

from __future__ import annotations

import queue
import threading
from typing import Optional

from config import Config, Session
from github_source import GitHubSource
from logging_utils import Logger
from mirror import GitCredentials
from progress import ProgressChannel, ProgressConsumer
from repository_enumerator import RepositoryEnumerator
from sync_dispatcher import SyncDispatcher

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1


class SyncOrchestrator:
    def __init__(self, cfg: Config) -> None:
        self.cfg = cfg
        self.gh = GitHubSource(cfg.github.api_url, cfg.github.token)
        self.progress = ProgressChannel()
        self.dispatcher: Optional[SyncDispatcher] = None

    def run(self) -> int:
        try:
            session = self._authenticate()
            self._backup(session)
            return EXIT_SUCCESS
        except SystemExit as e:
            return int(e.code) if isinstance(e.code, int) else EXIT_EXECUTION_ERROR
        except Exception as e:
            Logger.error(f"unexpected error: {e}")
            return EXIT_EXECUTION_ERROR

    def _authenticate(self) -> Session:
        username = self.gh.connect()
        if self.cfg.backup.verbose:
            Logger.info(
                f"retrieving information from github using credentials of {username}"
            )
        return Session(username=username, token=self.cfg.github.token)

    def _backup(self, session: Session) -> None:
        backup = self.cfg.backup
        Logger.info(f"backing up to: {backup.backup_dir}")

        work_queue: "queue.Queue" = queue.Queue(maxsize=backup.workers)
        done = threading.Event()
        credentials = GitCredentials(session.username, session.token)

        enumerator = RepositoryEnumerator(self.gh, self.progress)
        self.dispatcher = SyncDispatcher(
            backup.backup_dir,
            credentials,
            self.progress,
            workers=backup.workers,
        )
        consumer = ProgressConsumer(self.progress, backup.verbose, backup.heartbeat_s)

        # Attach before any producer starts so early messages are not dropped
        self.progress.attach()
        producer_thread = threading.Thread(
            target=enumerator.feed, args=(work_queue,), name="enumerator", daemon=True
        )
        dispatcher_thread = threading.Thread(
            target=self.dispatcher.run,
            args=(work_queue, done),
            name="dispatcher",
            daemon=True,
        )
        producer_thread.start()
        dispatcher_thread.start()

        consumer.run(done)

        dispatcher_thread.join()
        producer_thread.join()

        Logger.info(
            f"{self.dispatcher.completed} complete, {self.dispatcher.failed} failed"
        )
        if self.progress.dropped:
            Logger.debug(f"{self.progress.dropped} progress messages dropped")
        Logger.info("backup finished")
