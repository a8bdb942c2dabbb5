#!/usr/bin/env python3
"""Fans repositories from the work queue out to a bounded pool of sync tasks."""

from __future__ import annotations

import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from config import DEFAULT_WORKERS
from github_source import RepositoryDescriptor
from mirror import GitCredentials, Mirror, MirrorAction, MirrorError
from progress import ProgressChannel
from repository_enumerator import WORK_QUEUE_CLOSED
from utils import derive_mirror_path


class TaskState(Enum):
    """Lifecycle of one repository: queued -> checking -> cloning|fetching -> complete|failed."""
    QUEUED = "queued"
    CHECKING = "checking"
    CLONING = "cloning"
    FETCHING = "fetching"
    COMPLETE = "complete"
    FAILED = "failed"


@dataclass
class TaskOutcome:
    repository: RepositoryDescriptor
    path: Optional[str] = None
    state: TaskState = TaskState.QUEUED
    error: Optional[str] = None


MirrorFactory = Callable[[str, str, Optional[GitCredentials]], Mirror]


class SyncDispatcher:
    """Drains the work queue and runs one sync task per repository.

    At most ``workers`` tasks run at once. While every worker is busy the
    dispatcher stops reading the work queue, which in turn blocks the
    producer. ``done`` is set once the queue is closed and no task is
    outstanding.
    """

    def __init__(
        self,
        backup_dir: str,
        credentials: Optional[GitCredentials],
        progress: ProgressChannel,
        workers: int = DEFAULT_WORKERS,
        mirror_factory: MirrorFactory = Mirror,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.backup_dir = backup_dir
        self.credentials = credentials
        self.progress = progress
        self.workers = workers
        self.mirror_factory = mirror_factory
        self.outcomes: List[TaskOutcome] = []
        self._slots = threading.BoundedSemaphore(workers)
        self._idle = threading.Condition()
        self._outstanding = 0

    @property
    def outstanding(self) -> int:
        with self._idle:
            return self._outstanding

    @property
    def completed(self) -> int:
        return sum(1 for o in self.outcomes if o.state is TaskState.COMPLETE)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.state is TaskState.FAILED)

    def run(self, work_queue: "queue.Queue", done: threading.Event) -> None:
        try:
            with ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="mirror"
            ) as executor:
                while True:
                    item = work_queue.get()
                    if item is WORK_QUEUE_CLOSED:
                        break
                    self._dispatch(executor, item)
                self._wait_idle()
        finally:
            done.set()

    def _dispatch(self, executor: ThreadPoolExecutor, repository: RepositoryDescriptor) -> None:
        outcome = TaskOutcome(repository)
        self.outcomes.append(outcome)
        try:
            outcome.path = derive_mirror_path(self.backup_dir, repository.clone_url)
        except ValueError as e:
            self._fail(outcome, f"{repository.name}: {e}")
            return

        self._slots.acquire()
        with self._idle:
            self._outstanding += 1
        try:
            executor.submit(self._run_task, outcome)
        except RuntimeError:
            self._task_finished()
            raise

    def _run_task(self, outcome: TaskOutcome) -> None:
        try:
            self._synchronize(outcome)
        finally:
            self._task_finished()

    def _task_finished(self) -> None:
        self._slots.release()
        with self._idle:
            self._outstanding -= 1
            self._idle.notify_all()

    def _wait_idle(self) -> None:
        with self._idle:
            while self._outstanding:
                self._idle.wait()

    def _synchronize(self, outcome: TaskOutcome) -> None:
        path = outcome.path
        outcome.state = TaskState.CHECKING
        self.progress.info(f"checking {path}")
        try:
            mirror = self.mirror_factory(
                path, outcome.repository.clone_url, self.credentials
            )
            action = mirror.inspect()
            if action is MirrorAction.CLONE:
                outcome.state = TaskState.CLONING
                mirror.clone()
            else:
                outcome.state = TaskState.FETCHING
                mirror.fetch()
        except MirrorError as e:
            if e.detail:
                self.progress.debug(f"{path}: {e.detail}")
            self._fail(outcome, str(e))
            return
        except Exception as e:
            self._fail(outcome, f"{path}: unexpected error: {e}")
            return

        outcome.state = TaskState.COMPLETE
        self.progress.info(f"{path} complete")

    def _fail(self, outcome: TaskOutcome, message: str) -> None:
        outcome.state = TaskState.FAILED
        outcome.error = message
        self.progress.error(message)
