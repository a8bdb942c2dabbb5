#!/usr/bin/env python3
"""Feeds every reachable repository into the work queue."""

from __future__ import annotations

import queue
from typing import Callable, Set

from github_source import GitHubAPIError, GitHubSource, Page, RepositoryDescriptor
from progress import ProgressChannel

# Put on the work queue exactly once, after the last descriptor
WORK_QUEUE_CLOSED = object()


class RepositoryEnumerator:
    """Single producer of the work queue.

    User repositories are emitted first, then the repositories of each
    organization. A failing source is reported and skipped; the queue is
    closed in every case.
    """

    def __init__(self, source: GitHubSource, progress: ProgressChannel) -> None:
        self.source = source
        self.progress = progress
        self.emitted = 0
        self._seen: Set[str] = set()

    def feed(self, work_queue: "queue.Queue") -> None:
        try:
            self._feed_pages(
                "user repositories", self.source.list_user_repositories, work_queue
            )
            self._feed_organizations(work_queue)
        finally:
            work_queue.put(WORK_QUEUE_CLOSED)
        self.progress.debug(f"enumeration finished: {self.emitted} repositories")

    def _feed_organizations(self, work_queue: "queue.Queue") -> None:
        try:
            orgs = self.source.list_organizations()
        except GitHubAPIError as e:
            self.progress.error(f"failed to list organizations: {e}")
            return

        for org in orgs:
            self._feed_pages(
                f"{org} repositories",
                lambda page, org=org: self.source.list_organization_repositories(org, page),
                work_queue,
            )

    def _feed_pages(
        self,
        label: str,
        list_page: Callable[[int], Page],
        work_queue: "queue.Queue",
    ) -> None:
        page = 0
        while True:
            try:
                result = list_page(page)
            except GitHubAPIError as e:
                self.progress.error(f"failed to list {label}: {e}")
                return

            # An empty first page means an empty collection, not the end
            if page == 0 and not result.items:
                self.progress.info(f"no {label} available")
                return

            for repo in result.items:
                self._emit(repo, work_queue)

            if not result.next_page:
                return
            page = result.next_page

    def _emit(self, repo: RepositoryDescriptor, work_queue: "queue.Queue") -> None:
        if repo.clone_url and repo.clone_url in self._seen:
            self.progress.debug(f"already queued: {repo.full_name or repo.name}")
            return
        self._seen.add(repo.clone_url)
        work_queue.put(repo)
        self.emitted += 1
