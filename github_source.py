#!/usr/bin/env python3
"""GitHub API wrapper for discovering the repositories a user can reach."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlsplit

import github
import requests

from config import DEFAULT_API_URL
from logging_utils import Logger
from security import SecurityValidator
from utils import RateLimiter

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_GITHUB_ERROR = 31

PER_PAGE = 100
REQUEST_TIMEOUT_S = 30


class GitHubAPIError(Exception):
    """A listing request failed."""

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        message = super().__str__()
        if self.status is None:
            return message
        return f"{message} ({self.status})"


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Identity of one remote repository as returned by the API."""
    name: str
    clone_url: str
    full_name: str = ""
    owner: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "RepositoryDescriptor":
        owner = (payload.get("owner") or {}).get("login", "")
        name = payload.get("name", "")
        return cls(
            name=name,
            clone_url=payload.get("clone_url", ""),
            full_name=payload.get("full_name") or f"{owner}/{name}",
            owner=owner,
        )


@dataclass
class Page:
    """One page of a listing plus the next page number (0 when last)."""
    items: List[Any] = field(default_factory=list)
    next_page: int = 0


def next_page_from_links(links: Dict[str, Dict[str, str]]) -> int:
    """Extract the next page number from a parsed ``Link`` header."""
    next_link = links.get("next")
    if not next_link or not next_link.get("url"):
        return 0
    query = parse_qs(urlsplit(next_link["url"]).query)
    try:
        return int(query.get("page", ["0"])[0])
    except ValueError:
        return 0


class GitHubSource:
    """Wrapper around the GitHub API to enumerate reachable repositories."""

    def __init__(self, api_url: str, token: str) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.api: Optional[github.Github] = None
        self.username: Optional[str] = None
        self.http = requests.Session()
        self.http.headers.update(self._get_api_headers())
        self.rate_limiter = RateLimiter(max_requests=80)

    def _get_api_headers(self) -> dict:
        """Get standard API headers for GitHub requests."""
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def connect(self) -> str:
        """Authenticate and return the login of the token owner."""
        Logger.info(f"init github API: {self.api_url}")
        try:
            auth = github.Auth.Token(self.token)
            if self.api_url != DEFAULT_API_URL:
                self.api = github.Github(base_url=self.api_url, auth=auth)
            else:
                self.api = github.Github(auth=auth)
            self.rate_limiter.wait_if_needed("GitHub API")
            self.username = SecurityValidator.validate_username(
                self.api.get_user().login
            )
        except github.BadCredentialsException:
            Logger.error("authentication failed (github): invalid credentials")
            sys.exit(EXIT_AUTH_ERROR)
        except github.GithubException as e:
            Logger.error(f"github error: {e}")
            sys.exit(EXIT_GITHUB_ERROR)
        except Exception as e:
            Logger.error(f"failed to initialize github API: {e}")
            sys.exit(EXIT_GITHUB_ERROR)
        Logger.debug(f"github user: {self.username}")
        return self.username

    def _get_page(self, path: str, params: Dict[str, Any], page: int) -> Page:
        query = dict(params, per_page=PER_PAGE)
        if page:
            query["page"] = page
        url = f"{self.api_url}{path}"
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            response = self.http.get(url, params=query, timeout=REQUEST_TIMEOUT_S)
        except requests.RequestException as e:
            raise GitHubAPIError(f"request to {path} failed: {e}")

        if response.status_code != 200:
            raise GitHubAPIError(
                f"GET {path} returned {self._error_message(response)}",
                status=response.status_code,
            )
        try:
            items = response.json()
        except ValueError as e:
            raise GitHubAPIError(f"invalid JSON from {path}: {e}")
        if not isinstance(items, list):
            raise GitHubAPIError(f"unexpected payload from {path}")
        return Page(items=items, next_page=next_page_from_links(response.links))

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            message = response.json().get("message")
        except (ValueError, AttributeError):
            message = None
        return message or response.reason or "error"

    def list_user_repositories(self, page: int = 0) -> Page:
        """One page of repositories the authenticated user owns or collaborates on."""
        result = self._get_page(
            "/user/repos", {"affiliation": "owner,collaborator"}, page
        )
        result.items = [RepositoryDescriptor.from_payload(p) for p in result.items]
        return result

    def list_organizations(self) -> List[str]:
        """Logins of every organization the authenticated user belongs to."""
        logins: List[str] = []
        page = 0
        while True:
            result = self._get_page("/user/orgs", {}, page)
            logins.extend(org.get("login", "") for org in result.items if org.get("login"))
            if not result.next_page:
                return logins
            page = result.next_page

    def list_organization_repositories(self, org: str, page: int = 0) -> Page:
        """One page of every repository (all types) of ``org``."""
        result = self._get_page(f"/orgs/{org}/repos", {"type": "all"}, page)
        result.items = [RepositoryDescriptor.from_payload(p) for p in result.items]
        return result
