"""Fetch context documents from public GitHub repositories."""
from __future__ import annotations

import base64
import binascii
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal
from urllib.parse import urlparse

import httpx

logger = logging.getLogger(__name__)

GITHUB_HOSTS = {"github.com", "www.github.com"}
TEXT_FILE_RE = re.compile(r"\.(md|txt|yaml|yml|json|rst)$", re.IGNORECASE)
MAX_TREE_FILES = 5


class GitHubFetchError(RuntimeError):
    """Raised when content cannot be fetched from GitHub."""


@dataclass(slots=True)
class GitHubLocation:
    owner: str
    repo: str
    url_type: Literal["repo", "file", "tree"]
    branch: str | None = None
    path: str | None = None


@dataclass(slots=True)
class FetchedContent:
    content: str
    label: str


def parse_github_url(url: str) -> GitHubLocation | None:
    parsed = urlparse(url.strip())
    if parsed.scheme not in {"http", "https"} or parsed.netloc.lower() not in GITHUB_HOSTS:
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None
    owner, repo = parts[0], parts[1]
    if len(parts) == 2:
        return GitHubLocation(owner=owner, repo=repo, url_type="repo")

    kind = parts[2]
    url_type: Literal["repo", "file", "tree"] = "file" if kind == "blob" else "tree" if kind == "tree" else "repo"
    branch = parts[3] if len(parts) > 3 else None
    path = "/".join(parts[4:]) or None
    return GitHubLocation(owner=owner, repo=repo, url_type=url_type, branch=branch, path=path)


class GitHubContentFetcher:
    """Small client over the GitHub REST API and raw content host."""

    def __init__(
        self,
        *,
        token: str | None = None,
        api_base: str = "https://api.github.com",
        raw_base: str = "https://raw.githubusercontent.com",
        timeout: float = 20.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._token = token
        self._api_base = api_base.rstrip("/")
        self._raw_base = raw_base.rstrip("/")
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": "DocCraft"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _get(self, url: str, **params: Any) -> httpx.Response:
        try:
            return self._client.get(url, headers=self._headers(), params=params or None)
        except httpx.HTTPError as exc:
            raise GitHubFetchError(f"GitHub request failed: {exc}") from exc

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubFetchError("GitHub returned an unreadable response") from exc

    def _default_branch(self, owner: str, repo: str) -> str:
        response = self._get(f"{self._api_base}/repos/{owner}/{repo}")
        if response.status_code != 200:
            return "main"
        data = self._json(response)
        return (data.get("default_branch") if isinstance(data, dict) else None) or "main"

    def _fetch_file(self, owner: str, repo: str, path: str, branch: str | None) -> str:
        ref = branch or "HEAD"
        response = self._get(f"{self._raw_base}/{owner}/{repo}/{ref}/{path}")
        if response.status_code != 200:
            raise GitHubFetchError(f"Could not fetch file: {path}")
        return response.text

    def _fetch_readme(self, owner: str, repo: str) -> str:
        response = self._get(f"{self._api_base}/repos/{owner}/{repo}/readme")
        if response.status_code != 200:
            raise GitHubFetchError("No README found in this repository")
        data = self._json(response)
        encoded = data.get("content") if isinstance(data, dict) else None
        try:
            return base64.b64decode(encoded or "").decode("utf-8", errors="replace")
        except (binascii.Error, ValueError) as exc:
            raise GitHubFetchError("README content could not be decoded") from exc

    def _fetch_tree(self, owner: str, repo: str, path: str, branch: str) -> str:
        response = self._get(f"{self._api_base}/repos/{owner}/{repo}/contents/{path}", ref=branch)
        if response.status_code != 200:
            raise GitHubFetchError(f"Could not fetch directory: {path}")
        items = self._json(response)
        if not isinstance(items, list):
            raise GitHubFetchError("Expected a directory listing")

        text_files = [
            item
            for item in items
            if isinstance(item, dict) and item.get("type") == "file" and TEXT_FILE_RE.search(str(item.get("name", "")))
        ][:MAX_TREE_FILES]
        if not text_files:
            raise GitHubFetchError("No readable text files found in this directory")

        contents: list[str] = []
        for item in text_files:
            try:
                text = self._fetch_file(owner, repo, item["path"], branch)
            except GitHubFetchError:
                logger.info("skipping unreadable file %s", item.get("path"))
                continue
            contents.append(f"### {item['name']}\n\n{text}")
        if not contents:
            raise GitHubFetchError("Could not read any files")
        return "\n\n---\n\n".join(contents)

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    def fetch(self, url: str) -> FetchedContent:
        location = parse_github_url(url)
        if location is None:
            raise GitHubFetchError("Not a valid GitHub URL. Paste a link to a repo, file, or folder.")

        owner, repo = location.owner, location.repo
        if location.url_type == "file" and location.path:
            content = self._fetch_file(owner, repo, location.path, location.branch)
            label = location.path.rsplit("/", 1)[-1]
        elif location.url_type == "tree" and location.path:
            branch = location.branch or self._default_branch(owner, repo)
            content = self._fetch_tree(owner, repo, location.path, branch)
            label = f"{repo}/{location.path}"
        else:
            content = self._fetch_readme(owner, repo)
            label = f"{owner}/{repo} README"
        return FetchedContent(content=content, label=label)

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


_fetcher: GitHubContentFetcher | None = None


def configure_github_fetcher(fetcher: GitHubContentFetcher) -> None:
    """Install the fetcher used for GitHub context imports."""

    global _fetcher
    _fetcher = fetcher


def get_github_fetcher() -> GitHubContentFetcher:
    """Return the configured fetcher, creating an anonymous one on first use."""

    global _fetcher
    if _fetcher is None:
        _fetcher = GitHubContentFetcher()
    return _fetcher


__all__ = [
    "FetchedContent",
    "GitHubContentFetcher",
    "GitHubFetchError",
    "configure_github_fetcher",
    "get_github_fetcher",
    "parse_github_url",
]
