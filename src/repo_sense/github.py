import asyncio
import base64
import logging
import re
from pathlib import PurePosixPath
from urllib.parse import urlparse

import httpx

from repo_sense import models

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
MAX_CONCURRENT_FETCHES = 10


class GitHubError(Exception):
    def __init__(self, message: str, status_code: int = 502):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def parse_github_url(url: str) -> tuple[str, str]:
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[:-4]

    parsed = urlparse(url)
    if parsed.hostname not in ("github.com", "www.github.com"):
        raise GitHubError("Please enter a valid GitHub URL (e.g., https://github.com/facebook/react)", status_code=400)

    parts = [p for p in parsed.path.strip("/").split("/") if p]
    if len(parts) < 2:
        raise GitHubError("Invalid GitHub repository URL, expected github.com/owner/repo", status_code=400)

    owner, repo = parts[0], parts[1]
    if not re.match(r"^[\w.\-]+$", owner) or not re.match(r"^[\w.\-]+$", repo):
        raise GitHubError("Invalid owner or repo name", status_code=400)

    return owner, repo


def _make_headers(token: str | None) -> dict[str, str]:
    headers = {"Accept": "application/vnd.github.v3+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


async def _get(client: httpx.AsyncClient, url: str, token: str | None, **kwargs) -> httpx.Response:
    try:
        return await client.get(url, headers=_make_headers(token), **kwargs)
    except httpx.HTTPError as exc:
        raise GitHubError(f"Failed to connect to GitHub: {exc}") from exc


def _handle_error(resp: httpx.Response, context: str) -> None:
    if resp.status_code == 404:
        raise GitHubError("Repository not found or is private", status_code=404)
    if resp.status_code in (403, 429):
        if resp.status_code == 429 or "rate limit" in resp.text.lower():
            raise GitHubError("GitHub rate limit exceeded. Try again later.", status_code=429)
        raise GitHubError("Repository is private or access denied", status_code=403)
    if resp.status_code >= 400:
        raise GitHubError(f"{context}: GitHub API error ({resp.status_code}): {resp.text[:200]}", status_code=502)


async def fetch_repository_metadata(
    client: httpx.AsyncClient, owner: str, repo: str, token: str | None = None
) -> models.RepoMetadata:
    resp = await _get(client, f"{GITHUB_API_BASE}/repos/{owner}/{repo}", token)
    _handle_error(resp, "Repository")
    data = resp.json()
    return models.RepoMetadata(
        name=data.get("name") or repo,
        owner=(data.get("owner") or {}).get("login") or owner,
        description=data.get("description") or "",
        primary_language=data.get("language") or "Unknown",
        stars=data.get("stargazers_count") or 0,
        topics=data.get("topics") or [],
        default_branch=data.get("default_branch"),
    )


async def fetch_repo_tree(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    branch: str,
    token: str | None = None,
) -> list[dict]:
    resp = await _get(client, f"{GITHUB_API_BASE}/repos/{owner}/{repo}/git/trees/{branch}", token, params={"recursive": "1"})
    if resp.status_code == 409:
        # GitHub answers 409 for a repository without commits
        return []
    _handle_error(resp, "Repository tree")
    data = resp.json()
    if data.get("truncated"):
        logger.warning(f"Tree for {owner}/{repo} was truncated by GitHub")
    return data.get("tree", [])


def filter_tree(
    tree: list[dict],
    skip_dirs: set[str],
    binary_extensions: set[str],
    max_depth: int,
) -> list[dict]:
    """Keep blobs outside skipped directories, not binary, and at most ``max_depth`` directories deep."""
    result = []
    for entry in tree:
        # Symlinks are blobs with mode 120000
        if entry.get("type") != "blob" or entry.get("mode") == "120000":
            continue

        parts = PurePosixPath(entry["path"]).parts
        if len(parts) - 1 > max_depth:
            continue

        if any(part in skip_dirs for part in parts[:-1]):
            continue

        if PurePosixPath(parts[-1]).suffix.lower() in binary_extensions:
            continue

        result.append(entry)
    return result


async def fetch_file_content(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    path: str,
    token: str | None = None,
) -> str:
    resp = await _get(client, f"{GITHUB_API_BASE}/repos/{owner}/{repo}/contents/{path}", token)
    _handle_error(resp, f"File '{path}'")
    data = resp.json()

    if "content" not in data:
        raise GitHubError(f"Unexpected content format for '{path}'", status_code=502)
    if not data["content"]:
        return ""
    if data.get("encoding") != "base64":
        raise GitHubError(f"Unexpected content encoding for '{path}'", status_code=502)

    try:
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")
    except ValueError as exc:
        raise GitHubError(f"Failed to decode '{path}': {exc}", status_code=502) from exc


async def fetch_files(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    entries: list[dict],
    token: str | None = None,
) -> list[models.FileRecord]:
    """Fetch tree entries concurrently; entries that fail to load are dropped, order is kept.

    A rate limit on any file aborts the whole fetch instead of returning a partial tree.
    """
    semaphore = asyncio.Semaphore(MAX_CONCURRENT_FETCHES)

    async def _fetch_one(entry: dict) -> models.FileRecord | None:
        async with semaphore:
            try:
                content = await fetch_file_content(client, owner, repo, entry["path"], token)
            except GitHubError as exc:
                if exc.status_code == 429:
                    raise
                logger.warning(f"Failed to fetch file {entry['path']}: {exc.message}")
                return None
            return models.FileRecord(path=entry["path"], content=content, size=entry.get("size") or 0)

    results = await asyncio.gather(*[_fetch_one(e) for e in entries])
    return [record for record in results if record is not None]


async def fetch_repository_contents(
    client: httpx.AsyncClient,
    owner: str,
    repo: str,
    branch: str,
    skip_dirs: set[str],
    binary_extensions: set[str],
    max_depth: int,
    token: str | None = None,
) -> list[models.FileRecord]:
    tree = await fetch_repo_tree(client, owner, repo, branch, token)
    entries = filter_tree(tree, skip_dirs, binary_extensions, max_depth)
    logger.info(f"Tree: {len(tree)} entries, {len(entries)} after filtering")
    return await fetch_files(client, owner, repo, entries, token)
