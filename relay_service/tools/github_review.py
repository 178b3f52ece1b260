"""Pull request and commit review through the GitHub REST API."""
import asyncio
import datetime
import os
import re
from typing import Any, Dict, List

import httpx
from pydantic import Field

from relay_service.core.logging import logger
from relay_service.tools.base import BaseTool, ToolParams

API_ROOT = "https://api.github.com"
_URL_RE = re.compile(r"https://github\.com/([^/]+)/([^/]+)/(pull|commit)/([a-fA-F0-9]+)")


class GitHubNotFound(Exception):
    pass


def parse_github_url(url: str) -> Dict[str, str]:
    match = _URL_RE.search(url)
    if not match:
        raise ValueError("Invalid GitHub URL. Must be a Pull Request or Commit URL.")
    owner, repo, kind, identifier = match.groups()
    return {"owner": owner, "repo": repo, "type": kind, "identifier": identifier}


def _patch_block(patch: str | None) -> str:
    if patch:
        return f"```diff\n{patch}\n```"
    return "*Binary file or changes too large*"


def format_pr(pr: Dict[str, Any], files: List[Dict[str, Any]], comments: List[Dict[str, Any]]) -> str:
    lines = [
        "## Pull Request Details",
        "",
        f"Title: {pr.get('title', '')}",
        f"Author: {pr.get('user', {}).get('login', '')}",
        f"Description: {(pr.get('body') or '').strip() or 'No description provided'}",
        "",
        "## Files Changed",
    ]
    for f in files:
        lines += ["", f"### {f.get('filename')}", f"Status: {f.get('status')}", "", _patch_block(f.get("patch"))]
    lines += ["", "## Review Comments", ""]
    if comments:
        lines += [f"**{c.get('user', {}).get('login', '')}**: {c.get('body', '')}" for c in comments]
    else:
        lines.append("*No review comments yet*")
    return "\n".join(lines)


def format_commit(commit: Dict[str, Any]) -> str:
    author = commit["commit"]["author"]
    stats = commit.get("stats", {})
    files = commit.get("files", [])
    lines = [
        "## Commit Details",
        "",
        f"- **SHA**: `{commit['sha']}`",
        f"- **Author**: {author.get('name')} ({author.get('email')})",
        f"- **Date**: {author.get('date')}",
        f"- **Message**: {commit['commit'].get('message', '')}",
        "",
        "## Changes Overview",
        f"- Total files changed: {len(files)}",
        f"- Additions: +{stats.get('additions', 0)}",
        f"- Deletions: -{stats.get('deletions', 0)}",
        "",
        "## Detailed Changes",
    ]
    for f in files:
        lines += [
            "",
            f"### {f.get('filename')}",
            f"- Status: {f.get('status')}",
            f"- Changes: +{f.get('additions', 0)} -{f.get('deletions', 0)}",
            "",
            _patch_block(f.get("patch")),
        ]
    return "\n".join(lines)


class GitHubReviewTool(BaseTool):
    """Useful for reviewing GitHub Pull Requests or Commits and providing detailed analysis"""

    class Params(ToolParams):
        url: str = Field(..., description="GitHub Pull Request or Commit URL to review")

    marker_field = "url"

    def __init__(self, token_env: str = "GITHUB_TOKEN", timeout: float = 20.0, max_pages: int = 10):
        super().__init__()
        self.token_env = token_env
        self.timeout = timeout
        self.max_pages = max_pages

    async def _get(self, client: httpx.AsyncClient, path: str, **params) -> Any:
        response = await client.get(f"{API_ROOT}{path}", params=params or None)
        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            reset = datetime.datetime.fromtimestamp(int(response.headers.get("X-RateLimit-Reset", "0")))
            raise ValueError(f"GitHub API rate limit exceeded. Resets at {reset:%Y-%m-%d %H:%M:%S}")
        if response.status_code == 404:
            raise GitHubNotFound(path)
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except ValueError:
                message = response.text
            raise ValueError(f"GitHub API error: {message}")
        return response.json()

    async def _all_pages(self, client: httpx.AsyncClient, path: str) -> List[Any]:
        items: List[Any] = []
        for page in range(1, self.max_pages + 1):
            batch = await self._get(client, path, page=page, per_page=100)
            if not batch:
                break
            items.extend(batch)
        return items

    async def _review_pr(self, client, owner, repo, number) -> str:
        base = f"/repos/{owner}/{repo}"
        pr = await self._get(client, f"{base}/pulls/{number}")
        files, comments, labels = await asyncio.gather(
            self._all_pages(client, f"{base}/pulls/{number}/files"),
            self._all_pages(client, f"{base}/pulls/{number}/comments"),
            self._get(client, f"{base}/issues/{number}/labels"),
        )
        merge_status = "Mergeable" if pr.get("mergeable") else "Has conflicts"
        label_names = ", ".join(label.get("name", "") for label in labels)
        return f"{format_pr(pr, files, comments)}\n\nMerge Status: {merge_status}\nLabels: {label_names}"

    async def _review_commit(self, client, owner, repo, sha) -> str:
        base = f"/repos/{owner}/{repo}"
        commit = await self._get(client, f"{base}/commits/{sha}")
        if not commit.get("sha") or not commit.get("commit"):
            raise ValueError("Invalid commit response format")
        status = await self._get(client, f"{base}/commits/{sha}/status")
        return f"{format_commit(commit)}\n\nCI Status: {status.get('state', 'unknown')}"

    async def run(self, params: Params) -> str:
        token = os.getenv(self.token_env)
        if not token:
            raise ValueError(f"GitHub token is required. Please set {self.token_env} in your environment variables.")
        target = parse_github_url(params.url)
        kind = target["type"]
        logger.info(f"Reviewing GitHub {kind}: {params.url}")

        headers = {"Accept": "application/vnd.github.v3+json", "Authorization": f"Bearer {token}"}
        try:
            async with httpx.AsyncClient(headers=headers, timeout=self.timeout) as client:
                if kind == "pull":
                    return await self._review_pr(client, target["owner"], target["repo"], target["identifier"])
                return await self._review_commit(client, target["owner"], target["repo"], target["identifier"])
        except GitHubNotFound:
            return (
                f"The specified {kind} could not be found. "
                "Please verify the URL and ensure you have access to the repository."
            )
        except (ValueError, httpx.HTTPError) as e:
            return f"Error reviewing GitHub {kind}: {e}"
