import pytest

from relay_service.tools.github_review import GitHubReviewTool, format_commit, format_pr, parse_github_url


def test_parse_pull_request_url():
    assert parse_github_url("see https://github.com/octo/repo/pull/42 please") == {
        "owner": "octo", "repo": "repo", "type": "pull", "identifier": "42",
    }


def test_parse_commit_url():
    target = parse_github_url("https://github.com/octo/repo/commit/abc123")
    assert target["type"] == "commit"
    assert target["identifier"] == "abc123"


def test_parse_rejects_other_urls():
    with pytest.raises(ValueError):
        parse_github_url("https://github.com/octo/repo/issues/1")


def test_format_pr():
    pr = {"title": "Fix bug", "user": {"login": "dev"}, "body": None}
    files = [{"filename": "a.py", "status": "modified", "patch": "@@ -1 +1 @@\n-x\n+y"}]
    text = format_pr(pr, files, [])
    assert "Title: Fix bug" in text
    assert "Description: No description provided" in text
    assert "```diff\n@@ -1 +1 @@\n-x\n+y\n```" in text
    assert "*No review comments yet*" in text


def test_format_commit():
    commit = {
        "sha": "abc",
        "commit": {"author": {"name": "Dev", "email": "dev@example.com", "date": "2024-01-01"}, "message": "msg"},
        "stats": {"additions": 3, "deletions": 1},
        "files": [{"filename": "b.bin", "status": "added", "additions": 0, "deletions": 0}],
    }
    text = format_commit(commit)
    assert "- **SHA**: `abc`" in text
    assert "- Additions: +3" in text
    assert "*Binary file or changes too large*" in text


@pytest.mark.asyncio
async def test_token_is_required(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    tool = GitHubReviewTool()
    with pytest.raises(ValueError, match="GITHUB_TOKEN"):
        await tool.run(tool.Params(url="https://github.com/o/r/pull/1"))
