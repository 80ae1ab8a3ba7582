"""GitHub access for a review run.

Reads go through the REST API (PyGithub). Reviewer assignment and comment
posting go through the ``gh`` CLI, the same tool developers already
use to authenticate locally.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
import time
import uuid
from pathlib import Path
from typing import Iterable, Sequence

import requests
from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)
from rich.console import Console

from prpilot_core.config import Settings
from prpilot_core.errors import AuthenticationError, GatewayError, NotFoundError, RateLimitedError
from prpilot_core.models import ChangedFile, PullRequest, PullRequestReference

console = Console()
logger = logging.getLogger(__name__)


def build_unified_diff(files: Iterable[ChangedFile]) -> str:
    """Concatenate per-file patches into one unified diff, in API order.

    Files without a patch (binary, too large) contribute nothing.
    """
    return "\n\n".join(f"diff --git a/{f.path} b/{f.path}\n{f.patch}" for f in files if f.patch)


def _to_changed_file(f) -> ChangedFile:
    return ChangedFile(
        path=f.filename,
        status=f.status,
        additions=f.additions or 0,
        deletions=f.deletions or 0,
        total_changes=f.changes or 0,
        patch=f.patch or None,
    )


def _translate_error(e: Exception, ref: PullRequestReference) -> GatewayError:
    """Map a PyGithub/transport exception onto the gateway error taxonomy."""
    detail = str(e)
    status = getattr(e, "status", None)

    if isinstance(e, UnknownObjectException) or status == 404:
        return NotFoundError(
            f"PR {ref} not found or not accessible. Verify the repository name, the PR number, "
            "and that your GITHUB_TOKEN has access to this repository (repo scope for private repos).",
            original=detail,
        )
    if isinstance(e, BadCredentialsException) or status == 401:
        return AuthenticationError(
            "GitHub rejected the token (invalid or expired). Create a new one at https://github.com/settings/tokens",
            original=detail,
        )
    if isinstance(e, RateLimitExceededException) or status in (403, 429):
        if isinstance(e, RateLimitExceededException) or status == 429 or "rate limit" in detail.lower():
            message = "GitHub API rate limit exceeded. Wait for the quota to reset or use a different token."
        else:
            message = "GitHub denied the request: the token lacks the permission (scope) this action needs."
        return RateLimitedError(message, original=detail)
    return GatewayError(f"GitHub request failed: {detail}", original=detail)


class GitHubGateway:
    def __init__(self, settings: Settings, client: Github | None = None):
        self._settings = settings
        self._client = client or Github(auth=Auth.Token(settings.github_token), per_page=settings.files_per_page)

    # ------------------------------------------------------------------ #
    # Reads                                                                #
    # ------------------------------------------------------------------ #

    def fetch_pull_request(self, ref: PullRequestReference) -> PullRequest:
        """Fetch PR metadata and the first page of changed files.

        Only the first page (``files_per_page``, 100 by default) is retrieved;
        larger PRs are reviewed on that page alone and a warning is shown.
        """
        try:
            repo = self._client.get_repo(ref.slug, lazy=True)
            pull = repo.get_pull(ref.number)
            raw_files = pull.get_files().get_page(0)
        except (GithubException, requests.RequestException, OSError) as e:
            raise _translate_error(e, ref) from e

        files = tuple(_to_changed_file(f) for f in raw_files)
        user = pull.user
        pr = PullRequest(
            number=ref.number,
            title=pull.title or "",
            body=pull.body or "",
            author=(user.login if user is not None else None) or "unknown",
            url=pull.html_url,
            files=files,
            unified_diff=build_unified_diff(files),
            changed_files_total=pull.changed_files or len(files),
        )

        if pr.truncated:
            logger.warning(
                "PR %s changes %d files; only the first %d were fetched.", ref, pr.changed_files_total, len(files)
            )
            console.print(
                f"[yellow]This PR changes {pr.changed_files_total} files; "
                f"only the first {len(files)} are included in the review.[/yellow]"
            )
        return pr

    # ------------------------------------------------------------------ #
    # Mutations (gh CLI)                                                   #
    # ------------------------------------------------------------------ #

    def assign_reviewers(self, ref: PullRequestReference, handles: Sequence[str]) -> None:
        if not handles:
            raise ValueError("At least one reviewer handle is required.")
        self._run_gh(["pr", "edit", str(ref.number), "--repo", ref.slug, "--add-reviewer", ",".join(handles)])
        logger.info("Requested review from %s on %s", ", ".join(handles), ref)

    def post_comment(self, ref: PullRequestReference, body: str) -> None:
        """Post ``body`` as a PR comment via a temp file, which is always removed afterwards."""
        # PR number + timestamp + random suffix keeps concurrent runs from colliding.
        name = f"prpilot-review-{ref.number}-{time.time_ns()}-{uuid.uuid4().hex[:8]}.md"
        temp_path = Path(tempfile.gettempdir()) / name
        try:
            try:
                temp_path.write_text(body, encoding="utf-8")
            except OSError as e:
                raise GatewayError(f"Could not write temporary comment file {temp_path}: {e}", original=str(e)) from e
            self._run_gh(["pr", "comment", str(ref.number), "--repo", ref.slug, "--body-file", str(temp_path)])
        finally:
            try:
                temp_path.unlink(missing_ok=True)
            except OSError as e:
                logger.warning("Could not remove temporary comment file %s: %s", temp_path, e)
        logger.info("Posted review comment on %s", ref)

    def _run_gh(self, args: list[str]) -> None:
        env = {**os.environ, "GH_TOKEN": self._settings.github_token}
        try:
            result = subprocess.run(["gh", *args], capture_output=True, text=True, env=env)
        except FileNotFoundError as e:
            raise GatewayError(
                "The GitHub CLI (gh) is not installed. See https://cli.github.com", original=str(e)
            ) from e
        except OSError as e:
            raise GatewayError(f"Could not run gh {' '.join(args[:2])}: {e}", original=str(e)) from e
        if result.returncode != 0:
            stderr = (result.stderr or "").strip() or f"exit code {result.returncode}"
            raise GatewayError(f"gh {' '.join(args[:2])} failed: {stderr}", original=stderr)
