"""GitHub token resolution with gh CLI fallback.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable (CI / explicit override, or .env)
  2. `gh auth token` (GitHub CLI session, works after `gh auth login`)

The placeholder value from the sample .env counts as unset, so a fresh
checkout falls through to the gh session instead of failing on a dummy token.
"""

from __future__ import annotations

import logging
import os
import subprocess

from prpilot_core.config import TOKEN_PLACEHOLDER

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no valid source is available.

    Never raises; callers validate the result and report a setup hint.
    """
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if token and token != TOKEN_PLACEHOLDER:
        return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode == 0:
            gh_token = result.stdout.strip()
            if gh_token:
                logger.debug("Resolved GitHub token via gh CLI session.")
                return gh_token
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or timed out, fall through.
        pass

    return None
