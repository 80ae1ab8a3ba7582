from __future__ import annotations

import re

from prpilot_core.errors import InvalidReferenceError
from prpilot_core.models import PullRequestReference

SUPPORTED_FORMATS = "github.com/owner/repo/pull/123, owner/repo#123, owner/repo/pull/123"

# Tried in order; the first match wins.
_PATTERNS = (
    re.compile(r"github\.com/([^/]+)/([^/]+)/pull/(\d+)"),
    re.compile(r"^([^/#]+)/([^/#]+)#(\d+)$"),
    re.compile(r"^([^/]+)/([^/]+)/pull/(\d+)$"),
)


def resolve(identifier: str) -> PullRequestReference:
    """Parse a PR URL or shorthand into a PullRequestReference."""
    text = (identifier or "").strip()
    for pattern in _PATTERNS:
        match = pattern.search(text)
        if match:
            owner, repository, number = match.groups()
            return PullRequestReference(owner=owner, repository=repository, number=int(number, 10))

    raise InvalidReferenceError(f"Invalid PR identifier: {identifier}\nSupported: {SUPPORTED_FORMATS}")
