"""Pull structured bits out of the agent's Markdown review.

Generated Markdown is not a stable format, so every lookup here degrades to an
empty result instead of raising when a section is missing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_HANDLE_RE = re.compile(r"@(\w+)")
_NEXT_HEADING_RE = re.compile(r"^##", re.MULTILINE)
_BULLET_RE = re.compile(r"^\s*[-*]\s+(.+?)\s*$", re.MULTILINE)
_SEVERITY_RE = re.compile(r"\[(critical|major|minor|nitpick|high|medium|low)\]", re.IGNORECASE)


@dataclass(frozen=True)
class Concern:
    severity: str
    text: str


def _section(review: str, title: str) -> str | None:
    """Return the body of the first ``##`` heading containing ``title``, up to the next ``##`` heading."""
    heading = re.search(rf"^##[^\n]*{re.escape(title)}[^\n]*$", review, re.MULTILINE)
    if heading is None:
        return None
    body = review[heading.end() :]
    nxt = _NEXT_HEADING_RE.search(body)
    return body[: nxt.start()] if nxt else body


def extract_reviewers(review: str) -> list[str]:
    """Return the @handles listed under "Recommended Reviewers", in order, duplicates kept."""
    section = _section(review or "", "Recommended Reviewers")
    if not section:
        return []
    return _HANDLE_RE.findall(section)


def extract_concerns(review: str) -> list[Concern]:
    section = _section(review or "", "Areas of Concern")
    if not section:
        return []
    concerns = []
    for text in _BULLET_RE.findall(section):
        match = _SEVERITY_RE.search(text)
        concerns.append(Concern(severity=match.group(1).lower() if match else "unspecified", text=text))
    return concerns
