"""PR data models.

All models are frozen snapshots: built once from the GitHub response at the
start of a run and only read afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from prpilot_core.errors import InvalidReferenceError


@dataclass(frozen=True)
class PullRequestReference:
    owner: str
    repository: str
    number: int

    def __post_init__(self):
        for name, value in (("owner", self.owner), ("repository", self.repository)):
            if not value or "/" in value or "#" in value:
                raise InvalidReferenceError(f"Invalid {name} in PR reference: {value!r}")
        if self.number <= 0:
            raise InvalidReferenceError(f"PR number must be positive, got {self.number}")

    @property
    def slug(self) -> str:
        return f"{self.owner}/{self.repository}"

    def __str__(self) -> str:
        return f"{self.slug}#{self.number}"


@dataclass(frozen=True)
class ChangedFile:
    """One entry of the PR file list.

    ``patch`` is None when GitHub omits it (binary files, very large diffs).
    """

    path: str
    status: str  # "added" | "modified" | "removed" | "renamed"
    additions: int = 0
    deletions: int = 0
    total_changes: int = 0
    patch: str | None = None


@dataclass(frozen=True)
class PullRequest:
    number: int
    title: str
    body: str
    author: str
    url: str
    files: tuple[ChangedFile, ...] = ()
    unified_diff: str = ""
    changed_files_total: int = 0

    @property
    def truncated(self) -> bool:
        """True when GitHub reports more changed files than were fetched."""
        return self.changed_files_total > len(self.files)


@dataclass(frozen=True)
class RunOptions:
    """Command-line choices for a single run."""

    pr_reference: str
    interactive: bool = True
    post_comment: bool = False


@dataclass
class ReviewOutcome:
    """What a run produced, as returned by run_review."""

    reference: PullRequestReference
    title: str
    review: str = ""
    reviewers: list[str] = field(default_factory=list)
    assigned: bool = False
    commented: bool = False
