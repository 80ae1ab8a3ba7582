"""Interactive follow-up actions after a review.

    AWAITING_ASSIGN → AWAITING_COMMENT → DONE

Each step asks a yes/no question and, on "y"/"yes", calls the gateway.
A failed action is reported and the loop moves on; it never aborts the run.
"""

from __future__ import annotations

import contextlib
import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Protocol, Sequence

from rich.console import Console
from rich.markup import escape

from prpilot_core.errors import GatewayError
from prpilot_core.models import PullRequestReference

logger = logging.getLogger(__name__)

AskFn = Callable[[str], str]


class ReviewActions(Protocol):
    def assign_reviewers(self, ref: PullRequestReference, handles: Sequence[str]) -> None: ...

    def post_comment(self, ref: PullRequestReference, body: str) -> None: ...


class LoopState(enum.Enum):
    AWAITING_ASSIGN = "awaiting_assign"
    AWAITING_COMMENT = "awaiting_comment"
    DONE = "done"


@dataclass
class ActionResult:
    assigned: bool = False
    commented: bool = False


def is_affirmative(answer: str | None) -> bool:
    """Only an explicit "y" or "yes" (any case) counts; everything else means no."""
    return (answer or "").lower() in ("y", "yes")


def format_handles(handles: Sequence[str]) -> str:
    return ", ".join(f"@{h}" for h in handles)


class ActionLoop:
    def __init__(
        self,
        gateway: ReviewActions,
        ref: PullRequestReference,
        reviewers: Sequence[str],
        review: str,
        ask: AskFn | None = None,
        console: Console | None = None,
        post_comment: bool = False,
    ):
        self._gateway = gateway
        self._ref = ref
        self._reviewers = list(reviewers)
        self._review = review
        self._console = console or Console()
        self._ask = ask or self._console.input
        self._post_comment = post_comment
        self.state = LoopState.AWAITING_ASSIGN

    def run(self) -> ActionResult:
        result = ActionResult()
        self._console.print("\n" + "─" * 80)
        plural = "s" if len(self._reviewers) > 1 else ""
        found = f"Found {len(self._reviewers)} reviewer{plural}: {format_handles(self._reviewers)}"
        self._console.print(f"\n[green]✓[/green] {found}", highlight=False)

        with self._session() as ask:
            while self.state is not LoopState.DONE:
                if self.state is LoopState.AWAITING_ASSIGN:
                    if is_affirmative(ask("\nAuto-assign these reviewers? (y/N): ")):
                        result.assigned = self._assign()
                    self.state = LoopState.AWAITING_COMMENT
                elif self.state is LoopState.AWAITING_COMMENT:
                    if self._post_comment or is_affirmative(ask("\nPost review as PR comment? (y/N): ")):
                        result.commented = self._comment()
                    self.state = LoopState.DONE
        return result

    @contextlib.contextmanager
    def _session(self) -> Iterator[AskFn]:
        """Scope the operator prompt; end of input counts as "no" and the session always closes."""

        def ask(question: str) -> str:
            try:
                return self._ask(question)
            except EOFError:
                return ""

        try:
            yield ask
        finally:
            self.state = LoopState.DONE
            self._console.print()
            logger.debug("Action prompt session closed for %s", self._ref)

    def _assign(self) -> bool:
        self._console.print("\n▶ Assigning reviewers...")
        try:
            self._gateway.assign_reviewers(self._ref, self._reviewers)
        except GatewayError as e:
            logger.error("Reviewer assignment failed for %s: %s", self._ref, e)
            self._console.print(f"[red]✗ Could not assign reviewers: {escape(str(e))}[/red]")
            return False
        self._console.print(f"[green]✓ Assigned: {format_handles(self._reviewers)}[/green]", highlight=False)
        return True

    def _comment(self) -> bool:
        self._console.print("\n▶ Posting comment...")
        try:
            self._gateway.post_comment(self._ref, self._review)
        except GatewayError as e:
            logger.error("Posting review comment failed for %s: %s", self._ref, e)
            self._console.print(f"[red]✗ Could not post comment: {escape(str(e))}[/red]")
            return False
        self._console.print(f"[green]✓ Comment posted to PR #{self._ref.number}[/green]")
        return True
