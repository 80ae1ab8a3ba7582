"""Core PR review run: fetch → agent review → display → follow-up actions."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter

from rich.console import Console
from rich.markdown import Markdown

from prpilot_core.actions import ActionLoop, AskFn
from prpilot_core.config import Settings
from prpilot_core.extract import extract_concerns, extract_reviewers
from prpilot_core.gh.pull_request import GitHubGateway
from prpilot_core.gh.reference import resolve
from prpilot_core.models import ReviewOutcome, RunOptions
from prpilot_core.orchestrator import ReviewOrchestrator, review_section
from prpilot_core.prompts import build_user_prompt

console = Console()
logger = logging.getLogger(__name__)

_RULE = "=" * 80


def _banner(text: str) -> None:
    console.print(_RULE)
    console.print(text, highlight=False, markup=False)
    console.print(_RULE)


def run_review(
    options: RunOptions,
    settings: Settings,
    gateway: GitHubGateway | None = None,
    orchestrator: ReviewOrchestrator | None = None,
    ask: AskFn | None = None,
) -> ReviewOutcome:
    """Run one review end to end and return what happened.

    Errors from resolving, fetching and the agent stream propagate to the
    caller. Failures of the follow-up actions are reported and swallowed by
    the action loop, except the direct ``post_comment`` path used in
    non-interactive runs, which propagates so CI sees a non-zero exit.
    """
    ref = resolve(options.pr_reference)
    gateway = gateway or GitHubGateway(settings)
    orchestrator = orchestrator or ReviewOrchestrator(settings, console=console)

    pr = gateway.fetch_pull_request(ref)
    logger.info("Fetched %s: %d file(s), %d diff chars", ref, len(pr.files), len(pr.unified_diff))
    outcome = ReviewOutcome(reference=ref, title=pr.title)

    _banner(f"Analyzing PR #{pr.number}: {pr.title}")
    console.print()

    full_review = asyncio.run(orchestrator.run(build_user_prompt(pr)))
    if not full_review:
        console.print("[yellow]The review agent finished without producing a review.[/yellow]")
        return outcome

    review = review_section(full_review)
    outcome.review = review

    console.print("\n")
    _banner("Review Complete")
    console.print(Markdown(review))

    concerns = extract_concerns(full_review)
    if concerns:
        logger.info("%d concern(s) flagged in the review", len(concerns))
        by_severity = Counter(c.severity for c in concerns)
        breakdown = ", ".join(f"{severity}: {count}" for severity, count in by_severity.items())
        noun = "area" if len(concerns) == 1 else "areas"
        console.print(f"[yellow]⚠ {len(concerns)} {noun} of concern flagged ({breakdown})[/yellow]", highlight=False)

    outcome.reviewers = extract_reviewers(full_review)

    if options.interactive and outcome.reviewers:
        result = ActionLoop(
            gateway,
            ref,
            outcome.reviewers,
            review,
            ask=ask,
            console=console,
            post_comment=options.post_comment,
        ).run()
        outcome.assigned = result.assigned
        outcome.commented = result.commented
    elif options.post_comment:
        console.print("\n▶ Posting comment...")
        gateway.post_comment(ref, review)
        outcome.commented = True
        console.print(f"[green]✓ Comment posted to PR #{ref.number}[/green]")

    return outcome
