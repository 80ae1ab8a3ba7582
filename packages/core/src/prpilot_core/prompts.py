"""Prompt text and the review-text contract.

The heading constants below are shared by three consumers: the system prompt
(which tells the agent to emit them), the orchestrator (which suppresses the
final review from the live stream when it sees SUMMARY_HEADING) and the
extractor (which looks up REVIEWERS_HEADING). Change them together and bump
REVIEW_FORMAT_VERSION.
"""

from __future__ import annotations

from prpilot_core.models import PullRequest

REVIEW_FORMAT_VERSION = 1

SUMMARY_HEADING = "## 📋 PR Summary"
REVIEWERS_HEADING = "## 👥 Recommended Reviewers"
CONCERNS_HEADING = "## ⚠️ Areas of Concern"
VISUALS_HEADING = "## 🎨 Visual Explanations"
ASSESSMENT_HEADING = "## ✅ Overall Assessment"

NO_DESCRIPTION = "(No description provided)"

SYSTEM_PROMPT = f"""You are a code review assistant analyzing a GitHub pull request.

Use the code-review-assistant skill to:
1. Recommend appropriate reviewers based on code changes
2. Detect issues against coding standards
3. Generate visual explanations for complex changes
4. Provide a comprehensive review

Be thorough but concise. Focus on actionable feedback.

Present the final review as Markdown with these sections, in this order:
{SUMMARY_HEADING}
{REVIEWERS_HEADING}
- @handle (Name) - reason
{CONCERNS_HEADING}
- **[critical|major|minor]** description
{VISUALS_HEADING}
(optional image links)
{ASSESSMENT_HEADING}

IMPORTANT: Do NOT ask about auto-assigning reviewers or posting comments.
The agent handles these actions. Simply present the final review."""


def format_for_agent(pr: PullRequest) -> str:
    """Serialize a PR into the single text block handed to the review agent."""
    files_list = "\n".join(f"  - {f.path} (+{f.additions}, -{f.deletions})" for f in pr.files)

    return f"""
# Pull Request #{pr.number}: {pr.title}

**Author:** @{pr.author}
**URL:** {pr.url}

## Description

{pr.body or NO_DESCRIPTION}

## Changed Files

{files_list}

## Full Diff

```diff
{pr.unified_diff}
```
""".strip()


def build_user_prompt(pr: PullRequest) -> str:
    return f"Please review this pull request:\n\n{format_for_agent(pr)}"
