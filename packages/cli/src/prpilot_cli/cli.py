"""CLI entry point for prpilot.

    prpilot <pr-reference> [--non-interactive] [--post-comment]

Reviews one pull request with the code-review agent, renders the review in
the terminal and optionally assigns the recommended reviewers and posts the
review back as a PR comment.
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prpilot_core.errors import ConfigError, PRPilotError
from prpilot_core.gh.reference import SUPPORTED_FORMATS

logger = logging.getLogger(__name__)

_EPILOG = f"""\b
Supported PR references: {SUPPORTED_FORMATS}

\b
Examples:
  prpilot facebook/react#12345
  prpilot owner/repo#123 --non-interactive
  prpilot https://github.com/owner/repo/pull/123
"""


def _configure_logging(verbose: int) -> None:
    # 0: WARNING (default), 1 (-v): INFO, 2+ (-vv): DEBUG
    if verbose <= 0:
        level = logging.WARNING
    else:
        level = logging.INFO if verbose == 1 else logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)],
        force=True,
    )


@click.command(context_settings={"help_option_names": ["-h", "--help"]}, epilog=_EPILOG)
@click.version_option(
    version=importlib.metadata.version("prpilot"),
    prog_name="prpilot",
)
@click.argument("pr_reference")
@click.option("--non-interactive", is_flag=True, help="Skip prompts (for CI/CD).")
@click.option(
    "--post-comment",
    is_flag=True,
    help="Post the review as a PR comment without asking (also works with --non-interactive).",
)
@click.option("--model", default=None, help="Agent model name. Overrides config file.")
@click.option(
    "--config",
    "config_path",
    default=".prpilot.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRPILOT_CONFIG",
)
@click.option("-v", "--verbose", count=True, help="Increase log verbosity (-v info, -vv debug).")
def main(
    pr_reference: str,
    non_interactive: bool,
    post_comment: bool,
    model: str | None,
    config_path: str,
    verbose: int,
):
    """AI-assisted GitHub PR review: reviewers, concerns and diagrams.

    \b
    Required environment variables:
      GITHUB_TOKEN         GitHub personal access token (or use gh CLI)
    Optional:
      ANTHROPIC_API_KEY    API key for the review agent
      DIAGRAM_API_KEY      Enables architecture diagrams
      IMAGE_HOST_API_KEY   Enables uploading diagrams into the review
    """
    from prpilot_cli.auth import resolve_github_token
    from prpilot_core.config import Settings, load_config
    from prpilot_core.models import RunOptions
    from prpilot_core.reviewer import run_review

    _configure_logging(verbose)

    try:
        config = load_config(config_path, cli_overrides={"agent_model": model})
        # Resolve token: env var first, then gh CLI session.
        config["github_token"] = resolve_github_token()
        settings = Settings.from_config(config)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    options = RunOptions(
        pr_reference=pr_reference,
        interactive=not non_interactive and bool(config.get("interactive", True)),
        post_comment=post_comment,
    )

    try:
        run_review(options, settings)
    except PRPilotError as e:
        raise click.ClickException(str(e)) from e
    except Exception as e:
        logger.exception("Unexpected error while reviewing %s", pr_reference)
        raise click.ClickException(f"Unexpected error: {e}") from e
