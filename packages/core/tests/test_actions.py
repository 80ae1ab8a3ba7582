"""Tests for the interactive follow-up action loop."""

import io
from unittest.mock import MagicMock

import pytest
from rich.console import Console

from prpilot_core.actions import ActionLoop, LoopState, is_affirmative
from prpilot_core.config import Settings
from prpilot_core.errors import GatewayError
from prpilot_core.gh.pull_request import GitHubGateway
from prpilot_core.models import PullRequestReference

REF = PullRequestReference(owner="owner", repository="repo", number=7)
REVIEW = "## 📋 PR Summary\nLooks fine."


class FakeGateway:
    def __init__(self, fail_assign=False, fail_comment=False):
        self.fail_assign = fail_assign
        self.fail_comment = fail_comment
        self.assigned = []
        self.comments = []

    def assign_reviewers(self, ref, handles):
        if self.fail_assign:
            raise GatewayError("gh pr edit failed: not a collaborator")
        self.assigned.append((ref, list(handles)))

    def post_comment(self, ref, body):
        if self.fail_comment:
            raise GatewayError("gh pr comment failed: HTTP 403")
        self.comments.append((ref, body))


def answers(*replies):
    """Return an ask() callable that replays ``replies`` and records the questions."""
    it = iter(replies)
    questions = []

    def ask(question):
        questions.append(question)
        return next(it)

    ask.questions = questions
    return ask


def make_console():
    return Console(file=io.StringIO(), width=200, force_terminal=False, color_system=None)


def make_loop(gateway, ask, reviewers=("alice", "bob"), **kwargs):
    return ActionLoop(gateway, REF, list(reviewers), REVIEW, ask=ask, console=make_console(), **kwargs)


class TestIsAffirmative:
    @pytest.mark.parametrize("answer", ["y", "Y", "yes", "YES", "Yes"])
    def test_accepts_yes(self, answer):
        assert is_affirmative(answer) is True

    @pytest.mark.parametrize("answer", ["", "n", "no", "yep", "sure", "1", " y ", None])
    def test_everything_else_is_no(self, answer):
        assert is_affirmative(answer) is False


class TestActionLoop:
    def test_no_then_yes_posts_comment_only(self):
        gateway = FakeGateway()
        ask = answers("n", "y")

        result = make_loop(gateway, ask).run()

        assert gateway.assigned == []
        assert gateway.comments == [(REF, REVIEW)]
        assert result.assigned is False
        assert result.commented is True
        assert len(ask.questions) == 2

    def test_yes_yes_runs_both_actions(self):
        gateway = FakeGateway()
        result = make_loop(gateway, answers("yes", "YES")).run()
        assert gateway.assigned == [(REF, ["alice", "bob"])]
        assert len(gateway.comments) == 1
        assert result.assigned and result.commented

    def test_default_answer_is_no(self):
        gateway = FakeGateway()
        result = make_loop(gateway, answers("", "")).run()
        assert gateway.assigned == []
        assert gateway.comments == []
        assert not result.assigned and not result.commented

    def test_failed_assignment_still_prompts_for_comment(self):
        gateway = FakeGateway(fail_assign=True)
        ask = answers("y", "y")
        loop = make_loop(gateway, ask)

        result = loop.run()

        assert len(ask.questions) == 2
        assert result.assigned is False
        assert result.commented is True
        assert "Could not assign reviewers" in loop._console.file.getvalue()

    def test_failed_comment_is_reported_not_raised(self):
        gateway = FakeGateway(fail_comment=True)
        loop = make_loop(gateway, answers("n", "y"))
        result = loop.run()
        assert result.commented is False
        assert "HTTP 403" in loop._console.file.getvalue()
        assert loop.state is LoopState.DONE

    def test_reaches_done(self):
        loop = make_loop(FakeGateway(), answers("n", "n"))
        assert loop.state is LoopState.AWAITING_ASSIGN
        loop.run()
        assert loop.state is LoopState.DONE

    def test_post_comment_flag_skips_comment_question(self):
        gateway = FakeGateway()
        ask = answers("n")
        result = make_loop(gateway, ask, post_comment=True).run()
        assert len(ask.questions) == 1
        assert result.commented is True

    def test_end_of_input_counts_as_no(self):
        def ask(question):
            raise EOFError

        gateway = FakeGateway()
        loop = make_loop(gateway, ask)
        result = loop.run()
        assert gateway.assigned == [] and gateway.comments == []
        assert not result.assigned and not result.commented
        assert loop.state is LoopState.DONE

    def test_session_closed_on_interrupt(self):
        def ask(question):
            raise KeyboardInterrupt

        loop = make_loop(FakeGateway(), ask)
        with pytest.raises(KeyboardInterrupt):
            loop.run()
        assert loop.state is LoopState.DONE

    def test_unwritable_temp_dir_does_not_end_run(self, tmp_path, mocker):
        mocker.patch("tempfile.gettempdir", return_value=str(tmp_path / "missing-dir"))
        mocker.patch("subprocess.run", return_value=MagicMock(returncode=0, stderr=""))
        gateway = GitHubGateway(Settings(github_token="tok"), client=MagicMock())
        loop = make_loop(gateway, answers("y", "y"))

        result = loop.run()

        assert result.assigned is True
        assert result.commented is False
        assert "Could not post comment" in loop._console.file.getvalue()
        assert loop.state is LoopState.DONE

    def test_found_reviewers_line(self):
        loop = make_loop(FakeGateway(), answers("n", "n"), reviewers=["alice"])
        loop.run()
        output = loop._console.file.getvalue()
        assert "Found 1 reviewer: @alice" in output
