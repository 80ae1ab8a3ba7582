"""Drive the review agent and stream its output to the terminal.

SDK messages are first normalised into a closed set of events so the
streaming loop only ever branches on our own types:

    AssistantMessage / UserMessage → TextEvent (first text block) + ToolUseEvent per tool call
    ResultMessage                  → ResultEvent, or ErrorEvent when is_error is set
    anything else                  → ignored (system notices, partial stream events)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Callable, Union

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ResultMessage,
    TextBlock,
    ToolUseBlock,
    UserMessage,
    query,
)
from rich.console import Console

from prpilot_core.config import Settings
from prpilot_core.errors import OrchestratorError
from prpilot_core.prompts import SUMMARY_HEADING, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

QueryFn = Callable[..., AsyncIterator[Any]]


@dataclass(frozen=True)
class TextEvent:
    text: str


@dataclass(frozen=True)
class ToolUseEvent:
    name: str
    input: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ResultEvent:
    result: str


@dataclass(frozen=True)
class ErrorEvent:
    message: str


AgentEvent = Union[TextEvent, ToolUseEvent, ResultEvent, ErrorEvent]


def to_events(message: Any) -> list[AgentEvent]:
    """Translate one SDK message into zero or more AgentEvents."""
    if isinstance(message, ResultMessage):
        if message.is_error:
            return [ErrorEvent(message=message.result or f"agent run failed ({message.subtype})")]
        return [ResultEvent(result=message.result or "")]

    if isinstance(message, (AssistantMessage, UserMessage)):
        content = message.content
        if isinstance(content, str):
            return [TextEvent(text=content)] if content else []
        events: list[AgentEvent] = []
        text_block = next((b for b in content if isinstance(b, TextBlock)), None)
        if text_block is not None and text_block.text:
            events.append(TextEvent(text=text_block.text))
        events.extend(
            ToolUseEvent(name=b.name, input=dict(b.input or {})) for b in content if isinstance(b, ToolUseBlock)
        )
        return events

    return []


def review_section(full_review: str) -> str:
    """Return the consolidated review, starting at the summary heading when present."""
    start = full_review.find(SUMMARY_HEADING)
    return full_review[start:] if start != -1 else full_review


class ReviewOrchestrator:
    def __init__(self, settings: Settings, query_fn: QueryFn | None = None, console: Console | None = None):
        self._settings = settings
        self._query = query_fn or query
        self._console = console or Console()

    def build_options(self) -> ClaudeAgentOptions:
        return ClaudeAgentOptions(
            system_prompt=SYSTEM_PROMPT,
            allowed_tools=list(self._settings.allowed_tools),
            setting_sources=list(self._settings.setting_sources),
            model=self._settings.agent_model,
            env=self._settings.agent_env(),
        )

    async def run(self, prompt: str) -> str:
        """Send one request and consume the event stream until it ends.

        Returns the payload of the last result event, or "" if none arrived.
        Raises OrchestratorError on an error event or a failing stream; there
        is no retry.
        """
        full_review = ""
        try:
            async for message in self._query(prompt=prompt, options=self.build_options()):
                for event in to_events(message):
                    full_review = self._handle(event, full_review)
        except OrchestratorError:
            raise
        except Exception as e:
            raise OrchestratorError(f"Review agent failed: {e}") from e
        return full_review

    def _handle(self, event: AgentEvent, full_review: str) -> str:
        if isinstance(event, TextEvent):
            # The final review streams in as well; it is shown once, from the result event.
            if SUMMARY_HEADING not in event.text:
                self._console.out(event.text, end="" if event.text.endswith("\n") else "\n", highlight=False)
            return full_review
        if isinstance(event, ToolUseEvent):
            logger.debug("Agent tool call: %s %s", event.name, event.input)
            return full_review
        if isinstance(event, ResultEvent):
            return event.result
        if isinstance(event, ErrorEvent):
            raise OrchestratorError(f"Review agent reported an error: {event.message}")
        raise TypeError(f"Unhandled agent event: {event!r}")
