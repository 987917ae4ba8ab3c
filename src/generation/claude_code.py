"""Claude text generator: sends one request through the claude-agent-sdk."""

from __future__ import annotations

import asyncio
import logging
import os
import re

# Allow nested invocation from within a Claude Code session.
# The SDK spawns claude CLI which checks for this env var.
os.environ.pop("CLAUDECODE", None)

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    CLIConnectionError,
    CLINotFoundError,
    ProcessError,
    ResultMessage,
    TextBlock,
    query,
)

from src.generation.exceptions import TRANSIENT_STATUSES, GenerationError
from src.generation.retry import is_transient_message
from src.generation.types import GenerationRequest

logger = logging.getLogger(__name__)

_STATUS_RE = re.compile(r"\b(429|500|502|503|529)\b")


def _status_from_text(text: str) -> int | None:
    match = _STATUS_RE.search(text)
    if match:
        return int(match.group(1))
    lowered = text.lower()
    if "rate limit" in lowered:
        return 429
    if "overloaded" in lowered or "service unavailable" in lowered:
        return 503
    return None


def _error_from_text(prefix: str, text: str) -> GenerationError:
    status = _status_from_text(text)
    transient = status in TRANSIENT_STATUSES or is_transient_message(text)
    return GenerationError(f"{prefix}: {text}", status=status, transient=transient)


class ClaudeTextGenerator:
    """Text-in, text-out generation via the SDK's query() function.

    No tools are offered and a single turn is allowed, so the reply is the
    model's answer to the request and nothing else. SDK failures are mapped
    onto GenerationError with a transient flag the retry policy understands.
    """

    def __init__(
        self,
        model: str = "sonnet",
        timeout: int = 600,
        max_turns: int = 1,
    ) -> None:
        self._model = model
        self._timeout = timeout
        self._max_turns = max_turns

    @property
    def name(self) -> str:
        return f"ClaudeTextGenerator ({self._model})"

    async def generate(self, request: GenerationRequest) -> str:
        options = ClaudeAgentOptions(
            model=self._model,
            system_prompt=request.system,
            allowed_tools=[],
            max_turns=self._max_turns,
        )

        text_parts: list[str] = []
        result_text: str | None = None
        is_error = False

        logger.debug("Sending %s request (%d chars)", request.label, len(request.user))
        try:
            async with asyncio.timeout(self._timeout):
                async for message in query(prompt=request.user, options=options):
                    if isinstance(message, AssistantMessage):
                        for block in message.content:
                            if isinstance(block, TextBlock):
                                text_parts.append(block.text)
                    elif isinstance(message, ResultMessage):
                        is_error = message.is_error
                        result_text = message.result
        except TimeoutError as exc:
            raise GenerationError(
                f"Claude request timed out after {self._timeout}s", transient=True,
            ) from exc
        except CLINotFoundError as exc:
            raise GenerationError(f"Claude CLI not available: {exc}", transient=False) from exc
        except CLIConnectionError as exc:
            raise GenerationError(f"Connection error: {exc}", transient=True) from exc
        except ProcessError as exc:
            raise _error_from_text("Claude process failed", str(exc)) from exc

        output = result_text if result_text else "\n".join(text_parts)
        output = output.strip()

        if is_error:
            raise _error_from_text("Claude returned an error", output or "(no detail)")
        return output
