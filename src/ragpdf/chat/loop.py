"""Interactive question/answer loop over a built pipeline."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, List

from rich.console import Console
from rich.markup import escape

from ragpdf.errors import RagError
from ragpdf.models import ConversationState, ConversationStatus
from ragpdf.pipeline import Pipeline

LOGGER = logging.getLogger(__name__)


class LoopState(str, Enum):
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    RETRIEVING = "retrieving"
    COMPLETING = "completing"
    TERMINATED = "terminated"


class ConversationLoop:
    """Drives one conversation turn by turn.

    Each turn retrieves context for the user's message, asks the completion
    provider for a reply and records both in the history. A failed turn is
    reported and leaves the history untouched. An exit token, end of input or
    Ctrl+C terminates the loop and closes the pipeline's connections.
    """

    def __init__(
        self,
        pipeline: Pipeline,
        *,
        read_input: Callable[[], str] | None = None,
        console: Console | None = None,
        prompt: str = "> ",
    ) -> None:
        self.pipeline = pipeline
        self.console = console or Console()
        self._read_input = read_input or (lambda: self.console.input(prompt))
        self.state = ConversationState()
        self.loop_state = LoopState.IDLE
        self.transitions: List[LoopState] = [LoopState.IDLE]

    @property
    def terminated(self) -> bool:
        return self.loop_state is LoopState.TERMINATED

    def _transition(self, new_state: LoopState) -> None:
        if self.terminated:
            return
        LOGGER.debug("Conversation state: %s -> %s", self.loop_state.value, new_state.value)
        self.loop_state = new_state
        self.transitions.append(new_state)

    def terminate(self) -> None:
        if self.terminated:
            return
        self._transition(LoopState.TERMINATED)
        self.state.status = ConversationStatus.TERMINATED
        self.pipeline.close()

    def handle_turn(self, text: str) -> str | None:
        """Answer one user message; returns the reply, or None if the turn failed."""
        config = self.pipeline.config
        self._transition(LoopState.RETRIEVING)
        try:
            context = self.pipeline.context_builder.build_context(text)
            self._transition(LoopState.COMPLETING)
            reply = self.pipeline.completer.complete(
                config.preamble, context, tuple(self.state.history), text
            )
        except RagError as exc:
            LOGGER.debug("Turn failed in state %s", self.loop_state.value, exc_info=True)
            self.console.print(f"[red]Error:[/red] {escape(str(exc))}")
            self._transition(LoopState.AWAITING_INPUT)
            return None

        self.state.record_exchange(text, reply)
        self.console.print(f"[bold cyan]Assistant:[/bold cyan] {escape(reply)}")
        self._transition(LoopState.AWAITING_INPUT)
        return reply

    def run(self) -> ConversationState:
        """Run until an exit token, end of input or an interrupt."""
        self._transition(LoopState.AWAITING_INPUT)
        try:
            while not self.terminated:
                try:
                    text = self._read_input()
                except EOFError:
                    break
                if self.pipeline.config.is_exit_token(text):
                    break
                if not text.strip():
                    continue
                self.handle_turn(text.strip())
        except KeyboardInterrupt:
            LOGGER.info("Interrupted, ending chat session")
            self.console.print()
        finally:
            self.terminate()
        return self.state
