"""
Conversation-turn orchestration on top of a streaming provider.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from ..cancellation import iterate_until_cancelled
from ..conversation import ConversationStore, is_placeholder
from ..prompt import CapturedError, PromptBuilder
from ..providers.base import Provider, ToolDescriptor
from ..tools import ToolCallAccumulator, ToolRegistry
from ..types import (
    ChatMode,
    End,
    Message,
    ProviderEvent,
    Role,
    TextDelta,
    ToolCall,
    ToolCallDelta,
)
from .config import AgentConfig
from .turn import Turn, TurnState

logger = logging.getLogger(__name__)


class TurnOrchestrator:
    """
    Drives one conversational turn at a time per mode.

    For every user message the orchestrator streams the model's reply into a
    placeholder message, executes the tool calls the model makes as soon as
    each call is complete, sends the tool results back for a follow-up round,
    and finalizes the placeholder with a single coherent answer.

    Only the most recent turn of a mode may write to that mode's conversation.
    Each turn gets a monotonically increasing request id; every continuation
    (stream step, tool completion, follow-up step, commit, error path)
    re-checks it and quietly stops when a newer turn took over.

    Example:
        >>> orchestrator = TurnOrchestrator(
        ...     provider=create_provider("anthropic"),
        ...     registry=build_default_registry(),
        ... )
        >>> turn = await orchestrator.send_message("Why is my service worker failing?")
        >>> print(turn.state, orchestrator.messages[-1].content)
    """

    def __init__(
        self,
        provider: Provider,
        registry: Optional[ToolRegistry] = None,
        store: Optional[ConversationStore] = None,
        config: Optional[AgentConfig] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        self.provider = provider
        self.registry = registry if registry is not None else ToolRegistry()
        self.store = store if store is not None else ConversationStore()
        self.config = config or AgentConfig()
        self.prompt_builder = prompt_builder or PromptBuilder()

        # Context rendered into the mode prompts; owned by the hosting UI.
        self.selected_error: Optional[CapturedError] = None
        self.sdk_config: Optional[Mapping[str, Any]] = None

        self.last_error: Optional[str] = None
        self._request_ids = itertools.count(1)
        self._current: Dict[ChatMode, Turn] = {}

    # -- read-only state --------------------------------------------------

    @property
    def active_mode(self) -> ChatMode:
        return self.store.active_mode

    @property
    def messages(self) -> Tuple[Message, ...]:
        """Messages of the active mode."""
        return self.store.messages()

    @property
    def current_turn(self) -> Optional[Turn]:
        return self._current.get(self.store.active_mode)

    @property
    def is_loading(self) -> bool:
        turn = self.current_turn
        return (
            turn is not None and not turn.state.is_terminal and not turn.cancel_token.cancelled
        )

    # -- inbound operations ---------------------------------------------

    def switch_mode(self, mode: Union[ChatMode, str]) -> ChatMode:
        """Make ``mode`` active. Turns running in other modes keep going."""
        return self.store.switch_mode(mode)

    def stop_generation(self, mode: Union[ChatMode, str, None] = None) -> bool:
        """
        Cancel the current turn of ``mode`` (default: the active mode).

        The open transport is abandoned immediately, no error is shown and
        the placeholder keeps whatever text had arrived, unfinalized.
        Returns False when there was nothing to stop.
        """
        turn = self._current.get(self._resolve_mode(mode))
        if turn is None or turn.state.is_terminal or turn.cancel_token.cancelled:
            return False
        logger.debug("Stopping turn %d", turn.request_id)
        turn.cancel_token.cancel("stopped")
        return True

    def clear_messages(self, mode: Union[ChatMode, str, None] = None) -> None:
        """Empty the conversation of ``mode``; a turn still running there is cancelled."""
        mode = self._resolve_mode(mode)
        turn = self._current.pop(mode, None)
        if turn is not None and not turn.state.is_terminal:
            turn.stale = True
            turn.cancel_token.cancel("cleared")
        self.store.clear(mode)
        self.last_error = None

    async def send_message(
        self,
        text: str,
        *,
        mode: Union[ChatMode, str, None] = None,
        timeout: Optional[float] = None,
    ) -> Turn:
        """
        Run one full turn for ``text`` and return it once it is terminal.

        Args:
            text: The user's message. Leading/trailing whitespace is dropped.
            mode: Conversation to use (default: the active mode).
            timeout: Seconds after which the turn is cancelled like a manual
                stop. Falls back to ``AgentConfig.turn_timeout``.

        Raises:
            ValueError: If ``text`` is blank.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message text must not be empty")

        mode = self._resolve_mode(mode)
        turn = Turn(request_id=next(self._request_ids), mode=mode, user_text=text)
        self._supersede(mode, turn)
        self.last_error = None

        deadline = timeout if timeout is not None else self.config.turn_timeout
        if deadline is not None:
            turn.cancel_token.cancel_after(deadline)

        conversation = self.store.conversation(mode)
        leftover = conversation.find_last(is_placeholder)
        if leftover is not None and leftover.content.strip():
            conversation.finalize_last(is_placeholder)
            logger.debug("Sealed unfinished reply before turn %d", turn.request_id)
        elif leftover is not None:
            conversation.remove_last(is_placeholder)
            logger.debug("Dropped empty unfinished reply before turn %d", turn.request_id)
        conversation.append(Message(role=Role.USER, content=text))
        history = self._history(conversation.messages())
        conversation.append(Message(role=Role.ASSISTANT, content="", finalized=False))

        logger.debug("Turn %d started in %s mode", turn.request_id, mode.value)
        self._call_hook("on_turn_start", turn)
        try:
            await self._run(turn, history)
        except asyncio.CancelledError:
            turn.cancel_token.cancel("task cancelled")
            self._deactivate(turn)
            self._call_hook("on_turn_end", turn)
            raise
        except Exception as exc:
            self._fail(turn, exc)
        finally:
            turn.cancel_token.clear_deadline()

        self._call_hook("on_turn_end", turn)
        return turn

    def finalize_turn(
        self, turn: Turn, content: str, state: TurnState = TurnState.COMPLETE
    ) -> bool:
        """
        Commit ``content`` as the turn's answer.

        Idempotent: only the first call for a turn has an effect. A turn that
        is no longer current, or already reached a terminal state, commits
        nothing. Returns True when the placeholder was finalized.
        """
        if turn.finalized or turn.state.is_terminal or not self._is_current(turn):
            return False
        turn.final_text = content
        self.store.finalize_last(is_placeholder, content, mode=turn.mode)
        self._set_state(turn, state)
        return True

    async def aclose(self) -> None:
        for turn in self._current.values():
            if not turn.state.is_terminal:
                turn.cancel_token.cancel("closed")
        await self.provider.aclose()

    # -- turn protocol ----------------------------------------------------

    async def _run(self, turn: Turn, history: List[Message]) -> None:
        system_prompt = self._system_prompt(turn.mode)
        tools = self.registry.schemas() if self.config.offer_tools and len(self.registry) else None

        self._set_state(turn, TurnState.PRIMARY_STREAM)
        accumulator = ToolCallAccumulator()
        events = self._events(turn, history, system_prompt, tools)
        try:
            async for event in events:
                if isinstance(event, TextDelta):
                    turn.primary_text += event.content
                    self._write(turn, turn.primary_text)
                    self._call_hook("on_text_delta", turn, event.content)
                elif isinstance(event, ToolCallDelta):
                    finished = accumulator.feed(event)
                    if finished is not None and not await self._execute(turn, finished):
                        return
                elif isinstance(event, End):
                    break
        finally:
            await events.aclose()

        if not self._is_live(turn):
            self._deactivate(turn)
            return

        finished = accumulator.finish()
        if finished is not None and not await self._execute(turn, finished):
            return

        if turn.tool_calls:
            await self._follow_up(turn, history, system_prompt)
            if not self._is_live(turn):
                self._deactivate(turn)
                return

        self.finalize_turn(turn, self._final_text(turn))
        logger.info(
            "Turn %d complete (%d tool call(s), %d chars)",
            turn.request_id,
            len(turn.tool_calls),
            len(turn.final_text or ""),
        )

    async def _follow_up(self, turn: Turn, history: List[Message], system_prompt: str) -> None:
        self._set_state(turn, TurnState.FOLLOW_UP_STREAM)
        self._write(turn, self.config.follow_up_notice)

        results = json.dumps(turn.tool_results, indent=2, default=str, ensure_ascii=False)
        messages = list(history) + [
            Message(role=Role.ASSISTANT, content=self.config.follow_up_acknowledgment),
            Message(role=Role.USER, content=self.config.follow_up_instruction.format(results=results)),
        ]

        events = self._events(turn, messages, system_prompt, None)
        try:
            async for event in events:
                if isinstance(event, TextDelta):
                    turn.follow_up_text += event.content
                    self._write(turn, turn.follow_up_text)
                    self._call_hook("on_text_delta", turn, event.content)
                elif isinstance(event, ToolCallDelta):
                    logger.debug("Ignoring tool call fragment in follow-up round: %s", event.id)
                elif isinstance(event, End):
                    break
        finally:
            await events.aclose()

    async def _execute(self, turn: Turn, call: ToolCall) -> bool:
        """Run one finalized call. Returns False when the turn lost its right to continue."""
        if not self._is_live(turn):
            self._deactivate(turn)
            return False

        self._set_state(turn, TurnState.EXECUTING_TOOLS)
        self._call_hook("on_tool_start", turn, call)
        result = await self.registry.execute_call(call)
        turn.tool_calls.append(call)

        if not self._is_live(turn):
            self._deactivate(turn)
            return False

        self._call_hook("on_tool_end", turn, call, result)
        if self.config.show_tool_notices:
            self.store.append(
                Message(role=Role.SYSTEM, content=f"Used tool `{call.name}`"), mode=turn.mode
            )
        self._set_state(turn, TurnState.PRIMARY_STREAM)
        return True

    async def _events(
        self,
        turn: Turn,
        messages: Sequence[Message],
        system_prompt: str,
        tools: Optional[List[ToolDescriptor]],
    ) -> AsyncIterator[ProviderEvent]:
        stream = self.provider.stream(
            messages=messages,
            system_prompt=system_prompt,
            tools=tools,
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            cancel_token=turn.cancel_token,
        )
        source = iterate_until_cancelled(stream, turn.cancel_token)
        try:
            async for event in source:
                if not self._is_live(turn):
                    logger.debug("Turn %d went stale mid-stream", turn.request_id)
                    break
                yield event
        finally:
            await source.aclose()

    def _final_text(self, turn: Turn) -> str:
        if turn.tool_calls:
            if turn.follow_up_text.strip():
                return turn.follow_up_text
            if turn.primary_text.strip():
                return turn.primary_text
            return self.config.follow_up_fallback_notice
        if turn.primary_text.strip():
            return turn.primary_text
        return self.config.empty_response_notice

    def _fail(self, turn: Turn, exc: Exception) -> None:
        if not self._is_live(turn):
            # Errors raised while a stop or a newer turn tears the stream down are not shown.
            logger.debug("Turn %d ended with %r after it was stopped", turn.request_id, exc)
            self._deactivate(turn)
            return

        message = str(exc) or type(exc).__name__
        logger.warning("Turn %d failed: %s", turn.request_id, message)
        turn.error = exc
        self.last_error = message
        self._call_hook("on_error", turn, exc)
        self.finalize_turn(
            turn,
            self.config.error_notice_template.format(error=message),
            state=TurnState.ERRORED,
        )

    # -- helpers --------------------------------------------------------

    def _supersede(self, mode: ChatMode, turn: Turn) -> None:
        previous = self._current.get(mode)
        self._current[mode] = turn
        if previous is None or previous.state.is_terminal:
            return
        previous.stale = True
        logger.debug("Turn %d superseded by turn %d", previous.request_id, turn.request_id)
        if self.config.abort_superseded_turns:
            previous.cancel_token.cancel("superseded")

    def _is_current(self, turn: Turn) -> bool:
        current = self._current.get(turn.mode)
        return current is not None and current.request_id == turn.request_id

    def _is_live(self, turn: Turn) -> bool:
        return self._is_current(turn) and not turn.cancel_token.cancelled

    def _deactivate(self, turn: Turn) -> None:
        if turn.state.is_terminal:
            return
        if not self._is_current(turn):
            turn.stale = True
        self._set_state(turn, TurnState.ABORTED)

    def _write(self, turn: Turn, content: str) -> None:
        if self._is_live(turn):
            self.store.replace_last(is_placeholder, content, mode=turn.mode)

    def _set_state(self, turn: Turn, state: TurnState) -> None:
        if turn.state != state:
            logger.debug("Turn %d: %s -> %s", turn.request_id, turn.state.value, state.value)
            turn.state = state

    def _system_prompt(self, mode: ChatMode) -> str:
        if self.config.system_prompt:
            return self.config.system_prompt
        tools = self.registry.list_tools() if self.config.offer_tools else []
        return self.prompt_builder.build(
            mode, error=self.selected_error, sdk_config=self.sdk_config, tools=tools
        )

    @staticmethod
    def _history(messages: Sequence[Message]) -> List[Message]:
        """Finalized, non-empty user/assistant messages; tool notices stay local."""
        return [
            m
            for m in messages
            if m.finalized and m.content.strip() and m.role in (Role.USER, Role.ASSISTANT)
        ]

    def _resolve_mode(self, mode: Union[ChatMode, str, None]) -> ChatMode:
        return self.store.active_mode if mode is None else ChatMode(mode)

    def _call_hook(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """Call a hook if it exists; hook failures are logged and ignored."""
        if not self.config.hooks or hook_name not in self.config.hooks:
            return
        try:
            self.config.hooks[hook_name](*args, **kwargs)
        except Exception:  # noqa: BLE001
            logger.warning("Hook %r raised; ignoring", hook_name, exc_info=True)


__all__ = ["TurnOrchestrator"]
