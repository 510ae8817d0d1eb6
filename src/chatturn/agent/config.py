"""
Configuration options for the turn orchestrator.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

# Hook type definitions
HookCallable = Callable[..., None]
Hooks = Dict[str, HookCallable]


@dataclass
class AgentConfig:
    """
    Configuration options for customizing turn behaviour.

    Sensible defaults are provided for all options.

    Attributes:
        model: Model identifier passed to the provider. None uses the provider default.
        max_tokens: Maximum tokens per generation round. Default: 4096.
        temperature: Sampling temperature. None leaves the provider default. Default: None.
        turn_timeout: Seconds after which a turn is cancelled as if the user pressed
               stop. None = no deadline. Default: None.
        abort_superseded_turns: Cancel the transport of a turn as soon as a newer turn
               starts in the same mode. The old turn can never write either way. Default: True.
        show_tool_notices: Append a "Used tool `name`" system notice for every executed
               tool. Default: False.
        offer_tools: Offer the registry's tools to the model in the primary round. Default: True.
        system_prompt: Custom system prompt replacing the mode prompt. Default: None.
        empty_response_notice: Committed when the model produced no text and called no tool.
        follow_up_notice: Shown in the placeholder while tool results are sent back.
        follow_up_fallback_notice: Committed when tools ran but no round produced text.
        error_notice_template: Committed on failure; ``{error}`` is the error message.
        follow_up_acknowledgment: Synthetic assistant message opening the follow-up round.
        follow_up_instruction: Synthetic user message of the follow-up round; ``{results}``
               is the JSON list of tool results.
        hooks: Optional dict of lifecycle hooks for observability. Default: None.
               Available hooks:
               - 'on_turn_start': Called when a turn starts with (turn,)
               - 'on_text_delta': Called for each text fragment with (turn, text)
               - 'on_tool_start': Called before tool execution with (turn, call)
               - 'on_tool_end': Called after tool execution with (turn, call, result)
               - 'on_turn_end': Called when a turn reaches a terminal state with (turn,)
               - 'on_error': Called when a turn fails with (turn, error)
    """

    model: Optional[str] = None
    max_tokens: int = 4096
    temperature: Optional[float] = None
    turn_timeout: Optional[float] = None
    abort_superseded_turns: bool = True
    show_tool_notices: bool = False
    offer_tools: bool = True
    system_prompt: Optional[str] = None
    empty_response_notice: str = "I couldn't generate a response. Please try again."
    follow_up_notice: str = "_Analyzing tool results..._"
    follow_up_fallback_notice: str = (
        "I ran the requested tools but could not produce a summary of their results."
    )
    error_notice_template: str = (
        "❌ **Error:** {error}\n\nPlease check your API key and try again."
    )
    follow_up_acknowledgment: str = "I'll use the tools to help answer your question."
    follow_up_instruction: str = (
        "Tool results:\n```json\n{results}\n```\n\n"
        "Based on these tool results, please provide a helpful response to my previous question."
    )
    hooks: Optional[Hooks] = None
