"""
State of one request/response cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..cancellation import CancellationToken
from ..types import ChatMode, ToolCall


class TurnState(str, Enum):
    PENDING = "pending"
    PRIMARY_STREAM = "primary_stream"
    EXECUTING_TOOLS = "executing_tools"
    FOLLOW_UP_STREAM = "follow_up_stream"
    COMPLETE = "complete"
    ABORTED = "aborted"
    ERRORED = "errored"

    @property
    def is_terminal(self) -> bool:
        return self in (TurnState.COMPLETE, TurnState.ABORTED, TurnState.ERRORED)


@dataclass
class Turn:
    """
    One user message and everything the orchestrator did to answer it.

    Returned by ``TurnOrchestrator.send_message`` for inspection. ``stale`` is
    set when a newer turn in the same mode took over before this one finished;
    a stale turn never writes to the conversation again.
    """

    request_id: int
    mode: ChatMode
    user_text: str
    cancel_token: CancellationToken = field(default_factory=CancellationToken)
    state: TurnState = TurnState.PENDING
    primary_text: str = ""
    follow_up_text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)
    final_text: Optional[str] = None
    error: Optional[BaseException] = None
    stale: bool = False

    @property
    def finalized(self) -> bool:
        return self.final_text is not None

    @property
    def tool_results(self) -> List[Dict[str, Any]]:
        """``{name, result}`` records of every executed call, in execution order."""
        return [
            {"name": call.name, "result": call.result.to_dict()}
            for call in self.tool_calls
            if call.result is not None
        ]

    def __repr__(self) -> str:
        return (
            f"Turn(request_id={self.request_id}, mode={self.mode.value!r}, "
            f"state={self.state.value!r}, tools={len(self.tool_calls)})"
        )


__all__ = ["Turn", "TurnState"]
