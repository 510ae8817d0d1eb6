"""
Reassembly of tool calls from streamed fragments.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

from ..types import ToolCall, ToolCallDelta

logger = logging.getLogger(__name__)


class ToolCallAccumulator:
    """
    Merges ``ToolCallDelta`` fragments into complete ``ToolCall`` objects.

    Providers interleave nothing: all fragments of one call arrive before the
    first fragment of the next. The accumulator therefore keeps a single
    pending slot and finalizes it as soon as a different id shows up, which
    lets the caller start executing a call while the stream is still running.

    Example:
        >>> acc = ToolCallAccumulator()
        >>> acc.feed(ToolCallDelta(id="a", name="T", arguments_fragment='{"x":'))
        >>> acc.feed(ToolCallDelta(id="a", arguments_fragment="1}"))
        >>> acc.finish().parsed_arguments
        {'x': 1}
    """

    def __init__(self) -> None:
        self._pending: Optional[ToolCall] = None
        self._finalized_ids: Set[str] = set()
        self.completed: List[ToolCall] = []

    @property
    def pending(self) -> Optional[ToolCall]:
        return self._pending

    def feed(self, delta: ToolCallDelta) -> Optional[ToolCall]:
        """
        Add one fragment.

        Returns the previously pending call when this fragment belongs to a
        new call, otherwise ``None``.
        """
        pending = self._pending
        if pending is not None and (not delta.id or delta.id == pending.id):
            if delta.name and not pending.name:
                pending.name = delta.name
            pending.argument_buffer += delta.arguments_fragment
            return None

        if pending is None and not delta.id:
            logger.warning("Tool call fragment without id and no pending call; starting one")

        finalized = self._finalize_pending()
        if delta.id and delta.id in self._finalized_ids:
            logger.warning("Tool call id %r reappeared after it was finalized", delta.id)
        self._pending = ToolCall(
            id=delta.id or f"call_{len(self.completed) + 1}",
            name=delta.name or "",
            argument_buffer=delta.arguments_fragment,
        )
        return finalized

    def finish(self) -> Optional[ToolCall]:
        """Finalize and return the pending call, if any."""
        return self._finalize_pending()

    def _finalize_pending(self) -> Optional[ToolCall]:
        call = self._pending
        if call is None:
            return None
        self._pending = None
        call.parse_arguments()
        self._finalized_ids.add(call.id)
        self.completed.append(call)
        return call


__all__ = ["ToolCallAccumulator"]
