"""
Local provider for offline testing and development.

This provider doesn't call any external API and simply echoes user messages.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Optional, Sequence

from ..cancellation import CancellationToken
from ..types import End, Message, ProviderEvent, Role, TextDelta
from .base import ToolDescriptor


class LocalProvider:
    """
    Local fallback provider.

    This does not call a model. It echoes the latest user content word by word
    and is useful for offline/manual testing or as a safe default.
    """

    name = "local"

    def __init__(self, default_model: str = "echo", delay: float = 0.0):
        self.default_model = default_model
        self.delay = delay

    async def stream(
        self,
        *,
        messages: Sequence[Message],
        system_prompt: str = "",
        tools: Optional[Sequence[ToolDescriptor]] = None,
        model: Optional[str] = None,
        max_tokens: int = 4096,
        temperature: Optional[float] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> AsyncIterator[ProviderEvent]:
        last_user = next((m for m in reversed(messages) if m.role == Role.USER), None)
        user_text = last_user.content if last_user else ""
        text = f"[local provider: {model or self.default_model}] {user_text or 'No user message provided.'}"
        for token in text.split():
            if cancel_token is not None and cancel_token.cancelled:
                return
            if self.delay:
                await asyncio.sleep(self.delay)
            yield TextDelta(content=token + " ")
        yield End()

    async def aclose(self) -> None:
        return None


__all__ = ["LocalProvider"]
