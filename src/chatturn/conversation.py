"""
Per-mode conversation history with streaming-placeholder semantics.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from .exceptions import ConversationError
from .types import ChatMode, Message

logger = logging.getLogger(__name__)

MessagePredicate = Callable[[Message], bool]


def is_placeholder(message: Message) -> bool:
    """Predicate matching the unfinalized assistant message of the active turn."""
    return message.is_placeholder


class Conversation:
    """
    One ordered message sequence.

    At most one placeholder (unfinalized assistant message) may exist at a
    time. Placeholders are located by predicate rather than by index because
    other messages, such as tool notices, may be appended after them.

    Example:
        >>> conv = Conversation()
        >>> conv.append(Message(role=Role.USER, content="Hi"))
        >>> conv.append(Message(role=Role.ASSISTANT, content="", finalized=False))
        >>> conv.replace_last(is_placeholder, "Hel")
        True
        >>> conv.finalize_last(is_placeholder, "Hello")
        True
    """

    def __init__(self, max_messages: Optional[int] = None):
        if max_messages is not None and max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.max_messages = max_messages
        self._messages: List[Message] = []

    def append(self, message: Message) -> None:
        if message.is_placeholder and self.find_last(is_placeholder) is not None:
            raise ConversationError("Conversation already has an unfinalized assistant message")
        self._messages.append(message)
        self._enforce_limits()

    def find_last(self, predicate: MessagePredicate) -> Optional[Message]:
        """Last unfinalized message matching ``predicate``."""
        for message in reversed(self._messages):
            if not message.finalized and predicate(message):
                return message
        return None

    def replace_last(self, predicate: MessagePredicate, content: str) -> bool:
        """
        Replace the content of the last unfinalized message matching ``predicate``.

        Returns False (and changes nothing) when no such message exists.
        """
        message = self.find_last(predicate)
        if message is None:
            return False
        message.content = content
        return True

    def remove_last(self, predicate: MessagePredicate) -> Optional[Message]:
        """Remove and return the last unfinalized message matching ``predicate``."""
        for index in range(len(self._messages) - 1, -1, -1):
            message = self._messages[index]
            if not message.finalized and predicate(message):
                del self._messages[index]
                return message
        return None

    def finalize_last(self, predicate: MessagePredicate, content: Optional[str] = None) -> bool:
        """
        Finalize the last unfinalized message matching ``predicate``.

        ``content``, when given, replaces the message text first. Finalized
        messages never change again, so a second call is a no-op returning False.
        """
        message = self.find_last(predicate)
        if message is None:
            return False
        if content is not None:
            message.content = content
        message.finalized = True
        return True

    def clear(self) -> None:
        self._messages.clear()

    def messages(self) -> Tuple[Message, ...]:
        """Snapshot of the sequence; mutate only through this class."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_messages": self.max_messages,
            "message_count": len(self._messages),
            "messages": [msg.to_dict() for msg in self._messages],
        }

    def _enforce_limits(self) -> None:
        """Drop the oldest finalized messages beyond ``max_messages``."""
        if self.max_messages is None:
            return
        while len(self._messages) > self.max_messages:
            for index, message in enumerate(self._messages):
                if message.finalized:
                    del self._messages[index]
                    break
            else:
                return


class ConversationStore:
    """
    One ``Conversation`` per ``ChatMode``.

    Every operation targets the active mode unless ``mode`` is given.
    Switching modes changes which conversation is active and never touches
    the others.

    Example:
        >>> store = ConversationStore()
        >>> store.append(Message(role=Role.USER, content="Why does init fail?"))
        >>> store.switch_mode(ChatMode.GENERAL)
        >>> store.messages()
        ()
    """

    def __init__(
        self,
        active_mode: Union[ChatMode, str] = ChatMode.DEBUG,
        max_messages: Optional[int] = None,
    ):
        self._conversations: Dict[ChatMode, Conversation] = {
            mode: Conversation(max_messages=max_messages) for mode in ChatMode
        }
        self._active_mode = ChatMode(active_mode)

    @property
    def active_mode(self) -> ChatMode:
        return self._active_mode

    def switch_mode(self, mode: Union[ChatMode, str]) -> ChatMode:
        self._active_mode = ChatMode(mode)
        logger.debug("Switched active conversation to %s", self._active_mode.value)
        return self._active_mode

    def conversation(self, mode: Union[ChatMode, str, None] = None) -> Conversation:
        return self._conversations[self._resolve(mode)]

    def append(self, message: Message, mode: Union[ChatMode, str, None] = None) -> None:
        self.conversation(mode).append(message)

    def replace_last(
        self,
        predicate: MessagePredicate,
        content: str,
        mode: Union[ChatMode, str, None] = None,
    ) -> bool:
        return self.conversation(mode).replace_last(predicate, content)

    def finalize_last(
        self,
        predicate: MessagePredicate,
        content: Optional[str] = None,
        mode: Union[ChatMode, str, None] = None,
    ) -> bool:
        return self.conversation(mode).finalize_last(predicate, content)

    def find_last(
        self, predicate: MessagePredicate, mode: Union[ChatMode, str, None] = None
    ) -> Optional[Message]:
        return self.conversation(mode).find_last(predicate)

    def clear(self, mode: Union[ChatMode, str, None] = None) -> None:
        self.conversation(mode).clear()

    def messages(self, mode: Union[ChatMode, str, None] = None) -> Tuple[Message, ...]:
        return self.conversation(mode).messages()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active_mode": self._active_mode.value,
            "conversations": {
                mode.value: conversation.to_dict()
                for mode, conversation in self._conversations.items()
            },
        }

    def _resolve(self, mode: Union[ChatMode, str, None]) -> ChatMode:
        return self._active_mode if mode is None else ChatMode(mode)


__all__ = ["Conversation", "ConversationStore", "MessagePredicate", "is_placeholder"]
