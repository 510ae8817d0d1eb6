"""Public exports for the chatturn package."""

# Toolbox is imported separately to keep requests out of the core import path
from .agent import AgentConfig, Turn, TurnOrchestrator, TurnState
from .cancellation import CancellationToken, iterate_until_cancelled
from .conversation import Conversation, ConversationStore
from .exceptions import (
    ChatTurnError,
    ConversationError,
    ProviderConfigurationError,
    ProviderError,
    ToolExecutionError,
    ToolValidationError,
)
from .models import PROVIDERS, ProviderInfo, get_provider_info
from .prompt import CapturedError, PromptBuilder
from .providers import (
    AnthropicProvider,
    GeminiProvider,
    LocalProvider,
    OllamaProvider,
    OpenAIProvider,
    Provider,
    ProviderSettings,
    check_connection,
    create_provider,
)
from .tools import Tool, ToolCallAccumulator, ToolParameter, ToolRegistry, tool
from .types import (
    ChatMode,
    End,
    Message,
    ProviderEvent,
    Role,
    TextDelta,
    ToolCall,
    ToolCallDelta,
    ToolResult,
)

__version__ = "0.1.0"

__all__ = [
    "TurnOrchestrator",
    "AgentConfig",
    "Turn",
    "TurnState",
    "ConversationStore",
    "Conversation",
    "CancellationToken",
    "iterate_until_cancelled",
    "PromptBuilder",
    "CapturedError",
    "Message",
    "Role",
    "ChatMode",
    "ToolCall",
    "ToolResult",
    "TextDelta",
    "ToolCallDelta",
    "End",
    "ProviderEvent",
    "Tool",
    "ToolParameter",
    "ToolRegistry",
    "ToolCallAccumulator",
    "tool",
    "Provider",
    "ProviderSettings",
    "create_provider",
    "check_connection",
    "OpenAIProvider",
    "AnthropicProvider",
    "GeminiProvider",
    "OllamaProvider",
    "LocalProvider",
    "PROVIDERS",
    "ProviderInfo",
    "get_provider_info",
    # Exceptions
    "ChatTurnError",
    "ProviderError",
    "ProviderConfigurationError",
    "ToolValidationError",
    "ToolExecutionError",
    "ConversationError",
]
