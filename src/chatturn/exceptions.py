"""
Custom exceptions with helpful error messages and suggestions.

Developer-facing errors (bad tool definitions, missing configuration) carry a
framed, multi-line message with concrete suggestions. Provider errors carry the
plain upstream message because it is shown to the end user as-is.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ChatTurnError(Exception):
    """Base exception for all chatturn errors."""

    pass


class ProviderError(ChatTurnError):
    """
    Raised when a provider request fails.

    Covers non-success HTTP statuses, transport failures and error frames
    delivered in the middle of a stream. ``str(error)`` is the upstream message
    when one was supplied, otherwise a generic status-based message.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        provider: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.provider = provider
        super().__init__(message)


class ToolValidationError(ChatTurnError):
    """Raised when tool parameters are invalid."""

    def __init__(self, tool_name: str, param_name: str, issue: str, suggestion: str = ""):
        self.tool_name = tool_name
        self.param_name = param_name
        self.issue = issue
        self.suggestion = suggestion

        message = f"\n{'='*60}\n"
        message += f"❌ Tool Validation Error: '{tool_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Parameter: {param_name}\n"
        message += f"Issue: {issue}\n"
        if suggestion:
            message += f"\n💡 Suggestion: {suggestion}\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class ToolExecutionError(ChatTurnError):
    """Raised when the function behind a tool fails."""

    def __init__(self, tool_name: str, error: Exception, params: Dict[str, Any]):
        self.tool_name = tool_name
        self.error = error
        self.params = params

        message = f"\n{'='*60}\n"
        message += f"❌ Tool Execution Failed: '{tool_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Error: {type(error).__name__}: {str(error)}\n"
        message += f"Parameters: {params}\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class ProviderConfigurationError(ChatTurnError):
    """Raised when provider configuration is incorrect."""

    def __init__(self, provider_name: str, missing_config: str, env_var: str = ""):
        self.provider_name = provider_name
        self.missing_config = missing_config
        self.env_var = env_var

        message = f"\n{'='*60}\n"
        message += f"❌ Provider Configuration Error: '{provider_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Missing: {missing_config}\n"
        if env_var:
            message += f"\n💡 How to fix:\n"
            message += f"  1. Set the environment variable:\n"
            message += f"     export {env_var}='your-api-key'\n"
            message += f"  2. Or pass it directly:\n"
            message += f"     create_provider('{provider_name.lower()}', api_key='your-api-key')\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class ConversationError(ChatTurnError):
    """Raised when a conversation store invariant would be violated."""

    pass


__all__ = [
    "ChatTurnError",
    "ProviderError",
    "ToolValidationError",
    "ToolExecutionError",
    "ProviderConfigurationError",
    "ConversationError",
]
