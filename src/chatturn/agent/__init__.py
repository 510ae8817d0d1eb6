"""
Public exports for the agent package.
"""

from .config import AgentConfig
from .core import TurnOrchestrator
from .turn import Turn, TurnState

__all__ = ["TurnOrchestrator", "AgentConfig", "Turn", "TurnState"]
