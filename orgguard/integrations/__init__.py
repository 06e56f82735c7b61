"""External integration adapters."""

from .aisensy import AiSensyClient
from .bolna import BolnaClient, normalize_agents

__all__ = [
    "AiSensyClient",
    "BolnaClient",
    "normalize_agents",
]
