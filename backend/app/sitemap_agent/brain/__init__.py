"""
AI Escalation Module

Language-model fallback for element location.
"""

from .ai_gateway import AIGateway, AIProvider, AIRequest, AIResponse
from .ai_locator import AILocator, EscalationOutcome, EscalationResult

__all__ = [
    "AIGateway",
    "AIProvider",
    "AIRequest",
    "AIResponse",
    "AILocator",
    "EscalationOutcome",
    "EscalationResult"
]
