"""
Base interface for AI providers.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List


class AIProvider(ABC):
    """Chat-completion provider used for plan generation and result analysis."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @property
    def is_configured(self) -> bool:
        return True

    @abstractmethod
    async def initialize(self, config: Dict[str, Any]) -> bool:
        """Initialize the provider with configuration."""

    @abstractmethod
    async def chat_completion(self, messages: List[Dict[str, Any]], model: str, params: Dict[str, Any]) -> str:
        """Return the assistant message text. Raises AIGatewayError on failure."""

    @abstractmethod
    async def tool_call(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        tool: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Force a single function-style tool call and return its parsed arguments."""
