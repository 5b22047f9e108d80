"""
OpenAI-compatible AI gateway provider (OpenRouter or any /chat/completions gateway).
"""
import json
from dataclasses import dataclass
from typing import Any, Dict, List

from openai import AsyncOpenAI, OpenAIError

from qa_service.core.exceptions import AIGatewayError
from .base import AIProvider


@dataclass(frozen=True)
class ModelSpec:
    model_id: str
    display_name: str


# Request-level model choices exposed by the test runner
MODEL_CHOICES: Dict[str, ModelSpec] = {
    "claude": ModelSpec("anthropic/claude-sonnet-4", "Claude Sonnet 4"),
    "gemini": ModelSpec("google/gemini-2.5-flash", "Gemini 2.5 Flash"),
    "deepseek": ModelSpec("deepseek/deepseek-r1", "DeepSeek R1"),
}


def resolve_model(choice: str) -> ModelSpec:
    """Map a request-level model name to a gateway model, defaulting to claude."""
    return MODEL_CHOICES.get((choice or "").lower(), MODEL_CHOICES["claude"])


class GatewayProvider(AIProvider):
    """Chat completions through an OpenAI-compatible gateway."""

    def __init__(self):
        self.api_key = ""
        self.base_url = None
        self.client = None

    @property
    def provider_name(self) -> str:
        return "gateway"

    @property
    def is_configured(self) -> bool:
        return self.client is not None and bool(self.api_key)

    async def initialize(self, config: Dict[str, Any]) -> bool:
        """Initialize the provider with configuration."""
        self.api_key = (config.get("api_key") or "").strip()
        self.base_url = config.get("base_url") or None
        self.timeout = float(config.get("timeout", 30.0))

        if not self.api_key:
            self.client = None
            return False

        client_kwargs = {
            "api_key": self.api_key,
            "timeout": self.timeout,
            "max_retries": 0,
        }
        if self.base_url:
            client_kwargs["base_url"] = self.base_url

        self.client = AsyncOpenAI(**client_kwargs)
        return True

    def _require_client(self) -> AsyncOpenAI:
        if not self.is_configured:
            raise AIGatewayError("AI gateway is not configured")
        return self.client

    async def chat_completion(self, messages: List[Dict[str, Any]], model: str, params: Dict[str, Any]) -> str:
        client = self._require_client()
        # Work on a copy; the caller may reuse params
        api_params = dict(params or {})
        api_params.pop("stream", None)

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                **api_params,
            )
        except OpenAIError as e:
            raise AIGatewayError(f"Gateway chat completion failed: {e}") from e

        if not response.choices:
            raise AIGatewayError("Gateway returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise AIGatewayError("Gateway returned an empty message")
        return content

    async def tool_call(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        tool: Dict[str, Any],
    ) -> Dict[str, Any]:
        client = self._require_client()
        tool_name = tool["function"]["name"]

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=messages,
                tools=[tool],
                tool_choice={"type": "function", "function": {"name": tool_name}},
            )
        except OpenAIError as e:
            raise AIGatewayError(f"Gateway tool call failed: {e}") from e

        if not response.choices:
            raise AIGatewayError("Gateway returned no choices")
        tool_calls = response.choices[0].message.tool_calls or []
        if not tool_calls or not tool_calls[0].function.arguments:
            raise AIGatewayError(f"Gateway did not call {tool_name}")

        try:
            arguments = json.loads(tool_calls[0].function.arguments)
        except json.JSONDecodeError as e:
            raise AIGatewayError(f"Unparseable {tool_name} arguments: {e}") from e
        if not isinstance(arguments, dict):
            raise AIGatewayError(f"{tool_name} arguments are not an object")
        return arguments


async def build_gateway(settings) -> GatewayProvider:
    provider = GatewayProvider()
    await provider.initialize(
        {
            "api_key": settings.AI_GATEWAY_API_KEY,
            "base_url": settings.AI_GATEWAY_BASE_URL,
            "timeout": settings.AI_TIMEOUT_SECONDS,
        }
    )
    return provider
