import sys
import os
import types
from typing import Any, AsyncGenerator, Callable, Dict, List

import httpx
import pytest
import pytest_asyncio

# Add the backend directory to the Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Override settings for testing
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_qa_service.db"
os.environ["APP_ENV"] = "test"
os.environ["AI_GATEWAY_API_KEY"] = ""

from qa_service.ai_providers.base import AIProvider
from qa_service.core.database import DatabaseFactory
from qa_service.core.exceptions import AIGatewayError
from qa_service.services.probe_client import ProbeClient

FUNCTIONS_BASE_URL = "http://functions.test/functions/v1"


class FakeAIProvider(AIProvider):
    """Scripted provider: returns (or raises) whatever the test configured."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.chat_result: Any = "Everything looks fine."
        self.tool_result: Any = None
        self.calls: List[Dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def initialize(self, config: Dict[str, Any]) -> bool:
        return self.configured

    async def chat_completion(self, messages, model, params) -> str:
        self.calls.append({"kind": "chat", "model": model, "messages": messages})
        if isinstance(self.chat_result, Exception):
            raise self.chat_result
        return self.chat_result

    async def tool_call(self, messages, model, tool) -> Dict[str, Any]:
        self.calls.append({"kind": "tool", "model": model, "messages": messages, "tool": tool})
        if isinstance(self.tool_result, Exception):
            raise self.tool_result
        if self.tool_result is None:
            raise AIGatewayError("no tool result scripted")
        return self.tool_result


@pytest.fixture
def fake_ai() -> FakeAIProvider:
    return FakeAIProvider()


@pytest.fixture
def make_probe_client() -> Callable[[Callable[[httpx.Request], Any]], ProbeClient]:
    """Build a ProbeClient whose requests are answered by ``handler`` instead of the network."""

    def _make(handler) -> ProbeClient:
        return ProbeClient(FUNCTIONS_BASE_URL, timeout=5.0, transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def test_settings():
    return types.SimpleNamespace(
        FUNCTIONS_BASE_URL=FUNCTIONS_BASE_URL,
        PROBE_TIMEOUT_SECONDS=5.0,
        AI_PLAN_MODEL="google/gemini-2.5-flash",
        RUN_ENVIRONMENT="test",
        THINK_TIME_CAP_MS=0,
        MAX_PARALLEL_PROBES=1,
    )


@pytest_asyncio.fixture
async def database(tmp_path) -> AsyncGenerator[DatabaseFactory, None]:
    factory = DatabaseFactory(f"sqlite+aiosqlite:///{tmp_path / 'qa_service.db'}")
    await factory.create_all()
    yield factory
    await factory.dispose()
