"""
Outbound HTTP client for the endpoints under test.

Every call is a JSON POST to ``<base_url>/<endpoint>`` with a bounded timeout.
Failures are returned as data (a failed TestResult, a ``crashed`` dict or a
failed step outcome); nothing here retries.
"""
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from qa_service.schemas.journeys import JourneyStep, StepOutcome, StepStatus
from qa_service.schemas.testing import TestResult, TestStatus
from qa_service.schemas.validation import CalculatorType

logger = logging.getLogger(__name__)

SLOW_STEP_FACTOR = 1.5


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


def _error_text(exc: Exception) -> str:
    return str(exc) or exc.__class__.__name__


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ProbeResponse:
    status_code: int
    text: str
    content_type: str
    duration_ms: int

    def json(self) -> Any:
        return json.loads(self.text)


class ProbeClient:
    """JSON POST client bound to one functions base URL."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.transport = transport
        self.headers = {"Content-Type": "application/json", **(headers or {})}

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint.lstrip('/')}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            headers=self.headers,
            follow_redirects=False,
        )

    async def post_json(self, endpoint: str, payload: Dict[str, Any]) -> ProbeResponse:
        """Raw POST. Network errors propagate to the caller."""
        start = time.perf_counter()
        async with self._client() as client:
            response = await client.post(self.url_for(endpoint), json=payload)
        return ProbeResponse(
            status_code=response.status_code,
            text=response.text,
            content_type=response.headers.get("content-type", ""),
            duration_ms=_elapsed_ms(start),
        )

    async def probe(self, endpoint: str, test_input: Dict[str, Any]) -> TestResult:
        """POST ``test_input`` to ``endpoint`` and classify the outcome as passed or failed."""
        name = f"API: {endpoint}"
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.post(self.url_for(endpoint), json=test_input)
                data = response.json()
            duration = _elapsed_ms(start)
        except Exception as e:
            duration = _elapsed_ms(start)
            logger.debug(f"Probe of {endpoint} raised: {e}")
            return TestResult(
                name=name,
                category="api",
                status=TestStatus.FAILED,
                duration_ms=duration,
                error_message=_error_text(e),
                details={"input": test_input},
            )

        if not response.is_success:
            return TestResult(
                name=name,
                category="api",
                status=TestStatus.FAILED,
                duration_ms=duration,
                error_message=f"HTTP {response.status_code}: {_compact_json(data)}",
                details={"input": test_input, "response": data},
            )

        body_error = data.get("error") if isinstance(data, dict) else None
        if body_error:
            return TestResult(
                name=name,
                category="api",
                status=TestStatus.FAILED,
                duration_ms=duration,
                error_message=body_error if isinstance(body_error, str) else _compact_json(body_error),
                details={"input": test_input, "response": data},
            )

        return TestResult(
            name=name,
            category="api",
            status=TestStatus.PASSED,
            duration_ms=duration,
            error_message=None,
            details={"input": test_input, "hasResponse": data is not None},
        )

    async def call_calculator(self, calculator: CalculatorType, inputs: Dict[str, Any]) -> Dict[str, Any]:
        """Call ``calculate-<type>`` with ``{"inputs": ...}``; failures come back flagged ``crashed``."""
        try:
            async with self._client() as client:
                response = await client.post(self.url_for(calculator.endpoint), json={"inputs": inputs})
                if not response.is_success:
                    return {"error": f"HTTP {response.status_code}", "crashed": True}
                data = response.json()
        except Exception as e:
            logger.warning(f"Calculator {calculator.value} call failed: {e}")
            return {"error": _error_text(e), "crashed": True}

        if not isinstance(data, dict):
            return {"error": "Calculator returned a non-object response", "crashed": True}
        return data

    async def call_step(self, step: JourneyStep) -> StepOutcome:
        """Execute an endpoint-bound journey step and classify it as passed, slow or failed."""
        start = time.perf_counter()
        try:
            async with self._client() as client:
                response = await client.post(self.url_for(step.endpoint), json=step.input or {})
                duration = _elapsed_ms(start)
                if "application/json" not in response.headers.get("content-type", ""):
                    return StepOutcome(
                        action=step.action,
                        status=StepStatus.FAILED,
                        duration_ms=duration,
                        error="Non-JSON response",
                    )
                data = response.json()
        except Exception as e:
            return StepOutcome(
                action=step.action,
                status=StepStatus.FAILED,
                duration_ms=_elapsed_ms(start),
                error=_error_text(e),
            )

        body_error = data.get("error") if isinstance(data, dict) else None
        if not response.is_success or body_error:
            if body_error and not isinstance(body_error, str):
                body_error = _compact_json(body_error)
            return StepOutcome(
                action=step.action,
                status=StepStatus.FAILED,
                duration_ms=duration,
                error=body_error or f"HTTP {response.status_code}",
            )

        slow = duration > step.expected_duration_ms * SLOW_STEP_FACTOR
        return StepOutcome(
            action=step.action,
            status=StepStatus.SLOW if slow else StepStatus.PASSED,
            duration_ms=duration,
        )
