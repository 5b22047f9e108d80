"""
Test plan generation: AI-assisted through the gateway's tool-call mode, with a
templated plan per feature whenever the gateway is unavailable or misbehaves.
"""
import logging
from typing import Dict, Optional

from qa_service.ai_providers.base import AIProvider
from qa_service.core.resilience import resilient_call
from qa_service.schemas.testing import TestPlan

logger = logging.getLogger(__name__)

CALCULATOR_ENDPOINTS = [
    "calculate-beam",
    "calculate-column",
    "calculate-foundation",
    "calculate-slab",
    "calculate-retaining-wall",
]

KNOWN_ENDPOINTS: Dict[str, str] = {
    "calculate-beam": "POST: beam structural calculations",
    "calculate-column": "POST: column structural calculations",
    "calculate-foundation": "POST: foundation calculations",
    "calculate-slab": "POST: slab calculations",
    "calculate-retaining-wall": "POST: retaining wall calculations",
    "support-bot": "POST: AI chat support",
    "ayn-unified": "POST: main AI chat",
    "engineering-ai-chat": "POST: engineering AI",
}

DEFAULT_PLANS: Dict[str, TestPlan] = {
    "calculators": TestPlan(
        goal="Verify all engineering calculators work correctly",
        steps=[
            "Test beam calculator with valid inputs",
            "Test beam calculator with edge cases",
            "Test column calculator with valid inputs",
            "Test foundation calculator with valid inputs",
            "Test slab calculator with valid inputs",
            "Test retaining wall calculator with valid inputs",
        ],
        expected_outcomes=[
            "All calculators return valid results",
            "Edge cases are handled gracefully",
            "Error messages are informative",
        ],
        endpoints=list(CALCULATOR_ENDPOINTS),
    ),
    "security": TestPlan(
        goal="Verify security measures are in place",
        steps=[
            "Test XSS prevention in support bot",
            "Test SQL injection prevention",
            "Test unauthorized access to admin endpoints",
            "Test rate limiting",
        ],
        expected_outcomes=[
            "XSS payloads are sanitized",
            "SQL injection attempts fail safely",
            "Admin endpoints require authentication",
        ],
        endpoints=["support-bot", "admin-ai-assistant"],
    ),
    "ai": TestPlan(
        goal="Verify AI chat functionality works",
        steps=[
            "Test support bot with valid question",
            "Test engineering AI chat",
            "Test response streaming",
        ],
        expected_outcomes=[
            "AI responds with relevant content",
            "Responses are formatted correctly",
            "No timeouts under normal load",
        ],
        endpoints=["support-bot", "engineering-ai-chat"],
    ),
    "database": TestPlan(
        goal="Verify database operations work correctly",
        steps=[
            "Test reading from all core tables",
            "Test CRUD operations on test_results",
            "Verify RLS policies",
        ],
        expected_outcomes=[
            "All reads complete successfully",
            "CRUD operations work correctly",
            "Unauthorized access is blocked",
        ],
        endpoints=[],
    ),
}

CREATE_TEST_PLAN_TOOL = {
    "type": "function",
    "function": {
        "name": "create_test_plan",
        "description": "Create a structured test plan",
        "parameters": {
            "type": "object",
            "properties": {
                "goal": {"type": "string"},
                "steps": {"type": "array", "items": {"type": "string"}},
                "expectedOutcomes": {"type": "array", "items": {"type": "string"}},
                "endpoints": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["goal", "steps", "expectedOutcomes", "endpoints"],
        },
    },
}


def default_plan(feature: str) -> TestPlan:
    """Templated plan for a canonical feature, or a generic single-step plan."""
    plan = DEFAULT_PLANS.get(feature)
    if plan is not None:
        return plan
    return TestPlan(
        goal=f"Test {feature} functionality",
        steps=["Run basic functionality test"],
        expected_outcomes=["Feature works as expected"],
        endpoints=[],
    )


def build_plan_prompt() -> str:
    endpoint_lines = "\n".join(f"- {name} ({purpose})" for name, purpose in KNOWN_ENDPOINTS.items())
    return (
        "You are a QA test engineer. Generate a test plan for the given feature.\n"
        "Return ONLY valid JSON with this structure:\n"
        '{"goal": "What we\'re testing", "steps": ["Step 1", "Step 2"], '
        '"expectedOutcomes": ["Expected result 1"], "endpoints": ["endpoint-1"]}\n\n'
        f"Available endpoints to test:\n{endpoint_lines}\n"
    )


class TestPlanProvider:
    """Produces a TestPlan per feature. ``generate_plan`` never raises."""

    __test__ = False

    def __init__(self, ai_provider: Optional[AIProvider], model: str):
        self.ai_provider = ai_provider
        self.model = model

    @property
    def ai_available(self) -> bool:
        return self.ai_provider is not None and self.ai_provider.is_configured

    async def _plan_from_ai(self, feature: str) -> Optional[TestPlan]:
        if not self.ai_available:
            return None
        messages = [
            {"role": "system", "content": build_plan_prompt()},
            {"role": "user", "content": f"Generate a test plan for: {feature}"},
        ]
        arguments = await self.ai_provider.tool_call(messages, self.model, CREATE_TEST_PLAN_TOOL)
        return TestPlan.model_validate(arguments)

    async def generate_plan(self, feature: str, use_ai: bool = True) -> TestPlan:
        if not use_ai:
            return default_plan(feature)
        plan = await resilient_call(
            lambda: self._plan_from_ai(feature),
            lambda: default_plan(feature),
            label=f"Test plan generation for '{feature}'",
        )
        logger.debug(f"Plan for {feature}: {len(plan.endpoints)} endpoint(s)")
        return plan
