"""
Security battery: XSS sanitisation of the support bot and authentication on
the admin assistant.
"""
import json
import logging
import time
from typing import List

from qa_service.schemas.testing import TestResult, TestStatus
from qa_service.services.probe_client import ProbeClient

logger = logging.getLogger(__name__)

XSS_PAYLOAD = '<script>alert("xss")</script>'
RAW_SCRIPT = "<script>"
ESCAPED_SCRIPT = "&lt;script&gt;"
AUTH_REJECTION_CODES = (401, 403)


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


class SecurityChecks:
    def __init__(self, probe_client: ProbeClient, chat_endpoint: str = "support-bot",
                 admin_endpoint: str = "admin-ai-assistant"):
        self.probe_client = probe_client
        self.chat_endpoint = chat_endpoint
        self.admin_endpoint = admin_endpoint

    async def check_xss_prevention(self) -> TestResult:
        name = "Security: XSS Prevention"
        start = time.perf_counter()
        try:
            response = await self.probe_client.post_json(self.chat_endpoint, {"message": XSS_PAYLOAD})
            body = json.dumps(response.json(), ensure_ascii=False)
        except Exception as e:
            return TestResult(
                name=name,
                category="security",
                status=TestStatus.FAILED,
                duration_ms=_elapsed_ms(start),
                error_message=str(e) or e.__class__.__name__,
            )

        raw_script = RAW_SCRIPT in body and ESCAPED_SCRIPT not in body
        if raw_script:
            logger.warning(f"{self.chat_endpoint} echoed an unsanitized script tag")
        return TestResult(
            name=name,
            category="security",
            status=TestStatus.FAILED if raw_script else TestStatus.PASSED,
            duration_ms=_elapsed_ms(start),
            error_message="XSS payload not sanitized" if raw_script else None,
            details={"sanitized": not raw_script},
        )

    async def check_admin_auth(self) -> TestResult:
        name = "Security: Admin Auth Required"
        start = time.perf_counter()
        try:
            response = await self.probe_client.post_json(self.admin_endpoint, {"message": "test"})
        except Exception as e:
            return TestResult(
                name=name,
                category="security",
                status=TestStatus.FAILED,
                duration_ms=_elapsed_ms(start),
                error_message=str(e) or e.__class__.__name__,
            )

        rejected = response.status_code in AUTH_REJECTION_CODES
        return TestResult(
            name=name,
            category="security",
            status=TestStatus.PASSED if rejected else TestStatus.FAILED,
            duration_ms=_elapsed_ms(start),
            error_message=None if rejected else f"Expected 401/403, got {response.status_code}",
            details={"status": response.status_code},
        )

    async def run(self) -> List[TestResult]:
        return [await self.check_xss_prevention(), await self.check_admin_auth()]
