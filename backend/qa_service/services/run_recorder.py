"""
Persistence of completed runs.

Writes are insert-only. A failed write is logged and reported as ``False``;
it never fails the report that triggered it.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select

from qa_service.models import StressTestMetric, TestResultRecord, TestRun
from qa_service.schemas.journeys import Journey, JourneyResult, JourneyStatus, UserPersona
from qa_service.schemas.testing import TestResult, TestStatus

logger = logging.getLogger(__name__)

RUNNER_NAME = "AI Test Runner"
UX_METRIC_NAME = "AI UX Journey Test"


def p95_duration(durations: Sequence[float]) -> float:
    """Element at index floor(n * 0.05) of the durations sorted slowest first."""
    if not durations:
        return 0
    ordered = sorted(durations, reverse=True)
    return ordered[math.floor(len(ordered) * 0.05)]


class RunRecorder:
    def __init__(self, session_factory, environment: str = "production"):
        self.session_factory = session_factory
        self.environment = environment

    async def record_test_run(
        self,
        run_id: str,
        feature: str,
        results: Sequence[TestResult],
        duration_ms: int,
    ) -> bool:
        """Insert one run row plus one result row per TestResult, in result order."""
        try:
            async with self.session_factory() as session:
                run = TestRun(
                    id=run_id,
                    run_name=f"{RUNNER_NAME}: {feature}",
                    total_tests=len(results),
                    passed_tests=sum(1 for r in results if r.status == TestStatus.PASSED),
                    failed_tests=sum(1 for r in results if r.status == TestStatus.FAILED),
                    skipped_tests=sum(1 for r in results if r.status == TestStatus.SKIPPED),
                    duration_ms=duration_ms,
                    environment=self.environment,
                )
                session.add(run)
                session.add_all(
                    TestResultRecord(
                        run_id=run_id,
                        position=position,
                        test_suite=result.category,
                        test_name=result.name,
                        status=result.status.value,
                        duration_ms=result.duration_ms,
                        error_message=result.error_message,
                        browser=RUNNER_NAME,
                    )
                    for position, result in enumerate(results)
                )
                await session.commit()
            logger.info(f"Recorded test run {run_id} with {len(results)} results")
            return True
        except Exception as e:
            logger.error(f"Failed to record test run {run_id}: {e}", exc_info=True)
            return False

    async def record_ux_metrics(
        self,
        results: Sequence[JourneyResult],
        personas: Sequence[UserPersona],
        journeys: Sequence[Journey],
    ) -> bool:
        count = len(results)
        success_rate = sum(1 for r in results if r.status == JourneyStatus.SUCCESS) / count if count else 0.0
        avg_score = sum(r.ux_score for r in results) / count if count else 0.0
        durations = [r.total_duration for r in results]

        try:
            async with self.session_factory() as session:
                session.add(StressTestMetric(
                    test_name=UX_METRIC_NAME,
                    concurrent_users=len(personas),
                    avg_response_time_ms=sum(durations) / count if count else 0.0,
                    p95_response_time_ms=p95_duration(durations),
                    error_rate=1 - success_rate if count else 0.0,
                    details={
                        "avgUxScore": avg_score,
                        "successRate": success_rate,
                        "personasTested": [p.id for p in personas],
                        "journeysTested": [j.id for j in journeys],
                    },
                ))
                await session.commit()
            return True
        except Exception as e:
            logger.error(f"Failed to record UX metrics: {e}", exc_info=True)
            return False

    async def list_runs(self, limit: int = 20, offset: int = 0) -> Tuple[List[TestRun], int]:
        """Most recent runs first, with the total run count."""
        async with self.session_factory() as session:
            total = (await session.execute(select(func.count()).select_from(TestRun))).scalar_one()
            query = (
                select(TestRun)
                .order_by(TestRun.created_at.desc(), TestRun.id)
                .offset(offset)
                .limit(limit)
            )
            runs = (await session.execute(query)).scalars().all()
            return list(runs), total

    async def get_run(self, run_id: str) -> Optional[TestRun]:
        async with self.session_factory() as session:
            return await session.get(TestRun, run_id)

