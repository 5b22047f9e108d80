"""
Database battery: one read probe per table of the run store.
"""
import logging
import time
from typing import List, Sequence

from sqlalchemy import func, select, table

from qa_service.schemas.testing import TestResult, TestStatus

logger = logging.getLogger(__name__)

DEFAULT_TABLES = ("test_runs", "test_results", "stress_test_metrics")


class DatabaseChecks:
    def __init__(self, session_factory, tables: Sequence[str] = DEFAULT_TABLES):
        self.session_factory = session_factory
        self.tables = tuple(tables)

    async def check_table(self, table_name: str) -> TestResult:
        name = f"DB: Read {table_name}"
        start = time.perf_counter()
        try:
            async with self.session_factory() as session:
                count = (await session.execute(select(func.count()).select_from(table(table_name)))).scalar_one()
        except Exception as e:
            logger.warning(f"Read check on {table_name} failed: {e}")
            return TestResult(
                name=name,
                category="database",
                status=TestStatus.FAILED,
                duration_ms=max(0, int((time.perf_counter() - start) * 1000)),
                error_message=str(e) or e.__class__.__name__,
            )

        return TestResult(
            name=name,
            category="database",
            status=TestStatus.PASSED,
            duration_ms=max(0, int((time.perf_counter() - start) * 1000)),
            details={"count": count},
        )

    async def run(self) -> List[TestResult]:
        return [await self.check_table(table_name) for table_name in self.tables]
