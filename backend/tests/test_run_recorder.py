import uuid

import httpx
import pytest
from sqlalchemy import select

from qa_service.models import StressTestMetric
from qa_service.schemas.journeys import JourneyResult, JourneyStatus
from qa_service.schemas.testing import TestResult, TestStatus
from qa_service.services.catalog import JourneyCatalog
from qa_service.services.database_checks import DatabaseChecks
from qa_service.services.run_recorder import RunRecorder, UX_METRIC_NAME, p95_duration
from qa_service.services.security_checks import SecurityChecks

RESULTS = [
    TestResult(name="API: calculate-beam - Case 1", category="api", status=TestStatus.PASSED, duration_ms=120),
    TestResult(
        name="API: calculate-beam - Case 2",
        category="api",
        status=TestStatus.FAILED,
        duration_ms=90,
        error_message="HTTP 500: {}",
    ),
    TestResult(name="DB: Read test_runs", category="database", status=TestStatus.PASSED, duration_ms=3),
]


def test_p95_duration():
    assert p95_duration([]) == 0
    assert p95_duration([250]) == 250
    assert p95_duration(list(range(1, 21))) == 19


@pytest.mark.asyncio
async def test_record_and_read_back_test_run(database):
    recorder = RunRecorder(database.session_factory, environment="test")
    run_id = str(uuid.uuid4())

    assert await recorder.record_test_run(run_id, "calculators", RESULTS, duration_ms=450) is True

    run = await recorder.get_run(run_id)
    assert run.run_name == "AI Test Runner: calculators"
    assert (run.total_tests, run.passed_tests, run.failed_tests, run.skipped_tests) == (3, 2, 1, 0)
    assert run.duration_ms == 450
    assert run.environment == "test"
    assert [r.test_name for r in run.results] == [r.name for r in RESULTS]
    assert run.results[1].error_message == "HTTP 500: {}"
    assert run.results[2].test_suite == "database"
    assert run.results[0].browser == "AI Test Runner"

    runs, total = await recorder.list_runs()
    assert total == 1
    assert runs[0].id == run_id


@pytest.mark.asyncio
async def test_list_runs_pages(database):
    recorder = RunRecorder(database.session_factory)
    for feature in ("calculators", "security", "database"):
        await recorder.record_test_run(str(uuid.uuid4()), feature, RESULTS[:1], duration_ms=10)

    runs, total = await recorder.list_runs(limit=2, offset=0)
    assert total == 3
    assert len(runs) == 2
    rest, _ = await recorder.list_runs(limit=2, offset=2)
    assert len(rest) == 1
    assert await recorder.get_run("missing") is None


@pytest.mark.asyncio
async def test_record_ux_metrics(database):
    recorder = RunRecorder(database.session_factory)
    catalog = JourneyCatalog()
    personas = catalog.select_personas(["new_engineer", "mobile_user"])
    journeys = catalog.select_journeys(["first_beam_calculation"])
    results = [
        JourneyResult(persona="new_engineer", journey="first_beam_calculation", status=JourneyStatus.SUCCESS,
                      completion_rate=1.0, total_duration=1200, ux_score=90),
        JourneyResult(persona="mobile_user", journey="first_beam_calculation", status=JourneyStatus.FAILED,
                      completion_rate=0.5, total_duration=800, ux_score=40),
    ]

    assert await recorder.record_ux_metrics(results, personas, journeys) is True

    async with database.session_factory() as session:
        metric = (await session.execute(select(StressTestMetric))).scalar_one()
    assert metric.test_name == UX_METRIC_NAME
    assert metric.concurrent_users == 2
    assert metric.avg_response_time_ms == 1000
    assert metric.p95_response_time_ms == 1200
    assert metric.error_rate == 0.5
    assert metric.details["avgUxScore"] == 65
    assert metric.details["personasTested"] == ["new_engineer", "mobile_user"]
    assert metric.details["journeysTested"] == ["first_beam_calculation"]


@pytest.mark.asyncio
async def test_write_failures_are_reported_not_raised():
    def broken_session_factory():
        raise RuntimeError("database is locked")

    recorder = RunRecorder(broken_session_factory)

    assert await recorder.record_test_run("run-1", "calculators", RESULTS, duration_ms=1) is False
    assert await recorder.record_ux_metrics([], [], []) is False


@pytest.mark.asyncio
async def test_database_checks_read_each_table(database):
    results = await DatabaseChecks(database.session_factory).run()

    assert [r.name for r in results] == ["DB: Read test_runs", "DB: Read test_results", "DB: Read stress_test_metrics"]
    assert all(r.status == TestStatus.PASSED for r in results)
    assert results[0].details == {"count": 0}


@pytest.mark.asyncio
async def test_database_check_reports_missing_table(database):
    result = await DatabaseChecks(database.session_factory).check_table("no_such_table")

    assert result.name == "DB: Read no_such_table"
    assert result.category == "database"
    assert result.status == TestStatus.FAILED
    assert "no_such_table" in result.error_message


@pytest.mark.asyncio
async def test_security_checks_pass_when_sanitized_and_protected(make_probe_client):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/admin-ai-assistant"):
            return httpx.Response(401, json={"error": "Unauthorized"})
        return httpx.Response(200, json={"response": "You said &lt;script&gt;alert(1)"})

    xss, auth = await SecurityChecks(make_probe_client(handler)).run()

    assert xss.name == "Security: XSS Prevention"
    assert xss.status == TestStatus.PASSED
    assert xss.details == {"sanitized": True}
    assert auth.name == "Security: Admin Auth Required"
    assert auth.status == TestStatus.PASSED
    assert auth.details == {"status": 401}


@pytest.mark.asyncio
async def test_security_checks_fail_on_echo_and_open_admin(make_probe_client):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/admin-ai-assistant"):
            return httpx.Response(200, json={"response": "hello admin"})
        return httpx.Response(200, json={"response": 'Echo: <script>alert("xss")</script>'})

    xss, auth = await SecurityChecks(make_probe_client(handler)).run()

    assert xss.status == TestStatus.FAILED
    assert xss.category == "security"
    assert xss.details == {"sanitized": False}
    assert auth.status == TestStatus.FAILED
    assert auth.error_message == "Expected 401/403, got 200"
