"""
Top-level entry point for the three run modes: the feature test runner, the
persona/journey UX tester and the calculator compliance validator.

``handle`` is the boundary: request validation errors become 400 reports,
anything unexpected becomes a 500 report. Individual probe, step and fixture
failures are data inside a successful report.
"""
import asyncio
import enum
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from qa_service.ai_providers.gateway import ModelSpec, resolve_model
from qa_service.schemas.journeys import Journey, JourneyResult, JourneyStatus, UserPersona, UXTestRequest
from qa_service.schemas.testing import TestPlan, TestResult, TestRunnerRequest, TestRunSummary, TestStatus
from qa_service.schemas.validation import ComplianceRequest
from qa_service.services.benchmarks import get_test_inputs
from qa_service.services.calculator_validator import CalculatorValidator, summarize_compliance
from qa_service.services.catalog import JourneyCatalog
from qa_service.services.compliance import round_half_up
from qa_service.services.database_checks import DatabaseChecks
from qa_service.services.journey_simulator import JourneySimulator
from qa_service.services.probe_client import ProbeClient
from qa_service.services.result_analyzer import FALLBACK_MODEL, ResultAnalyzer, journey_stats
from qa_service.services.run_recorder import RunRecorder
from qa_service.services.security_checks import SecurityChecks
from qa_service.services.test_plan_provider import TestPlanProvider

logger = logging.getLogger(__name__)

ALL_FEATURES = ("calculators", "security", "database")
UX_ANALYSIS_MODEL = "gemini"


class RunMode(str, enum.Enum):
    TESTS = "tests"
    UX = "ux"
    COMPLIANCE = "compliance"


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.perf_counter() - start) * 1000))


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'body'}: {err['msg']}" for err in exc.errors()
    )


class Orchestrator:
    def __init__(
        self,
        probe_client: ProbeClient,
        plan_provider: TestPlanProvider,
        analyzer: ResultAnalyzer,
        recorder: RunRecorder,
        catalog: JourneyCatalog,
        simulator: JourneySimulator,
        validator: CalculatorValidator,
        security_checks: SecurityChecks,
        database_checks: DatabaseChecks,
        max_parallel_probes: int = 1,
    ):
        self.probe_client = probe_client
        self.plan_provider = plan_provider
        self.analyzer = analyzer
        self.recorder = recorder
        self.catalog = catalog
        self.simulator = simulator
        self.validator = validator
        self.security_checks = security_checks
        self.database_checks = database_checks
        self.max_parallel_probes = max(1, max_parallel_probes)

    async def handle(self, mode: RunMode, payload: Any) -> Tuple[int, Dict[str, Any]]:
        """Validate ``payload`` for ``mode`` and run it. Returns (status_code, report)."""
        if not isinstance(payload, dict):
            payload = {}

        try:
            if mode == RunMode.TESTS:
                request = TestRunnerRequest.model_validate(payload)
                runner = self.run_tests
            elif mode == RunMode.UX:
                request = UXTestRequest.model_validate(payload)
                runner = self.run_ux
            else:
                request = ComplianceRequest.model_validate(payload)
                runner = self.run_compliance
        except ValidationError as e:
            logger.warning(f"Rejected {mode.value} request: {e.error_count()} validation error(s)")
            return 400, {"success": False, "error": _validation_message(e)}

        try:
            return 200, await runner(request)
        except Exception as e:
            logger.error(f"{mode.value} run failed: {e}", exc_info=True)
            return 500, {"success": False, "error": str(e) or e.__class__.__name__}

    async def _probe_plan(self, plan: TestPlan) -> List[TestResult]:
        cases = [
            (endpoint, index, test_input)
            for endpoint in plan.endpoints
            for index, test_input in enumerate(get_test_inputs(endpoint), start=1)
        ]

        async def probe_case(endpoint: str, index: int, test_input: Dict[str, Any]) -> TestResult:
            result = await self.probe_client.probe(endpoint, test_input)
            return result.model_copy(update={"name": f"{result.name} - Case {index}"})

        if self.max_parallel_probes == 1:
            return [await probe_case(*case) for case in cases]

        semaphore = asyncio.Semaphore(self.max_parallel_probes)

        async def bounded(case) -> TestResult:
            async with semaphore:
                return await probe_case(*case)

        # gather keeps the results in case order
        return list(await asyncio.gather(*(bounded(case) for case in cases)))

    async def run_feature(
        self,
        feature: str,
        model: ModelSpec,
        use_ai: bool = True,
    ) -> Tuple[TestPlan, List[TestResult], str, str]:
        plan = await self.plan_provider.generate_plan(feature, use_ai=use_ai)
        results = await self._probe_plan(plan)

        if feature == "security":
            results.extend(await self.security_checks.run())
        if feature == "database":
            results.extend(await self.database_checks.run())

        outcome = await self.analyzer.analyze_tests(results, model=model, use_ai=use_ai)
        return plan, results, outcome.analysis, outcome.model_used

    async def run_tests(self, request: TestRunnerRequest) -> Dict[str, Any]:
        start = time.perf_counter()
        model = resolve_model(request.model.value)
        features = ALL_FEATURES if request.feature == "all" else (request.feature,)

        plans: List[TestPlan] = []
        results: List[TestResult] = []
        analyses: List[Tuple[str, str]] = []
        models_used: List[str] = []
        for feature in features:
            plan, feature_results, analysis, model_used = await self.run_feature(feature, model, request.include_ai)
            plans.append(plan)
            results.extend(feature_results)
            analyses.append((feature, analysis))
            models_used.append(model_used)

        if request.feature == "all":
            analysis = "\n".join(f"{feature}: {text}" for feature, text in analyses).strip()
        else:
            analysis = analyses[0][1].strip()
        model_used = next((m for m in models_used if m != FALLBACK_MODEL), FALLBACK_MODEL)

        passed = sum(1 for r in results if r.status == TestStatus.PASSED)
        failed = sum(1 for r in results if r.status == TestStatus.FAILED)
        run_id = str(uuid.uuid4())
        await self.recorder.record_test_run(run_id, request.feature, results, _elapsed_ms(start))

        summary = TestRunSummary(
            total=len(results),
            passed=passed,
            failed=failed,
            pass_rate=int(round_half_up(passed / len(results) * 100)) if results else 0,
            total_duration=_elapsed_ms(start),
        )
        logger.info(f"Test run {run_id} ({request.feature}): {passed}/{len(results)} passed")

        return {
            "success": True,
            "feature": request.feature,
            "summary": summary.to_json_dict(),
            "plans": [plan.to_json_dict() for plan in plans],
            "analysis": analysis,
            "modelUsed": model_used,
            "results": [r.to_json_dict() for r in results],
            "runId": run_id,
            "executedAt": utc_timestamp(),
        }

    async def run_ux(self, request: UXTestRequest) -> Dict[str, Any]:
        personas = self.catalog.select_personas(request.personas)
        journeys = self.catalog.select_journeys(request.journeys)
        logger.info(f"UX run: {len(journeys)} journey(s) x {len(personas)} persona(s)")

        results: List[JourneyResult] = []
        for persona in personas:
            for journey in journeys:
                results.append(await self.simulator.simulate_journey(journey, persona))

        outcome = await self.analyzer.analyze_journeys(results, model=resolve_model(UX_ANALYSIS_MODEL))
        await self.recorder.record_ux_metrics(results, personas, journeys)

        stats = journey_stats(results)
        durations = [r.total_duration for r in results]
        return {
            "success": True,
            "summary": {
                "totalJourneys": len(results),
                "avgUxScore": str(int(round_half_up(stats.avg_score))),
                "overallSuccessRate": f"{int(round_half_up(stats.success_rate * 100))}%",
                "personasTested": len(personas),
                "journeysTested": len(journeys),
                "avgResponseTime": int(round_half_up(sum(durations) / len(durations))) if durations else 0,
            },
            "byPersona": self._by_persona(results, personas),
            "byJourney": self._by_journey(results, journeys),
            "results": self._format_journey_results(results, personas, journeys),
            "analysis": outcome.analysis,
            "timestamp": utc_timestamp(),
        }

    @staticmethod
    def _by_persona(results: Sequence[JourneyResult], personas: Sequence[UserPersona]) -> List[Dict[str, Any]]:
        rows = []
        for persona in personas:
            own = [r for r in results if r.persona == persona.id]
            count = len(own)
            rows.append({
                "name": persona.name,
                "type": persona.id,
                "avgScore": int(round_half_up(sum(r.ux_score for r in own) / count)) if count else 0,
                "completedJourneys": sum(1 for r in own if r.status == JourneyStatus.SUCCESS),
                "totalJourneys": count,
                "frustrations": sum(1 for r in own if r.status == JourneyStatus.FAILED),
                "avgResponseTime": int(round_half_up(sum(r.total_duration for r in own) / count)) if count else 0,
            })
        return rows

    @staticmethod
    def _by_journey(results: Sequence[JourneyResult], journeys: Sequence[Journey]) -> List[Dict[str, Any]]:
        rows = []
        for journey in journeys:
            own = [r for r in results if r.journey == journey.id]
            count = len(own)
            rows.append({
                "journey": journey.id,
                "name": journey.name,
                "avgScore": sum(r.ux_score for r in own) / count if count else 0,
                "successRate": sum(1 for r in own if r.status == JourneyStatus.SUCCESS) / count if count else 0,
                "personas": count,
            })
        return rows

    @staticmethod
    def _format_journey_results(
        results: Sequence[JourneyResult],
        personas: Sequence[UserPersona],
        journeys: Sequence[Journey],
    ) -> List[Dict[str, Any]]:
        journeys_by_id = {j.id: j for j in journeys}
        personas_by_id = {p.id: p for p in personas}
        formatted = []
        for result in results:
            journey: Optional[Journey] = journeys_by_id.get(result.journey)
            persona = personas_by_id.get(result.persona)
            steps = []
            for index, outcome in enumerate(result.steps):
                if journey is not None and index < len(journey.steps):
                    step_name = journey.steps[index].action
                else:
                    step_name = outcome.action or f"Step {index + 1}"
                steps.append({
                    "name": step_name,
                    "status": outcome.status.value,
                    "duration_ms": outcome.duration_ms,
                    "error": outcome.error,
                })
            formatted.append({
                "journey": journey.name if journey else result.journey,
                "persona": persona.name if persona else result.persona,
                "steps": steps,
                "completionRate": int(round_half_up(result.completion_rate * 100)),
                "uxScore": result.ux_score,
                "status": result.status.value,
            })
        return formatted

    async def run_compliance(self, request: ComplianceRequest) -> Dict[str, Any]:
        results = []
        for calculator in request.calculators:
            results.append(await self.validator.validate_calculator(calculator))

        return {
            "success": True,
            "summary": summarize_compliance(results),
            "results": [r.to_json_dict() for r in results],
            "timestamp": utc_timestamp(),
        }


def build_orchestrator(settings, session_factory, ai_provider=None, transport=None) -> Orchestrator:
    """Wire the components from configuration. ``transport`` replaces the outbound HTTP transport."""
    probe_client = ProbeClient(
        settings.FUNCTIONS_BASE_URL,
        timeout=settings.PROBE_TIMEOUT_SECONDS,
        transport=transport,
    )
    return Orchestrator(
        probe_client=probe_client,
        plan_provider=TestPlanProvider(ai_provider, settings.AI_PLAN_MODEL),
        analyzer=ResultAnalyzer(ai_provider),
        recorder=RunRecorder(session_factory, environment=settings.RUN_ENVIRONMENT),
        catalog=JourneyCatalog(),
        simulator=JourneySimulator(probe_client, think_time_cap_ms=settings.THINK_TIME_CAP_MS),
        validator=CalculatorValidator(probe_client),
        security_checks=SecurityChecks(probe_client),
        database_checks=DatabaseChecks(session_factory),
        max_parallel_probes=settings.MAX_PARALLEL_PROBES,
    )
