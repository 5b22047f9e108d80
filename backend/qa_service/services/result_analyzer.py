"""
Natural-language summaries of test and journey results.

The AI gateway is asked first; when it is unconfigured or fails, a
deterministic summary built from the statistics is returned instead, so the
analysis text is never empty.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Union

from qa_service.ai_providers.base import AIProvider
from qa_service.ai_providers.gateway import ModelSpec, resolve_model
from qa_service.core.resilience import resilient_call
from qa_service.schemas.journeys import JourneyResult, JourneyStatus
from qa_service.schemas.testing import TestResult, TestStatus
from qa_service.services.compliance import round_half_up

logger = logging.getLogger(__name__)

FALLBACK_MODEL = "fallback"
MAX_FAILURES_IN_PROMPT = 10
MAX_FRUSTRATIONS_IN_PROMPT = 10
MAX_HIGHLIGHTS = 5
MAX_FRUSTRATIONS_IN_FALLBACK = 5

TEST_ANALYST_PROMPT = (
    "You are a QA analyst. Analyze test results and provide a brief summary "
    "(2-3 sentences) with key insights and recommendations."
)


@dataclass(frozen=True)
class AnalysisOutcome:
    analysis: str
    model_used: str


@dataclass(frozen=True)
class JourneyStats:
    avg_score: float
    success_rate: float
    by_persona: Dict[str, Dict[str, float]]
    frustrations: List[str]
    highlights: List[str]


def _pct(value: float) -> str:
    return f"{int(round_half_up(value * 100))}%"


def _whole(value: float) -> str:
    return str(int(round_half_up(value)))


def journey_stats(results: Sequence[JourneyResult]) -> JourneyStats:
    count = len(results)
    by_persona: Dict[str, Dict[str, float]] = {}
    for result in results:
        entry = by_persona.setdefault(result.persona, {"score_sum": 0, "successes": 0, "total": 0})
        entry["score_sum"] += result.ux_score
        entry["total"] += 1
        if result.status == JourneyStatus.SUCCESS:
            entry["successes"] += 1
    for entry in by_persona.values():
        entry["avg_score"] = entry["score_sum"] / entry["total"]

    return JourneyStats(
        avg_score=sum(r.ux_score for r in results) / count if count else 0.0,
        success_rate=sum(1 for r in results if r.status == JourneyStatus.SUCCESS) / count if count else 0.0,
        by_persona=by_persona,
        frustrations=[f for r in results for f in r.frustrations],
        highlights=[h for r in results for h in r.highlights],
    )


def fallback_test_analysis(results: Sequence[TestResult]) -> str:
    if not results:
        return "No tests were run."
    passed = sum(1 for r in results if r.status == TestStatus.PASSED)
    failed = [r.name for r in results if r.status == TestStatus.FAILED]
    tail = f"Issues: {', '.join(failed)}" if failed else "All systems healthy."
    return f"{passed}/{len(results)} tests passed. {tail}"


def fallback_journey_analysis(results: Sequence[JourneyResult]) -> str:
    stats = journey_stats(results)
    personas = ", ".join(f"{pid}: {_whole(entry['avg_score'])}" for pid, entry in stats.by_persona.items())
    return (
        f"**UX Summary**: Average score {_whole(stats.avg_score)}/100, "
        f"{_pct(stats.success_rate)} success rate.\n\n"
        f"**By Persona**: {personas or 'none tested'}\n\n"
        f"**Common Frustrations**: {'; '.join(stats.frustrations[:MAX_FRUSTRATIONS_IN_FALLBACK]) or 'none'}\n\n"
        f"**Highlights**: {'; '.join(stats.highlights[:MAX_HIGHLIGHTS]) or 'none'}"
    )


def build_test_prompt(results: Sequence[TestResult]) -> str:
    passed = sum(1 for r in results if r.status == TestStatus.PASSED)
    failures = [r for r in results if r.status == TestStatus.FAILED]
    avg_duration = sum(r.duration_ms for r in results) / len(results) if results else 0
    failure_lines = "\n".join(
        f"- {r.name} ({r.category}): {r.error_message}" for r in failures[:MAX_FAILURES_IN_PROMPT]
    )
    return (
        "Analyze these test results:\n"
        f"- Total: {len(results)}\n"
        f"- Passed: {passed}\n"
        f"- Failed: {len(failures)}\n"
        f"- Average duration: {_whole(avg_duration)}ms\n\n"
        f"Failures:\n{failure_lines or '- none'}"
    )


def build_journey_prompt(results: Sequence[JourneyResult]) -> str:
    stats = journey_stats(results)
    persona_lines = "\n".join(
        f"- {pid}: Avg score {_whole(entry['avg_score'])}, {int(entry['successes'])}/{int(entry['total'])} successful"
        for pid, entry in stats.by_persona.items()
    )
    frustration_lines = "\n".join(f"- {f}" for f in stats.frustrations[:MAX_FRUSTRATIONS_IN_PROMPT])
    highlight_lines = "\n".join(f"- {h}" for h in stats.highlights[:MAX_HIGHLIGHTS])
    return (
        "Analyze these UX test results and provide actionable recommendations:\n\n"
        "Overall:\n"
        f"- Average UX Score: {_whole(stats.avg_score)}/100\n"
        f"- Journey Success Rate: {_pct(stats.success_rate)}\n"
        f"- Journeys Tested: {len(results)}\n\n"
        f"By Persona:\n{persona_lines}\n\n"
        f"Top Frustrations:\n{frustration_lines}\n\n"
        f"Highlights:\n{highlight_lines}\n\n"
        "Provide:\n"
        "1. Overall UX health (1 sentence)\n"
        "2. Top 3 UX improvements needed\n"
        "3. Persona-specific issues\n"
        "4. Quick wins to implement"
    )


class ResultAnalyzer:
    def __init__(self, ai_provider: Optional[AIProvider], default_model: Optional[ModelSpec] = None):
        self.ai_provider = ai_provider
        self.default_model = default_model or resolve_model("claude")

    @property
    def ai_available(self) -> bool:
        return self.ai_provider is not None and self.ai_provider.is_configured

    async def _summarize(
        self,
        messages: List[Dict[str, str]],
        fallback_text: Callable,
        model: ModelSpec,
        use_ai: bool,
        label: str,
    ) -> AnalysisOutcome:
        def fallback() -> AnalysisOutcome:
            return AnalysisOutcome(analysis=fallback_text(), model_used=FALLBACK_MODEL)

        if not use_ai or not self.ai_available:
            return fallback()

        async def primary() -> AnalysisOutcome:
            text = await self.ai_provider.chat_completion(messages, model.model_id, {})
            return AnalysisOutcome(analysis=text.strip(), model_used=model.display_name)

        return await resilient_call(primary, fallback, label=label)

    async def analyze_tests(
        self,
        results: Sequence[TestResult],
        model: Optional[ModelSpec] = None,
        use_ai: bool = True,
    ) -> AnalysisOutcome:
        messages = [
            {"role": "system", "content": TEST_ANALYST_PROMPT},
            {"role": "user", "content": build_test_prompt(results)},
        ]
        return await self._summarize(
            messages,
            lambda: fallback_test_analysis(results),
            model or self.default_model,
            use_ai,
            "Test result analysis",
        )

    async def analyze_journeys(
        self,
        results: Sequence[JourneyResult],
        model: Optional[ModelSpec] = None,
        use_ai: bool = True,
    ) -> AnalysisOutcome:
        messages = [{"role": "user", "content": build_journey_prompt(results)}]
        return await self._summarize(
            messages,
            lambda: fallback_journey_analysis(results),
            model or self.default_model,
            use_ai,
            "Journey result analysis",
        )

    async def analyze(
        self,
        results: Sequence[Union[TestResult, JourneyResult]],
        model: Optional[ModelSpec] = None,
        use_ai: bool = True,
    ) -> AnalysisOutcome:
        """Summarize either kind of result list; an empty list is summarized as tests."""
        if results and all(isinstance(r, JourneyResult) for r in results):
            return await self.analyze_journeys(results, model, use_ai)
        return await self.analyze_tests(results, model, use_ai)
