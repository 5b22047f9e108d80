"""
Persona-weighted journey simulation.

UI-only steps sleep for a persona-scaled "thinking time" (capped, so a run
stays short); endpoint-bound steps make a real call through the probe client.
The UX score is derived from critical-step success, speed against the
journey's expected time, frustrations and highlights.
"""
import asyncio
import logging
import math
import time
from typing import Awaitable, Callable, List

from qa_service.schemas.journeys import (
    Journey,
    JourneyResult,
    JourneyStatus,
    JourneyStep,
    Patience,
    StepOutcome,
    StepStatus,
    UserPersona,
)
from qa_service.services.probe_client import ProbeClient

logger = logging.getLogger(__name__)

THINK_TIME_MULTIPLIERS = {
    Patience.LOW: 0.5,
    Patience.MEDIUM: 1.0,
    Patience.HIGH: 1.5,
}
ABANDON_MESSAGE = "User abandoned journey due to multiple failures"
ABANDON_AFTER_FRUSTRATIONS = 2
HIGHLIGHT_FACTOR = 0.7

BASE_SCORE = 50
CRITICAL_WEIGHT = 30
MAX_SPEED_BONUS = 15
MAX_SPEED_PENALTY = 20
FRUSTRATION_PENALTY = 5
HIGHLIGHT_BONUS = 3


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_ux_score(
    critical_success: float,
    expected_total_ms: int,
    total_duration_ms: int,
    frustrations: int,
    highlights: int,
) -> int:
    score = BASE_SCORE + critical_success * CRITICAL_WEIGHT

    if total_duration_ms <= 0:
        score += MAX_SPEED_BONUS
    else:
        speed_ratio = expected_total_ms / total_duration_ms
        if speed_ratio > 1:
            score += min(MAX_SPEED_BONUS, (speed_ratio - 1) * 20)
        else:
            score -= min(MAX_SPEED_PENALTY, (1 - speed_ratio) * 30)

    score -= frustrations * FRUSTRATION_PENALTY
    score += highlights * HIGHLIGHT_BONUS
    return max(0, min(100, _round_half_up(score)))


def classify_journey(critical_success: float, frustrations: int) -> JourneyStatus:
    if critical_success < 0.5:
        return JourneyStatus.FAILED
    if critical_success < 1 or frustrations > 2:
        return JourneyStatus.PARTIAL
    return JourneyStatus.SUCCESS


class JourneySimulator:
    def __init__(
        self,
        probe_client: ProbeClient,
        think_time_cap_ms: int = 500,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.probe_client = probe_client
        self.think_time_cap_ms = think_time_cap_ms
        self._sleep = sleep

    async def simulate_step(self, step: JourneyStep, persona: UserPersona) -> StepOutcome:
        if step.endpoint:
            return await self.probe_client.call_step(step)

        start = time.perf_counter()
        thinking_ms = step.expected_duration_ms * THINK_TIME_MULTIPLIERS.get(persona.patience, 1.0)
        await self._sleep(min(thinking_ms, self.think_time_cap_ms) / 1000)
        return StepOutcome(
            action=step.action,
            status=StepStatus.PASSED,
            duration_ms=max(0, int((time.perf_counter() - start) * 1000)),
        )

    async def simulate_journey(self, journey: Journey, persona: UserPersona) -> JourneyResult:
        outcomes: List[StepOutcome] = []
        frustrations: List[str] = []
        highlights: List[str] = []
        total_duration = 0

        for step in journey.steps:
            outcome = await self.simulate_step(step, persona)
            outcomes.append(outcome)
            total_duration += outcome.duration_ms

            if outcome.status == StepStatus.FAILED and step.critical_for_success:
                frustrations.append(f"{step.action}: {outcome.error or 'Failed'}")
                if persona.patience == Patience.LOW and len(frustrations) >= ABANDON_AFTER_FRUSTRATIONS:
                    frustrations.append(ABANDON_MESSAGE)
                    break

            if outcome.status == StepStatus.SLOW:
                frustrations.append(f"{step.action}: Slow response ({outcome.duration_ms}ms)")

            if (
                outcome.status == StepStatus.PASSED
                and step.critical_for_success
                and outcome.duration_ms < step.expected_duration_ms * HIGHLIGHT_FACTOR
            ):
                highlights.append(f"{step.action}: Fast response ({outcome.duration_ms}ms)")

        completed = sum(1 for o in outcomes if o.status != StepStatus.FAILED)
        critical_total = sum(1 for s in journey.steps if s.critical_for_success)
        critical_passed = sum(
            1
            for step, outcome in zip(journey.steps, outcomes)
            if step.critical_for_success and outcome.status != StepStatus.FAILED
        )

        completion_rate = completed / len(journey.steps) if journey.steps else 1.0
        critical_success = critical_passed / critical_total if critical_total else 1.0

        ux_score = compute_ux_score(
            critical_success,
            journey.expected_total_time_ms,
            total_duration,
            len(frustrations),
            len(highlights),
        )
        status = classify_journey(critical_success, len(frustrations))
        logger.info(f"Journey {journey.id} as {persona.id}: {status.value}, score {ux_score}/100")

        return JourneyResult(
            persona=persona.id,
            journey=journey.id,
            status=status,
            completion_rate=completion_rate,
            total_duration=total_duration,
            ux_score=ux_score,
            steps=outcomes,
            frustrations=frustrations,
            highlights=highlights,
        )
