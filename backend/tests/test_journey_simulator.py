import httpx
import pytest

from qa_service.schemas.journeys import (
    DeviceType,
    Expertise,
    Journey,
    JourneyStatus,
    JourneyStep,
    Patience,
    StepStatus,
    UserPersona,
)
from qa_service.services.journey_simulator import (
    ABANDON_MESSAGE,
    JourneySimulator,
    classify_journey,
    compute_ux_score,
)


def _persona(patience: Patience) -> UserPersona:
    return UserPersona(
        id=f"{patience.value}_tester",
        name="Tester",
        description="Simulated user",
        expertise=Expertise.INTERMEDIATE,
        patience=patience,
        device_type=DeviceType.DESKTOP,
        typing_speed=40,
        reading_speed=200,
    )


def _journey(*steps: JourneyStep, expected_total: int = 10000) -> Journey:
    return Journey(
        id="test_journey",
        name="Test Journey",
        description="Journey used by the simulator tests",
        steps=list(steps),
        expected_total_time_ms=expected_total,
    )


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _failing_client(make_probe_client):
    return make_probe_client(lambda request: httpx.Response(500, json={"error": "Internal error"}))


def test_ux_score_formula():
    # base 50 + 30 critical + min(15, (2 - 1) * 20)
    assert compute_ux_score(1.0, 30000, 15000, 0, 0) == 95
    # base 50 + 0 critical - min(20, 0.5 * 30)
    assert compute_ux_score(0.0, 1000, 2000, 0, 0) == 35
    assert compute_ux_score(1.0, 1000, 0, 0, 0) == 95
    assert compute_ux_score(0.0, 1000, 100000, 30, 0) == 0
    assert compute_ux_score(1.0, 30000, 1000, 0, 10) == 100


def test_ux_score_penalizes_frustrations_and_rewards_highlights():
    base = compute_ux_score(1.0, 1000, 1000, 0, 0)
    assert base == 80
    assert compute_ux_score(1.0, 1000, 1000, 2, 0) == 70
    assert compute_ux_score(1.0, 1000, 1000, 0, 2) == 86


@pytest.mark.parametrize(
    "critical_success, frustrations, status",
    [
        (0.4, 0, JourneyStatus.FAILED),
        (0.5, 0, JourneyStatus.PARTIAL),
        (0.8, 0, JourneyStatus.PARTIAL),
        (1.0, 3, JourneyStatus.PARTIAL),
        (1.0, 2, JourneyStatus.SUCCESS),
    ],
)
def test_classify_journey(critical_success, frustrations, status):
    assert classify_journey(critical_success, frustrations) == status


@pytest.mark.asyncio
async def test_ui_steps_sleep_for_persona_scaled_think_time(make_probe_client):
    sleep = RecordingSleep()
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=10000, sleep=sleep)
    step = JourneyStep(action="Read results", expected_duration_ms=1000)

    await simulator.simulate_step(step, _persona(Patience.LOW))
    await simulator.simulate_step(step, _persona(Patience.HIGH))

    assert sleep.delays == [0.5, 1.5]


@pytest.mark.asyncio
async def test_think_time_is_capped(make_probe_client):
    sleep = RecordingSleep()
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=300, sleep=sleep)

    outcome = await simulator.simulate_step(
        JourneyStep(action="Read results", expected_duration_ms=5000),
        _persona(Patience.MEDIUM),
    )

    assert sleep.delays == [0.3]
    assert outcome.status == StepStatus.PASSED


@pytest.mark.asyncio
async def test_ui_only_journey_succeeds_with_highlights(make_probe_client):
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=0, sleep=RecordingSleep())
    journey = _journey(
        JourneyStep(action="Open page", expected_duration_ms=1000),
        JourneyStep(action="Pick calculator", expected_duration_ms=1000, critical_for_success=True),
        JourneyStep(action="Enter values", expected_duration_ms=1000, critical_for_success=True),
    )

    result = await simulator.simulate_journey(journey, _persona(Patience.MEDIUM))

    assert result.status == JourneyStatus.SUCCESS
    assert result.completion_rate == 1.0
    assert len(result.steps) == 3
    assert len(result.highlights) == 2
    assert result.frustrations == []
    assert result.ux_score == 100


@pytest.mark.asyncio
async def test_low_patience_persona_abandons_after_two_critical_failures(make_probe_client):
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=0, sleep=RecordingSleep())
    journey = _journey(
        JourneyStep(action="Submit beam", endpoint="calculate-beam", expected_duration_ms=3000,
                    critical_for_success=True),
        JourneyStep(action="Submit column", endpoint="calculate-column", expected_duration_ms=3000,
                    critical_for_success=True),
        JourneyStep(action="Submit slab", endpoint="calculate-slab", expected_duration_ms=3000,
                    critical_for_success=True),
    )

    result = await simulator.simulate_journey(journey, _persona(Patience.LOW))

    assert len(result.steps) == 2
    assert result.frustrations == [
        "Submit beam: Internal error",
        "Submit column: Internal error",
        ABANDON_MESSAGE,
    ]
    assert result.status == JourneyStatus.FAILED
    assert result.completion_rate == 0.0


@pytest.mark.asyncio
async def test_patient_persona_walks_every_step(make_probe_client):
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=0, sleep=RecordingSleep())
    journey = _journey(
        JourneyStep(action="Submit beam", endpoint="calculate-beam", expected_duration_ms=3000,
                    critical_for_success=True),
        JourneyStep(action="Submit column", endpoint="calculate-column", expected_duration_ms=3000,
                    critical_for_success=True),
        JourneyStep(action="Review", expected_duration_ms=1000, critical_for_success=True),
    )

    result = await simulator.simulate_journey(journey, _persona(Patience.HIGH))

    assert len(result.steps) == 3
    assert ABANDON_MESSAGE not in result.frustrations
    assert result.steps[2].status == StepStatus.PASSED
    # one of three critical steps passed
    assert result.status == JourneyStatus.FAILED
    assert result.completion_rate == pytest.approx(1 / 3)


@pytest.mark.asyncio
async def test_non_critical_failure_keeps_journey_successful(make_probe_client):
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=0, sleep=RecordingSleep())
    journey = _journey(
        JourneyStep(action="Enter values", expected_duration_ms=1000, critical_for_success=True),
        JourneyStep(action="Ask AI", endpoint="support-bot", expected_duration_ms=4000),
    )

    result = await simulator.simulate_journey(journey, _persona(Patience.LOW))

    assert result.status == JourneyStatus.SUCCESS
    assert result.frustrations == []
    assert result.completion_rate == 0.5


@pytest.mark.asyncio
async def test_journey_without_critical_steps_counts_as_critical_success(make_probe_client):
    simulator = JourneySimulator(_failing_client(make_probe_client), think_time_cap_ms=0, sleep=RecordingSleep())
    journey = _journey(JourneyStep(action="Browse", expected_duration_ms=1000))

    result = await simulator.simulate_journey(journey, _persona(Patience.MEDIUM))

    assert result.status == JourneyStatus.SUCCESS
