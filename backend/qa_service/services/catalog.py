"""
Simulated user personas and the journeys they walk through.
"""
from typing import Iterable, Optional, Tuple

from qa_service.schemas.journeys import (
    DeviceType,
    Expertise,
    Journey,
    JourneyStep,
    Patience,
    UserPersona,
)

USER_PERSONAS: Tuple[UserPersona, ...] = (
    UserPersona(
        id="new_engineer",
        name="New Graduate Engineer",
        description="Fresh engineering graduate, first time using structural calculators",
        language="en",
        expertise=Expertise.BEGINNER,
        patience=Patience.HIGH,
        device_type=DeviceType.DESKTOP,
        typing_speed=40,
        reading_speed=200,
    ),
    UserPersona(
        id="expert_engineer",
        name="Senior Structural Engineer",
        description="15+ years experience, expects fast professional tools",
        language="en",
        expertise=Expertise.EXPERT,
        patience=Patience.LOW,
        device_type=DeviceType.DESKTOP,
        typing_speed=80,
        reading_speed=350,
    ),
    UserPersona(
        id="mobile_user",
        name="On-Site Engineer",
        description="Using phone at construction site, needs quick answers",
        language="en",
        expertise=Expertise.INTERMEDIATE,
        patience=Patience.LOW,
        device_type=DeviceType.MOBILE,
        typing_speed=25,
        reading_speed=250,
    ),
    UserPersona(
        id="arabic_engineer",
        name="مهندس سعودي",
        description="Saudi engineer preferring Arabic interface",
        language="ar",
        expertise=Expertise.INTERMEDIATE,
        patience=Patience.MEDIUM,
        device_type=DeviceType.DESKTOP,
        typing_speed=35,
        reading_speed=220,
    ),
    UserPersona(
        id="impatient_user",
        name="Rushed Project Manager",
        description="Needs quick calculations for deadline, low tolerance for delays",
        language="en",
        expertise=Expertise.BEGINNER,
        patience=Patience.LOW,
        device_type=DeviceType.DESKTOP,
        typing_speed=60,
        reading_speed=300,
    ),
)


def _step(action: str, duration: int, critical: bool, endpoint: Optional[str] = None, payload=None) -> JourneyStep:
    return JourneyStep(
        action=action,
        endpoint=endpoint,
        input=payload,
        expected_duration_ms=duration,
        critical_for_success=critical,
    )


USER_JOURNEYS: Tuple[Journey, ...] = (
    Journey(
        id="first_beam_calculation",
        name="First Beam Calculation",
        description="New user performs their first beam calculation end-to-end",
        expected_total_time_ms=30000,
        steps=[
            _step("View landing page", 2000, False),
            _step("Navigate to engineering", 1000, True),
            _step("Select beam calculator", 500, True),
            _step("Enter span value", 2000, True),
            _step("Enter dead load", 1500, True),
            _step("Enter live load", 1500, True),
            _step("Enter beam width", 1500, True),
            _step(
                "Submit calculation", 3000, True, "calculate-beam",
                {"span": 6, "deadLoad": 10, "liveLoad": 15, "beamWidth": 300, "concreteGrade": 30, "steelGrade": 420},
            ),
            _step("View results", 2000, True),
        ],
    ),
    Journey(
        id="quick_column_check",
        name="Quick Column Check",
        description="Expert user quickly checks a column design",
        expected_total_time_ms=15000,
        steps=[
            _step("Navigate directly to column calculator", 500, True),
            _step("Enter all parameters", 3000, True),
            _step(
                "Submit calculation", 2000, True, "calculate-column",
                {"columnHeight": 4, "axialLoad": 700, "momentX": 80, "momentY": 50, "columnWidth": 450,
                 "columnDepth": 450, "concreteGrade": 35, "steelGrade": 500},
            ),
            _step("Review adequacy", 1000, True),
        ],
    ),
    Journey(
        id="foundation_design_flow",
        name="Foundation Design Flow",
        description="Complete foundation design with AI assistance",
        expected_total_time_ms=45000,
        steps=[
            _step("Select foundation calculator", 1000, True),
            _step("Enter column load", 2000, True),
            _step("Enter column dimensions", 3000, True),
            _step("Enter bearing capacity", 2000, True),
            _step(
                "Submit calculation", 3000, True, "calculate-foundation",
                {"columnLoad": 1000, "columnWidth": 450, "columnDepth": 450, "bearingCapacity": 175,
                 "concreteGrade": 35, "steelGrade": 420},
            ),
            _step(
                "Ask AI for optimization", 5000, False, "engineering-ai-chat",
                {"calculatorType": "foundation", "question": "How can I optimize this foundation design?",
                 "currentInputs": {"columnLoad": 1000}, "stream": False},
            ),
            _step("Review AI suggestion", 3000, False),
        ],
    ),
    Journey(
        id="support_interaction",
        name="Getting Help",
        description="User seeks help through support bot",
        expected_total_time_ms=20000,
        steps=[
            _step("Click help/support", 500, True),
            _step("Type question", 3000, True),
            _step(
                "Submit question", 4000, True, "support-bot",
                {"message": "How do I interpret the reinforcement results?"},
            ),
            _step("Read response", 5000, True),
            _step("Rate helpfulness", 1000, False),
        ],
    ),
    Journey(
        id="arabic_user_flow",
        name="Arabic User Experience",
        description="Arabic-speaking user navigates and calculates",
        expected_total_time_ms=35000,
        steps=[
            _step("View landing page (RTL)", 2000, False),
            _step("Switch language to Arabic", 1000, True),
            _step("Navigate to calculators", 1500, True),
            _step("Select beam calculator", 1000, True),
            _step("Enter values", 5000, True),
            _step(
                "Submit calculation", 3000, True, "calculate-beam",
                {"span": 5, "deadLoad": 8, "liveLoad": 12, "beamWidth": 250, "concreteGrade": 30, "steelGrade": 420},
            ),
            _step("Ask AI in Arabic", 4000, False, "support-bot", {"message": "ما هو أفضل قطر للحديد؟"}),
        ],
    ),
)


class JourneyCatalog:
    """Read-only persona and journey tables, selectable by id in catalog order."""

    def __init__(
        self,
        personas: Iterable[UserPersona] = USER_PERSONAS,
        journeys: Iterable[Journey] = USER_JOURNEYS,
    ):
        self.personas: Tuple[UserPersona, ...] = tuple(personas)
        self.journeys: Tuple[Journey, ...] = tuple(journeys)

    def select_personas(self, ids: Optional[Iterable[str]] = None) -> Tuple[UserPersona, ...]:
        if ids is None:
            return self.personas
        wanted = set(ids)
        return tuple(p for p in self.personas if p.id in wanted)

    def select_journeys(self, ids: Optional[Iterable[str]] = None) -> Tuple[Journey, ...]:
        if ids is None:
            return self.journeys
        wanted = set(ids)
        return tuple(j for j in self.journeys if j.id in wanted)

