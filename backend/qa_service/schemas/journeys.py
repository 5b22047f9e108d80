import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from qa_service.schemas.base import CamelModel


class Expertise(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    EXPERT = "expert"


class Patience(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DeviceType(str, enum.Enum):
    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class UserPersona(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    language: str = "en"
    expertise: Expertise
    patience: Patience
    device_type: DeviceType
    typing_speed: int = Field(description="characters per second")
    reading_speed: int = Field(description="words per minute")


class JourneyStep(CamelModel):
    model_config = ConfigDict(frozen=True)

    action: str
    endpoint: Optional[str] = None
    input: Optional[Dict[str, Any]] = None
    expected_duration_ms: int = Field(gt=0)
    critical_for_success: bool = False


class Journey(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    steps: List[JourneyStep]
    expected_total_time_ms: int = Field(gt=0)


class StepStatus(str, enum.Enum):
    PASSED = "passed"
    FAILED = "failed"
    SLOW = "slow"


class StepOutcome(BaseModel):
    """Result of one simulated step. Serialized with snake_case keys."""

    model_config = ConfigDict(frozen=True)

    action: str
    status: StepStatus
    duration_ms: int = Field(ge=0)
    error: Optional[str] = None


class JourneyStatus(str, enum.Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


class JourneyResult(CamelModel):
    persona: str
    journey: str
    status: JourneyStatus
    completion_rate: float = Field(ge=0, le=1)
    total_duration: int
    ux_score: int = Field(ge=0, le=100)
    steps: List[StepOutcome] = Field(default_factory=list)
    frustrations: List[str] = Field(default_factory=list)
    highlights: List[str] = Field(default_factory=list)


class UXTestRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    personas: Optional[List[str]] = None
    journeys: Optional[List[str]] = None
