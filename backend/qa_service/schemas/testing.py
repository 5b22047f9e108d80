import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from qa_service.schemas.base import CamelModel


class TestStatus(str, enum.Enum):
    __test__ = False

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class TestPlan(CamelModel):
    """Structured plan for one feature: what to probe and what to expect."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    goal: str
    steps: List[str] = Field(default_factory=list)
    expected_outcomes: List[str] = Field(default_factory=list)
    endpoints: List[str] = Field(default_factory=list)


class TestResult(BaseModel):
    """Outcome of one probe or battery check. Serialized with snake_case keys."""

    __test__ = False
    model_config = ConfigDict(frozen=True)

    name: str
    category: str
    status: TestStatus
    duration_ms: int = Field(ge=0)
    error_message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json")


class AIModelChoice(str, enum.Enum):
    CLAUDE = "claude"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"


class TestRunnerRequest(BaseModel):
    __test__ = False
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    feature: str = Field("all", min_length=1, max_length=100)
    include_ai: bool = Field(True, alias="includeAI")
    model: AIModelChoice = AIModelChoice.CLAUDE


class TestRunSummary(CamelModel):
    __test__ = False

    total: int
    passed: int
    failed: int
    pass_rate: int
    total_duration: int
