import enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from qa_service.schemas.base import CamelModel


class CalculatorType(str, enum.Enum):
    """Calculators under validation. The value is the endpoint suffix (calculate-<value>)."""

    BEAM = "beam"
    COLUMN = "column"
    FOUNDATION = "foundation"
    SLAB = "slab"
    RETAINING_WALL = "retaining-wall"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def endpoint(self) -> str:
        return f"calculate-{self.value}"


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Grade(str, enum.Enum):
    A_PLUS = "A+"
    A = "A"
    A_MINUS = "A-"
    B_PLUS = "B+"
    B = "B"
    B_MINUS = "B-"
    C = "C"
    D = "D"
    F = "F"

    @property
    def rank(self) -> int:
        """Higher is better; F ranks 0."""
        return len(GRADE_ORDER) - 1 - GRADE_ORDER.index(self)


GRADE_ORDER = list(Grade)


class OutputRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    min: float
    max: float
    unit: str = ""

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min > self.max:
            raise ValueError(f"Range minimum {self.min} exceeds maximum {self.max}")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class BenchmarkTest(CamelModel):
    """A literal calculator input with the output ranges it must land in."""

    model_config = ConfigDict(frozen=True)

    name: str
    inputs: Dict[str, Any]
    expected_outputs: Dict[str, OutputRange] = Field(default_factory=dict)


class ValidationCheck(CamelModel):
    model_config = ConfigDict(frozen=True)

    name: str
    passed: bool
    expected: str
    actual: str
    standard: str
    severity: Severity


class OutputCheck(CamelModel):
    field: str
    expected: OutputRange
    actual: Optional[Any] = None
    passed: bool = False


class TestCaseResult(CamelModel):
    __test__ = False

    test_name: str
    inputs: Dict[str, Any]
    expected_outputs: Dict[str, OutputRange]
    actual_outputs: Dict[str, Any] = Field(default_factory=dict)
    passed: bool = True
    output_checks: List[OutputCheck] = Field(default_factory=list)


class ValidationResult(CamelModel):
    calculator: str
    overall_accuracy: float = Field(ge=0, le=100)
    standards_compliance: Dict[str, bool]
    checks: List[ValidationCheck] = Field(default_factory=list)
    test_results: List[TestCaseResult] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    grade: Grade


DEFAULT_CALCULATORS = [
    CalculatorType.BEAM,
    CalculatorType.COLUMN,
    CalculatorType.FOUNDATION,
    CalculatorType.SLAB,
    CalculatorType.RETAINING_WALL,
]


class ComplianceRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    calculators: List[CalculatorType] = Field(default_factory=lambda: list(DEFAULT_CALCULATORS))

    @field_validator("calculators", mode="before")
    @classmethod
    def default_when_null(cls, v):
        return list(DEFAULT_CALCULATORS) if v is None else v
