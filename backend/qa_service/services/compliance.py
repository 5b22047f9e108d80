"""
Engineering-standard compliance checks for calculator outputs.

Each validator is a pure function of ``(inputs, outputs)`` returning a list of
ValidationCheck. Checks whose inputs are missing from the payload are skipped.
Thresholds come from the ACI 318-19 table below and define pass/fail
boundaries exactly.
"""
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional

from qa_service.core.exceptions import UnknownCalculatorError
from qa_service.schemas.validation import CalculatorType, Grade, Severity, ValidationCheck

ENGINEERING_STANDARDS: Dict[str, Dict[str, Any]] = {
    "ACI_318": {
        "name": "ACI 318-19",
        "beam": {
            "min_reinforcement_ratio": 0.0018,
            "max_reinforcement_ratio": 0.04,
            "min_cover": 38,
            "depth_span_ratio": {"min": 1 / 21, "max": 1 / 8},
            "moment_coeff": {"simply_supported": 8, "continuous": 10, "cantilever": 2},
            "dead_load_factor": 1.2,
            "live_load_factor": 1.6,
            "moment_tolerance_pct": 15.0,
        },
        "column": {
            "min_reinforcement_ratio": 0.01,
            "max_reinforcement_ratio": 0.08,
            "slenderness_limit": 22,
            "min_dimension": 200,
        },
        "slab": {
            "max_span_thickness_ratio": 30,
            "max_deflection": "L/240",
            "min_reinforcement": 0.0018,
        },
        "foundation": {
            "min_depth": 150,
            "max_bearing_ratio": 1.0,
            "min_cover": 75,
        },
        "retaining_wall": {
            "fos_overturning": 1.5,
            "fos_sliding": 1.5,
            # Listed for reference; the wall validator does not evaluate it.
            "fos_bearing": 3.0,
            "ka_tolerance_pct": 5.0,
        },
    },
    "EUROCODE_2": {
        "name": "Eurocode 2",
        "beam": {
            "min_reinforcement_ratio": 0.0013,
            "max_reinforcement_ratio": 0.04,
            "min_cover": 35,
            "depth_span_ratio": {"min": 1 / 20, "max": 1 / 7},
        },
        "column": {
            "min_reinforcement_ratio": 0.002,
            "max_reinforcement_ratio": 0.04,
            "slenderness_limit": 25,
        },
    },
}

ACI = ENGINEERING_STANDARDS["ACI_318"]

# Lower bound (inclusive) for each grade, best first
GRADE_THRESHOLDS = [
    (98.0, Grade.A_PLUS),
    (95.0, Grade.A),
    (92.0, Grade.A_MINUS),
    (88.0, Grade.B_PLUS),
    (85.0, Grade.B),
    (80.0, Grade.B_MINUS),
    (70.0, Grade.C),
    (60.0, Grade.D),
]


def grade_for(accuracy: float) -> Grade:
    for threshold, grade in GRADE_THRESHOLDS:
        if accuracy >= threshold:
            return grade
    return Grade.F


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def to_number(value: Any) -> Optional[float]:
    """Numeric value of a payload field; numeric strings are parsed, booleans are not numbers."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def _first_positive(source: Mapping[str, Any], *keys: str) -> Optional[float]:
    for key in keys:
        value = to_number(source.get(key))
        if value is not None and value > 0:
            return value
    return None


def format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def _check(name: str, passed: bool, expected: str, actual: str, standard: str, severity: Severity) -> ValidationCheck:
    return ValidationCheck(
        name=name,
        passed=passed,
        expected=expected,
        actual=actual,
        standard=standard,
        severity=Severity.INFO if passed else severity,
    )


def validate_beam(inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    std = ACI["beam"]
    checks = []

    span = _first_positive(inputs, "span")
    beam_width = _first_positive(inputs, "beamWidth")
    depth = _first_positive(outputs, "beamDepth", "effectiveDepth")
    required_as = _first_positive(outputs, "requiredAs")
    provided_as = to_number(outputs.get("providedAs"))

    if depth and span:
        span_mm = span * 1000
        ratio = depth / span_mm
        ratio_range = std["depth_span_ratio"]
        checks.append(_check(
            "Depth/Span Ratio",
            ratio_range["min"] <= ratio <= ratio_range["max"],
            f"L/{int(round_half_up(1 / ratio_range['max']))} to L/{int(round_half_up(1 / ratio_range['min']))}",
            f"L/{int(round_half_up(span_mm / depth))}",
            "ACI 318-19",
            Severity.WARNING,
        ))

    if required_as and depth and beam_width:
        rho = required_as / (beam_width * 0.9 * depth)
        checks.append(_check(
            "Reinforcement Ratio",
            std["min_reinforcement_ratio"] <= rho <= std["max_reinforcement_ratio"],
            f"{std['min_reinforcement_ratio'] * 100:.2f}% - {std['max_reinforcement_ratio'] * 100:.1f}%",
            f"{rho * 100:.2f}%",
            "ACI 318-19 Section 9.6",
            Severity.CRITICAL,
        ))

    if required_as and provided_as is not None:
        margin = (provided_as - required_as) / required_as * 100
        checks.append(_check(
            "Safety Margin (As)",
            provided_as >= required_as,
            "As_provided ≥ As_required",
            f"{margin:.1f}% margin",
            "Engineering Practice",
            Severity.CRITICAL,
        ))

    max_moment = to_number(outputs.get("maxMoment"))
    dead_load = to_number(inputs.get("deadLoad"))
    live_load = to_number(inputs.get("liveLoad"))
    if max_moment is not None and span and dead_load is not None and live_load is not None:
        w = std["dead_load_factor"] * dead_load + std["live_load_factor"] * live_load
        coeff = 2 if inputs.get("supportType") == "cantilever" else 8
        expected_moment = w * span ** 2 / coeff
        if expected_moment > 0:
            error = abs(max_moment - expected_moment) / expected_moment * 100
            checks.append(_check(
                f"Moment Calculation (wL²/{coeff})",
                error < std["moment_tolerance_pct"],
                f"{expected_moment:.1f} kN.m",
                f"{max_moment:.1f} kN.m ({error:.1f}% diff)",
                "ACI 318 Load Combinations (1.2D + 1.6L)",
                Severity.WARNING,
            ))

    return checks


def validate_column(inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    std = ACI["column"]
    checks = []

    width = _first_positive(inputs, "columnWidth", "width")
    depth = _first_positive(inputs, "columnDepth", "depth") or width
    slenderness = to_number(outputs.get("slendernessRatio"))
    is_slender = outputs.get("isSlender")
    required_as = _first_positive(outputs, "steelAreaRequired", "requiredAs")

    if width:
        min_dimension = min(width, depth)
        checks.append(_check(
            "Minimum Column Dimension",
            min_dimension >= std["min_dimension"],
            f"≥ {std['min_dimension']}mm",
            f"{format_number(min_dimension)}mm",
            "ACI 318-19 Section 10.3",
            Severity.CRITICAL,
        ))

    if slenderness is not None and isinstance(is_slender, bool):
        should_be_slender = slenderness > std["slenderness_limit"]
        expected_label = "slender" if should_be_slender else "short"
        checks.append(_check(
            "Slenderness Classification",
            should_be_slender == is_slender,
            f"{expected_label} (λ = {slenderness:.1f}, limit {std['slenderness_limit']})",
            f"isSlender = {str(is_slender).lower()}",
            "ACI 318-19 Section 6.2.5",
            Severity.WARNING,
        ))

    if required_as and width:
        rho = required_as / (width * depth)
        checks.append(_check(
            "Column Reinforcement Ratio",
            std["min_reinforcement_ratio"] <= rho <= std["max_reinforcement_ratio"],
            f"{std['min_reinforcement_ratio'] * 100:.1f}% - {std['max_reinforcement_ratio'] * 100:.1f}%",
            f"{rho * 100:.2f}%",
            "ACI 318-19 Section 10.6",
            Severity.CRITICAL,
        ))

    return checks


def validate_foundation(inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    std = ACI["foundation"]
    checks = []

    pressure = to_number(outputs.get("bearingPressure"))
    if pressure is None:
        pressure = to_number(outputs.get("actualPressure"))
    capacity = _first_positive(outputs, "bearingCapacity") or _first_positive(inputs, "bearingCapacity")
    footing_depth = to_number(outputs.get("footingDepth"))
    if footing_depth is None:
        footing_depth = to_number(outputs.get("depth"))

    if pressure is not None and capacity:
        ratio = pressure / capacity
        checks.append(_check(
            "Bearing Pressure Ratio",
            ratio <= std["max_bearing_ratio"],
            f"≤ {format_number(capacity)} kPa",
            f"{format_number(pressure)} kPa ({ratio * 100:.0f}%)",
            "Geotechnical Limit",
            Severity.CRITICAL,
        ))

    if footing_depth is not None:
        checks.append(_check(
            "Minimum Footing Depth",
            footing_depth >= std["min_depth"],
            f"≥ {std['min_depth']}mm",
            f"{format_number(footing_depth)}mm",
            "ACI 318-19",
            Severity.WARNING,
        ))

    return checks


def validate_slab(inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    std = ACI["slab"]
    checks = []

    short_span = _first_positive(inputs, "shortSpan")
    long_span = _first_positive(inputs, "longSpan")
    thickness = _first_positive(outputs, "thickness")
    slab_type = outputs.get("slabType")

    if thickness and short_span:
        ratio = short_span * 1000 / thickness
        checks.append(_check(
            "Span/Thickness Ratio",
            ratio <= std["max_span_thickness_ratio"],
            f"L/h ≤ {std['max_span_thickness_ratio']}",
            f"L/h = {ratio:.1f}",
            "ACI 318-19 Section 7.3.1",
            Severity.WARNING,
        ))

    # Informational only: reports the span ratio next to the calculator's classification
    if slab_type and short_span and long_span:
        checks.append(_check(
            "Slab Classification",
            True,
            f"Ly/Lx = {long_span / short_span:.2f}",
            str(slab_type),
            "ACI 318 Classification",
            Severity.INFO,
        ))

    return checks


def validate_retaining_wall(inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    std = ACI["retaining_wall"]
    checks = []

    stability = outputs.get("stability")
    stability = stability if isinstance(stability, Mapping) else {}
    fos_overturning = to_number(stability.get("FOS_overturning"))
    fos_sliding = to_number(stability.get("FOS_sliding"))

    if fos_overturning is not None:
        checks.append(_check(
            "Factor of Safety - Overturning",
            fos_overturning >= std["fos_overturning"],
            f"≥ {std['fos_overturning']}",
            f"{fos_overturning:.2f}",
            "ACI 318 / ASCE 7",
            Severity.CRITICAL,
        ))

    if fos_sliding is not None:
        checks.append(_check(
            "Factor of Safety - Sliding",
            fos_sliding >= std["fos_sliding"],
            f"≥ {std['fos_sliding']}",
            f"{fos_sliding:.2f}",
            "ACI 318 / ASCE 7",
            Severity.CRITICAL,
        ))

    phi = _first_positive(inputs, "soilFrictionAngle")
    earth_pressure = outputs.get("earthPressure")
    actual_ka = to_number(earth_pressure.get("Ka")) if isinstance(earth_pressure, Mapping) else None
    if phi and actual_ka is not None:
        expected_ka = math.tan(math.pi / 4 - math.radians(phi) / 2) ** 2
        if expected_ka > 0:
            error = abs(actual_ka - expected_ka) / expected_ka * 100
            checks.append(_check(
                "Rankine Ka Coefficient",
                error < std["ka_tolerance_pct"],
                f"Ka = {expected_ka:.3f}",
                f"Ka = {actual_ka:.3f}",
                "Rankine Earth Pressure Theory",
                Severity.WARNING,
            ))

    return checks


Validator = Callable[[Mapping[str, Any], Mapping[str, Any]], List[ValidationCheck]]

VALIDATORS: Dict[CalculatorType, Validator] = {
    CalculatorType.BEAM: validate_beam,
    CalculatorType.COLUMN: validate_column,
    CalculatorType.FOUNDATION: validate_foundation,
    CalculatorType.SLAB: validate_slab,
    CalculatorType.RETAINING_WALL: validate_retaining_wall,
}

_unmapped = set(CalculatorType) - set(VALIDATORS)
if _unmapped:
    raise RuntimeError(f"No compliance validator for: {sorted(c.value for c in _unmapped)}")


def parse_calculator(value: Any) -> CalculatorType:
    try:
        return CalculatorType(value)
    except ValueError as e:
        raise UnknownCalculatorError(f"Unknown calculator type: {value!r}") from e


def validate(calculator: Any, inputs: Mapping[str, Any], outputs: Mapping[str, Any]) -> List[ValidationCheck]:
    """Run every compliance check registered for ``calculator``."""
    return VALIDATORS[parse_calculator(calculator)](inputs or {}, outputs or {})
