"""
Benchmark validation of the calculation endpoints.

Runs each benchmark fixture against its calculator, applies the compliance
rules to the returned outputs and compares the outputs with the fixture's
expected ranges. The blend of both pass rates gives the calculator's accuracy
and grade.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from qa_service.schemas.validation import (
    CalculatorType,
    OutputCheck,
    Severity,
    TestCaseResult,
    ValidationCheck,
    ValidationResult,
)
from qa_service.services import compliance
from qa_service.services.benchmarks import get_benchmarks
from qa_service.services.probe_client import ProbeClient

logger = logging.getLogger(__name__)

CHECK_WEIGHT = 0.6
OUTPUT_WEIGHT = 0.4
SUGGESTION_ACCURACY_FLOOR = 90
MAX_TOP_SUGGESTIONS = 5


def get_nested_value(source: Mapping[str, Any], path: str) -> Any:
    """Resolve a dotted key such as ``stability.FOS_overturning``; ``None`` when absent."""
    current: Any = source
    for part in path.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return None
    return current


def _comparable(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return float(value)
    return compliance.to_number(value)


def _display(value: Any) -> str:
    number = _comparable(value)
    return compliance.format_number(number) if number is not None else str(value)


def summarize_checks(checks: List[ValidationCheck], severity: Severity) -> List[ValidationCheck]:
    return [c for c in checks if not c.passed and c.severity == severity]


class CalculatorValidator:
    """Validates calculators against their benchmark fixtures."""

    def __init__(self, probe_client: ProbeClient):
        self.probe_client = probe_client

    async def validate_calculator(self, calculator: CalculatorType) -> ValidationResult:
        calculator = compliance.parse_calculator(calculator)
        all_checks: List[ValidationCheck] = []
        test_results: List[TestCaseResult] = []
        issues: List[str] = []
        passed_outputs = 0
        total_outputs = 0

        for test in get_benchmarks(calculator):
            outputs = await self.probe_client.call_calculator(calculator, test.inputs)

            if outputs.get("crashed") or outputs.get("error"):
                issues.append(f"{test.name}: Calculator crashed - {outputs.get('error')}")
                test_results.append(TestCaseResult(
                    test_name=test.name,
                    inputs=test.inputs,
                    expected_outputs=test.expected_outputs,
                    actual_outputs=outputs,
                    passed=False,
                ))
                continue

            checks = compliance.validate(calculator, test.inputs, outputs)
            all_checks.extend(checks)
            for check in summarize_checks(checks, Severity.CRITICAL):
                issues.append(f"{test.name}: {check.name} failed (expected {check.expected}, got {check.actual})")

            output_checks = []
            for key, expected in test.expected_outputs.items():
                total_outputs += 1
                actual = get_nested_value(outputs, key)
                value = _comparable(actual)
                in_range = value is not None and expected.contains(value)

                if actual is None:
                    issues.append(f"{test.name}: Missing output '{key}'")
                elif in_range:
                    passed_outputs += 1
                else:
                    issues.append(
                        f"{test.name}: {key} = {_display(actual)}{expected.unit}, "
                        f"expected {compliance.format_number(expected.min)}-{compliance.format_number(expected.max)}{expected.unit}"
                    )
                output_checks.append(OutputCheck(field=key, expected=expected, actual=actual, passed=in_range))

            test_results.append(TestCaseResult(
                test_name=test.name,
                inputs=test.inputs,
                expected_outputs=test.expected_outputs,
                actual_outputs=outputs,
                passed=all(check.passed for check in output_checks),
                output_checks=output_checks,
            ))

        passed_checks = sum(1 for c in all_checks if c.passed)
        check_accuracy = passed_checks / len(all_checks) if all_checks else 0.0
        output_accuracy = passed_outputs / total_outputs if total_outputs else 0.0
        overall_accuracy = compliance.round_half_up(
            (check_accuracy * CHECK_WEIGHT + output_accuracy * OUTPUT_WEIGHT) * 100, 1
        )

        suggestions = []
        critical = summarize_checks(all_checks, Severity.CRITICAL)
        if critical:
            suggestions.append(f"Fix {len(critical)} critical code compliance issues")
        warnings = summarize_checks(all_checks, Severity.WARNING)
        if warnings:
            suggestions.append(f"Review {len(warnings)} calculation accuracy warnings")
        if overall_accuracy < SUGGESTION_ACCURACY_FLOOR:
            suggestions.append("Consider reviewing design formulas against latest code provisions")

        logger.info(
            f"Validated {calculator.value}: accuracy={overall_accuracy} "
            f"checks={passed_checks}/{len(all_checks)} outputs={passed_outputs}/{total_outputs}"
        )

        return ValidationResult(
            calculator=calculator.value,
            overall_accuracy=overall_accuracy,
            standards_compliance={
                "ACI_318": not any(not c.passed and "ACI" in c.standard for c in all_checks),
                # Placeholders: Eurocode 2 and SBC 304 are not evaluated
                "EUROCODE_2": True,
                "SBC_304": True,
            },
            checks=all_checks,
            test_results=test_results,
            issues=issues,
            suggestions=suggestions,
            grade=compliance.grade_for(overall_accuracy),
        )


def summary_grade(accuracy: float) -> str:
    if accuracy >= 95:
        return "A"
    if accuracy >= 85:
        return "B"
    if accuracy >= 75:
        return "C"
    return "D"


def summarize_compliance(results: List[ValidationResult]) -> Dict[str, Any]:
    """Roll per-calculator results up into the compliance report summary."""
    average = sum(r.overall_accuracy for r in results) / len(results) if results else 0.0
    overall_accuracy = compliance.round_half_up(average, 1)

    suggestions: List[str] = []
    for result in results:
        for suggestion in result.suggestions:
            if suggestion not in suggestions:
                suggestions.append(suggestion)

    standards = ("ACI_318", "EUROCODE_2", "SBC_304")
    return {
        "overallAccuracy": overall_accuracy,
        "calculatorsValidated": len(results),
        "totalIssues": sum(len(r.issues) for r in results),
        "criticalIssues": sum(len(summarize_checks(r.checks, Severity.CRITICAL)) for r in results),
        "standardsCompliance": {
            name: all(r.standards_compliance.get(name, True) for r in results) for name in standards
        },
        "overallGrade": summary_grade(overall_accuracy),
        "topSuggestions": suggestions[:MAX_TOP_SUGGESTIONS],
    }
