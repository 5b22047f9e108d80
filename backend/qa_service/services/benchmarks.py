"""
Static fixture tables: benchmark cases per calculator and probe inputs per endpoint.

Both tables are plain data. Adding a calculator case or an endpoint input only
means adding an entry here.
"""
import copy
from typing import Any, Dict, List

from qa_service.schemas.validation import BenchmarkTest, CalculatorType, OutputRange


def _ranges(**ranges) -> Dict[str, OutputRange]:
    return {key: OutputRange(min=lo, max=hi, unit=unit) for key, (lo, hi, unit) in ranges.items()}


BENCHMARK_TESTS: Dict[CalculatorType, List[BenchmarkTest]] = {
    CalculatorType.BEAM: [
        BenchmarkTest(
            name="Standard 6m Simply Supported Beam",
            inputs={
                "span": 6, "deadLoad": 15, "liveLoad": 10, "beamWidth": 300,
                "concreteGrade": "C30", "steelGrade": "Fy420", "supportType": "simply_supported",
            },
            expected_outputs=_ranges(
                maxMoment=(160, 175, "kN.m"),
                beamDepth=(400, 650, "mm"),
                requiredAs=(600, 1200, "mm²"),
            ),
        ),
        BenchmarkTest(
            name="Heavy Load Beam 8m",
            inputs={
                "span": 8, "deadLoad": 30, "liveLoad": 25, "beamWidth": 350,
                "concreteGrade": "C30", "steelGrade": "Fy420", "supportType": "simply_supported",
            },
            expected_outputs=_ranges(
                maxMoment=(620, 700, "kN.m"),
                beamDepth=(650, 900, "mm"),
                requiredAs=(1800, 3500, "mm²"),
            ),
        ),
        BenchmarkTest(
            name="Cantilever Beam 3m",
            inputs={
                "span": 3, "deadLoad": 15, "liveLoad": 10, "beamWidth": 300,
                "concreteGrade": "C30", "steelGrade": "Fy420", "supportType": "cantilever",
            },
            expected_outputs=_ranges(
                maxMoment=(160, 175, "kN.m"),
                beamDepth=(400, 600, "mm"),
            ),
        ),
    ],
    CalculatorType.COLUMN: [
        BenchmarkTest(
            name="Standard Square Column 400x400",
            inputs={
                "axialLoad": 1500, "momentX": 100, "momentY": 80, "columnWidth": 400, "columnDepth": 400,
                "columnHeight": 3500, "concreteGrade": "C30", "steelGrade": "420",
                "coverThickness": 40, "columnType": "tied",
            },
            expected_outputs=_ranges(
                steelAreaRequired=(1200, 3200, "mm²"),
                slendernessRatio=(25, 35, ""),
            ),
        ),
        BenchmarkTest(
            name="Slender Column 300x300 6m Height",
            inputs={
                "axialLoad": 800, "momentX": 50, "momentY": 40, "columnWidth": 300, "columnDepth": 300,
                "columnHeight": 6000, "concreteGrade": "C30", "steelGrade": "420",
                "coverThickness": 40, "columnType": "tied",
            },
            expected_outputs=_ranges(
                slendernessRatio=(60, 80, ""),
                isSlender=(1, 1, "boolean"),
            ),
        ),
    ],
    CalculatorType.FOUNDATION: [
        BenchmarkTest(
            name="Standard Isolated Footing 1200kN",
            inputs={
                "columnLoad": 1200, "momentX": 80, "momentY": 60, "columnWidth": 400, "columnDepth": 400,
                "bearingCapacity": 150, "concreteGrade": "C30",
            },
            expected_outputs=_ranges(
                length=(3.2, 4.5, "m"),
                width=(3.2, 4.5, "m"),
                actualPressure=(60, 110, "kPa"),
            ),
        ),
        BenchmarkTest(
            name="Heavy Footing 2000kN Low Bearing",
            inputs={
                "columnLoad": 2000, "momentX": 100, "momentY": 100, "columnWidth": 500, "columnDepth": 500,
                "bearingCapacity": 100, "concreteGrade": "C30",
            },
            expected_outputs=_ranges(
                length=(5.0, 7.0, "m"),
                width=(5.0, 7.0, "m"),
            ),
        ),
    ],
    CalculatorType.SLAB: [
        BenchmarkTest(
            name="Two-Way Slab 6x5m",
            inputs={
                "longSpan": 6, "shortSpan": 5, "deadLoad": 8, "liveLoad": 5, "concreteGrade": "C30",
                "steelGrade": "Fy420", "slabType": "two_way", "supportCondition": "simply_supported", "cover": 25,
            },
            expected_outputs=_ranges(thickness=(150, 275, "mm")),
        ),
        BenchmarkTest(
            name="One-Way Slab 4x8m",
            inputs={
                "longSpan": 8, "shortSpan": 4, "deadLoad": 10, "liveLoad": 5, "concreteGrade": "C30",
                "steelGrade": "Fy420", "slabType": "one_way", "supportCondition": "simply_supported", "cover": 25,
            },
            expected_outputs=_ranges(thickness=(150, 250, "mm")),
        ),
    ],
    CalculatorType.RETAINING_WALL: [
        BenchmarkTest(
            name="Standard 3m Cantilever Wall",
            inputs={
                "wallHeight": 3, "stemThicknessTop": 250, "stemThicknessBottom": 400, "baseWidth": 2000,
                "baseThickness": 400, "toeWidth": 500, "soilUnitWeight": 18, "soilFrictionAngle": 30,
                "surchargeLoad": 10, "concreteGrade": "C30", "steelGrade": "Fy420",
                "allowableBearingPressure": 150,
            },
            expected_outputs={
                "stability.FOS_overturning": OutputRange(min=1.5, max=5.0),
                "stability.FOS_sliding": OutputRange(min=1.2, max=4.0),
            },
        ),
        BenchmarkTest(
            name="Tall 5m Wall with Surcharge",
            inputs={
                "wallHeight": 5, "stemThicknessTop": 300, "stemThicknessBottom": 600, "baseWidth": 3500,
                "baseThickness": 500, "toeWidth": 800, "soilUnitWeight": 19, "soilFrictionAngle": 28,
                "surchargeLoad": 15, "concreteGrade": "C35", "steelGrade": "Fy420",
                "allowableBearingPressure": 200,
            },
            expected_outputs={
                "stability.FOS_overturning": OutputRange(min=1.5, max=5.0),
                "stability.FOS_sliding": OutputRange(min=1.2, max=4.0),
            },
        ),
    ],
}

TEST_INPUTS: Dict[str, List[Dict[str, Any]]] = {
    "calculate-beam": [
        {"span": 6, "deadLoad": 10, "liveLoad": 15, "beamWidth": 300, "concreteGrade": 30, "steelGrade": 420},
        {"span": 12, "deadLoad": 20, "liveLoad": 25, "beamWidth": 400, "concreteGrade": 40, "steelGrade": 500},
        {"span": 3, "deadLoad": 5, "liveLoad": 8, "beamWidth": 200, "concreteGrade": 25, "steelGrade": 420},
    ],
    "calculate-column": [
        {"height": 3, "axialLoad": 500, "momentX": 50, "momentY": 30, "columnWidth": 400, "columnDepth": 400,
         "concreteGrade": 30, "steelGrade": 420},
        {"height": 5, "axialLoad": 1000, "momentX": 100, "momentY": 80, "columnWidth": 500, "columnDepth": 500,
         "concreteGrade": 40, "steelGrade": 500},
    ],
    "calculate-foundation": [
        {"columnLoad": 800, "soilBearingCapacity": 150, "foundationDepth": 1.5, "concreteGrade": 30, "steelGrade": 420},
        {"columnLoad": 1500, "soilBearingCapacity": 200, "foundationDepth": 2.0, "concreteGrade": 35, "steelGrade": 500},
    ],
    "calculate-slab": [
        {"spanX": 5, "spanY": 4, "deadLoad": 5, "liveLoad": 3, "slabThickness": 150, "concreteGrade": 30,
         "steelGrade": 420},
        {"spanX": 8, "spanY": 6, "deadLoad": 8, "liveLoad": 5, "slabThickness": 200, "concreteGrade": 35,
         "steelGrade": 500},
    ],
    "calculate-retaining-wall": [
        {"wallHeight": 3, "soilDensity": 18, "frictionAngle": 30, "surchargeLoad": 10, "concreteGrade": 30,
         "steelGrade": 420},
        {"wallHeight": 5, "soilDensity": 20, "frictionAngle": 35, "surchargeLoad": 15, "concreteGrade": 35,
         "steelGrade": 500},
    ],
    "support-bot": [
        {"message": "How do I use the beam calculator?"},
        {"message": "What are the safety factors for foundations?"},
    ],
    "engineering-ai-chat": [
        {"calculatorType": "beam", "question": "What span can I use for a residential building?",
         "currentInputs": {}, "stream": False},
    ],
}


def get_benchmarks(calculator: CalculatorType) -> List[BenchmarkTest]:
    return list(BENCHMARK_TESTS.get(CalculatorType(calculator), []))


def get_test_inputs(endpoint: str) -> List[Dict[str, Any]]:
    """Probe inputs for ``endpoint``; a single empty case when none are registered."""
    inputs = TEST_INPUTS.get(endpoint)
    if not inputs:
        return [{}]
    return copy.deepcopy(inputs)
