#!/usr/bin/env python3
"""
Run one of the QA suites from the command line and print (or save) the report.

Examples:
  python scripts/run_suite.py tests --feature calculators --no-ai
  python scripts/run_suite.py ux --persona new_engineer --journey first_beam_calculation
  python scripts/run_suite.py compliance --calculator beam --calculator column --output report.json

Exit codes:
  0 - Suite completed
  1 - Suite rejected the request or failed
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from qa_service.ai_providers.gateway import build_gateway  # noqa: E402
from qa_service.core.config import settings  # noqa: E402
from qa_service.core.database import db_factory, init_db  # noqa: E402
from qa_service.core.logging_config import configure_logging  # noqa: E402
from qa_service.services.orchestrator import RunMode, build_orchestrator  # noqa: E402


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run a QA suite against the calculation functions.")
    parser.add_argument("mode", choices=[mode.value for mode in RunMode], help="Suite to run.")
    parser.add_argument("--feature", default="all", help="Feature for the test runner (default: all).")
    parser.add_argument(
        "--model",
        choices=["claude", "gemini", "deepseek"],
        default="claude",
        help="Model used for the result analysis (plans always use AI_PLAN_MODEL).",
    )
    parser.add_argument("--no-ai", action="store_true", help="Use built-in plans and rule-based analysis.")
    parser.add_argument(
        "--persona",
        dest="personas",
        action="append",
        help="Persona id for the UX tester (repeat for multiple; default: all).",
    )
    parser.add_argument(
        "--journey",
        dest="journeys",
        action="append",
        help="Journey id for the UX tester (repeat for multiple; default: all).",
    )
    parser.add_argument(
        "--calculator",
        dest="calculators",
        action="append",
        help="Calculator for the compliance validator (repeat for multiple; default: all).",
    )
    parser.add_argument("--base-url", help="Override FUNCTIONS_BASE_URL.")
    parser.add_argument("--output", help="Write the JSON report to this file instead of stdout.")
    return parser.parse_args(argv)


def build_payload(args: argparse.Namespace) -> Dict[str, Any]:
    mode = RunMode(args.mode)
    if mode == RunMode.TESTS:
        return {"feature": args.feature, "includeAI": not args.no_ai, "model": args.model}
    if mode == RunMode.UX:
        payload = {"personas": args.personas, "journeys": args.journeys}
    else:
        payload = {"calculators": args.calculators}
    # Unset options fall back to the request defaults.
    return {key: value for key, value in payload.items() if value is not None}


async def run(args: argparse.Namespace) -> Dict[str, Any]:
    if args.base_url:
        settings.FUNCTIONS_BASE_URL = args.base_url

    await init_db()
    gateway = await build_gateway(settings)
    orchestrator = build_orchestrator(settings, db_factory.session_factory, gateway)
    try:
        status_code, report = await orchestrator.handle(RunMode(args.mode), build_payload(args))
    finally:
        await db_factory.dispose()
    return {"status": status_code, "report": report}


def main() -> int:
    configure_logging()
    args = parse_args()
    outcome = asyncio.run(run(args))
    text = json.dumps(outcome["report"], indent=2, ensure_ascii=False)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Report written to {args.output}")
    else:
        print(text)
    return 0 if outcome["status"] == 200 else 1


if __name__ == "__main__":
    raise SystemExit(main())
