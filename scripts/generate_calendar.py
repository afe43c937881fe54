from __future__ import annotations

import argparse
import json
import logging
from datetime import date
from pathlib import Path

from pydantic import ValidationError

from workcal.config import settings
from workcal.crud import get_configuration
from workcal.db import session_scope
from workcal.log import setup_logging
from workcal.pipeline import build_calendar
from workcal.schemas import CalendarConfigIn, CalendarOut

logger = logging.getLogger("generate_calendar")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Build an annual work calendar and print its summary as JSON."
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--config",
        type=Path,
        help="JSON configuration file (same shape as POST /api/calendar).",
    )
    source.add_argument(
        "--saved-id",
        type=int,
        help="Id of a configuration saved in the database.",
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        default=None,
        help="Reference date for the accepted year range (default: today).",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON here instead of stdout.",
    )
    parser.add_argument(
        "--days",
        action="store_true",
        help="Include the per-day array in the output.",
    )
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def load_payload(args: argparse.Namespace) -> dict:
    if args.config is not None:
        return json.loads(args.config.read_text(encoding="utf-8"))

    with session_scope() as db:
        saved = get_configuration(db, args.saved_id)
        if not saved:
            raise SystemExit(f"Configuration {args.saved_id} not found.")
        return dict(saved.payload)


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)

    try:
        payload = CalendarConfigIn.model_validate(load_payload(args))
        config = payload.to_domain(
            today=args.today or date.today(),
            past=settings.year_past_window,
            future=settings.year_future_window,
        )
    except (ValidationError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}")

    result = build_calendar(config, hours_per_day=settings.hours_per_day)
    if not result.ok:
        logger.error("stage %s failed: %s", result.stage, result.error)
        return 1

    out = CalendarOut.from_result(config.year.value, result.value, include_days=args.days)
    text = out.model_dump_json(indent=2)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        print(f"Calendar written to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
