"""Scheduler entry point: run the standup for today (or a given date).

    python -m standup.jobs.daily_standup
    python -m standup.jobs.daily_standup --date 2026-03-01 --timezone Europe/Berlin
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date

from standup.core.config import get_settings
from standup.core.logging import configure_logging, get_logger
from standup.services.runner import StandupRunResult, run_standup
from standup.utils.dates import today_in_timezone

logger = get_logger(name=__name__)


async def run_daily_standup(standup_date: date | None = None, timezone: str | None = None) -> StandupRunResult:
    s = get_settings()
    tz = timezone or s.TIMEZONE
    target = standup_date or today_in_timezone(tz)

    logger.info("daily_standup_job_triggered", standup_date=str(target), timezone=tz)
    result = await run_standup(target, timezone=tz)

    if result.status == "completed":
        logger.info(
            "daily_standup_job_completed",
            standup_id=result.standup_id,
            agent_count=result.agent_count,
            duration_ms=result.duration_ms,
        )
    else:
        logger.error("daily_standup_job_failed", message=result.message, duration_ms=result.duration_ms)
    return result


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the daily agent standup.")
    parser.add_argument("--date", type=date.fromisoformat, default=None, help="Standup date (YYYY-MM-DD); defaults to today")
    parser.add_argument("--timezone", default=None, help="Timezone used to resolve today")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    s = get_settings()
    configure_logging(s.LOG_LEVEL, env=s.ENV, app_name=s.APP_NAME)
    result = asyncio.run(run_daily_standup(args.date, args.timezone))
    return 0 if result.status == "completed" else 1


if __name__ == "__main__":
    sys.exit(main())
