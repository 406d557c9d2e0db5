#!/usr/bin/env python3
"""
Run a scheduled Tajiri job once, for cron or a cloud scheduler.
Usage:
    python run_jobs.py process-daily-goals [--at 2026-01-15T00:05:00+03:00]
    python run_jobs.py delete-abandoned-goals [--at ...]
"""

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime

from tajiri.core.database import engine, get_session_factory
from tajiri.services import jobs

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("tajiri.jobs")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Run a Tajiri batch job once")
    parser.add_argument("job", choices=["process-daily-goals", "delete-abandoned-goals"])
    parser.add_argument(
        "--at",
        type=datetime.fromisoformat,
        default=None,
        help="Reference instant in ISO 8601; naive values are UTC. Defaults to now.",
    )
    return parser.parse_args(argv)


async def run(job: str, at=None) -> dict:
    try:
        if job == "process-daily-goals":
            report = await jobs.process_daily_goals(get_session_factory(), at)
            return report.as_dict()
        deleted = await jobs.delete_abandoned_goals(get_session_factory(), at)
        return {"deleted": deleted}
    finally:
        await engine.dispose()


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        result = asyncio.run(run(args.job, args.at))
    except Exception as e:
        logger.exception(f"❌ Job {args.job} failed: {e}")
        return 1
    print(json.dumps(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
