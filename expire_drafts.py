"""
Scheduled job: close expired assessment periods and expire their drafts.

Run from cron (hourly or daily):
    python expire_drafts.py

Safe to run repeatedly; periods already closed are skipped.
"""

import os
import sys
import logging

from dotenv import load_dotenv

from db import get_db
from assessment.logic.period_closer import close_expired_periods

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def main() -> int:
    logger.info("⏰ Expire drafts job starting")

    with get_db() as db:
        result = close_expired_periods(db)

    logger.info(
        f"✅ Expire drafts completed: {result.expired_drafts_count} draft(s) expired, "
        f"{len(result.processed_periods)} period(s) closed"
    )
    if result.failed_periods:
        logger.error(f"❌ Failed periods: {', '.join(result.failed_periods)}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
