"""Entry point: ``python -m referral_api``"""

import logging
import os
import sys

import uvicorn
from dotenv import load_dotenv

logger = logging.getLogger("referral_api")


def main() -> int:
    load_dotenv()

    # root logging is configured by referral_api.main; only set it up here when exiting early
    if not (os.getenv("DATABASE_URL") or os.getenv("DB_URL")):
        logging.basicConfig(level=logging.INFO)
        logger.error("Missing DATABASE_URL environment variable. Check your .env file!")
        return 1

    from referral_api.core.config import settings

    uvicorn.run("referral_api.main:app", host=settings.HOST, port=settings.PORT)
    return 0


if __name__ == "__main__":
    sys.exit(main())
