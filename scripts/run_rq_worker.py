#!/usr/bin/env python
"""
RQ worker for recipe imports and smart list generation.

Run with:
    python scripts/run_rq_worker.py
or directly:
    rq worker --url redis://localhost:6379 household.recipes.jobs
"""
import logging
import signal
import sys
import time

from dotenv import load_dotenv
from rq import Worker

from household_recipes.app.core.config import get_settings
from household_recipes.app.services.queue_service import QUEUE_RECIPES, get_queue, get_redis_connection

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("rq_worker")

MAX_RESTARTS = 10
RESTART_DELAY_SECONDS = 5


def setup_cleanup():
    def signal_handler(sig, frame):
        logger.info("Received signal %s, shutting down", sig)
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)


def main():
    settings = get_settings()
    logger.info("Starting RQ worker for queue %s on %s:%s", QUEUE_RECIPES, settings.redis_host, settings.redis_port)

    restart_count = 0
    while True:
        try:
            worker = Worker([get_queue(QUEUE_RECIPES)], connection=get_redis_connection())
            worker.work(with_scheduler=True)
            logger.info("Worker stopped normally")
            break
        except KeyboardInterrupt:
            logger.info("Worker interrupted")
            break
        except Exception as exc:
            restart_count += 1
            logger.exception("Worker crashed (restart %d/%d): %s", restart_count, MAX_RESTARTS, exc)
            if restart_count >= MAX_RESTARTS:
                logger.error("Worker exceeded max restarts (%d), exiting", MAX_RESTARTS)
                raise
            time.sleep(RESTART_DELAY_SECONDS)


if __name__ == "__main__":
    load_dotenv()
    setup_cleanup()
    main()
