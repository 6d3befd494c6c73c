"""
Script to expire stale in-progress attempts once (e.g. from cron).
"""
import logging

from assessment_engine.services.sweeper import run_sweep

logging.basicConfig(level=logging.INFO, format='%(levelname)s:\t%(name)s\t%(message)s')
logger = logging.getLogger(__name__)


if __name__ == "__main__":
    counts = run_sweep()
    logger.info(f"Sweep finished: {counts}")
