"""
python -m scripts.run_worker

Runs an RQ worker for the provisioning queue (seed pipeline and
verification emails).
"""

import sys

sys.path.insert(0, ".")

from dotenv import load_dotenv
load_dotenv()

import redis
from rq import Queue, Worker

from app.core.config import settings
from app.core.logging_config import logger


def run_worker(burst: bool = False):
    """Start a worker on the provisioning queue."""
    connection = redis.from_url(settings.REDIS_URL)
    queue = Queue(settings.PROVISIONING_QUEUE_NAME, connection=connection)

    logger.info(f"Starting worker on queue '{settings.PROVISIONING_QUEUE_NAME}'")
    worker = Worker([queue], connection=connection)
    worker.work(burst=burst)


if __name__ == "__main__":
    run_worker(burst="--burst" in sys.argv)
