from typing import Any, Callable, Optional
import redis
from rq import Callback, Queue
from app.core.config import settings
from app.core.logging_config import logger


def report_job_failure(job, connection, type, value, traceback):
    """
    rq failure callback: the error channel for detached work.

    Runs inside the worker after a job raises. The original caller has
    already received its response, so the failure is only logged.
    """
    logger.error(
        f"Background job {job.id} ({job.description}) failed: "
        f"{getattr(type, '__name__', type)}: {value}"
    )


class TaskQueue:
    """
    Thin wrapper over a Redis Queue (RQ) used for fire-and-forget work.

    Jobs run in a separate worker process (see scripts/run_worker.py) and
    their outcome is observable only through the provisioning status store
    or the logs, never through the request that submitted them.
    """

    def __init__(self, queue_name: Optional[str] = None, redis_url: Optional[str] = None):
        self.queue_name = queue_name or settings.PROVISIONING_QUEUE_NAME
        self.redis_url = redis_url or settings.REDIS_URL
        self._queue: Optional[Queue] = None

    @property
    def queue(self) -> Queue:
        if self._queue is None:
            connection = redis.from_url(self.redis_url)
            self._queue = Queue(self.queue_name, connection=connection)
            logger.info(f"TaskQueue initialized with queue '{self.queue_name}'")
        return self._queue

    def submit(
        self,
        func: Callable[..., Any],
        *args: Any,
        description: Optional[str] = None,
        on_failure: Optional[Callable[..., Any]] = None,
        **kwargs: Any
    ) -> Optional[str]:
        """
        Enqueue func(*args, **kwargs) as a detached job.

        on_failure replaces the default logging callback; it must be an
        importable module-level function so the worker can load it.

        Returns the job id, or None when the queue is unreachable. Enqueue
        failures are logged and never raised: the caller's own work has
        already been committed and must stay usable.
        """
        try:
            job = self.queue.enqueue(
                func,
                *args,
                job_timeout=settings.PROVISIONING_JOB_TIMEOUT,
                description=description,
                on_failure=Callback(on_failure or report_job_failure),
                **kwargs
            )
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to enqueue {description or func.__name__}: {e}")
            self._queue = None
            return None

        logger.info(f"Submitted job {job.id}: {description or func.__name__}")
        return job.id


# Create singleton instance
task_queue = TaskQueue()
