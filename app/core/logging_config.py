import logging
import sys

def setup_logging():
    """
    Configure structured logging for the application.

    Sets up logging to stdout with timestamps, log levels, and module names.
    The API process and the rq worker process share this configuration.
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    # Reduce SQLAlchemy and HTTP client noise in logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)

    return logging.getLogger("tenant_onboarding")


# Create global logger instance
logger = setup_logging()
