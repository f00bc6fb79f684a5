"""
Standalone worker process.

Usage:
    python -m content_review.workers.run_worker

Runs the queue consumer until SIGINT/SIGTERM, then lets in-flight jobs
finish.

Dependencies: python-dotenv, content_review.workers.container
System role: Process entry point for the review worker
"""

import asyncio
import logging
import signal

from dotenv import load_dotenv

from content_review.configs.settings import get_settings
from content_review.observability.logger import configure_logging
from content_review.workers.container import WorkerContainer, build_container

logger = logging.getLogger(__name__)


async def run(container: WorkerContainer) -> None:
    """Run the consumer with signal-driven shutdown."""
    consumer = container.consumer
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, consumer.stop, sig.name)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            logger.debug(f"{__name__}:run - Signal handler for {sig.name} unavailable")

    await consumer.run()
    await container.job_store.wait_for_background_tasks()
    logger.info(f"{__name__}:run - Worker stopped ({consumer.stop_reason})")


def main() -> None:
    load_dotenv()
    settings = get_settings()
    configure_logging(settings.log_level)
    asyncio.run(run(build_container(settings)))


if __name__ == "__main__":
    main()
