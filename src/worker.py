"""
BookVetting - Worker
====================

Consumes the book-evaluation and pdf-migration queues, running up to
QueueConfig.concurrency jobs per queue at once.

Run with:
    python -m src.worker

A failed job is re-enqueued after its backoff delay until it has used
its attempts; the processor sees the attempt count and handles the
terminal case itself.
"""

from dotenv import load_dotenv
load_dotenv()  # Load .env file before anything else

import asyncio
import logging
import signal
from typing import Dict, List, Optional, Set

from src.books.evaluation_orchestrator import EvaluationOrchestrator
from src.books.llm_client import AnthropicLLMClient
from src.books.scorer import EvaluationScorer
from src.books.storage_orchestrator import StorageOrchestrator
from src.core.config import AppConfig, get_config
from src.core.logging_config import configure_logging
from src.database import close_database, get_repositories, init_database
from src.database.connection import get_connection_string
from src.jobs.processors import BookEvaluationProcessor, JobDispatcher, PdfMigrationProcessor
from src.jobs.queue import Job, JobQueue, create_job_queue
from src.storage.backend import FilesystemStorageBackend

logger = logging.getLogger(__name__)

POLL_TIMEOUT = 5


def build_dispatcher(repos, queue: JobQueue, config: AppConfig, llm=None, storage=None) -> JobDispatcher:
    """Wire orchestrators and processors for both queues."""
    storage = storage or FilesystemStorageBackend(config.storage)
    llm = llm or AnthropicLLMClient(api_key=config.anthropic_api_key or None)

    evaluation = EvaluationOrchestrator(EvaluationScorer(llm, config), repos, storage, config)
    migration = StorageOrchestrator(repos.books, storage, config)

    dispatcher = JobDispatcher()
    dispatcher.register(
        config.queue.evaluation_queue,
        BookEvaluationProcessor(evaluation, repos.books),
    )
    dispatcher.register(
        config.queue.pdf_migration_queue,
        PdfMigrationProcessor(migration, repos.books, queue, config),
    )
    return dispatcher


class Worker:
    """
    Runs jobs from the queues with bounded concurrency.

    Each consumer keeps at most ``concurrency`` jobs in flight. A failed
    job with attempts left is re-enqueued by a separate timer task after
    its backoff delay, so the waiting job holds no slot.

    Usage:
        worker = Worker(dispatcher, queue, concurrency=config.queue.concurrency)
        await asyncio.gather(*(worker.consume(name, stop) for name in dispatcher.queues))
        await worker.drain()
    """

    def __init__(
        self,
        dispatcher: JobDispatcher,
        queue: JobQueue,
        concurrency: int = 5,
        poll_timeout: float = POLL_TIMEOUT,
    ):
        self.dispatcher = dispatcher
        self.queue = queue
        self.concurrency = concurrency
        self.poll_timeout = poll_timeout
        self._running: Set[asyncio.Task] = set()
        self._retries: Dict[asyncio.Task, Job] = {}

    @property
    def pending_retries(self) -> List[Job]:
        return list(self._retries.values())

    async def run_job(self, job: Job) -> bool:
        """Run one job; schedule a retry if attempts remain. Returns success."""
        try:
            await self.dispatcher.dispatch(job)
            return True
        except Exception as e:
            if job.is_last_attempt:
                logger.error(f"Job {job.id} ({job.name}) failed permanently: {e}")
                return False

            delay = job.backoff.delay_for(job.attempts_made + 1)
            logger.warning(
                f"Job {job.id} ({job.name}) failed on attempt {job.attempts_made + 1}, "
                f"retrying in {delay:.1f}s: {e}"
            )
            self._schedule_retry(job, delay)
            return False

    def _schedule_retry(self, job: Job, delay: float) -> None:
        task = asyncio.create_task(self._retry_later(job, delay))
        self._retries[task] = job
        task.add_done_callback(lambda t: self._retries.pop(t, None))

    async def _retry_later(self, job: Job, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.queue.requeue(job)

    async def _run_in_slot(self, job: Job, slots: asyncio.Semaphore) -> None:
        try:
            await self.run_job(job)
        finally:
            slots.release()

    async def consume(self, queue_name: str, stop: asyncio.Event) -> None:
        """Dequeue and start jobs until ``stop`` is set."""
        slots = asyncio.Semaphore(self.concurrency)
        logger.info(f"Consuming {queue_name} (concurrency {self.concurrency})")

        while not stop.is_set():
            await slots.acquire()
            try:
                job: Optional[Job] = await self.queue.dequeue(queue_name, timeout=self.poll_timeout)
            except BaseException:
                slots.release()
                raise
            if job is None:
                slots.release()
                continue

            task = asyncio.create_task(self._run_in_slot(job, slots))
            self._running.add(task)
            task.add_done_callback(self._running.discard)

    async def drain(self) -> None:
        """
        Wait for running jobs, then enqueue scheduled retries right away
        so no job is lost on shutdown.
        """
        if self._running:
            await asyncio.gather(*self._running)

        pending = list(self._retries.items())
        for task, _ in pending:
            task.cancel()
        for task, job in pending:
            try:
                await task
            except asyncio.CancelledError:
                await self.queue.requeue(job)


async def main() -> None:
    config = get_config()
    configure_logging(log_level=config.log_level)

    db = await init_database(config.database_url or get_connection_string())
    repos = get_repositories(db)
    queue = create_job_queue(config.queue)
    dispatcher = build_dispatcher(repos, queue, config)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    worker = Worker(dispatcher, queue, concurrency=config.queue.concurrency)
    try:
        await asyncio.gather(*(
            worker.consume(name, stop) for name in dispatcher.queues
        ))
    finally:
        logger.info("Shutting down worker")
        await worker.drain()
        await queue.close()
        await close_database()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
