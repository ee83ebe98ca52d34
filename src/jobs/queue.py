"""
BookVetting - Job Queue Client
==============================

Queue contract used to hand work to the evaluation and PDF migration
workers, with two backends:
1. In-memory (development / tests)
2. Redis sorted sets (production)

Jobs are served lowest priority value first, oldest first among equal
priorities.

Retry with backoff is handled by the consumer (see src/worker.py), which
re-enqueues a failed job with attempts_made incremented.

Usage:
    queue = create_job_queue(config.queue)

    await queue.enqueue(
        "book-evaluation",
        "evaluate-book",
        {"bookId": str(book_id)},
        JobOptions(priority=5, attempts=3),
    )

    job = await queue.dequeue("book-evaluation", timeout=5)
"""

import asyncio
import heapq
import itertools
import json
import logging
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

import redis.asyncio as redis

from src.core.config import BackoffConfig, QueueConfig

logger = logging.getLogger(__name__)

# Job names
EVALUATE_BOOK = "evaluate-book"
MIGRATE_TO_ACTIVE = "migrate-to-active"
MIGRATE_TO_ARCHIVED = "migrate-to-archived"

# Room for this many jobs per priority level in a Redis score
PRIORITY_STRIDE = 2 ** 32


# =============================================================================
# DATA MODELS
# =============================================================================

@dataclass
class JobOptions:
    priority: int = 0
    attempts: int = 1
    backoff: BackoffConfig = field(default_factory=BackoffConfig)


@dataclass
class Job:
    """A queued unit of work."""
    id: str
    name: str
    queue: str
    data: Optional[Dict[str, Any]]
    attempts_made: int = 0
    max_attempts: int = 1
    priority: int = 0
    backoff: BackoffConfig = field(default_factory=BackoffConfig)

    @property
    def is_last_attempt(self) -> bool:
        return self.attempts_made + 1 >= self.max_attempts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "queue": self.queue,
            "data": self.data,
            "attempts_made": self.attempts_made,
            "max_attempts": self.max_attempts,
            "priority": self.priority,
            "backoff": {"type": self.backoff.type, "delay_ms": self.backoff.delay_ms},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        backoff = data.get("backoff") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            queue=data["queue"],
            data=data.get("data"),
            attempts_made=data.get("attempts_made", 0),
            max_attempts=data.get("max_attempts", 1),
            priority=data.get("priority", 0),
            backoff=BackoffConfig(
                type=backoff.get("type", "exponential"),
                delay_ms=backoff.get("delay_ms", 1000),
            ),
        )


# =============================================================================
# ABSTRACT QUEUE
# =============================================================================

class JobQueue(ABC):
    """Abstract job queue client."""

    async def enqueue(
        self,
        queue_name: str,
        job_name: str,
        payload: Optional[Dict[str, Any]],
        options: Optional[JobOptions] = None,
    ) -> Job:
        """Add a new job to a queue."""
        options = options or JobOptions()
        job = Job(
            id=str(uuid4()),
            name=job_name,
            queue=queue_name,
            data=payload,
            max_attempts=options.attempts,
            priority=options.priority,
            backoff=options.backoff,
        )
        await self.push(job)
        logger.info(f"Enqueued {job_name} job {job.id} on {queue_name}")
        return job

    async def requeue(self, job: Job) -> Job:
        """Put a failed job back for its next attempt."""
        job.attempts_made += 1
        await self.push(job)
        return job

    @abstractmethod
    async def push(self, job: Job) -> None:
        pass

    @abstractmethod
    async def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        """Next job on the queue, or None if none arrived within timeout."""
        pass

    async def close(self) -> None:
        pass


# =============================================================================
# IN-MEMORY QUEUE (Development)
# =============================================================================

class InMemoryJobQueue(JobQueue):
    """In-process priority queue for development/testing."""

    def __init__(self):
        self._queues: Dict[str, List[Tuple[int, int, Job]]] = defaultdict(list)
        self._sequence = itertools.count()
        self._available = asyncio.Condition()

    def jobs(self, queue_name: str) -> list:
        """Pending jobs in the order they will be served."""
        return [job for _, _, job in sorted(self._queues[queue_name])]

    async def push(self, job: Job) -> None:
        async with self._available:
            heapq.heappush(self._queues[job.queue], (job.priority, next(self._sequence), job))
            self._available.notify_all()

    async def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        async with self._available:
            if not self._queues[queue_name] and timeout:
                try:
                    await asyncio.wait_for(
                        self._available.wait_for(lambda: bool(self._queues[queue_name])),
                        timeout,
                    )
                except asyncio.TimeoutError:
                    return None
            if not self._queues[queue_name]:
                return None
            return heapq.heappop(self._queues[queue_name])[2]


# =============================================================================
# REDIS QUEUE (Production)
# =============================================================================

class RedisJobQueue(JobQueue):
    """
    Redis sorted set per queue, keyed ``<prefix><queue name>``.

    Members are JSON jobs scored ``priority * PRIORITY_STRIDE + sequence``,
    where the sequence comes from an INCR counter, so ZPOPMIN yields the
    lowest priority value first and the oldest job among equals.
    """

    def __init__(self, redis_client, key_prefix: str = "bookvetting:queue:"):
        self._redis = redis_client
        self._prefix = key_prefix

    def _key(self, queue_name: str) -> str:
        return f"{self._prefix}{queue_name}"

    async def push(self, job: Job) -> None:
        sequence = await self._redis.incr(f"{self._prefix}sequence")
        score = job.priority * PRIORITY_STRIDE + sequence
        await self._redis.zadd(self._key(job.queue), {json.dumps(job.to_dict()): score})

    async def dequeue(self, queue_name: str, timeout: float = 0) -> Optional[Job]:
        key = self._key(queue_name)
        if timeout:
            item = await self._redis.bzpopmin([key], timeout=timeout)
            raw = item[1] if item else None
        else:
            popped = await self._redis.zpopmin(key)
            raw = popped[0][0] if popped else None

        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')

        try:
            return Job.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError) as e:
            logger.error(f"Dropping malformed job on {queue_name}: {e}")
            return None

    async def close(self) -> None:
        await self._redis.aclose()


def create_job_queue(config: QueueConfig) -> JobQueue:
    """Redis queue when REDIS_URL is configured, otherwise in-memory."""
    if config.redis_url:
        logger.info(f"Job queue using Redis: {config.redis_url}")
        return RedisJobQueue(redis.from_url(config.redis_url), key_prefix=config.key_prefix)

    logger.info("Job queue using in-memory backend")
    return InMemoryJobQueue()
