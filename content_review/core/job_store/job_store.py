"""
Job store backed by a blob store.

Persists one JSON record per job under the records prefix and enforces
the job invariants on every write:

- id, createdAt, fileName, fileSize, mimeType, contentRef and sourceType
  never change after creation (typed patch + snapshot/restore)
- processingStartedAt and processingCompletedAt are stamped at most once
- status moves only along allowed edges; result and error are exclusive
- metadata updates are additive

Creation schedules a retention pass as a background task whose failures
are logged and collected in retention_errors.

Dependencies: tenacity, content_review.boundary.aws.interfaces, content_review.models
System role: Durable job state for the review worker
"""

import asyncio
import json
import logging
import weakref
from collections import deque
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from content_review.boundary.aws.interfaces import BlobObject, BlobStore
from content_review.configs.storage import StorageSettings
from content_review.core.exceptions import (
    BlobNotFoundError,
    BlobStoreError,
    ContentReviewException,
    InvalidStatusTransitionError,
    JobNotFoundError,
)
from content_review.core.job_store.cursor import ListPosition, decode_cursor, encode_cursor
from content_review.models.job import (
    IMMUTABLE_FIELDS,
    Job,
    JobPage,
    JobPatch,
    JobStatus,
    NewJob,
)

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset({JobStatus.COMPLETED}),
    JobStatus.FAILED: frozenset({JobStatus.FAILED}),
}

RECORD_CONTENT_TYPE = "application/json"
LOAD_BATCH_SIZE = 25


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JobStore:
    """Blob-store backed repository of review jobs."""

    def __init__(
        self,
        blob_store: BlobStore,
        settings: StorageSettings,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize job store.

        Args:
            blob_store: Storage for records and uploaded content
            settings: Prefix, retention and lookup settings
            clock: Source of UTC timestamps (injectable for tests)
        """
        self._blobs = blob_store
        self._settings = settings
        self._prefix = settings.records_prefix
        self._clock = clock or _utc_now
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._retention_task: asyncio.Task | None = None
        self._retention_rerun = False
        self.retention_errors: deque[BaseException] = deque(maxlen=20)

    # ------------------------------------------------------------------ keys

    def record_key(self, job_id: str) -> str:
        return f"{self._prefix}{job_id}.json"

    def _legacy_keys(self, job_id: str) -> list[str]:
        today = self._clock().date()
        return [
            f"{self._prefix}{day:%Y/%m/%d}/{job_id}.json"
            for day in (today - timedelta(days=offset) for offset in range(self._settings.legacy_search_days))
        ]

    @staticmethod
    def _job_id_from_key(key: str) -> str:
        return key.rsplit("/", 1)[-1].removesuffix(".json")

    def _lock_for(self, job_id: str) -> asyncio.Lock:
        lock = self._locks.get(job_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[job_id] = lock
        return lock

    # ------------------------------------------------------------------ io

    async def _write(self, key: str, job: Job) -> None:
        body = json.dumps(job.to_record()).encode("utf-8")
        await self._blobs.put(
            key,
            body,
            RECORD_CONTENT_TYPE,
            metadata={"jobId": job.id, "status": job.status.value, "sourceType": job.source_type.value},
        )

    async def _load(self, key: str) -> Job:
        data = await self._blobs.get(key)
        try:
            return Job.model_validate_json(data)
        except ValidationError as e:
            logger.error("%s:_load - Corrupt job record", __name__, extra={"key": key, "errors": e.error_count()})
            raise BlobStoreError("Corrupt job record", key=key) from e

    async def _load_with_retry(self, key: str) -> Job:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(BlobNotFoundError),
            stop=stop_after_attempt(self._settings.lookup_attempts),
            wait=wait_exponential(multiplier=self._settings.lookup_backoff_seconds, max=5),
            before_sleep=lambda retry_state: logger.debug(
                f"{__name__}:get - Record not visible yet, retry {retry_state.attempt_number}"
                f"/{self._settings.lookup_attempts} key={key}"
            ),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._load(key)
        raise BlobNotFoundError(f"Object not found: {key}", key=key)

    async def _locate(self, job_id: str) -> tuple[str, Job] | None:
        """Find a record, tolerating read-after-write lag and legacy date-partitioned keys."""
        key = self.record_key(job_id)
        try:
            return key, await self._load_with_retry(key)
        except BlobNotFoundError:
            pass

        for legacy_key in self._legacy_keys(job_id):
            try:
                job = await self._load(legacy_key)
            except BlobNotFoundError:
                continue
            logger.info(
                "%s:get - Found job at legacy location",
                __name__,
                extra={"job_id": job_id, "key": legacy_key},
            )
            return legacy_key, job
        return None

    async def _record_objects(self) -> list[BlobObject]:
        """Record objects ordered newest first by store last-modified, key ascending."""
        objects = [
            obj for obj in await self._blobs.list_objects(self._prefix) if obj.key.endswith(".json")
        ]
        objects.sort(key=lambda obj: ListPosition.of(obj.last_modified.timestamp(), obj.key))
        return objects

    async def _load_many(self, objects: list[BlobObject]) -> list[Job]:
        results = await asyncio.gather(*(self._load(obj.key) for obj in objects), return_exceptions=True)
        jobs: list[Job] = []
        for obj, result in zip(objects, results):
            if isinstance(result, ContentReviewException):
                logger.warning(
                    "%s:_load_many - Skipping unreadable record: %s",
                    __name__,
                    type(result).__name__,
                    extra={"key": obj.key},
                )
                continue
            if isinstance(result, BaseException):
                raise result
            jobs.append(result)
        return jobs

    # ------------------------------------------------------------------ operations

    async def create(self, new_job: NewJob) -> Job:
        """
        Persist a new pending job and schedule the retention pass.

        Args:
            new_job: Creation input

        Returns:
            Job: The stored record
        """
        now = self._clock()
        job = Job(
            id=new_job.id,
            status=JobStatus.PENDING,
            source_type=new_job.source_type,
            file_name=new_job.file_name,
            file_size=new_job.file_size,
            mime_type=new_job.mime_type,
            content_ref=new_job.content_ref,
            created_at=now,
            updated_at=now,
            metadata=dict(new_job.metadata),
        )
        await self._write(self.record_key(job.id), job)
        logger.info(
            "%s:create - Job created",
            __name__,
            extra={"job_id": job.id, "source_type": job.source_type.value},
        )
        self._schedule_retention()
        return job

    async def get(self, job_id: str) -> Job | None:
        """
        Fetch a job.

        Returns:
            Job | None: The record, or None when it does not exist
        """
        located = await self._locate(job_id)
        return located[1] if located else None

    async def require(self, job_id: str) -> Job:
        """
        Fetch a job that must exist.

        Raises:
            JobNotFoundError: If no record exists
        """
        job = await self.get(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    async def update_status(
        self,
        job_id: str,
        status: JobStatus | str,
        patch: JobPatch | Mapping[str, Any] | None = None,
    ) -> Job:
        """
        Move a job to a status and merge mutable fields.

        A request to mark processing a job that is already processing or
        terminal is a no-op returning the stored record. Completed and
        failed jobs accept a same-status rewrite (redelivery) but never
        switch to the other terminal status.

        Args:
            job_id: Job to update
            status: Target status
            patch: Mutable fields (typed, or a raw mapping that is filtered)

        Returns:
            Job: The record as written (or unchanged for a no-op)

        Raises:
            JobNotFoundError: No such job
            InvalidStatusTransitionError: Edge not allowed
            ValueError: Completed with an error, or failed with a result
        """
        status = JobStatus(status)
        if patch is None:
            patch = JobPatch()
        elif not isinstance(patch, JobPatch):
            patch = JobPatch.from_mapping(job_id, patch)

        if status == JobStatus.COMPLETED and patch.error is not None:
            raise ValueError("A completed job cannot carry an error")
        if status == JobStatus.FAILED and patch.result is not None:
            raise ValueError("A failed job cannot carry a result")

        async with self._lock_for(job_id):
            located = await self._locate(job_id)
            if located is None:
                raise JobNotFoundError(job_id)
            key, current = located

            if status == JobStatus.PROCESSING and current.status != JobStatus.PENDING:
                logger.info(
                    "%s:update_status - Already %s, processing mark skipped",
                    __name__,
                    current.status.value,
                    extra={"job_id": job_id},
                )
                return current
            if status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidStatusTransitionError(job_id, current.status.value, status.value)

            snapshot = {name: getattr(current, name) for name in IMMUTABLE_FIELDS}
            now = self._clock()

            merged = current.model_dump()
            merged["status"] = status
            merged["updated_at"] = now
            if patch.result is not None:
                merged["result"] = patch.result
            if patch.error is not None:
                merged["error"] = patch.error
            if patch.metadata:
                merged["metadata"] = {**current.metadata, **patch.metadata}
            if status == JobStatus.COMPLETED:
                merged["error"] = None
            elif status == JobStatus.FAILED:
                merged["result"] = None

            if status == JobStatus.PROCESSING and current.processing_started_at is None:
                merged["processing_started_at"] = now
            if status.is_terminal and current.processing_completed_at is None:
                merged["processing_completed_at"] = now

            merged.update(snapshot)
            job = Job.model_validate(merged)
            await self._write(key, job)

        logger.info(
            "%s:update_status - %s -> %s",
            __name__,
            current.status.value,
            status.value,
            extra={"job_id": job_id},
        )
        return job

    async def update_metadata(self, job_id: str, partial: Mapping[str, Any]) -> Job:
        """
        Add or overwrite metadata keys; existing keys are never removed.

        Raises:
            JobNotFoundError: No such job
        """
        async with self._lock_for(job_id):
            located = await self._locate(job_id)
            if located is None:
                raise JobNotFoundError(job_id)
            key, current = located
            job = current.model_copy(
                update={
                    "metadata": {**current.metadata, **dict(partial)},
                    "updated_at": self._clock(),
                }
            )
            await self._write(key, job)
        logger.debug(
            "%s:update_metadata - Metadata merged",
            __name__,
            extra={"job_id": job_id, "keys": sorted(partial)},
        )
        return job

    async def list_recent(self, limit: int = 20, cursor: str | None = None) -> JobPage:
        """
        List jobs newest first by the store's last-modified stamp.

        Args:
            limit: Page size
            cursor: next_cursor from a previous page

        Returns:
            JobPage: Jobs plus the cursor for the following page

        Raises:
            ValueError: If limit < 1 or the cursor is invalid
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        objects = await self._record_objects()
        if cursor:
            after = decode_cursor(cursor)
            objects = [
                obj for obj in objects
                if ListPosition.of(obj.last_modified.timestamp(), obj.key) > after
            ]

        page_objects = objects[:limit]
        has_more = len(objects) > limit
        next_cursor = None
        if has_more and page_objects:
            last = page_objects[-1]
            next_cursor = encode_cursor(ListPosition.of(last.last_modified.timestamp(), last.key))

        return JobPage(jobs=await self._load_many(page_objects), next_cursor=next_cursor, has_more=has_more)

    async def list_by_status(self, status: JobStatus | str, limit: int = 20) -> list[Job]:
        """Most recent jobs in a given status."""
        status = JobStatus(status)
        objects = await self._record_objects()
        matches: list[Job] = []
        for start in range(0, len(objects), LOAD_BATCH_SIZE):
            batch = await self._load_many(objects[start:start + LOAD_BATCH_SIZE])
            matches.extend(job for job in batch if job.status == status)
            if len(matches) >= limit:
                break
        return matches[:limit]

    async def count(self) -> int:
        return len(await self._record_objects())

    async def delete(self, job_id: str) -> None:
        """
        Delete a job record and its uploaded content.

        Raises:
            JobNotFoundError: No such job
        """
        located = await self._locate(job_id)
        if located is None:
            raise JobNotFoundError(job_id)
        key, job = located
        await self._delete_record(key, job.content_ref)
        logger.info("%s:delete - Job deleted", __name__, extra={"job_id": job_id})

    async def _delete_record(self, key: str, content_ref: str | None) -> None:
        if content_ref:
            try:
                await self._blobs.delete(content_ref)
            except BlobStoreError as e:
                logger.warning(
                    "%s:_delete_record - Content not deleted: %s",
                    __name__,
                    e.message,
                    extra={"key": content_ref},
                )
        await self._blobs.delete(key)

    async def prune_to_retention_limit(self, keep: int | None = None) -> int:
        """
        Delete every job beyond the `keep` most recent.

        Individual failures are logged and skipped.

        Args:
            keep: Number of jobs to keep (default: configured retention limit)

        Returns:
            int: Number of jobs deleted
        """
        keep = self._settings.retention_limit if keep is None else keep
        if keep < 0:
            raise ValueError("keep must be non-negative")

        objects = await self._record_objects()
        excess = objects[keep:]
        if not excess:
            return 0

        deleted = 0
        seen: set[str] = set()
        for obj in excess:
            job_id = self._job_id_from_key(obj.key)
            if job_id in seen:
                continue
            seen.add(job_id)
            try:
                content_ref = None
                try:
                    content_ref = (await self._load(obj.key)).content_ref
                except BlobNotFoundError:
                    continue
                except BlobStoreError:
                    logger.warning(
                        "%s:prune_to_retention_limit - Record unreadable, deleting record only",
                        __name__,
                        extra={"job_id": job_id},
                    )
                await self._delete_record(obj.key, content_ref)
                deleted += 1
            except ContentReviewException as e:
                logger.warning(
                    "%s:prune_to_retention_limit - Failed to delete job: %s",
                    __name__,
                    e.message,
                    extra={"job_id": job_id},
                )

        logger.info(
            "%s:prune_to_retention_limit - Deleted %d of %d excess jobs",
            __name__,
            deleted,
            len(excess),
            extra={"keep": keep, "total": len(objects)},
        )
        return deleted

    # ------------------------------------------------------------------ background retention

    def _schedule_retention(self) -> None:
        if self._retention_task is not None and not self._retention_task.done():
            self._retention_rerun = True
            return
        self._retention_task = asyncio.create_task(self._run_retention(), name="job-store-retention")
        self._retention_task.add_done_callback(self._on_retention_done)

    async def _run_retention(self) -> None:
        while True:
            self._retention_rerun = False
            await self.prune_to_retention_limit()
            if not self._retention_rerun:
                return

    def _on_retention_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "%s:retention - Background retention failed: %s: %s",
                __name__,
                type(error).__name__,
                error,
            )
            self.retention_errors.append(error)

    async def wait_for_background_tasks(self) -> None:
        """Wait for an in-flight retention pass to finish (errors stay in retention_errors)."""
        if self._retention_task is not None:
            await asyncio.gather(self._retention_task, return_exceptions=True)
