"""Submission and polling state machine for one transcription job.

WHY: AssemblyAI transcription is asynchronous. After a job is created the
caller has to keep asking for its status until it is completed or errored.
Getting this loop right is the only part of the tool with real decisions
in it: which failures to retry, when to give up, and how to make sure the
caller never sees a job go backwards.

HOW: TranscriptionJobTracker is handed an AssemblyClient (or anything with
the same create_transcript/get_transcript coroutines). submit() validates
and creates the job, poll() takes one snapshot, await_completion() drives
poll() on a fixed cadence until a terminal status or the timeout. The
clock and the sleep function are injectable so the loop can be driven
without real waiting.

    queued -> processing -> completed   (terminal)
    queued -> processing -> error       (terminal)
    queued -> error                     (terminal)

RULES:
- submit() with a blank source reference raises SubmissionError without I/O
- SubmissionError is never retried
- The first poll happens one poll_interval after await_completion() starts;
  a sleep is cut short so no poll happens after the deadline
- A terminal snapshot is returned as-is; an "error" status is data, not an exception
- Observed status never decreases in rank; service regressions are ignored
- Transient PollError is logged, reported through on_status and retried;
  non-transient PollError propagates
- More than max_poll_failures consecutive transient failures propagates the last one
- Timeout is checked after every attempt against the tracker's own clock:
  a failing last attempt re-raises its PollError, otherwise
  TranscriptionTimeoutError is raised
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from assembly_cli.api.client import PollError, SubmissionError, TranscriptionTimeoutError
from assembly_cli.api.models import JobHandle, JobStatus, TranscriptionJob, TranscriptionRequest
from assembly_cli.config import load_polling_config

logger = logging.getLogger(__name__)

_FROM_ENV = object()


class TranscriptionJobTracker:
    """Owns the lifecycle of transcription jobs from submission to terminal state.

    WHY: Keeps the retry/timeout policy in one place, independent of the
    HTTP layer and of how the CLI renders results.

    HOW: Stateless between calls. Each await_completion() call keeps its
    own last-observed status, so independent calls (and independent
    trackers) share nothing and need no locking.

    RULES:
    - client must provide create_transcript(request) -> str and
      get_transcript(job_id) -> TranscriptionJob coroutines
    - poll_interval and timeout are seconds; both must be positive
    - max_poll_failures=None disables the consecutive-failure ceiling
    - Settings left out are read from the environment via load_polling_config()
    """

    def __init__(
        self,
        client,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        max_poll_failures=_FROM_ENV,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if poll_interval is None or timeout is None or max_poll_failures is _FROM_ENV:
            defaults = load_polling_config()
            if poll_interval is None:
                poll_interval = defaults.interval_s
            if timeout is None:
                timeout = defaults.timeout_s
            if max_poll_failures is _FROM_ENV:
                max_poll_failures = defaults.max_failures
        _check_positive("poll_interval", poll_interval)
        _check_positive("timeout", timeout)
        self._client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self.max_poll_failures = max_poll_failures
        self._clock = clock
        self._sleep = sleep

    async def submit(self, request: TranscriptionRequest) -> JobHandle:
        """Create the remote job and return a handle to it.

        Raises:
            SubmissionError: blank source reference, or the service rejected
                the request. Not retried.
        """
        if not request.source_reference or not request.source_reference.strip():
            raise SubmissionError(None, "source reference is empty")

        job_id = await self._client.create_transcript(request)
        logger.info(
            "Submitted transcript %s (entities=%s, topics=%s)",
            job_id,
            request.options.entity_detection,
            request.options.topic_detection,
        )
        return JobHandle(job_id=job_id)

    async def poll(self, handle: JobHandle) -> TranscriptionJob:
        """Return the current snapshot of the job. Raises PollError on failure."""
        job = await self._client.get_transcript(handle.job_id)
        logger.debug("Transcript %s status: %s", handle.job_id, job.status.value)
        return job

    async def await_completion(
        self,
        handle: JobHandle,
        poll_interval: Optional[float] = None,
        timeout: Optional[float] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> TranscriptionJob:
        """Poll until the job reaches a terminal state.

        WHY: Callers want one call that returns the finished job, with
        transient query failures absorbed and a hard upper bound on waiting.

        HOW: Sleep poll_interval (or whatever is left of the budget, if
        less), poll, check the result, check the clock, repeat. Status regressions are dropped so the sequence reported
        through on_status never goes backwards.

        Args:
            handle: The job to wait for.
            poll_interval: Seconds between polls (defaults to the tracker's).
            timeout: Total wait budget in seconds (defaults to the tracker's).
            on_status: Optional callback for human-readable progress lines.

        Returns:
            The terminal TranscriptionJob (status completed or error).

        Raises:
            PollError: non-transient query failure, too many consecutive
                transient failures, or a failure still occurring at timeout.
            TranscriptionTimeoutError: no terminal status within timeout.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        budget = self.timeout if timeout is None else timeout
        _check_positive("poll_interval", interval)
        _check_positive("timeout", budget)

        start = self._clock()
        last_status: Optional[JobStatus] = None
        last_error: Optional[PollError] = None
        consecutive_failures = 0
        polls = 0

        while True:
            remaining = budget - (self._clock() - start)
            await self._sleep(min(interval, remaining))
            polls += 1

            try:
                job = await self.poll(handle)
            except PollError as exc:
                if not exc.transient:
                    raise
                consecutive_failures += 1
                last_error = exc
                logger.warning(
                    "Poll %d for transcript %s failed (%d in a row): %s",
                    polls, handle.job_id, consecutive_failures, exc,
                )
                if self.max_poll_failures is not None and consecutive_failures > self.max_poll_failures:
                    raise
                if on_status:
                    on_status(f"Status check failed ({consecutive_failures} in a row), retrying...")
            else:
                consecutive_failures = 0
                last_error = None

                if last_status is not None and job.status.rank < last_status.rank:
                    logger.debug(
                        "Ignoring status regression %s -> %s for transcript %s",
                        last_status.value, job.status.value, handle.job_id,
                    )
                else:
                    if on_status and job.status != last_status:
                        on_status(_describe(job, self._clock() - start))
                    last_status = job.status
                    if job.is_terminal:
                        logger.info(
                            "Transcript %s finished with status %s after %d poll(s)",
                            handle.job_id, job.status.value, polls,
                        )
                        return job

            elapsed = self._clock() - start
            if elapsed >= budget:
                if last_error is not None:
                    raise last_error
                raise TranscriptionTimeoutError(handle.job_id, elapsed, last_status)


def _check_positive(name: str, value: float) -> None:
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")


def _describe(job: TranscriptionJob, elapsed: float) -> str:
    """Human-readable progress line for a status change."""
    if job.status == JobStatus.QUEUED:
        return "Transcription queued..."
    if job.status == JobStatus.PROCESSING:
        minutes, seconds = divmod(int(elapsed), 60)
        return f"Transcribing... (elapsed: {minutes}m {seconds:02d}s)"
    if job.status == JobStatus.COMPLETED:
        return "Transcription complete."
    return f"Transcription error: {job.error_detail}"
