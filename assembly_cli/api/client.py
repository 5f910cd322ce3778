"""Async HTTP client for the AssemblyAI transcript and question-answer APIs.

WHY: The CLI needs to upload media, create transcription jobs, query job
status, and ask questions about finished transcripts. This module keeps
every HTTP detail (auth header, endpoints, status-code handling) behind a
single client class so the tracker and the CLI only see typed results and
typed errors.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. AssemblyClient is an
async context manager: enter it to get an authenticated client, exit to
close the connection pool. Each API call is one method that performs
exactly one request. Polling cadence and retries are NOT handled here;
that is the tracker's job.

RULES:
- Always use the async context manager (async with AssemblyClient(...) as client:)
- The API key is sent verbatim in the "authorization" header (no Bearer prefix)
- Submission failures raise SubmissionError and are never retried
- Poll failures raise PollError with transient=True for transport errors,
  429/5xx responses and unreadable bodies; transient=False otherwise
- Question-answer failures raise QuestionError
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Iterable

import httpx

from assembly_cli.api.models import Answer, Question, TranscriptionJob, TranscriptionRequest
from assembly_cli.config import (
    ASSEMBLYAI_BASE_URL,
    LEMUR_FINAL_MODEL,
    QUESTION_ANSWER_PATH,
    STATUS_REQUEST_TIMEOUT_S,
    TRANSCRIPT_PATH,
    UPLOAD_PATH,
    load_api_key,
)

logger = logging.getLogger(__name__)

_UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024


class AssemblyAPIError(Exception):
    """Raised when an AssemblyAI call fails.

    WHY: Callers need a typed exception to tell service failures apart
    from local errors (bad paths, bad config).

    HOW: Wraps the HTTP status code (None for transport failures) and the
    response body or a summary of the failure.

    RULES:
    - Always include status_code and message
    - status_code is None when no HTTP response was received
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        self.status_code = status_code
        self.message = message
        if status_code is None:
            super().__init__(f"AssemblyAI request failed: {message}")
        else:
            super().__init__(f"AssemblyAI API error {status_code}: {message}")


class SubmissionError(AssemblyAPIError):
    """Raised when a transcription job (or its upload) is rejected.

    Request-level problems: bad credentials, malformed reference, quota,
    network failure during submission. Never retried automatically.
    """


class PollError(AssemblyAPIError):
    """Raised when a job-status query fails.

    WHY: A failed status query says nothing about the job itself. The
    tracker retries transient failures and propagates the rest.

    RULES:
    - transient=True: transport errors, 429, 5xx, unreadable body
    - transient=False: other 4xx (auth, unknown id), unrecognized status
    """

    def __init__(self, status_code: int | None, message: str, transient: bool = True) -> None:
        self.transient = transient
        super().__init__(status_code, message)


class QuestionError(AssemblyAPIError):
    """Raised when the question-answer endpoint fails or returns no answers."""


class TranscriptionTimeoutError(TimeoutError):
    """Raised when a job does not reach a terminal state within the wait budget.

    WHY: The job keeps running server-side. The caller needs the id and
    the last observed status to decide whether to wait again.

    RULES:
    - job_id is the remote transcript id
    - last_status is the last JobStatus observed, or None if no poll succeeded
    """

    def __init__(self, job_id: str, elapsed_s: float, last_status=None) -> None:
        self.job_id = job_id
        self.elapsed_s = elapsed_s
        self.last_status = last_status
        status_text = last_status.value if last_status is not None else "unknown"
        super().__init__(
            f"Transcript {job_id} not finished after {elapsed_s:.0f}s "
            f"(last status: {status_text})"
        )


def _is_transient_status(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class AssemblyClient:
    """Async client for the AssemblyAI transcript API.

    WHY: Provides a clean, typed interface for each HTTP step of the
    workflow: upload -> create -> get (poll) -> ask. Handles auth and
    error wrapping; the tracker owns the polling loop.

    HOW: Wraps httpx.AsyncClient with the API key header. Use as an async
    context manager to ensure the connection pool is closed.

    RULES:
    - api_key defaults to load_api_key() from .env
    - base_url defaults to ASSEMBLYAI_BASE_URL from config
    - transport is for tests (httpx.MockTransport); leave None in production
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or load_api_key()
        self._base_url = (base_url or ASSEMBLYAI_BASE_URL).rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> AssemblyClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"authorization": self._api_key},
            timeout=httpx.Timeout(300.0, connect=30.0),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AssemblyClient must be used as an async context manager: "
                "async with AssemblyClient() as client: ..."
            )
        return self._client

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        file_path: Path,
        on_status: Callable[[str], None] | None = None,
    ) -> str:
        """Upload a local audio/video file and return its upload_url.

        WHY: The transcript endpoint only accepts URLs. Local files are
        first sent to POST /v2/upload, which returns a private URL the
        service can read.

        HOW: Streams the file body in chunks as application/octet-stream.

        RULES:
        - file_path must point to an existing, readable file
        - Raises SubmissionError on transport failure or non-2xx response
        """
        client = self._ensure_client()
        file_path = Path(file_path)
        if on_status:
            on_status(f"Uploading {file_path.name}...")

        async def _chunks():
            with open(file_path, "rb") as f:
                while True:
                    chunk = f.read(_UPLOAD_CHUNK_SIZE)
                    if not chunk:
                        break
                    yield chunk

        try:
            resp = await client.post(
                UPLOAD_PATH,
                content=_chunks(),
                headers={"content-type": "application/octet-stream"},
            )
        except httpx.HTTPError as exc:
            raise SubmissionError(None, f"upload failed: {exc}") from exc

        if resp.status_code not in (200, 201):
            raise SubmissionError(resp.status_code, resp.text)

        upload_url = _json_or_none(resp, "upload_url")
        if not upload_url:
            raise SubmissionError(resp.status_code, f"'upload_url' missing from response: {resp.text}")
        logger.debug("Uploaded %s to %s", file_path, upload_url)
        return upload_url

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    async def create_transcript(self, request: TranscriptionRequest) -> str:
        """Create a transcription job and return its id.

        RULES:
        - One POST to /v2/transcript carrying audio_url and feature flags
        - Raises SubmissionError on transport failure, non-2xx, or missing id
        """
        client = self._ensure_client()
        try:
            resp = await client.post(TRANSCRIPT_PATH, json=request.to_dict())
        except httpx.HTTPError as exc:
            raise SubmissionError(None, f"could not reach transcript endpoint: {exc}") from exc

        if resp.status_code not in (200, 201):
            raise SubmissionError(resp.status_code, resp.text)

        job_id = _json_or_none(resp, "id")
        if not job_id:
            raise SubmissionError(resp.status_code, f"'id' missing from response: {resp.text}")
        logger.info("Created transcript %s", job_id)
        return job_id

    async def get_transcript(self, job_id: str) -> TranscriptionJob:
        """Fetch the current snapshot of a transcription job.

        WHY: This is the single status query the tracker repeats. It must
        classify failures so the tracker knows whether retrying makes sense.

        HOW: GET /v2/transcript/{id}, parse into TranscriptionJob.

        RULES:
        - Each request is bounded by STATUS_REQUEST_TIMEOUT_S, not the upload timeout
        - Transport errors, 429 and 5xx -> PollError(transient=True)
        - Other non-200 responses -> PollError(transient=False)
        - Unreadable JSON -> PollError(transient=True)
        - Unrecognized status or malformed payload -> PollError(transient=False)
        """
        client = self._ensure_client()
        try:
            resp = await client.get(f"{TRANSCRIPT_PATH}/{job_id}", timeout=STATUS_REQUEST_TIMEOUT_S)
        except httpx.HTTPError as exc:
            raise PollError(None, f"could not reach status endpoint: {exc}", transient=True) from exc

        if resp.status_code != 200:
            raise PollError(
                resp.status_code,
                resp.text,
                transient=_is_transient_status(resp.status_code),
            )

        try:
            data = resp.json()
        except ValueError as exc:
            raise PollError(resp.status_code, "could not read body of poll response", transient=True) from exc

        try:
            return TranscriptionJob.from_dict(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise PollError(resp.status_code, f"malformed transcript payload: {exc}", transient=False) from exc

    # ------------------------------------------------------------------
    # Question answering
    # ------------------------------------------------------------------

    async def ask_questions(
        self,
        transcript_ids: Iterable[str],
        questions: Iterable[Question],
        final_model: str | None = None,
    ) -> list[Answer]:
        """Ask questions about one or more completed transcripts.

        RULES:
        - One POST to the question-answer endpoint
        - final_model defaults to LEMUR_FINAL_MODEL from config
        - Raises QuestionError on transport failure, non-2xx, or a body
          without a "response" list
        """
        client = self._ensure_client()
        body = {
            "transcript_ids": list(transcript_ids),
            "questions": [q.to_dict() for q in questions],
            "final_model": final_model or LEMUR_FINAL_MODEL,
        }
        try:
            resp = await client.post(QUESTION_ANSWER_PATH, json=body)
        except httpx.HTTPError as exc:
            raise QuestionError(None, f"could not reach question-answer endpoint: {exc}") from exc

        if resp.status_code not in (200, 201):
            raise QuestionError(resp.status_code, resp.text)

        answers = _json_or_none(resp, "response")
        if not isinstance(answers, list):
            raise QuestionError(resp.status_code, f"'response' missing from response body: {resp.text}")
        try:
            return [Answer.from_dict(a) for a in answers]
        except (KeyError, TypeError) as exc:
            raise QuestionError(resp.status_code, f"malformed answer payload: {exc}") from exc


def _json_or_none(resp: httpx.Response, key: str):
    """Return resp.json()[key], or None when the body is not a JSON object."""
    try:
        data = resp.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    return data.get(key)
