"""AssemblyAI request and response dataclasses.

WHY: The AssemblyAI transcript API returns loosely structured JSON whose
shape depends on the job status and on which features were requested.
Typed dataclasses make the lifecycle explicit: a job is queued, then
processing, then either completed (with a result) or errored (with a
message), and nothing in between.

HOW: Each dataclass maps to one AssemblyAI JSON object. Factory methods
(from_dict) parse raw API responses. TranscriptionJob validates on
construction that result/error_detail agree with the status.

RULES:
- JobStatus values match the AssemblyAI "status" field exactly
- Status rank orders queued < processing < completed == error
- result is set iff status is completed; error_detail iff status is error
- Entity and topic lists are empty (never None) when the feature was off
- Requests and handles are frozen; they never change after creation
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class JobStatus(str, enum.Enum):
    """Lifecycle states of a remote transcription job.

    WHY: The polling loop must know when to stop and must never report a
    status older than one it already saw. An enum with an explicit rank
    gives both checks one source of truth.

    HOW: Inherits from str so values compare and serialize as the raw
    API strings.

    RULES:
    - queued: accepted, waiting for a worker
    - processing: audio is being transcribed
    - completed: terminal, transcript available
    - error: terminal, error message available
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


_STATUS_RANK = {
    JobStatus.QUEUED: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.ERROR: 2,
}


@dataclass(frozen=True)
class TranscriptionOptions:
    """Optional analysis features requested alongside the transcript."""

    entity_detection: bool = True
    topic_detection: bool = True

    def to_dict(self) -> dict:
        # Topic detection is called "iab_categories" on the wire.
        return {
            "entity_detection": self.entity_detection,
            "iab_categories": self.topic_detection,
        }


@dataclass(frozen=True)
class TranscriptionRequest:
    """One transcription request, built once per CLI invocation.

    RULES:
    - source_reference is a URL the service can fetch (upload_url or public URL)
    - Emptiness is checked by the tracker, not here, so the tracker can
      report it as a SubmissionError
    """

    source_reference: str
    options: TranscriptionOptions = field(default_factory=TranscriptionOptions)

    def to_dict(self) -> dict:
        body: dict = {"audio_url": self.source_reference}
        body.update(self.options.to_dict())
        return body


@dataclass(frozen=True)
class JobHandle:
    """Reference to a submitted job, wrapping the service-assigned id."""

    job_id: str


@dataclass
class Entity:
    """A named entity detected in the transcript.

    RULES:
    - entity_type is the AssemblyAI label, e.g. "person_name", "location"
    - start_ms/end_ms are audio offsets in milliseconds
    """

    entity_type: str
    text: str
    start_ms: int | None = None
    end_ms: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Entity:
        return cls(
            entity_type=data["entity_type"],
            text=data["text"],
            start_ms=data.get("start"),
            end_ms=data.get("end"),
        )


@dataclass
class Topic:
    """An IAB taxonomy category with its relevance score (0.0-1.0)."""

    label: str
    relevance: float


@dataclass
class TranscriptResult:
    """Payload of a completed transcription job.

    WHY: Output formatters need the transcript text plus the optional
    entity and topic lists without digging through the raw JSON.

    HOW: from_dict pulls "text", "entities" and the summary map of
    "iab_categories_result". Topics are sorted by relevance, highest first.

    RULES:
    - text is "" when the service returns null (e.g. silent audio)
    - entities/topics are [] when the feature was disabled or found nothing
    """

    text: str
    entities: list[Entity] = field(default_factory=list)
    topics: list[Topic] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptResult:
        entities = [Entity.from_dict(e) for e in data.get("entities") or []]

        categories = data.get("iab_categories_result") or {}
        summary = categories.get("summary") or {}
        topics = [Topic(label=label, relevance=float(score)) for label, score in summary.items()]
        topics.sort(key=lambda t: t.relevance, reverse=True)

        return cls(text=data.get("text") or "", entities=entities, topics=topics)


@dataclass
class TranscriptionJob:
    """Snapshot of a transcription job as reported by GET /v2/transcript/{id}.

    WHY: The tracker and the CLI both need a typed view of the job that
    cannot represent impossible states (a queued job with a transcript,
    a completed job with an error).

    HOW: __post_init__ checks the status/result/error_detail invariant.
    from_dict builds the snapshot from the raw response and keeps the raw
    dict for the JSON formatter.

    RULES:
    - Exactly one of result/error_detail is set once status is terminal
    - Neither is set before that
    - from_dict raises ValueError for an unrecognized status
    """

    job_id: str
    status: JobStatus
    result: TranscriptResult | None = None
    error_detail: str | None = None
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.status == JobStatus.COMPLETED:
            valid = self.result is not None and self.error_detail is None
        elif self.status == JobStatus.ERROR:
            valid = self.result is None and self.error_detail is not None
        else:
            valid = self.result is None and self.error_detail is None
        if not valid:
            raise ValueError(
                f"Job {self.job_id} in status {self.status.value!r} has an "
                f"inconsistent result/error_detail"
            )

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_dict(cls, data: dict) -> TranscriptionJob:
        try:
            status = JobStatus(data["status"])
        except ValueError:
            raise ValueError(f"Unrecognized transcript status: {data['status']!r}") from None

        result = None
        error_detail = None
        if status == JobStatus.COMPLETED:
            result = TranscriptResult.from_dict(data)
        elif status == JobStatus.ERROR:
            error_detail = str(data.get("error") or "Transcription failed without an error message")

        return cls(
            job_id=data["id"],
            status=status,
            result=result,
            error_detail=error_detail,
            raw=data,
        )


@dataclass
class Question:
    """A question for the question-answer endpoint."""

    question: str
    answer_format: str | None = None
    answer_options: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict) -> Question:
        return cls(
            question=data["question"],
            answer_format=data.get("answer_format"),
            answer_options=data.get("answer_options"),
        )

    def to_dict(self) -> dict:
        body: dict = {"question": self.question}
        if self.answer_format is not None:
            body["answer_format"] = self.answer_format
        if self.answer_options is not None:
            body["answer_options"] = list(self.answer_options)
        return body


@dataclass
class Answer:
    """One answer returned by the question-answer endpoint."""

    question: str
    answer: str

    @classmethod
    def from_dict(cls, data: dict) -> Answer:
        return cls(question=data["question"], answer=data["answer"])
