"""AssemblyAI API package: async HTTP interface to the transcription service.

WHY: The CLI needs to upload media, create transcription jobs, query their
status, and ask questions about finished transcripts. This package keeps
all AssemblyAI communication behind one async client class.

HOW: Uses httpx.AsyncClient for non-blocking HTTP. Response data is parsed
into typed dataclasses defined in models.py; failures surface as the typed
exceptions defined in client.py.

RULES:
- All HTTP calls go through AssemblyClient (no direct httpx usage elsewhere)
- Authentication is via the raw API key in the "authorization" header
"""

from assembly_cli.api.client import (
    AssemblyAPIError,
    AssemblyClient,
    PollError,
    QuestionError,
    SubmissionError,
    TranscriptionTimeoutError,
)
from assembly_cli.api.models import (
    JobHandle,
    JobStatus,
    TranscriptionJob,
    TranscriptionOptions,
    TranscriptionRequest,
)

__all__ = [
    "AssemblyAPIError",
    "AssemblyClient",
    "JobHandle",
    "JobStatus",
    "PollError",
    "QuestionError",
    "SubmissionError",
    "TranscriptionJob",
    "TranscriptionOptions",
    "TranscriptionRequest",
    "TranscriptionTimeoutError",
]
