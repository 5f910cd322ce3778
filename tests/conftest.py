"""Shared test fixtures for the assembly_cli test suite.

WHY: The client, tracker, formatter and CLI tests all need the same
AssemblyAI payloads and the same scripted stand-ins for the remote
service. Centralizing them keeps every test on one set of sample data.

HOW: Payload builders return fresh dicts shaped like GET /v2/transcript/{id}
responses. FakeClock/FakeTranscriptService let the tracker run its polling
loop without real waiting or HTTP.

RULES:
- Payloads follow the AssemblyAI v2 transcript response shape
- FakeClock only advances when the tracker sleeps
- FakeTranscriptService replays a script; each entry is a status string,
  a payload dict, or an exception instance to raise
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from assembly_cli.api.models import TranscriptionJob

JOB_ID = "5551722-f677-48a3-9a0e-8d7f6e1c0b21"


def queued_payload(job_id: str = JOB_ID) -> Dict[str, Any]:
    return {"id": job_id, "status": "queued", "text": None, "error": None}


def processing_payload(job_id: str = JOB_ID) -> Dict[str, Any]:
    return {"id": job_id, "status": "processing", "text": None, "error": None}


def completed_payload(job_id: str = JOB_ID) -> Dict[str, Any]:
    return {
        "id": job_id,
        "status": "completed",
        "audio_url": "https://cdn.assemblyai.com/upload/abc",
        "text": "Ada Lovelace visited London to talk about the Analytical Engine.",
        "entity_detection": True,
        "iab_categories": True,
        "entities": [
            {"entity_type": "person_name", "text": "Ada Lovelace", "start": 240, "end": 1120},
            {"entity_type": "location", "text": "London", "start": 1500, "end": 1900},
        ],
        "iab_categories_result": {
            "status": "success",
            "results": [],
            "summary": {
                "Technology&Computing>Computing": 0.62,
                "Science>Engineering": 0.91,
            },
        },
        "error": None,
    }


def error_payload(job_id: str = JOB_ID, message: str = "Unsupported audio format") -> Dict[str, Any]:
    return {"id": job_id, "status": "error", "text": None, "error": message}


class FakeClock:
    """Monotonic clock that moves only when sleep() is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeTranscriptService:
    """Stand-in for AssemblyClient with scripted get_transcript results.

    Once the script is exhausted, the last entry is repeated.
    """

    def __init__(self, script: List[Any], job_id: str = JOB_ID) -> None:
        self.script = list(script)
        self.job_id = job_id
        self.created: List[Any] = []
        self.polls = 0

    async def create_transcript(self, request) -> str:
        self.created.append(request)
        return self.job_id

    async def get_transcript(self, job_id: str) -> TranscriptionJob:
        index = min(self.polls, len(self.script) - 1)
        self.polls += 1
        entry = self.script[index]
        if isinstance(entry, Exception):
            raise entry
        if isinstance(entry, str):
            builders = {
                "queued": queued_payload,
                "processing": processing_payload,
                "completed": completed_payload,
                "error": error_payload,
            }
            entry = builders[entry](job_id)
        return TranscriptionJob.from_dict(entry)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def sample_completed_job():
    return TranscriptionJob.from_dict(completed_payload())
