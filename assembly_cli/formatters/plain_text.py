"""Plain text summary: transcript, detected entities, and topics.

WHY: After a job finishes, the user wants to read the transcript and see
what the optional analyses found without opening a JSON file. This is
also what the CLI prints to stdout.

HOW: The transcript text comes first. An "Entities:" section lists each
entity as "- type: text", and a "Topics:" section lists IAB categories
with their relevance, highest first. Sections are separated by a blank
line and omitted when empty.

RULES:
- Entity types are shown with underscores replaced by spaces
- Relevance is shown with two decimals
- Empty transcript text renders as "(no speech detected)"
- No trailing whitespace on any line; content ends with one newline
- Output suffix: "-transcript.txt"
- Media type: "text/plain"
"""

from __future__ import annotations

from typing import List

from assembly_cli.api.models import Entity, Topic, TranscriptionJob
from assembly_cli.formatters.base import BaseFormatter, FormatterOutput


def _entity_lines(entities: List[Entity]) -> List[str]:
    return ["- {}: {}".format(e.entity_type.replace("_", " "), e.text.strip()) for e in entities]


def _topic_lines(topics: List[Topic]) -> List[str]:
    return ["- {} ({:.2f})".format(t.label, t.relevance) for t in topics]


def render_plain_text(job: TranscriptionJob) -> str:
    """Render a completed job as readable text."""
    result = job.result
    text = result.text.strip() if result.text else ""
    sections = [text or "(no speech detected)"]

    if result.entities:
        sections.append("\n".join(["Entities:"] + _entity_lines(result.entities)))
    if result.topics:
        sections.append("\n".join(["Topics:"] + _topic_lines(result.topics)))

    return "\n\n".join(sections) + "\n"


class PlainTextFormatter(BaseFormatter):
    """Formatter that produces the transcript/entities/topics summary."""

    @property
    def name(self) -> str:
        return "Plain Text"

    def format(self, job: TranscriptionJob) -> List[FormatterOutput]:
        self._require_completed(job)
        return [
            FormatterOutput(
                suffix="-transcript.txt",
                content=render_plain_text(job),
                media_type="text/plain",
            )
        ]
