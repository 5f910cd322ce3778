"""Abstract base formatter and output container.

WHY: A finished job can be saved in several shapes (the raw JSON payload,
a readable text summary). This base class gives the CLI one interface
over all of them.

HOW: BaseFormatter is an ABC with a ``name`` property and a ``format()``
method. FormatterOutput bundles a file suffix with its content and MIME
type.

RULES:
- Subclasses MUST implement ``name`` (human-readable) and ``format()``
- ``format()`` only accepts completed jobs and raises ValueError otherwise
- The caller prepends the transcript id to ``suffix``
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from assembly_cli.api.models import JobStatus, TranscriptionJob


@dataclass
class FormatterOutput:
    """One output file produced by a formatter.

    Attributes:
        suffix: File suffix appended to the transcript id,
                e.g. ``".json"`` -> ``"5551722-f677.json"``.
        content: The file content.
        media_type: MIME type for the content, e.g. ``"application/json"``.
    """

    suffix: str
    content: str
    media_type: str


class BaseFormatter(ABC):
    """Abstract base for all output formatters.

    To add a new output format:
    1. Create a new file in formatters/
    2. Subclass BaseFormatter
    3. Implement format() and name
    4. Register in FORMATTERS dict in formatters/__init__.py
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'Plain Text'."""

    @abstractmethod
    def format(self, job: TranscriptionJob) -> list[FormatterOutput]:
        """Convert a completed job into one or more output files."""

    @staticmethod
    def _require_completed(job: TranscriptionJob) -> None:
        if job.status != JobStatus.COMPLETED:
            raise ValueError(
                "Cannot format transcript {} in status {!r}".format(job.job_id, job.status.value)
            )
