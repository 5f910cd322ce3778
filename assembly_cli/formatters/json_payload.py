"""Raw JSON formatter: the full service payload, pretty-printed.

WHY: The service response carries far more than the text summary shows
(word timings, confidence, per-segment topics). Saving it verbatim as
``{transcript_id}.json`` keeps everything for later processing.

RULES:
- Content is the raw payload with 2-space indentation and a trailing newline
- Non-ASCII text is written as-is (UTF-8), not escaped
- Output suffix: ".json"
"""

from __future__ import annotations

import json
from typing import List

from assembly_cli.api.models import TranscriptionJob
from assembly_cli.formatters.base import BaseFormatter, FormatterOutput


class JsonFormatter(BaseFormatter):
    """Formatter that writes the raw transcript payload."""

    @property
    def name(self) -> str:
        return "Raw JSON"

    def format(self, job: TranscriptionJob) -> List[FormatterOutput]:
        self._require_completed(job)
        content = json.dumps(job.raw, indent=2, ensure_ascii=False) + "\n"
        return [
            FormatterOutput(
                suffix=".json",
                content=content,
                media_type="application/json",
            )
        ]
