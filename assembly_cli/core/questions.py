"""Loading and validation of question files for the question-answer command.

WHY: Questions are written by hand in a JSON file. A typo (a missing
"question" key, answer_options given as a string) should be reported
against the file before any request is sent, not as an opaque API 400.

HOW: The file is parsed with json and validated against QUESTIONS_SCHEMA
with jsonschema, then converted to Question dataclasses.

RULES:
- The file holds a non-empty JSON array of question objects
- Each object needs "question"; "answer_format" and "answer_options" are optional
- Every failure raises QuestionsFileError naming the file
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Union

import jsonschema

from assembly_cli.api.models import Question

QUESTIONS_SCHEMA = {
    "type": "array",
    "minItems": 1,
    "items": {
        "type": "object",
        "required": ["question"],
        "properties": {
            "question": {"type": "string", "minLength": 1},
            "answer_format": {"type": ["string", "null"]},
            "answer_options": {
                "type": ["array", "null"],
                "items": {"type": "string"},
            },
        },
    },
}


class QuestionsFileError(ValueError):
    """Raised when a questions file cannot be read, parsed, or validated."""


def load_questions(path: Union[str, Path]) -> List[Question]:
    """Read and validate a questions file.

    Args:
        path: Path to a JSON file containing an array of question objects.

    Returns:
        The questions in file order.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise QuestionsFileError("failed to open file {}: {}".format(path, exc)) from exc

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionsFileError("failed to parse JSON in {}: {}".format(path, exc)) from exc

    try:
        jsonschema.validate(instance=data, schema=QUESTIONS_SCHEMA)
    except jsonschema.ValidationError as exc:
        location = "/".join(str(p) for p in exc.absolute_path) or "<root>"
        raise QuestionsFileError(
            "invalid questions file {} at {}: {}".format(path, location, exc.message)
        ) from exc

    return [Question.from_dict(item) for item in data]
