"""AssemblyAI CLI: submit media for transcription and inspect the results.

WHY: AssemblyAI transcription is asynchronous. A job is created, runs
server-side for seconds to minutes, and must be polled until it finishes.
This package wraps that lifecycle behind a small command-line tool that
also renders detected entities and IAB topics, and can ask questions
about finished transcripts.

HOW: Three layers: the HTTP client (api), the job tracker that drives
submission and polling (core), and output formatters. The CLI wires them
together. Each layer is independently testable.

RULES:
- The tracker never talks HTTP directly; it is handed a client
- An "error" job status is a normal result, not an exception
"""

__version__ = "0.1.0"
