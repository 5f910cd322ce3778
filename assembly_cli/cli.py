"""Command-line interface for the AssemblyAI transcription tool.

WHY: Users need one command that takes a media file (or URL), gets it
transcribed with entity and topic detection, and shows the result; and a
second command to ask questions about transcripts they already have.

HOW: argparse with two subcommands. ``transcribe`` validates the input,
uploads local files, submits the job through TranscriptionJobTracker,
waits for it, prints the plain-text summary to stdout, and saves the
selected formats. ``question`` loads a questions file and prints the
answers. Async work runs under asyncio.run().

RULES:
- Exactly one source: --file, --audio-url, or --transcript-id
- --file is checked for existence and a supported extension before any API call
- --transcript-id skips submission and waits on an existing job
- Status output goes to stderr; results go to stdout
- Output files are named {transcript_id}{suffix}; numeric suffix on conflict
- Exit codes: 0 completed, 1 job error or failure, 2 timeout, 130 Ctrl-C
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from assembly_cli.api.client import (
    AssemblyAPIError,
    AssemblyClient,
    TranscriptionTimeoutError,
)
from assembly_cli.api.models import (
    JobHandle,
    JobStatus,
    TranscriptionOptions,
    TranscriptionRequest,
)
from assembly_cli.config import (
    DEFAULT_ENTITY_DETECTION,
    DEFAULT_TOPIC_DETECTION,
    LEMUR_FINAL_MODEL,
    SUPPORTED_FORMATS,
    load_polling_config,
)
from assembly_cli.core.questions import QuestionsFileError, load_questions
from assembly_cli.core.tracker import TranscriptionJobTracker
from assembly_cli.formatters import FORMATTERS
from assembly_cli.formatters.base import FormatterOutput
from assembly_cli.formatters.plain_text import render_plain_text

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_TIMEOUT = 2
EXIT_INTERRUPTED = 130


class CLIError(Exception):
    """A user-facing error that ends the command with the given exit code."""

    def __init__(self, message: str, exit_code: int = EXIT_FAILURE) -> None:
        self.exit_code = exit_code
        super().__init__(message)


def _status(msg: str) -> None:
    """Print a status message to stderr.

    WHY: Status output must not pollute stdout so the CLI can be piped.
    """
    print(msg, file=sys.stderr, flush=True)


def _resolve_output_path(stem: str, suffix: str, output_dir: Path) -> Path:
    """Resolve the output file path, adding numeric suffix on conflict.

    WHY: Waiting on the same transcript id twice should not overwrite the
    earlier output.

    RULES:
    - First attempt: {stem}{suffix} (e.g. abc123.json)
    - Conflict: insert a counter before the extension (abc123-2.json)
    - Counter starts at 2 and increments
    """
    base_path = output_dir / "{}{}".format(stem, suffix)
    if not base_path.exists():
        return base_path

    dot_idx = suffix.rfind(".")
    if dot_idx >= 0:
        suffix_name = suffix[:dot_idx]
        suffix_ext = suffix[dot_idx:]
    else:
        suffix_name = suffix
        suffix_ext = ""

    counter = 2
    while True:
        candidate = output_dir / "{}{}-{}{}".format(stem, suffix_name, counter, suffix_ext)
        if not candidate.exists():
            return candidate
        counter += 1


def _save_output(output: FormatterOutput, stem: str, output_dir: Path) -> Path:
    path = _resolve_output_path(stem, output.suffix, output_dir)
    path.write_text(output.content, encoding="utf-8")
    return path


def _parse_formats(raw: str) -> List[str]:
    keys = [f.strip() for f in raw.split(",") if f.strip()]
    for key in keys:
        if key not in FORMATTERS:
            available = ", ".join(sorted(FORMATTERS.keys()))
            raise CLIError("Unknown format '{}'. Available formats: {}".format(key, available))
    return keys


def _validate_input_file(raw_path: str) -> Path:
    path = Path(raw_path).expanduser().resolve()
    if not path.is_file():
        raise CLIError("File not found: {}".format(path))
    ext = path.suffix.lower()
    if ext not in SUPPORTED_FORMATS:
        raise CLIError(
            "Unsupported file type '{}'. Supported formats: {}".format(
                ext, ", ".join(sorted(SUPPORTED_FORMATS))
            )
        )
    return path


# ---------------------------------------------------------------------------
# transcribe
# ---------------------------------------------------------------------------


async def _run_transcribe(args: argparse.Namespace) -> int:
    """Submit (or resume) a job, wait for it, and render the result.

    RULES:
    - All argument validation happens before the client is opened
    - A job that ends in "error" prints its error detail and returns 1
    - A timeout prints the id to resume with and returns 2
    """
    format_keys = _parse_formats(args.formats)
    output_dir = Path(args.output_dir).expanduser().resolve() if args.output_dir else Path.cwd()
    if not output_dir.is_dir():
        raise CLIError("Output directory does not exist: {}".format(output_dir))

    input_path = _validate_input_file(args.file) if args.file else None
    options = TranscriptionOptions(
        entity_detection=args.entities,
        topic_detection=args.topics,
    )

    async with AssemblyClient() as client:
        tracker = TranscriptionJobTracker(
            client,
            poll_interval=args.poll_interval,
            timeout=args.timeout,
            max_poll_failures=args.max_poll_failures if args.max_poll_failures > 0 else None,
        )

        if args.transcript_id:
            handle = JobHandle(job_id=args.transcript_id)
            _status("Waiting for existing transcript {}...".format(handle.job_id))
        else:
            if input_path is not None:
                source = await client.upload_file(input_path, on_status=_status)
            else:
                source = args.audio_url
            handle = await tracker.submit(TranscriptionRequest(source, options))
            _status("Submitted transcript {}".format(handle.job_id))

        try:
            job = await tracker.await_completion(handle, on_status=_status)
        except TranscriptionTimeoutError as exc:
            raise CLIError(
                "{}. Resume with: --transcript-id {}".format(exc, exc.job_id),
                exit_code=EXIT_TIMEOUT,
            ) from exc

    if job.status == JobStatus.ERROR:
        print("Error: transcript {} failed: {}".format(job.job_id, job.error_detail), file=sys.stderr)
        return EXIT_FAILURE

    if not args.quiet:
        print(render_plain_text(job), end="")

    saved: List[Path] = []
    for key in format_keys:
        formatter = FORMATTERS[key]()
        for output in formatter.format(job):
            saved.append(_save_output(output, job.job_id, output_dir))
    for path in saved:
        _status("Saved: {}".format(path))
    return EXIT_OK


# ---------------------------------------------------------------------------
# question
# ---------------------------------------------------------------------------


async def _run_question(args: argparse.Namespace) -> int:
    try:
        questions = load_questions(args.questions_file)
    except QuestionsFileError as exc:
        raise CLIError(str(exc)) from exc

    async with AssemblyClient() as client:
        _status("Asking {} question(s) about {} transcript(s)...".format(
            len(questions), len(args.transcript_id),
        ))
        answers = await client.ask_questions(args.transcript_id, questions, args.final_model)

    for answer in answers:
        print("Question: {}".format(answer.question))
        print("Answer: {}".format(answer.answer))
    return EXIT_OK


# ---------------------------------------------------------------------------
# Parser and entry point
# ---------------------------------------------------------------------------


def _positive_float(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError("expected a number, got {!r}".format(raw)) from None
    if value <= 0:
        raise argparse.ArgumentTypeError("must be positive, got {}".format(raw))
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    WHY: Separating parser construction from main() makes the CLI
    testable without running any requests.
    """
    polling = load_polling_config()
    parser = argparse.ArgumentParser(
        prog="assembly-cli",
        description="Transcribe audio/video with AssemblyAI and ask questions about transcripts.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    transcribe = subparsers.add_parser(
        "transcribe",
        help="Submit media for transcription and wait for the result.",
        description="Submit media for transcription (or wait on an existing "
                    "transcript), then print and save the result.",
    )
    source = transcribe.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", help="Local audio/video file to upload and transcribe.")
    source.add_argument("--audio-url", help="Publicly reachable audio/video URL to transcribe.")
    source.add_argument("--transcript-id", help="Existing transcript id to wait on.")
    transcribe.add_argument(
        "--entities",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_ENTITY_DETECTION,
        help="Enable entity detection (default: %(default)s).",
    )
    transcribe.add_argument(
        "--topics",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_TOPIC_DETECTION,
        help="Enable IAB topic categorization (default: %(default)s).",
    )
    transcribe.add_argument(
        "--poll-interval",
        type=_positive_float,
        default=polling.interval_s,
        help="Seconds between status checks (default: %(default)s).",
    )
    transcribe.add_argument(
        "--timeout",
        type=_positive_float,
        default=polling.timeout_s,
        help="Seconds to wait for a terminal status (default: %(default)s).",
    )
    transcribe.add_argument(
        "--max-poll-failures",
        type=int,
        default=polling.max_failures or 0,
        help="Consecutive failed status checks tolerated; 0 means no limit "
             "(default: %(default)s).",
    )
    transcribe.add_argument(
        "--formats",
        default="json",
        help="Comma-separated output formats. Available: {}. Default: %(default)s.".format(
            ", ".join(sorted(FORMATTERS.keys()))
        ),
    )
    transcribe.add_argument(
        "--output-dir",
        default=None,
        help="Directory to save output files (default: current directory).",
    )
    transcribe.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the transcript summary to stdout.",
    )
    transcribe.set_defaults(handler=_run_transcribe)

    question = subparsers.add_parser(
        "question",
        help="Ask questions about completed transcripts.",
        description="Sends a series of questions about one or more transcripts "
                    "and prints the answers.",
    )
    question.add_argument(
        "--questions-file",
        required=True,
        help="JSON file with an array of {question, answer_format?, answer_options?} objects.",
    )
    question.add_argument(
        "--transcript-id",
        action="append",
        required=True,
        help="Transcript id to ask about. Can be specified multiple times.",
    )
    question.add_argument(
        "--final-model",
        default=LEMUR_FINAL_MODEL,
        help="Model used to answer (default: %(default)s).",
    )
    question.set_defaults(handler=_run_question)

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Returns the exit code; the console script passes it to sys.exit
    """
    try:
        parser = build_parser()
    except ValueError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return EXIT_FAILURE
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        return asyncio.run(args.handler(args))
    except KeyboardInterrupt:
        _status("\nCancelled by user.")
        return EXIT_INTERRUPTED
    except CLIError as e:
        print("Error: {}".format(e), file=sys.stderr)
        return e.exit_code
    except (AssemblyAPIError, ValueError) as e:
        # API failures and config errors (missing API key, bad env values)
        logger.debug("Command failed", exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
