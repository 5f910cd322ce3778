"""Tests for the command-line interface.

WHY: The CLI is where errors turn into messages and exit codes. A job
that failed server-side must not exit 0, and a timeout must tell the user
which transcript id to resume with.

HOW: AssemblyClient is patched in assembly_cli.cli with a factory that
builds a real client on httpx.MockTransport, so the full path from
argument parsing through the tracker to saved files runs in-process.
Poll intervals are tiny so real sleeps stay in the milliseconds.

RULES:
- The real AssemblyAI API is never called
- Output files go to tmp_path
"""

from __future__ import annotations

import json
from functools import partial

import httpx
import pytest

from assembly_cli import cli
from assembly_cli.api.client import AssemblyClient

from tests.conftest import JOB_ID, completed_payload, error_payload, processing_payload

FAST = ["--poll-interval", "0.01", "--timeout", "5"]


class FakeAPI:
    """Routes requests to canned AssemblyAI responses and records them."""

    def __init__(self, statuses):
        self.statuses = list(statuses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v2/upload":
            return httpx.Response(200, json={"upload_url": "https://cdn.assemblyai.com/upload/abc"})
        if path == "/v2/transcript" and request.method == "POST":
            return httpx.Response(200, json={"id": JOB_ID, "status": "queued"})
        if path.startswith("/v2/transcript/"):
            status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
            return httpx.Response(200, json=status)
        if path == "/lemur/v3/generate/question-answer":
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "request_id": "req-1",
                "response": [{"question": q["question"], "answer": "42"} for q in body["questions"]],
            })
        return httpx.Response(404, text="not found")

    def paths(self):
        return [(r.method, r.url.path) for r in self.requests]


@pytest.fixture
def fake_api(monkeypatch):
    def _install(statuses):
        api = FakeAPI(statuses)
        monkeypatch.setattr(
            cli,
            "AssemblyClient",
            partial(AssemblyClient, api_key="test-key", transport=httpx.MockTransport(api)),
        )
        return api
    return _install


class TestParser:
    def test_requires_a_source(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["transcribe"])

    def test_sources_are_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["transcribe", "--audio-url", "https://x/a.mp3", "--transcript-id", "abc"]
            )

    def test_feature_flags_default_on(self):
        args = cli.build_parser().parse_args(["transcribe", "--audio-url", "https://x/a.mp3"])
        assert args.entities is True
        assert args.topics is True

    def test_feature_flags_can_be_disabled(self):
        args = cli.build_parser().parse_args(
            ["transcribe", "--audio-url", "https://x/a.mp3", "--no-entities", "--no-topics"]
        )
        assert args.entities is False
        assert args.topics is False

    def test_rejects_non_positive_interval(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(
                ["transcribe", "--audio-url", "https://x/a.mp3", "--poll-interval", "0"]
            )

    def test_question_transcript_ids_repeatable(self):
        args = cli.build_parser().parse_args(
            ["question", "--questions-file", "q.json", "--transcript-id", "a", "--transcript-id", "b"]
        )
        assert args.transcript_id == ["a", "b"]


class TestTranscribe:
    def test_audio_url_completes_and_saves_json(self, fake_api, tmp_path, capsys):
        api = fake_api([processing_payload(), completed_payload()])

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3",
                         "--output-dir", str(tmp_path)] + FAST)

        assert code == 0
        out = capsys.readouterr().out
        assert "Ada Lovelace visited London" in out
        assert "- location: London" in out
        saved = json.loads((tmp_path / "{}.json".format(JOB_ID)).read_text(encoding="utf-8"))
        assert saved["status"] == "completed"
        assert ("POST", "/v2/upload") not in api.paths()
        submitted = json.loads(api.requests[0].content)
        assert submitted["audio_url"] == "https://x/a.mp3"
        assert submitted["iab_categories"] is True

    def test_file_is_uploaded_first(self, fake_api, tmp_path):
        audio = tmp_path / "meeting.wav"
        audio.write_bytes(b"RIFF fake")
        api = fake_api([completed_payload()])

        code = cli.main(["transcribe", "--file", str(audio), "--output-dir", str(tmp_path),
                         "--quiet", "--no-entities"] + FAST)

        assert code == 0
        assert api.paths()[:2] == [("POST", "/v2/upload"), ("POST", "/v2/transcript")]
        submitted = json.loads(api.requests[1].content)
        assert submitted["audio_url"] == "https://cdn.assemblyai.com/upload/abc"
        assert submitted["entity_detection"] is False

    def test_transcript_id_skips_submission(self, fake_api, tmp_path):
        api = fake_api([completed_payload()])

        code = cli.main(["transcribe", "--transcript-id", JOB_ID, "--output-dir", str(tmp_path),
                         "--quiet", "--formats", "json,plain_text"] + FAST)

        assert code == 0
        assert all(method == "GET" for method, _ in api.paths())
        assert (tmp_path / "{}-transcript.txt".format(JOB_ID)).is_file()

    def test_existing_output_is_not_overwritten(self, fake_api, tmp_path):
        fake_api([completed_payload()])
        (tmp_path / "{}.json".format(JOB_ID)).write_text("{}", encoding="utf-8")

        code = cli.main(["transcribe", "--transcript-id", JOB_ID, "--output-dir", str(tmp_path),
                         "--quiet"] + FAST)

        assert code == 0
        assert (tmp_path / "{}.json".format(JOB_ID)).read_text(encoding="utf-8") == "{}"
        assert (tmp_path / "{}-2.json".format(JOB_ID)).is_file()

    def test_error_status_exits_1(self, fake_api, tmp_path, capsys):
        fake_api([processing_payload(), error_payload(message="File does not appear to contain audio")])

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3",
                         "--output-dir", str(tmp_path)] + FAST)

        assert code == 1
        assert "does not appear to contain audio" in capsys.readouterr().err
        assert list(tmp_path.iterdir()) == []

    def test_timeout_exits_2_with_resume_hint(self, fake_api, tmp_path, capsys):
        fake_api([processing_payload()])

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3", "--output-dir", str(tmp_path),
                         "--poll-interval", "0.01", "--timeout", "0.05"])

        assert code == 2
        assert "--transcript-id {}".format(JOB_ID) in capsys.readouterr().err

    def test_missing_file_exits_1_without_requests(self, fake_api, tmp_path, capsys):
        api = fake_api([completed_payload()])

        code = cli.main(["transcribe", "--file", str(tmp_path / "absent.mp3")] + FAST)

        assert code == 1
        assert "File not found" in capsys.readouterr().err
        assert api.requests == []

    def test_unsupported_extension_exits_1(self, fake_api, tmp_path, capsys):
        doc = tmp_path / "notes.txt"
        doc.write_text("hello", encoding="utf-8")
        fake_api([completed_payload()])

        code = cli.main(["transcribe", "--file", str(doc)] + FAST)

        assert code == 1
        assert "Unsupported file type" in capsys.readouterr().err

    def test_unknown_format_exits_1(self, fake_api, capsys):
        fake_api([completed_payload()])

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3", "--formats", "docx"] + FAST)

        assert code == 1
        assert "Unknown format 'docx'" in capsys.readouterr().err

    def test_missing_api_key_exits_1(self, monkeypatch, capsys):
        monkeypatch.delenv("ASSEMBLYAI_API_KEY", raising=False)

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3"] + FAST)

        assert code == 1
        assert "ASSEMBLYAI_API_KEY" in capsys.readouterr().err

    def test_malformed_poll_setting_exits_1(self, monkeypatch, capsys):
        monkeypatch.setenv("ASSEMBLYAI_POLL_TIMEOUT", "1h")

        code = cli.main(["transcribe", "--audio-url", "https://x/a.mp3"])

        assert code == 1
        err = capsys.readouterr().err
        assert "ASSEMBLYAI_POLL_TIMEOUT must be a number, got '1h'" in err


class TestQuestion:
    def test_prints_answers(self, fake_api, tmp_path, capsys):
        questions = tmp_path / "questions.json"
        questions.write_text(json.dumps([{"question": "What is the answer?"}]), encoding="utf-8")
        api = fake_api([completed_payload()])

        code = cli.main(["question", "--questions-file", str(questions), "--transcript-id", JOB_ID])

        assert code == 0
        out = capsys.readouterr().out
        assert "Question: What is the answer?" in out
        assert "Answer: 42" in out
        body = json.loads(api.requests[0].content)
        assert body["transcript_ids"] == [JOB_ID]

    def test_invalid_questions_file_exits_1(self, fake_api, tmp_path, capsys):
        questions = tmp_path / "questions.json"
        questions.write_text("[]", encoding="utf-8")
        api = fake_api([completed_payload()])

        code = cli.main(["question", "--questions-file", str(questions), "--transcript-id", JOB_ID])

        assert code == 1
        assert "invalid questions file" in capsys.readouterr().err
        assert api.requests == []
