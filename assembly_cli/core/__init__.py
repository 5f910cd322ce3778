"""Core job tracking and question-file handling.

WHY: The core package holds the logic that has decisions in it: the
submission/polling state machine and the validation of user-written
question files. Both are independent of argument parsing and output.

HOW: tracker.py drives one job from submission to a terminal status
through an injected client; questions.py loads and validates questions.

RULES:
- No HTTP here; the client is always injected
- No printing here; progress goes through on_status callbacks and logging
"""
