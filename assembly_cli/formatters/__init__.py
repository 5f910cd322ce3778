"""Output formatter registry.

WHY: The CLI needs a single lookup to find a formatter by name from the
--formats flag.

HOW: FORMATTERS maps string keys to formatter *classes* (not instances).
Callers instantiate as needed: ``formatter = FORMATTERS["json"]()``.

RULES:
- Keys are snake_case identifiers (used in CLI flags)
- Values are BaseFormatter subclasses (not instances)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from assembly_cli.formatters.json_payload import JsonFormatter
from assembly_cli.formatters.plain_text import PlainTextFormatter

if TYPE_CHECKING:
    from assembly_cli.formatters.base import BaseFormatter

FORMATTERS: dict[str, type[BaseFormatter]] = {
    "json": JsonFormatter,
    "plain_text": PlainTextFormatter,
}
