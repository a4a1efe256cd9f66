"""Render API data as JSON or Markdown for tool responses."""

import json
from enum import Enum
from typing import Any

MAX_COLUMNS = 6
MAX_ROWS = 20


class ResponseFormat(str, Enum):
    JSON = "json"
    MARKDOWN = "markdown"


def format_response(data: Any, fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    if fmt == ResponseFormat.MARKDOWN:
        return format_as_markdown(data)
    return json.dumps(data, indent=2, default=str)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json.dumps(value, default=str)[:30]
    return str(value)[:40]


def format_as_markdown(data: Any) -> str:
    """
    Tables for lists of objects (first 6 columns, 20 rows), bullets for other
    lists, bold key/value lines for objects.
    """
    if isinstance(data, list):
        if not data:
            return "_No data available_"

        if isinstance(data[0], dict):
            keys = list(data[0])[:MAX_COLUMNS]
            lines = [
                f"| {' | '.join(keys)} |",
                f"| {' | '.join('---' for _ in keys)} |",
            ]
            for item in data[:MAX_ROWS]:
                row = item if isinstance(item, dict) else {}
                lines.append(f"| {' | '.join(_cell(row.get(k)) for k in keys)} |")
            if len(data) > MAX_ROWS:
                lines.append(f"\n_... and {len(data) - MAX_ROWS} more items_")
            return "\n".join(lines)

        return "\n".join(f"- {item}" for item in data)

    if isinstance(data, dict):
        parts = []
        for key, value in data.items():
            if isinstance(value, (dict, list)):
                parts.append(f"**{key}:**\n```json\n{json.dumps(value, indent=2, default=str)}\n```")
            else:
                parts.append(f"**{key}:** {value}")
        return "\n\n".join(parts)

    return str(data)
