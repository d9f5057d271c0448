from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import typer
from pydantic import ValidationError

from gemini_tool_routing.native_tools.payloads import as_custom_tool

if TYPE_CHECKING:
    from pathlib import Path

    from gemini_tool_routing.models import CustomTool

INVALID_JSON_FILE_ERROR = "JSONファイルを読み込めませんでした: {path}"
INVALID_CUSTOM_TOOLS_ERROR = "カスタムツールはnameを持つオブジェクトの配列で指定してください。"


def read_json_file(path: Path) -> Any:
    """Load a JSON document, reporting failures as CLI parameter errors."""
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(INVALID_JSON_FILE_ERROR.format(path=path)) from exc


def load_custom_tools(path: Path | None) -> list[CustomTool]:
    """Parse a JSON array of function tool definitions, bare or OpenAI-style."""
    if path is None:
        return []
    raw = read_json_file(path)
    if not isinstance(raw, list):
        raise typer.BadParameter(INVALID_CUSTOM_TOOLS_ERROR)
    try:
        return [as_custom_tool(item) for item in raw]
    except (TypeError, ValidationError) as exc:
        raise typer.BadParameter(INVALID_CUSTOM_TOOLS_ERROR) from exc
