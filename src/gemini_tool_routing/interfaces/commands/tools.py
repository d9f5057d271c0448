from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path

import typer
from rich.console import Console

from gemini_tool_routing.interfaces.commands.common import load_custom_tools, read_json_file
from gemini_tool_routing.models import NativeToolsRequestParams, ToolSource
from gemini_tool_routing.native_tools.manager import ToolConfigurationResolver
from gemini_tool_routing.native_tools.payloads import to_wire_tools_payload

tools_app = typer.Typer(help="Geminiリクエストに付与するツール構成を確認します。")
console = Console()

MODEL_OPTION: str = typer.Option(..., "--model", "-m", help="リクエスト先のモデルID")
CUSTOM_TOOLS_OPTION: Path | None = typer.Option(
    None,
    "--custom-tools",
    exists=True,
    readable=True,
    dir_okay=False,
    help="カスタム関数ツール定義 (JSON配列) のパス",
)
NATIVE_OPTION: bool | None = typer.Option(
    None,
    "--native/--no-native",
    help="ネイティブツールの利用をリクエスト単位で指定します。",
    show_default=False,
)
SEARCH_OPTION: bool | None = typer.Option(
    None,
    "--search/--no-search",
    help="Google検索ツールの利用をリクエスト単位で指定します。",
    show_default=False,
)
URL_CONTEXT_OPTION: bool | None = typer.Option(
    None,
    "--url-context/--no-url-context",
    help="URL Contextツールの利用をリクエスト単位で指定します。",
    show_default=False,
)
PRIORITY_OPTION: ToolSource | None = typer.Option(
    None,
    "--priority",
    "-p",
    case_sensitive=False,
    help="競合時に優先するツール (native / custom)",
)
METADATA_OPTION: Path = typer.Option(
    ...,
    "--metadata",
    exists=True,
    readable=True,
    dir_okay=False,
    help="グラウンディングメタデータ (JSON) のパス",
)


@lru_cache(maxsize=1)
def _resolver() -> ToolConfigurationResolver:
    return ToolConfigurationResolver()


@tools_app.command("resolve")
def tools_resolve(
    model: str = MODEL_OPTION,
    custom_tools_path: Path | None = CUSTOM_TOOLS_OPTION,
    native: bool | None = NATIVE_OPTION,
    search: bool | None = SEARCH_OPTION,
    url_context: bool | None = URL_CONTEXT_OPTION,
    priority: ToolSource | None = PRIORITY_OPTION,
) -> None:
    """環境設定とリクエスト指定からツール構成を決定して表示します."""
    custom_tools = load_custom_tools(custom_tools_path)
    params = NativeToolsRequestParams(
        enable_native_tools=native,
        enable_search=search,
        enable_url_context=url_context,
        native_tools_priority=priority,
    )
    configuration = _resolver().resolve_configuration(custom_tools, params, model)
    payload = {
        "configuration": configuration.model_dump(mode="json"),
        "tools": to_wire_tools_payload(configuration),
    }
    console.print_json(json.dumps(payload, ensure_ascii=False))


@tools_app.command("cite")
def tools_cite(
    text: str,
    metadata_path: Path = METADATA_OPTION,
) -> None:
    """グラウンディングメタデータを使ってテキストに引用番号を挿入します."""
    metadata = read_json_file(metadata_path)
    if not isinstance(metadata, dict):
        raise typer.BadParameter("グラウンディングメタデータはJSONオブジェクトで指定してください。")
    console.print(_resolver().rewrite_citations(text, metadata), markup=False, soft_wrap=True)
