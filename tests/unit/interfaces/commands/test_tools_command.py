from __future__ import annotations

import json
from typing import TYPE_CHECKING

from typer.testing import CliRunner

from gemini_tool_routing.interfaces.cli import app
from gemini_tool_routing.native_tools.manager import ToolConfigurationResolver

if TYPE_CHECKING:
    from pathlib import Path

    import pytest

runner = CliRunner()

ENV: dict[str, str] = {
    "ENABLE_NATIVE_TOOLS": "true",
    "ENABLE_GOOGLE_SEARCH": "true",
    "ENABLE_URL_CONTEXT": "true",
    "ENABLE_INLINE_CITATIONS": "true",
}


def _use_resolver(monkeypatch: pytest.MonkeyPatch, env: dict[str, str] | None = None) -> None:
    resolver = ToolConfigurationResolver(env or ENV)
    monkeypatch.setattr(
        "gemini_tool_routing.interfaces.commands.tools._resolver",
        lambda: resolver,
    )


def _write_tools(tmp_path: Path, payload: object) -> Path:
    path = tmp_path / "tools.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_resolve_defaults_to_search(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without custom tools the resolver picks Google Search."""
    _use_resolver(monkeypatch)

    result = runner.invoke(app, ["tools", "resolve", "--model", "gemini-2.5-flash"])

    assert result.exit_code == 0
    assert '"google_search"' in result.stdout
    assert '"search_and_url"' in result.stdout


def test_resolve_with_custom_tools(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Custom tools suppress native defaults and appear as declarations."""
    _use_resolver(monkeypatch)
    tools_path = _write_tools(tmp_path, [{"name": "get_weather", "parameters": {"type": "object"}}])

    result = runner.invoke(
        app,
        ["tools", "resolve", "--model", "gemini-2.5-flash", "--custom-tools", str(tools_path)],
    )

    assert result.exit_code == 0
    assert '"custom_only"' in result.stdout
    assert '"functionDeclarations"' in result.stdout
    assert '"get_weather"' in result.stdout


def test_resolve_accepts_openai_style_tools(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Tools wrapped in the OpenAI function envelope are accepted and unwrapped."""
    _use_resolver(monkeypatch)
    tools_path = _write_tools(
        tmp_path,
        [{"type": "function", "function": {"name": "get_weather", "parameters": {"type": "object"}}}],
    )

    result = runner.invoke(
        app,
        ["tools", "resolve", "--model", "gemini-2.5-flash", "--custom-tools", str(tools_path)],
    )

    assert result.exit_code == 0
    assert '"functionDeclarations"' in result.stdout
    assert '"get_weather"' in result.stdout
    assert '"function":' not in result.stdout


def test_resolve_native_flag_overrides_custom_tools(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """--native with --no-search attaches URL Context instead of the custom tools."""
    _use_resolver(monkeypatch)
    tools_path = _write_tools(tmp_path, [{"name": "get_weather"}])

    result = runner.invoke(
        app,
        [
            "tools",
            "resolve",
            "--model",
            "gemini-2.5-pro",
            "--custom-tools",
            str(tools_path),
            "--native",
            "--no-search",
        ],
    )

    assert result.exit_code == 0
    assert '"url_context"' in result.stdout
    assert '"functionDeclarations"' not in result.stdout


def test_resolve_rejects_malformed_tools_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """A tools file that is not a list of tools is a parameter error."""
    _use_resolver(monkeypatch)
    tools_path = _write_tools(tmp_path, {"name": "not-a-list"})

    result = runner.invoke(
        app,
        ["tools", "resolve", "--model", "gemini-2.5-pro", "--custom-tools", str(tools_path)],
    )

    assert result.exit_code == 2


def test_cite_rewrites_text(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """The cite command inserts markers from a metadata file."""
    _use_resolver(monkeypatch)
    metadata_path = tmp_path / "metadata.json"
    metadata_path.write_text(
        json.dumps(
            {
                "groundingChunks": [{"web": {"uri": "https://example.com", "title": "Example"}}],
                "groundingSupports": [
                    {"segment": {"text": "The sky is blue."}, "groundingChunkIndices": [0]},
                ],
            },
        ),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["tools", "cite", "The sky is blue.", "--metadata", str(metadata_path)])

    assert result.exit_code == 0
    assert "The sky is blue.[1]" in result.stdout
