from __future__ import annotations

import typer

from gemini_tool_routing.interfaces.commands.tools import tools_app
from gemini_tool_routing.logger import configure_logging

app = typer.Typer(help="Geminiのネイティブツールとカスタムツールの振り分けを確認するツールです。")
app.add_typer(tools_app, name="tools")


def main() -> None:
    """Entrypoint for the CLI application."""
    configure_logging()
    app()


if __name__ == "__main__":
    main()
