"""Turns raw command output into the markup shown on the page."""

from __future__ import annotations

import html
import io

from rich.console import Console
from rich.text import Text

LINE_BREAK = "<br/>"


def ansi_to_html(text: str) -> str:
    """Convert ANSI color and style sequences to inline-styled HTML.

    Everything that is not a style is HTML-escaped.
    """
    console = Console(
        file=io.StringIO(),
        record=True,
        force_terminal=True,
        color_system="truecolor",
        width=10_000,
        legacy_windows=False,
    )
    console.print(Text.from_ansi(text, end=""), end="", soft_wrap=True, highlight=False)
    return console.export_html(inline_styles=True, code_format="{code}")


def format_output(data: bytes, color: bool = False) -> str:
    """Render command output bytes as markup.

    Invalid UTF-8 is replaced rather than rejected. Line terminators
    (``\\r\\n`` or ``\\n``) become a single ``<br/>``.
    """
    text = data.decode("utf-8", errors="replace")
    markup = ansi_to_html(text) if color else html.escape(text, quote=False)
    return markup.replace("\r\n", "\n").replace("\n", LINE_BREAK)
