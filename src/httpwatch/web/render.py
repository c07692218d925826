"""Jinja2 rendering of the watch page and its refreshable fragment.

Templates are loaded once at startup; a template that is missing or fails
to parse aborts startup. Errors while *rendering* are only logged: the
caller receives whatever markup was produced before the error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    PackageLoader,
    StrictUndefined,
    Template,
    TemplateError,
    select_autoescape,
)
from markupsafe import Markup

from httpwatch import HttpWatchError
from httpwatch.config.settings import WatchConfig, format_duration
from httpwatch.watcher.state import WatchState

logger = logging.getLogger(__name__)

INDEX_TEMPLATE = "index.html"
CONTENT_TEMPLATE = "content.html"


class TemplateLoadError(HttpWatchError):
    """Raised when the page templates cannot be loaded or parsed."""


class PageRenderer:
    """Renders the full page and the content fragment for a WatchState."""

    def __init__(
        self,
        state: WatchState,
        config: WatchConfig,
        template_dir: Path | str | None = None,
    ) -> None:
        self._state = state
        self._config = config
        try:
            if template_dir is None:
                loader = PackageLoader("httpwatch", "web/templates")
            else:
                loader = FileSystemLoader(str(template_dir))
            self._env = Environment(
                loader=loader,
                autoescape=select_autoescape(["html"]),
                undefined=StrictUndefined,
            )
            self._index = self._env.get_template(INDEX_TEMPLATE)
            self._content = self._env.get_template(CONTENT_TEMPLATE)
        except (TemplateError, ValueError) as e:
            raise TemplateLoadError(f"Failed to load templates: {e}") from e

    def context(self) -> dict[str, Any]:
        """Template variables for the current snapshot."""
        result = self._state.snapshot()
        command = self._state.command
        return {
            "title": command.program,
            "cmd": command.display,
            "output": Markup(result.output),
            "err": result.failure,
            "updated_at": result.completed_at,
            "cycle": result.cycle,
            "interval": self._state.interval,
            "interval_ms": self._state.interval_ms,
            "interval_display": format_duration(self._state.interval),
            "no_title": self._config.no_title,
        }

    def render_index(self) -> str:
        return _render(self._index, self.context())

    def render_content(self) -> str:
        return _render(self._content, self.context())


def _render(template: Template, context: dict[str, Any]) -> str:
    parts: list[str] = []
    try:
        for chunk in template.generate(context):
            parts.append(chunk)
    except Exception as e:
        logger.error("Error rendering %s: %s", template.name, e)
    return "".join(parts)
