"""
notify/renderer.py -- Jinja2 rendering for outbound e-mail bodies.

Templates live in notify/templates/. Autoescaping is on for .html files so
profile values (a user-supplied name) cannot inject markup into the message.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

_TEMPLATES_DIR = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Render named templates to strings.

    Usage:
        renderer = TemplateRenderer()
        html = renderer.render("reset-password-email.html", {"name": "Ann", "link": url})
    """

    def __init__(self, templates_dir: Path = _TEMPLATES_DIR) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, variables: dict[str, Any]) -> str:
        template = self._env.get_template(template_name)
        return template.render(**variables)
