"""Jinja2 template rendering for generated artifacts.

Provides the TemplateRenderer class which loads the ``.j2`` shells stored under
``shapegen/generators/templates/`` and renders them with per-declaration
context data.  Field-level fragments are built programmatically by the
generators and injected into these shells as pre-rendered text.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for generated TypeScript artifacts.

    Rendering is deterministic: the same template and context always produce
    byte-identical output.  Undefined context variables raise instead of
    rendering as empty text, so a shell can never be emitted half-filled.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            keep_trailing_newline=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"store.ts.j2"``).
            context: Dictionary of variables available inside the template.

        Returns:
            The rendered template content as a string.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


_default_renderer: TemplateRenderer | None = None


def default_renderer() -> TemplateRenderer:
    """Shared renderer over the packaged templates (stateless once built)."""
    global _default_renderer
    if _default_renderer is None:
        _default_renderer = TemplateRenderer()
    return _default_renderer
