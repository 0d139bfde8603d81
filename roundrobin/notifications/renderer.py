"""Jinja2-based renderer for notification emails."""

from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape

from roundrobin.notifications.schemas import RenderedEmail

TEMPLATES_DIR = Path(__file__).parent / "templates"


class EmailRenderer:
    """Render notification emails from Jinja2 templates.

    Every template exists as a plain text (``.txt.j2``) and an HTML
    (``.html.j2``) variant sharing one context.
    """

    def __init__(self, template_dir: str | Path = TEMPLATES_DIR):
        """Initialize renderer with template directory.

        Args:
            template_dir: Path to directory containing .j2 templates.
                          Defaults to the packaged templates.
        """
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "htm", "html.j2"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, subject: str, context: dict[str, Any]) -> RenderedEmail:
        """Render both variants of an email.

        Args:
            template_name: Base name of template (without .txt.j2/.html.j2)
            subject: Already localized subject
            context: Template variables

        Returns:
            RenderedEmail with both formats

        Raises:
            TemplateNotFound: If template files don't exist
        """
        context = {**context, "subject": subject}
        text = self.env.get_template(f"{template_name}.txt.j2").render(context)
        html = self.env.get_template(f"{template_name}.html.j2").render(context)
        return RenderedEmail(
            subject=subject,
            text=text,
            html=html,
            template_used=template_name,
        )


__all__ = ["EmailRenderer", "TemplateNotFound"]
