"""Email generation service rendering the daily menu template."""

from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape
from premailer import Premailer

from mamita_newsletter.infrastructure.config import get_templates_dir
from mamita_newsletter.infrastructure.logging import LoggerMixin
from mamita_newsletter.models.email import EmailContent, GeneratedContent
from mamita_newsletter.models.menu import MenuRecord, Outlet, mentions_closing_phrase

TEMPLATE_NAME = "email/daily_menu.html"


def _printable(lines: List[str]) -> List[str]:
    """Drop whitespace-only lines and any stray closing wish."""
    return [line for line in lines if line.strip() and not mentions_closing_phrase(line)]


class EmailGenerationService(LoggerMixin):
    """Turns formatted menu content into an HTML email."""

    def __init__(self, templates_dir: Optional[Path] = None, inline_css: bool = True):
        self.templates_dir = templates_dir or get_templates_dir()
        self.jinja_env = self._setup_jinja_environment()
        self.inline_css = inline_css
        self.css_inliner = Premailer(
            remove_classes=False,
            keep_style_tags=True,
            strip_important=False,
            disable_validation=True,
        )

    def _setup_jinja_environment(self) -> Environment:
        """Set up Jinja2 environment with proper configuration."""
        return Environment(
            loader=FileSystemLoader(self.templates_dir),
            autoescape=select_autoescape(['html', 'xml']),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def template_context(
        self,
        menu: MenuRecord,
        content: GeneratedContent,
        outlet: Outlet,
    ) -> Dict[str, Any]:
        """Template variables for one menu. Sections keep the formatter's order."""
        sections = [
            {"title": section.title, "lines": _printable(section.lines)}
            for section in content.sections
        ]
        return {
            "subject": content.subject,
            "image": menu.image if isinstance(menu.image, str) and menu.image.strip() else None,
            "date": menu.date,
            "sections": sections,
            "closing_wish": outlet.closing_wish,
            "footer_lines": _printable(menu.footer_lines),
        }

    def render_html(self, menu: MenuRecord, content: GeneratedContent, outlet: Outlet) -> str:
        """Render the email body. All interpolated text is HTML-escaped."""
        template = self.jinja_env.get_template(TEMPLATE_NAME)
        html = template.render(**self.template_context(menu, content, outlet))
        return self._inline_css(html) if self.inline_css else html

    def _inline_css(self, html_content: str) -> str:
        """Inline CSS styles for better email client compatibility."""
        try:
            return self.css_inliner.transform(html_content)
        except Exception as e:
            self.logger.warning("Failed to inline CSS, using original HTML", error=str(e))
            return html_content

    def render_text(self, menu: MenuRecord, content: GeneratedContent, outlet: Outlet) -> str:
        """Plain text alternative of the same email."""
        context = self.template_context(menu, content, outlet)
        lines = [context["date"], ""]

        for section in context["sections"]:
            lines.append(section["title"].upper())
            lines.append("-" * 40)
            lines.extend(section["lines"])
            lines.append("")

        lines.append(context["closing_wish"])
        lines.extend(context["footer_lines"])
        return "\n".join(lines).strip() + "\n"

    def generate_menu_email(
        self,
        menu: MenuRecord,
        content: GeneratedContent,
        outlet: Outlet,
        from_email: str = "",
    ) -> EmailContent:
        """Build the complete email for one outlet's menu."""
        email_content = EmailContent(
            html=self.render_html(menu, content, outlet),
            text=self.render_text(menu, content, outlet),
            subject=content.subject,
            from_email=from_email,
            from_name=outlet.display_name,
        )

        self.logger.info(
            "Menu email generated",
            outlet=outlet.value,
            subject=email_content.subject,
            email_size_kb=round(email_content.estimated_size_kb, 2),
        )
        return email_content
