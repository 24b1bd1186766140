"""LangGraph workflow nodes for the newsletter pipeline."""

from .dependencies import NewsletterDependencies
from .formatter import format_menu_content
from .generator import render_menu_email
from .loader import load_menu_and_recipients
from .sender import send_to_subscribers

__all__ = [
    "NewsletterDependencies",
    "format_menu_content",
    "render_menu_email",
    "load_menu_and_recipients",
    "send_to_subscribers",
]
