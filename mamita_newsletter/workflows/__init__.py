"""LangGraph workflows for the daily menu newsletter."""

from .newsletter import create_newsletter_workflow, preview_newsletter, run_newsletter_workflow, send_newsletter

__all__ = [
    "create_newsletter_workflow",
    "preview_newsletter",
    "run_newsletter_workflow",
    "send_newsletter",
]
