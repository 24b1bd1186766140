"""Data models for the daily menu newsletter."""

from .email import DeliveryResult, EmailContent, GeneratedContent, GeneratedSection, SubscriberSummary
from .menu import HomepageText, MenuRecord, MenuSection, Outlet, create_default_menu
from .state import NewsletterRequest, NewsletterState, ProcessingStage

__all__ = [
    "DeliveryResult",
    "EmailContent",
    "GeneratedContent",
    "GeneratedSection",
    "SubscriberSummary",
    "HomepageText",
    "MenuRecord",
    "MenuSection",
    "Outlet",
    "create_default_menu",
    "NewsletterRequest",
    "NewsletterState",
    "ProcessingStage",
]
