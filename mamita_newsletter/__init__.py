"""Daily Menu Newsletter

Formats an outlet's daily menu with a language model and mails it to the
outlet's subscribers, plus the admin tools that maintain menus and lists.
"""

__version__ = "0.1.0"

from mamita_newsletter.models.email import DeliveryResult
from mamita_newsletter.models.menu import MenuRecord, Outlet
from mamita_newsletter.workflows.newsletter import preview_newsletter, send_newsletter

__all__ = [
    "DeliveryResult",
    "MenuRecord",
    "Outlet",
    "preview_newsletter",
    "send_newsletter",
]
