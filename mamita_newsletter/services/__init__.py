"""Business logic services for the daily menu newsletter."""

from .email_generation import EmailGenerationService
from .menu_content import MenuContentService, parse_pasted_menu
from .notification import NewsletterDelivery, SMTPDeliveryService
from .openai_service import MenuFormatter, OpenAIMenuFormatter
from .subscribers import SubscriberService, merge_recipients

__all__ = [
    "EmailGenerationService",
    "MenuContentService",
    "parse_pasted_menu",
    "NewsletterDelivery",
    "SMTPDeliveryService",
    "MenuFormatter",
    "OpenAIMenuFormatter",
    "SubscriberService",
    "merge_recipients",
]
