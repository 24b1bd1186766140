"""Collaborators injected into the newsletter workflow nodes."""

from dataclasses import dataclass, field
from typing import Optional

from mamita_newsletter.infrastructure.database import DocumentStore
from mamita_newsletter.services.email_generation import EmailGenerationService
from mamita_newsletter.services.menu_content import MenuContentService
from mamita_newsletter.services.notification import NewsletterDelivery
from mamita_newsletter.services.openai_service import MenuFormatter
from mamita_newsletter.services.subscribers import SubscriberService


@dataclass
class NewsletterDependencies:
    """Everything a run needs besides its request.

    ``delivery`` may be left unset for previews; ``send_newsletter`` builds
    an SMTP delivery agent from validated settings when it is missing.
    """

    store: DocumentStore
    formatter: MenuFormatter
    renderer: EmailGenerationService = field(default_factory=EmailGenerationService)
    delivery: Optional[NewsletterDelivery] = None
    from_email: str = ""

    @property
    def menus(self) -> MenuContentService:
        return MenuContentService(self.store)

    @property
    def subscribers(self) -> SubscriberService:
        return SubscriberService(self.store)
