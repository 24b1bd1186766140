"""
Pytest Configuration and Shared Fixtures.

- InMemoryStore: document store double recording every call
- StubFormatter: deterministic stand-in for the generative model
- RecordingDelivery: delivery agent double capturing bcc lists
- homepage_document / sample_menu: a stored menu for Le Mamita
"""

import copy
from typing import Any, Dict, List, Optional

import pytest

from mamita_newsletter.agents import NewsletterDependencies
from mamita_newsletter.infrastructure.config import SMTPSettings
from mamita_newsletter.infrastructure.error_handling import DeliveryError
from mamita_newsletter.models.email import DeliveryResult, EmailContent, GeneratedContent, GeneratedSection
from mamita_newsletter.models.menu import (
    EXTERNAL_SUBSCRIBERS_DOC_ID,
    HOMEPAGE_TEXT_DOC_ID,
    MenuRecord,
    Outlet,
)
from mamita_newsletter.services.email_generation import EmailGenerationService
from mamita_newsletter.services.openai_service import normalize_price


class InMemoryStore:
    """Document store keeping settings documents and users in dicts."""

    def __init__(self, documents: Optional[Dict[str, Any]] = None, users: Optional[List[dict]] = None):
        self.documents = copy.deepcopy(documents or {})
        self.users = users or []
        self.calls: List[tuple] = []

    async def get_settings_document(self, doc_id: str):
        self.calls.append(("get", doc_id))
        data = self.documents.get(doc_id)
        return copy.deepcopy(data) if data is not None else None

    async def save_settings_document(self, doc_id: str, data: Dict[str, Any], merge: bool = False):
        self.calls.append(("save", doc_id))
        if merge and doc_id in self.documents:
            self.documents[doc_id] = {**self.documents[doc_id], **copy.deepcopy(data)}
        else:
            self.documents[doc_id] = copy.deepcopy(data)

    async def query_user_emails(self, field: str, value: Any) -> List[str]:
        self.calls.append(("query", field))
        return [user["email"] for user in self.users if user.get(field) == value]

    def called(self, kind: str) -> bool:
        return any(call[0] == kind for call in self.calls)


class StubFormatter:
    """Formats like the prompt asks, without calling a model."""

    def __init__(self, result: Optional[GeneratedContent] = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: List[MenuRecord] = []

    async def format_menu(self, menu: MenuRecord, outlet: Outlet) -> GeneratedContent:
        self.calls.append(menu)
        if self.error:
            raise self.error
        if self.result is not None:
            return self.result
        return GeneratedContent(
            subject=f"{outlet.display_name} - {menu.date}",
            sections=[
                GeneratedSection(title=s.title, lines=[normalize_price(line) for line in s.lines])
                for s in menu.visible_sections
            ],
        )


class RecordingDelivery:
    """Delivery agent that records submissions instead of sending."""

    def __init__(self, fail_with: Optional[str] = None):
        self.fail_with = fail_with
        self.sent: List[Dict[str, Any]] = []

    async def send_newsletter(self, email_content: EmailContent, bcc: List[str]) -> DeliveryResult:
        if self.fail_with:
            raise DeliveryError(f"Error while sending emails via SMTP: {self.fail_with}")
        self.sent.append({"email": email_content, "bcc": list(bcc)})
        return DeliveryResult(
            success=True,
            count=len(bcc),
            message=f"All emails were sent to {len(bcc)} subscriber(s).",
            subject=email_content.subject,
            body=email_content.html,
        )


@pytest.fixture
def menu_document() -> dict:
    """Stored menu for Le Mamita, in the settings document layout."""
    return {
        "id": "menu_1",
        "image": "https://example.org/logo.png",
        "date": "Mercredi 30 Juillet 2025",
        "horaires": "Du Lundi au Vendredi : de 7h à 14h",
        "sections": [
            {"title": "Entrée", "lines": ["Soupe 5.00€", "  "], "isVisible": True},
            {"title": "Dessert", "lines": ["Tarte 3,50"], "isVisible": False},
        ],
        "footerLines": ["Sur place ou à emporter", "Bon Appétit à tous !", ""],
    }


@pytest.fixture
def homepage_document(menu_document) -> dict:
    return {"menus": [menu_document]}


@pytest.fixture
def sample_menu(menu_document) -> MenuRecord:
    return MenuRecord.model_validate(menu_document)


@pytest.fixture
def smtp_settings() -> SMTPSettings:
    return SMTPSettings(
        host="smtp.mamita.fr",
        port=465,
        username="newsletter",
        password="secret",
        from_email="contact@mamita.fr",
    )


@pytest.fixture
def make_store(homepage_document):
    """Factory building a store holding the sample menu plus given subscribers."""

    def _make(users=None, external=None, homepage=homepage_document):
        documents = {}
        if homepage is not None:
            documents[HOMEPAGE_TEXT_DOC_ID] = homepage
        if external is not None:
            documents[EXTERNAL_SUBSCRIBERS_DOC_ID] = external
        return InMemoryStore(documents=documents, users=users or [])

    return _make


@pytest.fixture
def make_dependencies():
    def _make(store, formatter=None, delivery=None):
        return NewsletterDependencies(
            store=store,
            formatter=formatter or StubFormatter(),
            renderer=EmailGenerationService(inline_css=False),
            delivery=delivery,
        )

    return _make
