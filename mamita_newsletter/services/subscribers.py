"""Subscriber service: registered users plus manually curated lists."""

from typing import Dict, List

from pydantic import EmailStr, TypeAdapter, ValidationError

from mamita_newsletter.infrastructure.database import DocumentStore
from mamita_newsletter.infrastructure.error_handling import SubscriberError
from mamita_newsletter.infrastructure.logging import LoggerMixin
from mamita_newsletter.models.email import SubscriberSummary
from mamita_newsletter.models.menu import EXTERNAL_SUBSCRIBERS_DOC_ID, Outlet

_email_adapter = TypeAdapter(EmailStr)


def merge_recipients(*address_lists: List[str]) -> List[str]:
    """Union of address lists, deduplicated by exact string, first seen wins."""
    return list(dict.fromkeys(
        address for addresses in address_lists for address in addresses
    ))


class SubscriberService(LoggerMixin):
    """Builds recipient sets and maintains the external subscriber lists."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def registered_emails(self, outlet: Outlet) -> List[str]:
        """Emails of registered users who opted in for this outlet."""
        emails = await self.store.query_user_emails(outlet.profile.subscription_field, True)
        return [email for email in emails if email]

    async def _external_document(self) -> Dict[str, List[str]]:
        return await self.store.get_settings_document(EXTERNAL_SUBSCRIBERS_DOC_ID) or {}

    async def external_emails(self, outlet: Outlet) -> List[str]:
        """The outlet's curated list. A missing document counts as empty."""
        document = await self._external_document()
        return list(document.get(outlet.profile.external_list_key) or [])

    async def collect_recipients(self, outlet: Outlet) -> List[str]:
        """Build the deduplicated recipient set for one send."""
        registered = await self.registered_emails(outlet)
        external = await self.external_emails(outlet)
        recipients = merge_recipients(registered, external)

        self.logger.info(
            "Recipients collected",
            outlet=outlet.value,
            registered=len(registered),
            external=len(external),
            total=len(recipients),
        )
        return recipients

    async def summary(self, outlet: Outlet) -> SubscriberSummary:
        return SubscriberSummary(
            registered=await self.registered_emails(outlet),
            external=await self.external_emails(outlet),
        )

    async def add_external_email(self, outlet: Outlet, email: str) -> List[str]:
        """Add an address to the outlet's curated list.

        Raises:
            SubscriberError: If the address is invalid or already listed.
        """
        try:
            address = str(_email_adapter.validate_python(email.strip())).lower()
        except ValidationError:
            raise SubscriberError(f"Invalid email address: {email!r}")

        current = await self.external_emails(outlet)
        if address in current:
            raise SubscriberError(f"{address} is already in the external list.")

        updated = current + [address]
        await self.store.save_settings_document(
            EXTERNAL_SUBSCRIBERS_DOC_ID,
            {outlet.profile.external_list_key: updated},
            merge=True,
        )
        self.logger.info("External subscriber added", outlet=outlet.value, email=address)
        return updated

    async def remove_external_email(self, outlet: Outlet, email: str) -> List[str]:
        """Remove an address from the outlet's curated list.

        Raises:
            SubscriberError: If the address is not listed.
        """
        current = await self.external_emails(outlet)
        if email not in current:
            raise SubscriberError(f"{email} is not in the external list.")

        updated = [address for address in current if address != email]
        await self.store.save_settings_document(
            EXTERNAL_SUBSCRIBERS_DOC_ID,
            {outlet.profile.external_list_key: updated},
            merge=True,
        )
        self.logger.info("External subscriber removed", outlet=outlet.value, email=email)
        return updated
