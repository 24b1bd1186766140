"""Unit tests for recipient collection and the external subscriber lists."""

import pytest

from mamita_newsletter.infrastructure.error_handling import SubscriberError
from mamita_newsletter.models.menu import EXTERNAL_SUBSCRIBERS_DOC_ID, Outlet
from mamita_newsletter.services.subscribers import SubscriberService, merge_recipients


class TestMergeRecipients:

    def test_first_seen_order_kept(self):
        assert merge_recipients(["a@x.com", "b@x.com"], ["b@x.com", "c@x.com"]) == [
            "a@x.com", "b@x.com", "c@x.com",
        ]

    def test_exact_string_comparison(self):
        """Addresses differing only in case are distinct recipients."""
        assert merge_recipients(["A@x.com"], ["a@x.com"]) == ["A@x.com", "a@x.com"]

    def test_empty_inputs(self):
        assert merge_recipients([], []) == []


class TestCollectRecipients:

    @pytest.mark.asyncio
    async def test_union_of_registered_and_external(self, make_store):
        store = make_store(
            users=[
                {"email": "a@x.com", "newsletterMamita": True},
                {"email": "b@x.com", "newsletterMamita": True},
            ],
            external={"mamita": ["b@x.com", "c@x.com"], "boutiqueCafe": ["d@x.com"]},
        )

        recipients = await SubscriberService(store).collect_recipients(Outlet.MAMITA)

        assert recipients == ["a@x.com", "b@x.com", "c@x.com"]

    @pytest.mark.asyncio
    async def test_outlet_flag_selects_users(self, make_store):
        store = make_store(users=[
            {"email": "a@x.com", "newsletterMamita": True, "newsletterBoutiqueCafe": False},
            {"email": "b@x.com", "newsletterMamita": False, "newsletterBoutiqueCafe": True},
        ])

        recipients = await SubscriberService(store).collect_recipients(Outlet.BOUTIQUE_CAFE)

        assert recipients == ["b@x.com"]

    @pytest.mark.asyncio
    async def test_missing_external_document_is_empty(self, make_store):
        store = make_store(users=[{"email": "a@x.com", "newsletterMamita": True}])

        assert await SubscriberService(store).collect_recipients(Outlet.MAMITA) == ["a@x.com"]

    @pytest.mark.asyncio
    async def test_missing_outlet_key_is_empty(self, make_store):
        store = make_store(external={"boutiqueCafe": ["d@x.com"]})

        assert await SubscriberService(store).external_emails(Outlet.MAMITA) == []

    @pytest.mark.asyncio
    async def test_summary_counts(self, make_store):
        store = make_store(
            users=[{"email": "a@x.com", "newsletterMamita": True}],
            external={"mamita": ["a@x.com", "c@x.com"]},
        )

        summary = await SubscriberService(store).summary(Outlet.MAMITA)

        assert summary.registered == ["a@x.com"]
        assert summary.external == ["a@x.com", "c@x.com"]
        assert summary.total == 3


class TestExternalListEditing:

    @pytest.mark.asyncio
    async def test_add_normalizes_and_keeps_other_outlet(self, make_store):
        store = make_store(external={"mamita": ["a@x.com"], "boutiqueCafe": ["d@x.com"]})

        updated = await SubscriberService(store).add_external_email(Outlet.MAMITA, "  New@Mamita.fr ")

        assert updated == ["a@x.com", "new@mamita.fr"]
        assert store.documents[EXTERNAL_SUBSCRIBERS_DOC_ID] == {
            "mamita": ["a@x.com", "new@mamita.fr"],
            "boutiqueCafe": ["d@x.com"],
        }

    @pytest.mark.asyncio
    async def test_add_creates_document(self, make_store):
        store = make_store()

        await SubscriberService(store).add_external_email(Outlet.BOUTIQUE_CAFE, "d@x.com")

        assert store.documents[EXTERNAL_SUBSCRIBERS_DOC_ID] == {"boutiqueCafe": ["d@x.com"]}

    @pytest.mark.asyncio
    async def test_add_duplicate_rejected(self, make_store):
        store = make_store(external={"mamita": ["a@x.com"]})

        with pytest.raises(SubscriberError, match="already"):
            await SubscriberService(store).add_external_email(Outlet.MAMITA, "A@x.com")
        assert not store.called("save")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["not-an-email", "", "a@"])
    async def test_add_invalid_rejected(self, make_store, address):
        store = make_store()

        with pytest.raises(SubscriberError, match="Invalid email"):
            await SubscriberService(store).add_external_email(Outlet.MAMITA, address)
        assert not store.called("save")

    @pytest.mark.asyncio
    async def test_remove(self, make_store):
        store = make_store(external={"mamita": ["a@x.com", "c@x.com"], "boutiqueCafe": []})

        updated = await SubscriberService(store).remove_external_email(Outlet.MAMITA, "a@x.com")

        assert updated == ["c@x.com"]
        assert store.documents[EXTERNAL_SUBSCRIBERS_DOC_ID]["mamita"] == ["c@x.com"]

    @pytest.mark.asyncio
    async def test_remove_absent_rejected(self, make_store):
        store = make_store(external={"mamita": ["a@x.com"]})

        with pytest.raises(SubscriberError, match="not in the external list"):
            await SubscriberService(store).remove_external_email(Outlet.MAMITA, "z@x.com")
