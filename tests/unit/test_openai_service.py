"""Unit tests for the OpenAI menu formatter."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from mamita_newsletter.infrastructure.config import ApplicationConfig
from mamita_newsletter.infrastructure.error_handling import ContentGenerationError
from mamita_newsletter.models.email import GeneratedContent, GeneratedSection
from mamita_newsletter.models.menu import MenuRecord, Outlet
from mamita_newsletter.services.openai_service import (
    OpenAIMenuFormatter,
    build_prompt,
    enforce_menu_structure,
    menu_payload,
    normalize_price,
    parse_generated_content,
)


def _completion(content):
    """Build an object shaped like a chat completion response."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    response.usage.total_tokens = 42
    return response


def _mock_client(content):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_completion(content))
    return client


class TestNormalizePrice:

    @pytest.mark.parametrize("line, expected", [
        ("Plat du jour 8.00", "Plat du jour 8€00"),
        ("Plat du jour 8,00", "Plat du jour 8€00"),
        ("Soupe 5.00€", "Soupe 5€00"),
        ("Soupe 5.00 €", "Soupe 5€00"),
        ("Menu complet 12,50 et café 1.20", "Menu complet 12€50 et café 1€20"),
        ("Plat du jour €8.00", "Plat du jour 8€00"),
        ("Plat du jour € 8,00", "Plat du jour 8€00"),
        ("Traiteur 1.234,56", "Traiteur 1234€56"),
        ("Traiteur 1\u00a0234,56 €", "Traiteur 1234€56"),
    ])
    def test_price_tokens_rewritten(self, line, expected):
        assert normalize_price(line) == expected

    def test_idempotent(self):
        once = normalize_price("Plat du jour 8.00")
        assert normalize_price(once) == once

    def test_non_price_numbers_untouched(self):
        assert normalize_price("Pour 2 personnes, 1.500 kg") == "Pour 2 personnes, 1.500 kg"


class TestParseGeneratedContent:

    def test_plain_json(self):
        content = parse_generated_content(json.dumps({
            "subject": "Le Mamita - Lundi",
            "sections": [{"title": "Entrée", "lines": ["Soupe"]}],
        }))
        assert content.subject == "Le Mamita - Lundi"
        assert content.section_titles == ["Entrée"]

    def test_fenced_json(self):
        raw = 'Voici:\n```json\n{"subject": "S", "sections": []}\n```'
        assert parse_generated_content(raw).subject == "S"

    @pytest.mark.parametrize("raw", [None, "", "   ", "not json", '{"sections": []}', '{"subject": "  "}'])
    def test_unusable_output_raises(self, raw):
        with pytest.raises(ContentGenerationError):
            parse_generated_content(raw)

    def test_line_breaks_in_subject_collapsed(self):
        content = parse_generated_content(json.dumps({
            "subject": "Le Mamita -\nLundi\r\n 4 Août",
            "sections": [],
        }))
        assert content.subject == "Le Mamita - Lundi 4 Août"


class TestEnforceMenuStructure:

    def test_hidden_and_invented_sections_dropped(self, sample_menu):
        generated = GeneratedContent(subject="S", sections=[
            GeneratedSection(title="Entrée", lines=["Soupe 5.00€"]),
            GeneratedSection(title="Dessert", lines=["Tarte 3,50"]),
            GeneratedSection(title="Fromage", lines=["Comté"]),
        ])

        result = enforce_menu_structure(generated, sample_menu)

        assert result.section_titles == ["Entrée"]
        assert result.sections[0].lines == ["Soupe 5€00"]

    def test_repeated_section_kept_once(self, sample_menu):
        generated = GeneratedContent(subject="S", sections=[
            GeneratedSection(title="Entrée", lines=["Soupe 5.00€"]),
            GeneratedSection(title=" ENTRÉE ", lines=["Salade 4.00"]),
        ])

        result = enforce_menu_structure(generated, sample_menu)

        assert result.section_titles == ["Entrée"]
        assert result.sections[0].lines == ["Soupe 5€00"]


class TestMenuPayload:

    def test_payload_excludes_hidden_sections_and_closing_wish(self, sample_menu):
        payload = menu_payload(sample_menu)

        assert [s["title"] for s in payload["sections"]] == ["Entrée"]
        assert all("appétit" not in line.lower() for line in payload["footerLines"])
        assert "Sur place ou à emporter" in payload["footerLines"]

    def test_source_menu_not_modified(self, sample_menu):
        menu_payload(sample_menu)
        assert len(sample_menu.footer_lines) == 3
        assert len(sample_menu.sections) == 2

    def test_prompt_names_outlet_and_date(self, sample_menu):
        prompt = build_prompt(sample_menu, Outlet.BOUTIQUE_CAFE)
        assert '"La Boutique Café"' in prompt
        assert sample_menu.date in prompt
        assert "X€00" in prompt


class TestOpenAIMenuFormatter:

    @pytest.fixture
    def config(self):
        return ApplicationConfig(_env_file=None, openai_api_key="sk-test", openai_model="gpt-4o-mini")

    @pytest.mark.asyncio
    async def test_format_menu_returns_visible_sections_with_prices(self, config):
        menu = MenuRecord.model_validate({
            "id": "menu_1",
            "date": "Lundi",
            "sections": [
                {"title": "Entrée", "lines": ["Plat du jour 8.00"], "isVisible": True},
                {"title": "Dessert", "lines": ["Flan 2.50"], "isVisible": False},
            ],
            "footerLines": [],
        })
        # The model ignores both the price rule and the visibility flag
        client = _mock_client(json.dumps({
            "subject": "Le Mamita - Lundi",
            "sections": [
                {"title": "Entrée", "lines": ["Plat du jour 8.00"]},
                {"title": "Dessert", "lines": ["Flan 2.50"]},
            ],
        }))
        formatter = OpenAIMenuFormatter(config, client=client)

        content = await formatter.format_menu(menu, Outlet.MAMITA)

        assert content.section_titles == ["Entrée"]
        line = content.sections[0].lines[0]
        assert "8€00" in line
        assert "8.00" not in line and "8,00" not in line

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self, config, sample_menu):
        formatter = OpenAIMenuFormatter(config, client=_mock_client(None))

        with pytest.raises(ContentGenerationError):
            await formatter.format_menu(sample_menu, Outlet.MAMITA)

    @pytest.mark.asyncio
    async def test_unconfigured_formatter_raises(self, sample_menu):
        formatter = OpenAIMenuFormatter(ApplicationConfig(_env_file=None, openai_api_key=""))

        assert formatter.available is False
        with pytest.raises(ContentGenerationError, match="not configured"):
            await formatter.format_menu(sample_menu, Outlet.MAMITA)
