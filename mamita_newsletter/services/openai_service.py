"""OpenAI service that turns a stored menu into newsletter-ready content."""

import json
import re
from typing import List, Optional, Protocol

from openai import AsyncOpenAI
from pydantic import ValidationError

from mamita_newsletter.infrastructure.config import ApplicationConfig
from mamita_newsletter.infrastructure.error_handling import ContentGenerationError, handle_service_errors
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.email import GeneratedContent, GeneratedSection
from mamita_newsletter.models.menu import MenuRecord, Outlet

logger = get_logger(__name__)

# "8.00", "8,00", "€8.00", "5.00€" and "5.00 €" all become "8€00" / "5€00";
# thousands separators are dropped, so "1.234,56" becomes "1234€56"
PRICE_PATTERN = re.compile(
    r"(?<![\d.,])(?:€\s?)?(\d{1,3}(?:[.\u00a0\u202f]\d{3})+|\d+)[.,](\d{2})(?!\d)(?:\s?€)?"
)
THOUSANDS_SEPARATORS = re.compile(r"[.\u00a0\u202f]")


class MenuFormatter(Protocol):
    """Anything able to turn a menu into a subject line and sections."""

    async def format_menu(self, menu: MenuRecord, outlet: Outlet) -> GeneratedContent:
        ...


def normalize_price(line: str) -> str:
    """Rewrite price tokens as the "X€00" display text."""
    return PRICE_PATTERN.sub(
        lambda match: f"{THOUSANDS_SEPARATORS.sub('', match.group(1))}€{match.group(2)}",
        line,
    )


def menu_payload(menu: MenuRecord) -> dict:
    """The menu as sent to the model.

    Hidden sections and footer lines carrying the closing wish are left out;
    the wish is added back verbatim by the renderer.
    """
    payload = menu.to_document()
    payload["sections"] = [section.model_dump(by_alias=True) for section in menu.visible_sections]
    payload["footerLines"] = menu.footer_without_closing()
    return payload


def build_prompt(menu: MenuRecord, outlet: Outlet) -> str:
    name = outlet.display_name
    return f"""
You are a helpful assistant for a French restaurant.
Your task is to process the daily menu data provided in JSON format and output a subject line and the menu sections.
The menu is for: {menu.date}.

Instructions:
1. Create a compelling subject line. It must include the name of the restaurant "{name}", a hyphen, and then the date. Example: "{name} - Menu du {{jour}}".
2. For each section in the input data that is marked as `isVisible: true`, create a corresponding entry in the output, keeping its title.
3. List the items (the 'lines' array) for each visible section.
4. VERY IMPORTANT: For any line that contains a number that looks like a price (e.g., "8.00" or "8,00"), reformat it as text in the format "X€00" (e.g., "8€00"). Treat the price as text.

Return only a JSON object with this structure:
{{"subject": "...", "sections": [{{"title": "...", "lines": ["..."]}}]}}

Here is the data for the menu:
{json.dumps(menu_payload(menu), ensure_ascii=False, indent=2)}
"""


def parse_generated_content(raw: Optional[str]) -> GeneratedContent:
    """Validate the model reply against the requested schema.

    Raises:
        ContentGenerationError: If the reply is empty or does not match.
    """
    if not raw or not raw.strip():
        raise ContentGenerationError("Failed to generate email content: empty response.")

    text = raw
    if "```json" in text:
        json_start = text.find("```json") + 7
        json_end = text.find("```", json_start)
        text = text[json_start:json_end].strip()

    try:
        content = GeneratedContent.model_validate_json(text)
    except ValidationError as e:
        raise ContentGenerationError(f"Failed to generate email content: {e.error_count()} schema error(s).")

    if not content.subject.strip():
        raise ContentGenerationError("Failed to generate email content: missing subject.")
    return content


def enforce_menu_structure(content: GeneratedContent, menu: MenuRecord) -> GeneratedContent:
    """Keep only sections that are visible in the source menu, once each.

    Price tokens the model left untouched are normalized here so the
    display form does not depend on the model following the prompt.
    """
    visible = {section.title.strip().casefold() for section in menu.visible_sections}
    seen = set()
    sections: List[GeneratedSection] = []
    for section in content.sections:
        key = section.title.strip().casefold()
        if key not in visible:
            logger.warning("Dropping generated section absent from menu", title=section.title)
            continue
        if key in seen:
            logger.warning("Dropping repeated generated section", title=section.title)
            continue
        seen.add(key)
        sections.append(GeneratedSection(
            title=section.title,
            lines=[normalize_price(line) for line in section.lines],
        ))
    return GeneratedContent(subject=content.subject.strip(), sections=sections)


class OpenAIMenuFormatter:
    """Menu formatter backed by OpenAI chat completions in JSON mode."""

    def __init__(self, config: Optional[ApplicationConfig] = None, client: Optional[AsyncOpenAI] = None):
        self.config = config or ApplicationConfig()
        if client is None and self.config.openai_api_key:
            client = AsyncOpenAI(api_key=self.config.openai_api_key)
        self.client = client
        self.available = self.client is not None

    @handle_service_errors("OpenAI Formatter")
    async def format_menu(self, menu: MenuRecord, outlet: Outlet) -> GeneratedContent:
        """Ask the model for a subject line and the visible sections.

        Raises:
            ContentGenerationError: If the service is unavailable or returns
                no usable structured output. No retry is attempted.
        """
        if not self.available:
            raise ContentGenerationError("OpenAI is not configured: set NEWSLETTER_OPENAI_API_KEY.")

        response = await self.client.chat.completions.create(
            model=self.config.openai_model,
            messages=[
                {"role": "system", "content": "You format daily restaurant menus for an email newsletter."},
                {"role": "user", "content": build_prompt(menu, outlet)},
            ],
            response_format={"type": "json_object"},
            max_tokens=self.config.openai_max_tokens,
            temperature=self.config.openai_temperature,
        )

        raw = response.choices[0].message.content if response.choices else None
        content = enforce_menu_structure(parse_generated_content(raw), menu)

        logger.info(
            "Menu formatted",
            outlet=outlet.value,
            subject=content.subject,
            sections=content.section_titles,
            tokens_used=response.usage.total_tokens if response.usage else 0,
        )
        return content
