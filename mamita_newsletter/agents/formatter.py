"""Content formatting agent backed by the generative model."""

from mamita_newsletter.agents.dependencies import NewsletterDependencies
from mamita_newsletter.infrastructure.error_handling import ContentGenerationError, ErrorContext
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.state import NewsletterState, ProcessingStage

logger = get_logger(__name__)


async def format_menu_content(
    state: NewsletterState,
    dependencies: NewsletterDependencies,
) -> dict:
    """Turn the loaded menu into a subject line and visible sections."""
    outlet = state["request"].outlet
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.FORMATTING)

    async with ErrorContext(
        ProcessingStage.FORMATTING.value,
        "menu formatting",
        wrap_as=ContentGenerationError,
        outlet=outlet.value,
        generation_id=metadata.generation_id,
    ):
        content = await dependencies.formatter.format_menu(state["menu"], outlet)

    if content is None:
        raise ContentGenerationError("Failed to generate email content.")

    metadata.mark_stage_end(ProcessingStage.FORMATTING)
    logger.info("Menu content formatted", outlet=outlet.value, sections=content.section_titles)
    return {"generated_content": content}
