"""Content loading agent: menu record and recipient set."""

from mamita_newsletter.agents.dependencies import NewsletterDependencies
from mamita_newsletter.infrastructure.error_handling import ErrorContext
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.email import DeliveryResult
from mamita_newsletter.models.state import NewsletterState, ProcessingStage

logger = get_logger(__name__)

NO_SUBSCRIBERS_MESSAGE = "No subscribers for this list. Nothing was sent."


async def load_menu_and_recipients(
    state: NewsletterState,
    dependencies: NewsletterDependencies,
) -> dict:
    """Load the outlet's menu, then build its recipient set.

    The menu is resolved first so a missing document or menu fails before
    any subscriber lookup. An empty recipient set ends a send run with a
    successful zero-count result.
    """
    outlet = state["request"].outlet
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.LOADING)

    async with ErrorContext(
        ProcessingStage.LOADING.value,
        "content loading",
        outlet=outlet.value,
        generation_id=metadata.generation_id,
    ):
        menu = await dependencies.menus.get_menu(outlet)
        recipients = await dependencies.subscribers.collect_recipients(outlet)

    metadata.mark_stage_end(ProcessingStage.LOADING)
    update = {"menu": menu, "recipients": recipients}

    if not recipients and not state["request"].preview:
        logger.info("No subscribers, skipping newsletter", outlet=outlet.value)
        update["delivery_result"] = DeliveryResult(
            success=True,
            count=0,
            message=NO_SUBSCRIBERS_MESSAGE,
        )

    return update
