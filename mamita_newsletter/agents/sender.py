"""Email sending agent for the newsletter workflow."""

from mamita_newsletter.agents.dependencies import NewsletterDependencies
from mamita_newsletter.infrastructure.error_handling import DeliveryError, ErrorContext
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.state import NewsletterState, ProcessingStage

logger = get_logger(__name__)


async def send_to_subscribers(
    state: NewsletterState,
    dependencies: NewsletterDependencies,
) -> dict:
    """Submit the rendered email once, with every recipient in blind copy."""
    outlet = state["request"].outlet
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.DELIVERY)

    if dependencies.delivery is None:
        raise DeliveryError("No delivery agent configured for this run.")

    logger.info(
        "Starting email delivery",
        outlet=outlet.value,
        recipients=len(state["recipients"]),
        generation_id=metadata.generation_id,
    )

    async with ErrorContext(
        ProcessingStage.DELIVERY.value,
        "email delivery",
        wrap_as=DeliveryError,
        outlet=outlet.value,
        generation_id=metadata.generation_id,
    ):
        result = await dependencies.delivery.send_newsletter(
            state["email_content"],
            bcc=list(state["recipients"]),
        )

    metadata.mark_stage_end(ProcessingStage.DELIVERY)
    return {"delivery_result": result}
