"""Email rendering agent for the newsletter workflow."""

from mamita_newsletter.agents.dependencies import NewsletterDependencies
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.email import DeliveryResult
from mamita_newsletter.models.state import NewsletterState, ProcessingStage

logger = get_logger(__name__)


async def render_menu_email(
    state: NewsletterState,
    dependencies: NewsletterDependencies,
) -> dict:
    """Render the HTML email from the formatted content.

    Preview runs stop here and report what would have been sent.
    """
    request = state["request"]
    metadata = state["generation_metadata"]
    metadata.mark_stage_start(ProcessingStage.RENDERING)

    email_content = dependencies.renderer.generate_menu_email(
        menu=state["menu"],
        content=state["generated_content"],
        outlet=request.outlet,
        from_email=dependencies.from_email,
    )

    metadata.mark_stage_end(ProcessingStage.RENDERING)
    update = {"email_content": email_content}

    if request.preview:
        count = len(state["recipients"])
        update["delivery_result"] = DeliveryResult(
            success=True,
            count=count,
            message=f"Preview generated for {count} subscriber(s). No email was sent.",
            subject=email_content.subject,
            body=email_content.html,
        )
        logger.info("Preview generated", outlet=request.outlet.value, recipients=count)

    return update
