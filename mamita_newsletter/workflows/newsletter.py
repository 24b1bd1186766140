"""Newsletter workflow using LangGraph."""

from dataclasses import replace
from datetime import datetime, timezone

from langgraph.graph import END, START, StateGraph

from mamita_newsletter.agents import (
    NewsletterDependencies,
    format_menu_content,
    load_menu_and_recipients,
    render_menu_email,
    send_to_subscribers,
)
from mamita_newsletter.infrastructure.config import SMTPSettings
from mamita_newsletter.infrastructure.logging import get_logger
from mamita_newsletter.models.email import DeliveryResult
from mamita_newsletter.models.menu import Outlet
from mamita_newsletter.models.state import (
    NewsletterRequest,
    NewsletterState,
    ProcessingStage,
    create_initial_state,
)
from mamita_newsletter.services.notification import SMTPDeliveryService

logger = get_logger(__name__)


def create_newsletter_workflow(dependencies: NewsletterDependencies) -> StateGraph:
    """Create the newsletter workflow.

    load_content -> format_content -> render_email -> send_newsletter, with
    an early exit when there is nobody to send to and after rendering for
    previews.
    """
    workflow = StateGraph(NewsletterState)

    async def load_content(state: NewsletterState) -> dict:
        return await load_menu_and_recipients(state, dependencies)

    async def format_content(state: NewsletterState) -> dict:
        return await format_menu_content(state, dependencies)

    async def render_email(state: NewsletterState) -> dict:
        return await render_menu_email(state, dependencies)

    async def send_newsletter(state: NewsletterState) -> dict:
        return await send_to_subscribers(state, dependencies)

    workflow.add_node("load_content", load_content)
    workflow.add_node("format_content", format_content)
    workflow.add_node("render_email", render_email)
    workflow.add_node("send_newsletter", send_newsletter)

    workflow.add_edge(START, "load_content")
    workflow.add_conditional_edges(
        "load_content",
        _route_after_loading,
        {
            "format": "format_content",
            "skip": END,
        }
    )
    workflow.add_edge("format_content", "render_email")
    workflow.add_conditional_edges(
        "render_email",
        _route_after_rendering,
        {
            "send": "send_newsletter",
            "preview": END,
        }
    )
    workflow.add_edge("send_newsletter", END)

    return workflow


def _route_after_loading(state: NewsletterState) -> str:
    """Stop when loading already produced the result (empty recipient set)."""
    if state["delivery_result"] is not None:
        return "skip"
    return "format"


def _route_after_rendering(state: NewsletterState) -> str:
    if state["request"].preview:
        return "preview"
    return "send"


async def run_newsletter_workflow(
    request: NewsletterRequest,
    dependencies: NewsletterDependencies,
) -> DeliveryResult:
    """Run the workflow once and return its result.

    Errors raised by any stage propagate unchanged to the caller.
    """
    app = create_newsletter_workflow(dependencies).compile()
    initial_state = create_initial_state(request)
    metadata = initial_state["generation_metadata"]

    logger.info(
        "Starting newsletter run",
        outlet=request.outlet.value,
        preview=request.preview,
        generation_id=metadata.generation_id,
    )

    try:
        final_state = await app.ainvoke(initial_state)
    except Exception:
        metadata.end_time = datetime.now(timezone.utc)
        metadata.current_stage = ProcessingStage.FAILED
        logger.error(
            "Newsletter run failed",
            outlet=request.outlet.value,
            generation_id=metadata.generation_id,
            processing_time=metadata.total_processing_time,
        )
        raise

    metadata.end_time = datetime.now(timezone.utc)
    metadata.current_stage = ProcessingStage.COMPLETED
    result = final_state["delivery_result"]

    logger.info(
        "Newsletter run completed",
        outlet=request.outlet.value,
        count=result.count,
        processing_time=metadata.total_processing_time,
    )
    return result


async def send_newsletter(
    outlet: Outlet,
    smtp_settings: SMTPSettings,
    dependencies: NewsletterDependencies,
) -> DeliveryResult:
    """Send an outlet's daily menu to all of its subscribers.

    The SMTP settings are checked before anything is read, so a
    misconfigured transport never leaves a half-done run.

    Raises:
        ConfigurationError: If a transport setting is missing.
        SettingsNotFoundError, MenuNotFoundError: If the menu is missing.
        ContentGenerationError: If the model returns nothing usable.
        DeliveryError: If the SMTP submission fails.
    """
    settings = smtp_settings.require_complete()

    dependencies = replace(
        dependencies,
        delivery=dependencies.delivery or SMTPDeliveryService(settings),
        from_email=settings.from_email,
    )
    return await run_newsletter_workflow(NewsletterRequest(outlet=outlet), dependencies)


async def preview_newsletter(
    outlet: Outlet,
    dependencies: NewsletterDependencies,
) -> DeliveryResult:
    """Generate and render the email without delivering it."""
    return await run_newsletter_workflow(
        NewsletterRequest(outlet=outlet, preview=True),
        replace(dependencies, delivery=None),
    )
