"""State models for the LangGraph newsletter workflow."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, TypedDict

from mamita_newsletter.models.email import DeliveryResult, EmailContent, GeneratedContent
from mamita_newsletter.models.menu import MenuRecord, Outlet


class ProcessingStage(str, Enum):
    """Processing stages for the newsletter workflow."""

    VALIDATION = "validation"
    LOADING = "loading"
    FORMATTING = "formatting"
    RENDERING = "rendering"
    DELIVERY = "delivery"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class NewsletterRequest:
    """Request parameters for one newsletter run."""

    outlet: Outlet
    preview: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class GenerationMetadata:
    """Metadata about one run of the workflow."""

    generation_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    current_stage: ProcessingStage = ProcessingStage.VALIDATION
    processing_time: Dict[ProcessingStage, float] = field(default_factory=dict)

    @property
    def total_processing_time(self) -> float:
        """Calculate total processing time in seconds."""
        end = self.end_time or datetime.now(timezone.utc)
        return (end - self.start_time).total_seconds()

    def mark_stage_start(self, stage: ProcessingStage) -> None:
        """Mark the start of a processing stage."""
        self.current_stage = stage
        self.processing_time[stage] = datetime.now(timezone.utc).timestamp()

    def mark_stage_end(self, stage: ProcessingStage) -> None:
        """Mark the end of a processing stage."""
        if stage in self.processing_time:
            start_time = self.processing_time[stage]
            self.processing_time[stage] = datetime.now(timezone.utc).timestamp() - start_time


class NewsletterState(TypedDict):
    """State flowing through the newsletter workflow nodes."""

    request: NewsletterRequest
    menu: Optional[MenuRecord]
    recipients: List[str]
    generated_content: Optional[GeneratedContent]
    email_content: Optional[EmailContent]
    delivery_result: Optional[DeliveryResult]
    generation_metadata: GenerationMetadata


def create_initial_state(request: NewsletterRequest) -> NewsletterState:
    """Create initial state for the newsletter workflow."""
    return NewsletterState(
        request=request,
        menu=None,
        recipients=[],
        generated_content=None,
        email_content=None,
        delivery_result=None,
        generation_metadata=GenerationMetadata(),
    )
