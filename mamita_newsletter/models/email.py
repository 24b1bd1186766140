"""Email models for the daily menu newsletter."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class GeneratedSection(BaseModel):
    """A menu section as returned by the formatter."""

    title: str
    lines: List[str] = Field(default_factory=list)


class GeneratedContent(BaseModel):
    """Output schema requested from the generative model.

    Lives for a single pipeline run and is never persisted.
    """

    subject: str
    sections: List[GeneratedSection] = Field(default_factory=list)

    @field_validator("subject")
    @classmethod
    def collapse_subject_whitespace(cls, v):
        """Mail headers are single-line; line breaks become spaces."""
        return " ".join(v.split())

    @property
    def section_titles(self) -> List[str]:
        return [section.title for section in self.sections]


@dataclass
class EmailContent:
    """Complete email content ready for delivery."""

    html: str
    text: str
    subject: str
    from_email: str = ""
    from_name: str = ""
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def estimated_size_kb(self) -> float:
        """Estimate email size in KB."""
        html_size = len(self.html.encode('utf-8'))
        text_size = len(self.text.encode('utf-8'))
        return (html_size + text_size) / 1024

    @property
    def is_valid(self) -> bool:
        """Check if email content is valid for sending."""
        return bool(
            self.html and
            self.subject and
            len(self.subject) <= 998  # RFC 5322 limit
        )


@dataclass
class DeliveryResult:
    """Outcome returned to the admin caller. Never persisted."""

    success: bool
    count: int
    message: str
    subject: Optional[str] = None
    body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting the optional preview fields when unset."""
        data: Dict[str, Any] = {
            "success": self.success,
            "count": self.count,
            "message": self.message,
        }
        if self.subject is not None:
            data["subject"] = self.subject
        if self.body is not None:
            data["body"] = self.body
        return data


@dataclass
class SubscriberSummary:
    """Subscriber counts shown on the admin newsletter page."""

    registered: List[str] = field(default_factory=list)
    external: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.registered) + len(self.external)
