"""Content reference models: what the store hands out and what the tracker keeps."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from chuk_ai_conversation_memory.base_models import DictCompatModel
from chuk_ai_conversation_memory.models.enums import (
    REFERENCE_FORMAT,
    ContentKind,
    ContentSource,
    ContentType,
    DisplayFormat,
    ReferenceState,
    ResolutionErrorType,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Store-side models
# =============================================================================


class StoreMetadata(BaseModel):
    """Metadata a caller passes to ``ContentStore.store``."""

    content_type: ContentType | None = Field(default=None, description="Detected when omitted")
    content_kind: ContentKind | None = Field(default=None)
    mime_type: str | None = Field(default=None)
    source: ContentSource = Field(default=ContentSource.SYSTEM)
    tool_qualified_name: str | None = Field(default=None, description="'<source>::<tool>'")
    file_name: str | None = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    custom_metadata: dict[str, Any] = Field(default_factory=dict)


class ContentMetadata(BaseModel):
    """Full metadata kept next to stored bytes."""

    content_type: ContentType
    content_kind: ContentKind | None = None
    mime_type: str | None = None
    size_bytes: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)
    last_accessed_at: datetime = Field(default_factory=_utcnow)
    source: ContentSource = ContentSource.SYSTEM
    tool_qualified_name: str | None = None
    file_name: str | None = None
    access_count: int = Field(default=0)
    tags: list[str] = Field(default_factory=list)
    custom_metadata: dict[str, Any] = Field(default_factory=dict)


class ReferenceMetadata(BaseModel):
    """Essential metadata carried on a reference (kept small for context)."""

    content_type: ContentType
    size_bytes: int = Field(default=0, ge=0)
    source: ContentSource = ContentSource.SYSTEM
    content_kind: ContentKind | None = None
    file_name: str | None = None
    mime_type: str | None = None


class ContentReference(BaseModel):
    """Stable identifier plus preview standing in for externalized bytes."""

    reference_id: str
    state: ReferenceState = Field(default=ReferenceState.ACTIVE)
    preview: str = Field(default="", description="Short human-readable preview")
    metadata: ReferenceMetadata
    created_at: datetime = Field(default_factory=_utcnow)
    format: Literal["ref://{id}"] = REFERENCE_FORMAT

    @property
    def uri(self) -> str:
        return f"ref://{self.reference_id}"


class ReferenceResolution(DictCompatModel):
    """Result of resolving a reference back into its bytes."""

    success: bool
    content: bytes | None = None
    metadata: ContentMetadata | None = None
    error: str | None = None
    error_type: ResolutionErrorType | None = None
    suggested_actions: list[str] = Field(default_factory=list)


# =============================================================================
# Tracker-side models
# =============================================================================


class ReferenceContext(BaseModel):
    """Display bookkeeping for one reference surfaced in the conversation."""

    reference: ContentReference
    displayed_at: datetime = Field(default_factory=_utcnow)
    last_accessed_at: datetime = Field(default_factory=_utcnow)
    context_id: str
    conversation_turn: int = Field(default=0)


class DisplayOptions(BaseModel):
    """How a reference should be rendered."""

    max_preview_length: int = Field(default=150, ge=4)
    show_metadata: bool = Field(default=True)
    show_size: bool = Field(default=True)
    include_actions: bool = Field(default=True)
    format: DisplayFormat = Field(default=DisplayFormat.CARD)


class DisplayResult(DictCompatModel):
    """Rendered reference plus validity information."""

    display_text: str
    has_valid_reference: bool
    context_id: str | None = None
    suggested_actions: list[str] | None = None


class ValidationResult(DictCompatModel):
    """Outcome of a liveness sweep over tracked references."""

    valid: int = 0
    invalid: int = 0
    removed_ids: list[str] = Field(default_factory=list)
