# chuk_ai_conversation_memory/content/store.py
"""
Content store boundary and the in-memory implementation.

The engine only ever talks to a ``ContentStore``: a size policy
(``should_externalize``) plus async ``store`` / ``fetch`` / ``is_live``.
Stores are injected into the processor and the reference tracker; nothing
looks a store up globally.

``InMemoryContentStore`` is content-addressed (SHA-256 ids), expires
entries per content source, and trims itself when it reaches its reference
count or byte limits.

Design principles:
- Async boundary: store/fetch/is_live are the only suspension points
- Declines instead of failing: below-threshold content gives ``None``
- Pydantic-native: configuration, metadata and results are BaseModels
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, Field, PrivateAttr

from chuk_ai_conversation_memory.config import DEFAULT_REFERENCE_THRESHOLD_BYTES
from chuk_ai_conversation_memory.content.classifier import content_type_for_mime, detect_content_type
from chuk_ai_conversation_memory.content.reference_ids import generate_reference_id, is_valid_reference_id
from chuk_ai_conversation_memory.exceptions import ConfigurationError, StorageError
from chuk_ai_conversation_memory.models.enums import (
    ContentSource,
    ContentType,
    ReferenceState,
    ResolutionErrorType,
)
from chuk_ai_conversation_memory.models.reference import (
    ContentMetadata,
    ContentReference,
    ReferenceMetadata,
    ReferenceResolution,
    StoreMetadata,
)
from chuk_ai_conversation_memory.models.stats import CleanupResult, ContentStoreStats

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


# =============================================================================
# Protocol
# =============================================================================


@runtime_checkable
class ContentStore(Protocol):
    """Narrow interface the engine consumes. Storage itself is external."""

    def should_externalize(self, size_bytes: int) -> bool:
        """True when content of this size should be moved out of the conversation."""
        ...

    async def store(self, data: bytes, metadata: StoreMetadata) -> ContentReference | None:
        """Store bytes and return a reference, or None if the store declines."""
        ...

    async def fetch(self, reference_id: str) -> bytes | None:
        """Original bytes, or None when not found / no longer live."""
        ...

    async def is_live(self, reference_id: str) -> bool:
        """Whether the bytes behind a reference are still retrievable."""
        ...


# =============================================================================
# Configuration
# =============================================================================


class CleanupPolicy(BaseModel):
    """Retention for one content source. Higher priority number = cleaned first."""

    max_age_seconds: float = Field(default=3600.0)
    priority: int = Field(default=4)


def _default_cleanup_policies() -> dict[ContentSource, CleanupPolicy]:
    return {
        ContentSource.TOOL: CleanupPolicy(max_age_seconds=30 * 60, priority=1),
        ContentSource.USER_UPLOAD: CleanupPolicy(max_age_seconds=2 * 60 * 60, priority=2),
        ContentSource.AGENT_GENERATED: CleanupPolicy(max_age_seconds=60 * 60, priority=3),
        ContentSource.SYSTEM: CleanupPolicy(max_age_seconds=60 * 60, priority=4),
    }


class ContentStoreConfig(BaseModel):
    """Configuration for InMemoryContentStore."""

    size_threshold_bytes: int = Field(
        default=DEFAULT_REFERENCE_THRESHOLD_BYTES,
        description="Content strictly larger than this is externalized",
    )
    max_references: int = Field(default=100, description="Max stored entries")
    max_total_storage_bytes: int = Field(default=100 * 1024 * 1024)
    preview_length: int = Field(default=200, description="Max preview characters")
    cleanup_policies: dict[ContentSource, CleanupPolicy] = Field(default_factory=_default_cleanup_policies)

    def validate_limits(self) -> None:
        if self.size_threshold_bytes < 0:
            raise ConfigurationError(f"size_threshold_bytes must not be negative, got {self.size_threshold_bytes}")
        if self.max_references <= 0:
            raise ConfigurationError(f"max_references must be positive, got {self.max_references}")
        if self.max_total_storage_bytes <= 0:
            raise ConfigurationError(f"max_total_storage_bytes must be positive, got {self.max_total_storage_bytes}")
        if self.preview_length <= len(ELLIPSIS):
            raise ConfigurationError(f"preview_length must exceed {len(ELLIPSIS)}, got {self.preview_length}")

    def policy_for(self, source: ContentSource) -> CleanupPolicy:
        return self.cleanup_policies.get(source) or self.cleanup_policies.get(ContentSource.SYSTEM) or CleanupPolicy()


# =============================================================================
# Previews
# =============================================================================


def truncate_text(text: str, max_length: int) -> str:
    """Shorten to max_length characters, the last 3 being an ellipsis."""
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(ELLIPSIS))] + ELLIPSIS


def create_preview(content: bytes, content_type: ContentType, max_length: int = 200) -> str:
    """Short human-readable preview of stored content."""
    if content_type == ContentType.BINARY:
        return f"[Binary content: {len(content)} bytes]"

    # Decode a little more than needed; HTML stripping shrinks it
    preview = content[: max_length * 2].decode("utf-8", errors="ignore")

    if content_type == ContentType.HTML:
        preview = _WHITESPACE_RE.sub(" ", _HTML_TAG_RE.sub("", preview))
    elif content_type == ContentType.JSON:
        preview = _WHITESPACE_RE.sub(" ", preview)

    preview = truncate_text(preview.strip(), max_length)
    return preview or f"[Empty {content_type.value} content]"


def detect_stored_content_type(content: bytes, mime_type: str | None = None) -> ContentType:
    if mime_type:
        return content_type_for_mime(mime_type)
    try:
        head = content.decode("utf-8")[:1000]
    except UnicodeDecodeError:
        return ContentType.BINARY
    return detect_content_type(head)


# =============================================================================
# In-memory implementation
# =============================================================================


class StoredContent(BaseModel):
    """Bytes plus lifecycle state held by the in-memory store."""

    content: bytes
    metadata: ContentMetadata
    state: ReferenceState = ReferenceState.ACTIVE
    expires_at: datetime | None = None


class InMemoryContentStore(BaseModel):
    """
    Content-addressed, in-process content store.

    Not persistent - content is lost when the process exits.

    Usage:
        store = InMemoryContentStore(config=ContentStoreConfig(size_threshold_bytes=1024))
        ref = await store.store(data, StoreMetadata(source=ContentSource.TOOL))
        data = await store.fetch(ref.reference_id)
    """

    config: ContentStoreConfig = Field(default_factory=ContentStoreConfig)

    _entries: dict[str, StoredContent] = PrivateAttr(default_factory=dict)
    _recently_cleaned_up: int = PrivateAttr(default=0)
    _total_resolutions: int = PrivateAttr(default=0)
    _failed_resolutions: int = PrivateAttr(default=0)

    model_config = {"arbitrary_types_allowed": True}

    def model_post_init(self, __context: Any) -> None:
        self.config.validate_limits()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, reference_id: object) -> bool:
        return reference_id in self._entries

    # -------------------------------------------------------------------------
    # ContentStore protocol
    # -------------------------------------------------------------------------

    def should_externalize(self, size_bytes: int) -> bool:
        return size_bytes > self.config.size_threshold_bytes

    async def store(self, data: bytes, metadata: StoreMetadata) -> ContentReference | None:
        """Store content above the threshold; below it the store declines with None."""
        if not self.should_externalize(len(data)):
            return None
        return await self.store_content(data, metadata)

    async def fetch(self, reference_id: str) -> bytes | None:
        resolution = await self.resolve_reference(reference_id)
        return resolution.content if resolution.success else None

    async def is_live(self, reference_id: str) -> bool:
        return await self.has_reference(reference_id)

    # -------------------------------------------------------------------------
    # Storing
    # -------------------------------------------------------------------------

    async def store_content_if_large(
        self,
        content: bytes | str,
        metadata: StoreMetadata,
    ) -> ContentReference | None:
        data = content.encode("utf-8") if isinstance(content, str) else content
        return await self.store(data, metadata)

    async def store_content(self, data: bytes, metadata: StoreMetadata) -> ContentReference:
        """
        Store content unconditionally.

        Raises:
            StorageError: the content could not be stored
        """
        try:
            now = self._now()
            reference_id = generate_reference_id(data)
            content_type = metadata.content_type or detect_stored_content_type(data, metadata.mime_type)

            full_metadata = ContentMetadata(
                content_type=content_type,
                content_kind=metadata.content_kind,
                mime_type=metadata.mime_type,
                size_bytes=len(data),
                created_at=now,
                last_accessed_at=now,
                source=metadata.source,
                tool_qualified_name=metadata.tool_qualified_name,
                file_name=metadata.file_name,
                tags=list(metadata.tags),
                custom_metadata=dict(metadata.custom_metadata),
            )
            policy = self.config.policy_for(metadata.source)
            self._entries[reference_id] = StoredContent(
                content=bytes(data),
                metadata=full_metadata,
                expires_at=now + timedelta(seconds=policy.max_age_seconds),
            )
        except Exception as e:
            raise StorageError(f"Failed to store content: {e}") from e

        await self._enforce_limits(protect=reference_id)

        logger.debug("Stored %d bytes as reference %s", len(data), reference_id[:12])

        return ContentReference(
            reference_id=reference_id,
            preview=create_preview(data, content_type, self.config.preview_length),
            metadata=ReferenceMetadata(
                content_type=content_type,
                size_bytes=len(data),
                source=metadata.source,
                content_kind=metadata.content_kind,
                file_name=metadata.file_name,
                mime_type=metadata.mime_type,
            ),
            created_at=now,
        )

    # -------------------------------------------------------------------------
    # Resolving
    # -------------------------------------------------------------------------

    async def resolve_reference(self, reference_id: str) -> ReferenceResolution:
        """Resolve a reference to its bytes, updating access bookkeeping."""
        if not is_valid_reference_id(reference_id):
            self._failed_resolutions += 1
            return ReferenceResolution(
                success=False,
                error="Invalid reference ID format",
                error_type=ResolutionErrorType.NOT_FOUND,
                suggested_actions=["Check the reference ID format", "Ensure the reference ID is complete"],
            )

        entry = self._entries.get(reference_id)
        if entry is None:
            self._failed_resolutions += 1
            return ReferenceResolution(
                success=False,
                error="Reference not found",
                error_type=ResolutionErrorType.NOT_FOUND,
                suggested_actions=["Verify the reference ID", "Check if the content has expired", "Request fresh content"],
            )

        if self._is_expired(entry):
            entry.state = ReferenceState.EXPIRED

        if entry.state != ReferenceState.ACTIVE:
            self._failed_resolutions += 1
            expired = entry.state == ReferenceState.EXPIRED
            return ReferenceResolution(
                success=False,
                error="Reference has expired" if expired else f"Reference is {entry.state.value}",
                error_type=ResolutionErrorType.EXPIRED if expired else ResolutionErrorType.CORRUPTED,
                suggested_actions=["Request fresh content", "Use alternative content source"],
            )

        entry.metadata.last_accessed_at = self._now()
        entry.metadata.access_count += 1
        self._total_resolutions += 1

        return ReferenceResolution(
            success=True,
            content=entry.content,
            metadata=entry.metadata.model_copy(),
        )

    async def has_reference(self, reference_id: str) -> bool:
        """Liveness check; does not count as an access."""
        if not is_valid_reference_id(reference_id):
            return False
        entry = self._entries.get(reference_id)
        if entry is None:
            return False
        if self._is_expired(entry):
            entry.state = ReferenceState.EXPIRED
        return entry.state == ReferenceState.ACTIVE

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def mark_for_cleanup(self, reference_id: str) -> bool:
        """Flag an entry so the next cleanup pass removes it. It stops being live now."""
        entry = self._entries.get(reference_id)
        if entry is None:
            return False
        entry.state = ReferenceState.CLEANUP_PENDING
        return True

    async def cleanup_reference(self, reference_id: str) -> bool:
        """Remove one entry. Returns False if it was not stored."""
        if self._entries.pop(reference_id, None) is None:
            return False
        self._recently_cleaned_up += 1
        return True

    async def perform_cleanup(self, protect: str | None = None) -> CleanupResult:
        """
        Remove expired, over-age and cleanup-pending entries, then trim
        least-recently-accessed entries beyond the count and byte limits.
        """
        now = self._now()
        cleaned = 0

        doomed: list[str] = []
        for reference_id, entry in self._entries.items():
            if reference_id == protect:
                continue
            policy = self.config.policy_for(entry.metadata.source)
            too_old = now - entry.metadata.created_at > timedelta(seconds=policy.max_age_seconds)
            if self._is_expired(entry, now):
                entry.state = ReferenceState.EXPIRED
            if too_old or entry.state != ReferenceState.ACTIVE:
                doomed.append(reference_id)

        # Highest priority number goes first
        doomed.sort(key=lambda rid: self.config.policy_for(self._entries[rid].metadata.source).priority, reverse=True)

        for reference_id in doomed:
            if await self.cleanup_reference(reference_id):
                cleaned += 1

        by_access = sorted(
            (rid for rid in self._entries if rid != protect),
            key=lambda rid: self._entries[rid].metadata.last_accessed_at,
        )
        for reference_id in by_access:
            over_count = len(self._entries) > self.config.max_references
            over_bytes = self._total_bytes() > self.config.max_total_storage_bytes
            if not (over_count or over_bytes):
                break
            if await self.cleanup_reference(reference_id):
                cleaned += 1

        if cleaned:
            logger.debug("Content store cleanup removed %d references", cleaned)

        return CleanupResult(cleaned_up=cleaned)

    def get_stats(self) -> ContentStoreStats:
        active = len(self._entries)
        total_bytes = self._total_bytes()

        most_accessed: str | None = None
        max_access = 0
        for reference_id, entry in self._entries.items():
            if entry.metadata.access_count > max_access:
                max_access = entry.metadata.access_count
                most_accessed = reference_id

        return ContentStoreStats(
            active_references=active,
            total_storage_bytes=total_bytes,
            recently_cleaned_up=self._recently_cleaned_up,
            total_resolutions=self._total_resolutions,
            failed_resolutions=self._failed_resolutions,
            average_content_size=total_bytes / active if active else 0.0,
            most_accessed_reference_id=most_accessed,
            storage_utilization=total_bytes / self.config.max_total_storage_bytes * 100,
        )

    def update_config(self, **changes: Any) -> None:
        """Apply configuration changes; invalid limits raise ConfigurationError."""
        new_config = self.config.model_copy(update=changes)
        new_config.validate_limits()
        self.config = new_config
        logger.info("Content store config updated: %s", sorted(changes))

    def clear(self) -> None:
        self._entries.clear()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _is_expired(self, entry: StoredContent, now: datetime | None = None) -> bool:
        return entry.expires_at is not None and (now or self._now()) >= entry.expires_at

    def _total_bytes(self) -> int:
        return sum(len(entry.content) for entry in self._entries.values())

    async def _enforce_limits(self, protect: str) -> None:
        if len(self._entries) >= self.config.max_references or self._total_bytes() >= self.config.max_total_storage_bytes:
            await self.perform_cleanup(protect=protect)
