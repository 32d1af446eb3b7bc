# chuk_ai_conversation_memory/references/context_tracker.py
"""
Reference Context Tracker.

Remembers every content reference surfaced in a conversation so a later
turn can say "inscribe it" / "send that token" and get the most recent
large content back.

The tracker mirrors liveness only: it asks the content store whether a
reference is still live and forgets it if not, but it never deletes the
stored bytes.

"Most recent" is the latest ``displayed_at``; ties are broken by the
highest conversation turn, so the outcome never depends on dict order.
"""

from __future__ import annotations

import itertools
import logging
import time
from datetime import UTC, datetime, timedelta

from chuk_ai_conversation_memory.content.store import ContentStore
from chuk_ai_conversation_memory.exceptions import StaleReferenceError
from chuk_ai_conversation_memory.models.enums import DisplayFormat
from chuk_ai_conversation_memory.models.reference import (
    ContentReference,
    DisplayOptions,
    DisplayResult,
    ReferenceContext,
    ValidationResult,
)
from chuk_ai_conversation_memory.models.stats import ContextStats
from chuk_ai_conversation_memory.references.formatting import (
    format_card,
    format_compact,
    format_error,
    format_inline,
    format_invalid,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_REFERENCE_AGE_MS = 30 * 60 * 1000

EXPIRED_ACTIONS = ["Request fresh content", "Use alternative content source"]
ERROR_ACTIONS = ["Check reference validity", "Try again", "Contact administrator"]

# Shared by every tracker so context ids never repeat within the process
_context_sequence = itertools.count(1)


def _next_context_id(reference_id: str) -> str:
    return f"ctx_{int(time.time() * 1000)}_{next(_context_sequence)}_{reference_id[:8]}"


class ReferenceContextTracker:
    """
    Per-conversation registry of displayed content references.

    Usage:
        tracker = ReferenceContextTracker(store)
        result = await tracker.display_reference(ref)
        ...
        latest = tracker.get_most_recent_reference()
    """

    def __init__(self, store: ContentStore):
        self._store = store
        self._contexts: dict[str, ReferenceContext] = {}
        self._conversation_turn = 0

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, reference_id: object) -> bool:
        return reference_id in self._contexts

    @property
    def conversation_turn(self) -> int:
        return self._conversation_turn

    def get_context(self, reference_id: str) -> ReferenceContext | None:
        return self._contexts.get(reference_id)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def add_reference(self, reference: ContentReference) -> str:
        """Track a reference; re-adding the same id replaces its context."""
        self._conversation_turn += 1
        context_id = _next_context_id(reference.reference_id)
        now = datetime.now(UTC)

        self._contexts[reference.reference_id] = ReferenceContext(
            reference=reference,
            displayed_at=now,
            last_accessed_at=now,
            context_id=context_id,
            conversation_turn=self._conversation_turn,
        )

        logger.debug("Added reference %s to conversation context (%s)", reference.reference_id[:12], context_id)
        return context_id

    async def display_reference(
        self,
        reference: ContentReference,
        options: DisplayOptions | None = None,
    ) -> DisplayResult:
        """
        Render a reference for the conversation.

        Dead references are not registered; the result explains what to do
        instead. Store errors during the liveness check are reported the
        same way rather than raised.
        """
        options = options or DisplayOptions()

        try:
            live = await self._store.is_live(reference.reference_id)
        except Exception as e:
            logger.error("Error checking reference %s", reference.reference_id[:12], exc_info=True)
            return DisplayResult(
                display_text=format_error(reference, e),
                has_valid_reference=False,
                suggested_actions=list(ERROR_ACTIONS),
            )

        if not live:
            logger.warning("Reference %s is no longer available", reference.reference_id[:12])
            return DisplayResult(
                display_text=format_invalid(reference, options.include_actions),
                has_valid_reference=False,
                suggested_actions=list(EXPIRED_ACTIONS),
            )

        context_id = self.add_reference(reference)

        if options.format == DisplayFormat.INLINE:
            display_text = format_inline(reference, options.max_preview_length)
        elif options.format == DisplayFormat.COMPACT:
            display_text = format_compact(reference, options.show_size)
        else:
            display_text = format_card(reference, options, context_id)

        return DisplayResult(display_text=display_text, has_valid_reference=True, context_id=context_id)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def get_most_recent_reference(self) -> ContentReference | None:
        """Latest displayed reference (ties: highest turn); marks it accessed."""
        if not self._contexts:
            return None

        latest = max(self._contexts.values(), key=lambda c: (c.displayed_at, c.conversation_turn))
        latest.last_accessed_at = datetime.now(UTC)
        return latest.reference

    async def require_most_recent_reference(self) -> ContentReference:
        """
        Most recent reference, checked for liveness.

        Raises:
            StaleReferenceError: nothing tracked, or the reference expired
                (it is evicted from the tracker)
        """
        reference = self.get_most_recent_reference()
        if reference is None:
            raise StaleReferenceError("", "No content references in this conversation", list(EXPIRED_ACTIONS))

        if not await self._store.is_live(reference.reference_id):
            self._contexts.pop(reference.reference_id, None)
            raise StaleReferenceError(reference.reference_id, suggested_actions=list(EXPIRED_ACTIONS))

        return reference

    def get_reference_by_context_id(self, context_id: str) -> ContentReference | None:
        for context in self._contexts.values():
            if context.context_id == context_id:
                context.last_accessed_at = datetime.now(UTC)
                return context.reference
        return None

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    async def validate_references(self) -> ValidationResult:
        """Ask the store about every tracked reference; forget the dead ones."""
        result = ValidationResult()

        for reference_id in list(self._contexts):
            try:
                live = await self._store.is_live(reference_id)
            except Exception as e:
                logger.warning("Error validating reference %s: %s", reference_id[:12], e)
                live = False

            if live:
                result.valid += 1
                continue

            result.invalid += 1
            result.removed_ids.append(reference_id)
            self._contexts.pop(reference_id, None)
            logger.debug("Removed invalid reference from context: %s", reference_id[:12])

        return result

    def cleanup_old_references(self, max_age_ms: int = DEFAULT_MAX_REFERENCE_AGE_MS) -> int:
        """Forget references not accessed within max_age_ms. Does not query the store."""
        cutoff = datetime.now(UTC) - timedelta(milliseconds=max_age_ms)
        stale = [rid for rid, ctx in self._contexts.items() if ctx.last_accessed_at < cutoff]

        for reference_id in stale:
            del self._contexts[reference_id]

        if stale:
            logger.debug("Cleaned up %d old references from context", len(stale))
        return len(stale)

    def get_context_stats(self) -> ContextStats:
        if not self._contexts:
            return ContextStats(conversation_turn=self._conversation_turn)

        now = datetime.now(UTC)
        shown = [ctx.displayed_at for ctx in self._contexts.values()]
        return ContextStats(
            active_references=len(self._contexts),
            conversation_turn=self._conversation_turn,
            oldest_reference_age_ms=int((now - min(shown)).total_seconds() * 1000),
            most_recent_reference_age_ms=int((now - max(shown)).total_seconds() * 1000),
        )

    def clear(self) -> None:
        self._contexts.clear()
        self._conversation_turn = 0
        logger.debug("Cleared all references from context")
