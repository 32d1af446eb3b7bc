# chuk_ai_conversation_memory/references/formatting.py
"""Text renderings of content references for the conversation."""

from __future__ import annotations

from chuk_ai_conversation_memory.content.store import truncate_text
from chuk_ai_conversation_memory.models.enums import ContentType
from chuk_ai_conversation_memory.models.reference import ContentReference, DisplayOptions

ACTION_HINT = 'You can say "inscribe it" or "send that" to use this content in your next request.'
INVALID_PREVIEW_LENGTH = 100
REFERENCE_ID_DISPLAY_LENGTH = 12


def size_kb(size_bytes: int) -> int:
    """Whole kilobytes, rounded half up."""
    return (size_bytes + 512) // 1024


def short_reference_id(reference_id: str) -> str:
    return f"{reference_id[:REFERENCE_ID_DISPLAY_LENGTH]}..."


def format_inline(reference: ContentReference, max_preview_length: int) -> str:
    meta = reference.metadata
    preview = truncate_text(reference.preview, max_preview_length)
    return f"[{size_kb(meta.size_bytes)}KB {meta.content_type.value}] {preview}"


def format_compact(reference: ContentReference, show_size: bool) -> str:
    size_text = f" ({size_kb(reference.metadata.size_bytes)}KB)" if show_size else ""
    return f"Referenced content{size_text}: {reference.metadata.file_name or 'large content'}"


def format_card(reference: ContentReference, options: DisplayOptions, context_id: str) -> str:
    meta = reference.metadata
    lines = [
        "**Large Content Reference**",
        f"**Preview:** {truncate_text(reference.preview, options.max_preview_length)}",
    ]

    if options.show_size:
        size_line = f"**Size:** {size_kb(meta.size_bytes)}KB"
        if meta.content_type != ContentType.BINARY:
            size_line += f" ({meta.content_type.value})"
        lines.append(size_line)

    if options.show_metadata:
        if meta.file_name:
            lines.append(f"**File:** {meta.file_name}")
        lines.append(f"**Source:** {meta.source.value}")

    if options.include_actions:
        lines.extend(["", ACTION_HINT])

    lines.extend(
        [
            "",
            f"*Reference ID: {short_reference_id(reference.reference_id)}*",
            f"*Context: {context_id}*",
        ]
    )
    return "\n".join(lines)


def format_invalid(reference: ContentReference, include_actions: bool) -> str:
    lines = [
        "**Content Reference Expired**",
        "The referenced content is no longer available.",
        f"**Original:** {truncate_text(reference.preview, INVALID_PREVIEW_LENGTH)}",
    ]
    if include_actions:
        lines.extend(["", "Please request fresh content from the original source."])
    return "\n".join(lines)


def format_error(reference: ContentReference, error: BaseException) -> str:
    return "\n".join(
        [
            "**Reference Error**",
            f"Error accessing referenced content: {str(error) or type(error).__name__}",
            f"**Reference:** {truncate_text(reference.preview, INVALID_PREVIEW_LENGTH)}",
        ]
    )
