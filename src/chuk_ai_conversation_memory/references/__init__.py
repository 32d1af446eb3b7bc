"""
Conversation-level tracking and rendering of content references.
"""

from .context_tracker import DEFAULT_MAX_REFERENCE_AGE_MS, ReferenceContextTracker
from .formatting import size_kb
from .response_renderer import RenderedResponse, RendererOptions, ReferenceResponseRenderer

__all__ = [
    "DEFAULT_MAX_REFERENCE_AGE_MS",
    "ReferenceContextTracker",
    "RenderedResponse",
    "RendererOptions",
    "ReferenceResponseRenderer",
    "size_kb",
]
