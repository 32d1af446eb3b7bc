"""Enums and constants for the conversation memory engine."""

from enum import Enum

# =============================================================================
# Enums
# =============================================================================


class MessageRole(str, Enum):
    """Message roles in the conversation window."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ContentKind(str, Enum):
    """Declared kind of a content item found in a tool response."""

    TEXT = "text"
    IMAGE = "image"
    RESOURCE = "resource"
    BINARY = "binary"


class ContentType(str, Enum):
    """Detected format of stored content."""

    TEXT = "text"  # plain
    JSON = "json"  # structured
    HTML = "html"  # markup
    MARKDOWN = "markdown"
    BINARY = "binary"
    UNKNOWN = "unknown"


class ContentSource(str, Enum):
    """Who produced externalized content."""

    TOOL = "tool"
    USER_UPLOAD = "user_upload"
    AGENT_GENERATED = "agent_generated"
    SYSTEM = "system"


class ReferenceState(str, Enum):
    """Lifecycle state of a stored reference."""

    ACTIVE = "active"
    EXPIRED = "expired"
    CLEANUP_PENDING = "cleanup_pending"
    INVALID = "invalid"


class ResolutionErrorType(str, Enum):
    """Why a reference could not be resolved."""

    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    CORRUPTED = "corrupted"
    SYSTEM_ERROR = "system_error"


class NodeKind(str, Enum):
    """Tagged variant for untyped tool-response values."""

    SCALAR = "scalar"
    CONTENT_NODE = "content_node"
    ARRAY = "array"
    OBJECT = "object"


class DisplayFormat(str, Enum):
    """Rendering styles for a content reference."""

    INLINE = "inline"
    COMPACT = "compact"
    CARD = "card"


# =============================================================================
# Constants
# =============================================================================

MIME_JSON = "application/json"
MIME_HTML = "text/html"
MIME_MARKDOWN = "text/markdown"
MIME_PLAIN = "text/plain"
MIME_OCTET_STREAM = "application/octet-stream"
MIME_DEFAULT_IMAGE = "image/jpeg"

CONTENT_REFERENCE_NODE_TYPE = "content_reference"
REFERENCE_FORMAT = "ref://{id}"
REFERENCE_URI_PREFIX = "ref://"
