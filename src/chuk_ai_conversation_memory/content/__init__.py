"""
Content classification, the content store boundary, and response processing.
"""

from .classifier import (
    base64_decoded_size,
    classify,
    content_type_for_mime,
    detect_content_type,
    detect_mime_type,
    is_content_node,
    node_kind,
)
from .processor import (
    ResponseContentProcessor,
    build_reference_node,
    deep_copy_response,
    find_reference_nodes,
    is_reference_node,
)
from .reference_ids import (
    extract_reference_id,
    format_reference,
    generate_reference_id,
    is_valid_reference_id,
)
from .store import (
    CleanupPolicy,
    ContentStore,
    ContentStoreConfig,
    InMemoryContentStore,
    StoredContent,
    create_preview,
    truncate_text,
)

__all__ = [
    # Classification
    "base64_decoded_size",
    "classify",
    "content_type_for_mime",
    "detect_content_type",
    "detect_mime_type",
    "is_content_node",
    "node_kind",
    # Reference ids
    "extract_reference_id",
    "format_reference",
    "generate_reference_id",
    "is_valid_reference_id",
    # Store
    "CleanupPolicy",
    "ContentStore",
    "ContentStoreConfig",
    "InMemoryContentStore",
    "StoredContent",
    "create_preview",
    "truncate_text",
    # Processing
    "ResponseContentProcessor",
    "build_reference_node",
    "deep_copy_response",
    "find_reference_nodes",
    "is_reference_node",
]
