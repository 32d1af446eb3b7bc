# chuk_ai_conversation_memory/base_models.py
"""Base model with dict-style access for result objects."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class DictCompatModel(BaseModel):
    """Base for result models that callers may also read like dicts.

    Allows ``result["key"]`` and ``"key" in result`` so conversation drivers
    that pass results straight into JSON-shaped code keep working.
    """

    def __getitem__(self, key: str) -> Any:
        if key not in type(self).model_fields:
            raise KeyError(key)
        return getattr(self, key)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return key in type(self).model_fields
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, dict):
            return self.model_dump() == other
        return super().__eq__(other)
