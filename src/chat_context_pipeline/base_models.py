# chat_context_pipeline/base_models.py
"""Base model with dict-style access for response payloads."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class DictCompatModel(BaseModel):
    """Base for response models that are also consumed as plain JSON dicts.

    Allows ``obj["key"]`` and ``"key" in obj`` using either the field name
    or its serialization alias, so a chat UI reading ``metadata["queryIntent"]``
    and Python code reading ``metadata.query_intent`` see the same value.
    """

    model_config = ConfigDict(populate_by_name=True)

    def _resolve_field(self, key: str) -> str | None:
        if key in type(self).model_fields:
            return key
        for name, info in type(self).model_fields.items():
            if info.alias == key:
                return name
        return None

    def __getitem__(self, key: str) -> Any:
        name = self._resolve_field(key)
        if name is None:
            raise KeyError(key)
        return getattr(self, name)

    def __contains__(self, key: object) -> bool:
        if isinstance(key, str):
            return self._resolve_field(key) is not None
        return False

    def __eq__(self, other: object) -> bool:
        if isinstance(other, dict):
            return self.model_dump() == other or self.model_dump(by_alias=True) == other
        return super().__eq__(other)

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict using the wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)
