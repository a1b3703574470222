"""Shared configuration for catalog models."""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Longest name, email, phone, title or author the snapshots accept
MAX_FIELD_LENGTH = 255


def epoch_now() -> int:
    """Current time as whole Unix epoch seconds."""
    return int(time.time())


class CatalogModel(BaseModel):
    """Base class for entities stored in the JSON snapshots.

    Field names are snake_case in Python and camelCase on disk and on the
    wire (``max_borrow_count`` <-> ``maxBorrowCount``). Serialize with
    ``model_dump(by_alias=True)`` to get the stored shape.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        # Accept both the Python field name and the camelCase alias
        populate_by_name=True,
        # Hand-edited snapshot files may carry extra keys
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Dump the model with camelCase keys, as stored on disk and sent over the wire."""
        return self.model_dump(by_alias=True)
