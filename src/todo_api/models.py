from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A row of the todos table as returned by the persistence service.

    Fields:
    - id: Store-assigned integer identifier (immutable)
    - subject: Non-empty short subject
    - description: Free text, may be empty
    - created_at: Store-assigned creation timestamp (UTC)
    - updated_at: Store-assigned last update timestamp (UTC)
    """

    id: int
    subject: str
    description: str
    created_at: datetime
    updated_at: datetime
