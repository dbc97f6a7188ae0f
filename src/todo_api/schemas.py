from __future__ import annotations

from datetime import datetime
from typing import Annotated, List

from pydantic import BaseModel, ConfigDict, Field

from .utils import INT64_MAX

# Ids are positive store-assigned sqlite INTEGERs; anything beyond int64 is
# rejected by schema validation before it can reach the driver.
TodoId = Annotated[int, Field(ge=0, le=INT64_MAX)]

# Request fields default to their zero value so that a missing subject or id is
# caught by the router's own check (plaintext 400) rather than by schema
# validation (422).


# PUBLIC_INTERFACE
class Todo(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 3,
                "subject": "Buy groceries",
                "description": "Milk, eggs, bread",
                "created_at": "2025-01-25T10:15:30.123000",
                "updated_at": "2025-01-26T09:00:00.000000",
            }
        }
    )

    id: int = Field(..., description="Store-assigned identifier of the todo")
    subject: str = Field(..., description="Short subject of the todo")
    description: str = Field(default="", description="Detailed description, may be empty")
    created_at: datetime = Field(..., description="Creation timestamp (UTC)")
    updated_at: datetime = Field(..., description="Last update timestamp (UTC)")


# PUBLIC_INTERFACE
class CreateTodoRequest(BaseModel):
    """
    Body of POST /todos.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"subject": "Buy groceries", "description": "Milk, eggs, bread"}}
    )

    subject: str = Field(default="", description="Short subject; must not be empty")
    description: str = Field(default="", description="Optional detailed description")


class CreateTodoResponse(BaseModel):
    todo: Todo


# PUBLIC_INTERFACE
class ReadTodoRequest(BaseModel):
    """
    Cursor query of GET /todos, built from the query string.
    """

    prev_id: int = Field(default=0, description="Return todos older than this id; 0 starts from the newest")
    size: int = Field(default=0, description="Page size; 0 selects the default of 5")


class ReadTodoResponse(BaseModel):
    todos: List[Todo] = Field(default_factory=list)


# PUBLIC_INTERFACE
class UpdateTodoRequest(BaseModel):
    """
    Body of PUT /todos.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"id": 3, "subject": "Buy groceries and supplies", "description": "Milk, eggs, bread"}
        }
    )

    id: int = Field(default=0, ge=0, le=INT64_MAX, description="Identifier of the todo to update; must not be 0")
    subject: str = Field(default="", description="New subject; must not be empty")
    description: str = Field(default="", description="New description")


class UpdateTodoResponse(BaseModel):
    todo: Todo


# PUBLIC_INTERFACE
class DeleteTodoRequest(BaseModel):
    """
    Body of DELETE /todos.
    """

    model_config = ConfigDict(json_schema_extra={"example": {"ids": [3, 4]}})

    ids: List[TodoId] = Field(default_factory=list, description="Identifiers of the todos to delete")


class DeleteTodoResponse(BaseModel):
    pass
