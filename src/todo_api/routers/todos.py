from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional, Union

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import PlainTextResponse

from ..db import Database
from ..schemas import (
    CreateTodoRequest,
    CreateTodoResponse,
    DeleteTodoRequest,
    DeleteTodoResponse,
    ReadTodoRequest,
    ReadTodoResponse,
    Todo,
    UpdateTodoRequest,
    UpdateTodoResponse,
)
from ..service import TodoService
from ..settings import get_settings
from ..utils import int_or_zero

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)

_BAD_REQUEST_RESPONSES = {
    400: {"description": "Bad request", "content": {"text/plain": {"example": "Bad request"}}},
}


# PUBLIC_INTERFACE
@lru_cache
def get_database() -> Database:
    """
    Return the process-wide store handle, created (with its schema) on first use.
    """
    return Database(get_settings().database_path)


# PUBLIC_INTERFACE
def get_todo_service(db: Database = Depends(get_database)) -> TodoService:
    """
    Dependency returning a TodoService bound to the configured store.
    Tests override this to inject their own Database.
    """
    return TodoService(db)


def _bad_request() -> PlainTextResponse:
    return PlainTextResponse("Bad request\n", status_code=status.HTTP_400_BAD_REQUEST)


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=CreateTodoResponse,
    summary="Create Todo",
    description="Create a new Todo item and return it with its store-assigned fields.",
    responses=_BAD_REQUEST_RESPONSES,
)
def create_todo(
    payload: CreateTodoRequest,
    svc: TodoService = Depends(get_todo_service),
) -> Union[CreateTodoResponse, PlainTextResponse]:
    """
    Create a new Todo. An empty subject is rejected before the store is touched.
    """
    if payload.subject == "":
        logger.info("Rejected create: empty subject")
        return _bad_request()
    created = svc.create_todo(payload.subject, payload.description)
    return CreateTodoResponse(todo=Todo(**created))


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=ReadTodoResponse,
    summary="List Todos",
    description=(
        "List todos newest first using cursor pagination.\n\n"
        "Query parameters:\n"
        "- prev_id: only return todos with a smaller id (0 or absent: start from the newest)\n"
        "- size: maximum number of todos to return (0 or absent: 5)\n\n"
        "Values that are not integers are treated as 0."
    ),
)
def read_todos(
    prev_id: Optional[str] = Query(None, description="Cursor: id of the last todo already seen"),
    size: Optional[str] = Query(None, description="Page size"),
    svc: TodoService = Depends(get_todo_service),
) -> ReadTodoResponse:
    """
    Read a page of todos. Unparsable query values read as 0.
    """
    req = ReadTodoRequest(prev_id=int_or_zero(prev_id), size=int_or_zero(size))
    todos = svc.read_todos(req.prev_id, req.size)
    return ReadTodoResponse(todos=[Todo(**t) for t in todos])


# PUBLIC_INTERFACE
@router.put(
    "",
    response_model=UpdateTodoResponse,
    summary="Update Todo",
    description="Replace subject and description of the todo identified by `id` in the body.",
    responses={
        **_BAD_REQUEST_RESPONSES,
        404: {"description": "Todo not found"},
    },
)
def update_todo(
    payload: UpdateTodoRequest,
    svc: TodoService = Depends(get_todo_service),
) -> Union[UpdateTodoResponse, PlainTextResponse]:
    """
    Update a Todo. A zero id or an empty subject is rejected before the store is touched.
    """
    if payload.id == 0 or payload.subject == "":
        logger.info("Rejected update: id=%d, empty subject=%s", payload.id, payload.subject == "")
        return _bad_request()
    updated = svc.update_todo(payload.id, payload.subject, payload.description)
    return UpdateTodoResponse(todo=Todo(**updated))


# PUBLIC_INTERFACE
@router.delete(
    "",
    response_model=DeleteTodoResponse,
    summary="Delete Todos",
    description="Delete every todo listed in `ids`. An empty list is a no-op.",
    responses={404: {"description": "None of the ids matched a todo"}},
)
def delete_todos(
    payload: Optional[DeleteTodoRequest] = Body(None),
    svc: TodoService = Depends(get_todo_service),
) -> DeleteTodoResponse:
    """
    Delete todos by id. A missing body behaves like an empty id list.
    """
    svc.delete_todos(payload.ids if payload else [])
    return DeleteTodoResponse()
