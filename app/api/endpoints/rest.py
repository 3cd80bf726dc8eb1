import logging
from typing import Annotated, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from app.core import query_builder
from app.core.database import Database, get_database
from app.core.errors import ExecutionError, MethodNotAllowed
from app.core.query_builder import PreparedStatement
from app.core.schemas import read_json_body
from app.core.security import require_secret

# Binding selection runs before the auth gate, so a missing database is a 500 even without a secret
router = APIRouter(
    prefix="/rest",
    tags=["REST"],
    dependencies=[Depends(get_database), Depends(require_secret)],
)

db_dep = Annotated[Database, Depends(get_database)]

# Every method reaches the dispatcher; the ones it does not map get a 405
REST_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


async def _execute(
    execute: Callable[..., Awaitable[dict]], statement: PreparedStatement, table: str
) -> dict:
    try:
        return await execute(statement.sql, statement.params)
    except ExecutionError as error:
        logging.error(f"Statement on table {table!r} failed: {error.message}")
        raise


async def handle_get(
    request: Request, db: Database, table: str, record_id: Optional[str]
) -> JSONResponse:
    params = request.query_params
    statement = query_builder.build_select(
        table,
        record_id=record_id,
        filters=query_builder.split_filters(params.multi_items()),
        sort=params.get("sort"),
        limit=params.get("limit"),
        offset=params.get("offset"),
    )
    results = await _execute(db.all, statement, table)
    return JSONResponse(jsonable_encoder(results))


async def handle_post(request: Request, db: Database, table: str) -> JSONResponse:
    body = await read_json_body(request)
    statement = query_builder.build_insert(table, body)
    result = await _execute(db.run, statement, table)
    return JSONResponse(
        jsonable_encoder({"success": result["success"], "meta": result["meta"]}),
        status_code=status.HTTP_201_CREATED,
    )


async def handle_update(
    request: Request, db: Database, table: str, record_id: Optional[str]
) -> JSONResponse:
    body = await read_json_body(request)
    statement = query_builder.build_update(table, record_id, body)
    result = await _execute(db.run, statement, table)
    return JSONResponse(
        jsonable_encoder({"success": result["success"], "meta": result["meta"]})
    )


async def handle_delete(
    db: Database, table: str, record_id: Optional[str]
) -> JSONResponse:
    statement = query_builder.build_delete(table, record_id)
    result = await _execute(db.run, statement, table)
    return JSONResponse(
        jsonable_encoder({"success": result["success"], "meta": result["meta"]})
    )


async def dispatch(
    request: Request, db: Database, table: str, record_id: Optional[str]
) -> JSONResponse:
    method = request.method
    if method == "GET":
        return await handle_get(request, db, table, record_id)
    if method == "POST":
        return await handle_post(request, db, table)
    if method in ("PUT", "PATCH"):
        return await handle_update(request, db, table, record_id)
    if method == "DELETE":
        return await handle_delete(db, table, record_id)
    raise MethodNotAllowed()


@router.api_route("/{table}", methods=REST_METHODS)
async def rest_collection(table: str, request: Request, db: db_dep):
    return await dispatch(request, db, table, None)


@router.api_route("/{table}/{record_id}", methods=REST_METHODS)
async def rest_record(table: str, record_id: str, request: Request, db: db_dep):
    return await dispatch(request, db, table, record_id)
