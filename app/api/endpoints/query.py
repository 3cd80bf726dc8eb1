import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.core.database import Database, get_database
from app.core.errors import ClientRequestError, ExecutionError
from app.core.schemas import parse_raw_query, read_json_body
from app.core.security import require_secret

router = APIRouter(
    tags=["Query"],
    dependencies=[Depends(get_database), Depends(require_secret)],
)

db_dep = Annotated[Database, Depends(get_database)]


@router.post("/query")
async def run_raw_query(request: Request, db: db_dep):
    """
    Run caller-supplied SQL as-is, binding `params` in array order.
    No sanitizing and no statement restrictions: the auth gate is the only check.
    """
    payload = parse_raw_query(await read_json_body(request))

    if not payload.query:
        raise ClientRequestError("No query provided")

    try:
        return await db.all(payload.query, payload.params or [])
    except ExecutionError as error:
        logging.error(f"Raw query failed: {error.message}")
        raise
