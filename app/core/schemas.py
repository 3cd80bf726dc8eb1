from typing import Any, List, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict, ValidationError

from app.core.errors import ClientRequestError


# =========================
# RAW QUERY
# =========================
class RawQueryRequest(BaseModel):
    query: Optional[str] = None
    params: Optional[List[Any]] = None

    model_config = ConfigDict(extra="ignore")


# =========================
# Request bodies
# =========================
async def read_json_body(request: Request) -> Any:
    """Decode the JSON body; dict key order is kept, which fixes bind order."""
    try:
        return await request.json()
    except ValueError:
        raise ClientRequestError("Invalid JSON body")


def parse_raw_query(body: Any) -> RawQueryRequest:
    try:
        return RawQueryRequest.model_validate(body)
    except ValidationError as error:
        first = error.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        message = f"{location}: {first['msg']}" if location else first["msg"]
        raise ClientRequestError(message)
