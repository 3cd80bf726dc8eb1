import hmac
import logging
from typing import Annotated, Optional

from fastapi import Header, Request

from app.core.config import resolve_secret
from app.core.errors import AuthorizationError

logger = logging.getLogger(__name__)


def secrets_match(header: Optional[str], secret: str) -> bool:
    """Exact string equality, compared in constant time."""
    if header is None:
        return False
    return hmac.compare_digest(header.encode("utf-8"), secret.encode("utf-8"))


# Gate for /rest/* and /query: the Authorization header must equal the shared secret
async def require_secret(
    request: Request,
    authorization: Annotated[Optional[str], Header()] = None,
) -> None:
    config = request.app.state.config
    secret = await resolve_secret(config.secret)

    logger.debug(
        "Auth check - header %s, secret %s",
        "present" if authorization is not None else "missing",
        type(config.secret).__name__,
    )

    if not secrets_match(authorization, secret):
        raise AuthorizationError()
