import logging
import time
from typing import Any, Dict, List, Protocol, Sequence

from fastapi import Request
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.errors import DatabaseNotConfigured, ExecutionError

logger = logging.getLogger(__name__)


# BLOBs come back as lists of byte values
def _json_row(row) -> Dict[str, Any]:
    return {
        key: list(value) if isinstance(value, (bytes, bytearray, memoryview)) else value
        for key, value in row.items()
    }


class Database(Protocol):
    """What the gateway needs from a database: run one statement, get a dict back."""

    async def all(self, sql: str, params: Sequence[Any] = ()) -> Dict[str, Any]: ...

    async def run(self, sql: str, params: Sequence[Any] = ()) -> Dict[str, Any]: ...

    async def dispose(self) -> None: ...


class SqlDatabase:
    """
    Database backed by a SQLAlchemy async engine.

    Statements are handed to the driver as-is (`?` placeholders, positional
    params), so the URL must point at a qmark driver such as sqlite+aiosqlite.
    Every statement runs in its own short transaction that commits on success.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def _execute(self, sql: str, params: Sequence[Any]) -> Dict[str, Any]:
        started = time.perf_counter()
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql(sql, tuple(params))
                rows: List[Dict[str, Any]] = []
                changes = 0
                if result.returns_rows:
                    rows = [_json_row(row) for row in result.mappings()]
                else:
                    changes = max(result.rowcount, 0)
                last_row_id = result.lastrowid
        except DBAPIError as error:
            # Keep the driver's own message, without SQLAlchemy's statement dump
            raise ExecutionError(str(error.orig)) from error
        except SQLAlchemyError as error:
            raise ExecutionError(str(error)) from error
        except (OverflowError, ValueError, TypeError) as error:
            # Raised by the driver itself when it cannot bind a value
            raise ExecutionError(str(error)) from error

        meta = {
            "changes": changes,
            "last_row_id": last_row_id,
            "duration": round((time.perf_counter() - started) * 1000, 3),
            "rows_read": len(rows),
        }
        return {"results": rows, "success": True, "meta": meta}

    async def all(self, sql: str, params: Sequence[Any] = ()) -> Dict[str, Any]:
        return await self._execute(sql, params)

    async def run(self, sql: str, params: Sequence[Any] = ()) -> Dict[str, Any]:
        result = await self._execute(sql, params)
        return {"success": result["success"], "meta": result["meta"]}

    async def dispose(self) -> None:
        await self.engine.dispose()


def create_database(url: str, echo: bool = False, **engine_kwargs) -> SqlDatabase:
    return SqlDatabase(create_async_engine(url, echo=echo, **engine_kwargs))


# -----------------------------------------------------------------------------
# Binding selection
# -----------------------------------------------------------------------------


def select_database(config) -> Database:
    """Prefer the verified binding, fall back to the default one."""
    if config.verified_database is not None:
        logger.debug("Using verified database binding")
        return config.verified_database
    if config.database is not None:
        logger.debug("Using default database binding")
        return config.database
    raise DatabaseNotConfigured()


# Picked again on every request, never cached between requests
async def get_database(request: Request) -> Database:
    return select_database(request.app.state.config)
