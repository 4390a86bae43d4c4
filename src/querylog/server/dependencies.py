from fastapi import HTTPException

from querylog.query_history import PersistenceError, QueryHistory
from querylog.server.state import server_state


async def get_query_history() -> QueryHistory:
    try:
        return await server_state.get_query_history()
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail={"error": e.code, "detail": str(e)}) from e
