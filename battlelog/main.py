"""
Battlelog Snapshot API - FastAPI application
Server info and player snapshots proxied from Battlelog through a file cache
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import Response

from battlelog.context import inbound_user_agent
from battlelog.errors import NO_DATA, CacheError, FetchError, InvalidUrl
from battlelog.fetcher import Fetcher, select_fetcher
from battlelog.service import ReturnType, SnapshotService, coerce_return_type
from config.settings import Settings, get_settings

load_dotenv()

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("battlelog.main")

# Version tracking
APP_VERSION = "v0.6.0"
APP_NAME = "Battlelog Snapshot API"

# Transport chosen once per process
_fetcher: Optional[Fetcher] = None


def close_fetcher() -> None:
    """Release the process-wide transport (pooled connections)."""
    global _fetcher
    if _fetcher is None:
        return
    close = getattr(_fetcher, "close", None)
    if close is not None:
        close()
    _fetcher = None
    logger.info("Closed upstream transport")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_fetcher()


app = FastAPI(
    title=APP_NAME,
    description="Cached Battlefield server and player data from Battlelog",
    version=APP_VERSION,
    lifespan=lifespan,
)


def get_fetcher() -> Fetcher:
    """Get or create the process-wide upstream transport."""
    global _fetcher
    if _fetcher is None:
        _fetcher = select_fetcher(get_settings())
    return _fetcher


def _run(operation: str, url: str, return_type: str, request: Request,
         settings: Settings, fetcher: Fetcher) -> Response:
    """Build a service for url and run one of its snapshot calls."""
    token = inbound_user_agent.set(request.headers.get("user-agent"))
    try:
        service = SnapshotService(url, settings=settings, fetcher=fetcher)
        data = getattr(service, operation)(return_type)
    except InvalidUrl as e:
        raise HTTPException(status_code=422, detail=str(e))
    except FetchError as e:
        logger.warning(f"Upstream fetch failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except CacheError as e:
        logger.error(f"Cache failure: {e}")
        raise HTTPException(status_code=500, detail=str(e))
    finally:
        inbound_user_agent.reset(token)

    if data is NO_DATA:
        raise HTTPException(status_code=404, detail="No data")

    if coerce_return_type(return_type) is ReturnType.JSON:
        return Response(content=data, media_type="application/json")
    return data


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok", "source": "battlelog"}


@app.get("/version")
def version_info():
    """Version information endpoint."""
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "full": f"{APP_NAME} {APP_VERSION}"
    }


@app.get("/api/server")
def server_data(
    request: Request,
    url: str = Query(..., description="Battlelog server page URL"),
    return_type: str = Query("array", description="'array' or 'json'"),
    settings: Settings = Depends(get_settings),
    fetcher: Fetcher = Depends(get_fetcher),
):
    """Server info (name, map, slots). Cached for server_info_ttl_seconds."""
    return _run("get_server_data", url, return_type, request, settings, fetcher)


@app.get("/api/players")
def player_data(
    request: Request,
    url: str = Query(..., description="Battlelog server page URL"),
    return_type: str = Query("array", description="'array' or 'json'"),
    settings: Settings = Depends(get_settings),
    fetcher: Fetcher = Depends(get_fetcher),
):
    """Live keeper snapshot (players, teams, scores)."""
    return _run("get_player_data", url, return_type, request, settings, fetcher)


@app.delete("/api/cache")
def invalidate_cache(
    url: str = Query(..., description="Battlelog server page URL"),
    settings: Settings = Depends(get_settings),
    fetcher: Fetcher = Depends(get_fetcher),
):
    """Drop the cached server info and snapshot for one server."""
    try:
        service = SnapshotService(url, settings=settings, fetcher=fetcher)
        removed = service.invalidate()
    except InvalidUrl as e:
        raise HTTPException(status_code=422, detail=str(e))
    except CacheError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"guid": service.reference.guid, "removed": removed}
