from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
import logging

from homepage.api.routes import router
from homepage.config import settings_from_env
from homepage.errors import PersistenceFailure

app = FastAPI(title="homepage-api", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=getattr(logging, settings_from_env().log_level, logging.INFO))
logger = logging.getLogger(__name__)


@app.exception_handler(PersistenceFailure)
async def _persistence_failure(request: Request, exc: PersistenceFailure) -> JSONResponse:
    logger.error("persistence failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": str(exc)})


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "homepage-api", "version": "0.1.0"}
