import contextlib
import logging
import os

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app_settings.router import router as settings_router
from database import create_tables
from engine.exceptions import EngineError
from players.router import router as players_router
from rankings.router import router as rankings_router
from tournaments.router import router as tournaments_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    await create_tables()
    yield


app = FastAPI(title="Padel Tournaments", lifespan=lifespan)


@app.exception_handler(EngineError)
async def engine_error_handler(request: Request, exc: EngineError):
    logger.warning("%s %s refused: %s (%s)", request.method, request.url.path, exc.detail, exc.code)
    return JSONResponse(status_code=400, content={"detail": exc.detail, "code": exc.code})


for router in (players_router, tournaments_router, rankings_router, settings_router):
    app.include_router(router)


@app.get("/")
async def index():
    return {"app": app.title, "routes": ["/players", "/tournaments", "/rankings", "/settings"]}


if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
