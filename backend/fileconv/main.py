"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fileconv import config as app_config
from fileconv.api.routes import router
from fileconv.config import CORS_ORIGINS, logger as config_logger
from fileconv.db import init_db

logging.getLogger("uvicorn").setLevel(logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    app_config.OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
    init_db()
    config_logger.info("File converter API started")
    yield
    config_logger.info("File converter API shutting down")


app = FastAPI(
    title="File Converter API",
    description="Convert images, audio and video between common formats.",
    version="1.0.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS if CORS_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(router)


def run() -> None:
    import uvicorn
    from fileconv.config import HOST, PORT
    uvicorn.run("fileconv.main:app", host=HOST, port=PORT)


if __name__ == "__main__":
    run()
