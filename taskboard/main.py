import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import init_db
from .errors import register_error_handlers
from .routes import auth, boards, cards, lists, members, search, upload

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(_: FastAPI):
    for warning in settings.insecure_defaults():
        logger.warning("insecure configuration: %s", warning)
    init_db()
    logger.info("%s %s ready", settings.APP_NAME, settings.APP_VERSION)
    yield


app = FastAPI(title=settings.APP_NAME, version=settings.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

for module in (auth, boards, lists, cards, members, search, upload):
    app.include_router(module.router, prefix=API_PREFIX)


# === Health ===


@app.get(f"{API_PREFIX}/health")
def health() -> dict:
    return {"ok": True}
