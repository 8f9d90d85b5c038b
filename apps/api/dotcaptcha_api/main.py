"""FastAPI entrypoint for the dotcaptcha service."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from packages.dotcaptcha_core.render import CodecError, InvalidInputError

from .routers.challenges import router as challenges_router
from .routers.images import router as images_router
from .settings import cors_origins
from .storage.challenges import init_db as init_challenges_db
from .storage.challenges import ping as ping_challenges_db
from .storage.challenges import purge_expired as purge_expired_challenges

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger("dotcaptcha_api")

app = FastAPI(title="dotcaptcha API", version="0.1.0")

_cors_origins = cors_origins()
_cors_allow_credentials = "*" not in _cors_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=_cors_allow_credentials,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)
app.include_router(challenges_router)
app.include_router(images_router)


@app.exception_handler(InvalidInputError)
async def _invalid_input_handler(request: Request, exc: InvalidInputError):
    logger.warning("[RENDER] Rejected render for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=400, content={"detail": str(exc), "error_code": exc.error_code})


@app.exception_handler(CodecError)
async def _codec_failure_handler(request: Request, exc: CodecError):
    logger.error("[RENDER] Encoding failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error", "error_code": exc.error_code})


@app.on_event("startup")
def startup() -> None:
    logger.info("[STARTUP] dotcaptcha API starting up at %s", datetime.now(timezone.utc).isoformat())
    try:
        init_challenges_db()
        logger.info("[STARTUP] Challenge database initialized successfully")
        removed = purge_expired_challenges()
        logger.info("[STARTUP] Removed %d expired challenges", removed)
    except Exception as e:
        logger.error("[STARTUP] Failed to initialize challenge database: %s", e)
        raise


@app.get("/healthz")
def healthz():
    try:
        ping_challenges_db()
    except Exception as exc:
        logger.warning("[HEALTH] DB ping failed: %s", exc)
        return JSONResponse(status_code=503, content={"status": "error", "detail": str(exc)})
    return {"status": "ok"}
