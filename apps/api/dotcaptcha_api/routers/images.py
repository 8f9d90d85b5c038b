"""Serves challenge images as PNG.

``/captcha/<id>.png`` returns the image inline and
``/captcha/download/<id>.png`` as a download. Adding ``?reload=<anything>``
issues new digits for the same id before rendering.
"""

from __future__ import annotations

import logging
import posixpath
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Response

from packages.dotcaptcha_core.render import encode_png, render

from ..settings import image_settings
from ..storage.challenges import get_digits, reload_challenge

logger = logging.getLogger("dotcaptcha_api.images")

router = APIRouter(tags=["images"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


def _split_image_path(path: str) -> tuple[str, str]:
    directory, file_name = posixpath.split("/" + path)
    challenge_id, ext = posixpath.splitext(file_name)
    if ext != ".png" or not challenge_id:
        raise HTTPException(status_code=404, detail="Not Found")
    return directory, challenge_id


@router.get("/captcha/{path:path}")
def captcha_image(path: str, reload: Optional[str] = Query(default=None)) -> Response:
    directory, challenge_id = _split_image_path(path)

    if reload and not reload_challenge(challenge_id):
        logger.info("[IMAGES] Reload for unknown challenge id=%s", challenge_id)
        raise HTTPException(status_code=404, detail="Not Found")

    digits = get_digits(challenge_id)
    if not digits:
        logger.info("[IMAGES] Unknown or expired challenge id=%s", challenge_id)
        raise HTTPException(status_code=404, detail="Not Found")

    cfg = image_settings()
    image = render(challenge_id, digits, cfg.width, cfg.height, cfg.opts)
    body = encode_png(image)

    if posixpath.basename(directory) == "download":
        media_type = "application/octet-stream"
    else:
        media_type = "image/png"
    logger.debug("[IMAGES] Served id=%s bytes=%d media_type=%s", challenge_id, len(body), media_type)
    return Response(content=body, media_type=media_type, headers=NO_CACHE_HEADERS)
