"""Challenge issuance, reload and verification endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..middleware.rate_limit import SlidingWindowLimiter
from ..settings import DEFAULT_ISSUE_RATE_WINDOW_SECONDS, digit_length, issue_rate_limit
from ..storage.challenges import (
    MAX_DIGIT_LENGTH,
    create_challenge,
    reload_challenge,
    verify_challenge,
)

logger = logging.getLogger("dotcaptcha_api.challenges")

router = APIRouter(prefix="/api/v1/challenges", tags=["challenges"])

_issue_limiter = SlidingWindowLimiter(
    max_requests=issue_rate_limit(),
    window_seconds=DEFAULT_ISSUE_RATE_WINDOW_SECONDS,
)


def reset_rate_limiter_for_tests() -> None:
    _issue_limiter.reset()


class IssueChallengeRequest(BaseModel):
    length: Optional[int] = Field(default=None, ge=1, le=MAX_DIGIT_LENGTH)


class VerifyChallengeRequest(BaseModel):
    digits: str = Field(min_length=1, max_length=MAX_DIGIT_LENGTH, pattern="^[0-9]+$")


def _challenge_payload(challenge_id: str) -> dict[str, Any]:
    return {
        "id": challenge_id,
        "image_url": f"/captcha/{challenge_id}.png",
        "download_url": f"/captcha/download/{challenge_id}.png",
    }


@router.post("")
@router.post("/")
def issue_challenge(request: Request, req: Optional[IssueChallengeRequest] = None) -> Any:
    client_ip = request.client.host if request.client else "unknown"
    wait = _issue_limiter.acquire(client_ip)
    if wait > 0:
        logger.warning("[CHALLENGES] Issue rate limited: client=%s", client_ip)
        return JSONResponse(
            status_code=429,
            content={"detail": "Too many challenges requested"},
            headers={"Retry-After": _issue_limiter.retry_after_header(wait)},
        )

    length = req.length if req and req.length else digit_length()
    challenge_id = create_challenge(length)
    logger.info("[CHALLENGES] Issued challenge id=%s length=%d", challenge_id, length)
    return {"ok": True, "length": length, **_challenge_payload(challenge_id)}


@router.post("/{challenge_id}/reload")
def reload_challenge_endpoint(challenge_id: str) -> dict[str, Any]:
    if not reload_challenge(challenge_id):
        raise HTTPException(status_code=404, detail=f"Challenge not found: {challenge_id}")
    return {"ok": True, **_challenge_payload(challenge_id)}


@router.post("/{challenge_id}/verify")
def verify_challenge_endpoint(challenge_id: str, req: VerifyChallengeRequest) -> dict[str, Any]:
    ok = verify_challenge(challenge_id, req.digits)
    logger.info("[CHALLENGES] Verify id=%s ok=%s", challenge_id, ok)
    return {"ok": ok, "id": challenge_id}
