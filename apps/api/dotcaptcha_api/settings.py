"""Environment-driven settings for the captcha API."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os

from packages.dotcaptcha_core.render import (
    DEFAULT_CANVAS_WARP,
    DEFAULT_STRIKE_WARP,
    STD_HEIGHT,
    STD_WIDTH,
    DistortionOpts,
)

logger = logging.getLogger("dotcaptcha_api.settings")

DEFAULT_DIGIT_LENGTH = 6
DEFAULT_CHALLENGE_TTL_SECONDS = 600
DEFAULT_ISSUE_RATE_LIMIT = 60
DEFAULT_ISSUE_RATE_WINDOW_SECONDS = 3600


def _env_int(name: str, default: int) -> int:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("[SETTINGS] Ignoring non-integer %s=%r, using %d", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = str(os.environ.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("[SETTINGS] Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class ImageSettings:
    width: int
    height: int
    opts: DistortionOpts


def image_settings() -> ImageSettings:
    opts = DistortionOpts(
        circle_count=_env_int("DOTCAPTCHA_CIRCLE_COUNT", 20),
        strike_count=_env_int("DOTCAPTCHA_STRIKE_COUNT", 1),
        max_skew=_env_float("DOTCAPTCHA_MAX_SKEW", 0.7),
        canvas_warp=DEFAULT_CANVAS_WARP,
        strike_warp=DEFAULT_STRIKE_WARP,
    )
    return ImageSettings(
        width=_env_int("DOTCAPTCHA_IMAGE_WIDTH", STD_WIDTH),
        height=_env_int("DOTCAPTCHA_IMAGE_HEIGHT", STD_HEIGHT),
        opts=opts,
    )


def digit_length() -> int:
    return max(1, _env_int("DOTCAPTCHA_DIGIT_LENGTH", DEFAULT_DIGIT_LENGTH))


def challenge_ttl_seconds() -> int:
    return max(1, _env_int("DOTCAPTCHA_CHALLENGE_TTL_SECONDS", DEFAULT_CHALLENGE_TTL_SECONDS))


def issue_rate_limit() -> int:
    return _env_int("DOTCAPTCHA_ISSUE_RATE_LIMIT", DEFAULT_ISSUE_RATE_LIMIT)


def cors_origins() -> list[str]:
    return [o.strip() for o in os.environ.get("DOTCAPTCHA_CORS_ORIGINS", "*").split(",") if o.strip()]
