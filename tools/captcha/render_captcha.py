#!/usr/bin/env python3
"""Render a captcha PNG for a challenge id and digit string."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packages.dotcaptcha_core.render import (
    DEFAULT_CANVAS_WARP,
    DEFAULT_STRIKE_WARP,
    STD_HEIGHT,
    STD_WIDTH,
    CaptchaRenderError,
    DistortionOpts,
    render,
)
from packages.dotcaptcha_core.render.stream import parse_seed_key


def main() -> int:
    parser = argparse.ArgumentParser(description="Render a dotcaptcha challenge image")
    parser.add_argument("challenge_id", help="Challenge identifier used in seed derivation")
    parser.add_argument("digits", help="Digit string, e.g. 481516")
    parser.add_argument("--out", type=Path, default=None, help="Output PNG path (default: <id>.png)")
    parser.add_argument("--width", type=int, default=STD_WIDTH)
    parser.add_argument("--height", type=int, default=STD_HEIGHT)
    parser.add_argument(
        "--key",
        default=None,
        help="Hex seed key (default: DOTCAPTCHA_SEED_KEY or a per-run random key)",
    )
    parser.add_argument("--circles", type=int, default=20, help="Background circle count")
    parser.add_argument("--strikes", type=int, default=1, help="Strike-through line count")
    parser.add_argument("--max-skew", type=float, default=0.7, help="Maximum digit shear")
    args = parser.parse_args()

    if not args.digits or any(ch not in "0123456789" for ch in args.digits):
        print(f"ERROR: digits must be 0-9 only, got {args.digits!r}")
        return 2

    opts = DistortionOpts(
        circle_count=args.circles,
        strike_count=args.strikes,
        max_skew=args.max_skew,
        canvas_warp=DEFAULT_CANVAS_WARP,
        strike_warp=DEFAULT_STRIKE_WARP,
    )
    try:
        key = parse_seed_key(args.key) if args.key else None
        image = render(
            args.challenge_id,
            [int(ch) for ch in args.digits],
            args.width,
            args.height,
            opts,
            key=key,
        )
        payload = image.encode_png()
    except CaptchaRenderError as exc:
        print(f"ERROR: {exc}")
        return 1

    out_path = args.out or Path(f"{args.challenge_id}.png")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(payload)
    print(f"Wrote {image.width}x{image.height} captcha to {out_path} (anchor={image.anchor[0]},{image.anchor[1]})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
