#!/usr/bin/env python3

from __future__ import annotations

import io
import os
import sqlite3
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from fastapi.testclient import TestClient
from PIL import Image

ROOT = Path(__file__).resolve().parents[3]
TEST_DB_DIR = tempfile.TemporaryDirectory(dir=ROOT)
TEST_DB_PATH = Path(TEST_DB_DIR.name) / "test_challenges_dotcaptcha.db"
os.environ["DOTCAPTCHA_DB_PATH"] = str(TEST_DB_PATH)

from apps.api.dotcaptcha_api.main import app
from apps.api.dotcaptcha_api.middleware.rate_limit import SlidingWindowLimiter
from apps.api.dotcaptcha_api.routers import challenges as challenges_router
from apps.api.dotcaptcha_api.routers.challenges import reset_rate_limiter_for_tests as reset_rate_limiter
from apps.api.dotcaptcha_api.storage.challenges import get_digits
from apps.api.dotcaptcha_api.storage.challenges import init_db as init_challenges_db
from apps.api.dotcaptcha_api.storage.challenges import reset_backend_cache_for_tests as reset_challenges_backend

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


class ChallengesApiTests(unittest.TestCase):
    def setUp(self) -> None:
        os.environ["DOTCAPTCHA_DB_PATH"] = str(TEST_DB_PATH)
        os.environ.pop("DATABASE_URL", None)
        if TEST_DB_PATH.exists():
            TEST_DB_PATH.unlink()
        reset_challenges_backend()
        reset_rate_limiter()
        self.client = TestClient(app)

    def _issue(self, **body) -> dict:
        resp = self.client.post("/api/v1/challenges", json=body)
        self.assertEqual(resp.status_code, 200, msg=resp.text)
        return resp.json()

    def test_issue_and_fetch_png(self) -> None:
        issued = self._issue()
        self.assertTrue(issued["ok"])
        self.assertEqual(issued["length"], 6)
        self.assertEqual(len(issued["id"]), 20)
        self.assertEqual(issued["image_url"], f"/captcha/{issued['id']}.png")

        resp = self.client.get(issued["image_url"])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["content-type"], "image/png")
        self.assertEqual(resp.headers["cache-control"], "no-cache, no-store, must-revalidate")
        self.assertEqual(resp.headers["pragma"], "no-cache")
        self.assertEqual(resp.headers["expires"], "0")
        self.assertTrue(resp.content.startswith(PNG_SIGNATURE))

        again = self.client.get(issued["image_url"])
        self.assertEqual(again.content, resp.content)

    def test_download_path_is_octet_stream(self) -> None:
        issued = self._issue(length=4)
        resp = self.client.get(issued["download_url"])
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.headers["content-type"], "application/octet-stream")
        self.assertTrue(resp.content.startswith(PNG_SIGNATURE))

    def test_bad_image_paths_are_not_found(self) -> None:
        for path in ("/captcha/foo", "/captcha/foo.jpg", "/captcha/.png", "/captcha/x.", "/captcha/unknownid.png"):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path).status_code, 404)

    def test_reload_changes_nothing_for_unknown_ids(self) -> None:
        self.assertEqual(self.client.get("/captcha/missing.png?reload=1").status_code, 404)
        self.assertEqual(self.client.post("/api/v1/challenges/missing/reload").status_code, 404)

    def test_reload_keeps_id_and_length(self) -> None:
        issued = self._issue(length=5)
        resp = self.client.get(f"{issued['image_url']}?reload=123")
        self.assertEqual(resp.status_code, 200)
        digits = get_digits(issued["id"])
        self.assertIsNotNone(digits)
        self.assertEqual(len(digits), 5)

        reloaded = self.client.post(f"/api/v1/challenges/{issued['id']}/reload")
        self.assertEqual(reloaded.status_code, 200)
        self.assertEqual(reloaded.json()["id"], issued["id"])

    def test_verify_is_single_use(self) -> None:
        issued = self._issue()
        answer = "".join(str(d) for d in get_digits(issued["id"]))

        ok = self.client.post(f"/api/v1/challenges/{issued['id']}/verify", json={"digits": answer})
        self.assertEqual(ok.status_code, 200)
        self.assertTrue(ok.json()["ok"])

        replay = self.client.post(f"/api/v1/challenges/{issued['id']}/verify", json={"digits": answer})
        self.assertFalse(replay.json()["ok"])
        self.assertEqual(self.client.get(issued["image_url"]).status_code, 404)

    def test_wrong_answer_burns_challenge(self) -> None:
        issued = self._issue(length=3)
        answer = "".join(str(d) for d in get_digits(issued["id"]))
        wrong = "".join(str((int(ch) + 1) % 10) for ch in answer)

        first = self.client.post(f"/api/v1/challenges/{issued['id']}/verify", json={"digits": wrong})
        self.assertFalse(first.json()["ok"])
        second = self.client.post(f"/api/v1/challenges/{issued['id']}/verify", json={"digits": answer})
        self.assertFalse(second.json()["ok"])

    def test_verify_rejects_non_digit_answers(self) -> None:
        issued = self._issue()
        resp = self.client.post(f"/api/v1/challenges/{issued['id']}/verify", json={"digits": "12ab"})
        self.assertEqual(resp.status_code, 422)

    def test_issue_length_bounds(self) -> None:
        self.assertEqual(self.client.post("/api/v1/challenges", json={"length": 0}).status_code, 422)
        self.assertEqual(self.client.post("/api/v1/challenges", json={"length": 21}).status_code, 422)

    def test_issue_is_rate_limited(self) -> None:
        limiter = SlidingWindowLimiter(max_requests=2, window_seconds=60)
        with mock.patch.object(challenges_router, "_issue_limiter", limiter):
            self._issue()
            self._issue()
            blocked = self.client.post("/api/v1/challenges", json={})
        self.assertEqual(blocked.status_code, 429)
        self.assertGreaterEqual(int(blocked.headers["retry-after"]), 1)

    def test_invalid_render_settings_are_bad_request(self) -> None:
        issued = self._issue()
        with mock.patch.dict(os.environ, {"DOTCAPTCHA_CIRCLE_COUNT": "1"}):
            resp = self.client.get(issued["image_url"])
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error_code"], "invalid_options")

    def test_configured_canvas_bounds_render(self) -> None:
        for width, height in ((59, 77), (50, 50), (240, 80)):
            for length in (1, 20):
                with self.subTest(canvas=f"{width}x{height}", length=length):
                    issued = self._issue(length=length)
                    env = {"DOTCAPTCHA_IMAGE_WIDTH": str(width), "DOTCAPTCHA_IMAGE_HEIGHT": str(height)}
                    with mock.patch.dict(os.environ, env):
                        resp = self.client.get(issued["image_url"])
                    self.assertEqual(resp.status_code, 200, msg=resp.text)
                    with Image.open(io.BytesIO(resp.content)) as img:
                        self.assertEqual(img.size, (width, height))

    def test_startup_removes_expired_challenges(self) -> None:
        init_challenges_db()
        with sqlite3.connect(TEST_DB_PATH) as conn:
            conn.execute(
                "INSERT INTO challenges (id, digits, expires_at, created_at) VALUES (?, ?, ?, ?)",
                ("stalechallenge", "123", 0.0, 0.0),
            )
        with TestClient(app):
            pass
        with sqlite3.connect(TEST_DB_PATH) as conn:
            count = conn.execute("SELECT COUNT(*) FROM challenges").fetchone()[0]
        self.assertEqual(count, 0)

    def test_healthz(self) -> None:
        resp = self.client.get("/healthz")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})


if __name__ == "__main__":
    unittest.main()
