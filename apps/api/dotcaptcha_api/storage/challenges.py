"""Challenge id -> digit sequence store with expiration (SQLite)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import lru_cache
from logging import getLogger
from pathlib import Path
from typing import Callable, Optional, Sequence
import hmac
import os
import secrets
import sqlite3
import string
import time

from ..settings import challenge_ttl_seconds

logger = getLogger("dotcaptcha_api.storage.challenges")

WORKSPACE_ROOT = Path(__file__).resolve().parents[4]

ID_LENGTH = 20
ID_CHARS = string.digits + string.ascii_lowercase + string.ascii_uppercase
MAX_DIGIT_LENGTH = 20
PURGE_EVERY = 100


def new_challenge_id() -> str:
    return "".join(secrets.choice(ID_CHARS) for _ in range(ID_LENGTH))


def random_digits(length: int) -> list[int]:
    return [secrets.randbelow(10) for _ in range(length)]


def _encode_digits(digits: Sequence[int]) -> str:
    return "".join(str(int(d)) for d in digits)


def _decode_digits(raw: str) -> list[int]:
    return [int(ch) for ch in raw]


class ChallengeStore(ABC):
    purge_every: int
    _created_since_purge = 0

    def _note_created(self) -> None:
        # Expired rows are swept once every `purge_every` creations.
        self._created_since_purge += 1
        if self._created_since_purge >= self.purge_every:
            self._created_since_purge = 0
            self.purge_expired()

    @abstractmethod
    def init_db(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def ping(self) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_challenge(self, length: int) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_digits(self, challenge_id: str) -> Optional[list[int]]:
        raise NotImplementedError

    @abstractmethod
    def reload_challenge(self, challenge_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def verify_challenge(self, challenge_id: str, answer: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def purge_expired(self) -> int:
        raise NotImplementedError


class SQLiteChallengeStore(ChallengeStore):
    def __init__(
        self,
        db_path: Path,
        *,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_every: int = PURGE_EVERY,
    ) -> None:
        self.purge_every = max(1, int(purge_every))
        self.db_path = db_path
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        if self._initialized:
            return
        logger.info("[STORAGE] Initializing SQLite challenge database at '%s'", self.db_path)
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS challenges (
                  id TEXT PRIMARY KEY,
                  digits TEXT NOT NULL,
                  expires_at REAL NOT NULL,
                  created_at REAL NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_challenges_expires ON challenges(expires_at)")
        self._initialized = True

    def ping(self) -> None:
        with self._connect() as conn:
            conn.execute("SELECT 1").fetchone()

    def create_challenge(self, length: int) -> str:
        self.init_db()
        if not 1 <= int(length) <= MAX_DIGIT_LENGTH:
            raise ValueError(f"Challenge length must be between 1 and {MAX_DIGIT_LENGTH}")
        challenge_id = new_challenge_id()
        now = self._clock()
        with self._connect() as conn:
            conn.execute(
                "INSERT INTO challenges (id, digits, expires_at, created_at) VALUES (?, ?, ?, ?)",
                (challenge_id, _encode_digits(random_digits(int(length))), now + self.ttl_seconds, now),
            )
        logger.info("[STORAGE] Challenge created: id=%s, length=%d", challenge_id, length)
        self._note_created()
        return challenge_id

    def get_digits(self, challenge_id: str) -> Optional[list[int]]:
        self.init_db()
        with self._connect() as conn:
            row = conn.execute(
                "SELECT digits FROM challenges WHERE id = ? AND expires_at > ?",
                (challenge_id, self._clock()),
            ).fetchone()
        return _decode_digits(row["digits"]) if row else None

    def reload_challenge(self, challenge_id: str) -> bool:
        self.init_db()
        with self._connect() as conn:
            row = conn.execute(
                "SELECT digits FROM challenges WHERE id = ? AND expires_at > ?",
                (challenge_id, self._clock()),
            ).fetchone()
            if row is None:
                logger.info("[STORAGE] Reload refused, unknown or expired id=%s", challenge_id)
                return False
            conn.execute(
                "UPDATE challenges SET digits = ? WHERE id = ?",
                (_encode_digits(random_digits(len(row["digits"]))), challenge_id),
            )
        logger.info("[STORAGE] Challenge reloaded: id=%s", challenge_id)
        return True

    def verify_challenge(self, challenge_id: str, answer: str) -> bool:
        self.init_db()
        with self._connect() as conn:
            # Write lock first, so concurrent attempts on one id see the row at most once.
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT digits FROM challenges WHERE id = ? AND expires_at > ?",
                (challenge_id, self._clock()),
            ).fetchone()
            # One attempt per challenge, right or wrong.
            conn.execute("DELETE FROM challenges WHERE id = ?", (challenge_id,))
        if row is None:
            return False
        return hmac.compare_digest(str(row["digits"]).encode("ascii"), answer.encode("utf-8"))

    def purge_expired(self) -> int:
        self.init_db()
        with self._connect() as conn:
            cur = conn.execute("DELETE FROM challenges WHERE expires_at <= ?", (self._clock(),))
            removed = cur.rowcount
        if removed:
            logger.info("[STORAGE] Purged %d expired challenges", removed)
        return removed


class PostgresChallengeStore(ChallengeStore):
    def __init__(
        self,
        database_url: str,
        *,
        ttl_seconds: int,
        clock: Callable[[], float] = time.time,
        purge_every: int = PURGE_EVERY,
    ) -> None:
        self.purge_every = max(1, int(purge_every))
        self.database_url = database_url
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._initialized = False
        self._ensure_driver()

    @staticmethod
    def _ensure_driver() -> None:
        try:
            import psycopg  # noqa: F401
        except Exception as exc:  # pragma: no cover - depends on environment
            raise RuntimeError(
                "Postgres backend requires `psycopg`. Install it with: pip install psycopg[binary]"
            ) from exc

    def _connect(self):
        import psycopg
        from psycopg.rows import dict_row

        return psycopg.connect(self.database_url, row_factory=dict_row)

    def init_db(self) -> None:
        if self._initialized:
            return
        logger.info("[STORAGE] Initializing Postgres challenge database")
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS challenges (
                      id TEXT PRIMARY KEY,
                      digits TEXT NOT NULL,
                      expires_at DOUBLE PRECISION NOT NULL,
                      created_at DOUBLE PRECISION NOT NULL
                    )
                    """
                )
                cur.execute("CREATE INDEX IF NOT EXISTS idx_challenges_expires ON challenges(expires_at)")
            conn.commit()
        self._initialized = True

    def ping(self) -> None:
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1")
                cur.fetchone()

    def create_challenge(self, length: int) -> str:
        self.init_db()
        if not 1 <= int(length) <= MAX_DIGIT_LENGTH:
            raise ValueError(f"Challenge length must be between 1 and {MAX_DIGIT_LENGTH}")
        challenge_id = new_challenge_id()
        now = self._clock()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "INSERT INTO challenges (id, digits, expires_at, created_at) VALUES (%s, %s, %s, %s)",
                    (challenge_id, _encode_digits(random_digits(int(length))), now + self.ttl_seconds, now),
                )
            conn.commit()
        logger.info("[STORAGE] Challenge created: id=%s, length=%d", challenge_id, length)
        self._note_created()
        return challenge_id

    def get_digits(self, challenge_id: str) -> Optional[list[int]]:
        self.init_db()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT digits FROM challenges WHERE id = %s AND expires_at > %s",
                    (challenge_id, self._clock()),
                )
                row = cur.fetchone()
        return _decode_digits(row["digits"]) if row else None

    def reload_challenge(self, challenge_id: str) -> bool:
        self.init_db()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT digits FROM challenges WHERE id = %s AND expires_at > %s FOR UPDATE",
                    (challenge_id, self._clock()),
                )
                row = cur.fetchone()
                if row is None:
                    logger.info("[STORAGE] Reload refused, unknown or expired id=%s", challenge_id)
                    return False
                cur.execute(
                    "UPDATE challenges SET digits = %s WHERE id = %s",
                    (_encode_digits(random_digits(len(row["digits"]))), challenge_id),
                )
            conn.commit()
        logger.info("[STORAGE] Challenge reloaded: id=%s", challenge_id)
        return True

    def verify_challenge(self, challenge_id: str, answer: str) -> bool:
        self.init_db()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM challenges WHERE id = %s RETURNING digits, expires_at",
                    (challenge_id,),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None or row["expires_at"] <= self._clock():
            return False
        return hmac.compare_digest(str(row["digits"]).encode("ascii"), answer.encode("utf-8"))

    def purge_expired(self) -> int:
        self.init_db()
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM challenges WHERE expires_at <= %s", (self._clock(),))
                removed = cur.rowcount
            conn.commit()
        if removed:
            logger.info("[STORAGE] Purged %d expired challenges", removed)
        return removed


def _resolve_sqlite_path(database_url: Optional[str]) -> Path:
    if database_url and database_url.startswith("sqlite:///"):
        raw = database_url[len("sqlite:///") :]
        p = Path(raw)
        if not p.is_absolute():
            p = (WORKSPACE_ROOT / p).resolve()
        return p

    raw = os.environ.get("DOTCAPTCHA_DB_PATH", str(WORKSPACE_ROOT / "data" / "dotcaptcha.db"))
    p = Path(raw)
    if not p.is_absolute():
        p = (WORKSPACE_ROOT / p).resolve()
    return p


def _database_url() -> Optional[str]:
    return os.environ.get("DATABASE_URL")


@lru_cache(maxsize=1)
def _backend() -> ChallengeStore:
    database_url = _database_url()
    ttl = challenge_ttl_seconds()
    if database_url and database_url.startswith(("postgres://", "postgresql://")):
        return PostgresChallengeStore(database_url, ttl_seconds=ttl)
    return SQLiteChallengeStore(_resolve_sqlite_path(database_url), ttl_seconds=ttl)


def reset_backend_cache_for_tests() -> None:
    _backend.cache_clear()


def init_db() -> None:
    _backend().init_db()


def ping() -> None:
    _backend().ping()


def create_challenge(length: int) -> str:
    return _backend().create_challenge(length)


def get_digits(challenge_id: str) -> Optional[list[int]]:
    return _backend().get_digits(challenge_id)


def reload_challenge(challenge_id: str) -> bool:
    return _backend().reload_challenge(challenge_id)


def verify_challenge(challenge_id: str, answer: str) -> bool:
    return _backend().verify_challenge(challenge_id, answer)


def purge_expired() -> int:
    return _backend().purge_expired()
