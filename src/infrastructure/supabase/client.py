from __future__ import annotations

import json
import logging
import os
import socket
import time
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


def json_default(obj: Any) -> Any:
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, (date, datetime)):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


class SupabaseHTTPError(RuntimeError):
    def __init__(self, status: int | None, payload: Any) -> None:
        self.status = status
        self.payload = payload if isinstance(payload, dict) else {}
        super().__init__(self.message or f"Supabase request failed status={status}")

    @property
    def message(self) -> str | None:
        for key in ("message", "details", "error_description", "msg"):
            value = self.payload.get(key)
            if value:
                return str(value)
        return None


class SupabaseClient:
    """Thin JSON-over-HTTP client for the Supabase REST and auth endpoints."""

    def __init__(
        self,
        base_url: str | None = None,
        anon_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.base_url = (base_url or os.getenv("SUPABASE_URL", "")).rstrip("/")
        self.anon_key = anon_key or os.getenv("SUPABASE_ANON_KEY", "")
        self.timeout_seconds = timeout_seconds or float(os.getenv("SUPABASE_TIMEOUT_SECONDS", "30"))

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.anon_key)

    def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        params: dict[str, str] | None = None,
        payload: Any = None,
        prefer: str | None = None,
    ) -> Any:
        if not self.configured:
            raise SupabaseHTTPError(None, {"message": "Supabase is not configured (SUPABASE_URL / SUPABASE_ANON_KEY)"})

        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{urllib.parse.urlencode(params, safe='.,*()')}"
        headers = {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token or self.anon_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        data = json.dumps(payload, default=json_default).encode("utf-8") if payload is not None else None
        req = urllib.request.Request(url=url, data=data, headers=headers, method=method)

        started = time.perf_counter()
        logger.info("SupabaseClient request start method=%s path=%s timeout=%.1fs", method, path, self.timeout_seconds)
        try:
            with urllib.request.urlopen(req, timeout=self.timeout_seconds) as resp:
                raw = resp.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            body = self._read_error_body(exc)
            logger.warning(
                "SupabaseClient request failed method=%s path=%s status=%s after %.2fs",
                method,
                path,
                exc.code,
                time.perf_counter() - started,
            )
            raise SupabaseHTTPError(exc.code, body) from exc
        except (socket.timeout, urllib.error.URLError, TimeoutError) as exc:
            logger.warning("SupabaseClient request failed method=%s path=%s after %.2fs: %s", method, path, time.perf_counter() - started, exc)
            raise SupabaseHTTPError(None, {"message": f"Network error: {exc}"}) from exc

        logger.info("SupabaseClient request complete method=%s path=%s in %.2fs", method, path, time.perf_counter() - started)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            raise SupabaseHTTPError(None, {"message": f"Invalid JSON from Supabase: {exc}"}) from exc

    def _read_error_body(self, exc: urllib.error.HTTPError) -> dict[str, Any]:
        try:
            raw = exc.read().decode("utf-8")
        except (OSError, UnicodeDecodeError):
            return {}
        if not raw:
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            return {"message": raw}
        return parsed if isinstance(parsed, dict) else {}
