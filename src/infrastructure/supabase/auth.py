from __future__ import annotations

import logging
import os

from infrastructure.auth.provider import AuthProvider
from infrastructure.supabase.client import SupabaseClient, SupabaseHTTPError

logger = logging.getLogger(__name__)


class SupabaseAuth(AuthProvider):
    """Session backed by a Supabase access token."""

    name = "supabase"

    def __init__(self, client: SupabaseClient | None = None, access_token: str | None = None) -> None:
        self._client = client or SupabaseClient()
        self._access_token = access_token or os.getenv("SUPABASE_ACCESS_TOKEN") or None
        self._user_id: str | None = None

    @property
    def access_token(self) -> str | None:
        return self._access_token

    def current_user_id(self) -> str | None:
        if not self._access_token:
            return None
        if self._user_id:
            return self._user_id
        try:
            body = self._client.request("GET", "/auth/v1/user", token=self._access_token)
        except SupabaseHTTPError as exc:
            logger.warning("SupabaseAuth could not resolve current user: %s", exc)
            return None
        user_id = body.get("id") if isinstance(body, dict) else None
        self._user_id = str(user_id) if user_id else None
        return self._user_id

    def sign_out(self) -> None:
        if self._access_token:
            try:
                self._client.request("POST", "/auth/v1/logout", token=self._access_token)
            except SupabaseHTTPError as exc:
                logger.warning("SupabaseAuth logout request failed: %s", exc)
        logger.info("SupabaseAuth signed out user_id=%s", self._user_id)
        self._access_token = None
        self._user_id = None
