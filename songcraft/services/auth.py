"""API key selection for the generation capability."""

from __future__ import annotations

import logging
import os

from songcraft.errors import AuthenticationRequired

log = logging.getLogger(__name__)

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


class ApiKeySelector:
    """Holds the API key selected for this process.

    The key is looked up from the environment on construction and can be
    replaced through ``select_api_key``. It is never validated here; a bad
    key surfaces as a generation failure.
    """

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key or self._key_from_env()

    @staticmethod
    def _key_from_env() -> str | None:
        for name in API_KEY_ENV_VARS:
            value = os.environ.get(name, "").strip()
            if value:
                log.info("Using API key from %s", name)
                return value
        return None

    def has_selected_api_key(self) -> bool:
        return bool(self._api_key)

    def select_api_key(self, api_key: str) -> None:
        api_key = api_key.strip()
        if not api_key:
            raise AuthenticationRequired("API key must not be empty.")
        self._api_key = api_key
        log.info("API key selected")

    def require_api_key(self) -> str:
        if not self._api_key:
            raise AuthenticationRequired()
        return self._api_key
