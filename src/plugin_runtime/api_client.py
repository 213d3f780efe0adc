# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ApiClient — credential-bearing handle for remote API calls on behalf of one uid.

Construction is cheap and does no I/O; the underlying ``httpx.AsyncClient``
is opened on first use.  Request signing and endpoint semantics belong to
the host's API adapter, which receives the ready client.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class ApiClient:
    """Remote-API client bound to a uid and its session cookie."""

    def __init__(self, uid: str, credential: str, options: dict[str, Any] | None = None) -> None:
        self.uid = uid
        self.options: dict[str, Any] = dict(options or {})
        self._credential = credential
        self._http: httpx.AsyncClient | None = None

    def __repr__(self) -> str:
        # credential stays out of logs
        return f"ApiClient(uid={self.uid!r}, has_credential={bool(self._credential)})"

    @property
    def has_credential(self) -> bool:
        return bool(self._credential)

    @property
    def http(self) -> httpx.AsyncClient:
        """Lazily opened HTTP client carrying the cookie header."""
        if self._http is None or self._http.is_closed:
            headers = dict(self.options.get("headers") or {})
            if self._credential:
                headers["Cookie"] = self._credential
            self._http = httpx.AsyncClient(
                base_url=self.options.get("base_url", ""),
                headers=headers,
                timeout=self.options.get("timeout", DEFAULT_TIMEOUT),
            )
            logger.debug("HTTP client opened for uid=%s", self.uid)
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()
