# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime configuration read from ``PLUGIN_RUNTIME_*`` environment variables.

The bot host owns config files and CLI parsing; this module only reads the
handful of knobs the runtime itself needs.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUTHY = ("1", "true", "yes")

WEB_DEBUG_ARG = "web-debug"

DEFAULT_BIND_PROMPT = "Bind a UID with 【#bind + uid】, or send your cookie in a private chat to bind a cookie."
DEFAULT_PAGE_TIMEOUT_MS = 30000
DEFAULT_MAX_PAGES = 4
DEFAULT_IMAGE_TYPE = "jpeg"
DEFAULT_IMAGE_QUALITY = 90


def _env_flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring invalid %s=%r (expected integer), using %d", name, raw, default)
        return default


@dataclass(frozen=True, slots=True)
class RuntimeConfig:
    """Filesystem layout and rendering knobs shared by every event."""

    root_dir: Path = field(default_factory=Path.cwd)
    data_dir: Path | None = None  # defaults to {root_dir}/data
    web_debug: bool = False
    bind_prompt: str = DEFAULT_BIND_PROMPT
    headless: bool = True
    page_timeout_ms: int = DEFAULT_PAGE_TIMEOUT_MS
    max_pages: int = DEFAULT_MAX_PAGES
    image_type: str = DEFAULT_IMAGE_TYPE  # "jpeg" | "png"
    image_quality: int = DEFAULT_IMAGE_QUALITY  # jpeg only

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir if self.data_dir is not None else self.root_dir / "data"

    @classmethod
    def from_env(
        cls,
        env: Mapping[str, str] | None = None,
        argv: Sequence[str] | None = None,
    ) -> RuntimeConfig:
        """Build a config from environment variables.

        ``web-debug`` on the command line enables debug capture, same as
        ``PLUGIN_RUNTIME_WEB_DEBUG=1``.
        """
        env = os.environ if env is None else env
        argv = sys.argv if argv is None else argv

        env_root = env.get("PLUGIN_RUNTIME_ROOT", "").strip()
        root_dir = Path(env_root) if env_root else Path.cwd()

        env_data = env.get("PLUGIN_RUNTIME_DATA_DIR", "").strip()
        data_dir = Path(env_data) if env_data else None

        web_debug = _env_flag(env, "PLUGIN_RUNTIME_WEB_DEBUG") or WEB_DEBUG_ARG in argv

        bind_prompt = env.get("PLUGIN_RUNTIME_BIND_PROMPT", "").strip() or DEFAULT_BIND_PROMPT

        env_headless = env.get("PLUGIN_RUNTIME_HEADLESS", "").strip().lower()
        headless = env_headless not in ("0", "false", "no")

        image_type = env.get("PLUGIN_RUNTIME_IMAGE_TYPE", "").strip().lower() or DEFAULT_IMAGE_TYPE
        if image_type not in ("jpeg", "png"):
            logger.warning("Ignoring invalid PLUGIN_RUNTIME_IMAGE_TYPE=%r, using %s", image_type, DEFAULT_IMAGE_TYPE)
            image_type = DEFAULT_IMAGE_TYPE

        return cls(
            root_dir=root_dir,
            data_dir=data_dir,
            web_debug=web_debug,
            bind_prompt=bind_prompt,
            headless=headless,
            page_timeout_ms=_env_int(env, "PLUGIN_RUNTIME_PAGE_TIMEOUT_MS", DEFAULT_PAGE_TIMEOUT_MS),
            max_pages=max(1, _env_int(env, "PLUGIN_RUNTIME_MAX_PAGES", DEFAULT_MAX_PAGES)),
            image_type=image_type,
            image_quality=_env_int(env, "PLUGIN_RUNTIME_IMAGE_QUALITY", DEFAULT_IMAGE_QUALITY),
        )
