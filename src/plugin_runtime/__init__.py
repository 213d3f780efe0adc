# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""plugin_runtime: per-event runtime for chat-bot plugins.

Attach one ``Runtime`` to each inbound event to get:
- identity and credentialed API clients, resolved once per access tier
- ``render()``: plugin HTML template + data -> screenshot -> reply
"""

from __future__ import annotations

from .api_client import ApiClient
from .config import RuntimeConfig
from .errors import PluginRuntimeError, ProvisioningError, RenderEngineError
from .event import Event, ReplyChannel
from .identity import IdentityResolver, LookupMode, ResolvedIdentity, Tier, UserRecord
from .render import RenderEngine, RenderPipeline, ResponseMode, normalize_template_path
from .runtime import Runtime, attach, detach
from .session_cache import SessionResourceCache

__all__ = [
    "ApiClient",
    "Event",
    "IdentityResolver",
    "LookupMode",
    "PluginRuntimeError",
    "ProvisioningError",
    "RenderEngine",
    "RenderEngineError",
    "RenderPipeline",
    "ReplyChannel",
    "ResolvedIdentity",
    "ResponseMode",
    "Runtime",
    "RuntimeConfig",
    "SessionResourceCache",
    "Tier",
    "UserRecord",
    "attach",
    "detach",
    "normalize_template_path",
]
