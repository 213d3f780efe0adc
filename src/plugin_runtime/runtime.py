# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Runtime — the per-event handle plugins reach through ``event.runtime``.

Bundles frequently used per-event values (sender identity, credentialed API
clients) and the image render entry point so plugins do not depend on the
host's directory layout.

Dependency graph: runtime.py -> session_cache.py, render.py, identity.py, event.py.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from .api_client import ApiClient
from .identity import ApiClientFactory, IdentityResolver, ResolvedIdentity, Tier, UserRecord
from .logging_config import bind_event, unbind_event
from .session_cache import SessionResourceCache

if TYPE_CHECKING:
    from .event import Event
    from .render import BeforeRender, RenderEngine, RenderPipeline, ResponseMode

logger = logging.getLogger(__name__)


class Runtime:
    """Per-event runtime. Create with :func:`attach`, call :func:`detach` when the event is handled."""

    def __init__(
        self,
        event: Event,
        *,
        resolver: IdentityResolver,
        pipeline: RenderPipeline,
        client_factory: ApiClientFactory = ApiClient,
    ) -> None:
        self.event = event
        self.pipeline = pipeline
        self.resources = SessionResourceCache(event, resolver, client_factory)

    # ── Sender identity ──────────────────────────────────────────────

    @property
    def user(self) -> UserRecord | None:
        return self.event.user

    @property
    def uid(self) -> str | None:
        return self.user.uid if self.user is not None else None

    @property
    def has_credential(self) -> bool:
        return self.user is not None and self.user.has_credential

    # ── Unsupported legacy accessors ─────────────────────────────────

    @property
    def cfg(self) -> bool:
        logger.debug("event.runtime.cfg is not supported, returning False")
        return False

    @property
    def gs_cfg(self) -> bool:
        logger.debug("event.runtime.gs_cfg is not supported, returning False")
        return False

    @property
    def renderer(self) -> RenderEngine:
        return self.pipeline.engine

    # ── Identity / client resolution ─────────────────────────────────

    async def get_identity(self, tier: Tier | str = Tier.ALL) -> ResolvedIdentity:
        """Identity for *tier* (``all``: anyone, ``cookie``: must carry a cookie). Falsy when not found."""
        return await self.resources.resolve_identity(tier)

    async def get_client(self, tier: Tier | str = Tier.ALL, options: dict[str, Any] | None = None) -> Any | None:
        """API client for *tier*, or ``None`` without uid and cookie."""
        return await self.resources.resolve_client(tier, options)

    def create_client(self, uid: str, credential: str, options: dict[str, Any] | None = None) -> Any:
        return self.resources.create_client(uid, credential, options)

    async def get_uid(self) -> str | None:
        """uid of the identity this event targets, prompting the sender to bind one if none.

        The prompt goes out at most once per event (``event.bind_prompt_sent``).
        """
        identity = await self.resources.resolve_identity(Tier.ALL)
        if identity.uid:
            return identity.uid

        if not self.event.bind_prompt_sent:
            self.event.bind_prompt_sent = True
            try:
                await self.event.reply(self.pipeline.config.bind_prompt)
            except Exception:
                logger.warning("Bind prompt delivery failed", exc_info=True)
        return None

    # ── Rendering ────────────────────────────────────────────────────

    async def render(
        self,
        namespace: str,
        template_path: str,
        data: dict[str, Any] | None = None,
        *,
        response_mode: ResponseMode | str = "default",
        before_render: BeforeRender | None = None,
    ) -> Any:
        """Render a plugin template and reply with the image. See :meth:`RenderPipeline.render`."""
        return await self.pipeline.render(
            namespace,
            template_path,
            data,
            reply_channel=self.event.reply_channel,
            response_mode=response_mode,
            before_render=before_render,
        )


async def attach(
    event: Event,
    *,
    resolver: IdentityResolver,
    pipeline: RenderPipeline,
    client_factory: ApiClientFactory = ApiClient,
) -> Runtime:
    """Create the event's Runtime, resolve the sender and expose it as ``event.runtime``."""
    bind_event(event_id=event.event_id)
    runtime = Runtime(event, resolver=resolver, pipeline=pipeline, client_factory=client_factory)
    event.runtime = runtime
    try:
        event.user = await resolver.resolve_user(event)
    except Exception:
        logger.warning("Sender lookup failed", exc_info=True)
        event.user = None
    event.is_v2 = True
    return runtime


def detach(event: Event) -> None:
    """End of event handling: stop tagging log lines with this event's id."""
    unbind_event("event_id")
    logger.debug("Runtime detached from event %s", event.event_id)
