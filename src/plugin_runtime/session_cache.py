# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""SessionResourceCache — per-event memo of identity lookups, keyed by access tier.

Pure Python module — no browser dependencies.

Lifetime is exactly one event: the cache is created with the event's
``Runtime`` and discarded with it.  Entries are never invalidated.
API clients are derived on every call and never cached, so a credential
replaced mid-event is never reused from a stale client.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from .identity import ApiClientFactory, IdentityResolver, ResolvedIdentity, Tier, lookup_mode_for

if TYPE_CHECKING:
    from .event import Event

logger = logging.getLogger(__name__)


class SessionResourceCache:
    """Resolve identities once per tier and build credentialed clients from them."""

    def __init__(
        self,
        event: Event,
        resolver: IdentityResolver,
        client_factory: ApiClientFactory,
    ) -> None:
        self._event = event
        self._resolver = resolver
        self._client_factory = client_factory
        self._resolved_by_tier: dict[Tier, ResolvedIdentity] = {}
        self._tier_locks: dict[Tier, asyncio.Lock] = {tier: asyncio.Lock() for tier in Tier}

    def cached(self, tier: Tier | str) -> ResolvedIdentity | None:
        """Return the cached record for *tier* without resolving."""
        return self._resolved_by_tier.get(Tier(tier))

    async def resolve_identity(self, tier: Tier | str = Tier.ALL) -> ResolvedIdentity:
        """Return the identity for *tier*, asking the resolver at most once per event.

        Never raises for lookup failures: a resolver error or a ``None`` result
        is cached as the empty identity.
        """
        tier = Tier(tier)
        cached = self._resolved_by_tier.get(tier)
        if cached is not None:
            return cached

        async with self._tier_locks[tier]:
            # a concurrent caller may have finished while we waited
            cached = self._resolved_by_tier.get(tier)
            if cached is not None:
                return cached

            mode = lookup_mode_for(tier)
            try:
                identity = await self._resolver.resolve(self._event, mode)
            except Exception:
                logger.warning("Identity lookup failed (tier=%s, mode=%s)", tier, mode, exc_info=True)
                identity = None

            if identity is None:
                identity = ResolvedIdentity.empty()
            self._resolved_by_tier[tier] = identity
            logger.debug(
                "Identity resolved (tier=%s, found=%s, has_credential=%s)",
                tier,
                bool(identity),
                identity.has_credential,
            )
            return identity

    async def resolve_client(self, tier: Tier | str = Tier.ALL, options: dict[str, Any] | None = None) -> Any | None:
        """Build an API client for *tier*, or ``None`` when uid or credential is missing."""
        identity = await self.resolve_identity(tier)
        if identity.uid and identity.credential:
            return self._client_factory(identity.uid, identity.credential, options or {})
        return None

    def create_client(self, uid: str, credential: str, options: dict[str, Any] | None = None) -> Any:
        """Build an API client from an already verified uid/credential pair."""
        return self._client_factory(uid, credential, options or {})
