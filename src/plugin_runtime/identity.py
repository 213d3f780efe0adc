# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Identity records, access tiers and the collaborator protocols that produce them.

Dependency graph: identity.py <- session_cache.py, identity.py <- runtime.py (leaf).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .event import Event


class Tier(StrEnum):
    """Access tier a caller requires from the resolved identity."""

    ALL = "all"  # any identity, credential optional
    COOKIE = "cookie"  # identity must carry a credential to be useful


class LookupMode(StrEnum):
    """Lookup strictness passed to the identity resolver."""

    ROLE_INDEX = "roleIndex"
    DETAIL = "detail"


def lookup_mode_for(tier: Tier | str) -> LookupMode:
    """``cookie`` needs the stricter ``detail`` lookup, everything else ``roleIndex``."""
    return LookupMode.DETAIL if Tier(tier) is Tier.COOKIE else LookupMode.ROLE_INDEX


@dataclass(frozen=True, slots=True)
class ResolvedIdentity:
    """Who a request concerns, plus the access secret when one was granted."""

    uid: str = ""
    credential: str = ""

    def __bool__(self) -> bool:
        return bool(self.uid)

    @property
    def has_credential(self) -> bool:
        return bool(self.credential)

    @classmethod
    def empty(cls) -> ResolvedIdentity:
        return _EMPTY


_EMPTY = ResolvedIdentity()


@dataclass(frozen=True, slots=True)
class UserRecord:
    """Identity bound to the sender of the originating message."""

    uid: str = ""
    has_credential: bool = False


@runtime_checkable
class IdentityResolver(Protocol):
    """Looks up identities for an event. Implemented by the bot host."""

    async def resolve(self, event: Event, mode: LookupMode) -> ResolvedIdentity | None: ...

    async def resolve_user(self, event: Event) -> UserRecord | None: ...


class ApiClientFactory(Protocol):
    """Builds a credentialed remote-API client."""

    def __call__(self, uid: str, credential: str, options: dict[str, Any] | None = None) -> Any: ...
