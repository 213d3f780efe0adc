# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Event — the dispatcher-owned record of one inbound message.

Leaf module with minimal dependencies.  The runtime only reads ``user`` and
``reply_channel`` and writes the two per-event flags below.
"""

from __future__ import annotations

import dataclasses
import uuid
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .identity import UserRecord
    from .runtime import Runtime


@runtime_checkable
class ReplyChannel(Protocol):
    """Delivers a response to wherever the event came from."""

    async def send(self, payload: Any) -> Any: ...


@dataclasses.dataclass(slots=True, kw_only=True)
class Event:
    """Per-event state handed to plugin command handlers.

    ``bind_prompt_sent`` means "registration guidance was already sent while
    handling this event"; it is set once and never cleared.
    """

    reply_channel: ReplyChannel = dataclasses.field(repr=False)
    event_id: str = dataclasses.field(default_factory=lambda: uuid.uuid4().hex[:12])
    user: UserRecord | None = None
    bind_prompt_sent: bool = False
    is_v2: bool = False
    runtime: Runtime | None = dataclasses.field(default=None, repr=False)

    async def reply(self, payload: Any) -> Any:
        return await self.reply_channel.send(payload)
