# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import plugin_runtime  # noqa: F401
except ImportError:
    raise ImportError("plugin_runtime is not installed. Run: pip install -e '.[dev]'") from None

from unittest.mock import AsyncMock, MagicMock

import pytest

from plugin_runtime.config import RuntimeConfig
from plugin_runtime.event import Event
from plugin_runtime.identity import ResolvedIdentity, UserRecord
from plugin_runtime.render import RenderPipeline


@pytest.fixture
def config(tmp_path):
    """RuntimeConfig rooted in tmp_path, with the data dir already present."""
    (tmp_path / "data").mkdir()
    return RuntimeConfig(root_dir=tmp_path)


@pytest.fixture
def reply_channel():
    channel = MagicMock()
    channel.send = AsyncMock(return_value="msg-1")
    return channel


@pytest.fixture
def event(reply_channel):
    return Event(reply_channel=reply_channel, event_id="evt000000001")


@pytest.fixture
def resolver():
    """IdentityResolver stub: uid + cookie for every lookup."""
    r = MagicMock()
    r.resolve = AsyncMock(return_value=ResolvedIdentity(uid="100000001", credential="ltoken=abc"))
    r.resolve_user = AsyncMock(return_value=UserRecord(uid="100000001", has_credential=True))
    return r


@pytest.fixture
def engine():
    """RenderEngine stub returning a fixed encoded image."""
    e = MagicMock()
    e.capture = AsyncMock(return_value="IMG_B64")
    return e


@pytest.fixture
def pipeline(config, engine):
    return RenderPipeline(config, engine)
