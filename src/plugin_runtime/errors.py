# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""plugin_runtime exception hierarchy.

Identity and credential lookups never raise: absence is a normal branch and
is reported with ``None`` or an empty ``ResolvedIdentity``.  Only conditions
that point at a broken installation surface as exceptions.
"""

from __future__ import annotations


class PluginRuntimeError(Exception):
    """Base exception for all plugin_runtime errors."""


class ProvisioningError(PluginRuntimeError):
    """Required data directory could not be created (configuration error)."""

    def __init__(self, message: str, *, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class RenderEngineError(PluginRuntimeError):
    """Render engine used outside its lifecycle (not started, already stopped)."""
