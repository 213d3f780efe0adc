# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""RenderPipeline — template reference + data in, rendered image (or delivery) out.

Steps per render:
1. normalize the logical template path (strip ``.html``, drop empty segments)
2. provision ``{data_dir}/html/{namespace}/{path}`` one segment at a time
3. compute the resource root relative to the rendered page's directory
4. assemble render data (caller data + derived fields)
5. apply ``before_render`` (replacement, never merge)
6. optional debug snapshot under ``{data_dir}/ViewData/{namespace}``
7. capture via the render engine
8. map the capture to the requested response mode

Only steps 1 and 2 raise (``ValueError`` for dot segments, ``ProvisioningError``).
A failed capture means "nothing to send" and is not an error.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .errors import ProvisioningError, RenderEngineError

if TYPE_CHECKING:
    from .config import RuntimeConfig
    from .event import ReplyChannel

logger = logging.getLogger(__name__)

# data/html/{namespace} sits three levels below the process root
RES_PATH_BASE_DEPTH = 3
HTML_DIR = "html"
DEBUG_DIR = "ViewData"
TEMPLATE_SUFFIX = ".html"
WAIT_UNTIL = "networkidle"

BeforeRender = Callable[[dict[str, Any]], "dict[str, Any] | None"]


class ResponseMode(StrEnum):
    """What ``render`` returns and whether it delivers the image itself."""

    DEFAULT = "default"  # deliver, return True
    MESSAGE_ID = "messageId"  # deliver, return the delivery result
    BASE64 = "base64"  # do not deliver, return the encoded image

    @classmethod
    def _missing_(cls, value: object) -> ResponseMode | None:
        if value in ("", None):
            return cls.DEFAULT
        if value == "msgId":
            return cls.MESSAGE_ID
        return None


@runtime_checkable
class RenderEngine(Protocol):
    """Turns ``(namespace/path, render data)`` into an encoded image, or a falsy value."""

    async def capture(self, target_key: str, data: dict[str, Any]) -> str | None: ...


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


def template_segments(template_path: str) -> list[str]:
    """Split a logical template path into its non-empty segments (``.html`` stripped).

    Raises:
        ValueError: a segment is ``.`` or ``..``; paths stay inside the namespace.
    """
    segments = [p for p in template_path.removesuffix(TEMPLATE_SUFFIX).split("/") if p]
    if any(p in (".", "..") for p in segments):
        raise ValueError(f"Template path must not contain relative segments: {template_path!r}")
    return segments


def normalize_template_path(template_path: str) -> str:
    """Canonical slash path: no ``.html`` suffix, no leading/trailing/doubled separators.

    >>> normalize_template_path("/a//b.html")
    'a/b'
    """
    return "/".join(template_segments(template_path))


def resource_root(namespace: str, segments: list[str]) -> str:
    """Relative URL from the rendered page's directory to ``plugins/{namespace}/resources/``."""
    hops = "../" * (RES_PATH_BASE_DEPTH + len(segments))
    return f"{hops}plugins/{namespace}/resources/"


def snapshot_filename(normalized_path: str) -> str:
    return f"{normalized_path.replace('/', '_')}.json"


def provision_dirs(base_dir: Path, relative: str) -> Path:
    """Create each segment of *relative* under *base_dir* if absent; return the leaf.

    Existing directories are a no-op, including one created concurrently by
    another event between the check and the ``mkdir``.  Any other filesystem
    failure is a configuration error.
    """
    current = Path(base_dir)
    for part in relative.split("/"):
        if not part:
            continue
        current = current / part
        if current.is_dir():
            continue
        try:
            current.mkdir()
        except FileExistsError:
            if not current.is_dir():
                raise ProvisioningError(
                    f"Cannot create data directory {current}: a file is in the way",
                    path=str(current),
                ) from None
        except OSError as exc:
            raise ProvisioningError(f"Cannot create data directory {current}: {exc}", path=str(current)) from exc
    return current


# ---------------------------------------------------------------------------
# RenderPipeline
# ---------------------------------------------------------------------------


class RenderPipeline:
    """Shared by all events; holds no per-event state."""

    def __init__(self, config: RuntimeConfig, engine: RenderEngine) -> None:
        self.config = config
        self.engine = engine

    @property
    def data_dir(self) -> Path:
        return self.config.resolved_data_dir

    def build_render_data(self, namespace: str, segments: list[str], data: dict[str, Any]) -> dict[str, Any]:
        path = "/".join(segments)
        return {
            **data,
            "_namespace": namespace,
            "_html_path": path,
            "res_path": resource_root(namespace, segments),
            "tpl_file": f"./plugins/{namespace}/resources/{path}{TEMPLATE_SUFFIX}",
            "save_id": data.get("save_id") or data.get("saveId") or (segments[-1] if segments else ""),
            "page_goto_params": {"wait_until": WAIT_UNTIL},
        }

    def write_debug_snapshot(self, namespace: str, path: str, data: dict[str, Any]) -> Path | None:
        """Dump the final render data as JSON for template authors.

        Best-effort: failures are logged and swallowed.
        """
        try:
            save_dir = provision_dirs(self.data_dir, f"{DEBUG_DIR}/{namespace}")
            target = save_dir / snapshot_filename(path)
            target.write_text(json.dumps(data, ensure_ascii=False, default=str), encoding="utf-8")
        except (ProvisioningError, OSError, TypeError, ValueError):
            logger.warning("Debug snapshot write failed (namespace=%s)", namespace, exc_info=True)
            return None
        logger.debug("Debug snapshot written: %s", target)
        return target

    async def render(
        self,
        namespace: str,
        template_path: str,
        data: dict[str, Any] | None = None,
        *,
        reply_channel: ReplyChannel | None = None,
        response_mode: ResponseMode | str = ResponseMode.DEFAULT,
        before_render: BeforeRender | None = None,
    ) -> Any:
        """Render *template_path* of *namespace* and deliver or return the image.

        Returns:
            ``base64``: the engine output as-is (possibly falsy), never delivered.
            ``messageId``: the reply channel's delivery result.
            ``default``: ``True``, also when capture produced nothing.

        Raises:
            ValueError: *template_path* has a ``.`` or ``..`` segment.
            ProvisioningError: the output directory could not be created.
            RenderEngineError: the engine was used outside its lifecycle.
        """
        mode = ResponseMode(response_mode)
        segments = template_segments(template_path)
        path = "/".join(segments)

        provision_dirs(self.data_dir, f"{HTML_DIR}/{namespace}/{path}")

        render_data = self.build_render_data(namespace, segments, dict(data or {}))

        if before_render is not None:
            replaced = before_render(render_data)
            if replaced is not None:
                render_data = replaced

        if self.config.web_debug:
            self.write_debug_snapshot(namespace, path, render_data)

        try:
            image = await self.engine.capture(f"{namespace}/{path}", render_data)
        except RenderEngineError:
            raise
        except Exception:
            logger.warning("Render engine failed for %s/%s", namespace, path, exc_info=True)
            image = None

        if mode is ResponseMode.BASE64:
            return image
        if not image:
            logger.info("Nothing to send: capture returned no image (%s/%s)", namespace, path)
            return True
        if reply_channel is None:
            logger.warning("No reply channel for %s/%s, image dropped", namespace, path)
            return True

        result = await reply_channel.send(image)
        return result if mode is ResponseMode.MESSAGE_ID else True
