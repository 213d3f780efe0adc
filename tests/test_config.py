# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for RuntimeConfig.from_env() — env var + argv parsing."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from plugin_runtime.config import (
    DEFAULT_BIND_PROMPT,
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_TIMEOUT_MS,
    RuntimeConfig,
)


class TestDefaults:
    def test_empty_env(self):
        cfg = RuntimeConfig.from_env({}, [])
        assert cfg.root_dir == Path.cwd()
        assert cfg.resolved_data_dir == Path.cwd() / "data"
        assert cfg.web_debug is False
        assert cfg.headless is True
        assert cfg.bind_prompt == DEFAULT_BIND_PROMPT
        assert cfg.page_timeout_ms == DEFAULT_PAGE_TIMEOUT_MS
        assert cfg.max_pages == DEFAULT_MAX_PAGES
        assert cfg.image_type == "jpeg"

    def test_frozen(self):
        cfg = RuntimeConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            cfg.web_debug = True  # type: ignore[misc]


class TestEnvOverrides:
    def test_paths(self, tmp_path):
        cfg = RuntimeConfig.from_env(
            {"PLUGIN_RUNTIME_ROOT": str(tmp_path), "PLUGIN_RUNTIME_DATA_DIR": str(tmp_path / "d")},
            [],
        )
        assert cfg.root_dir == tmp_path
        assert cfg.resolved_data_dir == tmp_path / "d"

    def test_data_dir_follows_root(self, tmp_path):
        cfg = RuntimeConfig.from_env({"PLUGIN_RUNTIME_ROOT": str(tmp_path)}, [])
        assert cfg.resolved_data_dir == tmp_path / "data"

    @pytest.mark.parametrize("value", ["1", "true", "YES"])
    def test_web_debug_env(self, value):
        assert RuntimeConfig.from_env({"PLUGIN_RUNTIME_WEB_DEBUG": value}, []).web_debug is True

    def test_web_debug_argv(self):
        assert RuntimeConfig.from_env({}, ["app.js", "web-debug"]).web_debug is True

    def test_headless_off(self):
        assert RuntimeConfig.from_env({"PLUGIN_RUNTIME_HEADLESS": "false"}, []).headless is False

    def test_numbers(self):
        cfg = RuntimeConfig.from_env(
            {
                "PLUGIN_RUNTIME_PAGE_TIMEOUT_MS": "5000",
                "PLUGIN_RUNTIME_MAX_PAGES": "2",
                "PLUGIN_RUNTIME_IMAGE_QUALITY": "70",
            },
            [],
        )
        assert (cfg.page_timeout_ms, cfg.max_pages, cfg.image_quality) == (5000, 2, 70)

    def test_invalid_number_falls_back(self, caplog):
        cfg = RuntimeConfig.from_env({"PLUGIN_RUNTIME_PAGE_TIMEOUT_MS": "soon"}, [])
        assert cfg.page_timeout_ms == DEFAULT_PAGE_TIMEOUT_MS
        assert "PLUGIN_RUNTIME_PAGE_TIMEOUT_MS" in caplog.text

    def test_max_pages_at_least_one(self):
        assert RuntimeConfig.from_env({"PLUGIN_RUNTIME_MAX_PAGES": "0"}, []).max_pages == 1

    def test_image_type(self):
        assert RuntimeConfig.from_env({"PLUGIN_RUNTIME_IMAGE_TYPE": "PNG"}, []).image_type == "png"
        assert RuntimeConfig.from_env({"PLUGIN_RUNTIME_IMAGE_TYPE": "gif"}, []).image_type == "jpeg"

    def test_bind_prompt(self):
        cfg = RuntimeConfig.from_env({"PLUGIN_RUNTIME_BIND_PROMPT": "bind first"}, [])
        assert cfg.bind_prompt == "bind first"
