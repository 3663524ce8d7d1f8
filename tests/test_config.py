# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for config.py: defaults and ELEMENTORMAP_* overrides."""

from __future__ import annotations

import dataclasses

import pytest

from elementormap.config import (
    DEFAULT_TEXT_COLOR,
    DEFAULT_VIEWPORT_WIDTH,
    ENVELOPE_VERSION,
    FULL_SITE_TITLE,
    ConverterConfig,
)


class TestDefaults:
    def test_desktop_profile(self):
        cfg = ConverterConfig()
        assert cfg.viewport_width == DEFAULT_VIEWPORT_WIDTH == 1200
        assert cfg.text_length_threshold == 50
        assert cfg.default_text_color == DEFAULT_TEXT_COLOR == "rgb(224, 224, 224)"
        assert cfg.envelope_version == ENVELOPE_VERSION == "0.4"
        assert cfg.full_site_title == FULL_SITE_TITLE == "Site Completo AI"
        assert cfg.button_class_markers == ("btn",)
        assert cfg.bind_css_selectors is True

    def test_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            ConverterConfig().viewport_width = 800  # type: ignore[misc]


class TestFromEnv:
    def test_no_env_returns_defaults(self):
        assert ConverterConfig.from_env() == ConverterConfig()

    def test_integer_overrides(self, monkeypatch):
        monkeypatch.setenv("ELEMENTORMAP_VIEWPORT_WIDTH", "1440")
        monkeypatch.setenv("ELEMENTORMAP_TEXT_THRESHOLD", "80")
        monkeypatch.setenv("ELEMENTORMAP_MAX_DEPTH", "50")
        cfg = ConverterConfig.from_env()
        assert cfg.viewport_width == 1440
        assert cfg.text_length_threshold == 80
        assert cfg.max_depth == 50

    @pytest.mark.parametrize("raw", ["abc", "0", "-5", "12.5"])
    def test_invalid_integers_ignored(self, monkeypatch, caplog, raw):
        monkeypatch.setenv("ELEMENTORMAP_VIEWPORT_WIDTH", raw)
        with caplog.at_level("WARNING", logger="elementormap.config"):
            cfg = ConverterConfig.from_env()
        assert cfg.viewport_width == 1200
        assert "ELEMENTORMAP_VIEWPORT_WIDTH" in caplog.text

    def test_title_override(self, monkeypatch):
        monkeypatch.setenv("ELEMENTORMAP_FULL_SITE_TITLE", "  Landing  ")
        assert ConverterConfig.from_env().full_site_title == "Landing"

    @pytest.mark.parametrize(("raw", "expected"), [("0", False), ("false", False), ("NO", False), ("1", True)])
    def test_bind_css_flag(self, monkeypatch, raw, expected):
        monkeypatch.setenv("ELEMENTORMAP_BIND_CSS", raw)
        assert ConverterConfig.from_env().bind_css_selectors is expected

    def test_unrecognized_bind_value_keeps_base(self, monkeypatch):
        monkeypatch.setenv("ELEMENTORMAP_BIND_CSS", "maybe")
        base = ConverterConfig(bind_css_selectors=False)
        assert ConverterConfig.from_env(base) is base

    def test_overrides_apply_on_top_of_base(self, monkeypatch):
        monkeypatch.setenv("ELEMENTORMAP_TEXT_THRESHOLD", "10")
        base = ConverterConfig(full_site_title="Base")
        cfg = ConverterConfig.from_env(base)
        assert cfg.full_site_title == "Base"
        assert cfg.text_length_threshold == 10
