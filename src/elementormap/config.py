# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Converter configuration.

Defaults reproduce the desktop conversion profile. Every knob can be
overridden through ``ELEMENTORMAP_*`` environment variables via
:meth:`ConverterConfig.from_env`.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_WIDTH = 1200  # desktop viewport simulation
DEFAULT_TEXT_LENGTH_THRESHOLD = 50
DEFAULT_TEXT_COLOR = "rgb(224, 224, 224)"  # body color of the generated pages
ENVELOPE_VERSION = "0.4"
ENVELOPE_TYPE = "page"
FULL_SITE_TITLE = "Site Completo AI"
DEFAULT_MAX_DEPTH = 200


@dataclass(frozen=True)
class ConverterConfig:
    """Tunable constants for one conversion call."""

    viewport_width: int = DEFAULT_VIEWPORT_WIDTH
    text_length_threshold: int = DEFAULT_TEXT_LENGTH_THRESHOLD
    default_text_color: str = DEFAULT_TEXT_COLOR
    envelope_version: str = ENVELOPE_VERSION
    full_site_title: str = FULL_SITE_TITLE
    button_class_markers: tuple[str, ...] = ("btn",)
    max_depth: int = DEFAULT_MAX_DEPTH
    bind_css_selectors: bool = True  # False keeps Elementor's literal "selector" token

    @classmethod
    def from_env(cls, base: ConverterConfig | None = None) -> ConverterConfig:
        """Apply ``ELEMENTORMAP_*`` overrides on top of *base* (or defaults)."""
        cfg = base or cls()
        overrides: dict = {}

        for env_name, attr in (
            ("ELEMENTORMAP_VIEWPORT_WIDTH", "viewport_width"),
            ("ELEMENTORMAP_TEXT_THRESHOLD", "text_length_threshold"),
            ("ELEMENTORMAP_MAX_DEPTH", "max_depth"),
        ):
            raw = os.environ.get(env_name, "").strip()
            if not raw:
                continue
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Ignoring %s=%r: not an integer", env_name, raw)
                continue
            if value <= 0:
                logger.warning("Ignoring %s=%r: must be positive", env_name, raw)
                continue
            overrides[attr] = value

        env_title = os.environ.get("ELEMENTORMAP_FULL_SITE_TITLE", "").strip()
        if env_title:
            overrides["full_site_title"] = env_title

        env_bind = os.environ.get("ELEMENTORMAP_BIND_CSS", "").strip().lower()
        if env_bind in ("0", "false", "no"):
            overrides["bind_css_selectors"] = False
        elif env_bind in ("1", "true", "yes"):
            overrides["bind_css_selectors"] = True

        return replace(cfg, **overrides) if overrides else cfg
