# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Custom-CSS extraction for effects Elementor settings cannot express.

Each rule is independent and additive:
  - box-shadow with an alpha color  (neon glows, soft shadows)
  - backdrop-filter                 (glassmorphism; standard + -webkit-)
  - gradient background-image       (forced with !important)
  - non-zero border-radius
  - text color other than the page's default body color
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from elementormap.config import DEFAULT_TEXT_COLOR

SELECTOR_TOKEN = "selector"


def element_selector(element_id: str) -> str:
    """CSS selector Elementor renders for an element id."""
    return f".elementor-element-{element_id}"


@dataclass(frozen=True, slots=True)
class CssFragment:
    """Declaration blocks awaiting the selector of the node that owns them."""

    blocks: tuple[str, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.blocks)

    def render(self, selector: str = SELECTOR_TOKEN) -> str:
        return "".join(f"{selector} {{ {block} }} " for block in self.blocks)

    @property
    def template(self) -> str:
        """Unbound form, using Elementor's own ``selector`` placeholder."""
        return self.render(SELECTOR_TOKEN)

    def bind(self, element_id: str) -> str:
        return self.render(element_selector(element_id))


def extract_custom_css(style: Mapping[str, str], *, default_text_color: str = DEFAULT_TEXT_COLOR) -> CssFragment:
    """Collect the custom-CSS blocks for one node's computed style.

    Missing properties are simply absent; this never raises.
    """
    blocks: list[str] = []

    box_shadow = style.get("box-shadow") or ""
    if box_shadow and box_shadow != "none" and "rgba" in box_shadow:
        blocks.append(f"box-shadow: {box_shadow};")

    backdrop = style.get("backdrop-filter") or ""
    if backdrop and backdrop != "none":
        blocks.append(f"backdrop-filter: {backdrop}; -webkit-backdrop-filter: {backdrop};")

    background_image = style.get("background-image") or ""
    if "gradient" in background_image:
        blocks.append(f"background-image: {background_image} !important;")

    radius = style.get("border-radius") or ""
    if radius and radius != "0px":
        blocks.append(f"border-radius: {radius};")

    color = style.get("color") or ""
    if color and color != default_text_color:
        blocks.append(f"color: {color};")

    return CssFragment(tuple(blocks))
