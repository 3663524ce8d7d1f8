# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Envelope wrapping and per-section slicing.

Elementor refuses bare element arrays ("Invalid Content"), so both the
full site and every section slice are wrapped in the same envelope shape.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from elementormap import (
    ConversionResult,
    ConversionStats,
    ElementorElement,
    ElementorEnvelope,
    SectionSlice,
)
from elementormap.config import ENVELOPE_TYPE, ENVELOPE_VERSION, FULL_SITE_TITLE
from elementormap.loader import element_tag

# PT-BR display names shown in the export list
_SECTION_NAMES = {
    "header": "Cabeçalho",
    "footer": "Rodapé",
    "nav": "Menu de Navegação",
    "section": "Sessão",
    "article": "Artigo",
    "aside": "Lateral (Aside)",
}
_FALLBACK_SECTION_NAME = "Container"


def wrap_envelope(
    elements: Sequence[ElementorElement],
    title: str,
    *,
    version: str = ENVELOPE_VERSION,
) -> ElementorEnvelope:
    return ElementorEnvelope(version=version, title=title, type=ENVELOPE_TYPE, content=list(elements))


def section_name(el) -> str:
    """Display name for a top-level node, e.g. ``Cabeçalho (top)``."""
    name = _SECTION_NAMES.get(element_tag(el), _FALLBACK_SECTION_NAME)
    node_id = (el.get("id") or "").strip()
    return f"{name} ({node_id})" if node_id else name


def section_id(el, position: int) -> str:
    """The node's own id, else ``section-<position>`` (1-based)."""
    return (el.get("id") or "").strip() or f"section-{position}"


def build_slice(el, element: ElementorElement, position: int, *, version: str = ENVELOPE_VERSION) -> SectionSlice:
    name = section_name(el)
    return SectionSlice(
        name=name,
        id=section_id(el, position),
        json_content=wrap_envelope([element], name, version=version),
    )


def assemble_result(
    built: Sequence[tuple[Any, ElementorElement]],
    stats: ConversionStats,
    *,
    title: str = FULL_SITE_TITLE,
    version: str = ENVELOPE_VERSION,
    timings: dict[str, float] | None = None,
) -> ConversionResult:
    """Full-site envelope + one slice per built root, in the same order."""
    slices = tuple(
        build_slice(el, element, position, version=version) for position, (el, element) in enumerate(built, start=1)
    )
    full_site = wrap_envelope([element for _, element in built], title, version=version)
    return ConversionResult(
        full_site=full_site,
        sections=slices,
        stats=stats,
        timings=dict(timings or {}),
    )
