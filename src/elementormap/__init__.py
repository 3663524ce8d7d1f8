# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""ElementorMap: AI-generated HTML → Elementor container/widget JSON.

Converts a self-contained HTML+CSS document into:
- full_site: one Elementor envelope holding the whole page
- sections: one standalone envelope per top-level section, ready for import
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class ElementKind(StrEnum):
    """Elementor ``elType`` discriminator. Section/column are never emitted."""

    CONTAINER = "container"
    WIDGET = "widget"


class WidgetType(StrEnum):
    """Elementor ``widgetType`` values produced by the classifier."""

    HEADING = "heading"
    TEXT_EDITOR = "text-editor"
    IMAGE = "image"
    BUTTON = "button"
    HTML = "html"


@dataclass
class ElementorElement:
    """A single node of the Elementor tree (container or widget)."""

    id: str
    el_type: ElementKind
    settings: dict[str, Any] = field(default_factory=dict)
    elements: list[ElementorElement] = field(default_factory=list)
    widget_type: WidgetType | None = None  # widgets only
    is_inner: bool = False

    @property
    def is_widget(self) -> bool:
        return self.el_type == ElementKind.WIDGET

    @property
    def is_container(self) -> bool:
        return self.el_type == ElementKind.CONTAINER

    def iter_tree(self):
        """Yield this element and every descendant, depth-first in document order."""
        yield self
        for child in self.elements:
            yield from child.iter_tree()

    def to_dict(self) -> dict[str, Any]:
        if self.is_widget:
            return {
                "id": self.id,
                "elType": str(self.el_type),
                "widgetType": str(self.widget_type),
                "settings": self.settings,
                "elements": [],
            }
        return {
            "id": self.id,
            "elType": str(self.el_type),
            "isInner": self.is_inner,
            "settings": self.settings,
            "elements": [child.to_dict() for child in self.elements],
        }


@dataclass
class ElementorEnvelope:
    """Mandatory top-level wrapper. Elementor rejects bare element arrays."""

    version: str
    title: str
    type: str
    content: list[ElementorElement] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "title": self.title,
            "type": self.type,
            "content": [el.to_dict() for el in self.content],
        }


@dataclass(frozen=True)
class SectionSlice:
    """One top-level section exported as its own importable envelope."""

    name: str  # PT-BR display name, e.g. "Cabeçalho (top)"
    id: str  # node id attribute or positional "section-N"
    json_content: ElementorEnvelope

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "id": self.id, "json_content": self.json_content.to_dict()}


@dataclass(frozen=True)
class ConversionStats:
    """Final counters of one conversion pass (see classifier.StatsCounter)."""

    widgets: int = 0
    sections: int = 0  # containers, at any depth
    custom_css_injected: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "widgets": self.widgets,
            "sections": self.sections,
            "customCssInjected": self.custom_css_injected,
        }


@dataclass(frozen=True)
class ConversionResult:
    """Everything one conversion call produces."""

    full_site: ElementorEnvelope
    sections: tuple[SectionSlice, ...]
    stats: ConversionStats
    timings: dict[str, float] = field(default_factory=dict, compare=False)

    @property
    def total_sections(self) -> int:
        return len(self.sections)

    def to_dict(self) -> dict[str, Any]:
        return {
            "full_site": self.full_site.to_dict(),
            "sections": [s.to_dict() for s in self.sections],
            "stats": self.stats.to_dict(),
        }
