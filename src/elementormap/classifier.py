# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Node classification + Elementor tree building ("Container Only" protocol).

Every source element becomes exactly one of:
  - a widget (terminal): heading, text-editor, image, button, html
  - a container (structural): everything else, children recursed in order
  - nothing: non-visual tags (script, style, ...) at any depth

Widget rules are evaluated in the declared order of WIDGET_RULES and the
first match wins. Anything no rule claims falls through to the container
path, so unknown tags are always handled.
"""

from __future__ import annotations

import html
import logging
import random
import string
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from lxml import etree

from elementormap import ConversionStats, ElementKind, ElementorElement, WidgetType
from elementormap.config import ConverterConfig
from elementormap.css_extractor import CssFragment, extract_custom_css
from elementormap.loader import element_children, element_tag
from elementormap.normalizer import NON_VISUAL_TAGS
from elementormap.styles import TRANSPARENT, ComputedStyle, StyleResolver

logger = logging.getLogger(__name__)

_HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})
_TEXT_TAGS = frozenset({"p", "span", "label"})
_FORM_FIELD_TAGS = frozenset({"input", "textarea"})

_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_LENGTH = 7


# ── Markup helpers ────────────────────────────────────────────────────


def visible_text(el) -> str:
    """Whitespace-collapsed text content, close to the browser's innerText."""
    return " ".join((el.text_content() or "").split())


def inner_html(el) -> str:
    """Serialize the element's content (text + children), preserving inline markup."""
    parts = [html.escape(el.text, quote=False)] if el.text else []
    for child in el:
        parts.append(etree.tostring(child, encoding="unicode", method="html", with_tail=True))
    return "".join(parts).strip()


def outer_html(el) -> str:
    return etree.tostring(el, encoding="unicode", method="html", with_tail=False).strip()


# ── Ids ───────────────────────────────────────────────────────────────


class IdGenerator:
    """Elementor-style 7-char ids, unique within one conversion run."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.SystemRandom()
        self._issued: set[str] = set()

    def __call__(self) -> str:
        while True:
            candidate = "".join(self._rng.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))
            if candidate not in self._issued:
                self._issued.add(candidate)
                return candidate

    @property
    def issued(self) -> int:
        return len(self._issued)


# ── Build context ─────────────────────────────────────────────────────


@dataclass
class StatsCounter:
    """Mutable counters for one recursive pass, frozen into ConversionStats at the end."""

    widgets: int = 0
    sections: int = 0  # containers, at any depth
    custom_css_injected: bool = False

    def freeze(self) -> ConversionStats:
        return ConversionStats(
            widgets=self.widgets,
            sections=self.sections,
            custom_css_injected=self.custom_css_injected,
        )


@dataclass
class BuildContext:
    """Per-call state threaded through the recursion. Never shared between calls."""

    resolver: StyleResolver
    config: ConverterConfig
    stats: StatsCounter
    new_id: IdGenerator

    @classmethod
    def create(
        cls,
        resolver: StyleResolver,
        config: ConverterConfig | None = None,
        *,
        rng: random.Random | None = None,
    ) -> BuildContext:
        return cls(
            resolver=resolver,
            config=config or ConverterConfig(),
            stats=StatsCounter(),
            new_id=IdGenerator(rng),
        )

    def custom_css(self, fragment: CssFragment, element_id: str) -> str:
        if not fragment:
            return ""
        self.stats.custom_css_injected = True
        return fragment.bind(element_id) if self.config.bind_css_selectors else fragment.template


@dataclass(frozen=True, slots=True)
class NodeView:
    """Facts about one source element, computed once before rule evaluation."""

    el: Any
    tag: str
    style: ComputedStyle
    text: str
    has_children: bool

    @classmethod
    def of(cls, el, resolver: StyleResolver) -> NodeView:
        return cls(
            el=el,
            tag=element_tag(el),
            style=resolver.resolve(el),
            text=visible_text(el),
            has_children=bool(element_children(el)),
        )

    @property
    def classes(self) -> set[str]:
        return set((self.el.get("class") or "").split())


# ── Widget rules ──────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class WidgetRule:
    """One predicate → widget constructor pair."""

    name: str
    widget_type: WidgetType
    matches: Callable[[NodeView, ConverterConfig], bool]
    settings: Callable[[NodeView], dict[str, Any]]
    extracts_css: bool = True


def _is_text(view: NodeView, config: ConverterConfig) -> bool:
    if view.tag not in _TEXT_TAGS:
        return False
    # Long text with nested elements is a layout wrapper misusing a text tag
    return not (view.has_children and len(view.text) > config.text_length_threshold)


def _is_button(view: NodeView, config: ConverterConfig) -> bool:
    if view.tag == "button":
        return True
    return view.tag == "a" and not view.classes.isdisjoint(config.button_class_markers)


WIDGET_RULES: tuple[WidgetRule, ...] = (
    WidgetRule(
        name="heading",
        widget_type=WidgetType.HEADING,
        matches=lambda v, _c: v.tag in _HEADING_TAGS,
        settings=lambda v: {"title": v.text, "header_size": v.tag},
    ),
    WidgetRule(
        name="text",
        widget_type=WidgetType.TEXT_EDITOR,
        matches=_is_text,
        settings=lambda v: {"editor": inner_html(v.el)},
    ),
    WidgetRule(
        name="image",
        widget_type=WidgetType.IMAGE,
        matches=lambda v, _c: v.tag == "img",
        settings=lambda v: {"image": {"url": v.el.get("src") or ""}},
    ),
    WidgetRule(
        name="button",
        widget_type=WidgetType.BUTTON,
        matches=_is_button,
        settings=lambda v: {"text": v.text, "link": {"url": v.el.get("href") or "#"}},
    ),
    # Elementor form widgets are Pro-only: embed form fields as raw markup
    WidgetRule(
        name="form-field",
        widget_type=WidgetType.HTML,
        matches=lambda v, _c: v.tag in _FORM_FIELD_TAGS,
        settings=lambda v: {"html": outer_html(v.el)},
        extracts_css=False,
    ),
)


def match_rule(view: NodeView, config: ConverterConfig) -> WidgetRule | None:
    """First widget rule claiming *view*, or None for the container path."""
    for rule in WIDGET_RULES:
        if rule.matches(view, config):
            return rule
    return None


# ── Tree building ─────────────────────────────────────────────────────


def _build_widget(rule: WidgetRule, view: NodeView, ctx: BuildContext) -> ElementorElement:
    ctx.stats.widgets += 1
    element_id = ctx.new_id()
    settings = rule.settings(view)
    if rule.extracts_css:
        fragment = extract_custom_css(view.style, default_text_color=ctx.config.default_text_color)
        settings["_custom_css"] = ctx.custom_css(fragment, element_id)
    return ElementorElement(
        id=element_id,
        el_type=ElementKind.WIDGET,
        widget_type=rule.widget_type,
        settings=settings,
    )


def _build_container(view: NodeView, ctx: BuildContext, depth: int) -> ElementorElement:
    ctx.stats.sections += 1
    element_id = ctx.new_id()
    style = view.style

    # Grid, block and flex-column all stack as columns; only explicit flex rows stay rows
    is_flex_row = style.get("display") == "flex" and style.get("flex-direction") == "row"
    fragment = extract_custom_css(style, default_text_color=ctx.config.default_text_color)
    settings: dict[str, Any] = {
        "content_width": "full",
        "flex_direction": "row" if is_flex_row else "column",
        "flex_wrap": "wrap" if style.get("flex-wrap") == "wrap" else "nowrap",
        "_custom_css": ctx.custom_css(fragment, element_id),
    }

    background = style.get("background-color") or ""
    if background and background != TRANSPARENT:
        settings["background_background"] = "classic"
        settings["background_color"] = background

    element = ElementorElement(id=element_id, el_type=ElementKind.CONTAINER, settings=settings)
    for child in element_children(view.el):
        built = build_element(child, ctx, depth=depth + 1)
        if built is not None:
            element.elements.append(built)
    return element


def build_element(el, ctx: BuildContext, *, depth: int = 0) -> ElementorElement | None:
    """Classify *el* and build its Elementor node (recursing into containers)."""
    tag = element_tag(el)
    if not tag or tag in NON_VISUAL_TAGS:
        return None
    if depth > ctx.config.max_depth:
        logger.warning("Max depth %d exceeded at <%s>, skipping subtree", ctx.config.max_depth, tag)
        return None

    view = NodeView.of(el, ctx.resolver)
    rule = match_rule(view, ctx.config)
    if rule is not None:
        return _build_widget(rule, view, ctx)
    return _build_container(view, ctx, depth)


def build_forest(nodes, ctx: BuildContext) -> list[tuple[Any, ElementorElement]]:
    """Build every root node, keeping (source, output) pairs for slicing."""
    built: list[tuple[Any, ElementorElement]] = []
    for node in nodes:
        element = build_element(node, ctx)
        if element is not None:
            built.append((node, element))
    return built
